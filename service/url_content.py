import logging
from html.parser import HTMLParser
from typing import List, Optional
from urllib.parse import quote, urlparse

import httpx

import error
from config.setting import settings
from schema.documents import UrlContent
from util.text import clean_content

logger = logging.getLogger(__name__)

MIN_BLOCK_LENGTH = 20
MIN_CONTENT_LENGTH = 100

SKIPPED_TAGS = {"script", "style", "nav", "footer", "header", "aside", "noscript"}
VOID_TAGS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
}
TEXT_TAGS = {"p", "h1", "h2", "h3", "h4", "h5", "h6", "li", "blockquote", "div"}
CONTENT_SELECTORS = [
    "main", "article", ".content", ".post-content", ".entry-content",
    ".article-content", "#content", ".main-content",
]


class Node:
    def __init__(self, tag: str, attrs: dict, parent: Optional["Node"] = None):
        self.tag = tag
        self.attrs = attrs
        self.parent = parent
        self.children: List = []

    def text(self) -> str:
        parts = []
        for child in self.children:
            parts.append(child.text() if isinstance(child, Node) else child)
        return " ".join(p for p in parts if p)

    def matches(self, selector: str) -> bool:
        if selector.startswith("."):
            return selector[1:] in (self.attrs.get("class") or "").split()
        if selector.startswith("#"):
            return self.attrs.get("id") == selector[1:]
        return self.tag == selector

    def find(self, selector: str) -> Optional["Node"]:
        for child in self.children:
            if isinstance(child, Node):
                if child.matches(selector):
                    return child
                found = child.find(selector)
                if found is not None:
                    return found
        return None


class PageParser(HTMLParser):
    """Builds a small element tree, dropping non-content sections."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.root = Node("#document", {})
        self.current = self.root
        self.skip_depth = 0
        self.title = ""
        self._in_title = False

    def handle_starttag(self, tag, attrs):
        if tag == "title":
            self._in_title = True
        if self.skip_depth:
            if tag in SKIPPED_TAGS:
                self.skip_depth += 1
            return
        if tag in SKIPPED_TAGS:
            self.skip_depth = 1
            return
        if tag in VOID_TAGS:
            return
        node = Node(tag, dict(attrs), self.current)
        self.current.children.append(node)
        self.current = node

    def handle_endtag(self, tag):
        if tag == "title":
            self._in_title = False
        if self.skip_depth:
            if tag in SKIPPED_TAGS:
                self.skip_depth -= 1
            return
        node = self.current
        while node is not self.root and node.tag != tag:
            node = node.parent
        if node is not self.root:
            self.current = node.parent

    def handle_data(self, data):
        if self._in_title:
            self.title += data
            return
        if self.skip_depth:
            return
        text = data.strip()
        if text:
            self.current.children.append(text)


def collect_blocks(node: Node, blocks: List[str]) -> None:
    for child in node.children:
        if not isinstance(child, Node):
            continue
        if child.tag in TEXT_TAGS:
            text = clean_content(child.text())
            if len(text) > MIN_BLOCK_LENGTH:
                blocks.append(text)
                continue
        collect_blocks(child, blocks)


def extract_page(html: str):
    """Return ``(title, content)`` for an HTML page."""
    parser = PageParser()
    parser.feed(html)
    parser.close()

    main = None
    for selector in CONTENT_SELECTORS:
        main = parser.root.find(selector)
        if main is not None:
            break
    if main is None:
        main = parser.root.find("body") or parser.root

    blocks: List[str] = []
    collect_blocks(main, blocks)
    title = clean_content(parser.title) or "Sem título"
    return title, clean_content("\n\n".join(blocks))


def is_valid_url(url: str) -> bool:
    parsed = urlparse(url or "")
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class UrlService:
    """Fetches a public page through a chain of CORS proxies."""

    def __init__(self, proxies: Optional[List[str]] = None,
                 timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.proxies = proxies if proxies is not None else list(settings.CORS_PROXIES)
        self.timeout = timeout or settings.URL_FETCH_TIMEOUT_SECONDS
        self.transport = transport

    async def fetch_with_proxy(self, client: httpx.AsyncClient, url: str, proxy: str) -> str:
        try:
            if "allorigins.win" in proxy:
                response = await client.get(
                    f"{proxy}{quote(url, safe='')}", headers={"Accept": "application/json"})
                response.raise_for_status()
                return response.json().get("contents") or ""
            if "corsproxy.io" in proxy:
                response = await client.get(f"{proxy}{quote(url, safe='')}")
            else:
                response = await client.get(
                    f"{proxy}{url}", headers={"X-Requested-With": "XMLHttpRequest"})
            response.raise_for_status()
            return response.text
        except httpx.TimeoutException:
            raise error.ContentFetchTimeoutError()
        except httpx.HTTPStatusError as e:
            raise error.ContentFetchError(
                f"HTTP {e.response.status_code}: {e.response.reason_phrase}")
        except (httpx.HTTPError, ValueError) as e:
            raise error.ContentFetchError(str(e) or e.__class__.__name__)

    async def extract_content_from_url(self, url: str) -> UrlContent:
        url = (url or "").strip()
        if not is_valid_url(url):
            raise error.InvalidRequestError(
                "URL inválida. Por favor, insira uma URL válida.")

        last_error = "Erro desconhecido"
        async with httpx.AsyncClient(
            timeout=self.timeout, follow_redirects=True, transport=self.transport
        ) as client:
            for i, proxy in enumerate(self.proxies, start=1):
                logger.info(f"Fetching {url} via proxy {i}/{len(self.proxies)}: {proxy}")
                try:
                    html = await self.fetch_with_proxy(client, url, proxy)
                    if not html:
                        raise error.ContentFetchError(
                            "Não foi possível obter o conteúdo da página.")
                    title, content = extract_page(html)
                    if len(content) < MIN_CONTENT_LENGTH:
                        raise error.ContentFetchError(
                            "Conteúdo extraído é muito curto. A página pode não ter "
                            "conteúdo textual suficiente.")
                except error.ServerError as e:
                    logger.warning(f"Proxy {i} failed for {url}: {e.msg}")
                    last_error = e.msg
                    continue

                return UrlContent(
                    title=title,
                    content=content,
                    url=url,
                    domain=urlparse(url).hostname or "",
                    word_count=len(content.split()),
                )

        raise error.ContentFetchError(
            f"Todos os proxies falharam. Último erro: {last_error}")
