import io
import logging
import os

import docx
import fitz  # PyMuPDF

import error
from config.setting import settings

logger = logging.getLogger(__name__)

PDF_TYPE = "application/pdf"
DOCX_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_TYPE = "text/plain"

SUPPORTED_TYPES = {
    PDF_TYPE: ".pdf",
    DOCX_TYPE: ".docx",
    TEXT_TYPE: ".txt",
}

MIN_EXTRACTED_LENGTH = 50
MIN_PROCESSABLE_LENGTH = 100


def resolve_content_type(content_type: str, filename: str) -> str:
    """Normalize the declared type, using the extension when the client sent none."""
    content_type = (content_type or "").split(";")[0].strip().lower()
    if content_type in SUPPORTED_TYPES:
        return content_type
    ext = os.path.splitext(filename or "")[1].lower()
    if content_type in ("", "application/octet-stream"):
        for known, known_ext in SUPPORTED_TYPES.items():
            if ext == known_ext:
                return known
    return content_type


def validate_upload(content: bytes, content_type: str) -> None:
    if content_type not in SUPPORTED_TYPES:
        raise error.ContentValidationError(
            "Tipo de arquivo não suportado. Use PDF, DOCX ou TXT.")
    max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
    if len(content) > max_bytes:
        raise error.ContentValidationError(
            f"Arquivo muito grande. Tamanho máximo: {settings.MAX_UPLOAD_SIZE_MB}MB")
    if not content:
        raise error.ContentValidationError("Arquivo vazio")


def extract_pdf(content: bytes) -> str:
    with fitz.open(stream=content, filetype="pdf") as doc:
        return "\n".join(page.get_text() for page in doc)


def extract_docx(content: bytes) -> str:
    document = docx.Document(io.BytesIO(content))
    return "\n".join(p.text for p in document.paragraphs if p.text)


def extract_text(content: bytes, content_type: str) -> str:
    """Plain text of an uploaded PDF, DOCX or TXT file."""
    try:
        if content_type == PDF_TYPE:
            text = extract_pdf(content)
        elif content_type == DOCX_TYPE:
            text = extract_docx(content)
        else:
            text = content.decode("utf-8", errors="replace")
    except Exception as e:
        logger.error(f"Text extraction failed for {content_type}: {e}")
        raise error.ContentValidationError(
            "Não foi possível extrair o texto do arquivo")

    text = text.strip()
    if len(text) < MIN_EXTRACTED_LENGTH:
        raise error.ContentValidationError(
            "Não foi possível extrair texto suficiente do arquivo")
    if len(text) < MIN_PROCESSABLE_LENGTH:
        raise error.ContentValidationError(
            "Conteúdo muito curto para processamento")
    return text
