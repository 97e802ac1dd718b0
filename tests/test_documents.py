import pytest

from model.documents import Document
from core.db import CreateDBSession
from util.enum import ProcessingStatus

API = "/api/v1"

CONSTITUTION_TEXT = (
    "A Constituição Federal estabelece os direitos fundamentais e os princípios "
    "constitucionais que orientam o Estado. O poder constituinte originário cria a "
    "constituição, enquanto o derivado a reforma por meio de emendas. Todo concurso "
    "cobra a organização dos poderes e a competência de cada ente federado."
)


def upload(client, headers, text=CONSTITUTION_TEXT, filename="constituicao.txt",
           content_type="text/plain", **form):
    return client.post(
        f"{API}/documents/upload",
        files={"file": (filename, text.encode("utf-8"), content_type)},
        data=form,
        headers=headers,
    )


def fake_answers(system, prompt):
    if "categorização" in system:
        return "Direito Constitucional"
    if "tags" in system:
        return "constituição, poder constituinte, direitos fundamentais"
    return "## Visão geral\n- Pontos principais da constituição"


class TestUpload:
    def test_without_ai_key_uses_fallbacks(self, client, auth_headers):
        response = upload(client, auth_headers)
        assert response.status_code == 201, response.text
        document = response.json()

        assert document["processing_status"] == "completed"
        assert document["title"] == "constituicao"
        assert document["file_type"] == "text/plain"
        assert document["summary_short"] is None
        assert document["category"] == "Direito Constitucional"
        assert "constituição" in document["tags"]
        assert document["file_url"].startswith("/api/v1/files/user-1/")
        assert document["content"].startswith("A Constituição Federal")

    def test_with_ai(self, client, auth_headers, fake_llm):
        calls = fake_llm(fake_answers)
        document = upload(client, auth_headers, tone="simple").json()

        assert document["processing_status"] == "completed"
        assert document["summary_short"].startswith("## Visão geral")
        assert document["summary_medium"]
        assert document["summary_detailed"]
        assert document["study_guide"] is None
        assert document["category"] == "Direito Constitucional"
        assert document["tags"] == ["constituição", "poder constituinte", "direitos fundamentais"]
        assert [c["max_tokens"] for c in calls[:3]] == [800, 1500, 2500]
        assert "analogias" in calls[0]["prompt"]

    def test_ai_failure_marks_document(self, client, auth_headers, fake_llm):
        fake_llm(RuntimeError("service unavailable"))
        response = upload(client, auth_headers)
        assert response.status_code == 502

        with CreateDBSession() as db:
            document = db.query(Document).one()
            assert document.processing_status == ProcessingStatus.error
            assert "service unavailable" in document.error_message

    def test_preferences_supply_defaults(self, client, auth_headers):
        client.put(
            f"{API}/preferences",
            json={"default_summary_type": "short", "auto_categorize": False, "preferred_tone": "casual"},
            headers=auth_headers,
        )
        document = upload(client, auth_headers).json()
        assert document["category"] is None
        assert document["tags"] == []

    def test_unsupported_type(self, client, auth_headers):
        response = upload(client, auth_headers, filename="foto.png", content_type="image/png")
        assert response.status_code == 400

    def test_too_short(self, client, auth_headers):
        response = upload(client, auth_headers, text="Apenas uma linha curta de texto que não basta.")
        assert response.status_code == 400

    def test_too_large(self, client, auth_headers, monkeypatch):
        from config.setting import settings
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 0)
        response = upload(client, auth_headers)
        assert response.status_code == 400


class TestLibrary:
    def test_list_filters(self, client, auth_headers, other_headers):
        upload(client, auth_headers)
        upload(client, auth_headers, text="Equação do segundo grau, função afim, geometria plana e "
               "trigonometria são temas frequentes nas provas de matemática dos concursos.",
               filename="matematica.txt")
        upload(client, other_headers)

        documents = client.get(f"{API}/documents", headers=auth_headers).json()
        assert [d["title"] for d in documents] == ["matematica", "constituicao"]
        assert "content" not in documents[0]

        by_category = client.get(
            f"{API}/documents", params={"category": "Matemática"}, headers=auth_headers).json()
        assert [d["title"] for d in by_category] == ["matematica"]

        search = client.get(f"{API}/documents", params={"q": "consti"}, headers=auth_headers).json()
        assert [d["title"] for d in search] == ["constituicao"]

    def test_update_and_favorite(self, client, auth_headers):
        document = upload(client, auth_headers).json()

        response = client.patch(
            f"{API}/documents/{document['id']}",
            json={"title": "CF/88", "tags": ["cf"]}, headers=auth_headers,
        )
        assert response.json()["title"] == "CF/88"
        assert response.json()["tags"] == ["cf"]

        client.put(f"{API}/documents/{document['id']}/favorite",
                   json={"is_favorite": True}, headers=auth_headers)
        favorites = client.get(
            f"{API}/documents", params={"favorites": True}, headers=auth_headers).json()
        assert [d["id"] for d in favorites] == [document["id"]]

    def test_owner_checks(self, client, auth_headers, other_headers):
        document = upload(client, auth_headers).json()
        assert client.get(f"{API}/documents/{document['id']}", headers=other_headers).status_code == 403
        assert client.delete(f"{API}/documents/{document['id']}", headers=other_headers).status_code == 403
        assert client.get(f"{API}/documents/9999", headers=auth_headers).status_code == 404

    def test_delete_removes_file(self, client, auth_headers):
        document = upload(client, auth_headers).json()
        file_url = document["file_url"]
        assert client.get(file_url, headers=auth_headers).status_code == 200

        response = client.delete(f"{API}/documents/{document['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert client.get(file_url, headers=auth_headers).status_code == 404

    def test_download_is_owner_only(self, client, auth_headers, other_headers):
        document = upload(client, auth_headers).json()
        response = client.get(document["file_url"], headers=auth_headers)
        assert response.content == CONSTITUTION_TEXT.encode("utf-8")
        assert client.get(document["file_url"], headers=other_headers).status_code == 403

    def test_study_guide(self, client, auth_headers, fake_llm):
        document = upload(client, auth_headers).json()
        calls = fake_llm(fake_answers)

        response = client.post(f"{API}/documents/{document['id']}/study-guide", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["study_guide"].startswith("## Visão geral")
        assert calls[-1]["max_tokens"] == 4000

    def test_regenerate_summary_without_ai(self, client, auth_headers):
        document = upload(client, auth_headers).json()
        response = client.post(
            f"{API}/documents/{document['id']}/summaries/short", headers=auth_headers)
        assert response.status_code == 502


class TestUrlDocument:
    def test_creates_document_from_page(self, client, auth_headers, monkeypatch):
        from schema.documents import UrlContent
        from service.url_content import UrlService

        async def fake_extract(self, url):
            return UrlContent(
                title="Lei 8.112", content=CONSTITUTION_TEXT, url=url,
                domain="www.planalto.gov.br", word_count=len(CONSTITUTION_TEXT.split()),
            )

        monkeypatch.setattr(UrlService, "extract_content_from_url", fake_extract)
        response = client.post(
            f"{API}/documents/url",
            json={"url": "https://www.planalto.gov.br/lei8112.htm"}, headers=auth_headers,
        )
        assert response.status_code == 201, response.text
        document = response.json()
        assert document["title"] == "Lei 8.112"
        assert document["source_url"] == "https://www.planalto.gov.br/lei8112.htm"
        assert document["file_type"] == "text/html"
        assert document["file_url"] is None

    def test_invalid_url(self, client, auth_headers):
        response = client.post(
            f"{API}/documents/url", json={"url": "ftp://example.com/file"}, headers=auth_headers)
        assert response.status_code == 400


class TestPreferences:
    def test_defaults_then_upsert(self, client, auth_headers):
        defaults = client.get(f"{API}/preferences", headers=auth_headers).json()
        assert defaults == {
            "user_id": "user-1",
            "default_summary_type": "medium",
            "auto_categorize": True,
            "preferred_tone": "formal",
        }

        saved = client.put(
            f"{API}/preferences",
            json={"default_summary_type": "detailed", "auto_categorize": False, "preferred_tone": "simple"},
            headers=auth_headers,
        ).json()
        assert saved["preferred_tone"] == "simple"
        again = client.put(
            f"{API}/preferences", json={"preferred_tone": "casual"}, headers=auth_headers).json()
        assert again["preferred_tone"] == "casual"
        assert again["default_summary_type"] == "medium"


@pytest.fixture(autouse=True)
def isolated_storage(tmp_path, monkeypatch):
    from config.setting import settings
    monkeypatch.setattr(settings, "FILE_STORAGE_DIR", str(tmp_path))
