import io

import docx
import fitz
import pytest

import error
from service.extraction import (
    DOCX_TYPE,
    PDF_TYPE,
    TEXT_TYPE,
    extract_text,
    resolve_content_type,
    validate_upload,
)

LINES = [
    "Direito Administrativo para concursos publicos",
    "Os atos administrativos possuem atributos proprios",
    "Presuncao de legitimidade, imperatividade e autoexecutoriedade",
    "A licitacao garante a isonomia entre os participantes",
]


def make_pdf() -> bytes:
    doc = fitz.open()
    page = doc.new_page()
    for i, line in enumerate(LINES):
        page.insert_text((72, 72 + i * 20), line, fontsize=11)
    content = doc.tobytes()
    doc.close()
    return content


def make_docx() -> bytes:
    document = docx.Document()
    for line in LINES:
        document.add_paragraph(line)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


class TestValidation:
    def test_rejects_unknown_type(self):
        with pytest.raises(error.ContentValidationError):
            validate_upload(b"data", "image/png")

    def test_rejects_large_files(self, monkeypatch):
        from config.setting import settings
        monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_MB", 1)
        with pytest.raises(error.ContentValidationError):
            validate_upload(b"x" * (1024 * 1024 + 1), TEXT_TYPE)

    def test_type_from_extension(self):
        assert resolve_content_type("application/octet-stream", "notas.PDF") == PDF_TYPE
        assert resolve_content_type("text/plain; charset=utf-8", "notas.txt") == TEXT_TYPE
        assert resolve_content_type("image/png", "foto.pdf") == "image/png"


class TestExtraction:
    def test_pdf(self):
        text = extract_text(make_pdf(), PDF_TYPE)
        assert "atos administrativos" in text
        assert "licitacao" in text

    def test_docx(self):
        text = extract_text(make_docx(), DOCX_TYPE)
        assert text.splitlines() == LINES

    def test_text(self):
        text = extract_text("\n".join(LINES).encode("utf-8"), TEXT_TYPE)
        assert text.startswith("Direito Administrativo")

    def test_short_text(self):
        with pytest.raises(error.ContentValidationError) as exc_info:
            extract_text(b"quase nada", TEXT_TYPE)
        assert "suficiente" in exc_info.value.msg

        with pytest.raises(error.ContentValidationError) as exc_info:
            extract_text(("x" * 70).encode(), TEXT_TYPE)
        assert "muito curto" in exc_info.value.msg

    def test_corrupt_pdf(self):
        with pytest.raises(error.ContentValidationError):
            extract_text(b"%PDF-not really", PDF_TYPE)
