import json

import pytest

import error
from schema.ai import EditalSubject, SummaryOptions
from service.ai import AIService, parse_json_payload
from util.enum import SummaryType, Tone

API = "/api/v1"

LONG_TEXT = (
    "O ato administrativo é a manifestação unilateral de vontade da administração pública "
    "que, agindo nessa qualidade, tenha por fim imediato adquirir, resguardar, transferir, "
    "modificar ou extinguir direitos."
)


class TestParseJson:
    def test_fenced_answer(self):
        assert parse_json_payload('Segue:\n```json\n{"a": 1}\n```') == {"a": 1}

    def test_no_object(self):
        with pytest.raises(error.AIResponseParseError):
            parse_json_payload("sem json aqui")

    def test_broken_object(self):
        with pytest.raises(error.AIResponseParseError):
            parse_json_payload('{"a": }')


class TestSummaries:
    def test_short_content(self, fake_llm):
        fake_llm("resumo")
        with pytest.raises(error.ContentValidationError):
            AIService().generate_summary("curto")

    def test_disabled_without_key(self):
        with pytest.raises(error.ExternalServiceError):
            AIService().generate_summary(LONG_TEXT)

    def test_long_content_is_truncated(self, fake_llm):
        calls = fake_llm("resumo")
        AIService().generate_summary(
            "a" * 20000, SummaryOptions(type=SummaryType.short, tone=Tone.casual))
        assert "a" * 15000 + "..." in calls[0]["prompt"]
        assert "a" * 15001 not in calls[0]["prompt"]
        assert calls[0]["max_tokens"] == 800

    def test_empty_answer(self, fake_llm):
        fake_llm("   ")
        with pytest.raises(error.ExternalServiceError):
            AIService().generate_summary(LONG_TEXT)

    def test_summarize_route(self, client, auth_headers, fake_llm):
        fake_llm("## Ato administrativo\n- manifestação unilateral")
        response = client.post(
            f"{API}/ai/summarize",
            json={"content": LONG_TEXT, "type": "detailed", "tone": "formal"},
            headers=auth_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["type"] == "detailed"
        assert body["summary"].startswith("## Ato administrativo")


class TestCategorization:
    def test_unknown_answer_falls_back(self, fake_llm):
        fake_llm("Biologia")
        assert AIService().categorize_document(LONG_TEXT) == "Direito Administrativo"

    def test_fallback_without_keywords(self):
        assert AIService.fallback_categorization("texto qualquer") == "Outros"

    def test_tags_are_capped(self, fake_llm):
        fake_llm(", ".join(f"tag{i}" for i in range(10)))
        assert AIService().extract_tags(LONG_TEXT) == [f"tag{i}" for i in range(7)]

    def test_fallback_tags(self):
        tags = AIService.fallback_tags("A lei e o decreto regulam o concurso e a prova.")
        assert tags == ["lei", "concurso", "prova", "decreto"]


class TestEdital:
    def test_parsed_analysis(self, fake_llm):
        fake_llm(json.dumps({
            "concursoNome": "Concurso TRT",
            "orgao": "TRT 2ª Região",
            "cargo": "Analista Judiciário",
            "dataProva": "2025-03-10",
            "materias": [{"nome": "Português", "peso": "4", "topicos": ["Crase"]}],
            "horasEstudoSugeridas": 4,
            "nivelDificuldade": "hard",
            "observacoes": "Prova discursiva",
        }))
        analysis = AIService().analyze_edital("edital " * 50)
        assert analysis.concursoNome == "Concurso TRT"
        assert analysis.materias[0].peso == 4
        assert analysis.horasEstudoSugeridas == "4"

    def test_bad_answer_falls_back(self, fake_llm):
        fake_llm("não sei")
        analysis = AIService().analyze_edital("Conteúdo: Português, Informática e Direito Penal.")
        assert [m.nome for m in analysis.materias] == ["Direito penal", "Português", "Informática"]

    def test_fallback_defaults(self):
        analysis = AIService.fallback_edital_analysis("nada reconhecível")
        assert [m.nome for m in analysis.materias] == ["Português", "Conhecimentos Gerais"]

    def test_weight_is_clamped(self):
        assert EditalSubject(nome="x", peso=9).peso == 5
        assert EditalSubject(nome="x", peso="2/5").peso == 2

    def test_edital_route_without_key(self, client, auth_headers):
        response = client.post(f"{API}/ai/edital", json={"content": "edital"}, headers=auth_headers)
        assert response.status_code == 502
