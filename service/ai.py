import json
import logging
import re
from typing import Any, Dict, List, Optional

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_groq import ChatGroq
from pydantic import ValidationError

import error
from config.setting import settings
from schema.ai import EditalAnalysis, EditalSubject, SummaryOptions
from util.enum import SummaryType, Tone
from util.text import truncate

logger = logging.getLogger(__name__)

MIN_CONTENT_LENGTH = 100
MAX_CONTENT_LENGTH = 15000

MAX_TOKENS = {
    SummaryType.short: 800,
    SummaryType.medium: 1500,
    SummaryType.detailed: 2500,
    SummaryType.study_guide: 4000,
}

CATEGORIES = [
    "Direito Constitucional",
    "Direito Administrativo",
    "Direito Civil",
    "Direito Penal",
    "Direito Processual",
    "Direito Tributário",
    "Português",
    "Matemática",
    "Raciocínio Lógico",
    "Informática",
    "Conhecimentos Gerais",
    "Atualidades",
    "Administração Pública",
    "Contabilidade",
    "Economia",
    "Estatística",
    "Geografia",
    "História",
    "Legislação Específica",
    "Outros",
]

CATEGORY_KEYWORDS = {
    "Direito Constitucional": ["constituição", "constitucional", "direitos fundamentais", "princípios constitucionais", "poder constituinte"],
    "Direito Administrativo": ["administração pública", "servidor público", "licitação", "contrato administrativo", "ato administrativo"],
    "Direito Civil": ["código civil", "pessoa física", "pessoa jurídica", "contratos", "responsabilidade civil"],
    "Direito Penal": ["código penal", "crime", "contravenção", "pena", "processo penal"],
    "Português": ["gramática", "concordância", "regência", "ortografia", "redação", "interpretação de texto"],
    "Matemática": ["equação", "função", "geometria", "álgebra", "trigonometria"],
    "Raciocínio Lógico": ["lógica", "proposição", "silogismo", "sequência", "padrão"],
    "Informática": ["computador", "software", "hardware", "internet", "sistema operacional"],
    "Conhecimentos Gerais": ["história do brasil", "geografia", "atualidades", "política"],
    "Administração Pública": ["gestão pública", "planejamento", "organização", "controle"],
    "Contabilidade": ["balanço", "demonstração", "ativo", "passivo", "patrimônio"],
}

COMMON_TERMS = [
    "princípios", "conceitos", "definições", "lei", "artigo", "direito",
    "administração", "público", "servidor", "concurso", "prova", "questão",
    "constituição", "código", "norma", "regulamento", "decreto", "portaria",
    "processo", "procedimento", "competência", "atribuição", "responsabilidade",
]

EDITAL_SUBJECTS = [
    "direito constitucional", "direito administrativo", "direito civil",
    "direito penal", "português", "matemática", "raciocínio lógico",
    "informática", "conhecimentos gerais", "atualidades",
]

STUDY_GUIDE_SYSTEM_PROMPT = """Você é um especialista em Técnica de Estudos e seu papel é me ajudar a preparar para uma prova.

SUAS CARACTERÍSTICAS:
1. EXPERTISE: Conhecimento profundo em técnicas de memorização e aprendizagem
2. METODOLOGIA: Especialista em criar guias de estudos estruturados
3. DIDÁTICA: Transforma conteúdo complexo em material de estudo eficiente
4. PRECISÃO: Mantém exatidão técnica e foco em concursos públicos

DIRETRIZES OBRIGATÓRIAS:
- Analise o documento e crie um guia de estudos detalhado
- Use formatação Markdown para organização clara
- Foque no que é mais relevante para provas e concursos
- Destaque informações críticas que frequentemente aparecem em provas"""

SUMMARY_SYSTEM_PROMPT = """Assuma o papel de um colega de estudos que está me ajudando a revisar a matéria, normalmente para concursos públicos brasileiros.

DIRETRIZES OBRIGATÓRIAS:
- Comece com uma visão geral do documento em um único parágrafo
- Use formatação Markdown para organização
- Simplifique termos técnicos sem perder precisão
- Organize em tópicos hierárquicos
- Destaque informações frequentes em provas
- Mantenha linguagem clara e objetiva"""

TONE_INSTRUCTIONS = {
    Tone.formal: "Use linguagem técnica e formal, apropriada para concursos públicos. Mantenha terminologia jurídica e administrativa precisa.",
    Tone.casual: "Use linguagem clara e acessível, mas mantenha a precisão técnica. Explique termos complexos de forma simples.",
    Tone.simple: "Explique como se fosse para alguém que está começando a estudar o assunto. Use analogias e exemplos do dia a dia quando possível.",
}

TYPE_INSTRUCTIONS = {
    SummaryType.short: """Crie um resumo CURTO e direto:
- Máximo 10 pontos principais em bullet points
- Foque apenas no essencial
- Ideal para revisão rápida""",
    SummaryType.medium: """Crie um resumo MÉDIO conceitual:
- Organize em 3-5 tópicos principais
- Explique conceitos de forma clara
- Inclua definições importantes""",
    SummaryType.detailed: """Crie um resumo DETALHADO e estruturado:
- Organize em tópicos e subtópicos (##, ###)
- Inclua definições, exemplos e aplicações
- Destaque pontos importantes com **negrito**
- Inclua observações e dicas para provas""",
    SummaryType.study_guide: """Crie um GUIA DE ESTUDOS COMPLETO seguindo EXATAMENTE esta estrutura:

## 📋 Resumo Estruturado
[Um resumo dos principais tópicos, seguindo a ordem do documento]

## 🎯 Pontos-Chave
[Datas, definições, artigos de lei, fórmulas e conceitos que aparecem em provas]

## 📚 Glossário
[Os 5 termos técnicos mais relevantes no formato **Termo:** definição]

## ❓ Questões de Revisão
[5 perguntas dissertativas com *Resposta:* concisa]""",
}

EDITAL_PROMPT = """Analise o edital de concurso abaixo e extraia as seguintes informações em formato JSON:

{{
  "concursoNome": "Nome do concurso",
  "orgao": "Órgão responsável",
  "cargo": "Cargo principal",
  "dataProva": "Data da prova (formato YYYY-MM-DD se disponível)",
  "materias": [
    {{"nome": "Nome da matéria", "peso": 1-5, "topicos": ["tópico1", "tópico2"]}}
  ],
  "horasEstudoSugeridas": "Número de horas diárias sugeridas",
  "nivelDificuldade": "easy|medium|hard",
  "observacoes": "Observações importantes sobre o edital"
}}

Responda APENAS com o JSON.

EDITAL:
{content}"""


def parse_json_payload(text: str) -> Dict[str, Any]:
    """Extract the JSON object from a model answer.

    Models often wrap JSON in markdown fences or add a sentence around it,
    so the outermost ``{...}`` block is parsed.
    """
    if not text:
        raise error.AIResponseParseError("Empty AI response")
    cleaned = re.sub(r"```(?:json)?", "", text).strip()
    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start == -1 or end <= start:
        raise error.AIResponseParseError("AI response has no JSON object")
    try:
        payload = json.loads(cleaned[start:end + 1])
    except json.JSONDecodeError as e:
        raise error.AIResponseParseError(f"Invalid JSON from AI: {e}")
    if not isinstance(payload, dict):
        raise error.AIResponseParseError("AI response is not a JSON object")
    return payload


class AIService:
    """Text-in/text-out access to the language model."""

    def __init__(self):
        self.prompt = ChatPromptTemplate.from_messages(
            [("system", "{system}"), ("human", "{prompt}")]
        )

    @property
    def enabled(self) -> bool:
        return settings.ai_enabled

    def _invoke(self, system: str, prompt: str, max_tokens: int, temperature: float) -> str:
        llm = ChatGroq(
            model=settings.GROQ_MODEL,
            temperature=temperature,
            max_tokens=max_tokens,
            max_retries=2,
            api_key=settings.GROQ_API_KEY,
        )
        chain = self.prompt | llm | StrOutputParser()
        return chain.invoke({"system": system, "prompt": prompt})

    def _complete(self, system: str, prompt: str, max_tokens: int,
                  temperature: float = None) -> str:
        if not self.enabled:
            raise error.ExternalServiceError("Chave da API de IA não configurada")
        if temperature is None:
            temperature = settings.AI_TEMPERATURE
        try:
            answer = self._invoke(system, prompt, max_tokens, temperature)
        except error.ServerError:
            raise
        except Exception as e:
            logger.error(f"AI request failed: {e}")
            raise error.ExternalServiceError(f"Erro na API de IA: {e}")
        answer = (answer or "").strip()
        if not answer:
            raise error.ExternalServiceError("Resposta vazia da API de IA")
        return answer

    # Summaries

    @staticmethod
    def build_summary_prompt(content: str, options: SummaryOptions) -> str:
        task = (
            "Criar um guia de estudos detalhado para preparação de prova"
            if options.type == SummaryType.study_guide
            else "Criar um resumo de alta qualidade para concurso público"
        )
        return f"""TAREFA: {task}

{TYPE_INSTRUCTIONS[options.type]}

TOM: {TONE_INSTRUCTIONS[options.tone]}

IDIOMA: {options.language}

INSTRUÇÕES ESPECÍFICAS:
- Identifique os conceitos mais importantes para concursos
- Destaque definições que frequentemente aparecem em provas
- Use formatação Markdown apropriada

CONTEÚDO:
{content}
"""

    def generate_summary(self, content: str, options: Optional[SummaryOptions] = None) -> str:
        options = options or SummaryOptions()
        if len(content or "") < MIN_CONTENT_LENGTH:
            raise error.ContentValidationError("Conteúdo muito curto para gerar resumo")

        system = (
            STUDY_GUIDE_SYSTEM_PROMPT
            if options.type == SummaryType.study_guide
            else SUMMARY_SYSTEM_PROMPT
        )
        prompt = self.build_summary_prompt(truncate(content, MAX_CONTENT_LENGTH), options)
        return self._complete(system, prompt, MAX_TOKENS[options.type])

    # Categorization and tags

    def categorize_document(self, content: str) -> str:
        if not self.enabled:
            return self.fallback_categorization(content)
        prompt = (
            "Analise o texto abaixo e categorize-o em UMA das seguintes categorias:\n"
            + "\n".join(f"- {c}" for c in CATEGORIES)
            + "\n\nResponda APENAS com o nome da categoria, sem explicações.\n\nTEXTO:\n"
            + truncate(content, 2000)
        )
        try:
            answer = self._complete(
                "Você é um especialista em categorização de materiais para concursos públicos brasileiros.",
                prompt, max_tokens=50, temperature=0.1,
            )
        except error.ExternalServiceError as e:
            logger.warning(f"Categorization fell back to keywords: {e.msg}")
            return self.fallback_categorization(content)

        answer = answer.strip().strip(".").strip()
        for category in CATEGORIES:
            if category.lower() == answer.lower():
                return category
        return self.fallback_categorization(content)

    @staticmethod
    def fallback_categorization(content: str) -> str:
        content_lower = (content or "").lower()
        for category, keywords in CATEGORY_KEYWORDS.items():
            if sum(1 for k in keywords if k in content_lower) >= 2:
                return category
        for category, keywords in CATEGORY_KEYWORDS.items():
            if any(k in content_lower for k in keywords):
                return category
        return "Outros"

    def extract_tags(self, content: str) -> List[str]:
        if not self.enabled:
            return self.fallback_tags(content)
        prompt = (
            "Extraia 3-7 tags relevantes do texto abaixo: palavras-chave importantes "
            "para concursos e conceitos principais.\n"
            "Responda apenas com as tags separadas por vírgula, sem numeração.\n\nTEXTO:\n"
            + truncate(content, 1500)
        )
        try:
            answer = self._complete(
                "Você extrai tags relevantes de textos para concursos públicos.",
                prompt, max_tokens=100, temperature=0.2,
            )
        except error.ExternalServiceError as e:
            logger.warning(f"Tag extraction fell back to keywords: {e.msg}")
            return self.fallback_tags(content)

        tags = [tag.strip() for tag in answer.split(",") if tag.strip()]
        return tags[:7] or self.fallback_tags(content)

    @staticmethod
    def fallback_tags(content: str) -> List[str]:
        content_lower = (content or "").lower()
        return [term for term in COMMON_TERMS if term in content_lower][:5]

    # Edital

    def analyze_edital(self, content: str) -> EditalAnalysis:
        answer = self._complete(
            "Você é um especialista em análise de editais de concursos públicos brasileiros. "
            "Extraia informações precisas e estruturadas.",
            EDITAL_PROMPT.format(content=truncate(content, 8000)),
            max_tokens=2000, temperature=0.1,
        )
        try:
            return EditalAnalysis(**parse_json_payload(answer))
        except (error.AIResponseParseError, ValidationError) as e:
            logger.warning(f"Edital analysis fell back to keywords: {e}")
            return self.fallback_edital_analysis(content)

    @staticmethod
    def fallback_edital_analysis(content: str) -> EditalAnalysis:
        content_lower = (content or "").lower()
        subjects = [
            EditalSubject(nome=s[0].upper() + s[1:], peso=3)
            for s in EDITAL_SUBJECTS if s in content_lower
        ]
        if not subjects:
            subjects = [
                EditalSubject(nome="Português", peso=4),
                EditalSubject(nome="Conhecimentos Gerais", peso=3),
            ]
        return EditalAnalysis(materias=subjects, observacoes="Análise automática do edital")

    # Study plans

    def request_plan_allocation(self, prompt: str) -> Dict[str, Any]:
        answer = self._complete(
            "Você é um especialista em planejamento de estudos para concursos públicos. "
            "Responda somente com JSON válido.",
            prompt, max_tokens=MAX_TOKENS[SummaryType.detailed],
        )
        return parse_json_payload(answer)
