from datetime import datetime, timezone
import logging

from schema.ai import EditalAnalysis, EditalIn, SummaryIn, SummaryOptions, SummaryOut
from service.ai import AIService

logger = logging.getLogger(__name__)


class AIOp:

    def __init__(self):
        self.service = AIService()

    def summarize(self, data: SummaryIn) -> SummaryOut:
        """Summarize raw text without storing it"""
        summary = self.service.generate_summary(
            data.content, SummaryOptions(type=data.type, tone=data.tone)
        )
        return SummaryOut(
            type=data.type,
            tone=data.tone,
            summary=summary,
            generated_at=datetime.now(timezone.utc),
        )

    def analyze_edital(self, data: EditalIn) -> EditalAnalysis:
        analysis = self.service.analyze_edital(data.content)
        logger.info(f"Edital analyzed: {len(analysis.materias)} subjects found")
        return analysis
