from fastapi import APIRouter, Depends
from controller.ai import AIOp
from schema.ai import EditalAnalysis, EditalIn, SummaryIn, SummaryOut
from service.auth import current_user_id

router = APIRouter(tags=["AI Assistant"])


@router.post("/ai/summarize", response_model=SummaryOut)
def summarize(data: SummaryIn, user_id: str = Depends(current_user_id)):
    """
    Summarize raw text for exam study. Requires at least 100 characters.
    """
    return AIOp().summarize(data)


@router.post("/ai/edital", response_model=EditalAnalysis)
def analyze_edital(data: EditalIn, user_id: str = Depends(current_user_id)):
    """
    Extract exam name, subjects and weights from an exam announcement.
    """
    return AIOp().analyze_edital(data)
