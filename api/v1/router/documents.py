from typing import Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool
import logging

from controller.documents import DocumentOp
from schema import SuccessOut
from schema.documents import (
    DocumentDetailOut, DocumentOut, DocumentUpdate, FavoriteIn,
    SummaryRequestIn, UrlDocumentIn
)
from service.auth import current_user_id
from service.url_content import UrlService
from util.enum import SummaryType, Tone
import error

router = APIRouter(tags=["Documents"])
logger = logging.getLogger(__name__)


@router.post("/documents/upload", response_model=DocumentDetailOut, status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    tone: Optional[Tone] = Form(None),
    auto_categorize: Optional[bool] = Form(None),
    user_id: str = Depends(current_user_id)
):
    """
    Upload a PDF, DOCX or TXT file, extract its text and generate summaries,
    category and tags.
    """
    if not file.filename:
        raise error.ContentValidationError("No file provided")

    content = await file.read()
    return await run_in_threadpool(
        DocumentOp.upload_document,
        user_id, file.filename, file.content_type, content, tone, auto_categorize,
    )


@router.post("/documents/url", response_model=DocumentDetailOut, status_code=201)
async def create_document_from_url(
    data: UrlDocumentIn,
    user_id: str = Depends(current_user_id)
):
    """
    Fetch a public page, keep its main text and process it like an upload.
    """
    page = await UrlService().extract_content_from_url(data.url)
    return await run_in_threadpool(
        DocumentOp.create_from_url, user_id, page, data.tone, data.auto_categorize
    )


@router.get("/documents", response_model=list[DocumentOut])
def list_documents(
    category: Optional[str] = None,
    favorites: bool = False,
    q: Optional[str] = None,
    user_id: str = Depends(current_user_id)
):
    return DocumentOp.list_documents(user_id, category, favorites, q)


@router.get("/documents/{document_id}", response_model=DocumentDetailOut)
def get_document(document_id: int, user_id: str = Depends(current_user_id)):
    return DocumentOp.get_document(user_id, document_id)


@router.patch("/documents/{document_id}", response_model=DocumentDetailOut)
def update_document(
    document_id: int,
    data: DocumentUpdate,
    user_id: str = Depends(current_user_id)
):
    return DocumentOp.update_document(user_id, document_id, data)


@router.delete("/documents/{document_id}", response_model=SuccessOut)
def delete_document(document_id: int, user_id: str = Depends(current_user_id)):
    return DocumentOp.delete_document(user_id, document_id)


@router.put("/documents/{document_id}/favorite", response_model=DocumentOut)
def set_favorite(
    document_id: int,
    data: FavoriteIn,
    user_id: str = Depends(current_user_id)
):
    return DocumentOp.set_favorite(user_id, document_id, data.is_favorite)


@router.post("/documents/{document_id}/study-guide", response_model=DocumentDetailOut)
def generate_study_guide(document_id: int, user_id: str = Depends(current_user_id)):
    return DocumentOp.generate_study_guide(user_id, document_id)


@router.post(
    "/documents/{document_id}/summaries/{summary_type}", response_model=DocumentDetailOut
)
def regenerate_summary(
    document_id: int,
    summary_type: SummaryType,
    data: Optional[SummaryRequestIn] = None,
    user_id: str = Depends(current_user_id)
):
    tone = data.tone if data else None
    return DocumentOp.regenerate_summary(user_id, document_id, summary_type, tone)
