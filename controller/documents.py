import logging
import os
from typing import List, Optional

from sqlalchemy import or_

import error
from config.setting import settings
from controller.preferences import PreferenceOp
from core.db import CreateDBSession
from model.documents import Document
from schema import SuccessOut
from schema.ai import SummaryOptions
from schema.documents import (
    DocumentDetailOut,
    DocumentOut,
    DocumentUpdate,
    ProcessingOptions,
    UrlContent,
)
from service.ai import AIService
from service.extraction import extract_text, resolve_content_type, validate_upload
from service.files.storage import FileStorage
from service.redis import Redis, documents_key
from util.enum import ProcessingStatus, SummaryType, Tone

logger = logging.getLogger(__name__)

redis_instance = Redis()


class DocumentOp:

    @staticmethod
    def _owned_document(db, user_id: str, document_id: int) -> Document:
        document = db.query(Document).filter(Document.id == document_id).first()
        if not document:
            raise error.ResourceNotFoundError("Document not found")
        if document.user_id != user_id:
            raise error.OwnershipError("Document belongs to another user")
        return document

    @staticmethod
    def _invalidate(user_id: str) -> None:
        redis_instance.delete(documents_key(user_id))

    @staticmethod
    def resolve_options(
        user_id: str, tone: Optional[Tone] = None, auto_categorize: Optional[bool] = None
    ) -> ProcessingOptions:
        """Request values win; anything left out comes from the user's preferences"""
        preferences = PreferenceOp.get_preferences(user_id)
        return ProcessingOptions(
            tone=tone or preferences.preferred_tone,
            auto_categorize=(
                preferences.auto_categorize if auto_categorize is None else auto_categorize
            ),
        )

    @staticmethod
    def _mark(document_id: int, **fields) -> None:
        with CreateDBSession() as db:
            document = db.query(Document).filter(Document.id == document_id).first()
            for key, value in fields.items():
                setattr(document, key, value)
            db.commit()

    @staticmethod
    def process_document(document_id: int, content: str, options: ProcessingOptions) -> None:
        """
        Generate summaries, category and tags for a stored document.

        Without an AI key summaries are skipped and category/tags come from
        keyword matching. A failing AI call leaves the document in error.
        """
        ai = AIService()
        fields = {}

        if ai.enabled:
            for summary_type in options.summary_types:
                try:
                    fields[Document.SUMMARY_COLUMNS[summary_type]] = ai.generate_summary(
                        content, SummaryOptions(type=summary_type, tone=options.tone)
                    )
                except error.ServerError as e:
                    logger.error(f"Processing document {document_id} failed: {e.msg}")
                    DocumentOp._mark(
                        document_id,
                        processing_status=ProcessingStatus.error,
                        error_message=e.msg,
                    )
                    if isinstance(e, error.ExternalServiceError):
                        raise
                    raise error.ExternalServiceError(e.msg)
        else:
            logger.info(f"AI disabled, skipping summaries for document {document_id}")

        if options.auto_categorize:
            fields["category"] = ai.categorize_document(content)
            fields["tags"] = ai.extract_tags(content)

        DocumentOp._mark(
            document_id, processing_status=ProcessingStatus.completed, error_message=None, **fields
        )

    @staticmethod
    def create_document(
        user_id: str,
        title: str,
        original_filename: str,
        file_type: str,
        file_size: int,
        content: str,
        options: ProcessingOptions,
        file_url: Optional[str] = None,
        source_url: Optional[str] = None,
    ) -> DocumentDetailOut:
        with CreateDBSession() as db:
            document = Document(
                user_id=user_id,
                title=title[:255] or "Sem título",
                original_filename=original_filename[:255],
                file_type=file_type,
                file_size=file_size,
                file_url=file_url,
                source_url=source_url,
                content=content,
                tags=[],
                is_favorite=False,
                processing_status=ProcessingStatus.processing,
            )
            db.add(document)
            db.commit()
            document_id = document.id

        DocumentOp._invalidate(user_id)
        DocumentOp.process_document(document_id, content, options)
        logger.info(f"Document {document_id} processed for user {user_id}")
        return DocumentOp.get_document(user_id, document_id)

    @staticmethod
    def upload_document(
        user_id: str,
        filename: str,
        content_type: str,
        content: bytes,
        tone: Optional[Tone] = None,
        auto_categorize: Optional[bool] = None,
    ) -> DocumentDetailOut:
        content_type = resolve_content_type(content_type, filename)
        validate_upload(content, content_type)
        text = extract_text(content, content_type)
        options = DocumentOp.resolve_options(user_id, tone, auto_categorize)

        stored = FileStorage().save_file(content, filename, user_id)
        return DocumentOp.create_document(
            user_id,
            title=os.path.splitext(filename)[0],
            original_filename=filename,
            file_type=content_type,
            file_size=len(content),
            content=text,
            options=options,
            file_url=stored["download_url"],
        )

    @staticmethod
    def create_from_url(
        user_id: str,
        page: UrlContent,
        tone: Optional[Tone] = None,
        auto_categorize: Optional[bool] = None,
    ) -> DocumentDetailOut:
        options = DocumentOp.resolve_options(user_id, tone, auto_categorize)
        return DocumentOp.create_document(
            user_id,
            title=page.title,
            original_filename=page.domain,
            file_type="text/html",
            file_size=len(page.content.encode("utf-8")),
            content=page.content,
            options=options,
            source_url=page.url,
        )

    @staticmethod
    def list_documents(
        user_id: str,
        category: Optional[str] = None,
        favorites_only: bool = False,
        search: Optional[str] = None,
    ) -> List[DocumentOut]:
        """Newest first; only the unfiltered list is cached"""
        unfiltered = not (category or favorites_only or search)
        cache_key = documents_key(user_id)
        if unfiltered:
            cached = redis_instance.get_json(cache_key)
            if cached is not None:
                return [DocumentOut(**d) for d in cached]

        with CreateDBSession() as db:
            query = db.query(Document).filter(Document.user_id == user_id)
            if category:
                query = query.filter(Document.category == category)
            if favorites_only:
                query = query.filter(Document.is_favorite.is_(True))
            if search:
                pattern = f"%{search.strip()}%"
                query = query.filter(or_(
                    Document.title.ilike(pattern),
                    Document.original_filename.ilike(pattern),
                ))
            documents = query.order_by(
                Document.created_at.desc(), Document.id.desc()
            ).all()
            result = [DocumentOut.model_validate(d) for d in documents]

        if unfiltered:
            redis_instance.set_json(
                cache_key,
                [r.model_dump(mode="json") for r in result],
                expiry=settings.CACHE_EXPIRE_SECONDS,
            )
        return result

    @staticmethod
    def get_document(user_id: str, document_id: int) -> DocumentDetailOut:
        with CreateDBSession() as db:
            document = DocumentOp._owned_document(db, user_id, document_id)
            return DocumentDetailOut.model_validate(document)

    @staticmethod
    def update_document(user_id: str, document_id: int, data: DocumentUpdate) -> DocumentDetailOut:
        with CreateDBSession() as db:
            document = DocumentOp._owned_document(db, user_id, document_id)
            for key, value in data.model_dump(exclude_unset=True).items():
                setattr(document, key, value)
            db.commit()
            db.refresh(document)
            result = DocumentDetailOut.model_validate(document)

        DocumentOp._invalidate(user_id)
        return result

    @staticmethod
    def delete_document(user_id: str, document_id: int) -> SuccessOut:
        with CreateDBSession() as db:
            document = DocumentOp._owned_document(db, user_id, document_id)
            file_url = document.file_url
            db.delete(document)
            db.commit()

        if file_url:
            FileStorage().delete_by_url(file_url)
        DocumentOp._invalidate(user_id)
        return SuccessOut(message="Document deleted successfully")

    @staticmethod
    def set_favorite(user_id: str, document_id: int, is_favorite: bool) -> DocumentOut:
        with CreateDBSession() as db:
            document = DocumentOp._owned_document(db, user_id, document_id)
            document.is_favorite = is_favorite
            db.commit()
            db.refresh(document)
            result = DocumentOut.model_validate(document)

        DocumentOp._invalidate(user_id)
        return result

    @staticmethod
    def regenerate_summary(
        user_id: str, document_id: int, summary_type: SummaryType, tone: Optional[Tone] = None
    ) -> DocumentDetailOut:
        with CreateDBSession() as db:
            content = DocumentOp._owned_document(db, user_id, document_id).content

        tone = tone or PreferenceOp.get_preferences(user_id).preferred_tone
        summary = AIService().generate_summary(
            content, SummaryOptions(type=summary_type, tone=tone)
        )

        with CreateDBSession() as db:
            document = DocumentOp._owned_document(db, user_id, document_id)
            document.set_summary(summary_type, summary)
            db.commit()
            db.refresh(document)
            result = DocumentDetailOut.model_validate(document)

        DocumentOp._invalidate(user_id)
        return result

    @staticmethod
    def generate_study_guide(user_id: str, document_id: int) -> DocumentDetailOut:
        return DocumentOp.regenerate_summary(user_id, document_id, SummaryType.study_guide)
