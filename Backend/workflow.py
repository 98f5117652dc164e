"""
Intake and review workflow.

Upload: store file -> create pending document -> extract text -> summarize.
Only the first two steps can fail the request; text and summary are best effort.

Review: admins approve (granting visibility to a set of users) or reject with a
reason. Employees only ever see approved documents assigned to them.
"""
import logging
import uuid
from enum import Enum
from typing import Callable, Iterable, List, Optional, Set

from config import settings
from errors import AuthorizationError, DocumentNotFoundError, PayloadTooLargeError, PersistenceError, ValidationError
from extraction import extract_text
from identity import is_admin, require_admin
from models import Document, DocumentStatus, Identity, Role, User
from summarizer import fallback_description

logger = logging.getLogger(__name__)


class UploadStage(str, Enum):
    RECEIVED = "received"
    STORED = "stored"
    EXTRACTED = "extracted"
    SUMMARIZED = "summarized"
    DONE = "done"


_STAGE_ORDER = list(UploadStage)


class UploadOrchestrator:
    """Sequences a single upload. Create one per request; state is never persisted."""

    def __init__(self, store, summarizer, extract: Optional[Callable[[bytes], str]] = None,
                 max_upload_bytes: int = settings.max_upload_bytes):
        self.store = store
        self.summarizer = summarizer
        self.extract = extract or extract_text
        self.max_upload_bytes = max_upload_bytes
        self.stage = UploadStage.RECEIVED

    def _advance(self, stage: UploadStage) -> None:
        if _STAGE_ORDER.index(stage) <= _STAGE_ORDER.index(self.stage):
            raise RuntimeError(f"Upload cannot move from {self.stage.value} to {stage.value}")
        self.stage = stage

    def run(self, identity: Optional[Identity], data: Optional[bytes], filename: Optional[str],
            title: Optional[str] = None, content_type: Optional[str] = None) -> Document:
        require_admin(identity)
        if not data:
            raise ValidationError("file required")
        if len(data) > self.max_upload_bytes:
            raise PayloadTooLargeError(f"File too large (max {self.max_upload_bytes} bytes)")

        title = (title or "").strip() or (filename or "").strip() or "Untitled"

        # Failures up to document creation abort the upload.
        file_url = self.store.store_file(data, filename or "", content_type)
        document = self.store.create_document(title, file_url, identity.id)
        self._advance(UploadStage.STORED)
        logger.info(f"User {identity.id} uploaded document {document.id}")

        text = self.extract(data)
        if not text:
            logger.warning(f"No text extracted for document {document.id}")
        try:
            self.store.update_extracted_text(document.id, text)
        except PersistenceError as e:
            logger.error(f"Could not save extracted text for document {document.id}: {e}")
        self._advance(UploadStage.EXTRACTED)

        summary = self.summarizer.summarize(text or fallback_description(file_url))
        try:
            self.store.update_summary(document.id, summary)
        except PersistenceError as e:
            logger.error(f"Could not save summary for document {document.id}: {e}")
        self._advance(UploadStage.SUMMARIZED)

        self._advance(UploadStage.DONE)
        return document.model_copy(update={"parsed_text": text, "summary": summary})


def check_document_id(doc_id: str) -> None:
    # Document ids are UUIDs; anything else cannot name an existing document.
    try:
        uuid.UUID(str(doc_id))
    except ValueError:
        raise DocumentNotFoundError(f"Document {doc_id} not found")


def list_pending(store, identity: Optional[Identity]) -> List[Document]:
    require_admin(identity)
    return store.list_by_status(DocumentStatus.PENDING)


def approve(store, doc_id: str, identity: Optional[Identity], user_ids: Iterable[str]) -> None:
    """Approve a document and grant it to user_ids. Re-approving is not an error."""
    require_admin(identity)
    check_document_id(doc_id)
    user_ids = list(user_ids or [])
    if not store.approve(doc_id, user_ids, identity.id):
        raise DocumentNotFoundError(f"Document {doc_id} not found")
    logger.info(f"User {identity.id} approved document {doc_id} for {len(user_ids)} user(s)")


def reject(store, doc_id: str, identity: Optional[Identity], reason: Optional[str]) -> None:
    require_admin(identity)
    check_document_id(doc_id)
    reason = (reason or "").strip()
    if not reason:
        raise ValidationError("reason required")
    if not store.set_status(doc_id, DocumentStatus.REJECTED, reviewer_id=identity.id, reason=reason):
        raise DocumentNotFoundError(f"Document {doc_id} not found")
    logger.info(f"User {identity.id} rejected document {doc_id}")


def is_visible_to(document: Document, assigned_ids: Set[str]) -> bool:
    return document.status == DocumentStatus.APPROVED and document.id in assigned_ids


def can_view_assignments_of(identity: Optional[Identity], user_id: str) -> bool:
    return identity is not None and (is_admin(identity) or identity.id == user_id)


def list_visible_for(store, identity: Optional[Identity], user_id: str) -> List[Document]:
    """Approved documents assigned to user_id, newest first."""
    if not can_view_assignments_of(identity, user_id):
        raise AuthorizationError("Forbidden")
    # Row-level policies may be absent or broader than intended, so the
    # assignment set is always applied here as well.
    approved = store.list_by_status(DocumentStatus.APPROVED)
    assigned_ids = store.assigned_document_ids(user_id)
    return [doc for doc in approved if is_visible_to(doc, assigned_ids)]


def list_employees(store, identity: Optional[Identity]) -> List[User]:
    require_admin(identity)
    return store.list_users(Role.EMPLOYEE)
