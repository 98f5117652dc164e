"""
Document Store Adapter: the only code that reads or writes documents,
assignments and uploaded files. Backend failures surface as StorageError or
PersistenceError; deciding which of them are fatal is the caller's job.
"""
import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Set

from config import settings
from db import supabase, USERS_TABLE, DOCUMENTS_TABLE, ASSIGNMENTS_TABLE
from errors import PersistenceError, StorageError
from models import Assignment, Document, DocumentStatus, Role, User

logger = logging.getLogger(__name__)

LIST_COLUMNS = "id,title,file_url,summary,status,created_at"


def storage_key(filename: str) -> str:
    """Globally unique key that still carries the original file name."""
    name = os.path.basename(filename or "").strip() or "document.pdf"
    return f"{uuid.uuid4()}-{name}"


def unique_ids(user_ids: Iterable[str]) -> List[str]:
    seen = []
    for user_id in user_ids:
        user_id = (user_id or "").strip()
        if user_id and user_id not in seen:
            seen.append(user_id)
    return seen


class DocumentStore:
    def __init__(self, client, bucket: str):
        self.client = client
        self.bucket = bucket

    # Blob storage

    def store_file(self, data: bytes, suggested_name: str, content_type: Optional[str] = None) -> str:
        key = storage_key(suggested_name)
        try:
            bucket = self.client.storage.from_(self.bucket)
            bucket.upload(
                key,
                data,
                file_options={"content-type": content_type or "application/pdf", "upsert": "false"},
            )
            file_url = bucket.get_public_url(key)
        except Exception as e:
            logger.error(f"Storage error while uploading {key}: {e}")
            raise StorageError("Could not store file") from e

        if not file_url:
            raise StorageError("Storage did not return a public URL")
        return file_url

    # Documents

    def create_document(self, title: str, file_url: str, creator_id: Optional[str]) -> Document:
        new_doc_data = {
            "title": title,
            "file_url": file_url,
            "status": DocumentStatus.PENDING.value,
            "created_by": creator_id,
        }
        try:
            response = self.client.table(DOCUMENTS_TABLE).insert(new_doc_data).execute()
        except Exception as e:
            logger.error(f"Database error while creating document: {e}")
            raise PersistenceError("Could not create document") from e

        if not response.data or not isinstance(response.data[0], dict):
            logger.error(f"Unexpected response format from Supabase: {response.data}")
            raise PersistenceError("Failed to save document metadata")
        return Document(**response.data[0])

    def _update(self, doc_id: str, values: dict) -> bool:
        try:
            response = self.client.table(DOCUMENTS_TABLE).update(values).eq("id", doc_id).execute()
        except Exception as e:
            logger.error(f"Database error while updating document {doc_id}: {e}")
            raise PersistenceError("Could not update document") from e
        return bool(response.data)

    def update_extracted_text(self, doc_id: str, text: str) -> None:
        self._update(doc_id, {"parsed_text": text})

    def update_summary(self, doc_id: str, summary: str) -> None:
        self._update(doc_id, {"summary": summary})

    def list_by_status(self, status: DocumentStatus) -> List[Document]:
        try:
            response = (
                self.client.table(DOCUMENTS_TABLE)
                .select(LIST_COLUMNS)
                .eq("status", DocumentStatus(status).value)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error(f"Database error listing {status} documents: {e}")
            raise PersistenceError("Could not list documents") from e
        return [Document(**doc) for doc in response.data or []]

    def set_status(self, doc_id: str, status: DocumentStatus, reviewer_id: Optional[str] = None,
                   reason: Optional[str] = None) -> bool:
        """Returns False when no document has this id."""
        values = {
            "status": DocumentStatus(status).value,
            "reviewed_by": reviewer_id,
            "reviewed_at": datetime.now(timezone.utc).isoformat(),
        }
        if reason is not None:
            values["rejection_reason"] = reason
        return self._update(doc_id, values)

    # Assignments

    def insert_assignments(self, doc_id: str, user_ids: Iterable[str]) -> None:
        rows = [{"doc_id": doc_id, "user_id": user_id} for user_id in unique_ids(user_ids)]
        if not rows:
            return
        try:
            self.client.table(ASSIGNMENTS_TABLE).upsert(
                rows, on_conflict="doc_id,user_id", ignore_duplicates=True
            ).execute()
        except Exception as e:
            logger.error(f"Database error assigning document {doc_id}: {e}")
            raise PersistenceError("Could not assign document") from e

    def approve(self, doc_id: str, user_ids: Iterable[str], reviewer_id: Optional[str]) -> bool:
        """
        Approve and assign in a single transaction (see approve_document in schema.sql).
        Returns False when no document has this id.
        """
        params = {"p_doc_id": doc_id, "p_user_ids": unique_ids(user_ids), "p_reviewer": reviewer_id}
        try:
            response = self.client.rpc("approve_document", params).execute()
        except Exception as e:
            logger.error(f"Database error approving document {doc_id}: {e}")
            raise PersistenceError("Could not approve document") from e
        return bool(response.data)

    def assigned_document_ids(self, user_id: str) -> Set[str]:
        try:
            response = (
                self.client.table(ASSIGNMENTS_TABLE)
                .select("doc_id,user_id")
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            logger.error(f"Database error listing assignments for {user_id}: {e}")
            raise PersistenceError("Could not list assignments") from e
        assignments = [Assignment(**row) for row in response.data or []]
        return {a.doc_id for a in assignments if a.user_id == user_id}

    # Users

    def list_users(self, role: Role) -> List[User]:
        try:
            response = (
                self.client.table(USERS_TABLE)
                .select("id,name,email,role")
                .eq("role", Role(role).value)
                .order("name")
                .execute()
            )
        except Exception as e:
            logger.error(f"Database error listing users: {e}")
            raise PersistenceError("Could not list users") from e
        return [User(**user) for user in response.data or []]


document_store = DocumentStore(supabase, settings.storage_bucket)
