import logging
from datetime import datetime, timezone
from typing import List, Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, File, Form, Request, UploadFile
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import db
import workflow
from config import settings
from errors import DocumentServiceError
from identity import get_identity, require_admin
from models import Identity
from schemas import UploadOut, DocumentOut, ApproveIn, RejectIn, OkOut, EmployeeOut
from store import document_store
from summarizer import summarizer

# Logging Setup
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI.
    Handles startup and shutdown events.
    """
    logger.info("Application startup: Initializing resources...")

    # Log configuration status (without secrets)
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Identity mode: {settings.identity_mode}")
    logger.info(f"Storage bucket: {settings.storage_bucket}")
    logger.info(f"Summarization: {'enabled' if summarizer.enabled else 'disabled (no GEMINI_API_KEY)'}")

    try:
        logger.info("Verifying Supabase connection...")
        db.check_connection()
        logger.info("Supabase connection verified.")
    except Exception as e:
        logger.critical(f"CRITICAL: Supabase connection failed. Error: {e}")
        # Tables are created from schema.sql; refuse to start against a broken backend.
        raise

    logger.info("Application startup complete.")
    yield
    logger.info("Application shutdown: Cleaning up resources...")

app = FastAPI(
    title="Document Intake and Approval",
    lifespan=lifespan,
    version="1.0.0"
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # The review UI is served from a different origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error mapping

@app.exception_handler(DocumentServiceError)
async def document_service_error_handler(request: Request, exc: DocumentServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(status_code=400, content={"error": message})

@app.exception_handler(StarletteHTTPException)
async def not_found_handler(request: Request, exc: StarletteHTTPException):
    # Unknown method on a known path is reported like an unknown route.
    if exc.status_code == 405:
        exc = StarletteHTTPException(status_code=404, detail="Not Found")
    return await http_exception_handler(request, exc)

# Dependencies

def get_store():
    return document_store

def get_summarizer():
    return summarizer

# Endpoints
@app.get("/health")
def health():
    try:
        db.check_connection()
        db_status = "ok"
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        db_status = "error"

    return {
        "status": "ok" if db_status == "ok" else "degraded",
        "database": db_status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

@app.post("/upload", response_model=UploadOut)
def upload_document(
    file: Optional[UploadFile] = File(None),
    title: Optional[str] = Form(None),
    identity: Optional[Identity] = Depends(get_identity),
    store=Depends(get_store),
    doc_summarizer=Depends(get_summarizer),
):
    # Authorization is checked before the body is read.
    require_admin(identity)
    content = file.file.read() if file is not None else b""

    orchestrator = workflow.UploadOrchestrator(store, doc_summarizer)
    document = orchestrator.run(
        identity,
        content,
        file.filename if file is not None else None,
        title=title,
        content_type=file.content_type if file is not None else None,
    )
    return UploadOut(id=document.id, title=document.title, file_url=document.file_url, status=document.status)

@app.get("/pending", response_model=List[DocumentOut])
def list_pending(
    identity: Optional[Identity] = Depends(get_identity),
    store=Depends(get_store),
):
    return workflow.list_pending(store, identity)

@app.get("/employees", response_model=List[EmployeeOut])
def list_employees(
    identity: Optional[Identity] = Depends(get_identity),
    store=Depends(get_store),
):
    return workflow.list_employees(store, identity)

@app.post("/{doc_id}/approve", response_model=OkOut)
def approve_document(
    doc_id: str,
    payload: Optional[ApproveIn] = None,
    identity: Optional[Identity] = Depends(get_identity),
    store=Depends(get_store),
):
    user_ids = payload.user_ids if payload is not None else []
    workflow.approve(store, doc_id, identity, user_ids)
    return OkOut()

@app.post("/{doc_id}/reject", response_model=OkOut)
def reject_document(
    doc_id: str,
    payload: Optional[RejectIn] = None,
    identity: Optional[Identity] = Depends(get_identity),
    store=Depends(get_store),
):
    workflow.reject(store, doc_id, identity, payload.reason if payload is not None else None)
    return OkOut()

@app.get("/approved/{user_id}", response_model=List[DocumentOut])
def list_approved_for_user(
    user_id: str,
    identity: Optional[Identity] = Depends(get_identity),
    store=Depends(get_store),
):
    return workflow.list_visible_for(store, identity, user_id)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
