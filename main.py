from fastapi import FastAPI, Body, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, Response
from pydantic import BaseModel
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from collections import defaultdict

from config import config
from document_types import DOCUMENT_TYPES
from pdf_generator import (
    Artifact,
    DocumentGenerationError,
    generate_document,
    generate_payment_receipt,
    preview_document,
    preview_payment_receipt,
)
from themes import THEMES

# Configure structured logging
import json as json_lib

class StructuredFormatter(logging.Formatter):
    def format(self, record):
        log_obj = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        # Add extra fields if present
        for field in ('document_kind', 'theme', 'document_number', 'asset_role', 'error_type'):
            if hasattr(record, field):
                log_obj[field] = getattr(record, field)

        return json_lib.dumps(log_obj)

# Configure logging
json_handler = logging.FileHandler(config.LOG_FILE.replace('.log', '_structured.json'))
json_handler.setFormatter(StructuredFormatter())

standard_handler = logging.StreamHandler()
standard_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    handlers=[json_handler, standard_handler]
)
logger = logging.getLogger(__name__)

# Error tracking metrics
error_metrics = defaultdict(lambda: {'count': 0, 'last_error': None})

def track_error(error_type: str, document_kind: str = None, details: str = None):
    """Track error occurrences for monitoring"""
    error_metrics[error_type]['count'] += 1
    error_metrics[error_type]['last_error'] = {
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'document_kind': document_kind,
        'details': details
    }

    logger.error(
        f"Error tracked: {error_type}",
        extra={
            'error_type': error_type,
            'document_kind': document_kind,
        }
    )

try:
    config.validate()
    logger.info("Configuration validated successfully")
except Exception as e:
    logger.warning(f"Configuration validation warning: {e}")

app = FastAPI(title="Document Rendering API")

# Configure rate limiting
limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)

GENERATION_FAILED = "Failed to generate document. Please try again."

class ReceiptRequest(BaseModel):
    payment: Dict[str, Any]
    project: Optional[Dict[str, Any]] = None
    settings: Optional[Dict[str, Any]] = None

def check_kind(kind: str) -> None:
    """Only invoices and quotations are posted as raw records"""
    if kind not in DOCUMENT_TYPES or kind == "receipt":
        raise HTTPException(status_code=404, detail=f"Unknown document kind '{kind}'")

def pdf_inline(artifact: Artifact) -> Response:
    return Response(
        content=artifact.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{artifact.filename}"'}
    )

def pdf_download(artifact: Artifact) -> FileResponse:
    return FileResponse(
        path=artifact.path,
        media_type="application/pdf",
        filename=artifact.filename
    )

def generation_failed(e: Exception, kind: str) -> HTTPException:
    if isinstance(e, DocumentGenerationError):
        track_error('document_generation_error', kind, str(e.__cause__ or e))
        return HTTPException(status_code=500, detail=GENERATION_FAILED)
    track_error('invalid_request', kind, str(e))
    return HTTPException(status_code=400, detail=GENERATION_FAILED)

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {}
    }

    # Check the output directory is writable
    try:
        output_dir = config.pdf_output_path
        output_dir.mkdir(parents=True, exist_ok=True)
        probe = output_dir / ".health_check"
        probe.write_bytes(b"")
        probe.unlink()
        health_status["checks"]["output_dir"] = "healthy"
    except OSError as e:
        health_status["checks"]["output_dir"] = f"unhealthy: {str(e)}"
        health_status["status"] = "degraded"
        logger.error(f"Output directory health check failed: {str(e)}")

    return health_status

@app.get("/metrics")
async def get_metrics():
    """Get error metrics and statistics"""
    return {
        "error_metrics": dict(error_metrics),
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

@app.get("/themes")
async def list_themes():
    return {"themes": list(THEMES), "default": config.DEFAULT_TEMPLATE}

@app.post("/documents/{kind}")
@limiter.limit(config.GENERATE_RATE_LIMIT)
async def generate(request: Request, kind: str, record: Dict[str, Any] = Body(...)):
    """Render an invoice or quotation, save it and return the PDF file"""
    check_kind(kind)
    try:
        artifact = generate_document(record, kind)
        logger.info(f"Generated {kind} {artifact.filename}", extra={'document_kind': kind})
        return pdf_download(artifact)
    except (DocumentGenerationError, ValueError) as e:
        raise generation_failed(e, kind)

@app.post("/documents/{kind}/preview")
@limiter.limit(f"{config.RATE_LIMIT_PER_MINUTE}/minute")
async def preview(request: Request, kind: str, record: Dict[str, Any] = Body(...)):
    """Render an invoice or quotation in memory without saving it"""
    check_kind(kind)
    try:
        return pdf_inline(preview_document(record, kind))
    except (DocumentGenerationError, ValueError) as e:
        raise generation_failed(e, kind)

@app.post("/receipts")
@limiter.limit(config.GENERATE_RATE_LIMIT)
async def generate_receipt(request: Request, payload: ReceiptRequest):
    """Render a payment receipt, save it and return the PDF file"""
    try:
        artifact = generate_payment_receipt(payload.payment, payload.project, payload.settings)
        logger.info(f"Generated receipt {artifact.filename}", extra={'document_kind': 'receipt'})
        return pdf_download(artifact)
    except (DocumentGenerationError, ValueError) as e:
        raise generation_failed(e, "receipt")

@app.post("/receipts/preview")
@limiter.limit(f"{config.RATE_LIMIT_PER_MINUTE}/minute")
async def preview_receipt(request: Request, payload: ReceiptRequest):
    try:
        return pdf_inline(preview_payment_receipt(payload.payment, payload.project, payload.settings))
    except (DocumentGenerationError, ValueError) as e:
        raise generation_failed(e, "receipt")

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT)
