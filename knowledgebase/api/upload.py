from fastapi import APIRouter, Depends, File, UploadFile

from knowledgebase.core.config import Settings
from knowledgebase.core.deps import get_rate_limiter, get_settings
from knowledgebase.core.rate_limit import RateLimiter
from knowledgebase.core.security import CurrentUser, get_current_user
from knowledgebase.schemas.upload_schema import PdfUploadResponse
from knowledgebase.utils.logger import get_logger
from knowledgebase.utils.pdf_loader import ingest_pdf

logger = get_logger("knowledgebase.api.upload")

router = APIRouter(tags=["upload"])


# ------ Upload PDF -----
@router.post("/upload-pdf", response_model=PdfUploadResponse)
async def upload_pdf(
    file: UploadFile = File(...),
    limiter: RateLimiter = Depends(get_rate_limiter),
    settings: Settings = Depends(get_settings),
    current_user: CurrentUser = Depends(get_current_user),
):
    # 20 uploads per hour per user
    limiter.check(current_user.id, "upload", limit=20, window=3600)

    logger.info("PDF upload started", extra={
        "user_id": current_user.id,
        "file_name": file.filename,
        "content_type": file.content_type,
    })

    # One byte past the limit is enough to reject an oversized file
    data = await file.read(settings.max_upload_bytes + 1)
    upload = ingest_pdf(file.filename, file.content_type, data, max_bytes=settings.max_upload_bytes)

    return PdfUploadResponse(
        text=upload.text,
        base64_data=upload.base64_data,
        file_name=upload.file_name,
        file_size=upload.file_size,
        mime_type=upload.mime_type,
        page_count=upload.page_count,
    )
