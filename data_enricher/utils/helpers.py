# data_enricher/utils/helpers.py
import datetime
from typing import Optional
from fastapi import HTTPException, UploadFile
from ..config import MAX_UPLOAD_MB
from ..models import FileMeta


async def read_upload_with_limit(file: Optional[UploadFile], max_mb: int = MAX_UPLOAD_MB) -> bytes:
    """
    Reads the file content and returns bytes; raises HTTP 413 if it exceeds the limit.
    A missing upload reads as empty.
    """
    if file is None:
        return b""
    max_bytes = max_mb * 1024 * 1024
    content = await file.read()
    await file.close()
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File {file.filename} exceeds the limit of {max_mb} MB."
        )
    return content


def ensure_csv_filename(file: Optional[UploadFile]) -> None:
    """Only .csv uploads are accepted"""
    if file is not None and not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail=f"Please send a .csv file (got {file.filename})")


def build_file_meta(file: UploadFile, content: bytes) -> FileMeta:
    size_bytes = len(content)
    return FileMeta(
        name=file.filename or "",
        size_bytes=size_bytes,
        size_mb=round(size_bytes / (1024 * 1024), 2),
        content_type=file.content_type or "text/csv",
    )


def is_truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")


def get_current_utc_time() -> str:
    """Get current UTC time in ISO format"""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None).isoformat() + "Z"
