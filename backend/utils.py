import logging
import os
import uuid
from pathlib import Path
from typing import Optional
from fastapi import HTTPException, Request, status
from sqlalchemy.orm import Session
from models import AdminLog, Admin
import boto3
from botocore.config import Config

logger = logging.getLogger(__name__)

UPLOAD_DIR = Path(os.environ.get("UPLOAD_DIR", Path(__file__).parent / "uploads"))
UPLOAD_SUBDIRS = ("posters", "brochures")

AWS_REGION = os.environ.get("AWS_REGION")
S3_BUCKET_NAME = os.environ.get("S3_BUCKET_NAME")
S3_ACCESS_KEY = os.environ.get("S3_ACCESS_KEY") or os.environ.get("AWS_ACCESS_KEY_ID")
S3_SECRET_KEY = os.environ.get("S3_SECRET_KEY") or os.environ.get("AWS_SECRET_ACCESS_KEY")

S3_CLIENT = None
if AWS_REGION and S3_BUCKET_NAME and S3_ACCESS_KEY and S3_SECRET_KEY:
    s3_config = Config(signature_version="s3v4", s3={"addressing_style": "virtual"})
    S3_CLIENT = boto3.client(
        "s3",
        region_name=AWS_REGION,
        aws_access_key_id=S3_ACCESS_KEY,
        aws_secret_access_key=S3_SECRET_KEY,
        endpoint_url=f"https://s3.{AWS_REGION}.amazonaws.com",
        config=s3_config,
    )


def ensure_upload_dirs() -> None:
    for name in UPLOAD_SUBDIRS:
        path = UPLOAD_DIR / name
        if not path.exists():
            path.mkdir(parents=True, exist_ok=True)
            logger.info("Created upload directory: %s", path)


def log_admin_action(db: Session, admin: Admin, action: str, request: Optional[Request] = None, meta: Optional[dict] = None):
    db.add(AdminLog(
        admin_id=admin.id if admin else None,
        admin_email=admin.email if admin else "",
        admin_name=admin.name if admin else "",
        action=action,
        method=request.method if request else None,
        path=request.url.path if request else None,
        meta=meta
    ))
    db.commit()


def _build_s3_url(key: str) -> str:
    if not S3_BUCKET_NAME or not AWS_REGION:
        raise RuntimeError("S3 configuration missing")
    return f"https://{S3_BUCKET_NAME}.s3.{AWS_REGION}.amazonaws.com/{key}"


def _unique_name(field_name: str, filename: Optional[str]) -> str:
    extension = Path(filename or "").suffix.lower()
    return f"{field_name}-{uuid.uuid4().hex}{extension}"


def _upload_bytes_to_s3(data: bytes, key: str, content_type: str) -> str:
    try:
        S3_CLIENT.put_object(
            Bucket=S3_BUCKET_NAME,
            Key=key,
            Body=data,
            ContentType=content_type
        )
    except Exception as exc:
        logger.error("S3 upload failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Upload failed") from exc
    return _build_s3_url(key)


def store_upload(data: bytes, folder: str, field_name: str, filename: Optional[str], content_type: str) -> str:
    """Persist an uploaded file and return the URL it is served from."""
    if folder not in UPLOAD_SUBDIRS:
        raise ValueError(f"Unknown upload folder: {folder}")
    unique_name = _unique_name(field_name, filename)

    if S3_CLIENT is not None:
        return _upload_bytes_to_s3(data, f"{folder}/{unique_name}", content_type)

    target_dir = UPLOAD_DIR / folder
    target_dir.mkdir(parents=True, exist_ok=True)
    try:
        (target_dir / unique_name).write_bytes(data)
    except OSError as exc:
        logger.error("Local upload failed: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Upload failed") from exc
    return f"/uploads/{folder}/{unique_name}"
