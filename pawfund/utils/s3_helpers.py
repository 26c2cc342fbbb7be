import os
import re
import logging
import uuid

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from pawfund.errors import UpstreamError
from pawfund.utils.media_validators import validate_upload, file_extension

logger = logging.getLogger(__name__)

S3_ENDPOINT = os.getenv("S3_ENDPOINT", "http://127.0.0.1:9000")
S3_REGION = os.getenv("S3_REGION", "us-east-1")
S3_ACCESS_KEY = os.getenv("S3_ACCESS_KEY", "minioadmin")
S3_SECRET_KEY = os.getenv("S3_SECRET_KEY", "minioadmin")
S3_BUCKET = os.getenv("S3_BUCKET", "pawfund-media")
USE_PATH = os.getenv("S3_USE_PATH_STYLE", "true").lower() == "true"


def _client():
    return boto3.client(
        "s3",
        endpoint_url=S3_ENDPOINT,
        region_name=S3_REGION,
        aws_access_key_id=S3_ACCESS_KEY,
        aws_secret_access_key=S3_SECRET_KEY,
        config=Config(s3={"addressing_style": "path" if USE_PATH else "virtual"}),
    )


_slug_re = re.compile(r"[^a-z0-9]+")


def _safe_name(name: str) -> str:
    base = name.strip().lower()
    base = _slug_re.sub("-", base).strip("-") or "file"
    return base[:60]


def make_key(prefix: str, filename: str) -> str:
    ext = file_extension(filename)
    stem = filename[: -len(ext)] if ext else filename
    return f"{prefix}/{uuid.uuid4().hex}-{_safe_name(stem)}{ext}"


def public_url(key: str) -> str:
    if USE_PATH:
        return f"{S3_ENDPOINT.rstrip('/')}/{S3_BUCKET}/{key}"
    from urllib.parse import urlparse

    ep = urlparse(S3_ENDPOINT)
    return f"{ep.scheme}://{S3_BUCKET}.{ep.netloc}/{key}"


def store_upload(file_storage, prefix: str, media_type: str = "image") -> str:
    """Validate and upload a werkzeug FileStorage; return its public URL."""
    validate_upload(file_storage, media_type)
    key = make_key(prefix, file_storage.filename)
    try:
        _client().upload_fileobj(
            file_storage.stream,
            S3_BUCKET,
            key,
            ExtraArgs={"ContentType": file_storage.mimetype or "application/octet-stream"},
        )
    except (BotoCoreError, ClientError) as e:
        raise UpstreamError(f"upload failed: {e}")
    return public_url(key)


def delete_object(url: str) -> None:
    prefix = public_url("")
    if not url.startswith(prefix):
        return
    _client().delete_object(Bucket=S3_BUCKET, Key=url[len(prefix):])


def store_uploads(files, prefix: str, media_type: str = "image") -> list:
    return [store_upload(f, prefix, media_type) for f in files if f and f.filename]


def discard_uploads(urls) -> None:
    """Best-effort removal of objects orphaned by a failed request."""
    for url in urls or []:
        try:
            delete_object(url)
        except (BotoCoreError, ClientError) as e:
            logger.warning("could not delete orphaned upload %s: %s", url, e)
