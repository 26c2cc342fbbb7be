"""
Upload validation for animal photos and payment proofs.
"""

import re

from pawfund.errors import ValidationError

ALLOWED_IMAGE_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
        "image/webp",
    }
)
ALLOWED_DOC_TYPES = frozenset({"application/pdf"})

EXT_BY_TYPE = {
    "image": {".jpg", ".jpeg", ".png", ".gif", ".webp"},
    "proof": {".jpg", ".jpeg", ".png", ".webp", ".pdf"},
}
CONTENT_TYPES_BY_TYPE = {
    "image": ALLOWED_IMAGE_TYPES,
    "proof": ALLOWED_IMAGE_TYPES | ALLOWED_DOC_TYPES,
}

MAX_SIZE_BYTES = 10 * 1024 * 1024

# Reject path separators and traversal; werkzeug may already have stripped them.
_FILENAME_RE = re.compile(r"^[^/\\]{1,200}\.[a-zA-Z0-9]{1,10}$")


def file_extension(filename: str) -> str:
    return "." + filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def validate_upload(file_storage, media_type: str = "image") -> None:
    """Raise ValidationError unless the uploaded file is acceptable for ``media_type``."""
    filename = (getattr(file_storage, "filename", None) or "").strip()
    if not filename:
        raise ValidationError("filename required")
    if ".." in filename or not _FILENAME_RE.match(filename):
        raise ValidationError("invalid filename")

    ext = file_extension(filename)
    if ext not in EXT_BY_TYPE[media_type]:
        raise ValidationError(f"extension {ext} not allowed for {media_type}")

    content_type = (file_storage.mimetype or "").lower()
    if content_type and content_type not in CONTENT_TYPES_BY_TYPE[media_type]:
        raise ValidationError(f"content type '{content_type}' not allowed")

    size = getattr(file_storage, "content_length", None)
    if size and size > MAX_SIZE_BYTES:
        raise ValidationError(
            f"file too large (max {MAX_SIZE_BYTES // (1024 * 1024)}MB)"
        )
