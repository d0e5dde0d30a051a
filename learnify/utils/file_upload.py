"""
File Upload Utility - validate uploaded submission files.

Supported content types:
- Images: jpeg, png, gif, webp
- Documents: pdf, plain text, doc, docx

Max file size: MAX_UPLOAD_MB (default 10MB) per file
"""

from typing import List, NamedTuple, Optional

from fastapi import UploadFile

from learnify.core.config import get_settings
from learnify.core.errors import APIError

ALLOWED_MIME_TYPES = {
    'image/jpeg',
    'image/png',
    'image/gif',
    'image/webp',
    'application/pdf',
    'text/plain',
    'application/msword',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
}


class UploadedFile(NamedTuple):
    content: bytes
    filename: str
    content_type: str

    @property
    def size(self) -> int:
        return len(self.content)


def max_upload_bytes() -> int:
    return get_settings().max_upload_mb * 1024 * 1024


async def read_upload(file: UploadFile) -> UploadedFile:
    """
    Read and validate one uploaded file.

    Raises:
        APIError 400 on a missing name or disallowed type, 413 when too large
    """
    if not file.filename:
        raise APIError(400, "INVALID_FILE", "No filename provided")

    content_type = (file.content_type or '').split(';')[0].strip().lower()
    if content_type not in ALLOWED_MIME_TYPES:
        raise APIError(
            400,
            "INVALID_FILE_TYPE",
            "Invalid file type. Only images and documents are allowed.",
        )

    content = await file.read()
    if len(content) > max_upload_bytes():
        raise APIError(
            413,
            "FILE_TOO_LARGE",
            f"File too large. Maximum size: {get_settings().max_upload_mb}MB",
        )

    return UploadedFile(content=content, filename=file.filename, content_type=content_type)


async def read_uploads(files: List[Optional[UploadFile]]) -> List[UploadedFile]:
    """Validate every provided file; entries that are None or empty form fields are skipped."""
    uploads = []
    for file in files:
        if file is None or not getattr(file, "filename", None):
            continue
        uploads.append(await read_upload(file))
    return uploads


def collect_form_files(form) -> List[UploadFile]:
    """
    Files from a multipart form sent as `file` and/or `file_0`..`file_N`,
    in that order.
    """
    files = []
    single = form.get("file")
    if single is not None and not isinstance(single, str):
        files.append(single)
    numbered = sorted(
        (key for key in form.keys() if key.startswith("file_") and key[5:].isdigit()),
        key=lambda key: int(key[5:]),
    )
    for key in numbered:
        value = form.get(key)
        if value is not None and not isinstance(value, str):
            files.append(value)
    return files
