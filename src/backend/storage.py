# object storage: validated uploads, signed CV links and the job application flow
import inspect
import mimetypes
import os.path
import secrets
import time
from dataclasses import dataclass
from typing import FrozenSet, Optional

from backend import crud, models
from backend.client import BackendClient
from backend.errors import ValidationError
from utils.logger import get_logger
from utils.pure import slugify

_logger = get_logger(__name__)

MB = 1024 * 1024

CV_BUCKET = "cvs"
PRODUCT_IMAGE_BUCKET = "product-images"
SIGNED_URL_TTL = 60  # seconds

_EXTRA_TYPES = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
}


@dataclass(frozen=True)
class UploadRules:
    max_size: int
    allowed_types: FrozenSet[str]
    size_message: str
    type_message: str


IMAGE_RULES = UploadRules(
    max_size=5 * MB,
    allowed_types=frozenset({"image/jpeg", "image/png", "image/webp"}),
    size_message="File size must be less than 5MB",
    type_message="Invalid file type. Please upload a JPEG, PNG, or WebP image.",
)

DOCUMENT_RULES = UploadRules(
    max_size=10 * MB,
    allowed_types=frozenset(
        {
            "application/pdf",
            "application/msword",
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        }
    ),
    size_message="File size must be less than 10MB",
    type_message="Invalid file type. Please upload a PDF, DOC, or DOCX file.",
)


@dataclass(frozen=True)
class FileUpload:
    name: str
    content: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        _, ext = os.path.splitext(self.name)
        return ext.lstrip(".").lower()

    @classmethod
    def from_path(cls, path: str) -> "FileUpload":
        path = os.path.expanduser(path)
        ext = os.path.splitext(path)[1].lower()
        content_type = _EXTRA_TYPES.get(ext) or mimetypes.guess_type(path)[0]
        with open(path, "rb") as f:
            content = f.read()
        return cls(
            name=os.path.basename(path),
            content=content,
            content_type=content_type or "application/octet-stream",
        )


def validate_upload(upload: FileUpload, rules: UploadRules, field: str = "file") -> None:
    """Raise ValidationError when the file breaks the size or type rules."""
    if upload.size > rules.max_size:
        raise ValidationError(field, rules.size_message)
    if upload.content_type not in rules.allowed_types:
        raise ValidationError(field, rules.type_message)


def unique_file_name(original_name: str, prefix: str = "") -> str:
    ext = os.path.splitext(original_name)[1].lstrip(".").lower()
    stem = f"{int(time.time() * 1000)}-{secrets.token_hex(4)}"
    if prefix:
        stem = f"{prefix}-{stem}"
    return f"{stem}.{ext}" if ext else stem


async def _upload(
    backend: BackendClient, bucket: str, path: str, upload: FileUpload
) -> str:
    await backend.execute(
        lambda: backend.bucket(bucket).upload(
            path,
            upload.content,
            file_options={
                "content-type": upload.content_type,
                "cache-control": "3600",
                "upsert": "false",
            },
        )
    )
    _logger.info(f"Uploaded {upload.name} to {bucket}/{path}")
    return path


async def upload_product_image(backend: BackendClient, upload: FileUpload) -> str:
    validate_upload(upload, IMAGE_RULES, field="image")
    return await _upload(backend, PRODUCT_IMAGE_BUCKET, unique_file_name(upload.name), upload)


async def upload_cv(backend: BackendClient, upload: FileUpload, job_title: str) -> str:
    validate_upload(upload, DOCUMENT_RULES, field="cv")
    path = unique_file_name(upload.name, prefix=slugify(job_title))
    return await _upload(backend, CV_BUCKET, path, upload)


async def delete_file(backend: BackendClient, bucket: str, path: str) -> None:
    await backend.execute(lambda: backend.bucket(bucket).remove([path]))


async def public_image_url(backend: BackendClient, path: str) -> str:
    url = backend.bucket(PRODUCT_IMAGE_BUCKET).get_public_url(path)
    if inspect.isawaitable(url):
        url = await url
    return url


async def cv_download_url(backend: BackendClient, path: str) -> str:
    """Signed link to a private CV, valid for SIGNED_URL_TTL seconds."""
    result = await backend.execute(
        lambda: backend.bucket(CV_BUCKET).create_signed_url(path, SIGNED_URL_TTL)
    )
    return result.get("signedURL") or result.get("signedUrl")


async def submit_job_application(
    backend: BackendClient,
    job_title: str,
    email: str,
    phone: str,
    cv: FileUpload,
    cover_letter: Optional[str] = None,
) -> models.JobApplication:
    """
    Upload the CV, then record the application as pending.

    If the record cannot be written, the uploaded CV is deleted again before
    the error is re-raised, so storage never keeps a CV without an application.
    """
    cv_path = await upload_cv(backend, cv, job_title)
    record = {
        "job_title": job_title,
        "job_id": slugify(job_title),
        "email": email,
        "phone": phone,
        "cv_path": cv_path,
        "cover_letter": cover_letter or None,
        "status": "pending",
    }
    try:
        return await crud.insert_job_application(backend, record)
    except Exception:
        _logger.error(f"Application insert failed, removing {CV_BUCKET}/{cv_path}")
        try:
            await delete_file(backend, CV_BUCKET, cv_path)
        except Exception as cleanup_exc:
            _logger.error(f"Could not remove orphaned CV {cv_path}: {cleanup_exc!r}")
        raise
