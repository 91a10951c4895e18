"""
Storage key, content type and URL helpers.

Pure functions: no I/O, no clock or randomness unless passed in, which
keeps them trivial to test.
"""

from datetime import datetime
from typing import Optional
from urllib.parse import quote
from uuid import uuid4


DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "pdf": "application/pdf",
    "txt": "text/plain",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def determine_content_type(provided: Optional[str], file_name: str) -> str:
    """
    Pick the content type for an upload.

    An explicit, non-blank value always wins. Otherwise the file
    extension is looked up case-insensitively; unknown or missing
    extensions fall back to application/octet-stream.
    """
    if provided and provided.strip():
        return provided.strip()

    if "." not in file_name:
        return DEFAULT_CONTENT_TYPE
    ext = file_name.rsplit(".", 1)[-1].lower()
    return CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


def date_prefix(now: datetime) -> str:
    """Default prefix: uploads/yyyy/MM/dd/"""
    return f"uploads/{now:%Y/%m/%d}/"


def build_storage_key(
    path_prefix: Optional[str],
    file_name: str,
    now: datetime,
    token: Optional[str] = None,
) -> str:
    """
    Build the key an upload is stored under.

    Key structure: {prefix}/{token}_{file_name}. The random token keeps
    two uploads of the same file name from colliding.
    """
    if path_prefix is None or not path_prefix.strip():
        path_prefix = date_prefix(now)
    if not path_prefix.endswith("/"):
        path_prefix += "/"
    token = token or str(uuid4())
    return f"{path_prefix}{token}_{file_name}"


def build_file_url(
    key: str,
    bucket: str,
    region: str,
    endpoint_url: Optional[str] = None,
) -> str:
    """
    Public URL for a stored object.

    Custom endpoints get path-style URLs ({endpoint}/{bucket}/{key});
    AWS gets the virtual-hosted form. The key is encoded as a single
    path component, so "/" becomes %2F and spaces become %20.
    """
    encoded_key = quote(key, safe="")
    if endpoint_url:
        return f"{endpoint_url.rstrip('/')}/{bucket}/{encoded_key}"
    return f"https://{bucket}.s3.{region}.amazonaws.com/{encoded_key}"
