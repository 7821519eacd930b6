from typing import Any, Optional

from fastapi import UploadFile


def normalize_mime_type(content_type: Optional[str]) -> Optional[str]:
    """Lower-case a content type and drop parameters such as ``; charset=utf-8``."""
    if content_type is None:
        return None
    return content_type.split(";", 1)[0].strip().lower()


async def read_upload(upload: Optional[UploadFile]) -> Any:
    """Read an uploaded file into bytes; a missing upload stays None."""
    if upload is None:
        return None
    await upload.seek(0)
    return await upload.read()
