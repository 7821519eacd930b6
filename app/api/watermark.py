import json
from typing import Any, Optional

from fastapi import APIRouter, File, Form, HTTPException, Response, UploadFile, status

from app.core.errors import ImageProcessorError
from app.core.logging import configure_logging
from app.models import ProcessingRequest, parse_watermark_description
from app.services.watermark_service import WatermarkService
from app.utils.file_utils import normalize_mime_type, read_upload

router = APIRouter(prefix="/api/watermark", tags=["Image Watermark"])

logger = configure_logging()
watermark_service = WatermarkService()


def _load_description_payload(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.info("وصف العلامة المائية ليس JSON صالحًا.")
        return None


def _error_detail(error: ImageProcessorError, message: str) -> dict:
    return {
        "message": message,
        "mask": error.mask,
        "errors": error.names(),
    }


@router.post("", summary="تطبيق علامة مائية نصية أو صورية على صورة مرفوعة")
async def apply_watermark(
    file: UploadFile = File(..., description="الصورة الأساسية (PNG أو JPEG أو SVG)."),
    watermark: str = Form(..., description="وصف العلامة المائية بصيغة JSON مع الحقل kind."),
    watermark_file: Optional[UploadFile] = File(None, description="صورة العلامة المائية عند kind=picture."),
) -> Response:
    payload = _load_description_payload(watermark)

    if isinstance(payload, dict) and payload.get("kind") == "picture":
        payload = dict(payload)
        payload["buffer"] = await read_upload(watermark_file)
        if "mimeType" not in payload and watermark_file is not None:
            payload["mimeType"] = normalize_mime_type(watermark_file.content_type)

    mime_type = normalize_mime_type(file.content_type)
    request = ProcessingRequest(
        buffer=await read_upload(file),
        mime_type=mime_type,
        watermark=parse_watermark_description(payload),
    )

    try:
        output = await watermark_service.process_image(request)
    except ImageProcessorError as error:
        if error.is_decode_failure:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=_error_detail(error, "تعذر قراءة الصورة المرفوعة."),
            ) from error
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=_error_detail(error, "معاملات العلامة المائية غير صالحة."),
        ) from error

    logger.info("تم تطبيق العلامة المائية على الملف %s", file.filename)
    return Response(content=output, media_type=mime_type)
