import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from starlette.datastructures import UploadFile as StarletteUploadFile

from app.auth import require_admin_role
from app.errors import BadRequestError, PayloadTooLargeError, UnsupportedMediaTypeError
from app.responses import json_success
from app.schemas import UploadPurpose, UploadResult
from app.storage import UploadStorage, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("", dependencies=[Depends(require_admin_role)])
async def upload_file(
    file: UploadFile | str | None = File(None),
    purpose: str | None = Form(None),
    storage: UploadStorage = Depends(get_storage),
):
    """
    Stores one media file for later use in a Pokémon's media list.

    Error 400: no file, or purpose is not POKEMON_IMAGE / POKEMON_AUDIO
    Error 413: file larger than UPLOAD_MAX_FILE_SIZE_MB
    Error 415: MIME type not allowed for the purpose

    Nothing is written unless every check passes.
    """
    # A plain form field under "file" counts as no file
    if not isinstance(file, StarletteUploadFile):
        raise BadRequestError("No file was sent")

    try:
        upload_purpose = UploadPurpose(purpose)
    except ValueError:
        raise BadRequestError("Invalid upload purpose")

    max_mb = storage.max_bytes // (1024 * 1024)
    if file.size is not None and file.size > storage.max_bytes:
        logger.warning("Rejected upload %s: %d bytes", file.filename, file.size)
        raise PayloadTooLargeError(f"File exceeds the {max_mb}MB limit")

    data = await file.read()
    if len(data) > storage.max_bytes:
        logger.warning("Rejected upload %s: %d bytes", file.filename, len(data))
        raise PayloadTooLargeError(f"File exceeds the {max_mb}MB limit")

    if not storage.is_allowed(upload_purpose, file.content_type):
        logger.warning("Rejected upload %s: %s for %s", file.filename, file.content_type, upload_purpose.value)
        raise UnsupportedMediaTypeError("File type is not supported for this purpose")

    filename = await storage.save(data, file.filename, file.content_type)

    return json_success(
        UploadResult(
            url=storage.public_url(filename),
            original_name=file.filename or filename,
            mime_type=file.content_type,
            size=len(data),
        )
    )
