# relaychat/routers/convert.py
from fastapi import APIRouter, Depends

from relaychat.core.conversion import ConversionCache
from relaychat.core.dependencies import get_conversion_cache
from relaychat.core.errors import ValidationError
from relaychat.schemas.files import ConvertRequest, ConvertResponse, ErrorResponse

router = APIRouter()


@router.post(
    "/convert-to-drive",
    response_model=ConvertResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def convert_to_drive(
    payload: ConvertRequest,
    cache: ConversionCache = Depends(get_conversion_cache),
):
    """
    Mirror a local upload to Google Drive and return its public link.
    A path that was converted before returns the cached link.
    """
    if not payload.file_path or not payload.file_name:
        raise ValidationError("File path and name are required")

    cached = payload.file_path in cache
    drive_link = await cache.convert(payload.file_path, payload.file_name)
    message = (
        "File already converted to Google Drive link"
        if cached
        else "File converted to Google Drive link successfully"
    )
    return ConvertResponse(message=message, drive_link=drive_link)
