"""
Request dependencies shared by the API routers.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, UploadFile

from echomind.config import Settings, settings
from echomind.models.internal_models import AudioSample
from echomind.services.exceptions import InvalidAudio
from echomind.services.pronunciation_service import PronunciationService, get_pronunciation_service
from echomind.utils.audio_utils import AudioValidationError, validate_audio_upload


def get_settings() -> Settings:
    return settings


def get_service() -> PronunciationService:
    return get_pronunciation_service()


async def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """
    User id forwarded by the authenticating gateway.

    Raises:
        HTTPException: 401 when the header is missing
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Missing X-User-ID header")
    return x_user_id.strip()


async def read_audio_upload(
    upload: Optional[UploadFile],
    config: Settings
) -> Optional[AudioSample]:
    """
    Read and validate an uploaded recording.

    Returns:
        AudioSample, or None when no file (or an empty file) was sent

    Raises:
        InvalidAudio: When the file is too large or not audio
    """
    if upload is None:
        return None

    data = await upload.read(config.max_audio_bytes + 1)
    if not data:
        return None

    try:
        mime_type = validate_audio_upload(
            data,
            upload.content_type,
            config.allowed_audio_types,
            config.max_audio_bytes
        )
    except AudioValidationError as e:
        raise InvalidAudio(str(e))

    return AudioSample(data=data, mime_type=mime_type)


CurrentUser = Depends(get_current_user_id)
Service = Depends(get_service)
AppSettings = Depends(get_settings)
