"""
Audio upload utilities for pronunciation practice.

This module provides functions for:
- Normalizing and sniffing audio MIME types
- Validating uploaded recordings against size and type limits
- Choosing upload filenames for the voice-cloning provider
"""

import logging
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_AUDIO_BYTES = 10 * 1024 * 1024

_EXTENSIONS = {
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/webm": "webm",
    "audio/m4a": "m4a",
    "audio/mp4": "m4a",
    "audio/ogg": "ogg",
    "audio/aac": "aac",
}


class AudioValidationError(Exception):
    """Raised when an uploaded recording cannot be accepted."""
    pass


def normalize_mime_type(mime_type: Optional[str]) -> str:
    """
    Strip parameters and casing from a MIME type.

    ``"Audio/WebM; codecs=opus"`` becomes ``"audio/webm"``.
    """
    if not mime_type:
        return ""
    return mime_type.split(";", 1)[0].strip().lower()


def sniff_audio_mime(audio_data: bytes) -> Optional[str]:
    """
    Guess the container format from magic bytes.

    Args:
        audio_data: Raw uploaded bytes

    Returns:
        MIME type string, or None if the header is not recognised
    """
    if len(audio_data) < 12:
        return None

    if audio_data[:4] == b'RIFF' and audio_data[8:12] == b'WAVE':
        return "audio/wav"
    if audio_data[:3] == b'ID3' or (audio_data[0] == 0xFF and (audio_data[1] & 0xE0) == 0xE0):
        return "audio/mpeg"
    if audio_data[:4] == b'OggS':
        return "audio/ogg"
    if audio_data[:4] == b'\x1a\x45\xdf\xa3':
        return "audio/webm"
    if audio_data[4:8] == b'ftyp':
        return "audio/mp4"

    return None


def validate_audio_upload(
    audio_data: bytes,
    mime_type: Optional[str],
    allowed_types: Iterable[str],
    max_bytes: int = DEFAULT_MAX_AUDIO_BYTES
) -> str:
    """
    Validate an uploaded recording and resolve its MIME type.

    Generic types such as ``application/octet-stream`` are resolved by
    sniffing the header.

    Args:
        audio_data: Uploaded bytes
        mime_type: Content type declared by the client
        allowed_types: Accepted audio MIME types
        max_bytes: Maximum accepted size

    Returns:
        The normalized MIME type to forward to providers

    Raises:
        AudioValidationError: If the upload is empty, too large or not audio
    """
    if not audio_data:
        raise AudioValidationError("Audio file is empty")

    if len(audio_data) > max_bytes:
        raise AudioValidationError(
            f"Audio file too large: {len(audio_data)} bytes (maximum {max_bytes} bytes)"
        )

    resolved = normalize_mime_type(mime_type)
    if not resolved.startswith("audio/"):
        sniffed = sniff_audio_mime(audio_data)
        if sniffed is None:
            raise AudioValidationError("Only audio files are allowed")
        logger.debug(f"Resolved upload type {mime_type!r} to {sniffed} from header")
        resolved = sniffed

    allowed = {normalize_mime_type(t) for t in allowed_types}
    if resolved not in allowed:
        raise AudioValidationError(f"Invalid audio file type: {resolved}")

    return resolved


def filename_for_mime(mime_type: Optional[str], stem: str = "voice_sample") -> str:
    """Filename with an extension matching ``mime_type``."""
    extension = _EXTENSIONS.get(normalize_mime_type(mime_type), "audio")
    return f"{stem}.{extension}"
