# Utilities module

from .audio_utils import (
    AudioValidationError,
    filename_for_mime,
    normalize_mime_type,
    sniff_audio_mime,
    validate_audio_upload,
)

__all__ = [
    "AudioValidationError",
    "filename_for_mime",
    "normalize_mime_type",
    "sniff_audio_mime",
    "validate_audio_upload",
]
