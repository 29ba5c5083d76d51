"""Constants shared by the test modules."""

from datetime import date

TODAY = date(2024, 3, 15)
YESTERDAY = date(2024, 3, 14)

WAV_BYTES = b"RIFF\x24\x00\x00\x00WAVEfmt " + b"\x00" * 64
