"""EchoMind pronunciation assessment and voice-correction service."""

__version__ = "1.0.0"
