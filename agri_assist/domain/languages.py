from __future__ import annotations

from typing import Optional


# names accepted from the clients -> ISO-639-1 codes for speech-to-text hints
LANGUAGE_CODES = {
    "english": "en",
    "hindi": "hi",
    "kannada": "kn",
    "tamil": "ta",
    "telugu": "te",
    "malayalam": "ml",
    "marathi": "mr",
    "bengali": "bn",
    "gujarati": "gu",
    "punjabi": "pa",
    "odia": "or",
    "urdu": "ur",
}


def language_code(language: Optional[str]) -> Optional[str]:
    """Return the ISO code for a language name or code; None when unknown."""
    if not language:
        return None
    value = language.strip().lower()
    if value in LANGUAGE_CODES.values():
        return value
    return LANGUAGE_CODES.get(value)
