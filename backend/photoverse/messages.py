"""
PhotoVerse Backend — Localized User-Facing Messages
=====================================================

What:  Spanish/English text for the errors a user actually sees.
Why:   The orchestrator localizes its terminal failures (rate limited, no
       provider available); everything else is logged, not shown.
"""

from typing import Dict

DEFAULT_LANGUAGE = "es"

MESSAGES: Dict[str, Dict[str, str]] = {
    "rate_limited": {
        "es": "Por favor espera un momento antes de generar otro poema.",
        "en": "Please wait a moment before generating another poem.",
    },
    "no_service_available": {
        "es": (
            "No se pudo generar el poema con ninguno de los servicios disponibles. "
            "Por favor intenta más tarde."
        ),
        "en": "Could not generate poem with any available service. Please try again later.",
    },
    "generation_failed": {
        "es": "No se pudo generar el poema. Inténtalo de nuevo más tarde.",
        "en": "Could not generate the poem. Please try again later.",
    },
}


def localize(key: str, language: str) -> str:
    """Return the message for `key` in `language`, falling back to Spanish."""
    variants = MESSAGES[key]
    return variants.get(language, variants[DEFAULT_LANGUAGE])
