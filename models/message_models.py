"""User-facing message catalog keyed by error code.

Templates may reference ``{provider}`` (display name of the provider) and ``{message}``
(the underlying error text). English is the fallback for unknown languages and codes.
"""

from __future__ import annotations

from typing import Final

__all__: list[str] = [
    "DEFAULT_LANGUAGE",
    "ERROR_MESSAGES",
    "PROVIDER_DISPLAY_NAMES",
    "format_error_message",
    "provider_display_name",
]

DEFAULT_LANGUAGE: Final[str] = "en"

PROVIDER_DISPLAY_NAMES: Final[dict[str, str]] = {
    "elevenlabs": "ElevenLabs",
    "azure": "Azure Speech",
    "mock": "Mock TTS",
}

ERROR_MESSAGES: Final[dict[str, dict[str, str]]] = {
    "en": {
        "NETWORK_ERROR": (
            "No internet connection available for {provider}. Check your network connection and try again."
        ),
        "API_AUTH_ERROR": "Invalid API key for {provider}. Check your configuration.",
        "API_ERROR": "{provider} API error: {message}",
        "PLAYBACK_FAILED": "Unable to generate audio with {provider}. Try again or select another TTS provider.",
        "VOICE_LOAD_ERROR": "Failed to load voices from {provider}: {message}",
        "VOICE_UNSUPPORTED": "{provider} does not support voice selection.",
        "INVALID_INPUT": "{message}",
        "TEXT_TOO_LONG": "{message}",
        "CONFIGURATION_ERROR": "{message}",
        "NO_VOICE_SELECTED": "Select a voice before starting to read.",
        "TTS_DISABLED": "Text-to-speech is switched off.",
    },
    "nl": {
        "NETWORK_ERROR": "Geen internetverbinding beschikbaar. Controleer uw netwerkverbinding en probeer opnieuw.",
        "API_AUTH_ERROR": "Ongeldige API-sleutel voor {provider}. Controleer uw configuratie.",
        "API_ERROR": "{provider} API fout: {message}",
        "PLAYBACK_FAILED": (
            "Kan geen audio genereren met {provider}. Probeer opnieuw of selecteer een andere TTS-provider."
        ),
        "VOICE_LOAD_ERROR": "Kan stemmen van {provider} niet laden: {message}",
        "VOICE_UNSUPPORTED": "{provider} ondersteunt geen stemselectie.",
        "NO_VOICE_SELECTED": "Selecteer een stem voordat u begint met voorlezen.",
        "TTS_DISABLED": "Voorlezen is uitgeschakeld.",
    },
}


def provider_display_name(provider: str) -> str:
    return PROVIDER_DISPLAY_NAMES.get(provider, provider or "TTS")


def format_error_message(code: str, *, provider: str = "", message: str = "", language: str = DEFAULT_LANGUAGE) -> str:
    """Render the catalog message for an error code.

    Args:
        code (str): Taxonomy code.
        provider (str): Registry name of the provider involved.
        message (str): Underlying error text, used by templates that embed it.
        language (str): Catalog language; falls back to English.

    Returns:
        str: The rendered message, or ``message`` itself for codes without a template.
    """
    catalog: dict[str, str] = ERROR_MESSAGES.get(language, ERROR_MESSAGES[DEFAULT_LANGUAGE])
    template: str | None = catalog.get(code) or ERROR_MESSAGES[DEFAULT_LANGUAGE].get(code)
    if template is None:
        return message
    return template.format(provider=provider_display_name(provider), message=message)
