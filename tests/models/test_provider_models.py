"""Unit tests for models.provider_models module."""

from __future__ import annotations

from models.provider_models import AzureVoice, ElevenLabsVoiceList, GatewayError


def test_elevenlabs_voice_list_keeps_unknown_keys() -> None:
    payload: dict = {
        "voices": [
            {
                "voiceId": "v1",
                "name": "Rachel",
                "labels": {"gender": "female", "language": "en"},
                "category": "premade",
            }
        ],
        "has_more": False,
    }

    listing: ElevenLabsVoiceList = ElevenLabsVoiceList.from_dict(payload)

    assert len(listing.voices) == 1
    assert listing.voices[0].voiceId == "v1"
    assert listing.voices[0].labels == {"gender": "female", "language": "en"}
    assert listing.voices[0].unknown == {"category": "premade"}
    assert listing.unknown == {"has_more": False}


def test_azure_voice_defaults() -> None:
    voice: AzureVoice = AzureVoice.from_dict({"ShortName": "en-US-AriaNeural", "VoiceType": "Neural"})

    assert voice.ShortName == "en-US-AriaNeural"
    assert voice.Locale == "unknown"
    assert voice.Gender == ""
    assert voice.unknown == {"VoiceType": "Neural"}


def test_gateway_error_ignores_extra_keys() -> None:
    error: GatewayError = GatewayError.from_dict({"error": "Rate limited", "details": {"retry": 3}, "trace": "x"})

    assert error.error == "Rate limited"
    assert error.details == {"retry": 3}
