"""Provider gateway payload models.

Dataclass models for the voice listings returned by the ElevenLabs and Azure gateways and
for the JSON error body shared by both. Vendor fields keep their original casing, hence the
noqa: N815 annotations. Keys that are not modelled are collected into ``unknown`` so that no
vendor metadata is lost when converting to VoiceInfo.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from dataclasses_json import CatchAll, DataClassJsonMixin, Undefined, dataclass_json

__all__: list[str] = ["AzureVoice", "ElevenLabsVoice", "ElevenLabsVoiceList", "GatewayError"]


@dataclass_json(undefined=Undefined.INCLUDE)
@dataclass
class ElevenLabsVoice(DataClassJsonMixin):
    """One voice from the ElevenLabs voice listing.

    Attributes:
        voiceId (str): Voice identifier used in generation requests.
        name (str | None): Display name.
        labels (dict[str, str]): Free-form labels; 'language' and 'gender' are used.
        unknown (dict[str, Any]): Every other key of the listing entry.
    """

    voiceId: str  # noqa: N815
    name: str | None = None
    labels: dict[str, str] = field(default_factory=dict)
    unknown: CatchAll = field(default_factory=dict)


@dataclass_json(undefined=Undefined.INCLUDE)
@dataclass
class ElevenLabsVoiceList(DataClassJsonMixin):
    """Envelope of the ElevenLabs voice listing.

    Attributes:
        voices (list[ElevenLabsVoice]): Listed voices.
        unknown (dict[str, Any]): Other envelope keys.
    """

    voices: list[ElevenLabsVoice] = field(default_factory=list)
    unknown: CatchAll = field(default_factory=dict)


@dataclass_json(undefined=Undefined.INCLUDE)
@dataclass
class AzureVoice(DataClassJsonMixin):
    """One voice from the Azure Speech voice listing.

    Attributes:
        ShortName (str): Voice identifier, e.g. 'en-US-AriaNeural'.
        LocalName (str): Name in the voice's own language.
        LocaleName (str): Human readable locale.
        Locale (str): Locale code.
        Gender (str): 'Male', 'Female' or 'Neutral'.
        unknown (dict[str, Any]): Every other key, e.g. StyleList or VoiceType.
    """

    ShortName: str  # noqa: N815
    LocalName: str = ""  # noqa: N815
    LocaleName: str = ""  # noqa: N815
    Locale: str = "unknown"  # noqa: N815
    Gender: str = ""  # noqa: N815
    unknown: CatchAll = field(default_factory=dict)


@dataclass_json
@dataclass
class GatewayError(DataClassJsonMixin):
    """Error body returned by a provider gateway.

    Attributes:
        error (str): Short error description.
        details (Any): Optional diagnostic payload.
    """

    error: str = ""
    details: Any = None
