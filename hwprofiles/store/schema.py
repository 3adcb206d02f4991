"""Pydantic models for the settings and profile documents.

These models validate data read from the configuration files and from
import sources, and render it back for writing. On disk the keys are
camelCase; in Python they are snake_case.

An optional field left at ``None`` means "not specified by this profile".
It is omitted on write and stays ``None`` on read, so a round trip never
turns an absent value into a default.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_PROFILE_ID = "__default_custom_profile__"
DEFAULT_PROFILE_NAME = "Default"
DEFAULT_STATES = ("power_ac", "power_bat")

PROFILE_NAME_MAX_LENGTH = 50


class _DocumentModel(BaseModel):
    """Base configuration shared by all document models."""

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class DisplaySchema(_DocumentModel):
    """Display settings of a profile.

    Attributes:
        brightness: Screen brightness in percent.
        use_brightness: Whether the profile applies the brightness at all.
    """

    brightness: int | None = Field(default=None, ge=0, le=100)
    use_brightness: bool | None = Field(default=None)


class CpuSchema(_DocumentModel):
    """CPU settings of a profile.

    Attributes:
        online_cores: Number of logical cores kept online.
        governor: Scaling governor name.
        scaling_min_frequency: Lower frequency bound in kHz.
        scaling_max_frequency: Upper frequency bound in kHz.
        no_turbo: Disable turbo/boost.
    """

    online_cores: int | None = Field(default=None, ge=1)
    governor: str | None = Field(default=None, min_length=1)
    scaling_min_frequency: int | None = Field(default=None, ge=0)
    scaling_max_frequency: int | None = Field(default=None, ge=0)
    no_turbo: bool | None = Field(default=None)

    @field_validator("scaling_max_frequency")
    @classmethod
    def validate_frequency_range(
        cls, v: int | None, info: ValidationInfo
    ) -> int | None:
        """Validate the upper bound is not below the lower bound."""
        low = info.data.get("scaling_min_frequency")
        if v is not None and low is not None and v < low:
            raise ValueError(
                f"scalingMaxFrequency ({v}) must be >= scalingMinFrequency ({low})"
            )
        return v


class FanSchema(_DocumentModel):
    """Fan control settings of a profile."""

    use_control: bool | None = Field(default=None)
    fan_profile: str | None = Field(default=None, min_length=1)
    offset_fanspeed: int | None = Field(default=None, ge=-30, le=30)


class WebcamSchema(_DocumentModel):
    """Webcam switch settings of a profile."""

    status: bool | None = Field(default=None)
    use_status: bool | None = Field(default=None)


class ProfileSchema(_DocumentModel):
    """A named set of hardware-tunable values.

    Attributes:
        id: Stable identifier, unique within a profile collection.
        name: Human-readable name; not required to be unique.
        description: Optional longer description.
        keyboard_brightness: Keyboard backlight brightness in percent.
        screen_brightness: Screen brightness in percent.
        display: Display settings.
        cpu: CPU settings.
        fan: Fan control settings.
        webcam: Webcam switch settings.
    """

    id: Annotated[str, Field(description="Stable identifier", min_length=1)]
    name: Annotated[
        str,
        Field(
            description="Human-readable name",
            min_length=1,
            max_length=PROFILE_NAME_MAX_LENGTH,
        ),
    ]
    description: str | None = Field(default=None, description="Longer description")

    keyboard_brightness: int | None = Field(default=None, ge=0, le=100)
    screen_brightness: int | None = Field(default=None, ge=0, le=100)

    display: DisplaySchema | None = Field(default=None)
    cpu: CpuSchema | None = Field(default=None)
    fan: FanSchema | None = Field(default=None)
    webcam: WebcamSchema | None = Field(default=None)

    @field_validator("id", "name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Validate identifier and name are not only whitespace."""
        if not v.strip():
            raise ValueError("must not be blank")
        return v

    def to_document(self) -> dict:
        """Return the on-disk representation (camelCase, no unset fields)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class SettingsSchema(_DocumentModel):
    """Global settings document.

    Attributes:
        active_profile_name: Identifier of the profile active by default.
        state_map: Device/power state identifier to profile identifier.
            Values are not checked against the profile collection.
    """

    active_profile_name: str = Field(default=DEFAULT_PROFILE_ID)
    state_map: dict[str, str] = Field(
        default_factory=lambda: {state: DEFAULT_PROFILE_ID for state in DEFAULT_STATES}
    )

    def to_document(self) -> dict:
        """Return the on-disk representation (camelCase)."""
        return self.model_dump(by_alias=True, exclude_none=True)


def default_profile() -> ProfileSchema:
    """Return the built-in template used for newly created profiles."""
    return ProfileSchema(
        id=DEFAULT_PROFILE_ID,
        name=DEFAULT_PROFILE_NAME,
        description="Edit profile to change behaviour",
        display=DisplaySchema(brightness=100, use_brightness=False),
        cpu=CpuSchema(governor="powersave", no_turbo=False),
        fan=FanSchema(use_control=True, fan_profile="Balanced", offset_fanspeed=0),
        webcam=WebcamSchema(status=True, use_status=False),
    )


__all__ = [
    "DEFAULT_PROFILE_ID",
    "DEFAULT_PROFILE_NAME",
    "DEFAULT_STATES",
    "PROFILE_NAME_MAX_LENGTH",
    "CpuSchema",
    "DisplaySchema",
    "FanSchema",
    "ProfileSchema",
    "SettingsSchema",
    "WebcamSchema",
    "default_profile",
]
