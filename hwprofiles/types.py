"""Shared type definitions for hwprofiles.

This module contains enums and dataclasses shared across subpackages
to avoid circular imports.
"""

from dataclasses import dataclass
from enum import Enum


class ConflictAction(str, Enum):
    """Resolution chosen for an incoming profile whose id already exists."""

    KEEP_NEW = "keepNew"
    KEEP_OLD = "keepOld"
    KEEP_BOTH = "keepBoth"
    NEW_NAME = "newName"


class ProfileFilter(str, Enum):
    """Selection of profiles for listing."""

    ALL = "all"
    DEFAULT = "default"
    CUSTOM = "custom"
    USED = "used"


@dataclass(frozen=True)
class ConflictDecision:
    """Response of a conflict decision source.

    Attributes:
        action: The chosen resolution.
        new_name: Replacement name, present only for ``NEW_NAME``.
    """

    action: ConflictAction
    new_name: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "action", ConflictAction(self.action))
        if self.action is ConflictAction.NEW_NAME:
            if not self.new_name or not self.new_name.strip():
                raise ValueError("newName decision requires a non-empty new_name")
        elif self.new_name is not None:
            raise ValueError(
                f"new_name is only valid with {ConflictAction.NEW_NAME.value}"
            )


__all__ = [
    "ConflictAction",
    "ConflictDecision",
    "ProfileFilter",
]
