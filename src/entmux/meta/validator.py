"""String validators compiled from ``validate`` tags.

Two tag formats select a pattern:

- ``re/<pattern>/`` uses ``<pattern>`` as a raw regular expression,
  searched anywhere in the value unless it carries its own anchors.
- ``rep/<preset>/`` selects a named preset; only ``email`` is defined.

Anything else accepts every string. Unknown presets fail at compile time.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Pattern

from entmux.errors import FieldValidationError, InvalidDataTypeError, UnknownPresetError


_EMAIL_PATTERN = (
    r"^(([^<>()\[\]\\.,;:\s@\"]+(\.[^<>()\[\]\\.,;:\s@\"]+)*)|(\".+\"))@"
    r"((\[[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\])|(([a-zA-Z\-0-9]+\.)+[a-zA-Z]{2,}))$"
)

PRESET_NONE: Pattern[str] = re.compile(r".*", re.DOTALL)
PRESET_EMAIL: Pattern[str] = re.compile(_EMAIL_PATTERN)

PRESETS: dict[str, Pattern[str]] = {
    "email": PRESET_EMAIL,
}

_RAW_TAG = re.compile(r"re/(.*)/")
_PRESET_TAG = re.compile(r"rep/(.*)/")


@dataclass(frozen=True)
class StringValidator:
    """Validate string inputs against a compiled pattern."""

    pattern: Pattern[str]
    source: str = ""

    def validate(self, value: object, *, field: str = "") -> None:
        if not isinstance(value, str):
            raise InvalidDataTypeError(
                f"Unexpected input type for field {field}: expected string.", field=field
            )
        if self.pattern.search(value) is None:
            raise FieldValidationError(
                f"Input validation failed for field {field}.", field=field
            )


def string_validator(tag: str) -> StringValidator:
    """Compile a ``validate`` tag value into a StringValidator."""

    text = tag or ""
    preset = _PRESET_TAG.search(text)
    if preset is not None:
        name = preset.group(1)
        if name not in PRESETS:
            raise UnknownPresetError(f"Unknown validation preset '{name}'.")
        return StringValidator(PRESETS[name], source=text)
    raw = _RAW_TAG.search(text)
    if raw is not None:
        try:
            return StringValidator(re.compile(raw.group(1)), source=text)
        except re.error as exc:
            raise UnknownPresetError(f"Invalid validation pattern in '{text}': {exc}") from exc
    return StringValidator(PRESET_NONE, source=text)
