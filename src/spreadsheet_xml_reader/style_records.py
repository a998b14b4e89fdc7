"""Immutable style records resolved from the document's style table.

Every sub-record is optional on ``Style``: ``None`` means the aspect is left
unstyled, which keeps "unset" distinct from any default value. Records are
frozen so that a style seeded from the default can be updated with
``dataclasses.replace`` without touching the default itself.
"""

from __future__ import annotations

from dataclasses import dataclass, fields

from openpyxl.styles.fonts import Font as _OpenpyxlFont

HORIZONTAL_ALIGNMENTS: tuple[str, ...] = (
    "general",
    "left",
    "right",
    "center",
    "centerContinuous",
    "justify",
)
VERTICAL_ALIGNMENTS: tuple[str, ...] = ("bottom", "top", "center", "justify")
UNDERLINE_STYLES: tuple[str, ...] = (
    "none",
    _OpenpyxlFont.UNDERLINE_DOUBLE,
    _OpenpyxlFont.UNDERLINE_DOUBLE_ACCOUNTING,
    _OpenpyxlFont.UNDERLINE_SINGLE,
    _OpenpyxlFont.UNDERLINE_SINGLE_ACCOUNTING,
)
BORDER_POSITIONS: tuple[str, ...] = ("left", "right", "top", "bottom")
BORDER_MEDIUM = "medium"


@dataclass(frozen=True)
class Alignment:
    horizontal: str | None = None
    vertical: str | None = None
    wrap: bool | None = None


@dataclass(frozen=True)
class Border:
    style: str | None = None
    color: str | None = None


@dataclass(frozen=True)
class Borders:
    left: Border | None = None
    right: Border | None = None
    top: Border | None = None
    bottom: Border | None = None


@dataclass(frozen=True)
class Font:
    name: str | None = None
    size: float | None = None
    color: str | None = None
    bold: bool | None = None
    italic: bool | None = None
    underline: str | None = None


@dataclass(frozen=True)
class Fill:
    color: str | None = None


@dataclass(frozen=True)
class NumberFormat:
    code: str


@dataclass(frozen=True)
class Style:
    """A resolved style: one optional record per formatting category."""

    alignment: Alignment | None = None
    borders: Borders | None = None
    font: Font | None = None
    fill: Fill | None = None
    number_format: NumberFormat | None = None

    def is_empty(self) -> bool:
        """Return True when no category carries a setting."""
        return all(getattr(self, f.name) is None for f in fields(self))


def match_fixed_value(value: str, allowed: tuple[str, ...]) -> str | None:
    """Match ``value`` case-insensitively against ``allowed``.

    Returns the canonical spelling from ``allowed``, or None when the value is
    not recognized.
    """
    lowered = value.lower()
    for candidate in allowed:
        if candidate.lower() == lowered:
            return candidate
    return None
