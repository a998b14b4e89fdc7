"""Style table construction with inheritance from the default style.

The table maps each ``ss:ID`` of the document's ``Styles`` section to a
resolved ``Style``. Entries are processed in document order and every entry
starts as a copy of the ``Default`` style as resolved at that point, so a
style defined before ``Default`` inherits nothing and a later redefinition of
``Default`` does not reach styles already resolved.
"""

import xml.etree.ElementTree as ET
from collections.abc import Callable
from dataclasses import replace
from enum import Enum
from typing import Any

from spreadsheet_xml_reader.services.xml_tree import (
    NAMESPACES,
    local_name,
    ss_attr,
)
from spreadsheet_xml_reader.style_records import (
    BORDER_MEDIUM,
    BORDER_POSITIONS,
    HORIZONTAL_ALIGNMENTS,
    UNDERLINE_STYLES,
    VERTICAL_ALIGNMENTS,
    Alignment,
    Border,
    Borders,
    Fill,
    Font,
    NumberFormat,
    Style,
    match_fixed_value,
)
from spreadsheet_xml_reader.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_STYLE_ID = "Default"

# Literal escapes written into number format codes
NUMBER_FORMAT_ESCAPES: tuple[tuple[str, str], ...] = (("\\-", "-"), ("\\ ", " "))

# Named formats remapped to an explicit pattern
NAMED_NUMBER_FORMATS: dict[str, str] = {"Short Date": "dd/mm/yyyy"}

_SS_PREFIX = f"{{{NAMESPACES['ss']}}}"


class StyleCategory(str, Enum):
    """Child elements of a ``Style`` node that carry formatting."""

    ALIGNMENT = "Alignment"
    BORDERS = "Borders"
    FONT = "Font"
    INTERIOR = "Interior"
    NUMBER_FORMAT = "NumberFormat"
    PROTECTION = "Protection"


def _ss_attributes(element: ET.Element) -> list[tuple[str, str]]:
    """Return the ``ss:``-qualified attributes as (local name, value) pairs."""
    return [
        (key[len(_SS_PREFIX) :], value)
        for key, value in element.attrib.items()
        if key.startswith(_SS_PREFIX)
    ]


def _strip_marker(color: str) -> str:
    """Drop the leading ``#`` of a colour value."""
    return color[1:] if color.startswith("#") else color


def _flag(value: str) -> bool:
    return value.strip() not in ("", "0")


class StyleResolver:
    """Builds the style table of one document."""

    def __init__(self) -> None:
        self._appliers: dict[StyleCategory, Callable[[Style, ET.Element], Style]] = {
            StyleCategory.ALIGNMENT: self._apply_alignment,
            StyleCategory.BORDERS: self._apply_borders,
            StyleCategory.FONT: self._apply_font,
            StyleCategory.INTERIOR: self._apply_interior,
            StyleCategory.NUMBER_FORMAT: self._apply_number_format,
            StyleCategory.PROTECTION: self._apply_protection,
        }

    def resolve(self, root: ET.Element) -> dict[str, Style]:
        """Build a fresh style table from the document's ``Styles`` section.

        Args:
            root: The parsed ``ss:Workbook`` element.

        Returns:
            Mapping of style ID to resolved style. Unrecognized values are
            dropped silently and never raise.
        """
        styles: dict[str, Style] = {}
        for node in root.findall("ss:Styles/ss:Style", NAMESPACES):
            style_id = ss_attr(node, "ID")
            if style_id is None:
                continue

            style = styles.get(DEFAULT_STYLE_ID, Style())
            for child in node:
                try:
                    category = StyleCategory(local_name(child.tag))
                except ValueError:
                    continue
                style = self._appliers[category](style, child)
            styles[style_id] = style

        logger.debug("Resolved style table", styles=len(styles))
        return styles

    def _apply_alignment(self, style: Style, node: ET.Element) -> Style:
        updates: dict[str, Any] = {}
        for key, value in _ss_attributes(node):
            if key == "Vertical":
                vertical = match_fixed_value(value, VERTICAL_ALIGNMENTS)
                if vertical is not None:
                    updates["vertical"] = vertical
            elif key == "Horizontal":
                horizontal = match_fixed_value(value, HORIZONTAL_ALIGNMENTS)
                if horizontal is not None:
                    updates["horizontal"] = horizontal
            elif key == "WrapText":
                updates["wrap"] = _flag(value)

        if not updates:
            return style
        return replace(
            style, alignment=replace(style.alignment or Alignment(), **updates)
        )

    def _apply_borders(self, style: Style, node: ET.Element) -> Style:
        updates: dict[str, Border] = {}
        for border_node in node.findall("ss:Border", NAMESPACES):
            position: str | None = None
            border: dict[str, str] = {}
            for key, value in _ss_attributes(border_node):
                if key == "LineStyle":
                    # The source weight is deliberately not mapped
                    border["style"] = BORDER_MEDIUM
                elif key == "Position":
                    position = value.lower()
                elif key == "Color":
                    border["color"] = _strip_marker(value)

            if border and position is not None and position in BORDER_POSITIONS:
                updates[position] = Border(**border)

        if not updates:
            return style
        return replace(style, borders=replace(style.borders or Borders(), **updates))

    def _apply_font(self, style: Style, node: ET.Element) -> Style:
        updates: dict[str, Any] = {}
        for key, value in _ss_attributes(node):
            if key == "FontName":
                updates["name"] = value
            elif key == "Size":
                try:
                    updates["size"] = float(value)
                except ValueError:
                    continue
            elif key == "Color":
                updates["color"] = _strip_marker(value)
            elif key == "Bold":
                updates["bold"] = _flag(value)
            elif key == "Italic":
                updates["italic"] = _flag(value)
            elif key == "Underline":
                underline = match_fixed_value(value, UNDERLINE_STYLES)
                if underline is not None:
                    updates["underline"] = underline

        if not updates:
            return style
        return replace(style, font=replace(style.font or Font(), **updates))

    def _apply_interior(self, style: Style, node: ET.Element) -> Style:
        color = ss_attr(node, "Color")
        if color is None:
            return style
        return replace(style, fill=Fill(color=_strip_marker(color)))

    def _apply_number_format(self, style: Style, node: ET.Element) -> Style:
        code = ss_attr(node, "Format")
        if code is None:
            return style
        for escaped, literal in NUMBER_FORMAT_ESCAPES:
            code = code.replace(escaped, literal)
        code = NAMED_NUMBER_FORMATS.get(code, code)
        if not code:
            return style
        return replace(style, number_format=NumberFormat(code=code))

    def _apply_protection(self, style: Style, node: ET.Element) -> Style:
        # Protection attributes have no counterpart in the style record
        return style
