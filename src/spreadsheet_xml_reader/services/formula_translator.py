"""Rewrites R1C1 and bracketed-relative formula references to A1 addresses.

Formula text is split on the double quote character: odd segments are the
insides of string literals and are left untouched, even segments are
rewritten. Escaped quotes inside literals (``""``) are not special-cased, so
a literal containing one shifts the parity of everything after it.
"""

import re

from spreadsheet_xml_reader.utils.cell_address import column_letter
from spreadsheet_xml_reader.utils.exceptions import FormulaReferenceError

# Marker of the bracketed dialect, e.g. "of:=[.A1]+[.B2]"
BRACKETED_DIALECT_MARKER = "of:"

# Removed, in this order, from every unquoted segment of the bracketed dialect
BRACKETED_REFERENCE_TOKENS: tuple[str, ...] = ("[.", ".", "]")

R1C1_REFERENCE = re.compile(r"(R(\[?-?\d*\]?))(C(\[?-?\d*\]?))")


class FormulaReferenceTranslator:
    """Converts formula text into absolute A1 addressing."""

    def translate(self, formula: str, row: int, column: int) -> str:
        """Translate ``formula`` as written in the cell at (row, column).

        Args:
            formula: Formula text as stored in the document.
            row: 1-based row of the cell holding the formula.
            column: 1-based column of the cell holding the formula.

        Returns:
            The formula with every unquoted reference rewritten.

        Raises:
            FormulaReferenceError: If a relative reference resolves to a row
                or column before the first one.
        """
        if formula.startswith(BRACKETED_DIALECT_MARKER):
            segments = formula[len(BRACKETED_DIALECT_MARKER) :].split('"')
            rewrite = self._strip_bracket_tokens
        else:
            segments = formula.split('"')

            def rewrite(segment: str) -> str:
                return self._rewrite_r1c1(segment, formula, row, column)

        for index in range(0, len(segments), 2):
            segments[index] = rewrite(segments[index])
        return '"'.join(segments)

    @staticmethod
    def _strip_bracket_tokens(segment: str) -> str:
        for token in BRACKETED_REFERENCE_TOKENS:
            segment = segment.replace(token, "")
        return segment

    def _rewrite_r1c1(self, segment: str, formula: str, row: int, column: int) -> str:
        # Right to left, so earlier match offsets stay valid after each splice
        for match in reversed(list(R1C1_REFERENCE.finditer(segment))):
            target_row = self._resolve_part(match.group(2), row)
            target_column = self._resolve_part(match.group(4), column)
            if target_row < 1 or target_column < 1:
                raise FormulaReferenceError(
                    formula=formula, row=target_row, column=target_column
                )
            address = f"{column_letter(target_column - 1)}{target_row}"
            segment = segment[: match.start()] + address + segment[match.end() :]
        return segment

    @staticmethod
    def _resolve_part(part: str, current: int) -> int:
        """Resolve one row or column part of an R1C1 token.

        Empty means the current position, ``[n]`` an offset from it and a
        bare number an absolute position.
        """
        if not part:
            return current
        if part.startswith("["):
            offset = part.strip("[]")
            return current + (int(offset) if offset not in ("", "-") else 0)
        absolute = part.rstrip("]")
        if absolute in ("", "-"):
            return current
        return int(absolute)
