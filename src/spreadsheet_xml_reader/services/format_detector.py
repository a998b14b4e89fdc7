"""XML Spreadsheet format detection.

This module sniffs the first bytes of a document for the XML prolog and the
processing instruction naming the producing application, and extracts the
charset declared by the prolog.
"""

import re

from spreadsheet_xml_reader.models import FormatInfo
from spreadsheet_xml_reader.utils.logging import get_logger

logger = get_logger(__name__)

__all__ = [
    "DEFAULT_CHARSET",
    "FormatDetector",
    "PREFIX_LENGTH",
    "SIGNATURE",
]

# Only this many leading bytes are inspected
PREFIX_LENGTH = 2048

DEFAULT_CHARSET = "UTF-8"

# Every entry must be present, in any order
SIGNATURE: tuple[str, ...] = (
    '<?xml version="1.0"',
    '<?mso-application progid="Excel.Sheet"?>',
)

_ENCODING_DECLARATION = re.compile(r'<\?xml.*encoding="(.*?)".*?\?>')


class FormatDetector:
    """Decides whether a byte prefix belongs to an XML Spreadsheet document."""

    def __init__(self, default_charset: str = DEFAULT_CHARSET) -> None:
        """Initialize the detector.

        Args:
            default_charset: Charset reported when the prolog declares none.
        """
        self._default_charset = default_charset

    def can_read(self, prefix: bytes) -> bool:
        """Return True when every signature entry occurs in the prefix.

        Never raises; content that is not a spreadsheet simply yields False.
        """
        return self.detect(prefix).is_valid

    def detect(self, prefix: bytes) -> FormatInfo:
        """Inspect the first ``PREFIX_LENGTH`` bytes of a document.

        Args:
            prefix: Leading bytes of the document (longer input is truncated).

        Returns:
            FormatInfo with the verdict, the declared charset and any missing
            signature entries.
        """
        # Single-quoted prologs are accepted by normalizing to double quotes
        text = prefix[:PREFIX_LENGTH].decode("latin-1").replace("'", '"')

        missing = [entry for entry in SIGNATURE if entry not in text]
        charset = self._extract_charset(text)

        if missing:
            logger.debug(
                "Spreadsheet signature not found",
                missing=missing,
                prefix_length=len(prefix[:PREFIX_LENGTH]),
            )

        return FormatInfo(
            is_valid=not missing,
            charset=charset,
            missing_signatures=missing,
        )

    def _extract_charset(self, text: str) -> str:
        match = _ENCODING_DECLARATION.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip().upper()
        return self._default_charset
