"""Date and time conversions for cell values and document properties."""

from datetime import UTC, date, datetime

from openpyxl.utils.datetime import WINDOWS_EPOCH, from_ISO8601, to_excel


def parse_datetime(text: str) -> datetime:
    """Parse an ISO 8601 value as written by the spreadsheet application.

    Values carry an optional millisecond part and an optional ``Z`` suffix and
    are returned as naive datetimes.

    Raises:
        ValueError: If the text is not an ISO 8601 date or datetime.
    """
    parsed = from_ISO8601(text.strip())
    if isinstance(parsed, datetime):
        return parsed
    if isinstance(parsed, date):
        return datetime.combine(parsed, datetime.min.time())
    raise ValueError(f"Invalid datetime value {text!r}")


def to_timestamp(text: str) -> int:
    """Convert an ISO 8601 value to Unix seconds, reading naive values as UTC."""
    return int(parse_datetime(text).replace(tzinfo=UTC).timestamp())


def to_serial_date(text: str, epoch: datetime = WINDOWS_EPOCH) -> float:
    """Convert an ISO 8601 value to a spreadsheet serial date."""
    return to_excel(parse_datetime(text), epoch=epoch)
