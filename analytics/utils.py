"""Utility functions for vocab-analytics."""

import re
import time
from datetime import datetime, timezone


def parse_timestamp(value) -> datetime | None:
    """Parse a stored timestamp into an aware datetime.

    Accepts ISO-8601 strings (with or without a trailing 'Z'), epoch
    milliseconds and datetime objects. Returns None for anything else.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def timestamp_to_str(value) -> str:
    """Normalize a stored timestamp to an ISO string, keeping unparseable text as-is."""
    parsed = parse_timestamp(value)
    if parsed is None:
        return str(value) if value is not None else ''
    return parsed.isoformat()


def short_date_label(moment: datetime) -> str:
    return moment.strftime('%d/%m')


def full_date_label(moment: datetime) -> str:
    return moment.strftime('%d/%m/%Y %H:%M')


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def epoch_ms() -> int:
    return int(time.time() * 1000)


def split_sentence_field(sentence) -> str | list[str] | None:
    """Split a legacy example-sentence field on '|' or ';' separators.

    Multi-valued fields become a list of trimmed, non-empty sentences;
    anything else is returned unchanged.
    """
    if not sentence:
        return None
    if not isinstance(sentence, str):
        return sentence
    if '|' in sentence or ';' in sentence:
        return [s.strip() for s in re.split(r'[|;]', sentence) if s.strip()]
    return sentence


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def percentage(part: float, whole: float) -> float:
    """part/whole as a percentage in [0, 100], 0 when whole is 0."""
    if not whole:
        return 0.0
    return clamp(part / whole * 100, 0.0, 100.0)
