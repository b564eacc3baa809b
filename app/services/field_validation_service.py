from typing import Any, Dict, List, Mapping, Optional, Tuple
from datetime import date
import math
import re
import logging

from ..models.schema_models import FieldSchema, FieldType, FieldValue
from ..models.result_models import FieldError, FieldErrorKind

logger = logging.getLogger(__name__)

_DATE_PATTERN = re.compile(r"^(\d{4})([/-])(\d{2})\2(\d{2})$")
_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


def format_date(value: date) -> str:
    return f"{value.year:04d}/{value.month:02d}/{value.day:02d}"


def parse_date(text: str) -> Optional[date]:
    """Parse YYYY/MM/DD (or YYYY-MM-DD); None unless it is a real calendar day."""
    match = _DATE_PATTERN.match(text)
    if not match:
        return None
    try:
        return date(int(match.group(1)), int(match.group(3)), int(match.group(4)))
    except ValueError:
        # Day-of-month overflow such as 2025/02/29 or 2026/04/31
        return None


def parse_number(text: str) -> Optional[float]:
    if not _NUMBER_PATTERN.match(text):
        return None
    try:
        value = float(text)
    except (OverflowError, ValueError):
        return None
    return value if math.isfinite(value) else None


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _error(item: FieldSchema, kind: FieldErrorKind) -> FieldError:
    messages = {
        FieldErrorKind.MISSING_FIELD: f"{item.field} is required.",
        FieldErrorKind.INVALID_NUMBER: f"{item.field} must be a number.",
        FieldErrorKind.INVALID_DATE: f"{item.field} must be a valid date (YYYY/MM/DD).",
        FieldErrorKind.INVALID_BOOLEAN: f"{item.field} must be Yes or No.",
        FieldErrorKind.INVALID_STRING: f"{item.field} must be text.",
    }
    return FieldError(field=item.field, kind=kind, message=messages[kind])


def _normalize(item: FieldSchema, value: Any) -> Tuple[FieldValue, Optional[FieldErrorKind]]:
    if item.type == FieldType.BOOLEAN:
        if value is None or isinstance(value, bool):
            return value, None
        return None, FieldErrorKind.INVALID_BOOLEAN

    if item.type == FieldType.NUMBER:
        if isinstance(value, bool):
            return None, FieldErrorKind.INVALID_NUMBER
        text = str(value).strip() if value is not None else ""
        if not text:
            return None, None
        parsed = parse_number(text)
        if parsed is None:
            return None, FieldErrorKind.INVALID_NUMBER
        return parsed, None

    if item.type == FieldType.DATE:
        if isinstance(value, bool):
            return None, FieldErrorKind.INVALID_DATE
        text = str(value).strip() if value is not None else ""
        if not text:
            return None, None
        parsed = parse_date(text)
        if parsed is None:
            return None, FieldErrorKind.INVALID_DATE
        return format_date(parsed), None

    # string; a toggle value is not text
    if value is None:
        return "", None
    if isinstance(value, bool):
        return None, FieldErrorKind.INVALID_STRING
    return str(value).strip(), None


def validate(schema: List[FieldSchema], raw: Mapping[str, Any]) -> Tuple[bool, Optional[Dict[str, FieldValue]], Optional[FieldError]]:
    """Validate raw user input against a field schema.

    Fields are checked in schema order and the first failure is returned, so
    the caller can focus exactly that input. On success the returned map holds
    every schema field and nothing else.
    """
    raw = raw or {}
    values: Dict[str, FieldValue] = {}

    for item in schema:
        value = raw.get(item.field)

        if item.required and _is_empty(value):
            return False, None, _error(item, FieldErrorKind.MISSING_FIELD)

        normalized, kind = _normalize(item, value)
        if kind is not None:
            return False, None, _error(item, kind)
        values[item.field] = normalized

    ignored = set(raw) - set(values)
    if ignored:
        logger.debug(f"Ignoring fields not in schema: {sorted(ignored)}")

    return True, values, None
