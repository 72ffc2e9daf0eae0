"""Field value codec.

Maps a field's declared type to the values it accepts and to the form shown
to people (and to the model). Raw values arrive as loosely typed JSON, so
every value is first decoded into a tagged variant and all further logic
matches on the variant rather than on the raw shape.

Pure functions, no I/O beyond logging.
"""

import math
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Union

from habit_lens.core.errors import ValidationError
from habit_lens.core.logging import get_logger
from habit_lens.core.schemas_templates import FieldType, TemplateField

logger = get_logger(__name__)

RATING_LABELS = ["Poor", "Below average", "Average", "Above average", "Excellent"]
RATING_MIN = 1
RATING_MAX = len(RATING_LABELS)

ISO_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


@dataclass(frozen=True)
class NumberValue:
    value: int | float
    kind: str = "number"


@dataclass(frozen=True)
class TextValue:
    value: str
    kind: str = "text"


@dataclass(frozen=True)
class DateValue:
    value: date
    kind: str = "date"


@dataclass(frozen=True)
class SelectValue:
    value: str
    kind: str = "select"


@dataclass(frozen=True)
class RatingValue:
    value: int
    kind: str = "rating"


FieldValue = Union[NumberValue, TextValue, DateValue, SelectValue, RatingValue]


def is_empty(raw: Any) -> bool:
    """True for None and blank strings."""
    if raw is None:
        return True
    if isinstance(raw, str) and not raw.strip():
        return True
    return False


def _parse_number(field: TemplateField, raw: Any) -> int | float:
    # bool is an int subclass; a checkbox value is never a number
    if isinstance(raw, bool):
        raise ValidationError(f"{field.name} must be a number", field_id=field.id)

    if isinstance(raw, (int, float)):
        number = raw
    elif isinstance(raw, str):
        text = raw.strip()
        try:
            number = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                raise ValidationError(f"{field.name} must be a number", field_id=field.id) from None
    else:
        raise ValidationError(f"{field.name} must be a number", field_id=field.id)

    if isinstance(number, float) and not math.isfinite(number):
        raise ValidationError(f"{field.name} must be a finite number", field_id=field.id)
    return number


def _parse_rating(field: TemplateField, raw: Any) -> int:
    number = _parse_number(field, raw)
    if isinstance(number, float):
        if not number.is_integer():
            raise ValidationError(f"{field.name} must be a whole number", field_id=field.id)
        number = int(number)
    if number < RATING_MIN or number > RATING_MAX:
        raise ValidationError(
            f"{field.name} must be between {RATING_MIN} and {RATING_MAX}, got {number}",
            field_id=field.id,
        )
    return number


def _parse_date(field: TemplateField, raw: Any) -> date:
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str):
        raise ValidationError(f"{field.name} must be a date (YYYY-MM-DD)", field_id=field.id)
    text = raw.strip()
    if not ISO_DATE_PATTERN.fullmatch(text):
        raise ValidationError(f"{field.name} must be a date (YYYY-MM-DD)", field_id=field.id)
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise ValidationError(
            f"{field.name} is not a valid calendar date: {raw!r}", field_id=field.id
        ) from None


def decode_value(field: TemplateField, raw: Any) -> FieldValue:
    """
    Decode a non-empty raw value into its tagged variant.

    Args:
        field: Field definition the value belongs to
        raw: Raw JSON value as stored or submitted

    Returns:
        The typed variant for the field's declared type

    Raises:
        ValidationError: If the value is outside the field's domain
    """
    if field.type == FieldType.NUMBER:
        return NumberValue(_parse_number(field, raw))

    if field.type == FieldType.RATING:
        return RatingValue(_parse_rating(field, raw))

    if field.type == FieldType.DATE:
        return DateValue(_parse_date(field, raw))

    if field.type == FieldType.SELECT:
        if not isinstance(raw, str):
            raise ValidationError(f"{field.name} must be one of its options", field_id=field.id)
        if field.options and raw not in field.options:
            raise ValidationError(
                f"{field.name} must be one of: {', '.join(field.options)}", field_id=field.id
            )
        return SelectValue(raw)

    if field.type == FieldType.TEXT:
        if not isinstance(raw, str):
            raise ValidationError(f"{field.name} must be text", field_id=field.id)
        return TextValue(raw)

    raise ValidationError(f"Unsupported field type: {field.type}", field_id=field.id)


def encode_value(value: FieldValue) -> Any:
    """Convert a decoded variant back to its JSON storage form."""
    if isinstance(value, DateValue):
        return value.value.isoformat()
    return value.value


def render(field: TemplateField, raw: Any) -> Any:
    """
    Convert a raw stored value into its display form.

    Ratings map to their label; every other type passes through unchanged.

    Raises:
        ValidationError: If a rating is not an integer in [1, 5]
    """
    if field.type == FieldType.RATING:
        rating = decode_value(field, raw)
        return RATING_LABELS[rating.value - 1]
    return raw


def render_values(fields: list[TemplateField], values: dict[str, Any]) -> list[dict[str, Any]]:
    """
    Render a stored value mapping in template field order.

    Returns ``{"field_id", "field", "value"}`` records. Ids that match no
    field are skipped. A stored value that no longer fits its field (e.g.
    after the field changed type) is passed through as stored.
    """
    rendered = []
    for field in fields:
        if field.id not in values:
            continue
        raw = values[field.id]
        try:
            display = render(field, raw)
        except ValidationError as e:
            logger.warning(f"Unrenderable stored value for field {field.id}: {e.message}")
            display = raw
        rendered.append({"field_id": field.id, "field": field.name, "value": display})
    return rendered


def validate(field: TemplateField, raw: Any) -> None:
    """Raise ValidationError unless raw is acceptable for field."""
    if is_empty(raw):
        if field.required:
            raise ValidationError(f"{field.name} is required", field_id=field.id)
        return
    decode_value(field, raw)


def validate_values(fields: list[TemplateField], values: dict[str, Any]) -> dict[str, Any]:
    """
    Validate a full value mapping against a template's fields.

    Args:
        fields: The template's ordered field definitions
        values: Raw values keyed by field id

    Returns:
        Normalised mapping in field order. Empty optional values are dropped;
        keys that match no field are kept verbatim after the known ones.

    Raises:
        ValidationError: On the first field that fails
    """
    normalised: dict[str, Any] = {}
    known_ids = set()

    for field in fields:
        known_ids.add(field.id)
        raw = values.get(field.id)
        validate(field, raw)
        if is_empty(raw):
            continue
        normalised[field.id] = encode_value(decode_value(field, raw))

    for key, raw in values.items():
        if key not in known_ids:
            normalised[key] = raw

    return normalised
