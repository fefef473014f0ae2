"""Blur validation rebuilt from a field's actions and the messages they carry.

The document's own validation functions are never run. Known validator
names select a native check, and the messages extracted from the function
are what the check reports.
"""

import logging
import re
from collections.abc import Callable, Mapping, Sequence

from .context import ScriptContext
from .fields import FormField, first_action
from .restrictions import DatePart, detect_date_part, parse_range_validate

logger = logging.getLogger(__name__)

Validator = Callable[[str], str | None]

# Weights of the Dutch citizen service number (BSN) 11-check
_BSN_WEIGHTS = (9, 8, 7, 6, 5, 4, 3, 2, -1)

_INT_PREFIX_RE = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX_RE = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def _parse_int(value: str) -> int | None:
    match = _INT_PREFIX_RE.match(value)
    return int(match.group(1)) if match else None


def _parse_float(value: str) -> float | None:
    match = _FLOAT_PREFIX_RE.match(value)
    return float(match.group(1)) if match else None


def _format_number(number: float) -> str:
    return str(int(number)) if number.is_integer() else str(number)


def _first(messages: Sequence[str], *fallbacks: str | None) -> str:
    for candidate in (*messages[:1], *fallbacks):
        if candidate:
            return candidate
    return ""


def validate_bsn(value: str, messages: Sequence[str] = ()) -> str | None:
    """Check a Dutch citizen service number (BSN).

    Args:
        value: Field value; non-digits are ignored.
        messages: Messages of the document's check function. The first is
            used for a wrong length, the second for a failed 11-check.

    Returns:
        A message, or None if the number is valid.
    """
    digits = re.sub(r"\D", "", value)
    if len(digits) != 9:
        return _first(messages, "BSN must be exactly 9 digits.")

    total = sum(int(digit) * weight for digit, weight in zip(digits, _BSN_WEIGHTS))
    if total % 11 != 0:
        if len(messages) > 1:
            return messages[1]
        return _first(messages, "Invalid BSN number.")
    return None


def validate_date_part(
    value: str,
    field_name: str,
    messages: Sequence[str] = (),
    constants: Mapping[str, str] | None = None,
) -> str | None:
    """Range-check a day, month or year field, judged by its name."""
    constants = constants or {}
    number = _parse_int(value)
    if number is None:
        return _first(messages, "Invalid value.")

    part = detect_date_part(field_name)
    if part == DatePart.DAY and not 1 <= number <= 31:
        return _first(messages, constants.get("IDS_DD"), "Invalid day (1-31).")
    if part == DatePart.MONTH and not 1 <= number <= 12:
        return _first(messages, constants.get("IDS_MM"), "Invalid month (1-12).")
    if part == DatePart.YEAR and len(value) == 4 and not 1900 <= number <= 2100:
        return _first(messages, constants.get("IDS_JAAR2"), "Invalid year.")
    return None


def _comb_validator(max_len: int, message: str) -> Validator:
    def validate(value: str) -> str | None:
        if value and len(value) < max_len:
            return message
        return None
    return validate


def _blur_action_validator(
    action: str, field: FormField, messages: list[str], constants: Mapping[str, str]
) -> Validator | None:
    """Build the validator for one Blur action, or None if it needs none."""
    name = field["name"]

    if "elfCheck" in action:
        return lambda value: validate_bsn(value, messages) if value else None

    if "checkDate" in action:
        return lambda value: validate_date_part(value, name, messages, constants) if value else None

    if "fieldComplete" in action:
        message = _first(messages, "This field is required.")
        return lambda value: message if not value or not value.strip() else None

    if messages and field["comb"] and field["max_len"]:
        return _comb_validator(field["max_len"], messages[0])

    return None


def _range_validator(validate_action: str, constants: Mapping[str, str]) -> Validator | None:
    limits = parse_range_validate(validate_action)
    if limits is None:
        return None
    invalid = constants.get("IDS_VELD") or "Invalid number."

    def validate(value: str) -> str | None:
        if not value:
            return None
        number = _parse_float(value.replace(",", ""))
        if number is None:
            return invalid
        if limits.has_min and number < limits.min:
            return f"Value must be at least {_format_number(limits.min)}."
        if limits.has_max and number > limits.max:
            return f"Value must be at most {_format_number(limits.max)}."
        return None

    return validate


def build_blur_validators(field: FormField, context: ScriptContext) -> list[Validator]:
    """Build the validators to run when a text field loses focus.

    Args:
        field: The field being validated.
        context: Script context of the field's document.

    Returns:
        Validators in the order they should run. Each takes the field value
        and returns a message, or None when the value passes.
    """
    validators: list[Validator] = []
    constants = context.constants

    max_len = field["max_len"] or 0
    if field["comb"] and max_len > 0:
        message = constants.get("IDS_COMPLETE") or f"This field requires {max_len} characters."
        validators.append(_comb_validator(max_len, message))

    blur_actions = field["actions"].get("Blur") or []
    for action in blur_actions:
        messages = context.validation_messages(action)
        validator = _blur_action_validator(action, field, messages, constants)
        if validator is not None:
            validators.append(validator)

    range_validator = _range_validator(first_action(field, "Validate"), constants)
    if range_validator is not None:
        validators.append(range_validator)

    has_date_check = any(re.search("checkDate", action, re.IGNORECASE) for action in blur_actions)
    if detect_date_part(field["name"]) and not has_date_check:
        name = field["name"]
        validators.append(
            lambda value: validate_date_part(value, name, (), constants) if value else None
        )

    logger.debug("Built %d blur validator(s) for %s", len(validators), field["name"])
    return validators


def validate_value(
    field: FormField,
    value: str,
    context: ScriptContext,
    required: bool | None = None,
) -> str | None:
    """Validate a field value the way the document's blur scripts would.

    Args:
        field: The field being validated.
        value: Its current value.
        context: Script context of the field's document.
        required: Whether the field is currently required, which toggle
            scripts may have changed. Defaults to the field's own flag.

    Returns:
        The first message to show, or None if the value is valid.
    """
    value = value or ""
    if required is None:
        required = field["required"]

    if required and not value.strip():
        return (
            context.constant("IDS_REQUIRED")
            or context.constant("IDS_VELD")
            or "This field is required."
        )

    for validator in build_blur_validators(field, context):
        message = validator(value)
        if message:
            return message
    return None
