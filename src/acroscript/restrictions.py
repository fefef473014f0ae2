"""Input restrictions recognized from keystroke, format and validate actions.

The Acrobat form helpers (``AFNumber_Keystroke``, ``AFDate_Format``, ...)
are never run; their names and literal arguments are matched instead.
"""

import enum
import re
from dataclasses import dataclass
from typing import NamedTuple


class RestrictionKind(enum.Enum):
    NUMBER = "number"
    PERCENT = "percent"
    DATE = "date"
    TIME = "time"
    SPECIAL = "special"
    REGEX = "regex"


class DatePart(enum.Enum):
    DAY = "day"
    MONTH = "month"
    YEAR = "year"


class RangeLimits(NamedTuple):
    has_min: bool
    min: float
    has_max: bool
    max: float


_NUMBER_DECIMALS_RE = re.compile(r"AFNumber_(?:Keystroke|Format)\((\d+)")
_SPECIAL_TYPE_RE = re.compile(r"AFSpecial_Keystroke\((\d+)\)")
_REGEX_CLASS_RE = re.compile(r"\^\[([^\]]+)\]")
_RANGE_RE = re.compile(
    r"AFRange_Validate\(\s*(true|false)\s*,\s*([^,]+?)\s*,\s*(true|false)\s*,\s*([^)]+?)\s*\)"
)

_DATE_PART_PATTERNS = [
    (re.compile(r"^(d|dd|dag|day)(\b|_|$)"), DatePart.DAY),
    (re.compile(r"^(m|mm|mnd|maand|month)(\b|_|$)"), DatePart.MONTH),
    (re.compile(r"^(y|yy|yyyy|jr|jaar|year)(\b|_|$)"), DatePart.YEAR),
]

# Characters each kind accepts when typed
_KIND_CHARS = {
    RestrictionKind.PERCENT: r"\d.\-,%",
    RestrictionKind.DATE: r"\d/\-.: aApPmM",
    RestrictionKind.TIME: r"\d/\-.: aApPmM",
}


@dataclass(frozen=True)
class Restriction:
    """A restriction on what can be typed or pasted into a text field."""

    kind: RestrictionKind
    input_mode: str = "text"
    decimals: int = 2
    special_type: int = 0
    char_class: str | None = None

    def _char_class(self) -> str:
        if self.kind == RestrictionKind.NUMBER:
            return r"\d.\-," if self.decimals > 0 else r"\d\-,"
        if self.kind == RestrictionKind.SPECIAL:
            return r"\d\-() " if self.special_type == 2 else r"\d\-"
        if self.kind == RestrictionKind.REGEX:
            return self.char_class or ""
        return _KIND_CHARS[self.kind]

    def _compile(self, pattern: str) -> re.Pattern | None:
        try:
            return re.compile(pattern)
        except re.error:
            return None

    def allows_char(self, ch: str, current: str = "", position: int = 0) -> bool:
        """Check whether typing ``ch`` at ``position`` into ``current`` is allowed."""
        pattern = self._compile(f"^[{self._char_class()}]$")
        if pattern is None:
            return True
        if not pattern.match(ch):
            return False
        if self.kind in (RestrictionKind.NUMBER, RestrictionKind.PERCENT):
            if ch == "." and "." in current:
                return False
        if self.kind == RestrictionKind.NUMBER and ch == "-" and position != 0:
            return False
        return True

    def allows_text(self, text: str) -> bool:
        """Check whether pasting ``text`` is allowed."""
        if self.kind == RestrictionKind.PERCENT:
            return True
        if self.kind == RestrictionKind.NUMBER:
            full = r"^-?[\d,]*\.?\d*$" if self.decimals > 0 else r"^-?[\d,]*$"
        else:
            full = f"^[{self._char_class()}]*$"
        pattern = self._compile(full)
        return pattern is None or pattern.match(text) is not None


def parse_number_decimals(*actions: str | None) -> int:
    """Number of decimals from the first ``AFNumber_Keystroke(N`` / ``AFNumber_Format(N``."""
    for action in actions:
        match = _NUMBER_DECIMALS_RE.search(action or "")
        if match:
            return int(match.group(1))
    return 2


def parse_special_type(keystroke: str | None) -> int:
    match = _SPECIAL_TYPE_RE.search(keystroke or "")
    return int(match.group(1)) if match else 0


def parse_regex_keystroke(keystroke: str | None) -> Restriction | None:
    """Recognize a keystroke script that tests input against ``/^[...]/``."""
    match = _REGEX_CLASS_RE.search(keystroke or "")
    if not match:
        return None
    char_class = match.group(1)
    input_mode = "numeric" if char_class in ("0-9", r"\d") else "text"
    return Restriction(RestrictionKind.REGEX, input_mode=input_mode, char_class=char_class)


def detect_keystroke_restriction(
    format_action: str | None,
    keystroke_action: str | None,
) -> Restriction | None:
    """Detect the input restriction of a text field.

    Args:
        format_action: Source text of the field's Format action.
        keystroke_action: Source text of the field's Keystroke action.

    Returns:
        The restriction, or None when the field accepts any input.
    """
    combined = (format_action or "") + (keystroke_action or "")

    if "AFNumber" in combined:
        return Restriction(
            RestrictionKind.NUMBER,
            input_mode="decimal",
            decimals=parse_number_decimals(keystroke_action, format_action),
        )
    if "AFPercent" in combined:
        return Restriction(RestrictionKind.PERCENT, input_mode="decimal")
    if "AFDate" in combined:
        return Restriction(RestrictionKind.DATE, input_mode="numeric")
    if "AFTime" in combined:
        return Restriction(RestrictionKind.TIME, input_mode="numeric")
    if "AFSpecial" in combined:
        return Restriction(
            RestrictionKind.SPECIAL,
            input_mode="numeric",
            special_type=parse_special_type(keystroke_action),
        )

    if keystroke_action:
        return parse_regex_keystroke(keystroke_action)
    return None


def parse_range_validate(validate_action: str | None) -> RangeLimits | None:
    """Parse ``AFRange_Validate(bGreaterThan, nGreaterThan, bLessThan, nLessThan)``."""
    match = _RANGE_RE.search(validate_action or "")
    if not match:
        return None
    try:
        low = float(match.group(2))
        high = float(match.group(4))
    except ValueError:
        return None
    return RangeLimits(match.group(1) == "true", low, match.group(3) == "true", high)


def detect_date_part(field_name: str | None) -> DatePart | None:
    """Detect a day/month/year field from the last segment of its dotted name.

    ``"2.date02.d_F"`` is a day field, ``"1.date01.m"`` a month field. Names
    without a dot are never date parts.
    """
    if not field_name or "." not in field_name:
        return None
    segment = field_name.rsplit(".", 1)[1].lower()
    if not segment:
        return None
    for pattern, part in _DATE_PART_PATTERNS:
        if pattern.match(segment):
            return part
    return None
