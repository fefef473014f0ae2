"""Field mutations extracted from toggle scripts."""

import enum
import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from .conditions import PREFIX_MATCH_MAX_LEN, evaluate_condition, parse_all_chains
from .scanner import decode_js_string, find_call_name

logger = logging.getLogger(__name__)


class MutationProperty(enum.Enum):
    DISPLAY = "display"
    READONLY = "readonly"
    REQUIRED = "required"
    VALUE = "value"


class DisplayState(enum.Enum):
    VISIBLE = "visible"
    HIDDEN = "hidden"


# display.* keywords that hide a field; any other keyword shows it
_HIDDEN_KEYWORDS = frozenset({"hidden", "noView"})


@dataclass(frozen=True)
class FieldMutation:
    """A change to one property of a field, or of a field family.

    ``value`` is a :class:`DisplayState` for DISPLAY, a bool for READONLY
    and REQUIRED, and a str for VALUE.
    """

    field_name: str
    property: MutationProperty
    value: DisplayState | bool | str

    def as_dict(self) -> dict:
        value = self.value.value if isinstance(self.value, DisplayState) else self.value
        return {
            "field": self.field_name,
            "property": self.property.value,
            "value": value,
        }


_FIELD = r"(?<![\w$])(?:this\.)?getField\(\s*(?:\"([^\"\\]*)\"|'([^'\\]*)')\s*\)"
_MUTATION_RE = re.compile(
    _FIELD
    + r"\.(?:"
    + r"display\s*=\s*display\.(\w+)"
    + r"|(readonly|required)\s*=\s*(true|false)\b"
    + r"|value\s*=\s*(?:\"((?:[^\"\\]|\\.)*)\"|'((?:[^'\\]|\\.)*)')"
    + r")",
    re.ASCII,
)


def extract_flat(code: str | None) -> list[FieldMutation]:
    """Extract every direct field mutation statement, ignoring control flow.

    Recognizes ``getField("NAME").display = display.KEYWORD``,
    ``.readonly = true|false``, ``.required = true|false`` and
    ``.value = "STRING"``, with an optional ``this.`` prefix.

    Args:
        code: Code to scan.

    Returns:
        Mutations in source order.
    """
    mutations: list[FieldMutation] = []
    if not code:
        return mutations

    for match in _MUTATION_RE.finditer(code):
        (dq_name, sq_name, display, flag_prop, flag, dq_value, sq_value) = match.groups()
        name = dq_name if dq_name is not None else sq_name
        if display is not None:
            state = DisplayState.HIDDEN if display in _HIDDEN_KEYWORDS else DisplayState.VISIBLE
            mutations.append(FieldMutation(name, MutationProperty.DISPLAY, state))
        elif flag_prop is not None:
            mutations.append(FieldMutation(name, MutationProperty(flag_prop), flag == "true"))
        else:
            raw = dq_value if dq_value is not None else (sq_value or "")
            mutations.append(FieldMutation(name, MutationProperty.VALUE, decode_js_string(raw)))

    return mutations


def extract_conditional(
    code: str | None,
    value: str,
    prefix_max_len: int = PREFIX_MATCH_MAX_LEN,
) -> list[FieldMutation]:
    """Extract field mutations, following only the branches ``value`` selects.

    For each top-level chain the first branch whose condition holds (or the
    ``else``) is taken, and its body is processed the same way recursively,
    falling back to :func:`extract_flat` when the recursion finds nothing.
    Code without any chain is extracted flat.
    """
    chains = parse_all_chains(code)
    if not chains:
        return extract_flat(code)

    mutations: list[FieldMutation] = []
    for chain in chains:
        for branch in chain:
            if branch.condition is None or evaluate_condition(
                branch.condition, value, prefix_max_len
            ):
                nested = extract_conditional(branch.body, value, prefix_max_len)
                mutations.extend(nested or extract_flat(branch.body))
                break

    return mutations


def parse_field_changes(
    function_body: str | None,
    value: str,
    prefix_max_len: int = PREFIX_MATCH_MAX_LEN,
) -> list[FieldMutation]:
    """Extract the mutations a toggle function applies for ``value``.

    When no branch yields anything, every mutation in the body is returned
    regardless of conditions.
    """
    return extract_conditional(function_body, value, prefix_max_len) or extract_flat(function_body)


def mutations_for_action(
    action: str | None,
    value: str,
    functions: Mapping[str, str] | None,
    prefix_max_len: int = PREFIX_MATCH_MAX_LEN,
) -> list[FieldMutation]:
    """Extract the mutations a toggle action applies for ``value``.

    An action calling a known document function is analyzed through that
    function's body; anything else is analyzed as inline code.

    Args:
        action: Source text of the field's action.
        value: Normalized toggle value.
        functions: Document function table.
        prefix_max_len: Longest comparison value that may prefix-match.

    Returns:
        Mutations in the order they should be applied.
    """
    if not action:
        return []

    name = find_call_name(action)
    if name and functions and name in functions:
        return parse_field_changes(functions[name], value, prefix_max_len)

    return parse_field_changes(action, value, prefix_max_len)


def field_matches(mutation_field: str, field_name: str) -> bool:
    """Check whether ``field_name`` is ``mutation_field`` or one of its descendants."""
    return field_name == mutation_field or field_name.startswith(mutation_field + ".")


def matching_fields(mutation: FieldMutation, field_names: Iterable[str]) -> list[str]:
    """Return the fields a mutation applies to, in the given order."""
    matched = [name for name in field_names if field_matches(mutation.field_name, name)]
    if not matched:
        logger.debug("No field matches mutation target %r", mutation.field_name)
    return matched
