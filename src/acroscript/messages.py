"""Validation message extraction from blur and validate scripts."""

import logging
import re
from collections.abc import Mapping

from .resolver import resolve_expression
from .scanner import extract_first_argument, find_call_name, mask_strings

logger = logging.getLogger(__name__)

_ALERT_RE = re.compile(r"(?<![\w$])app\s*\.\s*alert\s*\(", re.ASCII)


def extract_alert_messages(
    function_body: str | None,
    constants: Mapping[str, str] | None,
) -> list[str]:
    """Extract the message text of every ``app.alert(...)`` call in a body.

    The first argument of each call is resolved with the body as local
    scope. Calls whose message can't be resolved are skipped.

    Args:
        function_body: Function body text.
        constants: Document constant table.

    Returns:
        Resolved messages in source order.
    """
    messages: list[str] = []
    if not function_body:
        return messages

    for match in _ALERT_RE.finditer(mask_strings(function_body)):
        argument = extract_first_argument(function_body, match.end())
        if not argument or not argument.strip():
            continue
        resolved = resolve_expression(function_body, argument.strip(), constants)
        if resolved:
            messages.append(resolved)

    logger.debug("Extracted %d alert message(s)", len(messages))
    return messages


def get_messages_for_action(
    action: str | None,
    functions: Mapping[str, str] | None,
    constants: Mapping[str, str] | None,
) -> list[str]:
    """Get the validation messages of the function a field action calls.

    Args:
        action: Action source text, e.g. ``elfCheck(event.target.name,'bsn');``.
        functions: Document function table.
        constants: Document constant table.

    Returns:
        The messages of the called function, or an empty list when the
        action calls no known function.
    """
    if not action or not functions:
        return []

    name = find_call_name(action)
    if not name:
        return []

    body = functions.get(name)
    if body is None:
        logger.debug("Function not found in document script: %s", name)
        return []

    logger.debug("Extracting messages for action function %s", name)
    return extract_alert_messages(body, constants)
