"""Resolve script expressions to strings without evaluating them."""

import logging
import re
from collections.abc import Mapping

from .scanner import (
    extract_assignment_expression,
    is_identifier,
    mask_strings,
    match_string_literal,
    split_concat_parts,
)

logger = logging.getLogger(__name__)

# Stands in for any part of a concatenation that cannot be resolved
PLACEHOLDER = "[...]"


def resolve_expression(
    function_body: str | None,
    expr: str,
    constants: Mapping[str, str] | None,
) -> str | None:
    """Resolve an expression fragment to its string value.

    Handles, in order: a single string literal; a bare identifier, looked up
    first as a local assignment in ``function_body`` and then in
    ``constants``; a ``+`` concatenation of literals and constants.

    Args:
        function_body: Body of the enclosing function, used as local scope.
        expr: Expression text.
        constants: Document constant table.

    Returns:
        The resolved string, or None when the expression can't be resolved.
    """
    if not expr:
        return None
    trimmed = expr.strip()

    literal = match_string_literal(trimmed)
    if literal is not None:
        return literal

    if is_identifier(trimmed):
        local = resolve_local_variable(function_body, trimmed, constants)
        if local:
            return local
        if constants and trimmed in constants:
            return constants[trimmed]
        return None

    if len(split_concat_parts(trimmed)) > 1:
        return resolve_string_concat(trimmed, constants)

    return None


def resolve_local_variable(
    function_body: str | None,
    name: str,
    constants: Mapping[str, str] | None,
) -> str | None:
    """Resolve the last assignment to ``name`` inside a function body.

    The right-hand side is resolved as a concatenation, so its parts are only
    ever literals or constants. Local variables are never looked up again
    from there, which rules out self-referencing loops.
    """
    if not function_body or not name:
        return None

    pattern = re.compile(rf"(?<![\w$.]){re.escape(name)}\s*=(?!=)\s*", re.ASCII)
    last = None
    for last in pattern.finditer(mask_strings(function_body)):
        pass
    if last is None:
        return None

    expr = extract_assignment_expression(function_body, last.end())
    if not expr:
        return None

    logger.debug("Local %s resolves through expression %r", name, expr[:300])
    return resolve_string_concat(expr, constants)


def resolve_string_concat(expr: str, constants: Mapping[str, str] | None) -> str | None:
    """Resolve ``"literal" + CONSTANT + ...`` to a single string.

    Parts that are neither literals nor known constants, such as function
    parameters, are replaced with :data:`PLACEHOLDER`.
    """
    pieces = []
    for part in split_concat_parts(expr):
        trimmed = part.strip()
        if not trimmed:
            continue

        literal = match_string_literal(trimmed)
        if literal is not None:
            pieces.append(literal)
        elif constants and is_identifier(trimmed) and trimmed in constants:
            pieces.append(constants[trimmed])
        else:
            pieces.append(PLACEHOLDER)

    return "".join(pieces) or None
