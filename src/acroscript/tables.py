"""Per-document constant and function tables built from embedded script text."""

import logging
import re

from .scanner import IDENTIFIER, decode_js_string, mask_strings, match_brackets

logger = logging.getLogger(__name__)

# Identifiers that can precede "= ..." without being a constant name
RESERVED_WORDS = frozenset({
    "var", "let", "const", "if", "else", "for", "while",
    "return", "function", "true", "false",
})

_CONSTANT_RE = re.compile(
    rf"(?<![\w$])({IDENTIFIER})\s*=\s*\"((?:[^\"\\]|\\.)*)\"",
    re.ASCII,
)
_FUNCTION_RE = re.compile(
    rf"(?<![\w$.])function\s+({IDENTIFIER})\s*\([^(){{}}]*\)\s*\{{",
    re.ASCII,
)
_NEXT_TOKEN_RE = re.compile(r"\s*(\S)")


def parse_constants(script: str | None) -> dict[str, str]:
    """Extract simple string constants from document script text.

    Only assignments of the form ``NAME = "string"`` are captured. A match
    followed by ``+`` is part of a longer concatenation and is skipped. When
    a name is assigned more than once, the last assignment wins.

    Args:
        script: Document-level script text.

    Returns:
        Mapping of constant name to decoded string value.
    """
    constants: dict[str, str] = {}
    if not script:
        return constants

    for match in _CONSTANT_RE.finditer(script):
        name = match.group(1)
        if name in RESERVED_WORDS:
            continue
        following = _NEXT_TOKEN_RE.match(script, match.end())
        if following and following.group(1) == "+":
            continue
        constants[name] = decode_js_string(match.group(2))

    logger.debug("Found %d script constants", len(constants))
    return constants


def parse_functions(script: str | None) -> dict[str, str]:
    """Extract named function bodies from document script text.

    The body is everything between the function's opening brace and its
    matching closing brace. An unterminated function runs to the end of the
    text. Later definitions replace earlier ones with the same name.

    Args:
        script: Document-level script text.

    Returns:
        Mapping of function name to body text.
    """
    functions: dict[str, str] = {}
    if not script:
        return functions

    masked = mask_strings(script)
    braces = match_brackets(masked, "{", "}")
    pos = 0
    while True:
        match = _FUNCTION_RE.search(masked, pos)
        if not match:
            break
        close = braces.get(match.end() - 1, len(script))
        functions[match.group(1)] = script[match.end():close]
        # Resume after the header so nested declarations are found as well
        pos = match.end()

    logger.debug("Found %d script functions: %s", len(functions), ", ".join(functions))
    return functions
