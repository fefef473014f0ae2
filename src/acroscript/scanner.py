"""Quote-aware scanning primitives for form script text.

Every higher-level component goes through these helpers so that string
literals are handled the same way everywhere: characters inside a ``"`` or
``'`` delimited literal never count as braces, parentheses, commas, ``+`` or
statement terminators, and a backslash inside a literal always consumes the
character that follows it.
"""

import re

IDENTIFIER = r"[A-Za-z_$][\w$]*"

_QUOTES = ('"', "'")
_OPENERS = "([{"
_CLOSERS = ")]}"

_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)", re.DOTALL)
_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    '"': '"',
    "'": "'",
    "\\": "\\",
}

_STRING_LITERAL_RE = re.compile(
    r"\"((?:[^\"\\]|\\.)*)\"|'((?:[^'\\]|\\.)*)'",
    re.DOTALL,
)
_IDENTIFIER_RE = re.compile(IDENTIFIER, re.ASCII)
_CALL_RE = re.compile(rf"({IDENTIFIER})\s*\(", re.ASCII)


def decode_js_string(s: str) -> str:
    """Decode the escape sequences of a string literal body.

    Handles ``\\n \\r \\t \\" \\' \\\\`` and ``\\uXXXX``. Any other escape is
    kept as a literal backslash followed by the character.

    Args:
        s: Literal body, without the surrounding quotes.

    Returns:
        The decoded string.
    """
    if not s:
        return ""

    def _replace(match: re.Match) -> str:
        escape = match.group(1)
        if len(escape) == 5 and escape[0] == "u":
            return chr(int(escape[1:], 16))
        return _SIMPLE_ESCAPES.get(escape, "\\" + escape)

    return _ESCAPE_RE.sub(_replace, s)


def match_string_literal(expr: str) -> str | None:
    """Return the decoded value if ``expr`` is exactly one string literal."""
    match = _STRING_LITERAL_RE.fullmatch(expr.strip())
    if not match:
        return None
    body = match.group(1) if match.group(1) is not None else match.group(2)
    return decode_js_string(body)


def is_identifier(expr: str) -> bool:
    """Check whether ``expr`` is a single bare identifier."""
    return _IDENTIFIER_RE.fullmatch(expr.strip()) is not None


def _scan_string(text: str, start: int) -> tuple[int, bool]:
    """Scan the string literal opening at ``start``.

    An unterminated literal stops at the next line break, or at the end of
    the text.

    Returns:
        Tuple of (end, terminated) where end is the index just past the
        literal.
    """
    quote = text[start]
    i = start + 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1, True
        if ch in "\r\n":
            return i, False
        i += 1
    return n, False


def _string_end(text: str, start: int) -> int:
    """Return the index just past the string literal opening at ``start``."""
    return _scan_string(text, start)[0]


def mask_strings(text: str) -> str:
    """Blank out the contents of every string literal.

    The result has the same length as ``text`` and keeps the quote characters,
    so regular expressions can be run over the masked text and their match
    positions used to slice the original.
    """
    if not text:
        return ""
    chars = list(text)
    i = 0
    n = len(text)
    while i < n:
        if text[i] in _QUOTES:
            end, terminated = _scan_string(text, i)
            close = end - 1 if terminated else end
            for j in range(i + 1, close):
                chars[j] = " "
            i = end
            continue
        i += 1
    return "".join(chars)


def _extract_block(text: str, start: int, opener: str, closer: str) -> tuple[str, int]:
    """Extract up to the ``closer`` that balances an already-consumed ``opener``."""
    depth = 1
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in _QUOTES:
            i = _string_end(text, i)
            continue
        if ch == opener:
            depth += 1
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return text[start:i], i + 1
        i += 1
    return text[start:], n


def extract_brace_block(text: str, start: int) -> tuple[str, int]:
    """Extract the contents of a ``{ ... }`` block.

    Args:
        text: Script text.
        start: Position immediately after the opening ``{``.

    Returns:
        Tuple of (content, end_pos) where content excludes the matching ``}``
        and end_pos is the position just after it. An unterminated block runs
        to the end of the text.
    """
    return _extract_block(text, start, "{", "}")


def extract_paren_block(text: str, start: int) -> tuple[str, int]:
    """Extract the contents of a ``( ... )`` group; see :func:`extract_brace_block`."""
    return _extract_block(text, start, "(", ")")


def match_brackets(masked: str, opener: str, closer: str) -> dict[int, int]:
    """Pair every ``opener`` in string-masked text with its balancing ``closer``.

    Gives the same pairs as :func:`extract_brace_block` started after each
    opener, in one pass. Unterminated openers have no entry.

    Args:
        masked: Text from :func:`mask_strings`.
        opener: Opening bracket character.
        closer: Closing bracket character.

    Returns:
        Mapping of opener position to closer position.
    """
    pairs: dict[int, int] = {}
    stack: list[int] = []
    for i, ch in enumerate(masked):
        if ch == opener:
            stack.append(i)
        elif ch == closer and stack:
            pairs[stack.pop()] = i
    return pairs


def extract_first_argument(text: str, start: int) -> str | None:
    """Extract the first argument of a call.

    Args:
        text: Script text.
        start: Position immediately after the call's opening ``(``.

    Returns:
        The raw argument text up to the first top-level ``,`` or the matching
        ``)``, or None if the call is never closed.
    """
    depth = 0
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in _QUOTES:
            i = _string_end(text, i)
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            if depth == 0:
                return text[start:i]
            depth -= 1
        elif ch == "," and depth == 0:
            return text[start:i]
        i += 1
    return None


def extract_assignment_expression(text: str, start: int) -> str:
    """Extract the right-hand side of an assignment.

    The expression ends at a top-level ``;``, at a closing bracket that was
    not opened inside the expression, or at a line break. A line break is a
    continuation when the expression so far ends with ``+`` or the next
    non-blank content starts with ``+``.

    Args:
        text: Script text.
        start: Position just after the ``=``.

    Returns:
        The stripped expression text.
    """
    depth = 0
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if ch in _QUOTES:
            i = _string_end(text, i)
            continue
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            if depth == 0:
                return text[start:i].strip()
            depth -= 1
        elif ch == ";" and depth == 0:
            return text[start:i].strip()
        elif ch in "\r\n":
            so_far = text[start:i].rstrip()
            j = i
            while j < n and text[j] in " \t\r\n":
                j += 1
            if not so_far.endswith("+") and not text.startswith("+", j):
                return so_far.strip()
            i = j
            continue
        i += 1
    return text[start:].strip()


def split_concat_parts(expr: str) -> list[str]:
    """Split a concatenation on top-level ``+`` operators.

    Parts are returned untrimmed. A trailing blank part is dropped.
    """
    parts: list[str] = []
    depth = 0
    current = 0
    i = 0
    n = len(expr)
    while i < n:
        ch = expr[i]
        if ch in _QUOTES:
            i = _string_end(expr, i)
            continue
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS:
            depth = max(depth - 1, 0)
        elif ch == "+" and depth == 0:
            parts.append(expr[current:i])
            current = i + 1
        i += 1
    tail = expr[current:]
    if tail.strip():
        parts.append(tail)
    return parts


def find_call_name(text: str) -> str | None:
    """Return the identifier of the first call in ``text``, ignoring string contents."""
    if not text:
        return None
    match = _CALL_RE.search(mask_strings(text))
    return match.group(1) if match else None
