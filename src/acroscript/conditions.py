"""Conditional branch walking and condition evaluation for toggle scripts."""

import re
from typing import NamedTuple

from .scanner import extract_brace_block, mask_strings, match_brackets

# Export value of an unchecked checkbox or radio group
OFF = "Off"

# Comparison values up to this length also match as a prefix of the toggle value
PREFIX_MATCH_MAX_LEN = 3

_IF_RE = re.compile(r"(?<![\w$.])if\s*\(", re.ASCII)
_ELSE_IF_RE = re.compile(r"\s*else\s+if\s*\(")
_ELSE_RE = re.compile(r"\s*else\s*\{")
_OPEN_BRACE_RE = re.compile(r"\s*\{")
_EQ_RE = re.compile(r"(?<![!=<>])===?\s*[\"']([^\"']*)[\"']")
_NEQ_RE = re.compile(r"!==?\s*[\"']([^\"']*)[\"']")


class Branch(NamedTuple):
    """One branch of an if / else if / else chain.

    ``condition`` is None for the trailing ``else``.
    """

    condition: str | None
    body: str


BranchChain = list[Branch]


def normalize_toggle_value(raw: str | None) -> str:
    """Normalize the value reported by a checkbox or radio widget.

    A missing value and the HTML default ``"on"`` both mean unchecked and
    become :data:`OFF`.
    """
    if raw is None or raw == "on":
        return OFF
    return raw


def _condition_at(
    text: str, masked: str, pos: int, parens: dict[int, int]
) -> tuple[str, int] | None:
    """Read ``COND ) {`` starting just after an opening parenthesis.

    Returns the condition text and the position after the ``{``, or None
    when the group is unterminated or isn't followed by a block.
    """
    close = parens.get(pos - 1)
    if close is None:
        return None
    brace = _OPEN_BRACE_RE.match(masked, close + 1)
    if not brace:
        return None
    return text[pos:close].strip(), brace.end()


def parse_all_chains(body: str | None) -> list[BranchChain]:
    """Parse the top-level if / else if / else chains of a code body.

    Only chains at the top level of ``body`` are returned: once an ``if`` is
    found its whole chain, trailing ``else`` included, is consumed before
    scanning resumes, so ``if`` statements nested inside a branch are left in
    that branch's body.

    Args:
        body: Code to scan.

    Returns:
        Chains in source order, each a list of branches in source order.
    """
    chains: list[BranchChain] = []
    if not body:
        return chains

    masked = mask_strings(body)
    parens = match_brackets(masked, "(", ")")
    n = len(body)
    pos = 0
    while pos < n:
        match = _IF_RE.search(masked, pos)
        if not match:
            break
        head = _condition_at(body, masked, match.end(), parens)
        if head is None:
            # if without a braced block
            pos = match.end()
            continue

        condition, block_start = head
        content, pos = extract_brace_block(body, block_start)
        chain: BranchChain = [Branch(condition, content)]

        while pos < n:
            else_if = _ELSE_IF_RE.match(masked, pos)
            if else_if:
                head = _condition_at(body, masked, else_if.end(), parens)
                if head is None:
                    break
                condition, block_start = head
                content, pos = extract_brace_block(body, block_start)
                chain.append(Branch(condition, content))
                continue

            else_ = _ELSE_RE.match(masked, pos)
            if else_:
                content, pos = extract_brace_block(body, else_.end())
                chain.append(Branch(None, content))
            break

        chains.append(chain)

    return chains


def _is_off(value: str) -> bool:
    return value == OFF or value == ""


def _equals(expected: str, value: str, prefix_max_len: int) -> bool:
    """Form-value equality: exact, or a short export code matching as a prefix."""
    if _is_off(expected):
        return _is_off(value)
    if value == expected:
        return True
    if len(expected) <= prefix_max_len and len(expected) < len(value):
        return value.lower().startswith(expected.lower())
    return False


def evaluate_condition(
    condition: str | None,
    value: str,
    prefix_max_len: int = PREFIX_MATCH_MAX_LEN,
) -> bool:
    """Evaluate a branch condition against the toggled control's value.

    This is a pattern match, not an expression evaluator. ``&&`` is split
    before ``||``, so mixed conditions are only approximated. A comparison
    ``== "X"`` is true when ``X`` and ``value`` are both off (``""`` or
    ``"Off"``), when they are equal, or when ``X`` is a short export code
    (at most ``prefix_max_len`` characters, shorter than ``value``) that
    prefixes ``value`` case-insensitively. ``!= "X"`` is the negation. A
    condition with neither operator is true unless ``value`` is off.

    Args:
        condition: Condition text from between the ``if`` parentheses.
        value: Normalized toggle value.
        prefix_max_len: Longest comparison value that may prefix-match.

    Returns:
        Whether the branch should be taken.
    """
    condition = condition or ""
    value = value or ""

    if "&&" in condition:
        return all(
            evaluate_condition(part.strip(), value, prefix_max_len)
            for part in condition.split("&&")
        )
    if "||" in condition:
        return any(
            evaluate_condition(part.strip(), value, prefix_max_len)
            for part in condition.split("||")
        )

    eq = _EQ_RE.search(condition)
    if eq:
        return _equals(eq.group(1), value, prefix_max_len)

    neq = _NEQ_RE.search(condition)
    if neq:
        return not _equals(neq.group(1), value, prefix_max_len)

    return not _is_off(value)
