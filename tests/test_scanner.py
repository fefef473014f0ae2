"""Tests for the quote-aware scanning helpers."""

from acroscript.scanner import (
    decode_js_string,
    extract_assignment_expression,
    extract_brace_block,
    extract_first_argument,
    extract_paren_block,
    find_call_name,
    is_identifier,
    mask_strings,
    match_brackets,
    match_string_literal,
    split_concat_parts,
)


def test_decode_js_string_simple_escapes():
    assert decode_js_string(r"a\nb\tc") == "a\nb\tc"
    assert decode_js_string(r"say \"hi\"") == 'say "hi"'
    assert decode_js_string(r"it\'s") == "it's"
    assert decode_js_string(r"back\\slash") == "back\\slash"


def test_decode_js_string_unicode_escape():
    assert decode_js_string(r"caf\u00e9") == "caf\u00e9"


def test_decode_js_string_unknown_escape_kept():
    assert decode_js_string(r"a\qb") == "a\\qb"


def test_decode_js_string_escaped_backslash_before_n():
    # \\n is a backslash followed by n, not a newline
    assert decode_js_string(r"\\n") == "\\n"


def test_decode_js_string_empty():
    assert decode_js_string("") == ""


def test_match_string_literal():
    assert match_string_literal('"hello"') == "hello"
    assert match_string_literal("  'x y'  ") == "x y"
    assert match_string_literal('"a" + "b"') is None
    assert match_string_literal("NAME") is None


def test_is_identifier():
    assert is_identifier("IDS_VELD")
    assert is_identifier(" $x1 ")
    assert not is_identifier("1abc")
    assert not is_identifier("a.b")
    assert not is_identifier("")


def test_mask_strings_keeps_length_and_quotes():
    text = 'x = "a{b}c"; y = \'(\';'
    masked = mask_strings(text)
    assert len(masked) == len(text)
    assert "{" not in masked
    assert "(" not in masked
    assert masked.count('"') == 2
    assert masked.count("'") == 2


def test_mask_strings_escaped_quote():
    text = r'"a\"}" }'
    masked = mask_strings(text)
    assert masked.endswith('" }')
    assert masked.count("}") == 1


def test_mask_strings_unterminated_stops_at_newline():
    text = 'x = "abc\n{ y }'
    masked = mask_strings(text)
    assert masked.endswith("\n{ y }")


def test_extract_brace_block_nested():
    text = "{ a { b } c } rest"
    content, end = extract_brace_block(text, 1)
    assert content == " a { b } c "
    assert text[end:] == " rest"


def test_extract_brace_block_ignores_braces_in_strings():
    text = 'function f() { var s = "}"; return s; } after'
    start = text.index("{") + 1
    content, end = extract_brace_block(text, start)
    assert content == ' var s = "}"; return s; '
    assert text[end:] == " after"


def test_extract_brace_block_unterminated_runs_to_end():
    text = "{ a { b"
    content, end = extract_brace_block(text, 1)
    assert content == " a { b"
    assert end == len(text)


def test_extract_brace_block_only_unmatched_brace():
    content, end = extract_brace_block("{", 1)
    assert content == ""
    assert end == 1


def test_extract_paren_block():
    text = '(a == ")" && (b)) {'
    content, end = extract_paren_block(text, 1)
    assert content == 'a == ")" && (b)'
    assert text[end:] == " {"


def test_extract_first_argument():
    text = 'app.alert("a, b", 3);'
    start = text.index("(") + 1
    assert extract_first_argument(text, start) == '"a, b"'


def test_extract_first_argument_nested_call():
    text = "app.alert(msg(1, 2));"
    start = text.index("(") + 1
    assert extract_first_argument(text, start) == "msg(1, 2)"


def test_extract_first_argument_unclosed():
    text = 'app.alert("x"'
    assert extract_first_argument(text, text.index("(") + 1) is None


def test_extract_assignment_expression_semicolon():
    text = 'msg = "a;b" + X; other = 1;'
    start = text.index("=") + 1
    assert extract_assignment_expression(text, start) == '"a;b" + X'


def test_extract_assignment_expression_continuation_lines():
    text = 'msg = "a" +\n    "b"\n  + "c"\nnext()'
    start = text.index("=") + 1
    assert extract_assignment_expression(text, start) == '"a" +\n    "b"\n  + "c"'


def test_extract_assignment_expression_ends_at_line_break():
    text = 'msg = "a"\nfoo()'
    start = text.index("=") + 1
    assert extract_assignment_expression(text, start) == '"a"'


def test_extract_assignment_expression_unopened_closer():
    text = 'if (x) { msg = "a" }'
    start = text.index("=") + 1
    assert extract_assignment_expression(text, start) == '"a"'


def test_split_concat_parts():
    parts = split_concat_parts('"a+b" + X + f(1 + 2)')
    assert [part.strip() for part in parts] == ['"a+b"', "X", "f(1 + 2)"]


def test_split_concat_parts_trailing_plus():
    parts = split_concat_parts('"a" +')
    assert [part.strip() for part in parts] == ['"a"']


def test_find_call_name():
    assert find_call_name("elfCheck(event.target.name,'bsn');") == "elfCheck"
    assert find_call_name("  toggle ( 1 )") == "toggle"
    assert find_call_name('"notACall(" + x') is None
    assert find_call_name("") is None
    assert find_call_name(None) is None


def test_decode_js_string_core_escapes_together():
    assert decode_js_string(r'a\nb\"c\\d') == 'a\nb"c\\d'


def test_match_brackets_pairs_and_skips_unterminated():
    text = 'f(a, ")", g(b)) + h('
    pairs = match_brackets(mask_strings(text), "(", ")")
    assert pairs == {1: 14, 11: 13}
    assert text.index("h(") + 1 not in pairs


def test_match_brackets_agrees_with_extract_brace_block():
    text = '{ a { "}" } b } {'
    pairs = match_brackets(mask_strings(text), "{", "}")
    content, end = extract_brace_block(text, 1)
    assert pairs[0] == end - 1
    assert text[1:pairs[0]] == content
