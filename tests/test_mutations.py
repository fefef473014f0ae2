"""Tests for field mutation extraction."""

from acroscript.mutations import (
    DisplayState,
    FieldMutation,
    MutationProperty,
    extract_conditional,
    extract_flat,
    field_matches,
    matching_fields,
    mutations_for_action,
    parse_field_changes,
)

TOGGLE_BODY = """
    var v = event.target.value;
    if (v == "Ja") {
        this.getField("partner").display = display.visible;
        this.getField("partner").required = true;
    } else {
        this.getField("partner").display = display.hidden;
        this.getField("partner").required = false;
        this.getField("partner").value = "";
    }
"""


def test_extract_flat_all_statement_kinds():
    code = """
        getField("a").display = display.hidden;
        this.getField('b').display = display.noView;
        getField("c").display = display.noPrint;
        getField("d").readonly = true;
        getField("e").required = false;
        getField("f").value = "x\\ny";
    """
    assert extract_flat(code) == [
        FieldMutation("a", MutationProperty.DISPLAY, DisplayState.HIDDEN),
        FieldMutation("b", MutationProperty.DISPLAY, DisplayState.HIDDEN),
        FieldMutation("c", MutationProperty.DISPLAY, DisplayState.VISIBLE),
        FieldMutation("d", MutationProperty.READONLY, True),
        FieldMutation("e", MutationProperty.REQUIRED, False),
        FieldMutation("f", MutationProperty.VALUE, "x\ny"),
    ]


def test_extract_flat_source_order():
    code = 'getField("x").required = true; getField("x").display = display.visible;'
    properties = [mutation.property for mutation in extract_flat(code)]
    assert properties == [MutationProperty.REQUIRED, MutationProperty.DISPLAY]


def test_extract_flat_ignores_reads_and_comparisons():
    code = 'if (getField("a").value == "x") { var r = getField("b").readonly; }'
    assert extract_flat(code) == []


def test_extract_flat_empty():
    assert extract_flat("") == []
    assert extract_flat(None) == []


def test_extract_conditional_takes_matching_branch():
    assert extract_conditional(TOGGLE_BODY, "Ja") == [
        FieldMutation("partner", MutationProperty.DISPLAY, DisplayState.VISIBLE),
        FieldMutation("partner", MutationProperty.REQUIRED, True),
    ]


def test_extract_conditional_takes_else_branch():
    mutations = extract_conditional(TOGGLE_BODY, "Off")
    assert [mutation.value for mutation in mutations] == [DisplayState.HIDDEN, False, ""]


def test_extract_conditional_first_match_wins():
    code = """
        if (v == "A") { getField("one").display = display.visible; }
        else if (v == "AB") { getField("two").display = display.visible; }
    """
    mutations = extract_conditional(code, "AB")
    assert [mutation.field_name for mutation in mutations] == ["one"]


def test_extract_conditional_no_branch_taken():
    code = 'if (v == "A") { getField("one").display = display.visible; }'
    assert extract_conditional(code, "B") == []


def test_extract_conditional_nested_chains():
    code = """
        if (v != "Off") {
            if (v == "Ja") { getField("ja").display = display.visible; }
            else { getField("other").display = display.visible; }
        }
    """
    assert [m.field_name for m in extract_conditional(code, "Ja")] == ["ja"]
    assert [m.field_name for m in extract_conditional(code, "Nee")] == ["other"]
    assert extract_conditional(code, "Off") == []


def test_extract_conditional_without_chains_is_flat():
    code = 'getField("a").readonly = true;'
    assert extract_conditional(code, "Off") == extract_flat(code)


def test_parse_field_changes_falls_back_to_flat():
    code = """
        if (v == "A") { getField("one").display = display.visible; }
        getField("two").display = display.hidden;
    """
    mutations = parse_field_changes(code, "B")
    assert [mutation.field_name for mutation in mutations] == ["one", "two"]


def test_mutations_for_action_uses_function_body():
    functions = {"toggle": TOGGLE_BODY}
    mutations = mutations_for_action("toggle(event.target.name);", "Ja", functions)
    assert mutations[0] == FieldMutation("partner", MutationProperty.DISPLAY, DisplayState.VISIBLE)


def test_mutations_for_action_prefix_match():
    functions = {"toggle": TOGGLE_BODY}
    mutations = mutations_for_action("toggle();", "JaJa", functions)
    assert mutations[0].value == DisplayState.VISIBLE
    mutations = mutations_for_action("toggle();", "NeeJa", functions)
    assert mutations[0].value == DisplayState.HIDDEN


def test_mutations_for_action_inline_code():
    action = 'if (event.target.value != "Off") { getField("x").display = display.visible; }'
    assert len(mutations_for_action(action, "Ja", {})) == 1
    assert mutations_for_action(action, "Off", {}) == [
        FieldMutation("x", MutationProperty.DISPLAY, DisplayState.VISIBLE)
    ]


def test_mutations_for_action_unknown_function():
    assert mutations_for_action("missing();", "Ja", {"toggle": TOGGLE_BODY}) == []


def test_mutations_for_action_empty():
    assert mutations_for_action("", "Ja", {}) == []
    assert mutations_for_action(None, "Ja", None) == []


def test_field_mutation_as_dict():
    mutation = FieldMutation("a", MutationProperty.DISPLAY, DisplayState.HIDDEN)
    assert mutation.as_dict() == {"field": "a", "property": "display", "value": "hidden"}
    mutation = FieldMutation("b", MutationProperty.REQUIRED, True)
    assert mutation.as_dict() == {"field": "b", "property": "required", "value": True}


def test_field_matches():
    assert field_matches("partner", "partner")
    assert field_matches("partner", "partner.name")
    assert not field_matches("partner", "partners")
    assert not field_matches("partner.name", "partner")


def test_matching_fields():
    mutation = FieldMutation("group", MutationProperty.READONLY, True)
    names = ["group.a", "other", "group", "groupie", "group.b.c"]
    assert matching_fields(mutation, names) == ["group.a", "group", "group.b.c"]
    assert matching_fields(FieldMutation("none", MutationProperty.READONLY, True), names) == []
