"""Tests for blur validation."""

import inspect
from collections.abc import Mapping
from types import MappingProxyType

from acroscript.context import ScriptContext
from acroscript.fields import new_field
from acroscript.validators import (
    build_blur_validators,
    validate_bsn,
    validate_date_part,
    validate_value,
)

SCRIPT = """
var IDS_REQUIRED = "Dit veld is verplicht.";
var IDS_VELD = "Ongeldig getal.";
var IDS_COMPLETE = "Vul alle vakjes in.";
var IDS_DD = "Dag moet tussen 1 en 31 liggen.";

function elfCheck(name, type) {
    var v = event.value;
    if (v.length != 9) { app.alert("Het BSN moet 9 cijfers hebben."); return; }
    if (!proef(v)) { app.alert("Het BSN is ongeldig."); }
}

function checkDate(name) {
    app.alert("Ongeldige datum.");
}

function fieldComplete(name) {
    app.alert("Vul dit veld in.");
}
"""


def test_validate_bsn():
    assert validate_bsn("111222333") is None
    assert validate_bsn("123456782") is None
    assert validate_bsn("123") == "BSN must be exactly 9 digits."
    assert validate_bsn("123456789") == "Invalid BSN number."
    messages = ["length", "check"]
    assert validate_bsn("123", messages) == "length"
    assert validate_bsn("123456789", messages) == "check"
    assert validate_bsn("123456789", ["only"]) == "only"


def test_validate_bsn_ignores_separators():
    assert validate_bsn("1112.22.333") is None


def test_validate_date_part():
    assert validate_date_part("15", "datum.dd") is None
    assert validate_date_part("32", "datum.dd") == "Invalid day (1-31)."
    assert validate_date_part("13", "datum.mm") == "Invalid month (1-12)."
    assert validate_date_part("1850", "datum.jaar") == "Invalid year."
    assert validate_date_part("50", "datum.jaar") is None
    assert validate_date_part("abc", "datum.dd") == "Invalid value."


def test_validate_date_part_message_precedence():
    constants = {"IDS_DD": "Dag fout"}
    assert validate_date_part("32", "datum.dd", (), constants) == "Dag fout"
    assert validate_date_part("32", "datum.dd", ["Eigen"], constants) == "Eigen"


def test_build_blur_validators_bsn():
    context = ScriptContext(SCRIPT)
    field = new_field("bsn", actions={"Blur": ["elfCheck(event.target.name,'bsn');"]})
    validators = build_blur_validators(field, context)
    assert len(validators) == 1
    assert validators[0]("123") == "Het BSN moet 9 cijfers hebben."
    assert validators[0]("123456789") == "Het BSN is ongeldig."
    assert validators[0]("111222333") is None
    assert validators[0]("") is None


def test_build_blur_validators_comb():
    context = ScriptContext(SCRIPT)
    field = new_field("postcode", comb=True, max_len=6)
    validators = build_blur_validators(field, context)
    assert len(validators) == 1
    assert validators[0]("12") == "Vul alle vakjes in."
    assert validators[0]("123456") is None
    assert validators[0]("") is None


def test_build_blur_validators_comb_default_message():
    field = new_field("code", comb=True, max_len=4)
    validators = build_blur_validators(field, ScriptContext())
    assert validators[0]("1") == "This field requires 4 characters."


def test_build_blur_validators_range():
    context = ScriptContext(SCRIPT)
    field = new_field("aantal", actions={"Validate": ["AFRange_Validate(true, 1, true, 10);"]})
    validators = build_blur_validators(field, context)
    assert len(validators) == 1
    assert validators[0]("0") == "Value must be at least 1."
    assert validators[0]("11") == "Value must be at most 10."
    assert validators[0]("5") is None
    assert validators[0]("abc") == "Ongeldig getal."


def test_build_blur_validators_implicit_date_part():
    context = ScriptContext(SCRIPT)
    field = new_field("geboorte.dd")
    validators = build_blur_validators(field, context)
    assert len(validators) == 1
    assert validators[0]("40") == "Dag moet tussen 1 en 31 liggen."


def test_build_blur_validators_check_date_replaces_implicit():
    context = ScriptContext(SCRIPT)
    field = new_field("geboorte.dd", actions={"Blur": ["checkDate(event.target.name);"]})
    validators = build_blur_validators(field, context)
    assert len(validators) == 1
    assert validators[0]("40") == "Ongeldige datum."


def test_build_blur_validators_none():
    assert build_blur_validators(new_field("plain"), ScriptContext(SCRIPT)) == []


def test_validate_value_required():
    context = ScriptContext(SCRIPT)
    field = new_field("naam", required=True)
    assert validate_value(field, "  ", context) == "Dit veld is verplicht."
    assert validate_value(field, "Jan", context) is None
    assert validate_value(field, "", context, required=False) is None


def test_validate_value_required_default_message():
    field = new_field("naam")
    assert validate_value(field, "", ScriptContext(), required=True) == "This field is required."


def test_validate_value_field_complete():
    context = ScriptContext(SCRIPT)
    field = new_field("adres", actions={"Blur": ["fieldComplete(event.target.name);"]})
    assert validate_value(field, "", context) == "Vul dit veld in."
    assert validate_value(field, "Straat 1", context) is None


def test_validate_value_first_message_wins():
    context = ScriptContext(SCRIPT)
    field = new_field(
        "bsn",
        comb=True,
        max_len=9,
        actions={"Blur": ["elfCheck(event.target.name,'bsn');"]},
    )
    assert validate_value(field, "123", context) == "Vul alle vakjes in."
    assert validate_value(field, "123456789", context) == "Het BSN is ongeldig."


def test_validate_date_part_reads_context_constants():
    constants = MappingProxyType({"IDS_DD": "Dag moet tussen 1 en 31 liggen."})
    assert validate_date_part("32", "datum.dd", constants=constants) == "Dag moet tussen 1 en 31 liggen."
    annotation = inspect.signature(validate_date_part).parameters["constants"].annotation
    assert annotation == Mapping[str, str] | None
