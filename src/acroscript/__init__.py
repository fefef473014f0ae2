"""acroscript - static analysis of PDF form scripts."""

from importlib.metadata import version

__version__ = version("acroscript")

from .conditions import (
    OFF,
    Branch,
    evaluate_condition,
    normalize_toggle_value,
    parse_all_chains,
)
from .context import ScriptContext
from .core import (
    process,
    validate_pdf,
    get_document_script,
    get_form_fields,
    analyze_fields,
    ValidationError,
    ScriptReport,
    FieldReport,
)
from .fields import FormField
from .messages import extract_alert_messages, get_messages_for_action
from .mutations import (
    DisplayState,
    FieldMutation,
    MutationProperty,
    extract_conditional,
    extract_flat,
    mutations_for_action,
)
from .resolver import resolve_expression
from .restrictions import (
    DatePart,
    Restriction,
    RestrictionKind,
    detect_date_part,
    detect_keystroke_restriction,
    parse_range_validate,
)
from .tables import parse_constants, parse_functions
from .validators import build_blur_validators, validate_value

__all__ = [
    "OFF",
    "Branch",
    "evaluate_condition",
    "normalize_toggle_value",
    "parse_all_chains",
    "ScriptContext",
    "process",
    "validate_pdf",
    "get_document_script",
    "get_form_fields",
    "analyze_fields",
    "ValidationError",
    "ScriptReport",
    "FieldReport",
    "FormField",
    "extract_alert_messages",
    "get_messages_for_action",
    "DisplayState",
    "FieldMutation",
    "MutationProperty",
    "extract_conditional",
    "extract_flat",
    "mutations_for_action",
    "resolve_expression",
    "DatePart",
    "Restriction",
    "RestrictionKind",
    "detect_date_part",
    "detect_keystroke_restriction",
    "parse_range_validate",
    "parse_constants",
    "parse_functions",
    "build_blur_validators",
    "validate_value",
    "__version__",
]
