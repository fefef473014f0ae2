"""PDF front end: collect form scripts with pypdf and report what they do."""

import hashlib
import logging
import os
from pathlib import Path
from typing import TypedDict

import defang
import magic
from pypdf import PdfReader
from pypdf.generic import ArrayObject, DictionaryObject, IndirectObject

from .conditions import OFF
from .context import ScriptContext
from .fields import FormField, first_action, new_field
from .mutations import matching_fields
from .restrictions import detect_keystroke_restriction, parse_range_validate

logger = logging.getLogger(__name__)


class MutationReport(TypedDict):
    """A field mutation and the fields it resolves to."""

    field: str
    property: str
    value: str | bool
    targets: list[str]


class RestrictionReport(TypedDict):
    kind: str
    input_mode: str
    decimals: int
    special_type: int
    char_class: str | None


class RangeReport(TypedDict):
    has_min: bool
    min: float
    has_max: bool
    max: float


class FieldReport(TypedDict):
    """Script behavior found for one form field."""

    name: str
    field_type: str | None
    export_values: list[str]
    triggers: list[str]
    toggle: dict[str, list[MutationReport]]
    messages: list[str]
    restriction: RestrictionReport | None
    range: RangeReport | None


class ScriptReport(TypedDict):
    """Report structure for processed PDF files."""

    filename: str
    filesize: int
    md5: str
    sha1: str
    sha256: str
    script_length: int
    constants: dict[str, str]
    functions: list[str]
    fields: list[FieldReport]


class ValidationError(Exception):
    """Raised when file validation fails."""


# Additional-action keys of a form field, by trigger name
_FIELD_TRIGGERS = [
    ("/E", "Enter"),
    ("/X", "Exit"),
    ("/D", "MouseDown"),
    ("/U", "MouseUp"),
    ("/Fo", "Focus"),
    ("/Bl", "Blur"),
    ("/K", "Keystroke"),
    ("/F", "Format"),
    ("/V", "Validate"),
    ("/C", "Calculate"),
]

# Triggers that fire when a checkbox or radio button changes
TOGGLE_TRIGGERS = ("Action", "MouseUp")

# Triggers whose scripts pop validation messages
VALIDATION_TRIGGERS = ("Blur", "Validate")

# Field flag bits (Ff), zero-based
_FF_READ_ONLY = 1 << 0
_FF_REQUIRED = 1 << 1
_FF_COMB = 1 << 24

HASH_ALGORITHMS = ("md5", "sha1", "sha256")
_CHUNK_SIZE = 65536
_SNIFF_SIZE = 2048


def validate_pdf(file_path: str | Path) -> Path:
    """Check that a path names a readable, non-empty PDF file.

    The type is sniffed from the leading bytes with python-magic; the file
    extension is never trusted.

    Args:
        file_path: Path to the file to validate.

    Returns:
        The validated Path object.

    Raises:
        ValidationError: If the file is missing, unreadable, empty, or not a PDF.
    """
    path = Path(file_path)

    if not path.exists():
        raise ValidationError(f"File not found: {path}")
    if not path.is_file():
        raise ValidationError(f"Not a file: {path}")
    if not os.access(path, os.R_OK):
        raise ValidationError(f"File not readable: {path}")

    with open(path, "rb") as f:
        head = f.read(_SNIFF_SIZE)
    if not head:
        raise ValidationError(f"Empty file: {path}")

    mime_type = magic.from_buffer(head, mime=True)
    if mime_type != "application/pdf":
        raise ValidationError(
            f"Invalid file type: expected PDF, got {mime_type}. "
            "acroscript only accepts PDF files."
        )

    return path


def _resolve(obj):
    return obj.get_object() if hasattr(obj, "get_object") else obj


def _extract_js_code(action: DictionaryObject) -> str | None:
    """Extract JavaScript code from an action dictionary."""
    js = action.get("/JS")
    if js is None:
        return None

    js = _resolve(js)

    # Handle stream objects
    if hasattr(js, "get_data"):
        try:
            return js.get_data().decode("utf-8", errors="replace")
        except TimeoutError:
            raise
        except Exception:
            return str(js)

    return str(js)


def _first_visit(obj, visited: set) -> bool:
    """Mark ``obj`` as visited, returning False if it was already seen."""
    ref = obj if isinstance(obj, IndirectObject) else getattr(obj, "indirect_reference", None)
    key = (ref.idnum, ref.generation) if ref is not None else id(obj)
    if key in visited:
        return False
    visited.add(key)
    return True


def _collect_js(action, scripts: list[str], visited: set | None = None, depth: int = 0) -> None:
    """Append the code of a JavaScript action and of its /Next chain."""
    if visited is None:
        visited = set()
    if depth > 32 or not _first_visit(action, visited):
        return
    action = _resolve(action)
    if not isinstance(action, DictionaryObject):
        return

    action_type = action.get("/S")
    if action_type and str(action_type) in ("/JavaScript", "/JS"):
        code = _extract_js_code(action)
        if code:
            scripts.append(code)

    if "/Next" in action:
        next_action = action.get("/Next")
        chain = _resolve(next_action)
        if isinstance(chain, ArrayObject):
            for item in chain:
                _collect_js(item, scripts, visited, depth + 1)
        else:
            _collect_js(next_action, scripts, visited, depth + 1)


def _collect_name_tree(node, scripts: list[str], visited: set, depth: int = 0) -> None:
    """Collect the JavaScript actions of a /JavaScript name tree node."""
    if depth > 32 or not _first_visit(node, visited):
        return
    node = _resolve(node)
    if not isinstance(node, DictionaryObject):
        return

    names = _resolve(node.get("/Names"))
    if isinstance(names, ArrayObject):
        # Names array is [name1, obj1, name2, obj2, ...]
        for i in range(1, len(names), 2):
            _collect_js(names[i], scripts, visited)

    kids = _resolve(node.get("/Kids"))
    if isinstance(kids, ArrayObject):
        for kid in kids:
            _collect_name_tree(kid, scripts, visited, depth + 1)


def _get_root(reader: PdfReader) -> DictionaryObject | None:
    if reader.trailer and "/Root" in reader.trailer:
        root = _resolve(reader.trailer["/Root"])
        if isinstance(root, DictionaryObject):
            return root
    return None


def get_document_script(file_path: str | Path) -> str:
    """Collect the document-level JavaScript of a PDF.

    Scripts from the /Names /JavaScript tree come first, followed by a
    JavaScript /OpenAction, joined with newlines.

    Args:
        file_path: Path to the PDF file.

    Returns:
        The combined script text, empty if there is none.

    Raises:
        ValidationError: If the file isn't a valid, readable PDF.
    """
    path = validate_pdf(file_path)
    scripts: list[str] = []
    visited: set = set()

    try:
        reader = PdfReader(str(path))
        root = _get_root(reader)
        if root is not None:
            names = _resolve(root.get("/Names"))
            if isinstance(names, DictionaryObject) and "/JavaScript" in names:
                _collect_name_tree(names.get("/JavaScript"), scripts, visited)

            if "/OpenAction" in root:
                _collect_js(root.get("/OpenAction"), scripts, visited)
    except TimeoutError:
        raise
    except Exception:
        # PDF is too malformed to parse
        logger.debug("Could not read document script from %s", path, exc_info=True)

    return "\n".join(scripts)


def _field_actions(obj: DictionaryObject, actions: dict[str, list[str]]) -> None:
    """Merge the JavaScript actions of a field or widget into ``actions``."""
    found: list[tuple[str, list[str]]] = []

    if "/A" in obj:
        scripts: list[str] = []
        _collect_js(obj.get("/A"), scripts)
        found.append(("Action", scripts))

    aa = _resolve(obj.get("/AA"))
    if isinstance(aa, DictionaryObject):
        for key, trigger in _FIELD_TRIGGERS:
            if key in aa:
                scripts = []
                _collect_js(aa.get(key), scripts)
                found.append((trigger, scripts))

    for trigger, scripts in found:
        existing = actions.setdefault(trigger, [])
        for code in scripts:
            if code not in existing:
                existing.append(code)


def _export_values(widget: DictionaryObject, values: list[str]) -> None:
    """Merge the on-state appearance names of a button widget into ``values``."""
    ap = _resolve(widget.get("/AP"))
    if not isinstance(ap, DictionaryObject):
        return
    normal = _resolve(ap.get("/N"))
    if not isinstance(normal, DictionaryObject):
        return
    for state in normal.keys():
        value = str(state).lstrip("/")
        if value != OFF and value not in values:
            values.append(value)


def _walk_field(
    field: DictionaryObject,
    parent_name: str,
    inherited: dict,
    fields: list[FormField],
    visited: set,
    depth: int = 0,
) -> None:
    """Walk a field and its /Kids, collecting terminal fields.

    Kids already in ``visited`` are skipped, so a /Kids cycle ends the walk.
    """
    if depth > 32:
        return

    partial = field.get("/T")
    if partial is not None:
        name = f"{parent_name}.{partial}" if parent_name else str(partial)
    else:
        name = parent_name

    inherited = dict(inherited)
    for key in ("/FT", "/Ff", "/MaxLen"):
        if key in field:
            inherited[key] = _resolve(field[key])

    kids = _resolve(field.get("/Kids"))
    kid_objects = []
    if isinstance(kids, ArrayObject):
        kid_objects = [_resolve(kid) for kid in kids if _first_visit(kid, visited)]
        kid_objects = [kid for kid in kid_objects if isinstance(kid, DictionaryObject)]

    child_fields = [kid for kid in kid_objects if "/T" in kid]
    if child_fields:
        for kid in child_fields:
            _walk_field(kid, name, inherited, fields, visited, depth + 1)
        return

    # Terminal field: kids without /T are its widgets
    widgets = kid_objects or [field]
    actions: dict[str, list[str]] = {}
    export_values: list[str] = []
    _field_actions(field, actions)
    for widget in widgets:
        if widget is not field:
            _field_actions(widget, actions)
        _export_values(widget, export_values)

    try:
        flags = int(inherited.get("/Ff", 0))
    except (ValueError, TypeError):
        flags = 0
    try:
        max_len = int(inherited["/MaxLen"]) if "/MaxLen" in inherited else None
    except (ValueError, TypeError):
        max_len = None

    field_type = inherited.get("/FT")
    fields.append(new_field(
        name,
        field_type=str(field_type).lstrip("/") if field_type is not None else None,
        export_values=export_values,
        actions={trigger: codes for trigger, codes in actions.items() if codes},
        read_only=bool(flags & _FF_READ_ONLY),
        required=bool(flags & _FF_REQUIRED),
        comb=bool(flags & _FF_COMB),
        max_len=max_len,
    ))


def get_form_fields(file_path: str | Path) -> list[FormField]:
    """Collect the terminal form fields of a PDF and their JavaScript actions.

    Args:
        file_path: Path to the PDF file.

    Returns:
        Fields in /AcroForm order, with fully qualified dotted names.

    Raises:
        ValidationError: If the file isn't a valid, readable PDF.
    """
    path = validate_pdf(file_path)
    fields: list[FormField] = []
    visited: set = set()

    try:
        reader = PdfReader(str(path))
        root = _get_root(reader)
        acro_form = _resolve(root.get("/AcroForm")) if root is not None else None
        if isinstance(acro_form, DictionaryObject):
            top_level = _resolve(acro_form.get("/Fields"))
            if isinstance(top_level, ArrayObject):
                for field_ref in top_level:
                    if not _first_visit(field_ref, visited):
                        continue
                    field = _resolve(field_ref)
                    if isinstance(field, DictionaryObject):
                        _walk_field(field, "", {}, fields, visited)
    except TimeoutError:
        raise
    except Exception:
        # PDF is too malformed to parse
        logger.debug("Could not read form fields from %s", path, exc_info=True)

    return fields


def _toggle_report(
    field: FormField,
    context: ScriptContext,
    field_names: list[str],
) -> dict[str, list[MutationReport]]:
    """Mutations the field's toggle actions apply, per possible value."""
    toggle_actions = [
        code for trigger in TOGGLE_TRIGGERS for code in field["actions"].get(trigger, [])
    ]
    if not toggle_actions:
        return {}

    report: dict[str, list[MutationReport]] = {}
    for value in [OFF, *field["export_values"]]:
        mutations = []
        for action in toggle_actions:
            for mutation in context.toggle_mutations(action, value):
                mutations.append(MutationReport(
                    **mutation.as_dict(),
                    targets=matching_fields(mutation, field_names),
                ))
        report[value] = mutations
    return report


def analyze_fields(fields: list[FormField], context: ScriptContext) -> list[FieldReport]:
    """Describe the script behavior of each field that has any.

    Args:
        fields: Fields from :func:`get_form_fields`.
        context: Script context built from the same document.

    Returns:
        One report per field with at least one JavaScript action.
    """
    field_names = [field["name"] for field in fields]
    reports: list[FieldReport] = []

    for field in fields:
        if not field["actions"]:
            continue

        messages: list[str] = []
        for trigger in VALIDATION_TRIGGERS:
            for action in field["actions"].get(trigger, []):
                for message in context.validation_messages(action):
                    if message not in messages:
                        messages.append(message)

        restriction = detect_keystroke_restriction(
            first_action(field, "Format"), first_action(field, "Keystroke")
        )
        limits = parse_range_validate(first_action(field, "Validate"))

        reports.append(FieldReport(
            name=field["name"],
            field_type=field["field_type"],
            export_values=field["export_values"],
            triggers=sorted(field["actions"]),
            toggle=_toggle_report(field, context, field_names),
            messages=messages,
            restriction=RestrictionReport(
                kind=restriction.kind.value,
                input_mode=restriction.input_mode,
                decimals=restriction.decimals,
                special_type=restriction.special_type,
                char_class=restriction.char_class,
            ) if restriction else None,
            range=RangeReport(**limits._asdict()) if limits else None,
        ))

    return reports


# Keys whose values are field or function identifiers, or enum names, kept raw
RAW_KEYS = frozenset({
    "name", "field", "targets", "property", "functions", "export_values",
    "triggers", "field_type", "kind", "input_mode", "char_class", "special_type",
})


def defang_value(value, raw_keys: frozenset[str] = RAW_KEYS):
    """Recursively defang the string values in a data structure.

    Values stored under a key in ``raw_keys`` are returned unchanged, so
    dotted field names such as ``form1.date.d`` survive.

    Args:
        value: A value that may be a string, list, dict, or primitive.
        raw_keys: Dict keys whose values are left as they are.

    Returns:
        The value with its document text defanged.
    """
    if value is None:
        return None
    elif isinstance(value, str):
        return defang.defang(value)
    elif isinstance(value, list):
        return [defang_value(item, raw_keys) for item in value]
    elif isinstance(value, dict):
        return {
            key: val if key in raw_keys else defang_value(val, raw_keys)
            for key, val in value.items()
        }
    else:
        # int, bool, float, etc. - return as-is
        return value


def compute_hashes(file_path: Path, algorithms: tuple[str, ...] = HASH_ALGORITHMS) -> dict[str, str]:
    """Hex digests of a file, keyed by hashlib algorithm name."""
    digests = {name: hashlib.new(name) for name in algorithms}

    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
            for digest in digests.values():
                digest.update(chunk)

    return {name: digest.hexdigest() for name, digest in digests.items()}


def process(file_path: str | Path) -> ScriptReport:
    """Process a PDF file and report the behavior of its form scripts.

    Document text in the output (messages, constants, mutation values) is
    defanged for safe handling; field and function names are kept raw.

    Args:
        file_path: Path to the PDF file to process.

    Returns:
        ScriptReport with file hashes, the document's script constants and
        functions, and the toggle mutations, validation messages and input
        restrictions of every scripted field.

    Raises:
        ValidationError: If the file isn't a valid, readable PDF.
    """
    path = validate_pdf(file_path)

    hashes = compute_hashes(path)
    script = get_document_script(path)
    fields = get_form_fields(path)

    with ScriptContext(script) as context:
        report = ScriptReport(
            filename=path.name,
            filesize=path.stat().st_size,
            md5=hashes["md5"],
            sha1=hashes["sha1"],
            sha256=hashes["sha256"],
            script_length=len(script),
            constants=dict(context.constants),
            functions=sorted(context.functions),
            fields=analyze_fields(fields, context),
        )

    # Defang document text for safe handling
    return defang_value(report)
