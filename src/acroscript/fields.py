"""Form field description shared by the PDF front end and the validators."""

from typing import TypedDict


class FormField(TypedDict):
    """A terminal form field and its JavaScript actions.

    ``actions`` maps a trigger name (``Action``, ``Blur``, ``Keystroke``,
    ``Format``, ``Validate``, ...) to the source text of each script
    attached to it.
    """

    name: str
    field_type: str | None
    export_values: list[str]
    actions: dict[str, list[str]]
    read_only: bool
    required: bool
    comb: bool
    max_len: int | None


def new_field(name: str, **kwargs) -> FormField:
    """Create a FormField with defaults for every key not given."""
    field = FormField(
        name=name,
        field_type=None,
        export_values=[],
        actions={},
        read_only=False,
        required=False,
        comb=False,
        max_len=None,
    )
    field.update(kwargs)
    return field


def first_action(field: FormField, trigger: str) -> str:
    """Source of the first script for ``trigger``, or an empty string."""
    scripts = field["actions"].get(trigger) or []
    return scripts[0] if scripts else ""
