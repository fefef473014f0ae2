"""Per-document script context."""

import logging
from collections.abc import Mapping
from types import MappingProxyType

from .conditions import PREFIX_MATCH_MAX_LEN, normalize_toggle_value
from .messages import get_messages_for_action
from .mutations import FieldMutation, mutations_for_action
from .tables import parse_constants, parse_functions

logger = logging.getLogger(__name__)

_EMPTY: Mapping[str, str] = MappingProxyType({})


class ScriptContext:
    """Constant and function tables of one open document.

    A context is either unbuilt, in which case it behaves as if the document
    had no constants or functions, or built from the document's script text.
    Both tables are replaced together, so a reader never sees one document's
    constants next to another document's functions. Create one context per
    document; never share one between documents.

    Args:
        script: Document-level script text. When given, the tables are built
            immediately.
        prefix_max_len: Longest comparison value that may prefix-match a
            toggle value.
    """

    def __init__(self, script: str | None = None, prefix_max_len: int = PREFIX_MATCH_MAX_LEN):
        self.prefix_max_len = prefix_max_len
        self._tables: tuple[Mapping[str, str], Mapping[str, str]] | None = None
        if script is not None:
            self.load(script)

    def __enter__(self) -> "ScriptContext":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        if self._tables is None:
            return "<ScriptContext unbuilt>"
        return (
            f"<ScriptContext constants={len(self.constants)} "
            f"functions={len(self.functions)}>"
        )

    @property
    def is_built(self) -> bool:
        return self._tables is not None

    @property
    def constants(self) -> Mapping[str, str]:
        return self._tables[0] if self._tables is not None else _EMPTY

    @property
    def functions(self) -> Mapping[str, str]:
        return self._tables[1] if self._tables is not None else _EMPTY

    def load(self, script: str | None) -> None:
        """Build both tables from ``script``, replacing any previous ones."""
        constants = MappingProxyType(parse_constants(script))
        functions = MappingProxyType(parse_functions(script))
        self._tables = (constants, functions)
        logger.debug(
            "Document script loaded: %d chars, %d constants, %d functions",
            len(script or ""), len(constants), len(functions),
        )

    def close(self) -> None:
        """Discard both tables."""
        self._tables = None

    def constant(self, name: str, default: str | None = None) -> str | None:
        return self.constants.get(name, default)

    def toggle_mutations(self, action: str | None, raw_value: str | None) -> list[FieldMutation]:
        """Get the field mutations a checkbox/radio action applies.

        Args:
            action: Source text of the toggle action.
            raw_value: Export value reported by the widget; ``None`` or
                ``"on"`` means unchecked.

        Returns:
            Mutations for the caller to apply, in order.
        """
        value = normalize_toggle_value(raw_value)
        return mutations_for_action(action, value, self.functions, self.prefix_max_len)

    def validation_messages(self, action: str | None) -> list[str]:
        """Get the messages a blur/validate action can show."""
        return get_messages_for_action(action, self.functions, self.constants)
