"""
Symbolic references - "$key.path.to.field" values in step input mappings.

Input mappings are compiled once, when a workflow step is validated, into a
tree where every string is either a LiteralValue or a Reference. Resolution
then never has to sniff string contents again.

Reference syntax:
- "$inventory.result.available"  -> Reference(("inventory", "result", "available"))
- "$items.result.0.name"         -> list elements are addressed by index
- "$$5 off"                      -> LiteralValue("$5 off") (escaped sigil)
- "plain text"                   -> LiteralValue("plain text")
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from .errors import UnresolvedReferenceWarning

_logger = logging.getLogger(__name__)

REFERENCE_SIGIL = "$"

_MISSING = object()


@dataclass(frozen=True)
class LiteralValue:
    """A string that is used verbatim"""
    value: str


@dataclass(frozen=True)
class Reference:
    """A path into the execution state"""
    path: Tuple[str, ...]

    @classmethod
    def parse(cls, text: str) -> "Reference":
        """Build a reference from "$a.b.c" (the sigil is required)"""
        if not text.startswith(REFERENCE_SIGIL):
            raise ValueError(f"Reference must start with '{REFERENCE_SIGIL}': {text!r}")
        return cls(tuple(text[len(REFERENCE_SIGIL):].split('.')))

    @property
    def text(self) -> str:
        return REFERENCE_SIGIL + '.'.join(self.path)

    def __str__(self) -> str:
        return self.text


def compile_string(text: str) -> Any:
    """Classify a single string as a literal or a reference."""
    if text.startswith(REFERENCE_SIGIL + REFERENCE_SIGIL):
        return LiteralValue(text[1:])
    if text.startswith(REFERENCE_SIGIL):
        return Reference.parse(text)
    return LiteralValue(text)


def compile_value(value: Any) -> Any:
    """
    Compile a JSON-like value into a tree of LiteralValue/Reference nodes.

    Args:
        value: Raw input mapping as parsed from configuration

    Returns:
        Same shape, with every string replaced by a tagged node. Already
        compiled nodes and non-string scalars pass through.
    """
    if isinstance(value, str):
        return compile_string(value)
    elif isinstance(value, dict):
        return {k: compile_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [compile_value(item) for item in value]
    else:
        return value


def decompile_value(value: Any) -> Any:
    """Turn a compiled tree back into the plain JSON it was built from."""
    if isinstance(value, Reference):
        return value.text
    elif isinstance(value, LiteralValue):
        if value.value.startswith(REFERENCE_SIGIL):
            return REFERENCE_SIGIL + value.value
        return value.value
    elif isinstance(value, dict):
        return {k: decompile_value(v) for k, v in value.items()}
    elif isinstance(value, (list, tuple)):
        return [decompile_value(item) for item in value]
    else:
        return value


def _model_field(model: BaseModel, part: str) -> Any:
    """Look up a pydantic model field by name or alias."""
    for name, field in type(model).model_fields.items():
        if part == name or part == field.alias:
            return getattr(model, name)
    return _MISSING


def _child(value: Any, part: str) -> Any:
    """Step one segment down, or return _MISSING."""
    if isinstance(value, Mapping):
        return value[part] if part in value else _MISSING
    if isinstance(value, BaseModel):
        return _model_field(value, part)
    if isinstance(value, (list, tuple)) and part.isdigit():
        index = int(part)
        return value[index] if index < len(value) else _MISSING
    return _MISSING


class PathResolver:
    """
    Resolves a single symbolic reference against the execution state.

    Missing data is common for optional branches, so a path that cannot be
    followed resolves to None and produces one UnresolvedReferenceWarning
    instead of an error.
    """

    def __init__(self, diagnostics: Optional[List] = None):
        """
        Args:
            diagnostics: Optional list that receives the warnings emitted
                         during resolution
        """
        self.diagnostics = diagnostics

    def resolve(self, reference: Any, state: Mapping) -> Any:
        """
        Resolve a reference, or return a literal unchanged.

        Args:
            reference: Reference, LiteralValue, raw string or other scalar
            state: Execution state (output_key -> StepResult) or any mapping

        Returns:
            The value at the referenced location, the literal itself, or None
            when the path cannot be followed
        """
        if isinstance(reference, str):
            reference = compile_string(reference)

        if isinstance(reference, LiteralValue):
            return reference.value
        if not isinstance(reference, Reference):
            return reference

        found, value, missing_part = self._walk(reference.path, state)
        if found:
            return value

        warning = UnresolvedReferenceWarning(reference.text, missing_part)
        _logger.warning(f"[Workflow] {warning.message}. Returning None.")
        if self.diagnostics is not None:
            self.diagnostics.append(warning)
        return None

    def lookup(self, path: Sequence[str], state: Mapping) -> Tuple[bool, Any]:
        """
        Walk a path without emitting warnings.

        Returns:
            Tuple of (found, value)
        """
        found, value, _ = self._walk(tuple(path), state)
        return found, value

    def _walk(self, path: Tuple[str, ...], state: Mapping) -> Tuple[bool, Any, Optional[str]]:
        current = state
        for part in path:
            current = _child(current, part)
            if current is _MISSING:
                return False, None, part
        return True, current, None
