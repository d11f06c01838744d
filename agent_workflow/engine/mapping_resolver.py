"""
Mapping Resolver - Resolves every reference inside a step's input mapping.

Input mappings are trees parsed from configuration (never live object
graphs), so recursion needs no cycle detection.
"""

from collections.abc import Mapping
from typing import Any, Optional

from .references import LiteralValue, PathResolver, Reference


class MappingResolver:
    """
    Recursively replaces references in an input mapping with state values.

    - strings / LiteralValue / Reference -> PathResolver
    - lists and tuples                   -> element-wise, order preserved
    - dicts                              -> values resolved, keys untouched
    - numbers, booleans, None            -> returned unchanged
    """

    def __init__(self, path_resolver: Optional[PathResolver] = None):
        self.path_resolver = path_resolver or PathResolver()

    def resolve(self, mapping: Any, state: Mapping) -> Any:
        if isinstance(mapping, (str, LiteralValue, Reference)):
            return self.path_resolver.resolve(mapping, state)
        elif isinstance(mapping, dict):
            return {k: self.resolve(v, state) for k, v in mapping.items()}
        elif isinstance(mapping, (list, tuple)):
            return [self.resolve(item, state) for item in mapping]
        else:
            return mapping
