"""Builtin registry.

Functions and named constants share one namespace, keyed by upper-cased
name, so a lookup never has to decide between two maps.
"""

from typing import Dict, Optional, Union

from uwscript.objects import BuiltinConstant, BuiltinFunction

from .arrays import populate_array_builtins
from .constants import populate_constants
from .io import populate_io_builtins

Builtin = Union[BuiltinFunction, BuiltinConstant]


def populate_builtins() -> Dict[str, Builtin]:
    registry: Dict[str, Builtin] = {}
    registry.update(populate_constants())
    registry.update(populate_array_builtins())
    registry.update(populate_io_builtins())
    return registry


BUILTINS = populate_builtins()


def lookup_builtin(name: str, registry: Optional[Dict[str, Builtin]] = None) -> Optional[Builtin]:
    return (BUILTINS if registry is None else registry).get(name.upper())
