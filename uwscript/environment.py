from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from uwscript.errors import UwscError
from uwscript.objects import Error, Object


class BindingKind(Enum):
    MUTABLE = 'mutable'
    CONSTANT = 'constant'


@dataclass
class Binding:
    value: Object
    kind: BindingKind = BindingKind.MUTABLE


class Environment:
    """Represents a scope environment mapping identifiers to values and binding kinds."""
    def __init__(self, outer: Optional['Environment'] = None):
        self.outer = outer
        self.store: Dict[str, Binding] = {}

    @classmethod
    def new_enclosed(cls, outer: 'Environment') -> 'Environment':
        return cls(outer)

    def root(self) -> 'Environment':
        env = self
        while env.outer is not None:
            env = env.outer
        return env

    def owner(self, name: str) -> Optional['Environment']:
        """Innermost scope that binds ``name``, or None."""
        env: Optional[Environment] = self
        while env is not None:
            if name in env.store:
                return env
            env = env.outer
        return None

    def get(self, name: str) -> Optional[Object]:
        env = self.owner(name)
        if env is None:
            return None
        return env.store[name].value

    def is_const(self, name: str) -> bool:
        env = self.owner(name)
        return env is not None and env.store[name].kind is BindingKind.CONSTANT

    def set(self, name: str, value: Object) -> Object:
        # Assignment writes into the scope that already owns the name, so a
        # function body can update caller-level bindings it never declared.
        env = self.owner(name) or self
        binding = env.store.get(name)
        if binding is not None and binding.kind is BindingKind.CONSTANT:
            raise UwscError(Error(f'cannot assign to constant: {name}'))
        env.store[name] = Binding(value)
        return value

    def declare(self, name: str, value: Object) -> Object:
        """Bind ``name`` in this scope, shadowing any outer binding."""
        self._check_redeclare(name)
        self.store[name] = Binding(value)
        return value

    def set_const(self, name: str, value: Object) -> Object:
        self._check_redeclare(name)
        self.store[name] = Binding(value, BindingKind.CONSTANT)
        return value

    def _check_redeclare(self, name: str):
        binding = self.store.get(name)
        if binding is not None and binding.kind is BindingKind.CONSTANT:
            raise UwscError(Error(f'cannot assign to constant: {name}'))
