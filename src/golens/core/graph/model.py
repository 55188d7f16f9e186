"""Analysis result model for GoLens.

Defines the records of the implementation graph: interfaces and structs with
their methods, and the ``implements`` links between them.  Every record
serializes to the JSON layout consumed by presentation layers and restores
from it with shape validation.

Sequence fields always default to empty lists so consumers can iterate
without ``None`` checks.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any

from golens.core.errors import ResultValidationError
from golens.core.parsers.base import Signature

# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def _join(location: str, key: str) -> str:
    return f"{location}.{key}" if location else key

def _require_mapping(data: Any, location: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ResultValidationError(location, f"expected an object, got {type(data).__name__}")
    return data

def _get_str(data: dict[str, Any], key: str, location: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise ResultValidationError(_join(location, key), "expected a string")
    return value

def _get_list(data: dict[str, Any], key: str, location: str) -> list[Any]:
    """Return ``data[key]`` as a list; absent or ``null`` arrays default to empty."""
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ResultValidationError(_join(location, key), f"expected an array, got {type(value).__name__}")
    return value

# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Position:
    """A source location.  ``path`` keeps only the trailing path segments."""

    path: str
    line: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}"

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, "line": self.line}

    @classmethod
    def from_dict(cls, data: Any, location: str = "position") -> Position:
        data = _require_mapping(data, location)
        line = data.get("line")
        if isinstance(line, bool) or not isinstance(line, int) or line < 1:
            raise ResultValidationError(_join(location, "line"), "expected an integer >= 1")
        return cls(path=_get_str(data, "path", location), line=line)

@dataclass(frozen=True)
class Declaration:
    """A reference to another entity's declaration site, e.g. ``Shape.Area``."""

    name: str
    position: Position

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "position": self.position.to_dict()}

    @classmethod
    def from_dict(cls, data: Any, location: str) -> Declaration:
        data = _require_mapping(data, location)
        return cls(
            name=_get_str(data, "name", location),
            position=Position.from_dict(data.get("position"), _join(location, "position")),
        )

@dataclass
class ParamInfo:
    name: str
    type: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "type": self.type}

    @classmethod
    def from_dict(cls, data: Any, location: str) -> ParamInfo:
        data = _require_mapping(data, location)
        return cls(name=_get_str(data, "name", location), type=_get_str(data, "type", location))

def _parse_params(data: dict[str, Any], location: str) -> list[ParamInfo]:
    key = _join(location, "parameters")
    return [ParamInfo.from_dict(p, f"{key}[{i}]") for i, p in enumerate(_get_list(data, "parameters", location))]

def _parse_return_types(data: dict[str, Any], location: str) -> list[str]:
    values = _get_list(data, "returnTypes", location)
    for i, value in enumerate(values):
        if not isinstance(value, str):
            raise ResultValidationError(f"{_join(location, 'returnTypes')}[{i}]", "expected a string")
    return list(values)

@dataclass
class InterfaceMethodInfo:
    """A method required by an interface.

    ``signature`` is only present on records produced by an in-process
    analysis and is never serialized.
    """

    name: str
    position: Position
    parameters: list[ParamInfo] = field(default_factory=list)
    return_types: list[str] = field(default_factory=list)
    signature: Signature | None = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "position": self.position.to_dict(),
            "parameters": [p.to_dict() for p in self.parameters],
            "returnTypes": list(self.return_types),
        }

    @classmethod
    def from_dict(cls, data: Any, location: str) -> InterfaceMethodInfo:
        data = _require_mapping(data, location)
        return cls(
            name=_get_str(data, "name", location),
            position=Position.from_dict(data.get("position"), _join(location, "position")),
            parameters=_parse_params(data, location),
            return_types=_parse_return_types(data, location),
        )

@dataclass
class MethodInfo:
    """A method in a struct's canonical method set."""

    name: str
    position: Position
    parameters: list[ParamInfo] = field(default_factory=list)
    return_types: list[str] = field(default_factory=list)
    implemented_from: list[Declaration] = field(default_factory=list)
    signature: Signature | None = field(default=None, compare=False, repr=False)

    def add_implemented_from(self, declaration: Declaration) -> bool:
        """Record that this method satisfies *declaration*; no-op when already recorded."""
        if declaration in self.implemented_from:
            return False
        self.implemented_from.append(declaration)
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "position": self.position.to_dict(),
            "parameters": [p.to_dict() for p in self.parameters],
            "returnTypes": list(self.return_types),
            "implementedFrom": [d.to_dict() for d in self.implemented_from],
        }

    @classmethod
    def from_dict(cls, data: Any, location: str) -> MethodInfo:
        data = _require_mapping(data, location)
        key = _join(location, "implementedFrom")
        return cls(
            name=_get_str(data, "name", location),
            position=Position.from_dict(data.get("position"), _join(location, "position")),
            parameters=_parse_params(data, location),
            return_types=_parse_return_types(data, location),
            implemented_from=[
                Declaration.from_dict(d, f"{key}[{i}]")
                for i, d in enumerate(_get_list(data, "implementedFrom", location))
            ],
        )

@dataclass
class InterfaceInfo:
    name: str
    position: Position
    methods: list[InterfaceMethodInfo] = field(default_factory=list)

    def declaration(self) -> Declaration:
        return Declaration(name=self.name, position=self.position)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "position": self.position.to_dict(),
            "methods": [m.to_dict() for m in self.methods],
        }

    @classmethod
    def from_dict(cls, data: Any, location: str) -> InterfaceInfo:
        data = _require_mapping(data, location)
        key = _join(location, "methods")
        return cls(
            name=_get_str(data, "name", location),
            position=Position.from_dict(data.get("position"), _join(location, "position")),
            methods=[
                InterfaceMethodInfo.from_dict(m, f"{key}[{i}]")
                for i, m in enumerate(_get_list(data, "methods", location))
            ],
        )

@dataclass
class StructInfo:
    """A struct with its canonical method set and resolved interfaces."""

    name: str
    position: Position
    methods: list[MethodInfo] = field(default_factory=list)
    embedded_types: list[str] = field(default_factory=list)
    implemented_interfaces: list[Declaration] = field(default_factory=list)

    def get_method(self, name: str) -> MethodInfo | None:
        """Return the first method called *name*, or ``None``."""
        for method in self.methods:
            if method.name == name:
                return method
        return None

    def add_implemented_interface(self, declaration: Declaration) -> bool:
        """Record that this struct implements *declaration*; no-op when already recorded."""
        if declaration in self.implemented_interfaces:
            return False
        self.implemented_interfaces.append(declaration)
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "position": self.position.to_dict(),
            "methods": [m.to_dict() for m in self.methods],
            "embeddedTypes": list(self.embedded_types),
            "implementedInterfaces": [d.to_dict() for d in self.implemented_interfaces],
        }

    @classmethod
    def from_dict(cls, data: Any, location: str) -> StructInfo:
        data = _require_mapping(data, location)
        methods_key = _join(location, "methods")
        impl_key = _join(location, "implementedInterfaces")
        embedded = _get_list(data, "embeddedTypes", location)
        for i, value in enumerate(embedded):
            if not isinstance(value, str):
                raise ResultValidationError(f"{_join(location, 'embeddedTypes')}[{i}]", "expected a string")
        return cls(
            name=_get_str(data, "name", location),
            position=Position.from_dict(data.get("position"), _join(location, "position")),
            methods=[
                MethodInfo.from_dict(m, f"{methods_key}[{i}]")
                for i, m in enumerate(_get_list(data, "methods", location))
            ],
            embedded_types=list(embedded),
            implemented_interfaces=[
                Declaration.from_dict(d, f"{impl_key}[{i}]")
                for i, d in enumerate(_get_list(data, "implementedInterfaces", location))
            ],
        )

@dataclass
class AnalysisResult:
    """The complete implementation graph of one analysis pass."""

    interfaces: list[InterfaceInfo] = field(default_factory=list)
    structs: list[StructInfo] = field(default_factory=list)

    def snapshot(self) -> AnalysisResult:
        """Return a deep copy that shares no mutable state with this result."""
        return copy.deepcopy(self)

    def clear_relations(self) -> None:
        """Drop every resolved ``implements`` link, keeping the declarations."""
        for struct in self.structs:
            struct.implemented_interfaces.clear()
            for method in struct.methods:
                method.implemented_from.clear()

    def to_dict(self) -> dict[str, Any]:
        return {
            "interfaces": [i.to_dict() for i in self.interfaces],
            "structs": [s.to_dict() for s in self.structs],
        }

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Any) -> AnalysisResult:
        """Build a result from its JSON form.

        Raises:
            ResultValidationError: If any field has the wrong shape.  Absent
                arrays are treated as empty; nothing else is repaired.
        """
        data = _require_mapping(data, "")
        return cls(
            interfaces=[
                InterfaceInfo.from_dict(i, f"interfaces[{n}]")
                for n, i in enumerate(_get_list(data, "interfaces", ""))
            ],
            structs=[
                StructInfo.from_dict(s, f"structs[{n}]")
                for n, s in enumerate(_get_list(data, "structs", ""))
            ],
        )

    @classmethod
    def from_json(cls, text: str) -> AnalysisResult:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ResultValidationError("", f"invalid JSON: {exc}") from exc
        return cls.from_dict(data)
