"""Base parser interface and shared data structures.

Defines the intermediate representation produced by the Go parser before
declarations are resolved against package scopes and mapped into the
analysis result.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

@dataclass(frozen=True)
class TypeExpr:
    """A Go type expression.

    ``kind`` selects how the other fields are read:

    * ``"named"``     -- ``name`` with optional ``package`` qualifier; ``elems``
      holds type arguments of a generic instantiation.
    * ``"qualified"`` -- as written in source (``sql.DB``); ``package`` is the
      import alias.  Only produced by the parser, never after resolution.
    * ``"param"``     -- a type parameter, ``name`` is its identifier.
    * ``"pointer"``, ``"slice"``, ``"variadic"`` -- one element in ``elems``.
    * ``"array"``     -- ``name`` is the length expression, one element.
    * ``"map"``       -- ``elems`` is ``(key, value)``.
    * ``"chan"``      -- ``name`` is ``chan``, ``<-chan`` or ``chan<-``.
    * ``"func"``      -- ``elems`` are parameter types, ``results`` result types.
    * ``"interface"``, ``"struct"``, ``"other"`` -- literal types kept as their
      whitespace-collapsed source text in ``name``.
    """

    kind: str
    name: str = ""
    package: str = ""
    elems: tuple[TypeExpr, ...] = ()
    results: tuple[TypeExpr, ...] = ()

@dataclass(frozen=True)
class Signature:
    """A resolved method signature used for type identity checks.

    ``package`` is the import path of the declaring package; Go only lets an
    unexported method name satisfy an interface declared in the same package.
    """

    params: tuple[TypeExpr, ...] = ()
    results: tuple[TypeExpr, ...] = ()
    package: str = ""

@dataclass
class ParamDecl:
    """A single parameter.  Grouped declarations (``a, b int``) are split."""

    name: str
    type: TypeExpr

@dataclass
class MethodDecl:
    """A method as written in source: top-level with a receiver or inside an interface."""

    name: str
    line: int
    params: list[ParamDecl] = field(default_factory=list)
    results: list[TypeExpr] = field(default_factory=list)
    receiver: str = ""  # base type name, "" for interface methods
    pointer_receiver: bool = False
    receiver_type_params: list[str] = field(default_factory=list)  # e.g. ["T"] for (b *Box[T])

@dataclass
class FieldDecl:
    """A struct field.  Embedded fields carry no names."""

    type: TypeExpr
    line: int
    names: list[str] = field(default_factory=list)
    embedded: bool = False
    pointer: bool = False  # embedded as *T

@dataclass
class TypeDecl:
    """A ``type`` specification."""

    name: str
    line: int
    kind: str  # "interface", "struct", "named", "alias"
    type_params: list[str] = field(default_factory=list)
    methods: list[MethodDecl] = field(default_factory=list)  # interface methods
    embedded: list[TypeExpr] = field(default_factory=list)  # interface type elements
    fields: list[FieldDecl] = field(default_factory=list)
    underlying: TypeExpr | None = None  # for "named" and "alias"

@dataclass
class ImportInfo:
    """A parsed import spec."""

    path: str  # e.g. "database/sql"
    alias: str = ""  # explicit name, "." or "_" when present

@dataclass
class SyntaxIssue:
    """A syntax problem reported by the parser."""

    line: int
    message: str

@dataclass
class ParseResult:
    """Complete parse result for a single file."""

    package: str = ""
    imports: list[ImportInfo] = field(default_factory=list)
    types: list[TypeDecl] = field(default_factory=list)
    methods: list[MethodDecl] = field(default_factory=list)
    errors: list[SyntaxIssue] = field(default_factory=list)

class LanguageParser(ABC):
    """Base interface for language-specific parsers."""

    @abstractmethod
    def parse(self, content: str, file_path: str) -> ParseResult: ...
