"""Type resolution for GoLens.

Turns the parser's unresolved :class:`TypeExpr` trees into package-qualified
ones, renders them in Go's fully-qualified spelling, and provides the type
identity and unification rules used by the type-checker-backed matcher.

Resolution rules for an identifier ``T`` written in package ``p``:

1. **Type parameter** -- ``T`` is a type parameter in scope.
2. **Predeclared** -- ``int``, ``error``, ``any`` and friends stay bare.
3. **Package-local** -- ``T`` is declared in ``p``; qualified as ``p.T``.
4. Anything else is left bare (dot imports, undefined names).

A qualified ``alias.T`` is rewritten to ``import/path.T`` through the file's
imports.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace

from golens.core.parsers.base import ImportInfo, TypeExpr

PREDECLARED_TYPES: frozenset[str] = frozenset(
    {
        "any",
        "bool",
        "byte",
        "comparable",
        "complex64",
        "complex128",
        "error",
        "float32",
        "float64",
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "rune",
        "string",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
    }
)

# Predeclared aliases that are identical to another type.
_IDENTICAL_TO: dict[str, str] = {"byte": "uint8", "rune": "int32"}

EMPTY_INTERFACE = TypeExpr("interface", name="interface{}")

_VERSION_SUFFIX = re.compile(r"v\d+")

@dataclass
class TypeContext:
    """Scope information needed to resolve type expressions of one file."""

    package: str  # import path of the enclosing package
    imports: Mapping[str, str] = field(default_factory=dict)  # local name -> import path
    local_types: frozenset[str] = frozenset()
    type_params: frozenset[str] = frozenset()

    def with_type_params(self, names: Iterable[str]) -> TypeContext:
        """Return a copy with *names* added to the type parameters in scope."""
        return replace(self, type_params=self.type_params | frozenset(names))

def default_import_name(path: str) -> str:
    """Guess the package name Go would bind for an import *path*.

    ``gopkg.in/yaml.v3`` becomes ``yaml``, ``github.com/x/y/v2`` becomes ``y``.
    """
    parts = path.split("/")
    name = parts[-1]
    if _VERSION_SUFFIX.fullmatch(name) and len(parts) > 1:
        name = parts[-2]
    name = name.split(".", 1)[0]
    return name.removeprefix("go-")

def build_context(
    package: str,
    imports: Iterable[ImportInfo],
    local_types: Iterable[str],
    package_names: Mapping[str, str] | None = None,
) -> TypeContext:
    """Build the :class:`TypeContext` of a file.

    *package_names* maps import paths of packages in the corpus to their
    declared package names, which beat the path-based guess.
    """
    known = package_names or {}
    bindings: dict[str, str] = {}
    for imp in imports:
        if imp.alias in ("_", "."):
            continue
        local = imp.alias or known.get(imp.path) or default_import_name(imp.path)
        bindings[local] = imp.path
    return TypeContext(package=package, imports=bindings, local_types=frozenset(local_types))

def resolve_type(expr: TypeExpr, ctx: TypeContext) -> TypeExpr:
    """Qualify every named type in *expr* according to *ctx*."""
    elems = tuple(resolve_type(e, ctx) for e in expr.elems)
    results = tuple(resolve_type(r, ctx) for r in expr.results)

    if expr.kind == "named" and not expr.package:
        if expr.name in ctx.type_params and not elems:
            return TypeExpr("param", name=expr.name)
        if expr.name in PREDECLARED_TYPES:
            return TypeExpr("named", name=expr.name, elems=elems)
        if expr.name in ctx.local_types:
            return TypeExpr("named", name=expr.name, package=ctx.package, elems=elems)
        return TypeExpr("named", name=expr.name, elems=elems)

    if expr.kind == "qualified":
        path = ctx.imports.get(expr.package, expr.package)
        return TypeExpr("named", name=expr.name, package=path, elems=elems)

    return replace(expr, elems=elems, results=results)

def render_type(expr: TypeExpr) -> str:
    """Render *expr* the way Go's type printer does with full package paths."""
    match expr.kind:
        case "named" | "qualified":
            base = f"{expr.package}.{expr.name}" if expr.package else expr.name
            if expr.elems:
                base += "[" + ", ".join(render_type(e) for e in expr.elems) + "]"
            return base
        case "pointer":
            return "*" + render_type(expr.elems[0])
        case "slice":
            return "[]" + render_type(expr.elems[0])
        case "variadic":
            return "..." + render_type(expr.elems[0])
        case "array":
            return f"[{expr.name}]" + render_type(expr.elems[0])
        case "map":
            return f"map[{render_type(expr.elems[0])}]{render_type(expr.elems[1])}"
        case "chan":
            return f"{expr.name or 'chan'} {render_type(expr.elems[0])}"
        case "func":
            text = "func(" + ", ".join(render_type(e) for e in expr.elems) + ")"
            if len(expr.results) == 1:
                text += " " + render_type(expr.results[0])
            elif expr.results:
                text += " (" + ", ".join(render_type(r) for r in expr.results) + ")"
            return text
        case _:
            return expr.name

def canonical_type(expr: TypeExpr) -> TypeExpr:
    """Normalize predeclared aliases so that identical types compare equal."""
    if expr.kind == "named" and not expr.package:
        if expr.name == "any" and not expr.elems:
            return EMPTY_INTERFACE
        if expr.name in _IDENTICAL_TO:
            return TypeExpr("named", name=_IDENTICAL_TO[expr.name])
    if not expr.elems and not expr.results:
        return expr
    return replace(
        expr,
        elems=tuple(canonical_type(e) for e in expr.elems),
        results=tuple(canonical_type(r) for r in expr.results),
    )

def substitute(expr: TypeExpr, mapping: Mapping[str, TypeExpr]) -> TypeExpr:
    """Replace type parameters named in *mapping* with their arguments."""
    if not mapping:
        return expr
    if expr.kind == "param":
        return mapping.get(expr.name, expr)
    if not expr.elems and not expr.results:
        return expr
    return replace(
        expr,
        elems=tuple(substitute(e, mapping) for e in expr.elems),
        results=tuple(substitute(r, mapping) for r in expr.results),
    )

def unify(candidate: TypeExpr, target: TypeExpr, bindings: dict[str, TypeExpr]) -> bool:
    """Check that *candidate* is identical to *target* under *bindings*.

    Type parameters of the target bind to whatever candidate type they meet
    first and must meet identical types afterwards.  *bindings* is updated in
    place, also when the check fails part-way; callers pass a scratch copy.
    """
    if target.kind == "param":
        bound = bindings.get(target.name)
        if bound is None:
            bindings[target.name] = candidate
            return True
        return bound == candidate

    if (
        candidate.kind != target.kind
        or candidate.name != target.name
        or candidate.package != target.package
        or len(candidate.elems) != len(target.elems)
        or len(candidate.results) != len(target.results)
    ):
        return False

    for c, t in zip(candidate.elems, target.elems):
        if not unify(c, t, bindings):
            return False
    for c, t in zip(candidate.results, target.results):
        if not unify(c, t, bindings):
            return False
    return True
