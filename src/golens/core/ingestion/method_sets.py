"""Method set construction for GoLens.

A struct ``S`` has two method sets: the one reachable through a value of
type ``S`` and the larger one reachable through ``*S``.  Both include
methods promoted from embedded fields, following Go's selector rules:

* an embedded ``T`` promotes ``T``'s value-receiver methods to ``S`` and all
  of ``T``'s methods to ``*S``;
* an embedded ``*T`` (or any pointer further up the embedding path) promotes
  all of ``T``'s methods to both;
* an embedded interface promotes all of its methods to both, including
  those of interfaces it embeds in turn;
* a name found at a shallower depth hides deeper ones, and the same name
  found twice at one depth cancels out.

:func:`merge_method_sets` folds the two sets into the canonical,
name-unique list recorded on a :class:`~golens.core.graph.model.StructInfo`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from itertools import chain
from typing import Protocol, TypeVar

from golens.core.ingestion.types import render_type, resolve_type, substitute
from golens.core.ingestion.universe import DeclaredMethod, DeclaredType, TypeUniverse
from golens.core.parsers.base import MethodDecl, TypeExpr

logger = logging.getLogger(__name__)

class _Named(Protocol):
    name: str

_M = TypeVar("_M", bound=_Named)

@dataclass
class ResolvedMethod:
    """A method with its types resolved and any type arguments substituted."""

    name: str
    file_path: str
    line: int
    package: str  # declaring package
    params: list[tuple[str, TypeExpr]] = field(default_factory=list)
    results: list[TypeExpr] = field(default_factory=list)
    pointer_receiver: bool = False

@dataclass
class _Embedding:
    declared: DeclaredType
    args: tuple[TypeExpr, ...]
    indirect: bool  # a pointer was crossed on the way here

def merge_method_sets(value_methods: Iterable[_M], pointer_methods: Iterable[_M]) -> list[_M]:
    """Combine value-receiver and pointer-receiver method sets without duplicate names.

    Value-receiver entries come first and win on a name collision; pointer
    entries are appended only when their name is not present yet.
    """
    merged: list[_M] = []
    seen: set[str] = set()
    for method in chain(value_methods, pointer_methods):
        if method.name in seen:
            continue
        seen.add(method.name)
        merged.append(method)
    return merged

def resolve_method(
    decl: MethodDecl,
    ctx_owner: DeclaredType | DeclaredMethod,
    type_params: list[str],
    args: tuple[TypeExpr, ...] = (),
) -> ResolvedMethod:
    """Resolve *decl*'s signature in its scope, substituting *args* for *type_params*."""
    mapping = dict(zip(type_params, args))
    ctx = ctx_owner.ctx

    def _resolve(expr: TypeExpr) -> TypeExpr:
        return substitute(resolve_type(expr, ctx), mapping)

    return ResolvedMethod(
        name=decl.name,
        file_path=ctx_owner.file_path,
        line=decl.line,
        package=ctx_owner.package,
        params=[(p.name, _resolve(p.type)) for p in decl.params],
        results=[_resolve(r) for r in decl.results],
        pointer_receiver=decl.pointer_receiver,
    )

def _field_names(struct: DeclaredType) -> set[str]:
    """Names of a struct's fields, embedded fields named after their type."""
    names: set[str] = set()
    for fld in struct.decl.fields:
        if fld.embedded:
            if fld.type.kind in ("named", "qualified"):
                names.add(fld.type.name)
        else:
            names.update(fld.names)
    return names

def _embeddings(
    struct: DeclaredType,
    args: tuple[TypeExpr, ...],
    indirect: bool,
    universe: TypeUniverse,
) -> list[_Embedding]:
    mapping = dict(zip(struct.decl.type_params, args))
    found: list[_Embedding] = []
    for fld in struct.decl.fields:
        if not fld.embedded:
            continue
        expr = substitute(resolve_type(fld.type, struct.ctx), mapping)
        target = universe.lookup(expr)
        if target is None:
            logger.debug(
                "Embedded type %s of %s is outside the corpus, not promoting",
                expr.name,
                struct.decl.name,
            )
            continue
        found.append(_Embedding(declared=target, args=expr.elems, indirect=indirect or fld.pointer))
    return found

def interface_method_set(
    declared: DeclaredType,
    universe: TypeUniverse,
    args: tuple[TypeExpr, ...] = (),
) -> list[ResolvedMethod] | None:
    """Return every method an interface type requires, embedded interfaces included.

    Declared methods come first, then those of each embedded element in
    source order; a name required twice is kept once.  Returns ``None`` when
    the method list cannot be known: *declared* is not an interface, or an
    embedded element is a constraint, a type parameter or an interface
    declared outside the corpus.
    """
    return _interface_methods(declared, universe, args, frozenset())

def _interface_methods(
    declared: DeclaredType,
    universe: TypeUniverse,
    args: tuple[TypeExpr, ...],
    enclosing: frozenset[tuple[str, str]],
) -> list[ResolvedMethod] | None:
    target = universe.underlying(declared)
    if target is None or target.decl.kind != "interface":
        return None
    if target.key in enclosing:
        logger.debug("Interface %s.%s embeds itself", *target.key)
        return None

    own_args = args if target is declared else ()
    mapping = dict(zip(target.decl.type_params, own_args))
    methods = [resolve_method(m, target, target.decl.type_params, own_args) for m in target.decl.methods]

    for elem in target.decl.embedded:
        expr = substitute(resolve_type(elem, target.ctx), mapping)
        if expr.kind == "named" and not expr.package and expr.name in ("any", "error"):
            if expr.name == "error":
                error_method = MethodDecl(
                    name="Error",
                    line=target.decl.line,
                    results=[TypeExpr("named", name="string")],
                )
                methods.append(resolve_method(error_method, target, []))
            continue

        embedded = universe.lookup(expr)
        found = None
        if embedded is not None:
            found = _interface_methods(embedded, universe, expr.elems, enclosing | {target.key})
        if found is None:
            logger.debug(
                "Cannot list the methods of %s: embedded element %s is not a known interface",
                declared.decl.name,
                render_type(expr),
            )
            return None
        methods.extend(found)

    return merge_method_sets(methods, [])

def collect_method_sets(
    declared: DeclaredType,
    universe: TypeUniverse,
) -> tuple[list[ResolvedMethod], list[ResolvedMethod]]:
    """Return the ``(value, pointer)`` method sets of a struct type.

    Declared methods come first in declaration order, promoted methods
    follow by increasing embedding depth.
    """
    own = [
        resolve_method(m.decl, m, m.decl.receiver_type_params, ())
        for m in universe.methods_of(declared)
    ]
    value = [m for m in own if not m.pointer_receiver]
    pointer = list(own)

    struct = universe.underlying(declared)
    if struct is None or struct.decl.kind != "struct":
        return value, pointer

    taken = {m.name for m in own} | _field_names(struct)
    struct_args: tuple[TypeExpr, ...] = ()
    level = _embeddings(struct, struct_args, False, universe)
    visited: set[tuple[str, str]] = {declared.key, struct.key}

    while level:
        hits: dict[str, list[tuple[ResolvedMethod | None, bool]]] = {}
        next_level: list[_Embedding] = []

        for emb in level:
            if emb.declared.key in visited:
                continue
            target = universe.underlying(emb.declared)

            if target is not None and target.decl.kind == "interface":
                promoted = interface_method_set(emb.declared, universe, emb.args)
                if promoted is None:
                    own_args = emb.args if target is emb.declared else ()
                    promoted = [
                        resolve_method(m, target, target.decl.type_params, own_args)
                        for m in target.decl.methods
                    ]
                for resolved in promoted:
                    hits.setdefault(resolved.name, []).append((resolved, True))
                continue

            for dm in universe.methods_of(emb.declared):
                resolved = resolve_method(dm.decl, dm, dm.decl.receiver_type_params, emb.args)
                in_value_set = emb.indirect or not dm.decl.pointer_receiver
                hits.setdefault(dm.decl.name, []).append((resolved, in_value_set))

            # Named non-struct types such as ``type Level int`` have methods but no fields.
            if target is None:
                continue
            for name in _field_names(target):
                hits.setdefault(name, []).append((None, False))

            target_args = emb.args if target is emb.declared else ()
            next_level.extend(_embeddings(target, target_args, emb.indirect, universe))

        visited.update(emb.declared.key for emb in level)

        for name, entries in hits.items():
            if name in taken:
                continue
            taken.add(name)
            if len(entries) != 1:
                logger.debug("Ambiguous promoted selector %s on %s", name, declared.decl.name)
                continue
            method, in_value_set = entries[0]
            if method is None:
                continue
            pointer.append(method)
            if in_value_set:
                value.append(method)

        level = next_level

    return value, pointer
