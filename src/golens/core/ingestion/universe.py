"""Package scopes and the cross-package type index.

The :class:`TypeUniverse` is built once per run from every package that
passed checking.  It answers the questions the extractor and the method set
builder need: which type does a qualified name denote, what is a named
type's underlying struct or interface, and which methods are declared on a
receiver.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from golens.core.ingestion.packages import GoPackage
from golens.core.ingestion.types import TypeContext, build_context, resolve_type
from golens.core.parsers.base import MethodDecl, TypeDecl, TypeExpr

logger = logging.getLogger(__name__)

@dataclass
class DeclaredType:
    """A type declaration together with the scope it was written in."""

    decl: TypeDecl
    package: str
    file_path: str
    ctx: TypeContext  # includes the declaration's own type parameters

    @property
    def key(self) -> tuple[str, str]:
        return (self.package, self.decl.name)

@dataclass
class DeclaredMethod:
    """A receiver method together with the scope it was written in."""

    decl: MethodDecl
    package: str
    file_path: str
    ctx: TypeContext  # includes the receiver's type parameters

@dataclass
class PackageScope:
    """All declarations of one package, in declaration order."""

    import_path: str
    name: str
    types: dict[str, DeclaredType] = field(default_factory=dict)
    methods: dict[str, list[DeclaredMethod]] = field(default_factory=dict)

class TypeUniverse:
    """Index of every declared type and method across the analysed packages."""

    def __init__(self, scopes: list[PackageScope]) -> None:
        self._scopes: dict[str, PackageScope] = {s.import_path: s for s in scopes}

    def scopes(self) -> list[PackageScope]:
        return list(self._scopes.values())

    def scope(self, import_path: str) -> PackageScope | None:
        return self._scopes.get(import_path)

    def lookup(self, expr: TypeExpr) -> DeclaredType | None:
        """Return the declaration a resolved ``named`` expression refers to."""
        if expr.kind != "named" or not expr.package:
            return None
        scope = self._scopes.get(expr.package)
        if scope is None:
            return None
        return scope.types.get(expr.name)

    def methods_of(self, declared: DeclaredType) -> list[DeclaredMethod]:
        scope = self._scopes.get(declared.package)
        if scope is None:
            return []
        return scope.methods.get(declared.decl.name, [])

    def underlying(self, declared: DeclaredType) -> DeclaredType | None:
        """Follow ``type A B`` chains to the declaration of a struct or interface.

        Returns ``None`` for aliases, non-composite underlying types, types
        declared outside the corpus and cyclic definitions.
        """
        seen: set[tuple[str, str]] = set()
        current: DeclaredType | None = declared
        while current is not None:
            if current.key in seen:
                logger.debug("Cyclic type definition through %s.%s", *current.key)
                return None
            seen.add(current.key)

            kind = current.decl.kind
            if kind in ("struct", "interface"):
                return current
            if kind != "named" or current.decl.underlying is None:
                return None

            current = self.lookup(resolve_type(current.decl.underlying, current.ctx))
        return None

def build_universe(packages: list[GoPackage]) -> TypeUniverse:
    """Build package scopes for *packages*.

    Runs in two passes: package names and local type names first, so that
    import aliases and package-local identifiers resolve in the second pass
    regardless of package order.
    """
    package_names = {pkg.import_path: pkg.name for pkg in packages}
    local_types: dict[str, set[str]] = {
        pkg.import_path: {decl.name for fpd in pkg.files for decl in fpd.parse_result.types}
        for pkg in packages
    }

    scopes: list[PackageScope] = []
    for pkg in packages:
        scope = PackageScope(import_path=pkg.import_path, name=pkg.name)
        for fpd in pkg.files:
            file_ctx = build_context(
                pkg.import_path,
                fpd.parse_result.imports,
                local_types[pkg.import_path],
                package_names,
            )
            for decl in fpd.parse_result.types:
                scope.types[decl.name] = DeclaredType(
                    decl=decl,
                    package=pkg.import_path,
                    file_path=fpd.file_path,
                    ctx=file_ctx.with_type_params(decl.type_params),
                )
            for method in fpd.parse_result.methods:
                scope.methods.setdefault(method.receiver, []).append(
                    DeclaredMethod(
                        decl=method,
                        package=pkg.import_path,
                        file_path=fpd.file_path,
                        ctx=file_ctx.with_type_params(method.receiver_type_params),
                    )
                )
        scopes.append(scope)
    return TypeUniverse(scopes)
