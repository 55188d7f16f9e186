"""Declaration extraction for GoLens.

Checks every package, builds the cross-package type index from the ones
that pass, and emits :class:`InterfaceInfo` and :class:`StructInfo` records.

A package that fails checking is skipped as a whole and reported through a
:class:`Diagnostic`; the run carries on with the rest.  Checks cover what a
Go type checker would refuse before looking at method sets:

* syntax errors reported by tree-sitter;
* files in one directory declaring different packages;
* a type, or a method on the same receiver, declared twice;
* a method sharing its name with a field of its receiver struct.

All interfaces are collected before the first struct is built, which is the
barrier the implementation resolver relies on.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from golens.config.settings import AnalysisConfig
from golens.core.errors import AnalysisCancelled, ExtractionError
from golens.core.graph.model import (
    InterfaceInfo,
    InterfaceMethodInfo,
    MethodInfo,
    ParamInfo,
    Position,
    StructInfo,
)
from golens.core.ingestion.method_sets import (
    ResolvedMethod,
    collect_method_sets,
    interface_method_set,
    merge_method_sets,
)
from golens.core.ingestion.packages import GoPackage
from golens.core.ingestion.types import canonical_type, render_type, resolve_type
from golens.core.ingestion.universe import PackageScope, TypeUniverse, build_universe
from golens.core.parsers.base import Signature, TypeExpr

logger = logging.getLogger(__name__)

@dataclass
class Diagnostic:
    """Why a package was left out of the analysis."""

    package: str
    path: str
    line: int
    message: str

    def __str__(self) -> str:
        return f"{self.path}:{self.line}: {self.message}"

@dataclass
class Extraction:
    """Raw records of one extraction pass, before resolution."""

    interfaces: list[InterfaceInfo] = field(default_factory=list)
    structs: list[StructInfo] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    units: int = 0
    extracted_units: int = 0

def make_position(file_path: str, line: int, segments: int = 3) -> Position:
    """Build a :class:`Position` keeping the last *segments* path components."""
    parts = PurePosixPath(file_path).parts
    return Position(path="/".join(parts[-segments:]), line=line)

def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise AnalysisCancelled("analysis cancelled")

# ---------------------------------------------------------------------------
# Package checks
# ---------------------------------------------------------------------------

def check_package(pkg: GoPackage) -> list[Diagnostic]:
    """Return the problems that make *pkg* unusable, empty when it is sound."""
    diagnostics: list[Diagnostic] = []

    def report(path: str, line: int, message: str) -> None:
        diagnostics.append(Diagnostic(package=pkg.import_path, path=path, line=line, message=message))

    for fpd in pkg.files:
        for issue in fpd.parse_result.errors:
            report(fpd.file_path, issue.line, issue.message)

    expected = pkg.name
    for fpd in pkg.files:
        declared = fpd.parse_result.package
        if not declared:
            report(fpd.file_path, 1, "expected 'package' clause")
        elif declared != expected:
            report(fpd.file_path, 1, f"found packages {expected} and {declared} in {pkg.directory}")

    type_lines: dict[str, str] = {}
    struct_fields: dict[str, set[str]] = {}
    for fpd in pkg.files:
        for decl in fpd.parse_result.types:
            if decl.name in type_lines and decl.name != "_":
                report(fpd.file_path, decl.line, f"{decl.name} redeclared in this block")
            type_lines.setdefault(decl.name, fpd.file_path)
            if decl.kind == "struct":
                struct_fields[decl.name] = {n for f in decl.fields for n in f.names}

    seen_methods: set[tuple[str, str]] = set()
    for fpd in pkg.files:
        for method in fpd.parse_result.methods:
            if method.name == "_":
                continue
            key = (method.receiver, method.name)
            if key in seen_methods:
                report(fpd.file_path, method.line, f"method {method.receiver}.{method.name} already declared")
            seen_methods.add(key)
            if method.name in struct_fields.get(method.receiver, ()):
                report(
                    fpd.file_path,
                    method.line,
                    f"field and method with the same name {method.name}",
                )

    return diagnostics

# ---------------------------------------------------------------------------
# Record construction
# ---------------------------------------------------------------------------

def _signature(params: list[TypeExpr], results: list[TypeExpr], package: str) -> Signature:
    return Signature(
        params=tuple(canonical_type(p) for p in params),
        results=tuple(canonical_type(r) for r in results),
        package=package,
    )

def _struct_method(resolved: ResolvedMethod, segments: int) -> MethodInfo:
    return MethodInfo(
        name=resolved.name,
        position=make_position(resolved.file_path, resolved.line, segments),
        parameters=[ParamInfo(name=n, type=render_type(t)) for n, t in resolved.params],
        return_types=[render_type(r) for r in resolved.results],
        signature=_signature([t for _, t in resolved.params], resolved.results, resolved.package),
    )

def _interface_method(resolved: ResolvedMethod, segments: int) -> InterfaceMethodInfo:
    return InterfaceMethodInfo(
        name=resolved.name,
        position=make_position(resolved.file_path, resolved.line, segments),
        parameters=[ParamInfo(name=n, type=render_type(t)) for n, t in resolved.params],
        return_types=[render_type(r) for r in resolved.results],
        signature=_signature([t for _, t in resolved.params], resolved.results, resolved.package),
    )

def build_interfaces(scope: PackageScope, universe: TypeUniverse, segments: int = 3) -> list[InterfaceInfo]:
    """Emit one :class:`InterfaceInfo` per interface type of *scope* with methods."""
    interfaces: list[InterfaceInfo] = []
    for declared in scope.types.values():
        if declared.decl.kind == "alias":
            continue
        target = universe.underlying(declared)
        if target is None or target.decl.kind != "interface":
            continue
        required = interface_method_set(declared, universe)
        if required is None:
            logger.debug("Skipping interface %s with an unresolved embedded element", declared.decl.name)
            continue
        if not required:
            logger.debug("Skipping interface %s without methods", declared.decl.name)
            continue

        interfaces.append(
            InterfaceInfo(
                name=declared.decl.name,
                position=make_position(declared.file_path, declared.decl.line, segments),
                methods=[_interface_method(m, segments) for m in required],
            )
        )
    return interfaces

def build_structs(scope: PackageScope, universe: TypeUniverse, segments: int = 3) -> list[StructInfo]:
    """Emit one :class:`StructInfo` per struct type of *scope* with its canonical method set."""
    structs: list[StructInfo] = []
    for declared in scope.types.values():
        if declared.decl.kind == "alias":
            logger.debug("Skipping type alias %s", declared.decl.name)
            continue
        target = universe.underlying(declared)
        if target is None or target.decl.kind != "struct":
            continue

        embedded_types = []
        for fld in target.decl.fields:
            if fld.embedded:
                rendered = render_type(resolve_type(fld.type, target.ctx))
                embedded_types.append(f"*{rendered}" if fld.pointer else rendered)

        value_set, pointer_set = collect_method_sets(declared, universe)
        methods = merge_method_sets(
            [_struct_method(m, segments) for m in value_set],
            [_struct_method(m, segments) for m in pointer_set],
        )

        structs.append(
            StructInfo(
                name=declared.decl.name,
                position=make_position(declared.file_path, declared.decl.line, segments),
                methods=methods,
                embedded_types=embedded_types,
            )
        )
    return structs

# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def extract_declarations(
    packages: list[GoPackage],
    config: AnalysisConfig | None = None,
    cancel_event: threading.Event | None = None,
) -> Extraction:
    """Check *packages* and emit interface and struct records for the sound ones.

    Raises:
        ExtractionError: If there were packages but none could be extracted.
        AnalysisCancelled: If *cancel_event* is set between units.
    """
    config = config or AnalysisConfig()
    extraction = Extraction(units=len(packages))
    segments = config.position_segments

    def _checked(pkg: GoPackage) -> list[Diagnostic]:
        _check_cancelled(cancel_event)
        return check_package(pkg)

    with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
        reports = list(executor.map(_checked, packages))

    sound: list[GoPackage] = []
    for pkg, diagnostics in zip(packages, reports):
        if diagnostics:
            logger.warning(
                "Skipping package %s: %d problem(s), first: %s",
                pkg.import_path,
                len(diagnostics),
                diagnostics[0],
            )
            extraction.diagnostics.extend(diagnostics)
        else:
            sound.append(pkg)

    if packages and not sound:
        raise ExtractionError(
            f"none of the {len(packages)} package(s) could be extracted",
            extraction.diagnostics,
        )

    universe = build_universe(sound)
    extraction.extracted_units = len(sound)

    # Phase 1: every interface of every unit, before any struct is built.
    for scope in universe.scopes():
        _check_cancelled(cancel_event)
        extraction.interfaces.extend(build_interfaces(scope, universe, segments))

    def _structs(scope: PackageScope) -> list[StructInfo]:
        _check_cancelled(cancel_event)
        return build_structs(scope, universe, segments)

    with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
        for structs in executor.map(_structs, universe.scopes()):
            extraction.structs.extend(structs)

    logger.info(
        "Extracted %d interface(s) and %d struct(s) from %d/%d package(s)",
        len(extraction.interfaces),
        len(extraction.structs),
        extraction.extracted_units,
        extraction.units,
    )
    return extraction
