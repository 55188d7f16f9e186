"""Flat, display-oriented summaries of analysed structs."""

from __future__ import annotations

from typing import Any

from golens.core.graph.model import AnalysisResult, Position, StructInfo

def _where(position: Position) -> str:
    return f"{position.path}:{position.line}"

def summarize_struct(struct: StructInfo) -> dict[str, Any]:
    """Summarise one struct with its interfaces and per-method origins.

    Declaration sites become ``"path:line"`` strings, and each
    ``implementedFrom`` entry is split into its interface and method names.
    """
    methods = []
    for method in struct.methods:
        origins = []
        for decl in method.implemented_from:
            interface_name, _, method_name = decl.name.rpartition(".")
            origins.append(
                {
                    "interfaceName": interface_name,
                    "methodName": method_name,
                    "declarationPath": _where(decl.position),
                }
            )
        methods.append(
            {
                "name": method.name,
                "declarationPath": _where(method.position),
                "implementingInterfaces": origins,
                "parameters": [p.to_dict() for p in method.parameters],
                "returnTypes": list(method.return_types),
            }
        )

    return {
        "name": struct.name,
        "declarationPath": _where(struct.position),
        "implementingInterfaces": [
            {"name": d.name, "declarationPath": _where(d.position)}
            for d in struct.implemented_interfaces
        ],
        "methods": methods,
    }

def summarize_structs(result: AnalysisResult) -> list[dict[str, Any]]:
    """Summarise every struct of *result*, in declaration order."""
    return [summarize_struct(struct) for struct in result.structs]
