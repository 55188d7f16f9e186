"""Lookups over an analysis result.

Generic instantiations are stored under their base name, but callers often
hold a spelling like ``Cache[K, V]``; name matching ignores a trailing
``[...]`` on both sides.
"""

from __future__ import annotations

from golens.core.graph.model import AnalysisResult, InterfaceInfo, StructInfo

def base_name(name: str) -> str:
    """Strip a generic ``[...]`` suffix: ``Cache[K, V]`` -> ``Cache``."""
    return name.split("[", 1)[0].strip()

def build_name_index(result: AnalysisResult) -> dict[str, list[StructInfo]]:
    """Map base struct names to every struct declared under that name.

    Multiple packages can declare a struct with the same name, so each
    entry is a list in declaration order.
    """
    index: dict[str, list[StructInfo]] = {}
    for struct in result.structs:
        index.setdefault(base_name(struct.name), []).append(struct)
    return index

def find_struct(result: AnalysisResult, name: str) -> StructInfo | None:
    """Return the first struct called *name*, or ``None`` when there is none."""
    matches = build_name_index(result).get(base_name(name))
    return matches[0] if matches else None

def find_interface(result: AnalysisResult, name: str) -> InterfaceInfo | None:
    """Return the first interface called *name*, or ``None`` when there is none."""
    wanted = base_name(name)
    for iface in result.interfaces:
        if base_name(iface.name) == wanted:
            return iface
    return None

def find_implementors(result: AnalysisResult, interface_name: str) -> list[StructInfo]:
    """Return the structs linked to an interface called *interface_name*."""
    wanted = base_name(interface_name)
    return [
        struct
        for struct in result.structs
        if any(base_name(d.name) == wanted for d in struct.implemented_interfaces)
    ]
