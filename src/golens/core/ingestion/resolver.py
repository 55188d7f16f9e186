"""Implementation resolution for GoLens.

Links structs to the interfaces they satisfy.  Resolution is strictly
two-phase: the complete interface set is materialized before the first
struct is checked, so the outcome never depends on the order in which
packages or declarations were enumerated.

For every struct ``S`` and interface ``I``, ``S`` implements ``I`` when
each method of ``I`` finds a compatible method in ``S``'s canonical method
set (first match wins).  On success:

* ``Declaration(I.name, I.position)`` is added to ``S.implemented_interfaces``;
* ``Declaration("I.M", M.position)`` is added to the ``implemented_from`` of
  the struct method that matched interface method ``M``.

Both additions are idempotent, so resolving twice leaves the same links.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from golens.core.graph.model import (
    Declaration,
    InterfaceInfo,
    InterfaceMethodInfo,
    MethodInfo,
    StructInfo,
)
from golens.core.ingestion.matcher import SignatureMatcher
from golens.core.parsers.base import TypeExpr

logger = logging.getLogger(__name__)

def match_interface(
    struct: StructInfo,
    iface: InterfaceInfo,
    matcher: SignatureMatcher,
) -> list[tuple[InterfaceMethodInfo, MethodInfo]] | None:
    """Pair every method of *iface* with the first compatible method of *struct*.

    Returns:
        The ``(interface method, struct method)`` pairs, or ``None`` when some
        interface method has no compatible struct method.  Interfaces without
        methods never match.
    """
    if not iface.methods:
        return None

    bindings: dict[str, TypeExpr] = {}
    pairs: list[tuple[InterfaceMethodInfo, MethodInfo]] = []
    for iface_method in iface.methods:
        found = next(
            (m for m in struct.methods if matcher.matches(m, iface_method, bindings)),
            None,
        )
        if found is None:
            return None
        pairs.append((iface_method, found))
    return pairs

def resolve_implementations(
    interfaces: Iterable[InterfaceInfo],
    structs: Iterable[StructInfo],
    matcher: SignatureMatcher,
) -> int:
    """Populate ``implemented_interfaces`` and ``implemented_from`` links.

    Args:
        interfaces: Every interface of the corpus.  Consumed completely
            before any struct is resolved.
        structs: Structs to resolve; mutated in place.
        matcher: The single matching strategy used for the whole pass.

    Returns:
        The number of ``implements`` links newly added.
    """
    all_interfaces = list(interfaces)
    added = 0

    for struct in structs:
        for iface in all_interfaces:
            pairs = match_interface(struct, iface, matcher)
            if pairs is None:
                continue

            if struct.add_implemented_interface(iface.declaration()):
                added += 1
                logger.debug("%s implements %s (%s)", struct.name, iface.name, matcher.name)

            for iface_method, method in pairs:
                method.add_implemented_from(
                    Declaration(
                        name=f"{iface.name}.{iface_method.name}",
                        position=iface_method.position,
                    )
                )

    return added
