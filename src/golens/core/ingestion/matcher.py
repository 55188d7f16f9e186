"""Signature matching strategies.

Two interchangeable implementations of :class:`SignatureMatcher`:

* :class:`TypeCheckerBacked` -- authoritative.  Works on the typed
  signatures attached by an in-process analysis: type identity with
  type-parameter unification and Go's unexported-name rule.
* :class:`StringHeuristic` -- portable.  Works on serialized records only:
  rendered type strings must be equal, except that a single upper-case
  letter in the interface acts as a wildcard.

A resolution pass uses exactly one of them; :func:`select_matcher` picks
the authoritative one whenever every record carries a typed signature.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from golens.core.errors import MatcherUnavailableError
from golens.core.graph.model import AnalysisResult, InterfaceMethodInfo, MethodInfo
from golens.core.ingestion.types import unify
from golens.core.parsers.base import TypeExpr

@runtime_checkable
class SignatureMatcher(Protocol):
    """Decides whether a struct method can stand in for an interface method."""

    name: str

    def matches(
        self,
        candidate: MethodInfo,
        target: InterfaceMethodInfo,
        bindings: dict[str, TypeExpr] | None = None,
    ) -> bool:
        """Return ``True`` if *candidate* satisfies *target*.

        *bindings* carries type-parameter bindings across the methods of one
        interface; matchers that do not track bindings ignore it.
        """
        ...

def is_type_placeholder(type_string: str) -> bool:
    """A rendered type of exactly one ``A``-``Z`` letter is a generic placeholder."""
    return len(type_string) == 1 and "A" <= type_string <= "Z"

def _strings_match(candidate: str, target: str) -> bool:
    return is_type_placeholder(target) or candidate == target

class StringHeuristic:
    """Structural matcher over rendered type strings.

    Deliberately permissive for placeholders and deliberately strict
    otherwise: ``sql.DB`` and ``database/sql.DB`` are different types here.
    """

    name = "string-heuristic"

    def matches(
        self,
        candidate: MethodInfo,
        target: InterfaceMethodInfo,
        bindings: dict[str, TypeExpr] | None = None,
    ) -> bool:
        if candidate.name != target.name:
            return False
        if len(candidate.parameters) != len(target.parameters):
            return False
        if len(candidate.return_types) != len(target.return_types):
            return False

        for cand_param, target_param in zip(candidate.parameters, target.parameters):
            if not _strings_match(cand_param.type, target_param.type):
                return False

        for cand_ret, target_ret in zip(candidate.return_types, target.return_types):
            if not _strings_match(cand_ret, target_ret):
                return False

        return True

class TypeCheckerBacked:
    """Matcher using the typed signatures of an in-process analysis.

    Types must be identical after normalizing predeclared aliases.  The
    interface's type parameters unify with the candidate's types and must
    bind consistently across all methods sharing *bindings*.

    Raises:
        MatcherUnavailableError: If either record lacks a typed signature.
    """

    name = "type-checker"

    def matches(
        self,
        candidate: MethodInfo,
        target: InterfaceMethodInfo,
        bindings: dict[str, TypeExpr] | None = None,
    ) -> bool:
        cand_sig = candidate.signature
        target_sig = target.signature
        if cand_sig is None or target_sig is None:
            raise MatcherUnavailableError(
                f"no typed signature for {candidate.name if cand_sig is None else target.name}; "
                "use the string heuristic for serialized results"
            )

        if candidate.name != target.name:
            return False
        if not candidate.name[:1].isupper() and cand_sig.package != target_sig.package:
            return False
        if len(cand_sig.params) != len(target_sig.params):
            return False
        if len(cand_sig.results) != len(target_sig.results):
            return False

        trial = dict(bindings) if bindings is not None else {}
        pairs = zip(cand_sig.params + cand_sig.results, target_sig.params + target_sig.results)
        for cand_type, target_type in pairs:
            if not unify(cand_type, target_type, trial):
                return False

        if bindings is not None:
            bindings.update(trial)
        return True

def has_typed_signatures(result: AnalysisResult) -> bool:
    """Return ``True`` when every method record carries a typed signature."""
    for iface in result.interfaces:
        if any(m.signature is None for m in iface.methods):
            return False
    for struct in result.structs:
        if any(m.signature is None for m in struct.methods):
            return False
    return True

def select_matcher(result: AnalysisResult) -> SignatureMatcher:
    """Prefer the type-checker-backed matcher; fall back to the string heuristic."""
    if has_typed_signatures(result):
        return TypeCheckerBacked()
    return StringHeuristic()
