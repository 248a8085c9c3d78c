"""
Cross-lockfile comparison of two reachable subgraphs.

Each package name present on either side yields one ComparisonEntry. Only
`BOTH_DIFFERENT` entries make a comparison fail; presence on a single side
is reported but is not a version mismatch.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from .traversal import Subgraph


class Verdict(Enum):
    """Per-package classification of a cross-side comparison."""

    BOTH_SAME = "both-same"
    BOTH_DIFFERENT = "both-different"
    ONLY_A = "only-a"
    ONLY_B = "only-b"


@dataclass(frozen=True)
class ComparisonEntry:
    """One row of the comparison, keyed by package name."""

    name: str
    versions_a: FrozenSet[str]
    versions_b: FrozenSet[str]
    verdict: Verdict
    paths_a: Tuple[str, ...] = ()
    paths_b: Tuple[str, ...] = ()

    def sorted_versions_a(self) -> List[str]:
        return sorted(self.versions_a)

    def sorted_versions_b(self) -> List[str]:
        return sorted(self.versions_b)

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "name": self.name,
            "versions_a": self.sorted_versions_a(),
            "versions_b": self.sorted_versions_b(),
            "verdict": self.verdict.value,
        }
        if self.paths_a:
            data["path_a"] = list(self.paths_a)
        if self.paths_b:
            data["path_b"] = list(self.paths_b)
        return data


@dataclass(frozen=True)
class ComparisonResult:
    """Ordered comparison entries plus the counts reported alongside them."""

    entries: Tuple[ComparisonEntry, ...]
    packages_a: int
    packages_b: int
    narrowed_a: int = 0
    narrowed_b: int = 0
    strict_versions: bool = False
    _by_verdict: Dict[Verdict, int] = field(
        default_factory=dict, init=False, compare=False, repr=False
    )

    def __post_init__(self):
        counts = {verdict: 0 for verdict in Verdict}
        for entry in self.entries:
            counts[entry.verdict] += 1
        object.__setattr__(self, "_by_verdict", counts)

    @property
    def all_common_versions_match(self) -> bool:
        return self._by_verdict[Verdict.BOTH_DIFFERENT] == 0

    @property
    def common_count(self) -> int:
        return self.count(Verdict.BOTH_SAME) + self.count(Verdict.BOTH_DIFFERENT)

    def count(self, verdict: Verdict) -> int:
        return self._by_verdict[verdict]

    def entries_with(self, verdict: Verdict) -> List[ComparisonEntry]:
        return [e for e in self.entries if e.verdict == verdict]

    def get(self, name: str) -> Optional[ComparisonEntry]:
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def summary(self) -> Dict[str, int]:
        return {
            "packages_a": self.packages_a,
            "packages_b": self.packages_b,
            "common": self.common_count,
            "same": self.count(Verdict.BOTH_SAME),
            "different": self.count(Verdict.BOTH_DIFFERENT),
            "only_a": self.count(Verdict.ONLY_A),
            "only_b": self.count(Verdict.ONLY_B),
            "narrowed_a": self.narrowed_a,
            "narrowed_b": self.narrowed_b,
        }


def _verdict(
    versions_a: FrozenSet[str], versions_b: FrozenSet[str], strict_versions: bool
) -> Verdict:
    if not versions_b:
        return Verdict.ONLY_A
    if not versions_a:
        return Verdict.ONLY_B
    if strict_versions and (len(versions_a) > 1 or len(versions_b) > 1):
        return Verdict.BOTH_DIFFERENT
    if versions_a == versions_b:
        return Verdict.BOTH_SAME
    return Verdict.BOTH_DIFFERENT


def _format_paths(subgraph: Subgraph, name: str) -> Tuple[str, ...]:
    return tuple(
        " -> ".join(record.full_name for record in path)
        for path in subgraph.paths_for_name(name)
    )


def compare_entries(
    subgraph_a: Subgraph, subgraph_b: Subgraph, strict_versions: bool = False
) -> List[ComparisonEntry]:
    """Compare name -> version sets of both subgraphs, sorted by package name."""
    versions_a = subgraph_a.versions_by_name()
    versions_b = subgraph_b.versions_by_name()

    entries = []
    for name in sorted(set(versions_a) | set(versions_b)):
        side_a = frozenset(versions_a.get(name, ()))
        side_b = frozenset(versions_b.get(name, ()))
        verdict = _verdict(side_a, side_b, strict_versions)
        paths_a: Tuple[str, ...] = ()
        paths_b: Tuple[str, ...] = ()
        if verdict is Verdict.BOTH_DIFFERENT:
            paths_a = _format_paths(subgraph_a, name)
            paths_b = _format_paths(subgraph_b, name)
        entries.append(
            ComparisonEntry(
                name=name,
                versions_a=side_a,
                versions_b=side_b,
                verdict=verdict,
                paths_a=paths_a,
                paths_b=paths_b,
            )
        )
    return entries


def compare(
    subgraph_a: Subgraph,
    subgraph_b: Subgraph,
    strict_versions: bool = False,
    narrowed_a: int = 0,
    narrowed_b: int = 0,
) -> ComparisonResult:
    """
    Compare two reachable subgraphs into a ComparisonResult.

    `narrowed_a` and `narrowed_b` count the names a narrowing pass removed
    from each side before these subgraphs were walked.
    """
    return ComparisonResult(
        entries=tuple(compare_entries(subgraph_a, subgraph_b, strict_versions)),
        packages_a=len(subgraph_a),
        packages_b=len(subgraph_b),
        narrowed_a=narrowed_a,
        narrowed_b=narrowed_b,
        strict_versions=strict_versions,
    )
