"""
Dependency graph over one lockfile's package set.

Nodes are PackageRecords keyed by a stable node id; edges are resolved
dependency references. Graphs are never mutated once built: exclusion
returns a new Graph with the removed nodes and every edge into them gone.
"""

from collections import defaultdict
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from .exceptions import AmbiguousDependency, LockfileParseError, UnresolvedDependency
from .package import DependencyRef, PackageRecord

NodeId = str


def node_id_for(record: PackageRecord) -> NodeId:
    """Stable identity of a record: its content hash, else name@version (plus source)."""
    if record.content_hash:
        return record.content_hash
    if record.source:
        return f"{record.name}@{record.version} ({record.source})"
    return f"{record.name}@{record.version}"


def _strip_revision(source: Optional[str]) -> Optional[str]:
    if source and "#" in source:
        return source.rsplit("#", 1)[0]
    return source


class Graph:
    """Immutable dependency graph: node id -> record, node id -> dependency node ids."""

    def __init__(
        self,
        nodes: Dict[NodeId, PackageRecord],
        edges: Dict[NodeId, Tuple[NodeId, ...]],
    ):
        self._nodes = dict(nodes)
        self._edges = {node_id: tuple(edges.get(node_id, ())) for node_id in self._nodes}
        self._by_name: Dict[str, List[NodeId]] = defaultdict(list)
        for node_id, record in self._nodes.items():
            self._by_name[record.name].append(node_id)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[NodeId]:
        return iter(self._nodes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Graph):
            return NotImplemented
        return self._nodes == other._nodes and self._edges == other._edges

    def __repr__(self) -> str:
        return f"Graph(nodes={len(self._nodes)}, edges={self.edge_count})"

    @property
    def edge_count(self) -> int:
        return sum(len(targets) for targets in self._edges.values())

    def node_ids(self) -> Set[NodeId]:
        return set(self._nodes)

    def record(self, node_id: NodeId) -> PackageRecord:
        return self._nodes[node_id]

    def dependencies_of(self, node_id: NodeId) -> Tuple[NodeId, ...]:
        return self._edges[node_id]

    def nodes_named(self, name: str) -> List[NodeId]:
        return list(self._by_name.get(name, ()))

    def names(self) -> Set[str]:
        return {name for name, ids in self._by_name.items() if ids}


def _resolve_reference(
    owner: PackageRecord,
    ref: DependencyRef,
    by_name: Dict[str, List[PackageRecord]],
    by_hash: Dict[str, PackageRecord],
) -> PackageRecord:
    if ref.content_hash:
        target = by_hash.get(ref.content_hash)
        if target is None:
            raise UnresolvedDependency(owner.full_name, str(ref))
        return target

    candidates = by_name.get(ref.name, [])
    if ref.version is not None:
        candidates = [c for c in candidates if c.version == ref.version]
    if ref.source is not None:
        exact = [c for c in candidates if c.source == ref.source]
        if not exact:
            wanted = _strip_revision(ref.source)
            exact = [c for c in candidates if _strip_revision(c.source) == wanted]
        candidates = exact

    if not candidates:
        raise UnresolvedDependency(owner.full_name, str(ref))
    if len(candidates) > 1:
        raise AmbiguousDependency(
            owner.full_name, str(ref), (c.full_name for c in candidates)
        )
    return candidates[0]


def build_graph(records: Iterable[PackageRecord]) -> Graph:
    """
    Build a Graph from a package set, resolving every dependency reference.

    Raises:
        UnresolvedDependency: a reference matches no record
        AmbiguousDependency: a reference matches several records
        LockfileParseError: two records share the same node id
    """
    records = list(records)
    nodes: Dict[NodeId, PackageRecord] = {}
    by_name: Dict[str, List[PackageRecord]] = defaultdict(list)
    by_hash: Dict[str, PackageRecord] = {}

    for record in records:
        node_id = node_id_for(record)
        if node_id in nodes:
            raise LockfileParseError(
                f"Duplicate package {record.full_name} (id {node_id}) in lockfile"
            )
        nodes[node_id] = record
        by_name[record.name].append(record)
        if record.content_hash:
            by_hash[record.content_hash] = record

    edges: Dict[NodeId, Tuple[NodeId, ...]] = {}
    for node_id, record in nodes.items():
        targets: List[NodeId] = []
        for ref in record.dependencies:
            target_id = node_id_for(_resolve_reference(record, ref, by_name, by_hash))
            if target_id not in targets:
                targets.append(target_id)
        edges[node_id] = tuple(targets)

    return Graph(nodes, edges)


def exclude(graph: Graph, names: Iterable[str]) -> Graph:
    """Return a new Graph without nodes named in `names` and without edges into them."""
    excluded = set(names)
    if not excluded:
        return graph

    kept = {
        node_id: graph.record(node_id)
        for node_id in graph
        if graph.record(node_id).name not in excluded
    }
    edges = {
        node_id: tuple(t for t in graph.dependencies_of(node_id) if t in kept)
        for node_id in kept
    }
    return Graph(kept, edges)
