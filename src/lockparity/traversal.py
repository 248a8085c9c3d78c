"""Reachability over a dependency graph."""

from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Set

from .graph import Graph, NodeId
from .package import PackageRecord


@dataclass(frozen=True)
class Subgraph:
    """Nodes reachable from a root set, roots included."""

    graph: Graph
    roots: FrozenSet[NodeId]
    nodes: FrozenSet[NodeId]
    # node -> predecessor it was first discovered through (None for roots)
    parents: Dict[NodeId, Optional[NodeId]] = field(default_factory=dict, compare=False)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def names(self) -> Set[str]:
        return {self.graph.record(n).name for n in self.nodes}

    def versions_by_name(self) -> Dict[str, Set[str]]:
        versions: Dict[str, Set[str]] = defaultdict(set)
        for node_id in self.nodes:
            record = self.graph.record(node_id)
            versions[record.name].add(record.version)
        return dict(versions)

    def path_to(self, node_id: NodeId) -> List[PackageRecord]:
        """Records from a root down to `node_id` along discovery edges."""
        path = []
        current: Optional[NodeId] = node_id
        while current is not None:
            path.append(self.graph.record(current))
            current = self.parents.get(current)
        path.reverse()
        return path

    def paths_for_name(self, name: str) -> List[List[PackageRecord]]:
        """One discovery path per version of `name` present in this subgraph."""
        ids = sorted(n for n in self.nodes if self.graph.record(n).name == name)
        return [self.path_to(n) for n in ids]

    def as_graph(self) -> Graph:
        """The induced graph over this subgraph's nodes."""
        nodes = {n: self.graph.record(n) for n in self.graph if n in self.nodes}
        edges = {
            n: tuple(t for t in self.graph.dependencies_of(n) if t in self.nodes)
            for n in nodes
        }
        return Graph(nodes, edges)


def reachable(graph: Graph, roots: Iterable[NodeId]) -> Subgraph:
    """
    Breadth-first walk along dependency edges from every root.

    Each node is marked visited before its edges are expanded, so shared
    subtrees and cycles are visited once.
    """
    root_set = frozenset(roots)
    visited: Set[NodeId] = set()
    parents: Dict[NodeId, Optional[NodeId]] = {}
    frontier = deque()

    for root in sorted(root_set):
        if root in visited:
            continue
        visited.add(root)
        parents[root] = None
        frontier.append(root)

    while frontier:
        current = frontier.popleft()
        for dep in graph.dependencies_of(current):
            if dep in visited:
                continue
            visited.add(dep)
            parents[dep] = current
            frontier.append(dep)

    return Subgraph(graph=graph, roots=root_set, nodes=frozenset(visited), parents=parents)
