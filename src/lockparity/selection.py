"""Root selection: which package(s) a side's dependency tree is measured from."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Set

from .exceptions import AmbiguousHash, AmbiguousName, HashNotFound, NameNotFound
from .graph import Graph, NodeId


class SelectorKind(Enum):
    BY_HASH = "hash"
    BY_NAME = "name"
    ALL = "all"


@dataclass(frozen=True)
class RootSelector:
    """Chooses the root node(s) of one side's comparison."""

    kind: SelectorKind
    value: Optional[str] = None

    @classmethod
    def by_hash(cls, content_hash: str) -> "RootSelector":
        return cls(SelectorKind.BY_HASH, content_hash)

    @classmethod
    def by_name(cls, name: str) -> "RootSelector":
        return cls(SelectorKind.BY_NAME, name)

    @classmethod
    def all(cls) -> "RootSelector":
        return cls(SelectorKind.ALL)

    @classmethod
    def from_options(
        cls, pkg_hash: Optional[str] = None, pkg_name: Optional[str] = None
    ) -> "RootSelector":
        """Selector for the CLI's optional hash/name pair (callers reject both)."""
        if pkg_hash:
            return cls.by_hash(pkg_hash)
        if pkg_name:
            return cls.by_name(pkg_name)
        return cls.all()

    def __str__(self) -> str:
        if self.kind is SelectorKind.ALL:
            return "all packages"
        return f"{self.kind.value} {self.value}"


def _match_hash(graph: Graph, content_hash: str) -> Set[NodeId]:
    by_checksum = {n for n in graph if graph.record(n).content_hash == content_hash}
    if by_checksum:
        return by_checksum
    return {n for n in graph if graph.record(n).source_revision == content_hash}


def select_roots(
    graph: Graph, selector: RootSelector, unfiltered: Optional[Graph] = None
) -> Set[NodeId]:
    """
    Find the root node ids in `graph` for `selector`.

    `graph` is the already-filtered graph. When the requested root was
    removed by exclusion (it still exists in `unfiltered`), the result is an
    empty set rather than an error.

    Raises:
        HashNotFound, NameNotFound: nothing matches in either graph
        AmbiguousName: the name exists at more than one version
        AmbiguousHash: a source revision is shared by several packages
    """
    if selector.kind is SelectorKind.ALL:
        return graph.node_ids()

    if selector.kind is SelectorKind.BY_HASH:
        matches = _match_hash(graph, selector.value)
        if not matches:
            if unfiltered is not None and _match_hash(unfiltered, selector.value):
                return set()
            raise HashNotFound(selector.value)
        if len(matches) > 1:
            raise AmbiguousHash(
                selector.value, (graph.record(n).full_name for n in matches)
            )
        return matches

    matches = graph.nodes_named(selector.value)
    if not matches:
        if unfiltered is not None and unfiltered.nodes_named(selector.value):
            return set()
        raise NameNotFound(selector.value)
    if len(matches) > 1:
        raise AmbiguousName(selector.value, (graph.record(n).version for n in matches))
    return set(matches)
