"""
Comparison pipeline.

Each side runs through its own isolated pipeline: build the graph, apply
exclusions, select roots on the filtered graph, walk reachability. The two
reachable subgraphs are then compared. Loading is the only blocking step
and both sides are fetched concurrently.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional, Tuple

import httpx

from .cli_config import LockParityConfig, get_config
from .comparator import ComparisonResult, compare
from .exceptions import ConfigurationError
from .graph import Graph, build_graph, exclude
from .package import PackageSet
from .parsers import parse_lockfile
from .selection import RootSelector, select_roots
from .sources import fetch_pair
from .structured_logging import (
    clear_run_context,
    log_comparison_complete,
    log_lockfile_loaded,
    log_narrowing_applied,
    log_side_resolved,
    set_run_context,
)
from .traversal import Subgraph, reachable


def parse_exclude_list(value: Optional[str]) -> FrozenSet[str]:
    """Split a comma-separated package list, ignoring blanks."""
    if not value:
        return frozenset()
    return frozenset(name.strip() for name in value.split(",") if name.strip())


@dataclass(frozen=True)
class SideSpec:
    """Where one lockfile comes from and how to cut its tree."""

    src: str
    pkg_hash: Optional[str] = None
    pkg_name: Optional[str] = None
    exclude_pkgs: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        if self.pkg_hash and self.pkg_name:
            raise ConfigurationError(
                f"Root for {self.src} can be selected by hash or by name, not both"
            )
        object.__setattr__(self, "exclude_pkgs", frozenset(self.exclude_pkgs))

    @property
    def selector(self) -> RootSelector:
        return RootSelector.from_options(self.pkg_hash, self.pkg_name)


@dataclass(frozen=True)
class ComparisonOptions:
    strict_versions: bool = False
    narrow_to_common: bool = False

    @classmethod
    def from_config(cls, config: LockParityConfig) -> "ComparisonOptions":
        return cls(
            strict_versions=config.compare.strict_versions,
            narrow_to_common=config.compare.narrow_to_common,
        )


@dataclass(frozen=True)
class SideResult:
    """Intermediate products of one side's pipeline."""

    graph: Graph
    filtered: Graph
    selector: RootSelector
    excluded: FrozenSet[str]
    subgraph: Subgraph


def resolve_side(
    graph: Graph, selector: RootSelector, excluded: Iterable[str] = ()
) -> SideResult:
    """Filter, select roots on the filtered graph, and walk reachability."""
    excluded = frozenset(excluded)
    filtered = exclude(graph, excluded)
    roots = select_roots(filtered, selector, unfiltered=graph)
    return SideResult(
        graph=graph,
        filtered=filtered,
        selector=selector,
        excluded=excluded,
        subgraph=reachable(filtered, roots),
    )


@dataclass(frozen=True)
class ComparisonRun:
    result: ComparisonResult
    side_a: SideResult
    side_b: SideResult


def compare_graphs(
    graph_a: Graph,
    graph_b: Graph,
    selector_a: RootSelector,
    selector_b: RootSelector,
    exclude_a: Iterable[str] = (),
    exclude_b: Iterable[str] = (),
    options: ComparisonOptions = ComparisonOptions(),
) -> ComparisonRun:
    """
    Compare two built graphs.

    With `narrow_to_common`, names outside the first pass's name
    intersection are added to each side's exclusions and reachability is
    recomputed before the final comparison.
    """
    side_a = resolve_side(graph_a, selector_a, exclude_a)
    side_b = resolve_side(graph_b, selector_b, exclude_b)

    narrowed_a = narrowed_b = 0
    if options.narrow_to_common:
        names_a = side_a.subgraph.names()
        names_b = side_b.subgraph.names()
        common = names_a & names_b
        extra_a = names_a - common
        extra_b = names_b - common
        narrowed_a, narrowed_b = len(extra_a), len(extra_b)
        side_a = resolve_side(graph_a, selector_a, side_a.excluded | extra_a)
        side_b = resolve_side(graph_b, selector_b, side_b.excluded | extra_b)

    result = compare(
        side_a.subgraph,
        side_b.subgraph,
        options.strict_versions,
        narrowed_a=narrowed_a,
        narrowed_b=narrowed_b,
    )
    return ComparisonRun(result=result, side_a=side_a, side_b=side_b)


def compare_package_sets(
    records_a: PackageSet,
    records_b: PackageSet,
    spec_a: SideSpec,
    spec_b: SideSpec,
    options: ComparisonOptions = ComparisonOptions(),
) -> ComparisonRun:
    """Build both graphs from parsed package sets and compare them."""
    return compare_graphs(
        build_graph(records_a),
        build_graph(records_b),
        spec_a.selector,
        spec_b.selector,
        spec_a.exclude_pkgs,
        spec_b.exclude_pkgs,
        options,
    )


async def load_package_sets(
    spec_a: SideSpec,
    spec_b: SideSpec,
    config: Optional[LockParityConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Tuple[PackageSet, PackageSet]:
    """Fetch both lockfiles concurrently and parse them."""
    start_time = time.time()
    content_a, content_b = await fetch_pair(spec_a.src, spec_b.src, config, transport)
    records_a = parse_lockfile(content_a, spec_a.src)
    records_b = parse_lockfile(content_b, spec_b.src)

    duration_ms = int((time.time() - start_time) * 1000)
    log_lockfile_loaded("a", spec_a.src, len(records_a), duration_ms)
    log_lockfile_loaded("b", spec_b.src, len(records_b), duration_ms)
    return records_a, records_b


def run_comparison(
    spec_a: SideSpec,
    spec_b: SideSpec,
    options: Optional[ComparisonOptions] = None,
    config: Optional[LockParityConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ComparisonRun:
    """Load, parse and compare two lockfiles end to end."""
    config = config or get_config()
    options = options or ComparisonOptions.from_config(config)

    set_run_context(f"run_{int(time.time())}", spec_a.src, spec_b.src)
    try:
        records_a, records_b = asyncio.run(
            load_package_sets(spec_a, spec_b, config, transport)
        )
        run = compare_package_sets(records_a, records_b, spec_a, spec_b, options)

        for side, spec, side_result in (("a", spec_a, run.side_a), ("b", spec_b, run.side_b)):
            log_side_resolved(
                side,
                str(spec.selector),
                len(side_result.excluded),
                len(side_result.filtered),
                len(side_result.subgraph),
            )
        if options.narrow_to_common:
            log_narrowing_applied(run.result.narrowed_a, run.result.narrowed_b)
        log_comparison_complete(run.result.summary(), run.result.all_common_versions_match)
        return run
    finally:
        clear_run_context()

