"""Graph index: derived, read-only views over a node/edge snapshot.

A ``GraphIndex`` is built once per graph snapshot and never mutated. It
answers the questions the compiler and the editor both ask:

- which drawables flow into a node (``upstream_objects``)
- which drawables are still unclaimed on one outgoing edge of a fan-out
  node (``branch_availability``)
- which result nodes a node may bind fields to (``visible_variables``)
- which edges are dangling or invalid (``connection_diagnostics``)

Every traversal is an iterative DFS with an explicit recursion-stack set, so
a cycle produces ``CircularDependencyError`` instead of unbounded recursion.
"""

from __future__ import annotations

import heapq
import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from flowscene.core.caching import CacheKey, DerivationCache, SnapshotCache, compute_fingerprint
from flowscene.core.diagnostics import CircularDependencyError, Diagnostic, DiagnosticCode
from flowscene.core.graph.models import Edge, FlowGraph, Node, NodeType
from flowscene.core.graph.payloads import FilterPayload, payload_for
from flowscene.core.graph.ports import PortKind, merge_port_index, valid_merge_ports, valid_ports
from flowscene.core.utils.models import WireModel

logger = logging.getLogger(__name__)

INDEX_STEP_ID = "graph.index"
INDEX_VERSION = "1"


@dataclass(frozen=True)
class BranchAvailability:
    """Drawables flowing down one outgoing edge of a fan-out node.

    Attributes:
        available: Drawables this edge may carry.
        taken: Drawables already claimed by earlier sibling edges.
    """

    available: tuple[str, ...]
    taken: tuple[str, ...]


@dataclass(frozen=True)
class VariableRef:
    """A result node visible to a downstream node for binding."""

    id: str
    display_name: str


@dataclass(frozen=True)
class _Traversal:
    visited: tuple[str, ...]
    cycle: tuple[str, ...] | None


def _walk_backward(start: str, incoming: Mapping[str, list[str]]) -> _Traversal:
    """Iterative DFS over ``incoming`` from ``start``.

    Returns every node reached (excluding ``start``) and the first cycle found,
    as a node path whose first and last elements are equal.
    """
    visited: list[str] = []
    seen: set[str] = {start}
    on_stack: set[str] = {start}
    path: list[str] = [start]
    stack: list[Any] = [iter(incoming.get(start, ()))]

    while stack:
        advanced = False
        for neighbor in stack[-1]:
            if neighbor in on_stack:
                cycle_start = path.index(neighbor)
                return _Traversal(tuple(visited), tuple(path[cycle_start:]) + (neighbor,))
            if neighbor in seen:
                continue
            seen.add(neighbor)
            visited.append(neighbor)
            on_stack.add(neighbor)
            path.append(neighbor)
            stack.append(iter(incoming.get(neighbor, ())))
            advanced = True
            break
        if not advanced:
            stack.pop()
            on_stack.discard(path.pop())

    return _Traversal(tuple(visited), None)


class GraphIndex:
    """Immutable derived view of one graph snapshot.

    Build with ``build_index()`` rather than directly so unchanged graphs hit
    the cache. All derived tables are computed eagerly in ``__init__``; query
    methods only read.
    """

    def __init__(self, graph: FlowGraph, fingerprint: str | None = None) -> None:
        self.graph = graph
        self.fingerprint = fingerprint or compute_fingerprint(graph)

        self._nodes: dict[str, Node] = {}
        for node in graph.nodes:
            # First declaration wins; duplicates are reported below.
            self._nodes.setdefault(node.id, node)
        self._order = {node_id: i for i, node_id in enumerate(self._nodes)}
        self._payloads = {
            node_id: payload_for(node) for node_id, node in self._nodes.items()
        }

        diagnostics: list[Diagnostic] = []
        if len(self._nodes) != len(graph.nodes):
            counts = Counter(n.id for n in graph.nodes)
            dupes = sorted(node_id for node_id, count in counts.items() if count > 1)
            diagnostics.append(
                Diagnostic.error(
                    DiagnosticCode.NODE_VALIDATION_FAILED,
                    f"Node ids must be unique; repeated: {', '.join(dupes)}",
                    node_id=dupes[0],
                )
            )

        self._edge_kinds: dict[str, PortKind] = {}
        self._dangling: list[Edge] = []
        self._valid_edges: list[Edge] = []
        diagnostics.extend(self._classify_edges(graph.edges))
        self._connection_diagnostics = tuple(diagnostics)

        self._incoming_edges: dict[str, list[Edge]] = {n: [] for n in self._nodes}
        self._outgoing_edges: dict[str, list[Edge]] = {n: [] for n in self._nodes}
        for edge in self._valid_edges:
            self._incoming_edges[edge.target].append(edge)
            self._outgoing_edges[edge.source].append(edge)

        all_in = {n: [e.source for e in edges] for n, edges in self._incoming_edges.items()}
        object_in = {
            n: [e.source for e in edges if self._edge_kinds[e.id] == PortKind.OBJECT_STREAM]
            for n, edges in self._incoming_edges.items()
        }

        self._upstream: dict[str, tuple[str, ...]] = {}
        self._downstream: dict[str, set[str]] = {n: set() for n in self._nodes}
        self._cycles: dict[str, tuple[str, ...]] = {}
        self._upstream_objects: dict[str, tuple[str, ...]] = {}
        self._visible: dict[str, tuple[VariableRef, ...]] = {}

        for node_id in self._nodes:
            walk = _walk_backward(node_id, all_in)
            self._upstream[node_id] = self._sorted(walk.visited)
            for up in walk.visited:
                self._downstream[up].add(node_id)
            if walk.cycle is not None:
                self._cycles[node_id] = walk.cycle
                continue

            object_walk = _walk_backward(node_id, object_in)
            reached = object_walk.visited
            if self._nodes[node_id].is_geometry:
                reached = (node_id, *reached)
            self._upstream_objects[node_id] = self._sorted(
                n for n in reached if self._nodes[n].is_geometry
            )
            self._visible[node_id] = tuple(
                VariableRef(id=n, display_name=self._nodes[n].label)
                for n in self._upstream[node_id]
                if self._nodes[n].node_type == NodeType.RESULT
            )

        self._topological = self._compute_topological_order()
        logger.debug(
            "Indexed graph %s: %d nodes, %d valid edges, %d dangling, %d cyclic nodes",
            self.fingerprint[:12],
            len(self._nodes),
            len(self._valid_edges),
            len(self._dangling),
            len(self._cycles),
        )

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    def _sorted(self, node_ids: Iterable[str]) -> tuple[str, ...]:
        return tuple(sorted(set(node_ids), key=self._order.__getitem__))

    def _classify_edges(self, edges: list[Edge]) -> list[Diagnostic]:
        """Split edges into valid, dangling and invalid; report the latter two."""
        diagnostics: list[Diagnostic] = []
        seen_ids: set[str] = set()

        for edge in edges:
            if edge.id in seen_ids:
                diagnostics.append(
                    Diagnostic.error(
                        DiagnosticCode.INVALID_CONNECTION,
                        f"Edge id '{edge.id}' is used more than once",
                        edge_ids=[edge.id],
                    )
                )
                continue
            seen_ids.add(edge.id)

            source = self._nodes.get(edge.source)
            target = self._nodes.get(edge.target)
            if source is None or target is None:
                missing = edge.source if source is None else edge.target
                diagnostics.append(
                    Diagnostic.error(
                        DiagnosticCode.INVALID_CONNECTION,
                        f"Connection '{edge.id}' references missing node '{missing}'",
                        edge_ids=[edge.id],
                    )
                )
                continue

            source_ports = valid_ports(source)
            target_ports = valid_ports(target)
            out_kind = source_ports.outputs.get(edge.source_port) if source_ports else None
            in_kind = target_ports.inputs.get(edge.target_port) if target_ports else None

            if source_ports is not None and out_kind is None:
                diagnostics.append(
                    Diagnostic.error(
                        DiagnosticCode.INVALID_CONNECTION,
                        f"{source.label} has no output port '{edge.source_port}'",
                        node_id=source.id,
                        edge_ids=[edge.id],
                    )
                )
                continue

            if target_ports is not None and in_kind is None:
                if target.node_type == NodeType.MERGE and merge_port_index(edge.target_port):
                    self._dangling.append(edge)
                    diagnostics.append(
                        Diagnostic.warning(
                            DiagnosticCode.INVALID_CONNECTION,
                            f"Dangling connection '{edge.id}': {target.label} no longer has "
                            f"port '{edge.target_port}'",
                            suggestions=[
                                "Increase the merge node's input count",
                                "Delete the dangling connection",
                            ],
                            node_id=target.id,
                            edge_ids=[edge.id],
                        )
                    )
                else:
                    diagnostics.append(
                        Diagnostic.error(
                            DiagnosticCode.INVALID_CONNECTION,
                            f"{target.label} has no input port '{edge.target_port}'",
                            node_id=target.id,
                            edge_ids=[edge.id],
                        )
                    )
                continue

            if out_kind is not None and in_kind is not None and out_kind != in_kind:
                diagnostics.append(
                    Diagnostic.error(
                        DiagnosticCode.INVALID_CONNECTION,
                        f"Cannot connect {out_kind.value} output of {source.label} "
                        f"to {in_kind.value} input of {target.label}",
                        node_id=target.id,
                        edge_ids=[edge.id],
                    )
                )
                continue

            self._edge_kinds[edge.id] = out_kind or in_kind or PortKind.OBJECT_STREAM
            self._valid_edges.append(edge)

        return diagnostics

    def _compute_topological_order(self) -> tuple[str, ...] | None:
        """Kahn's algorithm over valid edges; ties broken by declaration order."""
        indegree = {n: len(edges) for n, edges in self._incoming_edges.items()}
        ready = [(self._order[n], n) for n, d in indegree.items() if d == 0]
        heapq.heapify(ready)
        order: list[str] = []
        while ready:
            _, node_id = heapq.heappop(ready)
            order.append(node_id)
            for edge in self._outgoing_edges[node_id]:
                indegree[edge.target] -= 1
                if indegree[edge.target] == 0:
                    heapq.heappush(ready, (self._order[edge.target], edge.target))
        if len(order) != len(self._nodes):
            return None
        return tuple(order)

    def _raise_if_cyclic(self, node_id: str) -> None:
        cycle = self._cycles.get(node_id)
        if cycle is not None:
            raise CircularDependencyError(cycle)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def nodes(self) -> Mapping[str, Node]:
        return MappingProxyType(self._nodes)

    @property
    def valid_edges(self) -> tuple[Edge, ...]:
        return tuple(self._valid_edges)

    @property
    def dangling_edges(self) -> tuple[Edge, ...]:
        return tuple(self._dangling)

    @property
    def connection_diagnostics(self) -> tuple[Diagnostic, ...]:
        """Invalid and dangling connection diagnostics, in edge order."""
        return self._connection_diagnostics

    @property
    def cyclic_nodes(self) -> frozenset[str]:
        """Nodes whose upstream closure contains a cycle."""
        return frozenset(self._cycles)

    def node(self, node_id: str) -> Node:
        return self._nodes[node_id]

    def payload(self, node_id: str) -> WireModel | None:
        """Validated payload of a node (None for unknown node types)."""
        return self._payloads[node_id]

    def edge_kind(self, edge_id: str) -> PortKind:
        return self._edge_kinds[edge_id]

    def incoming(self, node_id: str, kind: PortKind | None = None) -> list[Edge]:
        edges = self._incoming_edges.get(node_id, [])
        if kind is None:
            return list(edges)
        return [e for e in edges if self._edge_kinds[e.id] == kind]

    def outgoing(self, node_id: str, kind: PortKind | None = None) -> list[Edge]:
        edges = self._outgoing_edges.get(node_id, [])
        if kind is None:
            return list(edges)
        return [e for e in edges if self._edge_kinds[e.id] == kind]

    def upstream(self, node_id: str) -> tuple[str, ...]:
        """Every node with a path into ``node_id``, in declaration order."""
        return self._upstream[node_id]

    def downstream(self, node_id: str) -> tuple[str, ...]:
        """Every node reachable from ``node_id``, in declaration order."""
        return self._sorted(self._downstream[node_id])

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def upstream_objects(self, node_id: str) -> tuple[str, ...]:
        """Drawables flowing into ``node_id`` over object-stream edges.

        A drawable node reports itself.

        Raises:
            CircularDependencyError: If the upstream closure contains a cycle.
            KeyError: If the node does not exist.
        """
        if node_id not in self._nodes:
            raise KeyError(node_id)
        self._raise_if_cyclic(node_id)
        return self._upstream_objects[node_id]

    def visible_variables(self, node_id: str) -> tuple[VariableRef, ...]:
        """Result nodes upstream of ``node_id``, excluding the node itself.

        Raises:
            CircularDependencyError: If the upstream closure contains a cycle.
            KeyError: If the node does not exist.
        """
        if node_id not in self._nodes:
            raise KeyError(node_id)
        self._raise_if_cyclic(node_id)
        return self._visible[node_id]

    def branch_availability(self, source_id: str, edge_id: str) -> BranchAvailability:
        """Partition of ``source_id``'s drawables for one outgoing edge.

        Sibling edges claim drawables in edge-id lexical order. An edge into a
        filter claims only the drawables the filter selects; an edge into a
        merge claims nothing and sees every upstream drawable. Dangling and
        invalid edges carry nothing and claim nothing.

        Args:
            source_id: Fan-out node.
            edge_id: One of its outgoing edges.

        Returns:
            Available and taken drawable ids.

        Raises:
            CircularDependencyError: If ``source_id``'s upstream contains a cycle.
            KeyError: If ``edge_id`` is not an edge leaving ``source_id``.
        """
        edge = next(
            (e for e in self.graph.edges if e.id == edge_id and e.source == source_id), None
        )
        if edge is None:
            raise KeyError(f"{edge_id} is not an edge from {source_id}")
        upstream = self.upstream_objects(source_id)
        if edge.id not in self._edge_kinds:
            return BranchAvailability(available=(), taken=())

        siblings = sorted(self.outgoing(source_id, PortKind.OBJECT_STREAM), key=lambda e: e.id)
        taken: set[str] = set()
        for sibling in siblings:
            target = self._nodes[sibling.target]
            if target.node_type == NodeType.MERGE:
                available = upstream
                claimed: Iterable[str] = ()
            else:
                available = tuple(o for o in upstream if o not in taken)
                if target.node_type == NodeType.FILTER:
                    selected = set(self._filter_selection(target.id))
                    claimed = [o for o in available if o in selected]
                else:
                    claimed = available
            if sibling.id == edge_id:
                return BranchAvailability(
                    available=available,
                    taken=tuple(o for o in upstream if o in taken),
                )
            taken.update(claimed)

        return BranchAvailability(available=(), taken=())

    def valid_merge_ports(self, node_id: str) -> set[str]:
        """Currently valid input ports of a merge node."""
        return valid_merge_ports(self._nodes[node_id])

    def topological_order(self) -> tuple[str, ...]:
        """All nodes with every edge pointing forward.

        Raises:
            CircularDependencyError: If the graph contains a cycle.
        """
        if self._topological is None:
            first = min(self._cycles, key=self._order.__getitem__)
            raise CircularDependencyError(self._cycles[first])
        return self._topological

    def _filter_selection(self, node_id: str) -> list[str]:
        payload = self._payloads[node_id]
        return payload.selected_object_ids if isinstance(payload, FilterPayload) else []


_default_cache: SnapshotCache[GraphIndex] = SnapshotCache(max_entries=32)


def default_index_cache() -> SnapshotCache[GraphIndex]:
    return _default_cache


def build_index(
    graph: FlowGraph | Mapping[str, Any],
    cache: DerivationCache[GraphIndex] | None = None,
) -> GraphIndex:
    """Build (or reuse) the index for a graph snapshot.

    Args:
        graph: Graph model, or its raw editor JSON.
        cache: Cache to consult; the process-wide snapshot cache when None.

    Returns:
        GraphIndex for the snapshot.

    Raises:
        PayloadError: If a known node type has a malformed payload.
    """
    if not isinstance(graph, FlowGraph):
        graph = FlowGraph.model_validate(graph)
    cache = _default_cache if cache is None else cache

    fingerprint = compute_fingerprint(graph)
    key = CacheKey(step_id=INDEX_STEP_ID, step_version=INDEX_VERSION, input_fingerprint=fingerprint)
    cached = cache.load(key)
    if cached is not None:
        return cached

    index = GraphIndex(graph, fingerprint=fingerprint)
    cache.store(key, index)
    return index


__all__ = [
    "BranchAvailability",
    "GraphIndex",
    "VariableRef",
    "build_index",
    "default_index_cache",
]
