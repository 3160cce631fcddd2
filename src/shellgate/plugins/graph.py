"""Plugin dependency graph with iterative topological ordering."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable


class CycleError(ValueError):
    """The graph has no topological order."""

    def __init__(self, nodes: list[str]):
        self.nodes = nodes
        super().__init__(f"Circular dependency involving: {', '.join(nodes)}")


class DependencyGraph:
    """Adjacency list mapping each node to the nodes it depends on.

    Dependencies that were never added as nodes are kept as edges but are not
    part of the ordering; callers check for missing nodes separately.
    """

    def __init__(self) -> None:
        self._deps: dict[str, list[str]] = {}

    @classmethod
    def from_mapping(cls, mapping: dict[str, Iterable[str]]) -> DependencyGraph:
        graph = cls()
        for node, deps in mapping.items():
            graph.add(node, deps)
        return graph

    def add(self, node: str, dependencies: Iterable[str] = ()) -> None:
        self._deps[node] = list(dependencies)

    def __contains__(self, node: str) -> bool:
        return node in self._deps

    def dependencies(self, node: str) -> list[str]:
        return list(self._deps.get(node, []))

    def missing(self, node: str) -> list[str]:
        """Direct dependencies of ``node`` that are not nodes of the graph."""
        return [d for d in self._deps.get(node, []) if d not in self._deps]

    def order(self) -> list[str]:
        """Kahn's algorithm: dependencies before dependents.

        Ties keep insertion order.

        Raises:
            CycleError: If some nodes can never be ordered
        """
        indegree = {node: 0 for node in self._deps}
        dependents: dict[str, list[str]] = {node: [] for node in self._deps}
        for node, deps in self._deps.items():
            for dep in deps:
                if dep in self._deps:
                    indegree[node] += 1
                    dependents[dep].append(node)

        ready = deque(node for node, degree in indegree.items() if degree == 0)
        ordered: list[str] = []
        while ready:
            node = ready.popleft()
            ordered.append(node)
            for dependent in dependents[node]:
                indegree[dependent] -= 1
                if indegree[dependent] == 0:
                    ready.append(dependent)

        if len(ordered) != len(self._deps):
            raise CycleError([node for node in self._deps if node not in ordered])
        return ordered

    def closure(self, node: str) -> list[str]:
        """``node`` and every transitive dependency, dependencies first."""
        reachable: set[str] = set()
        stack = [node]
        while stack:
            current = stack.pop()
            if current in reachable:
                continue
            reachable.add(current)
            stack.extend(self._deps.get(current, []))

        sub = DependencyGraph()
        for name in self._deps:
            if name in reachable:
                sub.add(name, self._deps[name])
        for name in reachable - set(self._deps):
            sub.add(name)
        return sub.order()
