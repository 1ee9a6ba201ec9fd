"""
ModuleGraph - Registers modules and resolves their execution order.

Single responsibility: dependency bookkeeping and topological ordering.
"""

import heapq
import logging
from typing import Iterator, Optional

from domain.errors import CycleError, DuplicateNameError, MissingDependencyError
from services.modules.base import Module


class ModuleGraph:
    """
    Directed acyclic graph of modules.

    Modules without an ordering constraint between them keep their
    registration order, so the resolved order is reproducible.
    """

    def __init__(self):
        self._modules: dict[str, Module] = {}
        self._order: Optional[list[Module]] = None
        self.logger = logging.getLogger(self.__class__.__name__)

    def add_module(self, module: Module):
        """
        Register a module.

        Raises:
            DuplicateNameError: If a module with the same name exists
        """
        if module.name in self._modules:
            raise DuplicateNameError("module", module.name)
        self._modules[module.name] = module
        self._order = None
        self.logger.debug(f"Registered module '{module.name}' depends_on={list(module.depends_on)}")

    def resolve(self) -> list[Module]:
        """
        Compute the execution order.

        Returns:
            Modules ordered so each one follows all of its dependencies

        Raises:
            MissingDependencyError: If a dependency name is not registered
            CycleError: If the dependencies contain a cycle
        """
        index = {name: i for i, name in enumerate(self._modules)}
        dependencies = {
            name: list(dict.fromkeys(module.depends_on))
            for name, module in self._modules.items()
        }

        for name, deps in dependencies.items():
            for dep in deps:
                if dep not in self._modules:
                    raise MissingDependencyError(name, dep)
                if dep == name:
                    raise CycleError([name, name])

        indegree = {name: len(deps) for name, deps in dependencies.items()}
        dependents: dict[str, list[str]] = {name: [] for name in self._modules}
        for name, deps in dependencies.items():
            for dep in deps:
                dependents[dep].append(name)

        ready = [(index[name], name) for name, degree in indegree.items() if degree == 0]
        heapq.heapify(ready)

        order = []
        while ready:
            _, name = heapq.heappop(ready)
            order.append(name)
            for dependent in dependents[name]:
                indegree[dependent] -= 1
                if indegree[dependent] == 0:
                    heapq.heappush(ready, (index[dependent], dependent))

        if len(order) < len(self._modules):
            resolved = set(order)
            remaining = [name for name in self._modules if name not in resolved]
            raise CycleError(self._find_cycle(remaining, dependencies))

        self._order = [self._modules[name] for name in order]
        self.logger.info(f"Resolved module order: {' → '.join(order)}")
        return list(self._order)

    @staticmethod
    def _find_cycle(remaining: list[str], dependencies: dict[str, list[str]]) -> list[str]:
        # Every unresolved module still waits on another unresolved one,
        # so following dependencies from any of them must revisit a node.
        pending = set(remaining)
        path: list[str] = []
        position: dict[str, int] = {}
        node = remaining[0]
        while node not in position:
            position[node] = len(path)
            path.append(node)
            node = next(dep for dep in dependencies[node] if dep in pending)
        return path[position[node]:] + [node]

    @property
    def order(self) -> list[Module]:
        """Resolved order, resolving on first access."""
        if self._order is None:
            return self.resolve()
        return list(self._order)

    @property
    def modules(self) -> list[Module]:
        """Modules in registration order."""
        return list(self._modules.values())

    def get(self, name: str) -> Module:
        return self._modules[name]

    def dependents_of(self, name: str) -> list[str]:
        """Names of modules that directly or transitively depend on ``name``."""
        result = []
        frontier = [name]
        while frontier:
            current = frontier.pop(0)
            for module in self._modules.values():
                if current in module.depends_on and module.name not in result:
                    result.append(module.name)
                    frontier.append(module.name)
        return result

    def __contains__(self, name: str) -> bool:
        return name in self._modules

    def __len__(self) -> int:
        return len(self._modules)

    def __iter__(self) -> Iterator[Module]:
        return iter(self.order)
