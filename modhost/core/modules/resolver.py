from __future__ import annotations

"""
Dependency resolution for discovered bundles.

Order of operations:
1. bundles sharing an id are all dropped (DUPLICATE_ID)
2. bundles with a dependency that is not present are dropped, repeated until a
   full pass drops nothing (MISSING_DEPENDENCY)
3. survivors are pre-sorted by id, then topologically sorted; among bundles with
   no constraint between them the id order is kept
4. bundles left over by the sort are on a cycle or depend on one; both are
   dropped (DEPENDENCY_CYCLE), everything else proceeds

Every dropped record has its archive released before resolve() returns.
"""

import heapq
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from modhost.core.errors import DependencyCycleError, DuplicateModuleIdError, MissingDependencyError
from modhost.core.logger import get_logger
from modhost.core.modules.models import BundleRecord, ModuleReasonCode, RemovedBundle


@dataclass
class Resolution:
    ordered: List[BundleRecord] = field(default_factory=list)
    removed: List[RemovedBundle] = field(default_factory=list)
    cycles: List[DependencyCycleError] = field(default_factory=list)

    @property
    def order(self) -> List[str]:
        return [r.module_id for r in self.ordered]


class DependencyResolver:
    def __init__(self, *, logger: Optional[logging.Logger] = None):
        self.logger = logger or get_logger("resolver")

    def resolve(self, records: Iterable[BundleRecord]) -> Resolution:
        out = Resolution()
        alive = self._drop_duplicates(list(records), out)
        self._drop_missing(alive, out)
        self._order(alive, out)
        return out

    # ---- steps ----
    def _drop(self, rec: BundleRecord, reason: ModuleReasonCode, detail: str, out: Resolution) -> None:
        rec.release()
        out.removed.append(RemovedBundle(module_id=rec.module_id, reason_code=reason, detail=detail[:500], path=rec.path))

    def _drop_duplicates(self, records: List[BundleRecord], out: Resolution) -> Dict[str, BundleRecord]:
        by_id: Dict[str, List[BundleRecord]] = {}
        for rec in records:
            by_id.setdefault(rec.module_id, []).append(rec)

        alive: Dict[str, BundleRecord] = {}
        for mid in sorted(by_id):
            group = by_id[mid]
            if len(group) == 1:
                alive[mid] = group[0]
                continue
            err = DuplicateModuleIdError(mid, [r.path for r in group])
            self.logger.error("%s (%s)", err.user_message, ", ".join(err.context["paths"]))
            for rec in group:
                self._drop(rec, ModuleReasonCode.DUPLICATE_ID, err.user_message, out)
        return alive

    def _drop_missing(self, alive: Dict[str, BundleRecord], out: Resolution) -> None:
        changed = True
        while changed:
            changed = False
            for mid in sorted(alive):
                rec = alive[mid]
                missing = [d for d in rec.manifest.dependencies if d not in alive]
                if not missing:
                    continue
                err = MissingDependencyError(mid, missing)
                self.logger.error("\"%s\" is missing dependencies: %s", rec.manifest.name or mid, ", ".join(missing))
                del alive[mid]
                self._drop(rec, ModuleReasonCode.MISSING_DEPENDENCY, err.user_message, out)
                changed = True

    def _order(self, alive: Dict[str, BundleRecord], out: Resolution) -> None:
        ids = sorted(alive)
        index = {mid: i for i, mid in enumerate(ids)}
        deps: Dict[str, Set[str]] = {mid: set(alive[mid].manifest.dependencies) for mid in ids}
        dependents: Dict[str, List[str]] = {mid: [] for mid in ids}
        pending: Dict[str, int] = {}
        for mid in ids:
            pending[mid] = len(deps[mid])
            for d in sorted(deps[mid]):
                dependents[d].append(mid)

        # always emit the lowest-id bundle whose dependencies are all placed
        ready = [index[mid] for mid in ids if pending[mid] == 0]
        heapq.heapify(ready)
        while ready:
            mid = ids[heapq.heappop(ready)]
            out.ordered.append(alive[mid])
            for dep in dependents[mid]:
                pending[dep] -= 1
                if pending[dep] == 0:
                    heapq.heappush(ready, index[dep])

        leftover = [mid for mid in ids if pending[mid] > 0]
        if leftover:
            self._drop_cycles(leftover, deps, alive, out)

    def _drop_cycles(self, leftover: List[str], deps: Dict[str, Set[str]], alive: Dict[str, BundleRecord], out: Resolution) -> None:
        left = set(leftover)
        reach = {mid: _reachable(mid, deps, left) for mid in leftover}
        on_cycle = [mid for mid in leftover if mid in reach[mid]]

        seen: Set[str] = set()
        for mid in on_cycle:
            if mid in seen:
                continue
            members = [m for m in on_cycle if m == mid or (m in reach[mid] and mid in reach[m])]
            seen.update(members)
            err = DependencyCycleError(members)
            out.cycles.append(err)
            self.logger.error("%s", err.user_message)
            for m in err.members:
                self._drop(alive[m], ModuleReasonCode.DEPENDENCY_CYCLE, err.user_message, out)

        for mid in leftover:
            if mid in seen:
                continue
            via = sorted(m for m in on_cycle if m in reach[mid])
            detail = f"Bundle '{mid}' depends on a dependency cycle: {', '.join(via)}."
            self.logger.error("%s", detail)
            self._drop(alive[mid], ModuleReasonCode.DEPENDENCY_CYCLE, detail, out)


def _reachable(start: str, deps: Dict[str, Set[str]], within: Set[str]) -> Set[str]:
    """Ids reachable from ``start`` through one or more dependency edges, restricted to ``within``."""
    seen: Set[str] = set()
    stack = [d for d in deps.get(start, ()) if d in within]
    while stack:
        cur = stack.pop()
        if cur in seen:
            continue
        seen.add(cur)
        stack.extend(d for d in deps.get(cur, ()) if d in within and d not in seen)
    return seen
