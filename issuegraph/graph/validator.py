"""Dependency resolution and closure checks.

This module answers two questions about an item: are its dependencies
resolved, and is it safe to close. Only unresolved direct dependencies block
closure. Open dependents and cycle membership produce advisory warnings but
never flip ``can_close`` to False.

Validation results are kept in a ValidationCache with a fixed TTL. The cache
is not invalidated by writes, so a read right after a write may be stale
until the entry expires or the caller passes ``use_cache=False``.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from issuegraph.errors import TrackerError
from issuegraph.graph.cycles import CycleDetector, cycle_contains
from issuegraph.graph.service import DependencyService
from issuegraph.models import (
    ClosureDecision,
    DependencyStatus,
    ItemResult,
    ItemState,
    UnresolvedDependency,
    ValidationResult,
    normalize_item_id,
)

logger = structlog.get_logger(__name__)

DEFAULT_CACHE_TTL_SECONDS = 300.0
DEFAULT_MAX_DEPTH = 10


@dataclass
class _CacheEntry:
    result: ValidationResult
    stored_at: float


class ValidationCache:
    """TTL cache of validation results keyed by item and mode.

    Attributes:
        ttl_seconds: Lifetime of an entry; 0 disables caching
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize an empty cache.

        Args:
            ttl_seconds: Lifetime of an entry in seconds
            clock: Monotonic time source, injectable for tests
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[tuple[str, bool], _CacheEntry] = {}

    def get(self, item_id: str, recursive: bool = False) -> ValidationResult | None:
        """Return a fresh cached result, dropping it if expired."""
        key = (item_id, recursive)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return entry.result

    def set(self, item_id: str, result: ValidationResult, recursive: bool = False) -> None:
        if self.ttl_seconds <= 0:
            return
        self._entries[(item_id, recursive)] = _CacheEntry(result, self._clock())

    def invalidate(self, item_id: str) -> None:
        """Drop every cached result for ``item_id``."""
        for key in [key for key in self._entries if key[0] == item_id]:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def _unresolved(result: ItemResult) -> UnresolvedDependency:
    return UnresolvedDependency(id=result.item_id, title=result.title, state=result.state)


def _format_ids(deps: list[UnresolvedDependency]) -> str:
    return ", ".join(f"#{dep.id}" for dep in deps)


class ClosureValidator:
    """Validate dependencies and decide whether items can be closed."""

    def __init__(
        self,
        service: DependencyService,
        cache: ValidationCache | None = None,
        detector: CycleDetector | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        """Initialize the validator.

        Args:
            service: Graph service used to read edges and items
            cache: Validation result cache; a default TTL cache if omitted
            detector: Cycle detector used by ``can_close``
            max_depth: Depth bound for recursive validation
        """
        self.service = service
        self.cache = cache if cache is not None else ValidationCache()
        self.detector = detector or CycleDetector(service, max_depth=max_depth)
        self.max_depth = max_depth

    async def validate_dependencies(
        self,
        item_id: str,
        recursive: bool = False,
        use_cache: bool = True,
    ) -> ValidationResult:
        """Check whether every dependency of ``item_id`` is closed.

        Args:
            item_id: Item to validate
            recursive: Also collect unresolved dependencies beneath open ones.
                Closed dependencies are never expanded.
            use_cache: Reuse a fresh cached result if one exists

        Returns:
            ValidationResult; ``valid`` is False when anything is unresolved
        """
        item_id = normalize_item_id(item_id)

        if use_cache:
            cached = self.cache.get(item_id, recursive)
            if cached is not None:
                logger.debug("validation_cache_hit", item_id=item_id, recursive=recursive)
                return cached

        unresolved: dict[str, UnresolvedDependency] = {}
        error = await self._collect_unresolved(item_id, recursive, unresolved, {item_id}, depth=0)
        if error is not None:
            # Unverifiable, so never valid and never cached
            logger.warning("dependencies_unverifiable", item_id=item_id, error=error)
            return ValidationResult(
                item_id=item_id,
                valid=False,
                message=f"Could not read dependencies of #{item_id}: {error}",
                error=error,
            )

        deps = list(unresolved.values())
        if deps:
            message = f"{len(deps)} unresolved dependencies: {_format_ids(deps)}"
        else:
            message = "All dependencies resolved"

        result = ValidationResult(
            item_id=item_id,
            valid=not deps,
            unresolved_dependencies=deps,
            message=message,
        )
        self.cache.set(item_id, result, recursive)

        logger.info(
            "dependencies_validated",
            item_id=item_id,
            valid=result.valid,
            unresolved=len(deps),
            recursive=recursive,
        )
        return result

    async def _collect_unresolved(
        self,
        item_id: str,
        recursive: bool,
        unresolved: dict[str, UnresolvedDependency],
        visited: set[str],
        depth: int,
    ) -> str | None:
        """Walk open dependencies; return the lookup error if the root's edges are unreadable."""
        if depth >= self.max_depth:
            logger.debug("validation_depth_limit", item_id=item_id, depth=depth)
            return None

        lookup = await self.service.lookup_edges(item_id)
        if not lookup.ok:
            if depth == 0:
                return lookup.error
            # The dependency is open already; mark that nothing beneath it was checked
            known = unresolved.get(item_id)
            unresolved[item_id] = UnresolvedDependency(
                id=item_id,
                title=known.title if known else "",
                state=ItemState.ERROR,
            )
            return None

        results = await self.service.store.resolve_items(list(lookup.targets))
        open_deps = [result for result in results if result.state is not ItemState.CLOSED]
        for result in open_deps:
            unresolved.setdefault(result.item_id, _unresolved(result))

        if not recursive:
            return None

        for result in open_deps:
            if result.item_id in visited:
                continue
            visited.add(result.item_id)
            await self._collect_unresolved(
                result.item_id,
                recursive,
                unresolved,
                visited,
                depth + 1,
            )
        return None

    async def _dependents(self, item_id: str) -> tuple[list[ItemResult], str | None]:
        """Resolve items depending on ``item_id`` along with any reverse lookup error."""
        try:
            return await self.service.get_blocked_items_detailed(item_id), None
        except TrackerError as e:
            logger.warning("dependents_lookup_failed", item_id=item_id, error=e.message)
            return [], e.message

    async def can_close(self, item_id: str, use_cache: bool = True) -> ClosureDecision:
        """Decide whether ``item_id`` may be closed.

        Unresolved direct dependencies block closure. Open dependents and
        cycle membership only add a warning.
        """
        item_id = normalize_item_id(item_id)

        validation = await self.validate_dependencies(item_id, use_cache=use_cache)
        if validation.error is not None:
            logger.info("closure_unverified", item_id=item_id, error=validation.error)
            return ClosureDecision(
                item_id=item_id,
                can_close=False,
                reason=validation.message,
            )
        if not validation.valid:
            deps = validation.unresolved_dependencies
            logger.info("closure_blocked", item_id=item_id, blocking=[dep.id for dep in deps])
            return ClosureDecision(
                item_id=item_id,
                can_close=False,
                reason=f"Blocked by unresolved dependencies: {_format_ids(deps)}",
                blocking_issues=deps,
            )

        warnings: list[str] = []

        dependents, dependents_error = await self._dependents(item_id)
        if dependents_error is not None:
            warnings.append("Could not check items depending on this one")
        affected = [_unresolved(dep) for dep in dependents if dep.state is ItemState.OPEN]
        if affected:
            warnings.append(f"Open items depend on this one: {_format_ids(affected)}")

        circular = await self.detector.detect(item_id)
        cycles = [cycle for cycle in circular.cycles if cycle_contains(cycle, item_id)]
        if cycles:
            paths = "; ".join(" -> ".join(f"#{node}" for node in cycle) for cycle in cycles)
            warnings.append(f"Item is part of circular dependencies: {paths}")

        decision = ClosureDecision(
            item_id=item_id,
            can_close=True,
            reason="All dependencies resolved",
            affected_issues=affected,
            warning=" | ".join(warnings) if warnings else None,
            cycles=cycles,
        )
        logger.info(
            "closure_allowed",
            item_id=item_id,
            affected=len(affected),
            cycles=len(cycles),
        )
        return decision

    async def dependency_status(self, item_id: str) -> DependencyStatus:
        """Summarize an item's dependencies and dependents.

        A failed dependency lookup is reported on the status and leaves it not
        ready; a failed reverse lookup is reported but does not affect readiness.
        """
        item_id = normalize_item_id(item_id)
        item = await self.service.resolve_item(item_id)
        lookup = await self.service.lookup_edges(item_id)
        dependencies = await self.service.store.resolve_items(list(lookup.targets))
        dependents, dependents_error = await self._dependents(item_id)

        status = DependencyStatus(
            item=item,
            dependencies=dependencies,
            dependents=dependents,
            error=lookup.error,
            dependents_error=dependents_error,
        )
        logger.debug(
            "dependency_status_computed",
            item_id=item_id,
            dependencies=len(dependencies),
            dependents=len(dependents),
            ready=status.ready,
        )
        return status
