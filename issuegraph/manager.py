"""Dependency manager: the operation surface of issuegraph.

Wires one DependencyStore into the graph service, cycle detector, closure
validator, graph builder and renderers, and exposes every operation as an
async method. The CLI in ``main.py`` is a thin layer over this class.
"""

import types

import structlog

from issuegraph.config import GraphConfig, IssueGraphConfig
from issuegraph.graph.builder import GraphBuilder
from issuegraph.graph.cycles import CycleDetector
from issuegraph.graph.service import DependencyService
from issuegraph.graph.validator import ClosureValidator, ValidationCache
from issuegraph.models import (
    CircularCheck,
    ClosureDecision,
    DependencyGraph,
    DependencyStatus,
    ItemResult,
    ValidationResult,
)
from issuegraph.render import render_dot, render_json, render_mermaid, render_stats, render_tree
from issuegraph.storage.base import DependencyStore, ItemStore
from issuegraph.storage.factory import create_store
from issuegraph.tracker.labels import DependencyLabelCodec
from issuegraph.tracker.relations_api import GitHubRelationsAPI

logger = structlog.get_logger(__name__)

RENDER_FORMATS: tuple[str, ...] = ("tree", "mermaid", "dot", "json", "stats")


class DependencyManager:
    """Facade over the dependency engine.

    Example:
        >>> manager = DependencyManager.from_config(IssueGraphConfig.from_yaml("issuegraph.yaml"))
        >>> await manager.add_dependency("12", "7")
        >>> decision = await manager.can_close("12")
        >>> print(await manager.render("12", "tree"))
    """

    def __init__(
        self,
        store: DependencyStore,
        graph_config: GraphConfig | None = None,
        cache: ValidationCache | None = None,
        codec: DependencyLabelCodec | None = None,
    ):
        """Initialize the manager.

        Args:
            store: Persistence backend
            graph_config: Traversal and rendering settings
            cache: Validation cache; built from ``graph_config`` if omitted
            codec: Label codec for blocked-by labels in rendered graphs
        """
        self.store = store
        self.graph_config = graph_config or GraphConfig()
        max_depth = self.graph_config.max_depth

        self.service = DependencyService(store)
        if cache is None:
            cache = ValidationCache(ttl_seconds=self.graph_config.cache_ttl_seconds)
        self.cache = cache
        self.detector = CycleDetector(self.service, max_depth=max_depth)
        self.validator = ClosureValidator(
            self.service,
            cache=self.cache,
            detector=self.detector,
            max_depth=max_depth,
        )
        self.builder = GraphBuilder(self.service, max_depth=max_depth, codec=codec)

        logger.debug("dependency_manager_initialized", mode=store.mode, max_depth=max_depth)

    @classmethod
    def from_config(
        cls,
        config: IssueGraphConfig,
        tracker: ItemStore | None = None,
        relations: GitHubRelationsAPI | None = None,
    ) -> "DependencyManager":
        """Build a manager and its store from configuration."""
        store = create_store(config, tracker=tracker, relations=relations)
        codec = DependencyLabelCodec(config.storage.label_prefix, config.storage.blocked_by_prefix)
        return cls(store, graph_config=config.graph, codec=codec)

    # Mutation and query

    async def add_dependency(self, source: str, target: str) -> bool:
        return await self.service.add_dependency(source, target)

    async def remove_dependency(self, source: str, target: str) -> bool:
        return await self.service.remove_dependency(source, target)

    async def get_dependencies(
        self,
        item_id: str,
        detailed: bool = False,
    ) -> list[str] | list[ItemResult]:
        if detailed:
            return await self.service.get_dependencies_detailed(item_id)
        return await self.service.get_dependencies(item_id)

    async def get_blocked_items(
        self,
        item_id: str,
        detailed: bool = False,
    ) -> list[str] | list[ItemResult]:
        if detailed:
            return await self.service.get_blocked_items_detailed(item_id)
        return await self.service.get_blocked_items(item_id)

    # Validation

    async def validate_dependencies(
        self,
        item_id: str,
        recursive: bool = False,
        use_cache: bool = True,
    ) -> ValidationResult:
        return await self.validator.validate_dependencies(
            item_id,
            recursive=recursive,
            use_cache=use_cache,
        )

    async def detect_circular_dependencies(self, item_id: str) -> CircularCheck:
        return await self.detector.detect(item_id)

    async def can_close(self, item_id: str, use_cache: bool = True) -> ClosureDecision:
        return await self.validator.can_close(item_id, use_cache=use_cache)

    async def dependency_status(self, item_id: str) -> DependencyStatus:
        return await self.validator.dependency_status(item_id)

    # Rendering

    async def build_graph(self, item_id: str, max_depth: int | None = None) -> DependencyGraph:
        return await self.builder.build(item_id, max_depth=max_depth)

    async def render(
        self,
        item_id: str,
        output_format: str = "tree",
        max_depth: int | None = None,
    ) -> str:
        """Build the graph rooted at ``item_id`` and render it.

        Args:
            item_id: Root item
            output_format: One of 'tree', 'mermaid', 'dot', 'json', 'stats'
            max_depth: Override of the configured depth bound

        Raises:
            ValueError: If an unsupported format is requested
        """
        output_format = output_format.lower().strip()
        if output_format not in RENDER_FORMATS:
            supported = ", ".join(RENDER_FORMATS)
            error_msg = f"Unsupported format: {output_format}. Use one of {supported}."
            raise ValueError(error_msg)

        graph = await self.build_graph(item_id, max_depth=max_depth)
        title_max_length = self.graph_config.title_max_length

        if output_format == "tree":
            return render_tree(graph)
        if output_format == "mermaid":
            return render_mermaid(graph, title_max_length=title_max_length)
        if output_format == "dot":
            return render_dot(graph, title_max_length=title_max_length)
        if output_format == "json":
            return render_json(graph)
        return render_stats(graph)

    async def close(self) -> None:
        await self.store.close()

    async def __aenter__(self) -> "DependencyManager":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        await self.close()
