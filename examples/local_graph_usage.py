"""Example usage of the dependency engine against the offline local store.

This example demonstrates how to:
- Record dependencies between items
- Attach titles and states to offline items
- Check closure and detect cycles
- Render the graph as a tree and as Mermaid
"""

import asyncio
import tempfile

from issuegraph import DependencyManager
from issuegraph.log_config import configure_logging, get_logger
from issuegraph.models import ItemSnapshot, ItemState
from issuegraph.storage import LocalDependencyStore

logger = get_logger(__name__)


async def main() -> None:
    """Build a small release plan and inspect it."""
    configure_logging(level="INFO", json_logs=False)

    with tempfile.TemporaryDirectory() as cache_dir:
        store = LocalDependencyStore(cache_dir)
        for item_id, title, state in [
            ("1", "Release v2", ItemState.OPEN),
            ("2", "Database schema", ItemState.CLOSED),
            ("3", "Public API", ItemState.OPEN),
            ("4", "API docs", ItemState.OPEN),
        ]:
            store.save_item(ItemSnapshot(id=item_id, title=title, state=state))

        async with DependencyManager(store) as manager:
            await manager.add_dependency("1", "2")
            await manager.add_dependency("1", "3")
            await manager.add_dependency("3", "2")
            await manager.add_dependency("4", "3")

            decision = await manager.can_close("1")
            logger.info(
                "closure_checked",
                item_id="1",
                can_close=decision.can_close,
                reason=decision.reason,
            )

            circular = await manager.detect_circular_dependencies("1")
            logger.info("cycles_checked", item_id="1", circular=circular.has_circular)

            logger.info("tree_rendered", output="\n" + await manager.render("1", "tree"))
            logger.info("mermaid_rendered", output=await manager.render("1", "mermaid"))

            status = await manager.dependency_status("3")
            logger.info("status_summary", item_id="3", ready=status.ready)


if __name__ == "__main__":
    asyncio.run(main())
