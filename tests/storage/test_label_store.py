"""Unit tests for the label-encoded dependency store."""

import pytest

from issuegraph.errors import SelfDependencyError, TransientTrackerError
from issuegraph.models import ItemState


class TestAddEdge:
    """Test writing dependency labels."""

    @pytest.mark.asyncio
    async def test_add_edge_writes_full_label_set(self, tracker, label_store):
        """Test that the source's labels are rewritten with the new label."""
        tracker.add_item("10", labels=("bug",))

        added = await label_store.add_edge("10", "2")

        assert added is True
        assert tracker.label_updates == [("10", ["bug", "depends-on:2"])]

    @pytest.mark.asyncio
    async def test_add_edge_twice_is_noop(self, tracker, label_store):
        """Test that re-adding an edge does not write again."""
        await label_store.add_edge("1", "2")
        added = await label_store.add_edge("1", "2")

        assert added is False
        assert len(tracker.label_updates) == 1
        assert await label_store.get_edges("1") == ["2"]

    @pytest.mark.asyncio
    async def test_add_self_edge_rejected(self, tracker, label_store):
        """Test that self-loops are rejected before any tracker call."""
        with pytest.raises(SelfDependencyError):
            await label_store.add_edge("1", "#1")

        assert tracker.label_updates == []

    @pytest.mark.asyncio
    async def test_add_edge_transient_failure_propagates(self, tracker, label_store):
        """Test that direct writes surface tracker outages."""
        tracker.failing.add("1")

        with pytest.raises(TransientTrackerError):
            await label_store.add_edge("1", "2")


class TestRemoveEdge:
    """Test removing dependency labels."""

    @pytest.mark.asyncio
    async def test_remove_edge(self, tracker, label_store):
        """Test removing an existing edge rewrites the labels."""
        tracker.link("1", "2", "3")

        removed = await label_store.remove_edge("1", "2")

        assert removed is True
        assert await label_store.get_edges("1") == ["3"]

    @pytest.mark.asyncio
    async def test_remove_missing_edge_is_noop(self, tracker, label_store):
        """Test removing an absent edge succeeds without writing."""
        removed = await label_store.remove_edge("1", "2")

        assert removed is False
        assert tracker.label_updates == []


class TestQueries:
    """Test forward, reverse and detailed lookups."""

    @pytest.mark.asyncio
    async def test_get_reverse_edges_scans_all_items(self, tracker, label_store):
        """Test that reverse lookup finds every dependent item."""
        tracker.link("1", "3")
        tracker.link("2", "3")
        tracker.link("4", "5")

        dependents = await label_store.get_reverse_edges("3")

        assert sorted(dependents) == ["1", "2"]
        assert tracker.list_calls == 1

    @pytest.mark.asyncio
    async def test_get_edges_detailed_isolates_failures(self, tracker, label_store):
        """Test that one failing target degrades to an error result."""
        tracker.link("1", "2", "3")
        tracker.set_state("2", "closed")
        tracker.failing.add("3")

        results = await label_store.get_edges_detailed("1")

        assert [r.item_id for r in results] == ["2", "3"]
        assert results[0].ok
        assert results[0].state is ItemState.CLOSED
        assert not results[1].ok
        assert results[1].state is ItemState.ERROR
        assert "outage" in results[1].error

    @pytest.mark.asyncio
    async def test_get_edges_detailed_missing_target(self, tracker, label_store):
        """Test that a dangling label resolves to an error result."""
        tracker.link("1", "99")

        results = await label_store.get_edges_detailed("1")

        assert len(results) == 1
        assert results[0].error == "Item #99 not found"

    @pytest.mark.asyncio
    async def test_close_releases_tracker(self, tracker, label_store):
        """Test that closing the store closes the tracker session."""
        await label_store.close()

        assert tracker.close_calls == 1
