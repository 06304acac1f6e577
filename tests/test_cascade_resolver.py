"""
Tests for authoritative cascade resolution.
"""

import logging

import pytest

from woodpile.pile_core.cascade_resolver import CollapseCascadeResolver
from woodpile.pile_core.config_loader import load_config
from woodpile.pile_core.pieces import ShapeKind, WoodPiece
from woodpile.pile_core.pile_store import PileStore


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def resolver(config):
    return CollapseCascadeResolver(config)


def rect(piece_id, x, y, width=20, height=20):
    return WoodPiece(piece_id, x, y, width, height, shape=ShapeKind.RECTANGLE)


@pytest.fixture
def stack():
    return [rect("support", 100, 530), rect("middle", 100, 510), rect("top", 100, 490)]


class TestCascade:
    """Test fixed-point resolution."""

    def test_simple_cascade(self, resolver, stack):
        support, middle, top = stack
        result = resolver.resolve(support, stack)
        assert result.collapsed_ids == ["middle", "top"]
        assert support.is_removed and middle.is_removed and top.is_removed
        assert result.committed
        assert result.converged

    def test_removed_piece_not_in_cascade(self, resolver, stack):
        result = resolver.resolve(stack[0], stack)
        assert stack[0] not in result.collapsed

    def test_preview_does_not_mutate(self, resolver, stack):
        collapsing = resolver.find_collapsing_pieces(stack[0], stack)
        assert [p.id for p in collapsing] == ["middle", "top"]
        assert not any(p.is_removed for p in stack)

    def test_reverse_order_needs_more_passes(self, resolver, stack):
        """Top-first order settles one level per pass."""
        reversed_stack = list(reversed(stack))
        result = resolver.resolve(stack[0], reversed_stack, commit=False)
        assert {p.id for p in result.collapsed} == {"middle", "top"}
        assert result.passes == 3
        assert result.converged

    def test_pass_bound_stops_early(self, resolver, stack, caplog):
        """An exhausted bound returns the partial cascade and warns."""
        support, middle, top = stack
        reversed_stack = list(reversed(stack))
        with caplog.at_level(logging.WARNING):
            result = resolver.resolve(support, reversed_stack, max_passes=1)
        assert result.collapsed_ids == ["middle"]
        assert result.passes == 1
        assert not result.converged
        assert result.committed
        assert middle.is_removed
        assert not top.is_removed
        assert "under-resolved" in caplog.text

    def test_dual_support_survives(self, resolver):
        left = rect("left", 100, 530)
        right = rect("right", 120, 530)
        top = rect("top", 110, 510)
        result = resolver.resolve(left, [left, right, top])
        assert len(result) == 0
        assert left.is_removed
        assert not top.is_removed
        assert not right.is_removed

    def test_ground_pieces_exempt(self, resolver):
        """Ground pieces never fall, even when they support nothing."""
        a = rect("a", 100, 530)
        b = rect("b", 200, 530)
        result = resolver.resolve(a, [a, b])
        assert result.collapsed == []
        assert not b.is_removed

    def test_floating_piece_falls(self, resolver):
        """Any non-ground piece without support drops once the pile is resolved."""
        a = rect("a", 100, 530)
        floating = rect("floating", 300, 200)
        result = resolver.resolve(a, [a, floating])
        assert result.collapsed_ids == ["floating"]

    def test_accepts_pile_store(self, resolver, stack):
        store = PileStore(stack)
        result = resolver.resolve(store["support"], store)
        assert result.collapsed_ids == ["middle", "top"]
        assert store.active_count == 0


class TestMalformedInput:
    """Unknown or duplicated pieces never corrupt the pile."""

    def test_unknown_piece_is_noop(self, resolver, stack, caplog):
        stranger = rect("stranger", 400, 530)
        with caplog.at_level(logging.WARNING):
            result = resolver.resolve(stranger, stack)
        assert result.collapsed == []
        assert not result.committed
        assert not stranger.is_removed
        assert not any(p.is_removed for p in stack)
        assert "stranger" in caplog.text

    def test_duplicate_ids_ignored(self, resolver, stack, caplog):
        duplicate = rect("middle", 300, 100)
        with caplog.at_level(logging.WARNING):
            result = resolver.resolve(stack[0], stack + [duplicate], commit=False)
        assert result.collapsed_ids == ["middle", "top"]
        assert "Duplicate" in caplog.text
