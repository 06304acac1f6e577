"""
Tests for the collision / stability manager.
"""

import logging

import pytest

from woodpile.pile_core.collision_manager import CollisionManager
from woodpile.pile_core.config_loader import load_config
from woodpile.pile_core.pieces import CollapseRisk, ShapeKind, WoodPiece
from woodpile.pile_core.pile_generator import WoodPileGenerator


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def manager(config):
    return CollisionManager(config, WoodPileGenerator(config, seed=5))


def rect(piece_id, x, y, width=20, height=20):
    return WoodPiece(piece_id, x, y, width, height, shape=ShapeKind.RECTANGLE)


@pytest.fixture
def stack():
    return [rect("support", 100, 530), rect("middle", 100, 510), rect("top", 100, 490)]


@pytest.fixture
def dual():
    return [rect("left", 100, 530), rect("right", 120, 530), rect("top", 110, 510)]


class TestQueries:
    """Non-mutating queries."""

    def test_will_cause_collapse(self, manager, stack, dual):
        assert manager.will_cause_collapse(stack[0], stack)
        assert not manager.will_cause_collapse(dual[0], dual)

    def test_get_collapsing_pieces(self, manager, stack):
        collapsing = manager.get_collapsing_pieces(stack[0], stack)
        assert {p.id for p in collapsing} == {"middle", "top"}
        assert not any(p.is_removed for p in stack)

    def test_unknown_piece_is_silent_noop(self, manager, stack, caplog):
        stranger = rect("stranger", 400, 530)
        with caplog.at_level(logging.WARNING):
            assert manager.get_collapsing_pieces(stranger, stack) == []
            assert not manager.will_cause_collapse(stranger, stack)
        assert not any(p.is_removed for p in stack)


class TestDamage:
    """Damage arithmetic."""

    def test_empty_list_no_damage(self, manager):
        assert manager.calculate_collapse_damage([]) == 0

    @pytest.mark.parametrize("n", [0, 1, 2, 5, 12])
    def test_damage_per_piece(self, manager, n):
        pieces = [rect(f"p{i}", 20 * i, 0) for i in range(n)]
        assert manager.calculate_collapse_damage(pieces) == n * 30

    def test_risk_multiplier_scales_damage(self, manager, stack):
        assert manager.calculate_collapse_damage(stack[1:], risk_multiplier=2.0) == 120


class TestHandlePotentialCollapse:
    """Committed removals."""

    def test_cascade_committed(self, manager, stack):
        before = [p for p in stack if not p.is_removed]
        outcome = manager.handle_potential_collapse(stack[0], stack)
        assert [p.id for p in outcome.collapsed_pieces] == ["middle", "top"]
        assert outcome.damage == 60
        for piece in outcome.collapsed_pieces:
            assert piece in before
            assert piece.is_removed
        assert stack[0].is_removed

    def test_callback_receives_damage_and_pieces(self, manager, stack):
        calls = []
        manager.set_on_collapse_detected(lambda damage, pieces: calls.append((damage, pieces)))
        manager.handle_potential_collapse(stack[0], stack)
        assert len(calls) == 1
        damage, pieces = calls[0]
        assert damage == 60
        assert [p.id for p in pieces] == ["middle", "top"]

    def test_no_callback_without_cascade(self, manager, dual):
        calls = []
        manager.set_on_collapse_detected(lambda damage, pieces: calls.append(damage))
        outcome = manager.handle_potential_collapse(dual[0], dual)
        assert calls == []
        assert outcome.damage == 0
        assert not outcome.caused_collapse
        assert not dual[2].is_removed

    def test_risks_refreshed_after_removal(self, manager, dual):
        left, right, top = dual
        manager.update_collapse_risks(dual)
        assert top.collapse_risk == CollapseRisk.LOW
        manager.handle_potential_collapse(left, dual)
        assert top.collapse_risk == CollapseRisk.MEDIUM
        assert right.collapse_risk == CollapseRisk.NONE

    def test_outcome_carries_stability(self, manager, dual):
        outcome = manager.handle_potential_collapse(dual[0], dual)
        assert outcome.stability.total_pieces == 2
        assert outcome.stability.stable_pieces == 1
        assert outcome.stability.stability_percentage == 50.0


class TestStability:
    """Stability report and risk pass."""

    def test_one_of_four_stable(self, manager):
        pieces = []
        for i, risk in enumerate(CollapseRisk):
            piece = rect(f"p{i}", 30 * i, 100)
            piece.collapse_risk = risk
            pieces.append(piece)
        report = manager.check_stability(pieces)
        assert report.stable_pieces == 1
        assert report.unstable_pieces == 3
        assert report.total_pieces == 4
        assert report.stability_percentage == 25

    def test_empty_pile(self, manager):
        report = manager.check_stability([])
        assert report.stability_percentage == 100
        assert report.total_pieces == 0

    def test_removed_pieces_excluded(self, manager):
        a = rect("a", 0, 0)
        b = rect("b", 30, 0)
        b.collapse_risk = CollapseRisk.HIGH
        b.is_removed = True
        report = manager.check_stability([a, b])
        assert report.total_pieces == 1
        assert report.stability_percentage == 100

    def test_percentage_rounded(self, manager):
        pieces = [rect(f"p{i}", 30 * i, 0) for i in range(3)]
        pieces[0].collapse_risk = CollapseRisk.LOW
        assert manager.check_stability(pieces).stability_percentage == 66.67

    def test_to_dict(self, manager):
        report = manager.check_stability([])
        assert report.to_dict() == {
            "stable_pieces": 0,
            "unstable_pieces": 0,
            "total_pieces": 0,
            "stability_percentage": 100.0,
        }

    def test_update_collapse_risks_idempotent(self, manager, config):
        pile = manager.generator.generate_wood_pile(max_rows=5)
        manager.update_collapse_risks(pile)
        first = [p.collapse_risk for p in pile]
        manager.update_collapse_risks(pile)
        assert [p.collapse_risk for p in pile] == first

    def test_update_returns_collection(self, manager, dual):
        assert manager.update_collapse_risks(dual) is dual
