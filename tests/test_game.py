"""
Tests for the CoreGame orchestrator.
"""

import dataclasses
import logging

import pytest

from woodpile.pile_core.config_loader import load_config
from woodpile.pile_core.game import CoreGame
from woodpile.pile_core.pieces import CollapsePrediction, CollapseRisk, CreatureType


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def config():
    """Default config without random creatures."""
    config = load_config()
    return dataclasses.replace(
        config,
        gameplay=dataclasses.replace(config.gameplay, creature_probability=0.0)
    )


@pytest.fixture
def clock():
    return FakeClock(1000.0)


def plain_pile(game):
    """Make every piece normal wood so scores are predictable."""
    for piece in game.pile:
        piece.wood_type = "normal"
        piece.creature = None


@pytest.fixture
def game(config, clock):
    game = CoreGame(config, seed=7, clock=clock)
    game.reset()
    plain_pile(game)
    return game


class TestReset:
    """Starting a game."""

    def test_level_one_pile(self, game):
        assert game.level == 1
        assert len(game.pile) == 35 + 34 + 35 + 34 + 35
        assert game.health == 100
        assert game.score == 0

    def test_risks_annotated(self, game):
        assert game.pile["wood-0-0"].collapse_risk == CollapseRisk.NONE
        assert game.pile["wood-2-0"].collapse_risk == CollapseRisk.MEDIUM

    def test_same_seed_same_pile(self, config, clock):
        a = CoreGame(config, seed=3, clock=clock)
        b = CoreGame(config, seed=3, clock=clock)
        a.reset()
        b.reset()
        assert [p.wood_type for p in a.pile] == [p.wood_type for p in b.pile]

    def test_difficulty_scales_health(self, config, clock):
        game = CoreGame(config, seed=1, difficulty="hard", clock=clock)
        game.reset()
        assert game.health == 80
        assert game.collision.damage_per_piece == 39

    def test_starting_level(self, config, clock):
        game = CoreGame(config, seed=1, level=3, clock=clock)
        game.reset()
        assert game.level == 3
        assert len(game.pile) == 4 * 35 + 3 * 34


class TestRemoval:
    """Pulling pieces out."""

    def test_safe_removal_scores(self, game):
        result = game.remove_piece("wood-4-3")
        assert result.accepted
        assert result.score_event.points == 10
        assert result.collapsed_ids == []
        assert game.score == 10
        assert game.health == 100
        assert game.pile["wood-4-3"].is_removed

    def test_collapse_costs_health(self, game):
        result = game.remove_piece("wood-1-0")
        assert result.collapsed_ids == ["wood-2-0"]
        assert result.damage == 30
        assert game.health == 70

    def test_collapse_listener(self, game):
        seen = []
        game.set_on_collapse(lambda damage, pieces: seen.append((damage, [p.id for p in pieces])))
        game.remove_piece("wood-1-0")
        assert seen == [(30, ["wood-2-0"])]

    def test_fragile_wood_doubles_damage(self, game):
        game.pile["wood-1-0"].wood_type = "fragile"
        result = game.remove_piece("wood-1-0")
        assert result.damage == 60
        assert result.score_event.points == 8

    def test_cursed_wood_hurts(self, game):
        game.pile["wood-4-3"].wood_type = "cursed"
        game.remove_piece("wood-4-3")
        assert game.score == 15
        assert game.health == 95

    def test_bonus_wood_heals(self, game):
        game.state.reduce_health(20)
        game.pile["wood-4-3"].wood_type = "bonus"
        game.remove_piece("wood-4-3")
        assert game.health == 90

    def test_unknown_piece_rejected(self, game, caplog):
        with caplog.at_level(logging.WARNING):
            result = game.remove_piece("wood-99-99")
        assert not result.accepted
        assert result.reason == "unknown_piece"
        assert "wood-99-99" in caplog.text

    def test_already_removed_rejected(self, game):
        game.remove_piece("wood-4-3")
        assert game.remove_piece("wood-4-3").reason == "already_removed"

    def test_paused_rejected(self, game):
        game.state.set_paused(True)
        assert game.remove_piece("wood-4-3").reason == "paused"

    def test_health_depleted_ends_game(self, game):
        game.state.reduce_health(80)
        result = game.remove_piece("wood-1-0")
        assert result.termination.terminated
        assert result.termination.reason == "health_depleted"
        assert game.is_over
        assert game.remove_piece("wood-4-3").reason == "game_over"


class TestPreview:
    """Hover predictions through the game."""

    def test_preview(self, game):
        affected = {a.piece.id: a.prediction for a in game.preview_removal("wood-1-0")}
        assert affected["wood-2-0"] == CollapsePrediction.WILL_COLLAPSE
        assert affected["wood-2-1"] == CollapsePrediction.HIGH_RISK

    def test_preview_unknown(self, game):
        assert game.preview_removal("nope") == []

    def test_render_data_includes_prediction(self, game):
        data = game.get_render_data(hovered_id="wood-1-0")
        by_id = {p["id"]: p for p in data["pieces"]}
        assert by_id["wood-2-0"]["prediction"] == "will_collapse"
        assert by_id["wood-0-5"]["prediction"] is None
        assert data["ground_line"] == 550


class TestCreatures:
    """Creature encounters through the game."""

    @pytest.fixture
    def spider_game(self, game):
        game.pile["wood-4-3"].creature = CreatureType.SPIDER
        return game

    def test_encounter_blocks_removal(self, spider_game):
        result = spider_game.remove_piece("wood-4-3")
        assert result.creature_encountered
        assert result.score_event is None
        assert spider_game.pile["wood-4-3"].is_removed
        assert spider_game.remove_piece("wood-4-5").reason == "creature_active"

    def test_successful_reaction(self, spider_game):
        spider_game.remove_piece("wood-4-3")
        assert spider_game.handle_key(" ")
        assert spider_game.score == 20
        assert spider_game.remove_piece("wood-4-5").accepted

    def test_timeout(self, spider_game):
        spider_game.remove_piece("wood-4-3")
        assert not spider_game.update(1000)
        assert spider_game.update(1000)
        assert spider_game.health == 80


class TestLevels:
    """Level completion."""

    def test_quota_completes_level(self, game, clock):
        clock.now += 20
        result = None
        for col in range(15):
            result = game.remove_piece(f"wood-4-{col}")
        assert result.termination.level_cleared
        assert result.level_completion.speed_bonus == 200
        assert game.score == 15 * 10 + 200
        assert game.level == 2
        assert game.remove_piece("wood-4-20").reason == "level_cleared"

    def test_creature_removal_clearing_pile_completes_level(self, game, clock):
        for piece in game.pile:
            if piece.id not in ("wood-0-0", "wood-1-0"):
                game.pile.mark_removed(piece.id)
        game.pile["wood-0-0"].creature = CreatureType.SPIDER
        clock.now += 20

        result = game.remove_piece("wood-0-0")
        assert result.creature_encountered
        assert result.collapsed_ids == ["wood-1-0"]
        assert result.termination.level_cleared
        assert result.termination.reason == "pile_cleared"
        assert result.level_completion is not None
        assert result.level_completion.speed_bonus == 200
        assert game.score == 200
        assert game.level == 2

        game.start_next_level()
        assert game.remove_piece("wood-5-0").accepted

    def test_next_level_pile(self, game):
        for col in range(15):
            game.remove_piece(f"wood-4-{col}")
        game.start_next_level()
        assert len(game.pile) == 3 * 35 + 3 * 34
        assert game.pile.active_count == len(game.pile)
        assert game.remove_piece("wood-5-0").accepted


class TestViews:
    """Snapshots, info and resizing."""

    def test_snapshot_tracks_removal(self, game):
        game.remove_piece("wood-1-0")
        snap = game.snapshot()
        assert snap.active_count == len(game.pile) - 2
        assert snap.health == 70

    def test_info(self, game):
        info = game.get_info()
        assert info["level"] == 1
        assert info["difficulty"] == "normal"
        assert info["stability"]["total_pieces"] == len(game.pile)

    def test_resize_moves_ground(self, game):
        game.resize(800, 800)
        assert game.geometry.ground_line == 750
        assert game.pile["wood-0-0"].collapse_risk == CollapseRisk.HIGH
