"""
Tests for the support and ground predicates.
"""

import pytest

from woodpile.pile_core.config_loader import load_config
from woodpile.pile_core.pieces import ShapeKind, WoodPiece
from woodpile.pile_core.support_geometry import SupportGeometry, horizontal_overlap


@pytest.fixture
def config():
    return load_config()


@pytest.fixture
def geometry(config):
    return SupportGeometry(config)


def rect(piece_id, x, y, width=20, height=20):
    return WoodPiece(piece_id, x, y, width, height, shape=ShapeKind.RECTANGLE)


def circle(piece_id, x, y, size=20):
    return WoodPiece(piece_id, x, y, size, size, shape=ShapeKind.CIRCLE)


class TestGround:
    """Test ground detection."""

    def test_ground_line_from_canvas(self, geometry):
        """Default canvas height 600 with a 50px floor strip."""
        assert geometry.ground_line == 550

    def test_piece_resting_on_ground(self, geometry):
        assert geometry.is_on_ground(rect("a", 100, 530))

    def test_ground_tolerance(self, geometry):
        """Bottom edge within 5px of the ground line still counts."""
        assert geometry.is_on_ground(rect("a", 100, 525))
        assert not geometry.is_on_ground(rect("b", 100, 524))

    def test_floating_piece_not_on_ground(self, geometry):
        assert not geometry.is_on_ground(rect("a", 100, 300))

    def test_resize_moves_ground_line(self, geometry):
        piece = rect("a", 100, 530)
        geometry.update_canvas_height(800)
        assert geometry.ground_line == 750
        assert not geometry.is_on_ground(piece)

    def test_canvas_height_override(self, config):
        geometry = SupportGeometry(config, canvas_height=400)
        assert geometry.ground_line == 350


class TestSupport:
    """Test the directional support relation."""

    def test_stacked_piece_is_supported(self, geometry):
        base = rect("base", 100, 530)
        top = rect("top", 100, 510)
        assert geometry.is_piece_supporting(top, base)

    def test_support_is_directional(self, geometry):
        base = rect("base", 100, 530)
        top = rect("top", 100, 510)
        assert not geometry.is_piece_supporting(base, top)

    def test_same_height_never_supports(self, geometry):
        """Two pieces at the same y never support each other either way."""
        a = rect("a", 100, 300)
        b = rect("b", 110, 300)
        assert not geometry.is_piece_supporting(a, b)
        assert not geometry.is_piece_supporting(b, a)

    def test_same_height_circles_never_support(self, geometry):
        a = circle("a", 100, 300)
        b = circle("b", 105, 300)
        assert not geometry.is_piece_supporting(a, b)
        assert not geometry.is_piece_supporting(b, a)

    def test_piece_does_not_support_itself(self, geometry):
        a = rect("a", 100, 300)
        assert not geometry.is_piece_supporting(a, a)

    def test_half_overlap_is_enough(self, geometry):
        below = rect("below", 110, 530)
        above = rect("above", 100, 510)
        assert geometry.is_piece_supporting(above, below)

    def test_small_overlap_is_not_enough(self, geometry):
        below = rect("below", 115, 530)
        above = rect("above", 100, 510)
        assert not geometry.is_piece_supporting(above, below)

    def test_gap_beyond_vertical_tolerance(self, geometry):
        below = rect("below", 100, 530)
        above = rect("above", 100, 495)  # bottom 515, 15px above
        assert not geometry.is_piece_supporting(above, below)

    def test_small_gap_within_tolerance(self, geometry):
        below = rect("below", 100, 530)
        above = rect("above", 100, 502)  # bottom 522, 8px above
        assert geometry.is_piece_supporting(above, below)

    def test_removed_piece_supports_nothing(self, geometry):
        below = rect("below", 100, 530)
        above = rect("above", 100, 510)
        below.is_removed = True
        assert not geometry.is_piece_supporting(above, below)

    def test_circles_supported_by_centre_proximity(self, geometry):
        """Round pieces rest on a round piece within one diameter."""
        below = circle("below", 115, 530)
        above = circle("above", 100, 510)
        assert geometry.is_piece_supporting(above, below)

    def test_circle_rule_needs_two_circles(self, geometry):
        below = rect("below", 115, 530)
        above = circle("above", 100, 510)
        assert not geometry.is_piece_supporting(above, below)

    def test_circles_too_far_apart(self, geometry):
        below = circle("below", 125, 530)
        above = circle("above", 100, 510)
        assert not geometry.is_piece_supporting(above, below)


class TestQueries:
    """Test collection queries."""

    def test_find_supporting_pieces(self, geometry):
        left = rect("left", 100, 530)
        right = rect("right", 120, 530)
        top = rect("top", 110, 510)
        far = rect("far", 300, 530)
        supports = geometry.find_supporting_pieces(top, [left, right, top, far])
        assert [p.id for p in supports] == ["left", "right"]

    def test_excluded_ids_act_as_removed(self, geometry):
        left = rect("left", 100, 530)
        right = rect("right", 120, 530)
        top = rect("top", 110, 510)
        supports = geometry.find_supporting_pieces(top, [left, right, top], {"left"})
        assert [p.id for p in supports] == ["right"]
        assert not left.is_removed

    def test_find_supported_pieces(self, geometry):
        left = rect("left", 100, 530)
        right = rect("right", 120, 530)
        top = rect("top", 110, 510)
        assert [p.id for p in geometry.find_supported_pieces(left, [left, right, top])] == ["top"]

    def test_support_count(self, geometry):
        left = rect("left", 100, 530)
        right = rect("right", 120, 530)
        top = rect("top", 110, 510)
        assert geometry.get_support_count(top, [left, right, top]) == 2
        assert geometry.get_support_count(left, [left, right, top]) == 0

    def test_side_neighbours(self, geometry):
        a = rect("a", 100, 300)
        b = rect("b", 122, 300)
        c = rect("c", 150, 300)
        d = rect("d", 122, 200)
        neighbours = geometry.find_side_neighbours(a, [a, b, c, d], tolerance=4.0)
        assert [p.id for p in neighbours] == ["b"]

    def test_horizontal_overlap(self):
        assert horizontal_overlap(rect("a", 100, 0), rect("b", 110, 50)) == 10
        assert horizontal_overlap(rect("a", 100, 0), rect("b", 130, 50)) == 0
