"""
Pile Inspector
==============

Generates a pile, prints it as ASCII with risk letters, and optionally
previews or commits a removal.

Usage:
    python -m tools.inspect_pile [--seed N] [--width W] [--height H]
                                 [--level L] [--preview ID] [--remove ID] [-v]

Legend:
    . stable    l low risk    m medium risk    h high risk
    prediction overlay: X will collapse, H/M/L high/medium/low risk, * hovered
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Dict, Optional

from woodpile.pile_core.config_loader import load_config
from woodpile.pile_core.game import CoreGame
from woodpile.pile_core.pieces import CollapsePrediction, CollapseRisk, WoodPiece

RISK_CHARS = {
    CollapseRisk.NONE: ".",
    CollapseRisk.LOW: "l",
    CollapseRisk.MEDIUM: "m",
    CollapseRisk.HIGH: "h",
}

PREDICTION_CHARS = {
    CollapsePrediction.WILL_COLLAPSE: "X",
    CollapsePrediction.HIGH_RISK: "H",
    CollapsePrediction.MEDIUM_RISK: "M",
    CollapsePrediction.LOW_RISK: "L",
}


def render_ascii(
    game: CoreGame,
    overlay: Optional[Dict[str, str]] = None
) -> str:
    """
    Render the active pieces as a character grid, one cell per half piece.

    Args:
        game: Game holding the pile.
        overlay: Optional piece id -> character map drawn over risk letters.

    Returns:
        Multi-line string, top row first.
    """
    overlay = overlay or {}
    wood = game.config.wood
    cell_w = wood.width / 2
    cell_h = wood.height
    ground = game.geometry.ground_line

    pieces = game.pile.active_pieces()
    if not pieces:
        return "(empty pile)"

    left = min(p.left for p in pieces)
    cols = int(round((max(p.right for p in pieces) - left) / cell_w)) + 1
    rows = int(round((ground - min(p.top for p in pieces)) / cell_h))

    grid = [[" "] * cols for _ in range(rows)]
    for piece in pieces:
        row = rows - 1 - int(round((ground - piece.bottom) / cell_h))
        col = int(round((piece.left - left) / cell_w))
        char = overlay.get(piece.id, _risk_char(piece))
        for c in (col, col + 1):
            if 0 <= row < rows and 0 <= c < cols:
                grid[row][c] = char

    lines = ["".join(line).rstrip() for line in grid]
    lines.append("=" * cols)
    return "\n".join(lines)


def _risk_char(piece: WoodPiece) -> str:
    if piece.creature is not None:
        return "c"
    return RISK_CHARS[piece.collapse_risk]


def main():
    parser = argparse.ArgumentParser(description="Inspect a generated wood pile")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--config", type=str, default=None, help="Path to game_config.yaml")
    parser.add_argument("--width", type=float, default=None, help="Canvas width")
    parser.add_argument("--height", type=float, default=None, help="Canvas height")
    parser.add_argument("--level", type=int, default=1, help="Level number")
    parser.add_argument("--difficulty", type=str, default=None, help="Difficulty name")
    parser.add_argument("--preview", type=str, default=None, help="Piece id to hover")
    parser.add_argument("--remove", type=str, default=None, help="Piece id to pull out")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s"
    )

    try:
        config = load_config(args.config)
        game = CoreGame(config, seed=args.seed, difficulty=args.difficulty, level=args.level)
    except (FileNotFoundError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.width is not None or args.height is not None:
        game.resize(
            args.width if args.width is not None else config.board.canvas_width,
            args.height if args.height is not None else config.board.canvas_height
        )
    game.reset()

    stability = game.collision.check_stability(game.pile)
    print(f"Level {game.level} ({game.levels.difficulty.name}), seed {args.seed}")
    print(f"Pieces: {len(game.pile)}  stability: {stability.stability_percentage:.2f}%")
    print()
    print(render_ascii(game))
    print()

    if args.preview:
        affected = game.preview_removal(args.preview)
        overlay = {a.piece.id: PREDICTION_CHARS[a.prediction] for a in affected}
        overlay[args.preview] = "*"
        print(f"Preview for {args.preview}: {len(affected)} affected")
        for item in affected:
            print(f"  {item.piece.id:<12} {item.prediction.value}")
        print()
        print(render_ascii(game, overlay))
        print()

    if args.remove:
        result = game.remove_piece(args.remove)
        if not result.accepted:
            print(f"Removal of {args.remove} rejected: {result.reason}")
            return 1
        print(f"Removed {args.remove}: {len(result.collapsed_ids)} collapsed, "
              f"{result.damage} damage, health {game.health}, score {game.score}")
        if result.creature_encountered:
            print(f"  creature: {game.creatures.active_creature.creature.value}")
        for piece_id in result.collapsed_ids:
            print(f"  fell: {piece_id}")
        print()
        print(render_ascii(game))

    return 0


if __name__ == "__main__":
    sys.exit(main())
