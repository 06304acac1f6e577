"""
woodpile Package
================

Core logic for the wood pile arcade game. The pile is a loose stack of
wood pieces; the player pulls pieces out one at a time and everything
that loses its footing comes down with them.

This package contains:

- Structural support geometry and collapse prediction
- Authoritative cascade resolution, damage and stability reporting
- Pile generation, scoring, creatures, levels and difficulty

All tunable parameters are in game_config.yaml.
"""
