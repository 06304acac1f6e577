"""
Wood Catalog
============

Provides convenient access to the special wood type definitions loaded
from config, plus weighted random selection for pile generation.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional, Tuple

from woodpile.pile_core.config_loader import GameConfig, WoodTypeConfig, get_config


@dataclass
class WoodType:
    """
    Runtime representation of a wood type.

    Wraps WoodTypeConfig with convenience properties.
    """
    config: WoodTypeConfig

    @property
    def id(self) -> int:
        return self.config.id

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def visual(self) -> str:
        return self.config.visual

    @property
    def score_multiplier(self) -> float:
        return self.config.score_multiplier

    @property
    def health_effect(self) -> int:
        return self.config.health_effect

    @property
    def collapse_risk_multiplier(self) -> float:
        return self.config.collapse_risk_multiplier

    @property
    def highlight_color(self) -> str:
        return self.config.highlight_color

    @property
    def spawn_chance(self) -> float:
        return self.config.spawn_chance

    @property
    def heals(self) -> bool:
        """True if collecting this wood restores health."""
        return self.health_effect > 0

    @property
    def hurts(self) -> bool:
        """True if collecting this wood costs health."""
        return self.health_effect < 0

    def __repr__(self) -> str:
        return f"WoodType({self.id}: {self.name})"


class WoodCatalog:
    """
    Collection of all wood types.

    The first type named ``normal`` is the fallback for unknown names and
    for the probability mass the spawn chances leave uncovered.
    """

    def __init__(self, config: Optional[GameConfig] = None):
        """
        Initialize catalog from game config.

        Args:
            config: GameConfig instance. If None, loads from default location.
        """
        if config is None:
            config = get_config()

        self._config = config
        self._types: Tuple[WoodType, ...] = tuple(
            WoodType(wood_config) for wood_config in config.wood_types
        )
        self._by_name = {t.name: t for t in self._types}

    def __len__(self) -> int:
        """Total number of wood types."""
        return len(self._types)

    def __getitem__(self, name: str) -> WoodType:
        """Get wood type by name, falling back to ``normal``."""
        return self._by_name.get(name, self.normal)

    def __iter__(self):
        return iter(self._types)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    @property
    def all_types(self) -> Tuple[WoodType, ...]:
        return self._types

    @property
    def normal(self) -> WoodType:
        """The plain wood type."""
        return self._by_name["normal"]

    def select_random(self, rng: random.Random) -> WoodType:
        """
        Pick a wood type by cumulative spawn chance.

        Args:
            rng: Random source (seeded by the pile generator).

        Returns:
            The selected wood type; ``normal`` if the roll lands past every
            configured chance.
        """
        roll = rng.random()
        cumulative = 0.0
        for wood_type in self._types:
            cumulative += wood_type.spawn_chance
            if roll <= cumulative:
                return wood_type
        return self.normal


# Module-level singleton
_cached_catalog: Optional[WoodCatalog] = None


def get_catalog(config: Optional[GameConfig] = None) -> WoodCatalog:
    """
    Get the wood catalog singleton.

    Args:
        config: Optional config to use. If None, uses cached or default config.

    Returns:
        WoodCatalog instance.
    """
    global _cached_catalog
    if _cached_catalog is None or config is not None:
        _cached_catalog = WoodCatalog(config)
    return _cached_catalog
