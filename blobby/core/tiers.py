from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from blobby.core.tiles import TileType

DEFAULT_TIERS_PATH = Path(__file__).resolve().parent.parent / "data" / "tiers.yaml"

POWERUP_TYPES = (
    TileType.POWERUP_TELEPORT,
    TileType.POWERUP_WALLBREAK,
    TileType.POWERUP_EXTRAMOVES,
)


@dataclass(frozen=True)
class TierParams:
    """Generation parameters resolved for one level id."""

    level_id: int
    band: str
    grid_size: int
    obstacle_rate: float
    hurdle_chance: float
    coin_rate: float
    hint_rate: float
    life_rate: float
    powerup_rate: float
    extra_moves: int

    def spawn_table(self) -> List[Tuple[TileType, float]]:
        """Ordered ``(type, cumulative_threshold)`` pairs for a single uniform draw.

        A draw at or above the last threshold yields a plain path tile.
        """
        weights = [
            (TileType.OBSTACLE, self.obstacle_rate),
            (TileType.HURDLE, self.hurdle_chance),
            (TileType.COIN, self.coin_rate),
            (TileType.HINT, self.hint_rate),
            (TileType.LIFE, self.life_rate),
        ]
        weights.extend((kind, self.powerup_rate / len(POWERUP_TYPES)) for kind in POWERUP_TYPES)
        table = []
        total = 0.0
        for kind, weight in weights:
            total += weight
            table.append((kind, total))
        return table

    def pick(self, draw: float) -> TileType:
        for kind, threshold in self.spawn_table():
            if draw < threshold:
                return kind
        return TileType.PATH


@dataclass(frozen=True)
class _Band:
    name: str
    first: int
    last: int
    size: Dict[str, int]
    obstacle: Dict[str, float]
    hurdle: Dict[str, float]
    coin: float
    extra_moves: int


def _ramp(rate: Dict[str, float], level_id: int) -> float:
    value = rate["base"] + (level_id - rate.get("offset", 0)) * rate.get("step", 0.0)
    if "max" in rate:
        value = min(value, rate["max"])
    return value


class TierTable:
    """Difficulty bands loaded from ``tiers.yaml``."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path or DEFAULT_TIERS_PATH
        self._spawn, self._bands = self._load()

    @property
    def bands(self) -> List[str]:
        return [band.name for band in self._bands]

    @property
    def max_level(self) -> int:
        return self._bands[-1].last

    def band_for(self, level_id: int) -> str:
        return self._band(level_id).name

    def params_for(self, level_id: int) -> TierParams:
        if level_id < 1:
            raise ValueError(f"level id must be >= 1, got {level_id}")
        band = self._band(level_id)
        size = band.size
        grid_size = size["base"] + (level_id - size.get("offset", 0)) // size["divisor"]
        if "max" in size:
            grid_size = min(grid_size, size["max"])
        return TierParams(
            level_id=level_id,
            band=band.name,
            grid_size=grid_size,
            obstacle_rate=_ramp(band.obstacle, level_id),
            hurdle_chance=_ramp(band.hurdle, level_id),
            coin_rate=band.coin,
            hint_rate=self._spawn["hint"],
            life_rate=self._spawn["life"],
            powerup_rate=self._spawn["powerup"],
            extra_moves=band.extra_moves,
        )

    def _band(self, level_id: int) -> _Band:
        for band in self._bands:
            if band.first <= level_id <= band.last:
                return band
        return self._bands[-1]

    def _load(self) -> Tuple[Dict[str, float], List[_Band]]:
        if not self._path.exists():
            raise FileNotFoundError(f"Tier table not found: {self._path}")
        raw = yaml.safe_load(self._path.read_text(encoding="utf-8"))
        name = self._path.name
        if not raw or not isinstance(raw, dict):
            raise ValueError(f"{name}: expected YAML with 'spawn' and 'bands'")

        spawn = raw.get("spawn")
        if not isinstance(spawn, dict):
            raise ValueError(f"{name}: missing or invalid 'spawn'")
        for key in ("hint", "life", "powerup"):
            if not isinstance(spawn.get(key), (int, float)):
                raise ValueError(f"{name}: spawn.{key} must be a number")

        entries = raw.get("bands")
        if not entries or not isinstance(entries, list):
            raise ValueError(f"{name}: 'bands' must be a non-empty list")

        bands: List[_Band] = []
        expected_first = 1
        for index, entry in enumerate(entries):
            bands.append(self._parse_band(name, index, entry))
            if bands[-1].first != expected_first:
                raise ValueError(
                    f"{name}: band {bands[-1].name!r} starts at {bands[-1].first}, expected {expected_first}"
                )
            expected_first = bands[-1].last + 1
        return {k: float(spawn[k]) for k in ("hint", "life", "powerup")}, bands

    @staticmethod
    def _parse_band(name: str, index: int, entry: Any) -> _Band:
        if not isinstance(entry, dict):
            raise ValueError(f"{name}: band #{index} must be a mapping")
        label = entry.get("name") or f"band{index}"
        for key in ("first", "last", "size", "obstacle", "hurdle", "coin", "extra_moves"):
            if key not in entry:
                raise ValueError(f"{name}: band {label!r} is missing '{key}'")
        if entry["last"] < entry["first"]:
            raise ValueError(f"{name}: band {label!r} ends before it starts")
        size = entry["size"]
        if not isinstance(size, dict) or "base" not in size or not size.get("divisor"):
            raise ValueError(f"{name}: band {label!r} needs size.base and a non-zero size.divisor")
        for key in ("obstacle", "hurdle"):
            if not isinstance(entry[key], dict) or "base" not in entry[key]:
                raise ValueError(f"{name}: band {label!r} needs {key}.base")
        return _Band(
            name=str(label),
            first=int(entry["first"]),
            last=int(entry["last"]),
            size=dict(size),
            obstacle=dict(entry["obstacle"]),
            hurdle=dict(entry["hurdle"]),
            coin=float(entry["coin"]),
            extra_moves=int(entry["extra_moves"]),
        )


@lru_cache(maxsize=1)
def default_tier_table() -> TierTable:
    return TierTable()
