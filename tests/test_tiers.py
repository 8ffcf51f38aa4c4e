"""Tests for blobby.core.tiers – YAML difficulty table and spawn sampling."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from blobby.core.tiers import TierTable, default_tier_table
from blobby.core.tiles import TileType


@pytest.fixture()
def table() -> TierTable:
    return default_tier_table()


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "tiers.yaml"
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Bands
# ---------------------------------------------------------------------------

class TestBands:
    def test_six_bands_cover_200_levels(self, table: TierTable):
        assert len(table.bands) == 6
        assert table.max_level == 200

    @pytest.mark.parametrize(
        "level_id, band",
        [(1, "easy"), (10, "easy"), (11, "warming_up"), (60, "medium"), (61, "hard"), (150, "very_hard"), (200, "expert")],
    )
    def test_band_for(self, table: TierTable, level_id: int, band: str):
        assert table.band_for(level_id) == band

    def test_beyond_last_band_uses_last(self, table: TierTable):
        assert table.band_for(500) == "expert"
        assert table.params_for(500).grid_size == 10

    def test_level_zero_rejected(self, table: TierTable):
        with pytest.raises(ValueError):
            table.params_for(0)


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------

class TestParams:
    @pytest.mark.parametrize(
        "level_id, size",
        [(1, 4), (5, 5), (10, 6), (11, 5), (30, 7), (31, 6), (60, 8), (100, 9), (101, 8), (150, 10), (151, 9), (200, 10)],
    )
    def test_grid_size(self, table: TierTable, level_id: int, size: int):
        assert table.params_for(level_id).grid_size == size

    def test_grid_never_exceeds_ten(self, table: TierTable):
        assert max(table.params_for(i).grid_size for i in range(1, 201)) == 10

    def test_obstacle_rate_ramps(self, table: TierTable):
        assert table.params_for(1).obstacle_rate == pytest.approx(0.065)
        assert table.params_for(20).obstacle_rate == pytest.approx(0.13)

    def test_rates_are_capped(self, table: TierTable):
        params = table.params_for(150)
        assert params.obstacle_rate == pytest.approx(0.24)
        assert params.hurdle_chance == pytest.approx(0.14)

    def test_no_hurdles_in_easy_band(self, table: TierTable):
        assert all(table.params_for(i).hurdle_chance == 0 for i in range(1, 11))

    def test_slack_shrinks_with_difficulty(self, table: TierTable):
        slack = [table.params_for(i).extra_moves for i in (1, 11, 31, 61, 101, 151)]
        assert slack == [10, 8, 6, 5, 4, 3]


# ---------------------------------------------------------------------------
# Spawn table
# ---------------------------------------------------------------------------

class TestSpawnTable:
    def test_order_and_monotonic(self, table: TierTable):
        spawn = table.params_for(20).spawn_table()
        kinds = [kind for kind, _ in spawn]
        assert kinds == [
            TileType.OBSTACLE,
            TileType.HURDLE,
            TileType.COIN,
            TileType.HINT,
            TileType.LIFE,
            TileType.POWERUP_TELEPORT,
            TileType.POWERUP_WALLBREAK,
            TileType.POWERUP_EXTRAMOVES,
        ]
        thresholds = [t for _, t in spawn]
        assert thresholds == sorted(thresholds)

    def test_total_probability(self, table: TierTable):
        params = table.params_for(20)
        expected = params.obstacle_rate + params.hurdle_chance + params.coin_rate + 0.03
        assert params.spawn_table()[-1][1] == pytest.approx(expected)

    @pytest.mark.parametrize(
        "draw, kind",
        [
            (0.0, TileType.OBSTACLE),
            (0.12, TileType.OBSTACLE),
            (0.14, TileType.HURDLE),
            (0.20, TileType.COIN),
            (0.27, TileType.HINT),
            (0.28, TileType.LIFE),
            (0.2855, TileType.POWERUP_TELEPORT),
            (0.2875, TileType.POWERUP_WALLBREAK),
            (0.2895, TileType.POWERUP_EXTRAMOVES),
            (0.5, TileType.PATH),
            (0.999, TileType.PATH),
        ],
    )
    def test_pick(self, table: TierTable, draw: float, kind: TileType):
        # level 20: obstacle 0.13, hurdle 0.03, coin 0.10, hint 0.015, life 0.01, power-ups 0.005
        assert table.params_for(20).pick(draw) is kind


# ---------------------------------------------------------------------------
# Loading edge cases
# ---------------------------------------------------------------------------

class TestLoading:
    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            TierTable(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path: Path):
        with pytest.raises(ValueError):
            TierTable(_write(tmp_path, ""))

    def test_missing_bands(self, tmp_path: Path):
        path = _write(
            tmp_path,
            """
            spawn: {hint: 0.01, life: 0.01, powerup: 0.01}
            """,
        )
        with pytest.raises(ValueError, match="bands"):
            TierTable(path)

    def test_gap_between_bands(self, tmp_path: Path):
        path = _write(
            tmp_path,
            """
            spawn: {hint: 0.01, life: 0.01, powerup: 0.01}
            bands:
              - {name: a, first: 1, last: 5, size: {base: 4, divisor: 5}, obstacle: {base: 0.1}, hurdle: {base: 0}, coin: 0.1, extra_moves: 5}
              - {name: b, first: 7, last: 9, size: {base: 5, divisor: 5}, obstacle: {base: 0.1}, hurdle: {base: 0}, coin: 0.1, extra_moves: 5}
            """,
        )
        with pytest.raises(ValueError, match="expected 6"):
            TierTable(path)

    def test_band_missing_field(self, tmp_path: Path):
        path = _write(
            tmp_path,
            """
            spawn: {hint: 0.01, life: 0.01, powerup: 0.01}
            bands:
              - {name: a, first: 1, last: 5, size: {base: 4, divisor: 5}, obstacle: {base: 0.1}, hurdle: {base: 0}, coin: 0.1}
            """,
        )
        with pytest.raises(ValueError, match="extra_moves"):
            TierTable(path)

    def test_custom_table(self, tmp_path: Path):
        path = _write(
            tmp_path,
            """
            spawn: {hint: 0.0, life: 0.0, powerup: 0.0}
            bands:
              - {name: only, first: 1, last: 3, size: {base: 4, divisor: 1, max: 5}, obstacle: {base: 0.5}, hurdle: {base: 0}, coin: 0, extra_moves: 2}
            """,
        )
        table = TierTable(path)
        assert table.bands == ["only"]
        assert table.params_for(1).grid_size == 5
        assert table.params_for(3).obstacle_rate == 0.5
