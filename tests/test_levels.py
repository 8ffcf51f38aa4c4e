"""Tests for blobby.core.levels – Level records and the repository."""

from __future__ import annotations

import dataclasses

import pytest

from blobby.core.levels import Level, LevelRepository

ROWS = ["S..", "...", "..G"]


@pytest.fixture()
def repo(make_level) -> LevelRepository:
    return LevelRepository([make_level(ROWS, i, unlocked=i == 1) for i in (3, 1, 2)])


# ---------------------------------------------------------------------------
# Level dataclass
# ---------------------------------------------------------------------------

class TestLevel:
    def test_frozen(self, make_level):
        level = make_level(ROWS)
        with pytest.raises(dataclasses.FrozenInstanceError):
            level.stars = 3  # type: ignore[misc]

    def test_defaults(self, make_level):
        level = make_level(ROWS, unlocked=False)
        assert level.stars == 0
        assert level.completed is False
        assert level.unlocked is False
        assert level.size == 3

    def test_record_completion_keeps_best_stars(self, make_level):
        level = make_level(ROWS).record_completion(3).record_completion(1)
        assert level.completed is True
        assert level.stars == 3

    def test_record_completion_improves(self, make_level):
        level = make_level(ROWS).record_completion(1).record_completion(2)
        assert level.stars == 2

    def test_unlock(self, make_level):
        level = make_level(ROWS, unlocked=False)
        assert level.unlock().unlocked is True
        already = make_level(ROWS, unlocked=True)
        assert already.unlock() is already


# ---------------------------------------------------------------------------
# LevelRepository
# ---------------------------------------------------------------------------

class TestLevelRepository:
    def test_sorted_by_id(self, repo: LevelRepository):
        assert [lv.id for lv in repo.all()] == [1, 2, 3]
        assert repo.last_id == 3

    def test_get_and_contains(self, repo: LevelRepository):
        assert repo.get(2).id == 2
        assert 2 in repo
        assert 9 not in repo
        assert len(repo) == 3

    def test_get_unknown_raises(self, repo: LevelRepository):
        with pytest.raises(KeyError):
            repo.get(99)

    def test_duplicate_ids_rejected(self, make_level):
        with pytest.raises(ValueError):
            LevelRepository([make_level(ROWS, 1), make_level(ROWS, 1)])

    def test_replace_returns_new_repository(self, repo: LevelRepository):
        updated = repo.replace(repo.get(2).record_completion(2))
        assert updated.get(2).completed is True
        assert repo.get(2).completed is False
        assert updated is not repo

    def test_replace_unknown_raises(self, repo: LevelRepository, make_level):
        with pytest.raises(KeyError):
            repo.replace(make_level(ROWS, 42))

    def test_aggregates(self, repo: LevelRepository):
        updated = repo.replace(repo.get(1).record_completion(3), repo.get(2).record_completion(1))
        assert updated.total_stars() == 4
        assert updated.completed_count() == 2
        assert updated.has_three_star_level() is True
        assert repo.has_three_star_level() is False

    def test_equality(self, make_level):
        a = LevelRepository([make_level(ROWS, 1)])
        b = LevelRepository([make_level(ROWS, 1)])
        assert a == b
        assert a != LevelRepository([make_level(ROWS, 2)])
