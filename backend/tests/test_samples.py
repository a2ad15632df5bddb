"""Tests for the sample merge rules and store."""

import asyncio
import random
from datetime import UTC, datetime
from itertools import permutations
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from meshmap.exceptions import StorageFailure
from meshmap.services.geocell import fine_cell
from meshmap.services.samples import (
    SampleState,
    max_present,
    merge_sample,
    normalize_path,
)

T0 = datetime(2026, 10, 1, tzinfo=UTC)


def _state(rssi=None, snr=None, observed=False, path=(), minute=0):
    return SampleState(
        time=T0.replace(minute=minute),
        rssi=rssi,
        snr=snr,
        observed=observed,
        repeaters=frozenset(path),
    )


class TestMergeRules:
    """Pure merge function tests."""

    def test_max_present(self):
        assert max_present(None, None) is None
        assert max_present(None, -70.0) == -70.0
        assert max_present(-70.0, None) == -70.0
        assert max_present(-80.0, -60.0) == -60.0
        assert max_present(0.0, -5.0) == 0.0

    def test_first_write_is_incoming(self):
        incoming = _state(rssi=-90.0, observed=True, path=["ab"])
        assert merge_sample(None, incoming) == incoming

    def test_merge_keeps_best_signal(self):
        merged = merge_sample(_state(rssi=-80.0, snr=2.0), _state(rssi=-60.0, snr=None))
        assert merged.rssi == -60.0
        assert merged.snr == 2.0

    def test_observed_never_reverts(self):
        merged = merge_sample(_state(observed=True), _state(observed=False))
        assert merged.observed is True

    def test_repeaters_union(self):
        merged = merge_sample(_state(path=["aa", "bb"]), _state(path=["bb", "cc"]))
        assert merged.repeaters == {"aa", "bb", "cc"}

    def test_time_takes_incoming(self):
        merged = merge_sample(_state(minute=30), _state(minute=10))
        assert merged.time == T0.replace(minute=10)

    def test_order_independent(self):
        """Every ordering of the same writes yields the same signal, flag and set."""
        writes = [
            _state(rssi=-80.0, snr=-3.5, path=["a1"]),
            _state(rssi=None, snr=4.25, observed=True),
            _state(rssi=-61.0, snr=None, path=["b2", "a1"]),
            _state(rssi=-95.0, snr=-10.0, path=["c3"]),
        ]
        results = set()
        for order in permutations(writes):
            state = None
            for write in order:
                state = merge_sample(state, write)
            results.add((state.rssi, state.snr, state.observed, state.repeaters))
        assert results == {(-61.0, 4.25, True, frozenset({"a1", "b2", "c3"}))}

    def test_normalize_path(self):
        assert normalize_path(["AB", " cd ", "", "ab"]) == {"ab", "cd"}
        assert normalize_path(None) == frozenset()


class TestSampleStore:
    """Tests for SampleStore against SQLite."""

    async def test_creates_cell_on_first_write(self, store, clock):
        cell = fine_cell(47.6205, -122.3494)
        await store.samples.upsert(cell, rssi=-80.0, snr=5.0, path=["AA"])

        row = await store.samples.get(cell)
        assert row.hash == cell
        assert row.rssi == -80.0
        assert row.snr == 5.0
        assert row.observed is False
        assert row.repeaters == ["aa"]
        assert row.time == clock.now

    async def test_scenario_stronger_signal_and_observed(self, store):
        """Second write at the same location wins on rssi and sets observed."""
        cell = fine_cell(47.6205, -122.3494)
        await store.samples.upsert(cell, rssi=-80.0)
        await store.samples.upsert(fine_cell(47.6205, -122.3494), rssi=-60.0, observed=True)

        rows = await store.samples.list_all()
        assert len(rows) == 1
        assert rows[0].hash == cell
        assert rows[0].rssi == -60.0
        assert rows[0].observed is True

    async def test_null_does_not_erase_signal(self, store):
        cell = "c22yzpd2"
        await store.samples.upsert(cell, rssi=-70.0, snr=3.0, observed=True, path=["x1"])
        await store.samples.upsert(cell)

        row = await store.samples.get(cell)
        assert row.rssi == -70.0
        assert row.snr == 3.0
        assert row.observed is True
        assert row.repeaters == ["x1"]

    async def test_time_advances(self, store, clock):
        cell = "c22yzpd2"
        await store.samples.upsert(cell, rssi=-70.0)
        later = clock.advance(hours=2)
        await store.samples.upsert(cell, rssi=-90.0)

        row = await store.samples.get(cell)
        assert row.time == later
        assert row.rssi == -70.0

    async def test_concurrent_writes_to_one_cell(self, store):
        """Parallel writers to the same cell lose no updates."""
        cell = "c22yzpd2"
        rng = random.Random(7)
        writes = [
            {
                "rssi": float(rng.randint(-120, -40)),
                "snr": rng.choice([None, float(rng.randint(-20, 12))]),
                "observed": i == 13,
                "path": [f"r{i}"],
            }
            for i in range(25)
        ]

        await asyncio.gather(*(store.samples.upsert(cell, **w) for w in writes))

        row = await store.samples.get(cell)
        assert row.rssi == max(w["rssi"] for w in writes)
        assert row.snr == max(w["snr"] for w in writes if w["snr"] is not None)
        assert row.observed is True
        assert set(row.repeaters) == {f"r{i}" for i in range(25)}

    async def test_concurrent_writes_to_different_cells(self, store):
        cells = [f"c22yzp{c}{d}" for c in "bcd" for d in "0123"]
        await asyncio.gather(*(store.samples.upsert(c, rssi=-50.0) for c in cells))

        rows = await store.samples.list_all()
        assert sorted(r.hash for r in rows) == sorted(cells)

    async def test_list_by_prefix(self, store):
        for cell in ["c22yzpd2", "c22yzpd3", "c22yzqa1", "u4pruydq"]:
            await store.samples.upsert(cell, rssi=-100.0)

        assert [r.hash for r in await store.samples.list_by_prefix("c22yzp")] == [
            "c22yzpd2",
            "c22yzpd3",
        ]
        assert len(await store.samples.list_by_prefix("c22")) == 3
        assert len(await store.samples.list_by_prefix("")) == 4
        assert await store.samples.list_by_prefix("zz") == []

    async def test_storage_error_is_reported(self, store):
        """A failing transaction surfaces StorageFailure and writes nothing."""
        cell = "c22yzpd2"
        await store.samples.upsert(cell, rssi=-90.0)

        with patch(
            "sqlalchemy.ext.asyncio.AsyncSession.commit",
            side_effect=OperationalError("COMMIT", {}, Exception("disk I/O error")),
        ):
            with pytest.raises(StorageFailure):
                await store.samples.upsert(cell, rssi=-40.0, observed=True)

        row = await store.samples.get(cell)
        assert row.rssi == -90.0
        assert row.observed is False
