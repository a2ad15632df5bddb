"""Tests for receive-sample collection and rollup."""

import asyncio

import pytest

from meshmap.models import RxSampleSet
from meshmap.services.rx_samples import rollup_set


class TestRollupSet:
    def test_means_skip_missing_values_but_count_them(self):
        row = RxSampleSet(
            hash="c22yzpd2",
            samples=[
                {"rssi": -80.0, "snr": 4.0, "repeater": "aa"},
                {"rssi": -100.0, "snr": None, "repeater": "bb"},
                {"rssi": None, "snr": 2.0, "repeater": "aa"},
            ],
        )
        rollup = rollup_set(row)
        assert rollup.count == 3
        assert rollup.rssi == pytest.approx(-90.0)
        assert rollup.snr == pytest.approx(3.0)
        assert rollup.repeaters == ["aa", "bb"]

    def test_all_missing_gives_none(self):
        row = RxSampleSet(hash="c22yzpd2", samples=[{"rssi": None, "snr": None, "repeater": None}])
        rollup = rollup_set(row)
        assert rollup.count == 1
        assert rollup.rssi is None
        assert rollup.snr is None
        assert rollup.repeaters == []


class TestRxSampleStore:
    """Tests for RxSampleStore."""

    async def test_append_grows_list_and_advances_time(self, store, clock):
        assert await store.rx_samples.append("c22yzpd2", rssi=-90.0, snr=1.0, repeater="AA") == 1
        later = clock.advance(minutes=10)
        assert await store.rx_samples.append("c22yzpd2", rssi=-70.0, snr=None, repeater="bb") == 2

        [rollup] = await store.rx_samples.rollup()
        assert rollup.hash == "c22yzpd2"
        assert rollup.time == later
        assert rollup.count == 2
        assert rollup.rssi == pytest.approx(-80.0)
        assert rollup.snr == pytest.approx(1.0)
        assert rollup.repeaters == ["aa", "bb"]

    async def test_duplicate_tuples_are_kept(self, store):
        for _ in range(3):
            await store.rx_samples.append("c22yzpd2", rssi=-90.0, snr=1.0, repeater="aa")
        [rollup] = await store.rx_samples.rollup()
        assert rollup.count == 3
        assert rollup.repeaters == ["aa"]

    async def test_concurrent_appends_are_not_lost(self, store):
        await asyncio.gather(
            *(store.rx_samples.append("c22yzpd2", rssi=float(-i)) for i in range(20))
        )
        [rollup] = await store.rx_samples.rollup()
        assert rollup.count == 20

    async def test_rollup_groups_by_cell(self, store):
        await store.rx_samples.append("aaaaaaaa", rssi=-50.0)
        await store.rx_samples.append("bbbbbbbb", rssi=-60.0)
        await store.rx_samples.append("aaaaaaaa", rssi=-70.0)

        rollups = await store.rx_samples.rollup()
        assert [(r.hash, r.count) for r in rollups] == [("aaaaaaaa", 2), ("bbbbbbbb", 1)]
        assert rollups[0].rssi == pytest.approx(-60.0)
