"""Tests for change detection over live park data."""
import pytest

from ridewatch.services.diff_engine import (
    CheckCycleError,
    DiffEngine,
    StatusKind,
    should_monitor_ride,
)
from ridewatch.services.live_data import LiveDataError
from ridewatch.services.status_cache import StatusCache

from conftest import FakeLiveData, FakeStatusStore, record, ride


def make_engine(parks, cached=None, watched=None, fail_save=None):
    store = FakeStatusStore(cached, fail_save=fail_save)
    cache = StatusCache(store)
    for rec in (cached or {}).values():
        cache.put(rec.id, rec.status, rec.name)
    engine = DiffEngine(FakeLiveData(parks), cache, store, watched)
    return engine, cache, store


async def test_first_observation_emits_no_event_but_persists():
    engine, cache, store = make_engine({"mk": [ride("r1", "Space Mountain", "DOWN")]})

    summary = await engine.run(["mk"])

    assert summary.events == []
    assert summary.checked == 1
    assert summary.durable_writes == 1
    assert [r.id for r in store.saved] == ["r1"]
    assert cache.get("r1").status == "DOWN"


async def test_unchanged_status_emits_nothing_and_skips_write():
    engine, cache, store = make_engine(
        {"mk": [ride("r1", "Space Mountain", "OPERATING")]},
        cached={"r1": record("r1", "Space Mountain", "OPERATING")},
    )

    summary = await engine.run(["mk"])

    assert summary.events == []
    assert summary.changes_detected == 0
    assert summary.durable_writes == 0
    assert store.saved == []


async def test_changed_status_emits_one_event_and_one_write():
    engine, cache, store = make_engine(
        {"mk": [ride("r1", "Space Mountain", "DOWN")]},
        cached={"r1": record("r1", "Space Mountain", "OPERATING")},
    )

    summary = await engine.run(["mk"])

    assert len(summary.events) == 1
    event = summary.events[0]
    assert (event.entity_id, event.entity_name, event.old_status, event.new_status) == (
        "r1", "Space Mountain", "OPERATING", "DOWN",
    )
    assert summary.changes_detected == 1
    assert len(store.saved) == 1
    assert store.saved[0].status == "DOWN"
    assert cache.get("r1").status == "DOWN"


async def test_skips_non_attractions_and_unwatched_rides():
    parks = {"mk": [
        ride("r1", "Space Mountain"),
        ride("s1", "Dapper Dans", entity_type="SHOW"),
        ride("r2", "Haunted Mansion"),
    ]}
    engine, cache, store = make_engine(parks, watched=["SPACE"])

    summary = await engine.run(["mk"])

    assert summary.checked == 1
    assert cache.get("r1") is not None
    assert cache.get("s1") is None
    assert cache.get("r2") is None


async def test_missing_status_defaults_to_unknown():
    engine, cache, _ = make_engine({"mk": [ride("r1", "Space Mountain", status=None)]})

    await engine.run(["mk"])

    assert cache.get("r1").status == "UNKNOWN"


async def test_counts_non_operating_rides():
    parks = {"mk": [
        ride("r1", "A", "DOWN"),
        ride("r2", "B", "CLOSED"),
        ride("r3", "C", "REFURBISHMENT"),
        ride("r4", "D", "OPERATING"),
        ride("r5", "E", "SOMETHING_NEW"),
    ]}
    engine, _, _ = make_engine(parks)

    summary = await engine.run(["mk"])

    assert summary.checked == 5
    assert summary.non_operating_count == 3
    assert summary.non_operating == [("A", "DOWN"), ("B", "CLOSED"), ("C", "REFURBISHMENT")]


async def test_failed_park_is_skipped():
    parks = {
        "bad": LiveDataError("503 Service Unavailable"),
        "mk": [ride("r1", "Space Mountain", "DOWN")],
    }
    engine, _, _ = make_engine(parks, cached={"r1": record("r1", "Space Mountain", "OPERATING")})

    summary = await engine.run(["bad", "mk"])

    assert summary.failed_parks == ["bad"]
    assert len(summary.events) == 1


async def test_all_parks_failing_is_a_cycle_error():
    engine, _, _ = make_engine({"a": LiveDataError("boom"), "b": LiveDataError("boom")})

    with pytest.raises(CheckCycleError):
        await engine.run(["a", "b"])


async def test_failed_write_rolls_back_and_keeps_other_events():
    cached = {
        "A": record("A", "Space Mountain", "OPERATING"),
        "B": record("B", "Haunted Mansion", "OPERATING"),
    }
    parks = {"mk": [ride("A", "Space Mountain", "DOWN"), ride("B", "Haunted Mansion", "DOWN")]}
    engine, cache, store = make_engine(parks, cached=cached, fail_save={"B"})

    summary = await engine.run(["mk"])

    assert [e.entity_id for e in summary.events] == ["A"]
    assert summary.durable_writes == 1
    assert summary.failed_writes == 1
    assert summary.failed_parks == []
    assert cache.get("B").status == "OPERATING"
    assert store.records["B"].status == "OPERATING"

    store.fail_save.clear()
    retry = await engine.run(["mk"])

    assert [(e.entity_id, e.old_status, e.new_status) for e in retry.events] == [("B", "OPERATING", "DOWN")]
    assert store.records["B"].status == "DOWN"


async def test_failed_write_for_new_ride_is_retried():
    engine, cache, store = make_engine({"mk": [ride("r1", "Space Mountain")]}, fail_save={"r1"})

    summary = await engine.run(["mk"])

    assert summary.failed_writes == 1
    assert cache.get("r1") is None


async def test_non_dict_entries_are_ignored():
    parks = {"p1": [None, "garbage", ride("A", "Space Mountain")], "p2": [ride("C", "Big Thunder")]}
    engine, cache, _ = make_engine(parks)

    summary = await engine.run(["p1", "p2"])

    assert summary.checked == 2
    assert summary.failed_parks == []
    assert cache.get("C") is not None


async def test_unexpected_park_payload_fails_only_that_park():
    parks = {"p1": None, "p2": [ride("C", "Big Thunder", "DOWN")]}
    engine, _, _ = make_engine(parks, cached={"C": record("C", "Big Thunder", "OPERATING")})

    summary = await engine.run(["p1", "p2"])

    assert summary.failed_parks == ["p1"]
    assert [e.entity_id for e in summary.events] == ["C"]


async def test_no_parks_configured_returns_empty_summary():
    engine, _, _ = make_engine({})

    summary = await engine.run([])

    assert summary.checked == 0
    assert summary.events == []


async def test_events_keep_observation_order_across_parks():
    cached = {
        rid: record(rid, rid, "OPERATING") for rid in ("r1", "r2", "r3")
    }
    parks = {
        "p1": [ride("r2", "r2", "DOWN"), ride("r1", "r1", "CLOSED")],
        "p2": [ride("r3", "r3", "DOWN")],
    }
    engine, _, _ = make_engine(parks, cached=cached)

    summary = await engine.run(["p1", "p2"])

    assert [e.entity_id for e in summary.events] == ["r2", "r1", "r3"]


def test_should_monitor_ride_matching():
    assert should_monitor_ride("Anything", [])
    assert should_monitor_ride("Seven Dwarfs Mine Train", ["mine train"])
    assert should_monitor_ride("Seven Dwarfs Mine Train", [" MINE TRAIN "])
    assert not should_monitor_ride("Space Mountain", ["mine train"])


def test_status_kind_classification():
    assert StatusKind.classify("DOWN") is StatusKind.DOWN
    assert StatusKind.classify("OPERATING").non_operating is False
    assert StatusKind.classify("CLOSED").non_operating is True
    assert StatusKind.classify("BOARDING_GROUP") is StatusKind.UNRECOGNIZED
    assert StatusKind.classify(None) is StatusKind.UNRECOGNIZED
