import json

import numpy as np
import pytest

from storage import BrainStore
from simulation import Simulation
from neural_network import random_network
from config import NETWORK_SHAPE


@pytest.fixture
def store(tmp_path):
    return BrainStore(str(tmp_path / "brains.json"))


def _net(seed=0):
    return random_network(NETWORK_SHAPE, np.random.default_rng(seed))


def test_empty_store_has_no_seed(store):
    assert store.load_network() is None
    assert store.list_brains() == []
    assert store.load_stats() == {}


def test_save_then_load_returns_equal_network(store):
    net = _net()
    brain_id = store.save_network(net, {"fitness": 120.0, "generation": 4})
    assert brain_id.startswith("brain_")
    assert store.load_network() == net


def test_history_sorted_by_fitness(store):
    a = store.save_network(_net(1), {"fitness": 60.0})
    b = store.save_network(_net(2), {"fitness": 300.0})
    c = store.save_network(_net(3), {"fitness": 90.0})
    assert [bid for bid, _ in store.list_brains()] == [b, c, a]
    assert len({a, b, c}) == 3
    assert "timestamp" in store.list_brains()[0][1]


def test_corrupt_file_loads_as_empty(store, capsys):
    with open(store.path, "w") as f:
        f.write("{not json")
    assert store.load_network() is None
    assert "unreadable" in capsys.readouterr().out


def test_invalid_brain_is_discarded(store):
    with open(store.path, "w") as f:
        json.dump({"best_brain": {"levels": [{"inputs": 2}]}}, f)
    assert store.load_network() is None
    with open(store.path) as f:
        assert "best_brain" not in json.load(f)


def test_wrong_shape_is_rejected(store):
    store.save_network(random_network([3, 2], np.random.default_rng(0)))
    assert store.load_network() is None


def test_load_brain_promotes_record_and_generation(store):
    first = _net(1)
    old = store.save_network(first, {"fitness": 80.0, "generation": 3})
    store.save_network(_net(2), {"fitness": 90.0, "generation": 9})
    store.load_brain(old)
    assert store.load_network() == first
    assert store.load_stats()["generation"] == 3


def test_load_missing_brain_raises(store):
    with pytest.raises(KeyError):
        store.load_brain("brain_0")


def test_deleting_last_record_clears_seed(store):
    a = store.save_network(_net(1), {"fitness": 60.0})
    b = store.save_network(_net(2), {"fitness": 70.0})
    store.delete_brain(a)
    assert store.load_network() is not None
    store.delete_brain(b)
    assert store.load_network() is None
    assert store.list_brains() == []


def test_stats_round_trip(store):
    stats = {"generation": 12, "best_ever_distance": 900.5,
             "best_ever_fitness": 1200.0, "mutation_rate": 0.1}
    store.save_stats(stats)
    assert store.load_stats() == stats


def test_discard_keeps_history_but_resets_progress(store):
    store.save_network(_net(), {"fitness": 60.0})
    store.save_stats({"generation": 8, "best_ever_distance": 10.0,
                      "best_ever_fitness": 60.0, "mutation_rate": 0.3})
    store.discard()
    assert store.load_network() is None
    assert len(store.list_brains()) == 1
    stats = store.load_stats()
    assert stats["generation"] == 1
    assert stats["best_ever_fitness"] == 0.0
    assert stats["mutation_rate"] == 0.3


def test_reset_removes_file(store):
    store.save_network(_net())
    store.reset()
    assert store.load_network() is None
    store.reset()


def _write_raw(store, data):
    with open(store.path, "w") as f:
        json.dump(data, f)


def test_out_of_range_stats_are_clamped(store):
    _write_raw(store, {"stats": {"generation": -4, "mutation_rate": 1.5,
                                 "best_ever_fitness": 12}})
    assert store.load_stats() == {"generation": 1, "mutation_rate": 1.0,
                                  "best_ever_fitness": 12.0}


def test_unconvertible_stats_fall_back(store, capsys):
    _write_raw(store, {"stats": {"generation": "abc", "mutation_rate": None,
                                 "best_ever_distance": "NaN", "extra": 1}})
    assert store.load_stats() == {}
    assert "Ignoring saved generation" in capsys.readouterr().out


def test_non_object_stats_are_ignored(store):
    _write_raw(store, {"stats": [1, 2, 3]})
    assert store.load_stats() == {}
    store.discard()
    assert store.load_stats()["generation"] == 1


def test_simulation_starts_from_corrupt_stats(store):
    _write_raw(store, {"stats": {"generation": "abc", "mutation_rate": 1.5}})
    sim = Simulation(population=2, seed=0, store=store)
    assert sim.generation == 1
    assert sim.mutation_rate == 1.0


def test_delete_unknown_brain_reports_false(store):
    store.save_network(_net(), {"fitness": 60.0})
    assert store.delete_brain("brain_missing") is False
    assert store.load_network() is not None


def test_writes_leave_no_temp_files(store, tmp_path):
    for seed in range(3):
        store.save_network(_net(seed), {"fitness": 60.0 + seed})
    store.save_stats({"generation": 2})
    assert sorted(p.name for p in tmp_path.iterdir()) == ["brains.json"]
