"""
Brain store for AutoDrive.

A single JSON file holding:
  best_brain – the network the next run is seeded from
  history    – every saved brain, keyed "brain_<millis>", with
               fitness / distance / generation / timestamp
  stats      – training context (generation, best-ever distance/fitness,
               mutation rate)

The simulation only ever sees `load_network()` and `save_network()`;
everything else is for the CLI and server.
"""

import json
import math
import os
import tempfile
import time
from datetime import datetime

from neural_network import (network_to_dict, network_from_dict,
                            NetworkFormatError)
from config import BRAIN_STORE_PATH, NETWORK_SHAPE


# stats key -> (type, min, max); None means unbounded
_STATS_FIELDS = {
    "generation":         (int,   1,    None),
    "best_ever_distance": (float, None, None),
    "best_ever_fitness":  (float, None, None),
    "mutation_rate":      (float, 0.0,  1.0),
}


class BrainStore:
    """
    JSON-file key/value store for trained networks and run statistics.
    """

    def __init__(self, path: str = BRAIN_STORE_PATH):
        self.path = path

    # ──────────────────────────────────────────────────────────────────────────
    # File helpers
    # ──────────────────────────────────────────────────────────────────────────

    def _read(self) -> dict:
        if not os.path.isfile(self.path):
            return {}
        try:
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            print(f"  !! Brain store {self.path} unreadable ({e}); starting empty.")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict):
        folder = os.path.dirname(self.path)
        if folder:
            os.makedirs(folder, exist_ok=True)
        with tempfile.NamedTemporaryFile("w", dir=folder or ".", prefix=".brains-",
                                         suffix=".tmp", delete=False) as f:
            json.dump(data, f)
            tmp = f.name
        try:
            os.replace(tmp, self.path)
        except OSError:
            os.remove(tmp)
            raise

    # ──────────────────────────────────────────────────────────────────────────
    # Seed network
    # ──────────────────────────────────────────────────────────────────────────

    def load_network(self, expected_shape: list = NETWORK_SHAPE):
        """Return the persisted best network, or None (missing or invalid)."""
        data = self._read()
        raw = data.get("best_brain")
        if raw is None:
            return None
        try:
            return network_from_dict(raw, expected_shape)
        except NetworkFormatError as e:
            print(f"  !! Discarding invalid saved brain: {e}")
            data.pop("best_brain", None)
            self._write(data)
            return None

    def save_network(self, network, metadata: dict = None) -> str:
        """
        Make `network` the new seed and append it to the history.
        Returns the history id.
        """
        data = self._read()
        brain = network_to_dict(network)
        brain_id = f"brain_{int(time.time() * 1000)}"
        while brain_id in data.get("history", {}):
            brain_id += "_"
        record = {
            "brain":     brain,
            "timestamp": datetime.now().isoformat(timespec="seconds"),
        }
        record.update(metadata or {})
        data["best_brain"] = brain
        data.setdefault("history", {})[brain_id] = record
        self._write(data)
        return brain_id

    # ──────────────────────────────────────────────────────────────────────────
    # History
    # ──────────────────────────────────────────────────────────────────────────

    def list_brains(self) -> list:
        """[(brain_id, record), ...] best fitness first."""
        history = self._read().get("history", {})
        return sorted(history.items(),
                      key=lambda kv: float(kv[1].get("fitness", 0)),
                      reverse=True)

    def load_brain(self, brain_id: str) -> dict:
        """Promote a history entry to seed; also restores its generation."""
        data = self._read()
        record = data.get("history", {}).get(brain_id)
        if record is None:
            raise KeyError(brain_id)
        data["best_brain"] = record["brain"]
        stats = data.setdefault("stats", {})
        if "generation" in record:
            stats["generation"] = record["generation"]
        self._write(data)
        return record

    def delete_brain(self, brain_id: str) -> bool:
        """Remove a history entry. False if there was no such entry."""
        data = self._read()
        history = data.get("history", {})
        if history.pop(brain_id, None) is None:
            return False
        if not history:
            data.pop("best_brain", None)
        self._write(data)
        return True

    # ──────────────────────────────────────────────────────────────────────────
    # Training statistics
    # ──────────────────────────────────────────────────────────────────────────

    def load_stats(self) -> dict:
        """
        Saved training context. Fields that fail to convert are
        dropped (the simulation falls back to defaults); out-of-range
        values are clamped.
        """
        stats = self._read().get("stats", {})
        if not isinstance(stats, dict):
            print(f"  !! Ignoring malformed training stats in {self.path}")
            return {}
        clean = {}
        for key, (kind, lo, hi) in _STATS_FIELDS.items():
            if key not in stats:
                continue
            value = stats[key]
            try:
                if isinstance(value, bool):
                    raise TypeError("bool")
                value = kind(value)
            except (TypeError, ValueError, OverflowError):
                print(f"  !! Ignoring saved {key}={value!r}")
                continue
            if kind is float and not math.isfinite(value):
                print(f"  !! Ignoring saved {key}={value!r}")
                continue
            if lo is not None and value < lo:
                value = lo
            if hi is not None and value > hi:
                value = hi
            clean[key] = value
        return clean

    def save_stats(self, stats: dict):
        data = self._read()
        data["stats"] = dict(stats)
        self._write(data)

    def discard(self):
        """Drop the seed brain and restart stats; history is kept."""
        data = self._read()
        data.pop("best_brain", None)
        stats = data.get("stats")
        if not isinstance(stats, dict):
            stats = {}
        stats.update({"generation": 1,
                      "best_ever_distance": 0.0,
                      "best_ever_fitness": 0.0})
        data["stats"] = stats
        self._write(data)

    def reset(self):
        """Delete everything."""
        if os.path.isfile(self.path):
            os.remove(self.path)
