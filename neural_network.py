"""
Neural Network Brain for AutoDrive.

A layered feedforward network: inputs → 16 hidden → 4 outputs
(forward, left, right, reverse).

Forward pass (per simulation tick):
  1. For each level, weighted sum of the inputs per output node
  2. Subtract the node's bias (the bias is the node's firing threshold)
  3. Logistic sigmoid → (0, 1); outputs feed the next level

Mutation blends every weight and bias toward a fresh random value by
`rate`, so rate 0 leaves the network unchanged and rate 1 replaces it.

Exchange format (JSON-friendly dict):
  {"version": 1,
   "levels": [{"inputs": n, "outputs": m,
               "weights": [[... m floats ...] × n],
               "biases":  [... m floats ...]}, ...]}
"""

import numpy as np

from config import (NETWORK_SHAPE, WEIGHT_RANGE, OUTPUT_BIAS_SEED,
                    NETWORK_FORMAT_VERSION)


class NetworkFormatError(ValueError):
    """A persisted network is structurally invalid."""


def sigmoid(x):
    # tanh form is exact at 0 (→ 0.5) and cannot overflow
    return 0.5 * (1.0 + np.tanh(0.5 * x))


# ──────────────────────────────────────────────────────────────────────────────
# Levels / network
# ──────────────────────────────────────────────────────────────────────────────

class Level:
    """One weight matrix (inputs × outputs) plus one bias per output."""

    def __init__(self, weights, biases):
        self.weights = np.array(weights, dtype=np.float64)
        self.biases  = np.array(biases,  dtype=np.float64)

    @property
    def input_count(self) -> int:
        return self.weights.shape[0]

    @property
    def output_count(self) -> int:
        return self.weights.shape[1]

    def feed_forward(self, inputs: np.ndarray) -> np.ndarray:
        sums = inputs @ self.weights
        return sigmoid(sums - self.biases)

    def copy(self) -> "Level":
        return Level(self.weights.copy(), self.biases.copy())


class NeuralNetwork:
    """
    Ordered levels; level i's output count equals level i+1's input count.
    """

    def __init__(self, levels: list):
        self.levels = levels

    @property
    def shape(self) -> list:
        if not self.levels:
            return []
        return [self.levels[0].input_count] + [l.output_count for l in self.levels]

    def feed_forward(self, inputs) -> np.ndarray:
        """
        Args:
            inputs: array of shape (shape[0],)

        Returns:
            outputs: float64 array of shape (shape[-1],), values in (0, 1)
        """
        outputs = np.asarray(inputs, dtype=np.float64)
        for level in self.levels:
            outputs = level.feed_forward(outputs)
        return outputs

    def copy(self) -> "NeuralNetwork":
        return NeuralNetwork([l.copy() for l in self.levels])

    def __eq__(self, other):
        if not isinstance(other, NeuralNetwork):
            return NotImplemented
        if self.shape != other.shape:
            return False
        return all(np.array_equal(a.weights, b.weights) and
                   np.array_equal(a.biases, b.biases)
                   for a, b in zip(self.levels, other.levels))

    def summary(self) -> str:
        lines = [f"NeuralNetwork {self.shape}"]
        for i, l in enumerate(self.levels):
            lines.append(
                f"  L{i}: {l.input_count:>3} → {l.output_count:<3}"
                f"  |w| mean={np.abs(l.weights).mean():.3f}"
                f"  b={np.array2string(l.biases[:4], precision=2)}"
            )
        return "\n".join(lines)


# ──────────────────────────────────────────────────────────────────────────────
# Construction / mutation
# ──────────────────────────────────────────────────────────────────────────────

def random_network(shape: list = None, rng=None,
                   bias_seed=OUTPUT_BIAS_SEED) -> NeuralNetwork:
    """
    Uniform random weights and biases in [-WEIGHT_RANGE, WEIGHT_RANGE].
    The output level's biases are then overwritten with `bias_seed`
    (pass None to keep them random).
    """
    if rng is None:
        rng = np.random.default_rng()
    if shape is None:
        shape = NETWORK_SHAPE
    levels = []
    for n_in, n_out in zip(shape[:-1], shape[1:]):
        weights = rng.uniform(-WEIGHT_RANGE, WEIGHT_RANGE, size=(n_in, n_out))
        biases  = rng.uniform(-WEIGHT_RANGE, WEIGHT_RANGE, size=n_out)
        levels.append(Level(weights, biases))
    net = NeuralNetwork(levels)
    if bias_seed is not None and levels:
        out = levels[-1]
        k = min(len(bias_seed), out.output_count)
        out.biases[:k] = bias_seed[:k]
    return net


def mutate_network(network: NeuralNetwork, rate: float, rng=None) -> NeuralNetwork:
    """
    Return a mutated copy: every weight and bias moves toward a new
    U(-1, 1) value by `rate` (clamped to [0, 1]). Topology never changes.
    """
    if rng is None:
        rng = np.random.default_rng()
    rate = min(1.0, max(0.0, float(rate)))
    mutated = []
    for level in network.levels:
        w_target = rng.uniform(-1.0, 1.0, size=level.weights.shape)
        b_target = rng.uniform(-1.0, 1.0, size=level.biases.shape)
        weights = level.weights + (w_target - level.weights) * rate
        biases  = level.biases  + (b_target - level.biases)  * rate
        mutated.append(Level(weights, biases))
    return NeuralNetwork(mutated)


# ──────────────────────────────────────────────────────────────────────────────
# Exchange format
# ──────────────────────────────────────────────────────────────────────────────

def network_to_dict(network: NeuralNetwork) -> dict:
    return {
        "version": NETWORK_FORMAT_VERSION,
        "levels": [
            {
                "inputs":  l.input_count,
                "outputs": l.output_count,
                "weights": l.weights.tolist(),
                "biases":  l.biases.tolist(),
            }
            for l in network.levels
        ],
    }


def _count(value, name: str, idx: int) -> int:
    # level records may carry the input/output activation arrays instead of counts
    if isinstance(value, (list, tuple)):
        return len(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise NetworkFormatError(f"level {idx}: '{name}' must be an int")
    return value


def network_from_dict(data, expected_shape: list = None) -> NeuralNetwork:
    """
    Validate and rebuild a network. Raises NetworkFormatError on any
    structural problem; never returns a partially built network.

    expected_shape, if given, pins the first input count and last output
    count (the sensor layout and control vector size).
    """
    if not isinstance(data, dict):
        raise NetworkFormatError("network must be a JSON object")
    version = data.get("version", NETWORK_FORMAT_VERSION)
    if version != NETWORK_FORMAT_VERSION:
        raise NetworkFormatError(f"unsupported network version {version!r}")
    raw_levels = data.get("levels")
    if not isinstance(raw_levels, list) or not raw_levels:
        raise NetworkFormatError("network has no levels")

    levels = []
    for idx, raw in enumerate(raw_levels):
        if not isinstance(raw, dict):
            raise NetworkFormatError(f"level {idx}: not an object")
        for key in ("inputs", "outputs", "weights", "biases"):
            if key not in raw:
                raise NetworkFormatError(f"level {idx}: missing '{key}'")
        n_in  = _count(raw["inputs"],  "inputs",  idx)
        n_out = _count(raw["outputs"], "outputs", idx)
        try:
            weights = np.array(raw["weights"], dtype=np.float64)
            biases  = np.array(raw["biases"],  dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise NetworkFormatError(f"level {idx}: non-numeric values ({e})") from e
        if weights.shape != (n_in, n_out):
            raise NetworkFormatError(
                f"level {idx}: weights shape {weights.shape} != ({n_in}, {n_out})")
        if biases.shape != (n_out,):
            raise NetworkFormatError(
                f"level {idx}: biases shape {biases.shape} != ({n_out},)")
        if not (np.all(np.isfinite(weights)) and np.all(np.isfinite(biases))):
            raise NetworkFormatError(f"level {idx}: non-finite values")
        if levels and levels[-1].output_count != n_in:
            raise NetworkFormatError(
                f"level {idx}: {n_in} inputs but previous level has "
                f"{levels[-1].output_count} outputs")
        levels.append(Level(weights, biases))

    net = NeuralNetwork(levels)
    if expected_shape is not None:
        shape = net.shape
        if shape[0] != expected_shape[0] or shape[-1] != expected_shape[-1]:
            raise NetworkFormatError(
                f"network shape {shape} does not fit {expected_shape}")
    return net
