"""
Control vectors and the sources that produce them.

A ControlVector is the only thing that drives a car's motion. Anything
with a `decide(car) -> ControlVector` method can steer a car:

  ConstantControls – fixed vector (traffic just drives forward)
  BrainPolicy      – runs the car's neural network on its sensor inputs
                     and post-processes the raw outputs
"""

import numpy as np

from config import CONTROL_THRESHOLD


def _unit(v: float) -> float:
    return float(min(1.0, max(0.0, v)))


class ControlVector:
    """Four independent analog controls in [0, 1]."""
    __slots__ = ("forward", "left", "right", "reverse")

    def __init__(self, forward: float = 0.0, left: float = 0.0,
                 right: float = 0.0, reverse: float = 0.0):
        self.forward = _unit(forward)
        self.left    = _unit(left)
        self.right   = _unit(right)
        self.reverse = _unit(reverse)

    @classmethod
    def from_outputs(cls, outputs) -> "ControlVector":
        forward, left, right, reverse = (float(v) for v in outputs)
        return cls(forward, left, right, reverse)

    def as_list(self) -> list:
        return [self.forward, self.left, self.right, self.reverse]

    def __eq__(self, other):
        if not isinstance(other, ControlVector):
            return NotImplemented
        return self.as_list() == other.as_list()

    def __repr__(self):
        return ("ControlVector(forward={:.3f}, left={:.3f}, "
                "right={:.3f}, reverse={:.3f})").format(*self.as_list())


class ConstantControls:
    """Always returns the same vector."""

    def __init__(self, controls: ControlVector = None):
        self.controls = controls if controls is not None else ControlVector(forward=1.0)

    def decide(self, car) -> ControlVector:
        return self.controls


class BrainPolicy:
    """
    Neural driver.

    Raw network outputs are post-processed here, not inside the network:
      - forward / reverse pass through as analog throttle
      - left and right are mutually exclusive: when both exceed the
        threshold only the larger keeps its value, the other drops to 0
      - max speed doubles while no forward ray reads a proximity above
        the threshold, and returns to the base value otherwise
    """

    def __init__(self, threshold: float = CONTROL_THRESHOLD,
                 boost_factor: float = 2.0):
        self.threshold    = threshold
        self.boost_factor = boost_factor

    def decide(self, car) -> ControlVector:
        sensor = car.sensor
        proximities = sensor.proximities()
        inputs = np.asarray(proximities + list(sensor.ray_angles),
                            dtype=np.float64)
        outputs = car.brain.feed_forward(inputs)

        front = proximities[:sensor.ray_count]
        if any(p > self.threshold for p in front):
            car.max_speed = car.base_max_speed
        else:
            car.max_speed = car.base_max_speed * self.boost_factor

        return self.post_process(outputs)

    def post_process(self, outputs) -> ControlVector:
        forward, left, right, reverse = (float(v) for v in outputs)
        if left > self.threshold and right > self.threshold:
            if left > right:
                right = 0.0
            else:
                left = 0.0
        return ControlVector(forward, left, right, reverse)
