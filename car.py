"""
Car class for AutoDrive.

Each car has:
  - (x, y) centre position, heading angle (radians, 0 = up the screen)
  - scalar speed integrated by a simple kinematic model
  - an oriented bounding rectangle (polygon) rebuilt every tick
  - optionally a Sensor and a neural-network brain
  - a controller that produces one ControlVector per tick

Every tick an undamaged car:
  1. Reads its sensor
  2. Asks its controller for a ControlVector
  3. Moves, rebuilds its polygon and checks for damage

Damage is terminal: a damaged car never moves or senses again.
"""

import math

from geometry import rect_polygon, polygons_intersect
from sensor import Sensor
from controls import ControlVector
from config import (
    CAR_WIDTH, CAR_HEIGHT, ACCELERATION, FRICTION, TURN_RATE,
    STEER_MIN_SPEED, CONTROL_THRESHOLD, AI_MAX_SPEED,
)


class Car:
    """
    A single agent on the road: traffic or AI driver.
    """
    __slots__ = (
        "x", "y", "width", "height", "angle", "speed",
        "max_speed", "base_max_speed", "acceleration", "friction",
        "turn_rate", "flip", "damaged", "fitness", "start_y",
        "polygon", "sensor", "brain", "controller", "controls",
    )

    def __init__(self, x: float, y: float,
                 width: float = CAR_WIDTH, height: float = CAR_HEIGHT,
                 max_speed: float = AI_MAX_SPEED,
                 controller=None, brain=None, with_sensor: bool = True,
                 acceleration: float = ACCELERATION,
                 friction: float = FRICTION,
                 turn_rate: float = TURN_RATE):
        self.x      = x
        self.y      = y
        self.width  = width
        self.height = height
        self.angle  = 0.0
        self.speed  = 0.0
        self.max_speed      = max_speed
        self.base_max_speed = max_speed
        self.acceleration   = acceleration
        self.friction       = friction
        self.turn_rate      = turn_rate
        self.flip     = 1
        self.damaged  = False
        self.fitness  = 0.0
        self.start_y  = y

        self.brain      = brain
        self.controller = controller
        self.controls   = ControlVector()
        self.sensor     = Sensor(self) if with_sensor else None
        self.polygon    = self._create_polygon()

    # ──────────────────────────────────────────────────────────────────────────

    @property
    def distance(self) -> float:
        """Forward progress since spawn (y decreases going forward)."""
        return self.start_y - self.y

    def set_max_speed(self, max_speed: float):
        self.base_max_speed = max_speed
        self.max_speed      = max_speed

    def overtaken(self, traffic) -> int:
        """How many traffic cars are behind this car."""
        return sum(1 for t in traffic if self.y < t.y)

    # ──────────────────────────────────────────────────────────────────────────

    def update(self, borders, traffic=()):
        """One tick: sense → decide → move → damage check."""
        if self.damaged:
            return

        if self.sensor is not None:
            self.sensor.update(borders, traffic)

        if self.controller is not None:
            self.controls = self.controller.decide(self)

        self.move(self.controls)
        self.polygon = self._create_polygon()
        self.damaged = self._assess_damage(borders, traffic)

    def move(self, controls: ControlVector):
        """Integrate speed, heading and position for one tick."""
        self.speed += self.acceleration * controls.forward
        self.speed -= self.acceleration * controls.reverse

        if self.speed > self.max_speed:
            self.speed = self.max_speed
        if self.speed < -self.max_speed / 2:
            self.speed = -self.max_speed / 2

        if abs(self.speed) > self.friction:
            self.speed -= math.copysign(self.friction, self.speed)
        else:
            self.speed = 0.0

        if self.speed > 0:
            self.flip = 1
        elif self.speed < 0:
            self.flip = -1

        if abs(self.speed) > STEER_MIN_SPEED:
            if controls.left > CONTROL_THRESHOLD:
                self.angle -= self.turn_rate * self.flip
            if controls.right > CONTROL_THRESHOLD:
                self.angle += self.turn_rate * self.flip

        self.x += math.sin(self.angle) * self.speed
        self.y -= math.cos(self.angle) * self.speed

    # ──────────────────────────────────────────────────────────────────────────

    def _create_polygon(self) -> list:
        return rect_polygon(self.x, self.y, self.width, self.height, self.angle)

    def _assess_damage(self, borders, traffic) -> bool:
        for border in borders:
            if polygons_intersect(self.polygon, border):
                return True
        for other in traffic:
            if other is self or other.polygon is None:
                continue
            if polygons_intersect(self.polygon, other.polygon):
                return True
        return False

    def snapshot(self) -> dict:
        """Plain-data view of the car for the host to draw or stream."""
        data = {
            "x":        round(self.x, 2),
            "y":        round(self.y, 2),
            "angle":    round(self.angle, 4),
            "speed":    round(self.speed, 3),
            "damaged":  self.damaged,
            "fitness":  round(self.fitness, 2),
            "polygon":  [[round(px, 2), round(py, 2)] for px, py in self.polygon],
        }
        if self.sensor is not None:
            data["rays"] = [[list(s), list(e)] for s, e in self.sensor.rays]
            data["readings"] = [
                None if r is None else
                {"x": round(r["x"], 2), "y": round(r["y"], 2),
                 "offset": round(r["offset"], 4)}
                for r in self.sensor.readings
            ]
        return data
