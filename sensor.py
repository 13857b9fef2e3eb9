"""
Ray-cast range sensor for AutoDrive.

Each tick the sensor rebuilds a forward fan and a shorter backward fan of
rays from the car's centre and reports, per ray, the nearest thing it
touches: a road border or an edge of another car's polygon.

Readings (one per ray, forward rays first):
  None                       – nothing within the ray's length
  {"x", "y", "offset"}       – nearest hit, offset = fraction of ray length
"""

import math

from geometry import lerp, segment_intersection, polygon_edges
from config import (RAY_COUNT, BACK_RAY_COUNT, RAY_LENGTH, RAY_SPREAD,
                    BACK_RAY_SPREAD, BACK_RAY_FACTOR, BACK_ANGLE_MARKER)


def _fan_fraction(i: int, count: int) -> float:
    return 0.5 if count == 1 else i / (count - 1)


class Sensor:
    """
    Forward + backward ray fan owned by exactly one car.
    """

    def __init__(self, car,
                 ray_count: int = RAY_COUNT,
                 back_ray_count: int = BACK_RAY_COUNT,
                 ray_length: float = RAY_LENGTH,
                 ray_spread: float = RAY_SPREAD,
                 back_ray_spread: float = BACK_RAY_SPREAD):
        self.car             = car
        self.ray_count       = ray_count
        self.back_ray_count  = back_ray_count
        self.ray_length      = ray_length
        self.ray_spread      = ray_spread
        self.back_ray_spread = back_ray_spread

        self.rays       = []     # [(start, end), ...]
        self.ray_angles = []     # normalised angle per ray (network input)
        self.readings   = []
        self._cast_rays()
        self.readings = [None] * len(self.rays)

    @property
    def total_rays(self) -> int:
        return self.ray_count + self.back_ray_count

    # ──────────────────────────────────────────────────────────────────────────

    def update(self, borders, traffic=()):
        """Re-cast every ray from the car's current pose and read it."""
        self._cast_rays()
        self.readings = [self._get_reading(ray, borders, traffic)
                         for ray in self.rays]

    def proximities(self) -> list:
        """1 − offset per ray; 0 when the ray sees nothing."""
        return [0.0 if r is None else 1.0 - r["offset"] for r in self.readings]

    def network_inputs(self) -> list:
        """Proximities followed by ray angles."""
        return self.proximities() + list(self.ray_angles)

    # ──────────────────────────────────────────────────────────────────────────

    def _get_reading(self, ray, borders, traffic):
        start, end = ray
        touches = []

        for b0, b1 in borders:
            touch = segment_intersection(start, end, b0, b1)
            if touch is not None:
                touches.append(touch)

        for other in traffic:
            if other is self.car or other.polygon is None:
                continue
            for p0, p1 in polygon_edges(other.polygon):
                touch = segment_intersection(start, end, p0, p1)
                if touch is not None:
                    touches.append(touch)

        if not touches:
            return None
        return min(touches, key=lambda t: t["offset"])

    def _cast_rays(self):
        car = self.car
        start = (car.x, car.y)
        self.rays = []
        self.ray_angles = []

        for i in range(self.ray_count):
            ray_angle = lerp(self.ray_spread / 2, -self.ray_spread / 2,
                             _fan_fraction(i, self.ray_count)) + car.angle
            self.ray_angles.append((ray_angle - car.angle) / (math.pi / 2))
            self.rays.append((start, self._ray_end(start, ray_angle,
                                                   self.ray_length)))

        back_length = self.ray_length * BACK_RAY_FACTOR
        for i in range(self.back_ray_count):
            ray_angle = math.pi + lerp(self.back_ray_spread / 2,
                                       -self.back_ray_spread / 2,
                                       _fan_fraction(i, self.back_ray_count)) + car.angle
            self.ray_angles.append(BACK_ANGLE_MARKER)
            self.rays.append((start, self._ray_end(start, ray_angle,
                                                   back_length)))

    @staticmethod
    def _ray_end(start, angle: float, length: float):
        return (start[0] + math.sin(angle) * length,
                start[1] - math.cos(angle) * length)
