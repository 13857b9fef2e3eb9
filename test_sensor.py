import math

import pytest

from car import Car
from sensor import Sensor
from config import BACK_ANGLE_MARKER, RAY_COUNT, BACK_RAY_COUNT


def _single_ray(car, length=150):
    return Sensor(car, ray_count=1, back_ray_count=0, ray_length=length)


@pytest.fixture
def car():
    return Car(0, 0, with_sensor=False)


def test_ray_hits_border_halfway(car):
    sensor = _single_ray(car)
    sensor.update([((-50, -75), (50, -75))])
    reading = sensor.readings[0]
    assert reading is not None
    assert reading["offset"] == pytest.approx(0.5)
    assert sensor.proximities() == [pytest.approx(0.5)]


def test_no_obstacle_reads_none_and_zero_proximity(car):
    sensor = _single_ray(car)
    sensor.update([((-50, -200), (50, -200))])
    assert sensor.readings == [None]
    assert sensor.proximities() == [0.0]


def test_nearest_hit_wins(car):
    sensor = _single_ray(car)
    sensor.update([((-50, -90), (50, -90)), ((-50, -30), (50, -30))])
    assert sensor.readings[0]["offset"] == pytest.approx(0.2)


def test_other_car_polygon_is_seen(car):
    sensor = _single_ray(car)
    ahead = Car(0, -100, with_sensor=False)       # rear edge at y = -75
    sensor.update([], [ahead])
    assert sensor.readings[0]["offset"] == pytest.approx(0.5)


def test_own_polygon_is_ignored(car):
    sensor = _single_ray(car)
    sensor.update([], [car])
    assert sensor.readings == [None]


def test_rays_follow_heading(car):
    car.angle = math.pi / 2                       # facing +x
    sensor = _single_ray(car, length=100)
    (sx, sy), (ex, ey) = sensor.rays[0]
    assert (sx, sy) == (0, 0)
    assert ex == pytest.approx(100)
    assert ey == pytest.approx(0)


def test_default_layout_angles():
    car = Car(0, 0)
    sensor = car.sensor
    assert sensor.total_rays == RAY_COUNT + BACK_RAY_COUNT
    assert len(sensor.rays) == len(sensor.ray_angles) == sensor.total_rays

    forward = sensor.ray_angles[:RAY_COUNT]
    assert forward[0] == pytest.approx(0.75)
    assert forward[-1] == pytest.approx(-0.75)
    assert forward == sorted(forward, reverse=True)
    assert sensor.ray_angles[RAY_COUNT:] == [BACK_ANGLE_MARKER] * BACK_RAY_COUNT
    assert BACK_ANGLE_MARKER not in forward


def test_backward_rays_are_shorter_and_point_back():
    car = Car(0, 0)
    sensor = car.sensor
    for (sx, sy), (ex, ey) in sensor.rays[RAY_COUNT:]:
        assert math.hypot(ex - sx, ey - sy) == pytest.approx(sensor.ray_length * 0.6)
        assert ey > sy                             # behind = larger y
    for (sx, sy), (ex, ey) in sensor.rays[:RAY_COUNT]:
        assert math.hypot(ex - sx, ey - sy) == pytest.approx(sensor.ray_length)


def test_network_inputs_are_proximities_then_angles():
    car = Car(0, 0)
    car.sensor.update([((-200, -50), (200, -50))])
    inputs = car.sensor.network_inputs()
    assert len(inputs) == 2 * car.sensor.total_rays
    assert inputs[:car.sensor.total_rays] == car.sensor.proximities()
    assert inputs[car.sensor.total_rays:] == car.sensor.ray_angles


def test_every_offset_in_unit_range():
    car = Car(0, 0)
    borders = [((-40, -300), (-40, 300)), ((40, -300), (40, 300)),
               ((-300, -60), (300, -60))]
    car.sensor.update(borders, [Car(0, 80, with_sensor=False)])
    seen = [r for r in car.sensor.readings if r is not None]
    assert seen
    for r in seen:
        assert 0 <= r["offset"] <= 1
