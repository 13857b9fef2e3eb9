import pytest

from car import Car
from road import Road
from controls import ControlVector, ConstantControls


FORWARD = ControlVector(forward=1.0)


def _bare_car(**kw):
    return Car(0, 0, with_sensor=False, **kw)


def test_acceleration_sequence_with_friction():
    car = _bare_car(max_speed=2, acceleration=0.2, friction=0.05)
    speeds = []
    for _ in range(5):
        car.move(FORWARD)
        speeds.append(car.speed)
    assert speeds == pytest.approx([0.15, 0.30, 0.45, 0.60, 0.75])


def test_speed_never_exceeds_max():
    car = _bare_car(max_speed=2, acceleration=0.2, friction=0.05)
    for _ in range(40):
        car.move(FORWARD)
        assert car.speed <= 2
    assert car.speed == pytest.approx(1.95)


def test_reverse_capped_at_half_max():
    car = _bare_car(max_speed=2)
    for _ in range(40):
        car.move(ControlVector(reverse=1.0))
        assert car.speed >= -1
    assert car.speed == pytest.approx(-0.95)


def test_forward_and_reverse_cancel():
    car = _bare_car()
    car.move(ControlVector(forward=1.0, reverse=1.0))
    assert car.speed == 0


def test_analog_throttle_scales_acceleration():
    car = _bare_car(acceleration=0.2, friction=0.05)
    car.move(ControlVector(forward=0.5))
    assert car.speed == pytest.approx(0.05)


def test_friction_snaps_small_speed_to_zero():
    car = _bare_car()
    car.speed = 0.04
    car.move(ControlVector())
    assert car.speed == 0


def test_no_steering_when_slow():
    car = _bare_car()
    car.move(ControlVector(forward=1.0, left=1.0))
    assert car.angle == 0


def test_steering_left_and_right():
    car = _bare_car(turn_rate=0.03)
    car.speed = 1.0
    car.move(ControlVector(left=1.0))
    assert car.angle == pytest.approx(-0.03)
    car.move(ControlVector(right=1.0))
    assert car.angle == pytest.approx(0.0)


def test_steering_flips_in_reverse():
    car = _bare_car(turn_rate=0.03)
    car.speed = -0.9
    car.move(ControlVector(left=1.0))
    assert car.flip == -1
    assert car.angle == pytest.approx(0.03)


def test_steering_below_threshold_is_ignored():
    car = _bare_car()
    car.speed = 1.0
    car.move(ControlVector(left=0.4))
    assert car.angle == 0


def test_forward_motion_decreases_y():
    car = _bare_car()
    car.move(FORWARD)
    assert car.x == pytest.approx(0)
    assert car.y == pytest.approx(-0.15)
    assert car.distance == pytest.approx(0.15)


def test_polygon_follows_position():
    road = Road()
    car = Car(road.lane_center(1), 100, controller=ConstantControls(),
              with_sensor=False)
    before = list(car.polygon)
    car.update(road.borders)
    assert len(car.polygon) == 4
    assert car.polygon != before
    assert not car.damaged


def test_touching_border_damages():
    road = Road()
    car = Car(road.left, 100, controller=ConstantControls(), with_sensor=False)
    car.update(road.borders)
    assert car.damaged


def test_collision_with_other_car_damages():
    car = Car(100, 100, controller=ConstantControls(), with_sensor=False)
    other = Car(110, 80, with_sensor=False)
    car.update([], [other])
    assert car.damaged


def test_self_in_traffic_list_is_not_a_collision():
    car = Car(100, 100, controller=ConstantControls(), with_sensor=False)
    car.update([], [car])
    assert not car.damaged


def test_damage_is_terminal():
    road = Road()
    car = Car(road.left, 100, controller=ConstantControls())
    car.update(road.borders)
    assert car.damaged
    state = (car.x, car.y, car.angle, car.speed, list(car.polygon))
    for _ in range(5):
        car.update(road.borders)
    assert (car.x, car.y, car.angle, car.speed, list(car.polygon)) == state
    assert car.damaged


def test_set_max_speed_updates_base():
    car = _bare_car(max_speed=2)
    car.set_max_speed(3.5)
    assert car.max_speed == car.base_max_speed == 3.5


def test_overtaken_counts_cars_behind():
    car = _bare_car()
    car.y = -100
    traffic = [_bare_car() for _ in range(3)]
    traffic[0].y = -50
    traffic[1].y = -150
    traffic[2].y = 0
    assert car.overtaken(traffic) == 2


def test_snapshot_is_plain_data():
    car = Car(50, 100)
    car.sensor.update([((0, -1000), (0, 1000))])
    snap = car.snapshot()
    assert len(snap["polygon"]) == 4
    assert len(snap["rays"]) == len(snap["readings"]) == car.sensor.total_rays
    assert snap["damaged"] is False
