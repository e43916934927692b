import math

import numpy as np
import pytest

from htosc.orientation.quaternion import (
    AMBISONIC_AXIS_MAP,
    Quaternion,
    remap,
    to_tait_bryan,
)


K = math.sqrt(0.5)


def test_identity_has_zero_angles():
    angles = to_tait_bryan(Quaternion.identity())
    assert (angles.yaw, angles.pitch, angles.roll) == (0.0, 0.0, 0.0)


def test_remap_keeps_identity():
    assert remap(Quaternion.identity()) == Quaternion.identity()
    angles = to_tait_bryan(remap(Quaternion.identity()))
    assert (angles.yaw, angles.pitch, angles.roll) == (0.0, 0.0, 0.0)


def test_remap_follows_axis_table():
    q = remap(Quaternion(0.1, 0.2, 0.3, 0.4))
    assert q == Quaternion(0.1, -0.4, -0.2, 0.3)


def test_remap_does_not_normalize():
    q = remap(Quaternion(2.0, 3.0, 0.0, 0.0))
    assert q == Quaternion(2.0, 0.0, -3.0, 0.0)


def test_remap_with_custom_axis_map():
    swap_all = {"w": ("w", 1), "x": ("x", -1), "y": ("y", -1), "z": ("z", -1)}
    assert remap(Quaternion(0.5, 0.1, 0.2, 0.3), swap_all) == Quaternion(0.5, -0.1, -0.2, -0.3)


def test_remap_rejects_non_permutation():
    bad = dict(AMBISONIC_AXIS_MAP)
    bad["y"] = ("x", 1)
    with pytest.raises(ValueError):
        remap(Quaternion.identity(), bad)


def test_remap_rejects_invalid_sign():
    bad = dict(AMBISONIC_AXIS_MAP)
    bad["w"] = ("w", 2)
    with pytest.raises(ValueError):
        remap(Quaternion.identity(), bad)


def test_yaw_about_vertical_axis():
    angles = to_tait_bryan(Quaternion(K, 0.0, 0.0, K))
    assert angles.yaw == pytest.approx(math.pi / 2)
    assert angles.pitch == pytest.approx(0.0, abs=1e-12)
    assert angles.roll == pytest.approx(0.0, abs=1e-12)


def test_device_rotation_about_up_axis_becomes_yaw():
    # デバイス座標系の y 軸（上）まわりの回転
    angles = to_tait_bryan(remap(Quaternion(K, 0.0, K, 0.0)))
    assert angles.yaw == pytest.approx(math.pi / 2)
    assert angles.pitch == pytest.approx(0.0, abs=1e-12)
    assert angles.roll == pytest.approx(0.0, abs=1e-12)


def test_roll_about_front_axis():
    theta = math.radians(30)
    angles = to_tait_bryan(Quaternion(math.cos(theta / 2), math.sin(theta / 2), 0.0, 0.0))
    assert angles.roll == pytest.approx(theta)
    assert angles.yaw == pytest.approx(0.0, abs=1e-12)
    assert angles.pitch == pytest.approx(0.0, abs=1e-12)


def test_pitch_about_lateral_axis():
    theta = math.radians(-40)
    angles = to_tait_bryan(Quaternion(math.cos(theta / 2), 0.0, math.sin(theta / 2), 0.0))
    assert angles.pitch == pytest.approx(theta)


def test_half_turn_yaw_stays_in_range():
    angles = to_tait_bryan(Quaternion(0.0, 0.0, 0.0, 1.0))
    assert angles.yaw == pytest.approx(math.pi)
    assert -math.pi < angles.yaw <= math.pi


def test_gimbal_lock_pitch_up_attributes_rotation_to_yaw():
    psi = math.radians(60)
    c, s = math.cos(psi / 2), math.sin(psi / 2)
    angles = to_tait_bryan(Quaternion(c * K, -s * K, c * K, s * K))
    assert angles.pitch == pytest.approx(math.pi / 2)
    assert angles.roll == 0.0
    assert angles.yaw == pytest.approx(psi)


def test_gimbal_lock_pitch_down_attributes_rotation_to_yaw():
    psi = math.radians(-120)
    c, s = math.cos(psi / 2), math.sin(psi / 2)
    angles = to_tait_bryan(Quaternion(c * K, s * K, -c * K, s * K))
    assert angles.pitch == pytest.approx(-math.pi / 2)
    assert angles.roll == 0.0
    assert angles.yaw == pytest.approx(psi)


def test_gimbal_lock_never_produces_nan():
    for q in (Quaternion(K, 0.0, K, 0.0), Quaternion(K, 0.0, -K, 0.0), Quaternion(0.5, 0.5, 0.5, -0.5)):
        angles = to_tait_bryan(q)
        assert not np.isnan([angles.yaw, angles.pitch, angles.roll]).any()


def test_as_array_order():
    assert np.array_equal(Quaternion(1.0, 2.0, 3.0, 4.0).as_array(), np.array([1.0, 2.0, 3.0, 4.0]))
