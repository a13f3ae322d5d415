################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

from __future__ import annotations

import math

import numpy as np
import pytest

from lidar_eskf.localization.eskf.eskf_error_state import ESKF_LAYOUT
from lidar_eskf.localization.eskf.eskf_outputs import build_bias
from lidar_eskf.localization.eskf.eskf_outputs import build_odometry
from lidar_eskf.localization.eskf.eskf_outputs import (
    observation_covariance_attitude_first,
)
from lidar_eskf.localization.eskf.eskf_outputs import odometry_pose_covariance
from lidar_eskf.localization.eskf.eskf_outputs import odometry_twist_covariance
from lidar_eskf.localization.eskf.eskf_rotation import so3_exp
from lidar_eskf.localization.eskf.eskf_state import EskfNominalState
from lidar_eskf.localization.eskf.eskf_types import EskfBias
from lidar_eskf.localization.eskf.eskf_types import EskfOdometry
from lidar_eskf.localization.eskf.eskf_types import EskfTime


def _sigma() -> np.ndarray:
    sigma: np.ndarray = np.zeros((15, 15))
    sigma[ESKF_LAYOUT.sl_v(), ESKF_LAYOUT.sl_v()] = np.diag([0.1, 0.2, 0.3])
    sigma[ESKF_LAYOUT.sl_theta(), ESKF_LAYOUT.sl_theta()] = np.diag([1.0, 2.0, 3.0])
    sigma[ESKF_LAYOUT.sl_p(), ESKF_LAYOUT.sl_p()] = np.diag([4.0, 5.0, 6.0])
    return sigma


def _nominal(rotation: np.ndarray) -> EskfNominalState:
    return EskfNominalState(
        velocity_mps=np.array([1.0, 0.0, -1.0]),
        rotation=rotation,
        position_m=np.array([10.0, 20.0, 30.0]),
        bias_acc_mps2=np.array([0.01, 0.02, 0.03]),
        bias_gyr_rps=np.array([-0.001, 0.0, 0.001]),
    )


def test_pose_covariance_attitude_first_identity_rotation() -> None:
    pose_cov: np.ndarray = odometry_pose_covariance(
        _sigma(), np.eye(3), "attitude_first"
    )

    np.testing.assert_allclose(np.diag(pose_cov), [1.0, 2.0, 3.0, 4.0, 5.0, 6.0])


def test_pose_covariance_position_first_swaps_halves() -> None:
    pose_cov: np.ndarray = odometry_pose_covariance(
        _sigma(), np.eye(3), "position_first"
    )

    np.testing.assert_allclose(np.diag(pose_cov), [4.0, 5.0, 6.0, 1.0, 2.0, 3.0])


def test_pose_covariance_rotates_attitude_into_world() -> None:
    sigma: np.ndarray = _sigma()
    sigma[ESKF_LAYOUT.sl_theta(), ESKF_LAYOUT.sl_p()] = 0.5 * np.eye(3)
    sigma[ESKF_LAYOUT.sl_p(), ESKF_LAYOUT.sl_theta()] = 0.5 * np.eye(3)
    rot: np.ndarray = so3_exp(np.array([0.0, 0.0, math.pi / 2.0]))

    pose_cov: np.ndarray = odometry_pose_covariance(sigma, rot, "attitude_first")

    # A quarter turn about z swaps the x and y attitude variances
    np.testing.assert_allclose(
        pose_cov[0:3, 0:3], np.diag([2.0, 1.0, 3.0]), atol=1.0e-12
    )
    np.testing.assert_allclose(pose_cov[0:3, 3:6], 0.5 * rot, atol=1.0e-12)
    np.testing.assert_allclose(pose_cov[3:6, 0:3], 0.5 * rot.T, atol=1.0e-12)
    np.testing.assert_allclose(pose_cov, pose_cov.T, atol=1.0e-12)


def test_twist_covariance_blocks() -> None:
    twist_cov: np.ndarray = odometry_twist_covariance(_sigma(), 0.01)

    np.testing.assert_allclose(
        np.diag(twist_cov), [0.1, 0.2, 0.3, 0.01, 0.01, 0.01]
    )
    np.testing.assert_allclose(twist_cov[0:3, 3:6], np.zeros((3, 3)))


def test_observation_covariance_reordering() -> None:
    covariance: list[float] = (
        np.diag([1.0, 2.0, 3.0, 4.0, 5.0, 6.0]).reshape(36).tolist()
    )

    attitude_first: np.ndarray = observation_covariance_attitude_first(
        covariance, "attitude_first"
    )
    from_position_first: np.ndarray = observation_covariance_attitude_first(
        covariance, "position_first"
    )

    np.testing.assert_allclose(np.diag(attitude_first), [1.0, 2.0, 3.0, 4.0, 5.0, 6.0])
    np.testing.assert_allclose(
        np.diag(from_position_first), [4.0, 5.0, 6.0, 1.0, 2.0, 3.0]
    )


def test_observation_covariance_rejects_bad_input() -> None:
    with pytest.raises(ValueError):
        observation_covariance_attitude_first([0.0] * 35, "attitude_first")
    with pytest.raises(ValueError):
        observation_covariance_attitude_first([0.0] * 36, "yaw_first")
    with pytest.raises(ValueError):
        observation_covariance_attitude_first(
            [math.nan] + [0.0] * 35, "attitude_first"
        )


def test_build_odometry_and_bias() -> None:
    t_meas: EskfTime = EskfTime(sec=3, nanosec=20_000_000)
    nominal: EskfNominalState = _nominal(np.eye(3))

    odometry: EskfOdometry = build_odometry(
        t_meas,
        nominal,
        _sigma(),
        angular_velocity_rps=np.array([0.1, 0.2, 0.3]),
        sigma_gyroscope=0.01,
        covariance_order="position_first",
    )
    bias: EskfBias = build_bias(t_meas, nominal)

    assert odometry.t_meas == t_meas
    assert odometry.position_m == [10.0, 20.0, 30.0]
    assert odometry.linear_velocity_mps == [1.0, 0.0, -1.0]
    assert odometry.angular_velocity_rps == [0.1, 0.2, 0.3]
    assert odometry.orientation_wxyz == pytest.approx([1.0, 0.0, 0.0, 0.0])
    assert len(odometry.pose_covariance) == 36
    assert odometry.pose_covariance[0] == pytest.approx(4.0)
    assert len(odometry.twist_covariance) == 36
    assert odometry.twist_covariance[35] == pytest.approx(0.01)

    assert bias.accel_bias_mps2 == [0.01, 0.02, 0.03]
    assert bias.gyro_bias_rps == [-0.001, 0.0, 0.001]
