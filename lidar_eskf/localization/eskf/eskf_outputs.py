################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""
Output assembly for ESKF odometry and bias estimates

The attitude error is a body-frame rotation vector while the position error
is already in the world frame. Published pose covariances express attitude
uncertainty in the world frame, so the attitude rows and columns are rotated
by the nominal rotation R:

    [[R S_tt R^T, R S_tp],
     [S_pt R^T,   S_pp  ]]

The block order on the wire is configurable. Attitude-first matches the
observation model, position-first matches REP-103 pose messages.
"""

from __future__ import annotations

import numpy as np

from lidar_eskf.localization.eskf.eskf_config import COVARIANCE_ORDER_ATTITUDE_FIRST
from lidar_eskf.localization.eskf.eskf_config import COVARIANCE_ORDERS
from lidar_eskf.localization.eskf.eskf_error_state import ESKF_LAYOUT
from lidar_eskf.localization.eskf.eskf_linalg import as_square_matrix
from lidar_eskf.localization.eskf.eskf_state import EskfNominalState
from lidar_eskf.localization.eskf.eskf_types import EskfBias
from lidar_eskf.localization.eskf.eskf_types import EskfOdometry
from lidar_eskf.localization.eskf.eskf_types import EskfTime


# Permutation between [attitude; position] and [position; attitude]
_SWAP_HALVES: list[int] = [3, 4, 5, 0, 1, 2]


def _check_order(order: str) -> None:
    if order not in COVARIANCE_ORDERS:
        raise ValueError(f"order must be one of {COVARIANCE_ORDERS}")


def observation_covariance_attitude_first(
    covariance: list[float], order: str
) -> np.ndarray:
    """
    Return a pose observation covariance as a 6x6 [attitude; position] matrix

    Args:
        covariance: 36 row-major values in the given block order
        order: Block order of the input covariance
    """

    _check_order(order)
    cov: np.ndarray = as_square_matrix("covariance", covariance, 6)
    if order == COVARIANCE_ORDER_ATTITUDE_FIRST:
        return cov
    return cov[np.ix_(_SWAP_HALVES, _SWAP_HALVES)]


def odometry_pose_covariance(
    sigma: np.ndarray, rotation: np.ndarray, order: str
) -> np.ndarray:
    """
    6x6 pose covariance with attitude rotated into the world frame
    """

    _check_order(order)
    sl_theta: slice = ESKF_LAYOUT.sl_theta()
    sl_p: slice = ESKF_LAYOUT.sl_p()

    pose_cov: np.ndarray = np.zeros((6, 6), dtype=float)
    pose_cov[0:3, 0:3] = rotation @ sigma[sl_theta, sl_theta] @ rotation.T
    pose_cov[0:3, 3:6] = rotation @ sigma[sl_theta, sl_p]
    pose_cov[3:6, 0:3] = sigma[sl_p, sl_theta] @ rotation.T
    pose_cov[3:6, 3:6] = sigma[sl_p, sl_p]

    if order == COVARIANCE_ORDER_ATTITUDE_FIRST:
        return pose_cov
    return pose_cov[np.ix_(_SWAP_HALVES, _SWAP_HALVES)]


def odometry_twist_covariance(sigma: np.ndarray, sigma_gyroscope: float) -> np.ndarray:
    """
    6x6 twist covariance [linear; angular]

    The angular block is the fixed gyroscope noise level since the raw rate
    is published without being estimated.
    """

    sl_v: slice = ESKF_LAYOUT.sl_v()
    twist_cov: np.ndarray = np.zeros((6, 6), dtype=float)
    twist_cov[0:3, 0:3] = sigma[sl_v, sl_v]
    twist_cov[3:6, 3:6] = sigma_gyroscope * np.eye(3, dtype=float)
    return twist_cov


def build_odometry(
    t_meas: EskfTime,
    nominal: EskfNominalState,
    sigma: np.ndarray,
    *,
    angular_velocity_rps: np.ndarray,
    sigma_gyroscope: float,
    covariance_order: str,
) -> EskfOdometry:
    return EskfOdometry(
        t_meas=t_meas,
        position_m=nominal.position_m.tolist(),
        orientation_wxyz=nominal.quaternion_wxyz().tolist(),
        linear_velocity_mps=nominal.velocity_mps.tolist(),
        angular_velocity_rps=np.asarray(angular_velocity_rps, dtype=float)
        .reshape(3)
        .tolist(),
        pose_covariance=odometry_pose_covariance(
            sigma, nominal.rotation, covariance_order
        )
        .reshape(36)
        .tolist(),
        twist_covariance=odometry_twist_covariance(sigma, sigma_gyroscope)
        .reshape(36)
        .tolist(),
    )


def build_bias(t_meas: EskfTime, nominal: EskfNominalState) -> EskfBias:
    return EskfBias(
        t_meas=t_meas,
        accel_bias_mps2=nominal.bias_acc_mps2.tolist(),
        gyro_bias_rps=nominal.bias_gyr_rps.tolist(),
    )
