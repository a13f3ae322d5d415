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
Nominal and error state containers for the ESKF
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from lidar_eskf.localization.eskf.eskf_config import EskfConfig
from lidar_eskf.localization.eskf.eskf_error_state import ESKF_LAYOUT
from lidar_eskf.localization.eskf.eskf_linalg import as_square_matrix
from lidar_eskf.localization.eskf.eskf_linalg import as_vector3
from lidar_eskf.localization.eskf.eskf_linalg import assert_finite_array
from lidar_eskf.localization.eskf.eskf_rotation import rotation_matrix_to_quat


@dataclass(frozen=True)
class EskfNominalState:
    """
    Best point estimate of the platform kinematics

    Fields:
        velocity_mps: World-frame velocity in m/s
        rotation: World-from-body rotation matrix, the canonical orientation
        position_m: World-frame position in meters
        bias_acc_mps2: Accelerometer bias in m/s^2
        bias_gyr_rps: Gyroscope bias in rad/s
    """

    velocity_mps: np.ndarray
    rotation: np.ndarray
    position_m: np.ndarray
    bias_acc_mps2: np.ndarray
    bias_gyr_rps: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "velocity_mps", as_vector3("velocity_mps", self.velocity_mps)
        )
        object.__setattr__(
            self, "rotation", as_square_matrix("rotation", self.rotation, 3)
        )
        object.__setattr__(
            self, "position_m", as_vector3("position_m", self.position_m)
        )
        object.__setattr__(
            self, "bias_acc_mps2", as_vector3("bias_acc_mps2", self.bias_acc_mps2)
        )
        object.__setattr__(
            self, "bias_gyr_rps", as_vector3("bias_gyr_rps", self.bias_gyr_rps)
        )

    def quaternion_wxyz(self) -> np.ndarray:
        """
        World-from-body orientation as a unit quaternion in wxyz order
        """

        return rotation_matrix_to_quat(self.rotation)


@dataclass(frozen=True)
class EskfErrorState:
    """
    Error-state mean and covariance

    Fields:
        mean: 15-dim error-state mean, zero outside of a correction
        covariance: 15x15 symmetric positive semi-definite covariance
    """

    mean: np.ndarray
    covariance: np.ndarray

    def __post_init__(self) -> None:
        dim: int = ESKF_LAYOUT.dim
        mean: np.ndarray = np.asarray(self.mean, dtype=float)
        if mean.shape != (dim,):
            raise ValueError(f"mean must have shape ({dim},)")
        assert_finite_array("mean", mean)
        object.__setattr__(self, "mean", mean)
        object.__setattr__(
            self, "covariance", as_square_matrix("covariance", self.covariance, dim)
        )


def default_nominal_state(config: EskfConfig) -> EskfNominalState:
    """
    Nominal state at rest at the origin with the configured accel bias
    """

    return EskfNominalState(
        velocity_mps=np.zeros(3, dtype=float),
        rotation=np.eye(3, dtype=float),
        position_m=np.zeros(3, dtype=float),
        bias_acc_mps2=np.asarray(config.init_bias_acc, dtype=float),
        bias_gyr_rps=np.zeros(3, dtype=float),
    )


def default_error_state(config: EskfConfig) -> EskfErrorState:
    """
    Zero-mean error state with the configured initial variances
    """

    diag: np.ndarray = np.zeros(ESKF_LAYOUT.dim, dtype=float)
    diag[ESKF_LAYOUT.sl_v()] = config.init_var_velocity
    diag[ESKF_LAYOUT.sl_theta()] = config.init_var_attitude
    diag[ESKF_LAYOUT.sl_p()] = config.init_var_position
    diag[ESKF_LAYOUT.sl_ba()] = config.init_var_bias_acc
    diag[ESKF_LAYOUT.sl_bg()] = config.init_var_bias_gyr
    return EskfErrorState(
        mean=np.zeros(ESKF_LAYOUT.dim, dtype=float),
        covariance=np.diag(diag),
    )
