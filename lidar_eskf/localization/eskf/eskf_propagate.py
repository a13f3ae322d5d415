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
Strapdown propagation for the ESKF

Nominal state over a step dt with bias-corrected inputs
a_c = a - b_a and w_c = w - b_g:

    v' = v + (R a_c + g) dt
    R' = R Exp(w_c dt)
    p' = p + v dt + 1/2 (R a_c + g) dt^2

Biases are random walks, so only their uncertainty grows. The error-state
covariance follows the discrete linearization

    Sigma' = Fx Sigma Fx^T + Fn Q Fn^T

with Fx and Fn evaluated at the pre-step nominal state. The error-state mean
is zero at the start of every step, so it is not propagated.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from lidar_eskf.localization.eskf.eskf_config import EskfConfig
from lidar_eskf.localization.eskf.eskf_error_state import ESKF_LAYOUT
from lidar_eskf.localization.eskf.eskf_linalg import as_vector3
from lidar_eskf.localization.eskf.eskf_linalg import assert_finite_array
from lidar_eskf.localization.eskf.eskf_linalg import assert_finite_scalar
from lidar_eskf.localization.eskf.eskf_linalg import symmetrize
from lidar_eskf.localization.eskf.eskf_rotation import orthonormalize
from lidar_eskf.localization.eskf.eskf_rotation import skew_symmetric
from lidar_eskf.localization.eskf.eskf_rotation import so3_exp
from lidar_eskf.localization.eskf.eskf_state import EskfNominalState


@dataclass(frozen=True)
class ProcessNoise:
    """
    Continuous sensor noise standard deviations

    Fields:
        sigma_acc: Accelerometer white noise in m/s^2
        sigma_gyr: Gyroscope white noise in rad/s
        sigma_bias_acc: Accelerometer bias random walk
        sigma_bias_gyr: Gyroscope bias random walk
    """

    sigma_acc: float
    sigma_gyr: float
    sigma_bias_acc: float
    sigma_bias_gyr: float

    @classmethod
    def from_config(cls, config: EskfConfig) -> ProcessNoise:
        return cls(
            sigma_acc=config.sigma_acceleration,
            sigma_gyr=config.sigma_gyroscope,
            sigma_bias_acc=config.sigma_acceleration_bias,
            sigma_bias_gyr=config.sigma_gyroscope_bias,
        )


def _assert_valid_dt(dt: float) -> None:
    assert_finite_scalar("dt", dt)
    if dt < 0.0:
        raise ValueError("dt must be >= 0")


def propagate_nominal(
    nominal: EskfNominalState,
    *,
    accel_mps2: np.ndarray,
    gyro_rps: np.ndarray,
    dt: float,
    gravity_mps2: np.ndarray,
) -> EskfNominalState:
    """
    Advance the nominal state by one IMU step

    Args:
        nominal: Nominal state before the step
        accel_mps2: Smoothed specific force in the body frame
        gyro_rps: Angular velocity in the body frame
        dt: Step length in seconds
        gravity_mps2: World-frame gravity vector

    Returns:
        A new nominal state, the input is not modified
    """

    _assert_valid_dt(dt)
    accel: np.ndarray = as_vector3("accel_mps2", accel_mps2)
    gyro: np.ndarray = as_vector3("gyro_rps", gyro_rps)
    gravity: np.ndarray = as_vector3("gravity_mps2", gravity_mps2)

    rot: np.ndarray = nominal.rotation
    accel_world: np.ndarray = rot @ (accel - nominal.bias_acc_mps2) + gravity

    velocity: np.ndarray = nominal.velocity_mps + accel_world * dt
    delta_rot: np.ndarray = so3_exp((gyro - nominal.bias_gyr_rps) * dt)
    rotation: np.ndarray = orthonormalize(rot @ delta_rot)
    position: np.ndarray = (
        nominal.position_m + nominal.velocity_mps * dt + 0.5 * accel_world * dt * dt
    )

    return EskfNominalState(
        velocity_mps=velocity,
        rotation=rotation,
        position_m=position,
        bias_acc_mps2=nominal.bias_acc_mps2.copy(),
        bias_gyr_rps=nominal.bias_gyr_rps.copy(),
    )


def build_transition_jacobian(
    nominal: EskfNominalState,
    *,
    accel_mps2: np.ndarray,
    gyro_rps: np.ndarray,
    dt: float,
) -> np.ndarray:
    """
    Error-state transition matrix Fx (15x15) at the pre-step nominal state
    """

    _assert_valid_dt(dt)
    accel: np.ndarray = as_vector3("accel_mps2", accel_mps2)
    gyro: np.ndarray = as_vector3("gyro_rps", gyro_rps)

    rot: np.ndarray = nominal.rotation
    accel_corr: np.ndarray = accel - nominal.bias_acc_mps2
    delta_rot: np.ndarray = so3_exp((gyro - nominal.bias_gyr_rps) * dt)
    eye3: np.ndarray = np.eye(3, dtype=float)

    sl_v: slice = ESKF_LAYOUT.sl_v()
    sl_theta: slice = ESKF_LAYOUT.sl_theta()
    sl_p: slice = ESKF_LAYOUT.sl_p()
    sl_ba: slice = ESKF_LAYOUT.sl_ba()
    sl_bg: slice = ESKF_LAYOUT.sl_bg()

    fx: np.ndarray = np.eye(ESKF_LAYOUT.dim, dtype=float)

    fx[sl_v, sl_theta] = -rot @ skew_symmetric(accel_corr) * dt
    fx[sl_v, sl_ba] = -rot * dt

    fx[sl_theta, sl_theta] = delta_rot.T
    fx[sl_theta, sl_bg] = -eye3 * dt

    fx[sl_p, sl_v] = eye3 * dt

    return fx


def build_noise_jacobian(nominal: EskfNominalState) -> np.ndarray:
    """
    Noise injection matrix Fn (15x12)

    Accelerometer noise enters the velocity error through R. Position error
    receives noise only through the integrated velocity error.
    """

    fn: np.ndarray = np.zeros((ESKF_LAYOUT.dim, ESKF_LAYOUT.noise_dim), dtype=float)
    eye3: np.ndarray = np.eye(3, dtype=float)
    fn[ESKF_LAYOUT.sl_v(), ESKF_LAYOUT.sl_noise("acc")] = nominal.rotation
    fn[ESKF_LAYOUT.sl_theta(), ESKF_LAYOUT.sl_noise("gyr")] = eye3
    fn[ESKF_LAYOUT.sl_ba(), ESKF_LAYOUT.sl_noise("ba")] = eye3
    fn[ESKF_LAYOUT.sl_bg(), ESKF_LAYOUT.sl_noise("bg")] = eye3
    return fn


def build_process_noise(noise: ProcessNoise, dt: float) -> np.ndarray:
    """
    Block-diagonal discrete process noise Q (12x12)
    """

    _assert_valid_dt(dt)
    q: np.ndarray = np.zeros(
        (ESKF_LAYOUT.noise_dim, ESKF_LAYOUT.noise_dim), dtype=float
    )
    eye3: np.ndarray = np.eye(3, dtype=float)
    for key, sigma in (
        ("acc", noise.sigma_acc),
        ("gyr", noise.sigma_gyr),
        ("ba", noise.sigma_bias_acc),
        ("bg", noise.sigma_bias_gyr),
    ):
        sl: slice = ESKF_LAYOUT.sl_noise(key)
        q[sl, sl] = (sigma * dt) ** 2 * eye3
    return q


def propagate_covariance(
    covariance: np.ndarray, fx: np.ndarray, fn: np.ndarray, q: np.ndarray
) -> np.ndarray:
    sigma: np.ndarray = fx @ covariance @ fx.T + fn @ q @ fn.T
    sigma = symmetrize(sigma)
    assert_finite_array("covariance", sigma)
    return sigma


def propagate(
    nominal: EskfNominalState,
    covariance: np.ndarray,
    *,
    accel_mps2: np.ndarray,
    gyro_rps: np.ndarray,
    dt: float,
    noise: ProcessNoise,
    gravity_mps2: np.ndarray,
) -> tuple[EskfNominalState, np.ndarray]:
    """
    Propagate the nominal state and error covariance over one IMU step

    This is a pure function: identical inputs give identical outputs and the
    inputs are never modified.

    Args:
        nominal: Nominal state before the step
        covariance: 15x15 error-state covariance before the step
        accel_mps2: Smoothed specific force in the body frame
        gyro_rps: Angular velocity in the body frame
        dt: Step length in seconds, finite and non-negative
        noise: Sensor noise standard deviations
        gravity_mps2: World-frame gravity vector

    Returns:
        Tuple of (nominal', covariance')
    """

    fx: np.ndarray = build_transition_jacobian(
        nominal, accel_mps2=accel_mps2, gyro_rps=gyro_rps, dt=dt
    )
    fn: np.ndarray = build_noise_jacobian(nominal)
    q: np.ndarray = build_process_noise(noise, dt)

    next_nominal: EskfNominalState = propagate_nominal(
        nominal,
        accel_mps2=accel_mps2,
        gyro_rps=gyro_rps,
        dt=dt,
        gravity_mps2=gravity_mps2,
    )
    next_covariance: np.ndarray = propagate_covariance(covariance, fx, fn, q)
    return next_nominal, next_covariance
