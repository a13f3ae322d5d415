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
Pose correction for the ESKF

A pose observation measures attitude and position directly, so the
measurement Jacobian H (6x15) selects the attitude and position error blocks.
The innovation is the residual between the observation and the nominal state:

    y_theta = Log(R^T R_meas)
    y_p = p_meas - p

The measurement covariance R_meas must be symmetric positive semi-definite.
Near-symmetric inputs are symmetrized. The innovation covariance
S = H Sigma H^T + R_meas is factored with Cholesky.
A failed factorization rejects the observation instead of aborting the
filter. The gain is K = Sigma H^T S^{-1} and the covariance uses the Joseph
form

    Sigma+ = (I - K H) Sigma (I - K H)^T + K R_meas K^T

The error mean is then injected into the nominal state, with the rotation
composed on the right, and reset to zero. The covariance is kept.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from lidar_eskf.localization.eskf.eskf_error_state import ESKF_LAYOUT
from lidar_eskf.localization.eskf.eskf_linalg import as_square_matrix
from lidar_eskf.localization.eskf.eskf_linalg import as_vector3
from lidar_eskf.localization.eskf.eskf_linalg import cholesky_lower
from lidar_eskf.localization.eskf.eskf_linalg import cholesky_solve
from lidar_eskf.localization.eskf.eskf_linalg import is_psd
from lidar_eskf.localization.eskf.eskf_linalg import is_symmetric
from lidar_eskf.localization.eskf.eskf_linalg import symmetrize
from lidar_eskf.localization.eskf.eskf_rotation import orthonormalize
from lidar_eskf.localization.eskf.eskf_rotation import quat_to_rotation_matrix
from lidar_eskf.localization.eskf.eskf_rotation import so3_exp
from lidar_eskf.localization.eskf.eskf_rotation import so3_log
from lidar_eskf.localization.eskf.eskf_state import EskfErrorState
from lidar_eskf.localization.eskf.eskf_state import EskfNominalState


# Pose observation dimension, ordered [attitude; position]
POSE_OBS_DIM: int = 6

# Relative tolerance for accepting a measurement covariance as symmetric,
# loose enough for covariances published as float32
_SYMMETRY_RTOL: float = 1.0e-6

# Relative tolerance on negative eigenvalues of a measurement covariance
_PSD_RTOL: float = 1.0e-9

REASON_INVALID_MEASUREMENT: str = "invalid_measurement"
REASON_INVALID_COVARIANCE: str = "invalid_measurement_covariance"
REASON_NOT_SPD: str = "innovation_covariance_not_spd"
REASON_GATE: str = "mahalanobis_gate"


@dataclass(frozen=True)
class CorrectionResult:
    """
    Outcome of a correction attempt

    Fields:
        nominal: Nominal state after injection, unchanged when rejected
        error_state: Error state after reset, unchanged when rejected
        accepted: True when the observation was applied
        reason: Empty when accepted, otherwise the rejection reason
        innovation: 6-dim residual [attitude; position], empty if unavailable
        mahalanobis_d2: Squared Mahalanobis distance, 0.0 if unavailable
    """

    nominal: EskfNominalState
    error_state: EskfErrorState
    accepted: bool
    reason: str
    innovation: np.ndarray
    mahalanobis_d2: float


def build_observation_jacobian() -> np.ndarray:
    h: np.ndarray = np.zeros((POSE_OBS_DIM, ESKF_LAYOUT.dim), dtype=float)
    h[0:3, ESKF_LAYOUT.sl_theta()] = np.eye(3, dtype=float)
    h[3:6, ESKF_LAYOUT.sl_p()] = np.eye(3, dtype=float)
    return h


def pose_innovation(
    nominal: EskfNominalState,
    *,
    position_m: np.ndarray,
    orientation_wxyz: np.ndarray,
) -> np.ndarray:
    """
    Residual between a pose observation and the nominal state

    Raises:
        ValueError: If the position or quaternion is not usable
    """

    position: np.ndarray = as_vector3("position_m", position_m)
    rot_meas: np.ndarray = quat_to_rotation_matrix(orientation_wxyz)

    innovation: np.ndarray = np.zeros(POSE_OBS_DIM, dtype=float)
    innovation[0:3] = so3_log(nominal.rotation.T @ rot_meas)
    innovation[3:6] = position - nominal.position_m
    return innovation


def inject_error_state(
    nominal: EskfNominalState, delta: np.ndarray
) -> EskfNominalState:
    """
    Fold an error-state mean into the nominal state
    """

    return EskfNominalState(
        velocity_mps=nominal.velocity_mps + delta[ESKF_LAYOUT.sl_v()],
        rotation=orthonormalize(
            nominal.rotation @ so3_exp(delta[ESKF_LAYOUT.sl_theta()])
        ),
        position_m=nominal.position_m + delta[ESKF_LAYOUT.sl_p()],
        bias_acc_mps2=nominal.bias_acc_mps2 + delta[ESKF_LAYOUT.sl_ba()],
        bias_gyr_rps=nominal.bias_gyr_rps + delta[ESKF_LAYOUT.sl_bg()],
    )


def _reject(
    nominal: EskfNominalState,
    error_state: EskfErrorState,
    reason: str,
    innovation: Optional[np.ndarray] = None,
    mahalanobis_d2: float = 0.0,
) -> CorrectionResult:
    return CorrectionResult(
        nominal=nominal,
        error_state=error_state,
        accepted=False,
        reason=reason,
        innovation=(
            innovation if innovation is not None else np.zeros(0, dtype=float)
        ),
        mahalanobis_d2=mahalanobis_d2,
    )


def correct(
    nominal: EskfNominalState,
    error_state: EskfErrorState,
    *,
    position_m: np.ndarray,
    orientation_wxyz: np.ndarray,
    covariance_meas: np.ndarray,
    gate_d2: float = 0.0,
) -> CorrectionResult:
    """
    Apply a pose observation to the filter

    Args:
        nominal: Propagated nominal state
        error_state: Error state entering the correction, zero mean
        position_m: Observed world-frame position
        orientation_wxyz: Observed world-from-body orientation
        covariance_meas: 6x6 observation covariance [attitude; position]
        gate_d2: Mahalanobis gate threshold, disabled when <= 0

    Returns:
        The corrected state, or the unchanged state with a rejection reason
    """

    try:
        y: np.ndarray = pose_innovation(
            nominal, position_m=position_m, orientation_wxyz=orientation_wxyz
        )
    except ValueError:
        return _reject(nominal, error_state, REASON_INVALID_MEASUREMENT)

    try:
        r_meas: np.ndarray = as_square_matrix(
            "covariance_meas", covariance_meas, POSE_OBS_DIM
        )
    except ValueError:
        return _reject(nominal, error_state, REASON_INVALID_COVARIANCE, y)
    if not is_symmetric(r_meas, _SYMMETRY_RTOL):
        return _reject(nominal, error_state, REASON_INVALID_COVARIANCE, y)
    r_meas = symmetrize(r_meas)
    if not is_psd(r_meas, _PSD_RTOL):
        return _reject(nominal, error_state, REASON_INVALID_COVARIANCE, y)

    h: np.ndarray = build_observation_jacobian()
    sigma: np.ndarray = error_state.covariance
    x_prior: np.ndarray = error_state.mean
    nu: np.ndarray = y - h @ x_prior

    s: np.ndarray = symmetrize(h @ sigma @ h.T + r_meas)
    lower: Optional[np.ndarray] = cholesky_lower(s)
    if lower is None:
        return _reject(nominal, error_state, REASON_NOT_SPD, nu)

    maha_d2: float = float(nu @ cholesky_solve(lower, nu))
    if gate_d2 > 0.0 and maha_d2 > gate_d2:
        return _reject(nominal, error_state, REASON_GATE, nu, maha_d2)

    # K = Sigma H^T S^{-1}, solved as (S^{-1} H Sigma)^T since S and Sigma
    # are symmetric
    k: np.ndarray = cholesky_solve(lower, h @ sigma).T

    x_post: np.ndarray = x_prior + k @ nu

    i_kh: np.ndarray = np.eye(ESKF_LAYOUT.dim, dtype=float) - k @ h
    sigma_post: np.ndarray = i_kh @ sigma @ i_kh.T + k @ r_meas @ k.T
    sigma_post = symmetrize(sigma_post)

    corrected: EskfNominalState = inject_error_state(nominal, x_post)
    reset_state: EskfErrorState = EskfErrorState(
        mean=np.zeros(ESKF_LAYOUT.dim, dtype=float),
        covariance=sigma_post,
    )

    return CorrectionResult(
        nominal=corrected,
        error_state=reset_state,
        accepted=True,
        reason="",
        innovation=nu,
        mahalanobis_d2=maha_d2,
    )
