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
SO(3) helpers for the ESKF nominal state

The rotation matrix is the canonical orientation of the filter. Quaternions
only appear at the boundary with external interfaces and always use [w, x, y,
z] order. Exp and Log use the closed-form Rodrigues formulas with first-order
series below a small-angle threshold.
"""

from __future__ import annotations

import math

import numpy as np


_EPS: float = 1.0e-12


def skew_symmetric(vec: np.ndarray) -> np.ndarray:
    """
    Return the 3x3 matrix [v]x such that [v]x @ u == cross(v, u)
    """

    x: float = float(vec[0])
    y: float = float(vec[1])
    z: float = float(vec[2])
    return np.array(
        [
            [0.0, -z, y],
            [z, 0.0, -x],
            [-y, x, 0.0],
        ],
        dtype=float,
    )


def so3_exp(phi_rad: np.ndarray) -> np.ndarray:
    """
    Exponential map from a rotation vector to a rotation matrix
    """

    phi: np.ndarray = np.asarray(phi_rad, dtype=float).reshape(3)
    angle_rad: float = float(np.linalg.norm(phi))
    phi_x: np.ndarray = skew_symmetric(phi)
    if angle_rad < _EPS:
        return np.eye(3, dtype=float) + phi_x

    a: float = math.sin(angle_rad) / angle_rad
    b: float = (1.0 - math.cos(angle_rad)) / (angle_rad * angle_rad)
    return np.eye(3, dtype=float) + a * phi_x + b * (phi_x @ phi_x)


def so3_log(rot: np.ndarray) -> np.ndarray:
    """
    Log map from a rotation matrix to a rotation vector

    Goes through the quaternion so the result stays well conditioned for
    angles close to pi.
    """

    q_wxyz: np.ndarray = rotation_matrix_to_quat(rot)
    if q_wxyz[0] < 0.0:
        q_wxyz = -q_wxyz

    vector: np.ndarray = q_wxyz[1:4]
    sin_half: float = float(np.linalg.norm(vector))
    if sin_half < _EPS:
        return 2.0 * vector

    half_angle: float = math.atan2(sin_half, float(q_wxyz[0]))
    axis: np.ndarray = vector / sin_half
    return axis * (2.0 * half_angle)


def quat_normalize(q_wxyz: np.ndarray) -> np.ndarray:
    """
    Normalize a quaternion in [w, x, y, z] order

    Raises:
        ValueError: If the quaternion is not finite or has zero norm
    """

    q: np.ndarray = np.asarray(q_wxyz, dtype=float).reshape(4)
    if not np.all(np.isfinite(q)):
        raise ValueError("quaternion must be finite")
    norm: float = float(np.linalg.norm(q))
    if norm < _EPS:
        raise ValueError("quaternion must have non-zero norm")
    return q / norm


def quat_to_rotation_matrix(q_wxyz: np.ndarray) -> np.ndarray:
    """
    Convert a quaternion in [w, x, y, z] order to a 3x3 rotation matrix
    """

    q_unit: np.ndarray = quat_normalize(q_wxyz)
    w: float = float(q_unit[0])
    x: float = float(q_unit[1])
    y: float = float(q_unit[2])
    z: float = float(q_unit[3])

    return np.array(
        [
            [1.0 - 2.0 * (y * y + z * z), 2.0 * (x * y - w * z), 2.0 * (x * z + w * y)],
            [2.0 * (x * y + w * z), 1.0 - 2.0 * (x * x + z * z), 2.0 * (y * z - w * x)],
            [2.0 * (x * z - w * y), 2.0 * (y * z + w * x), 1.0 - 2.0 * (x * x + y * y)],
        ],
        dtype=float,
    )


def rotation_matrix_to_quat(rot: np.ndarray) -> np.ndarray:
    """
    Convert a 3x3 rotation matrix to a unit quaternion in [w, x, y, z] order

    The scalar part of the result is non-negative.
    """

    m: np.ndarray = np.asarray(rot, dtype=float).reshape(3, 3)
    trace: float = float(m[0, 0] + m[1, 1] + m[2, 2])

    # Branch on the largest diagonal term to avoid dividing by a small number
    if trace > 0.0:
        s: float = 2.0 * math.sqrt(trace + 1.0)
        q: np.ndarray = np.array(
            [
                0.25 * s,
                (m[2, 1] - m[1, 2]) / s,
                (m[0, 2] - m[2, 0]) / s,
                (m[1, 0] - m[0, 1]) / s,
            ],
            dtype=float,
        )
    elif m[0, 0] > m[1, 1] and m[0, 0] > m[2, 2]:
        s = 2.0 * math.sqrt(max(1.0 + m[0, 0] - m[1, 1] - m[2, 2], 0.0))
        q = np.array(
            [
                (m[2, 1] - m[1, 2]) / s,
                0.25 * s,
                (m[0, 1] + m[1, 0]) / s,
                (m[0, 2] + m[2, 0]) / s,
            ],
            dtype=float,
        )
    elif m[1, 1] > m[2, 2]:
        s = 2.0 * math.sqrt(max(1.0 + m[1, 1] - m[0, 0] - m[2, 2], 0.0))
        q = np.array(
            [
                (m[0, 2] - m[2, 0]) / s,
                (m[0, 1] + m[1, 0]) / s,
                0.25 * s,
                (m[1, 2] + m[2, 1]) / s,
            ],
            dtype=float,
        )
    else:
        s = 2.0 * math.sqrt(max(1.0 + m[2, 2] - m[0, 0] - m[1, 1], 0.0))
        q = np.array(
            [
                (m[1, 0] - m[0, 1]) / s,
                (m[0, 2] + m[2, 0]) / s,
                (m[1, 2] + m[2, 1]) / s,
                0.25 * s,
            ],
            dtype=float,
        )

    if q[0] < 0.0:
        q = -q
    return q / float(np.linalg.norm(q))


def orthonormalize(rot: np.ndarray) -> np.ndarray:
    """
    Project a nearly orthonormal matrix back onto SO(3)

    Uses the SVD polar decomposition, which returns the closest rotation in
    the Frobenius norm.
    """

    u, _, vt = np.linalg.svd(np.asarray(rot, dtype=float).reshape(3, 3))
    r: np.ndarray = u @ vt
    if np.linalg.det(r) < 0.0:
        u[:, 2] = -u[:, 2]
        r = u @ vt
    return r
