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
Small linear algebra helpers for the ESKF
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np


def assert_finite_array(name: str, value: np.ndarray) -> None:
    if not np.all(np.isfinite(value)):
        raise ValueError(f"{name} must be finite")


def assert_finite_scalar(name: str, value: float) -> None:
    if not math.isfinite(value):
        raise ValueError(f"{name} must be finite")


def as_vector3(name: str, value: object) -> np.ndarray:
    """
    Convert a sequence to a finite 3-vector

    Raises:
        ValueError: If the value does not hold exactly 3 finite numbers
    """

    vec: np.ndarray = np.asarray(value, dtype=float)
    if vec.size != 3:
        raise ValueError(f"{name} must have 3 elements")
    vec = vec.reshape(3)
    assert_finite_array(name, vec)
    return vec


def as_square_matrix(name: str, value: object, dim: int) -> np.ndarray:
    """
    Convert a row-major sequence or nested sequence to a finite dim x dim matrix
    """

    mat: np.ndarray = np.asarray(value, dtype=float)
    if mat.size != dim * dim:
        raise ValueError(f"{name} must have {dim * dim} elements")
    mat = mat.reshape(dim, dim)
    assert_finite_array(name, mat)
    return mat


def symmetrize(mat: np.ndarray) -> np.ndarray:
    return 0.5 * (mat + mat.T)


def is_symmetric(mat: np.ndarray, rtol: float) -> bool:
    """
    Check symmetry relative to the largest entry of the matrix
    """

    scale: float = max(1.0, float(np.max(np.abs(mat))))
    return bool(np.allclose(mat, mat.T, rtol=0.0, atol=rtol * scale))


def is_psd(mat: np.ndarray, rtol: float) -> bool:
    """
    Check that a symmetric matrix has no eigenvalue below -rtol * scale

    The scale is the largest absolute entry, floored at 1.
    """

    if not np.all(np.isfinite(mat)):
        return False
    scale: float = max(1.0, float(np.max(np.abs(mat))))
    eigvals: np.ndarray = np.linalg.eigvalsh(symmetrize(mat))
    return bool(np.all(eigvals >= -rtol * scale))


def cholesky_lower(mat: np.ndarray) -> Optional[np.ndarray]:
    """
    Return the lower Cholesky factor, or None if the matrix is not SPD
    """

    if not np.all(np.isfinite(mat)):
        return None
    try:
        return np.linalg.cholesky(mat)
    except np.linalg.LinAlgError:
        return None


def cholesky_solve(lower: np.ndarray, rhs: np.ndarray) -> np.ndarray:
    """
    Solve (L L^T) x = rhs given the lower Cholesky factor L
    """

    y: np.ndarray = np.linalg.solve(lower, rhs)
    return np.linalg.solve(lower.T, y)
