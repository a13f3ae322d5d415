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

import numpy as np
import pytest

from lidar_eskf.localization.eskf.eskf_config import EskfConfig
from lidar_eskf.localization.eskf.eskf_error_state import ESKF_LAYOUT
from lidar_eskf.localization.eskf.eskf_state import EskfErrorState
from lidar_eskf.localization.eskf.eskf_state import EskfNominalState
from lidar_eskf.localization.eskf.eskf_state import default_error_state
from lidar_eskf.localization.eskf.eskf_state import default_nominal_state


def test_layout_order_and_dimensions() -> None:
    assert ESKF_LAYOUT.dim == 15
    assert ESKF_LAYOUT.noise_dim == 12
    assert ESKF_LAYOUT.order == ["v", "theta", "p", "ba", "bg"]
    assert ESKF_LAYOUT.sl_v() == slice(0, 3)
    assert ESKF_LAYOUT.sl_theta() == slice(3, 6)
    assert ESKF_LAYOUT.sl_p() == slice(6, 9)
    assert ESKF_LAYOUT.sl_ba() == slice(9, 12)
    assert ESKF_LAYOUT.sl_bg() == slice(12, 15)
    assert ESKF_LAYOUT.sl_noise("acc") == slice(0, 3)
    assert ESKF_LAYOUT.sl_noise("bg") == slice(9, 12)


def test_default_states_use_config() -> None:
    config: EskfConfig = EskfConfig(
        init_bias_acc_x=0.1,
        init_bias_acc_z=-0.2,
        init_var_attitude=0.5,
        init_var_bias_gyr=0.25,
    )

    nominal: EskfNominalState = default_nominal_state(config)
    error_state: EskfErrorState = default_error_state(config)

    np.testing.assert_allclose(nominal.bias_acc_mps2, [0.1, 0.0, -0.2])
    np.testing.assert_allclose(nominal.rotation, np.eye(3))
    np.testing.assert_allclose(nominal.quaternion_wxyz(), [1.0, 0.0, 0.0, 0.0])
    np.testing.assert_allclose(error_state.mean, np.zeros(15))

    diag: np.ndarray = np.diag(error_state.covariance)
    np.testing.assert_allclose(diag[ESKF_LAYOUT.sl_theta()], [0.5] * 3)
    np.testing.assert_allclose(diag[ESKF_LAYOUT.sl_bg()], [0.25] * 3)
    np.testing.assert_allclose(diag[ESKF_LAYOUT.sl_p()], [0.0] * 3)


def test_nominal_state_rejects_bad_shapes() -> None:
    with pytest.raises(ValueError):
        EskfNominalState(
            velocity_mps=np.zeros(2),
            rotation=np.eye(3),
            position_m=np.zeros(3),
            bias_acc_mps2=np.zeros(3),
            bias_gyr_rps=np.zeros(3),
        )


def test_error_state_rejects_non_finite_covariance() -> None:
    covariance: np.ndarray = np.eye(15)
    covariance[4, 4] = np.nan

    with pytest.raises(ValueError):
        EskfErrorState(mean=np.zeros(15), covariance=covariance)
