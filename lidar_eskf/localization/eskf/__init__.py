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
Error-state Kalman filter for LiDAR-aided inertial localization
"""

from __future__ import annotations

from lidar_eskf.localization.eskf.eskf_config import EskfConfig
from lidar_eskf.localization.eskf.eskf_filter import EskfFilter


__all__ = ["EskfConfig", "EskfFilter"]
