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

from lidar_eskf.localization.eskf.eskf_config import ACC_SMOOTHING_LEGACY
from lidar_eskf.localization.eskf.eskf_config import ACC_SMOOTHING_MODES
from lidar_eskf.localization.eskf.eskf_linalg import as_vector3


class AccelSmoothingBuffer:
    """Fixed-capacity moving average of accelerometer samples.

    Purpose:
        Smooth raw specific-force samples before they drive strapdown
        propagation.

    Responsibility:
        Keep the last `capacity` samples in a ring and return the averaged
        acceleration for every pushed sample.

    Inputs/outputs:
        - Inputs: raw 3-vector accelerations in m/s^2.
        - Outputs: averaged 3-vector acceleration in m/s^2.

    Data contract:
        - Indices below capacity are appended, later indices overwrite slot
          `count % capacity`.
        - `count` increases by one on every push and only resets through
          reset().

    Determinism and edge cases:
        - "mean" mode averages over min(count, capacity) samples, so the
          first output equals the first sample.
        - "legacy" mode returns the raw sample for the first `capacity`
          pushes and averages over every slot afterwards.
        - Capacity 1 disables smoothing in both modes.

    Suggested unit tests:
        - Partial fill returns the mean of the samples seen so far.
        - Wraparound drops the oldest sample.
    """

    def __init__(self, capacity: int, mode: str) -> None:
        """Initialize an empty buffer with a fixed capacity."""
        if isinstance(capacity, bool) or not isinstance(capacity, int):
            raise ValueError("capacity must be an int")
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        if mode not in ACC_SMOOTHING_MODES:
            raise ValueError(f"mode must be one of {ACC_SMOOTHING_MODES}")

        self._capacity: int = capacity
        self._mode: str = mode
        self._slots: np.ndarray = np.zeros((capacity, 3), dtype=float)
        self._count: int = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def count(self) -> int:
        return self._count

    @property
    def mode(self) -> str:
        return self._mode

    def reset(self) -> None:
        """Forget every stored sample."""
        self._slots.fill(0.0)
        self._count = 0

    def push(self, sample: object) -> np.ndarray:
        """Store a raw acceleration and return the smoothed acceleration."""
        accel: np.ndarray = as_vector3("acceleration", sample)

        slot: int = self._count % self._capacity
        self._slots[slot] = accel
        self._count += 1

        if self._mode == ACC_SMOOTHING_LEGACY:
            # Averaging starts with the first sample that overwrites a slot
            if self._count <= self._capacity:
                return accel.copy()
            return np.mean(self._slots, axis=0)

        filled: int = min(self._count, self._capacity)
        return np.mean(self._slots[:filled], axis=0)
