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
Configuration data for ESKF localization
"""

import math
from dataclasses import dataclass
from dataclasses import field


# Nanoseconds per second for time conversions
_NS_PER_S: int = 1_000_000_000

# Mean over the samples seen so far, up to the buffer capacity
ACC_SMOOTHING_MEAN: str = "mean"

# Raw sample until the ring fills, then the mean over every slot
ACC_SMOOTHING_LEGACY: str = "legacy"

ACC_SMOOTHING_MODES: tuple[str, ...] = (ACC_SMOOTHING_MEAN, ACC_SMOOTHING_LEGACY)

# Pose covariance laid out as [attitude; position]
COVARIANCE_ORDER_ATTITUDE_FIRST: str = "attitude_first"

# Pose covariance laid out as [position; attitude], as in REP-103 messages
COVARIANCE_ORDER_POSITION_FIRST: str = "position_first"

COVARIANCE_ORDERS: tuple[str, ...] = (
    COVARIANCE_ORDER_ATTITUDE_FIRST,
    COVARIANCE_ORDER_POSITION_FIRST,
)


@dataclass(frozen=True)
class EskfConfig:
    """
    Shared ESKF configuration values

    Fields:
        imu_frequency: Nominal IMU rate in Hz, used for the first time step
        sigma_acceleration: Accelerometer noise std-dev in m/s^2
        sigma_gyroscope: Gyroscope noise std-dev in rad/s
        sigma_acceleration_bias: Accelerometer bias random walk std-dev
        sigma_gyroscope_bias: Gyroscope bias random walk std-dev
        gravity: Gravity magnitude in m/s^2
        init_bias_acc_x: Initial accelerometer bias X in m/s^2
        init_bias_acc_y: Initial accelerometer bias Y in m/s^2
        init_bias_acc_z: Initial accelerometer bias Z in m/s^2
        acc_queue_size: Accelerometer smoothing buffer capacity
        acc_smoothing_mode: "mean" or "legacy" smoothing behavior
        pose_covariance_order: Block order of pose covariances on the wire
        pose_gate_d2: Mahalanobis gate for pose corrections, 0 disables
        max_pose_age_sec: Max age of a pose observation relative to the
            latest propagated IMU sample before it is discarded
        dt_imu_max_sec: Max IMU delta before the nominal period is used
        init_var_velocity: Initial velocity variance in (m/s)^2
        init_var_attitude: Initial attitude variance in rad^2
        init_var_position: Initial position variance in m^2
        init_var_bias_acc: Initial accel bias variance in (m/s^2)^2
        init_var_bias_gyr: Initial gyro bias variance in (rad/s)^2
        world_frame_id: Frame name for published odometry
        body_frame_id: Child frame name for published odometry
        imu_period_sec: Nominal IMU period in seconds
        max_pose_age_ns: Max pose observation age in nanoseconds
        dt_imu_max_ns: Max IMU delta in nanoseconds
    """

    imu_frequency: float = 50.0
    sigma_acceleration: float = 0.1
    sigma_gyroscope: float = 0.01
    sigma_acceleration_bias: float = 1.0e-4
    sigma_gyroscope_bias: float = 1.0e-5
    gravity: float = 9.82

    init_bias_acc_x: float = 0.0
    init_bias_acc_y: float = 0.0
    init_bias_acc_z: float = 0.0

    acc_queue_size: int = 5
    acc_smoothing_mode: str = ACC_SMOOTHING_MEAN

    pose_covariance_order: str = COVARIANCE_ORDER_ATTITUDE_FIRST
    pose_gate_d2: float = 0.0
    max_pose_age_sec: float = 0.5
    dt_imu_max_sec: float = 1.0

    init_var_velocity: float = 0.0
    init_var_attitude: float = 0.0
    init_var_position: float = 0.0
    init_var_bias_acc: float = 0.0
    init_var_bias_gyr: float = 0.0

    world_frame_id: str = "world"
    body_frame_id: str = "base_link"

    imu_period_sec: float = field(init=False)
    max_pose_age_ns: int = field(init=False)
    dt_imu_max_ns: int = field(init=False)

    def __post_init__(self) -> None:
        """Validate values and derive periods and thresholds in nanoseconds."""
        if not math.isfinite(self.imu_frequency) or self.imu_frequency <= 0.0:
            raise ValueError("imu_frequency must be > 0")
        if self.acc_queue_size < 1:
            raise ValueError("acc_queue_size must be >= 1")
        if self.acc_smoothing_mode not in ACC_SMOOTHING_MODES:
            raise ValueError(
                f"acc_smoothing_mode must be one of {ACC_SMOOTHING_MODES}"
            )
        if self.pose_covariance_order not in COVARIANCE_ORDERS:
            raise ValueError(
                f"pose_covariance_order must be one of {COVARIANCE_ORDERS}"
            )
        if not math.isfinite(self.gravity):
            raise ValueError("gravity must be finite")

        for name in (
            "sigma_acceleration",
            "sigma_gyroscope",
            "sigma_acceleration_bias",
            "sigma_gyroscope_bias",
            "pose_gate_d2",
            "max_pose_age_sec",
            "init_var_velocity",
            "init_var_attitude",
            "init_var_position",
            "init_var_bias_acc",
            "init_var_bias_gyr",
        ):
            self._validate_non_negative(name, float(getattr(self, name)))

        for name in ("init_bias_acc_x", "init_bias_acc_y", "init_bias_acc_z"):
            if not math.isfinite(float(getattr(self, name))):
                raise ValueError(f"{name} must be finite")

        if not math.isfinite(self.dt_imu_max_sec) or self.dt_imu_max_sec <= 0.0:
            raise ValueError("dt_imu_max_sec must be > 0")
        if not self.world_frame_id:
            raise ValueError("world_frame_id must be non-empty")
        if not self.body_frame_id:
            raise ValueError("body_frame_id must be non-empty")

        object.__setattr__(self, "imu_period_sec", 1.0 / self.imu_frequency)
        object.__setattr__(
            self, "max_pose_age_ns", int(round(self.max_pose_age_sec * _NS_PER_S))
        )
        object.__setattr__(
            self, "dt_imu_max_ns", int(round(self.dt_imu_max_sec * _NS_PER_S))
        )

    @property
    def init_bias_acc(self) -> list[float]:
        return [self.init_bias_acc_x, self.init_bias_acc_y, self.init_bias_acc_z]

    @property
    def gravity_vector_mps2(self) -> list[float]:
        """
        World-frame gravity vector, pointing down along -Z

        A level, stationary accelerometer reads (0, 0, +gravity), so adding
        this vector to the rotated specific force yields zero acceleration.
        """

        return [0.0, 0.0, -self.gravity]

    @staticmethod
    def _validate_non_negative(name: str, value: float) -> None:
        if not math.isfinite(value) or value < 0.0:
            raise ValueError(f"{name} must be >= 0")
