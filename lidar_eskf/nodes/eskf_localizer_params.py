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
Centralized ESKF localizer ROS parameter names and defaults
"""

# Nominal IMU rate used for the first propagation step, hertz
PARAM_IMU_FREQUENCY: str = "imu_frequency"

# Default nominal IMU rate, hertz
DEFAULT_IMU_FREQUENCY: float = 50.0

# Accelerometer white noise standard deviation, meters/seconds^2
PARAM_SIGMA_ACCELERATION: str = "sigma_acceleration"

# Default accelerometer white noise standard deviation, meters/seconds^2
DEFAULT_SIGMA_ACCELERATION: float = 0.1

# Gyroscope white noise standard deviation, radians/second
PARAM_SIGMA_GYROSCOPE: str = "sigma_gyroscope"

# Deprecated spelling of the gyroscope noise parameter
PARAM_SIGMA_GYROSCOPE_LEGACY: str = "sigma_gyroscop"

# Default gyroscope white noise standard deviation, radians/second
DEFAULT_SIGMA_GYROSCOPE: float = 0.01

# Accelerometer bias random walk standard deviation, meters/seconds^2
PARAM_SIGMA_ACCELERATION_BIAS: str = "sigma_acceleration_bias"

# Default accelerometer bias random walk standard deviation, meters/seconds^2
DEFAULT_SIGMA_ACCELERATION_BIAS: float = 1.0e-4

# Gyroscope bias random walk standard deviation, radians/second
PARAM_SIGMA_GYROSCOPE_BIAS: str = "sigma_gyroscope_bias"

# Default gyroscope bias random walk standard deviation, radians/second
DEFAULT_SIGMA_GYROSCOPE_BIAS: float = 1.0e-5

# Gravity magnitude used in the strapdown model, meters/seconds^2
PARAM_GRAVITY: str = "gravity"

# Default gravity magnitude, meters/seconds^2
DEFAULT_GRAVITY: float = 9.82

# Initial accelerometer bias components, meters/seconds^2
PARAM_INIT_BIAS_ACC_X: str = "init_bias_acc_x"
PARAM_INIT_BIAS_ACC_Y: str = "init_bias_acc_y"
PARAM_INIT_BIAS_ACC_Z: str = "init_bias_acc_z"

# Default initial accelerometer bias component, meters/seconds^2
DEFAULT_INIT_BIAS_ACC: float = 0.0

# Accelerometer smoothing buffer capacity, samples
PARAM_ACC_QUEUE_SIZE: str = "acc_queue_size"

# Default accelerometer smoothing buffer capacity, samples
DEFAULT_ACC_QUEUE_SIZE: int = 5

# Accelerometer smoothing behavior, "mean" or "legacy"
PARAM_ACC_SMOOTHING_MODE: str = "acc_smoothing_mode"

# Default accelerometer smoothing behavior
DEFAULT_ACC_SMOOTHING_MODE: str = "mean"

# Block order of pose covariances, "attitude_first" or "position_first"
PARAM_POSE_COVARIANCE_ORDER: str = "pose_covariance_order"

# Default block order of pose covariances
DEFAULT_POSE_COVARIANCE_ORDER: str = "attitude_first"

# Squared gating threshold for pose Mahalanobis distance, unitless
PARAM_POSE_GATE_D2: str = "pose_gate_d2"

# Default squared gating threshold for pose observations, 0 disables gating
DEFAULT_POSE_GATE_D2: float = 0.0

# Max pose observation age relative to the filter state, seconds
PARAM_MAX_POSE_AGE_SEC: str = "max_pose_age_sec"

# Default max pose observation age, seconds
DEFAULT_MAX_POSE_AGE_SEC: float = 0.5

# Max IMU sample delta time before the nominal period is used, seconds
PARAM_DT_IMU_MAX_SEC: str = "dt_imu_max_sec"

# Default max IMU sample delta time, seconds
DEFAULT_DT_IMU_MAX_SEC: float = 1.0

# Initial error-state variances
PARAM_INIT_VAR_VELOCITY: str = "init_var_velocity"
PARAM_INIT_VAR_ATTITUDE: str = "init_var_attitude"
PARAM_INIT_VAR_POSITION: str = "init_var_position"
PARAM_INIT_VAR_BIAS_ACC: str = "init_var_bias_acc"
PARAM_INIT_VAR_BIAS_GYR: str = "init_var_bias_gyr"

# Default initial error-state variance
DEFAULT_INIT_VAR: float = 0.0
