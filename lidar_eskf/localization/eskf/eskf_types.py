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
Types and helpers for ESKF localization
"""

import enum
from dataclasses import dataclass
from typing import Optional
from typing import Union


# Nanoseconds per second for converting ESKF timestamps
_NS_PER_S: int = 1_000_000_000


@dataclass(frozen=True)
class EskfTime:
    """
    ESKF timestamp stored as seconds and nanoseconds

    Fields:
        sec: Whole seconds since the time reference
        nanosec: Sub-second remainder in nanoseconds [0, 1e9)
    """

    sec: int
    nanosec: int


def to_ns(t: EskfTime) -> int:
    return t.sec * _NS_PER_S + t.nanosec


def from_ns(ns: int) -> EskfTime:
    sec, nanosec = divmod(ns, _NS_PER_S)
    return EskfTime(sec=sec, nanosec=nanosec)


def to_seconds(t: EskfTime) -> float:
    return float(t.sec) + float(t.nanosec) / _NS_PER_S


def from_seconds(seconds: float) -> EskfTime:
    total_ns: int = int(round(seconds * _NS_PER_S))
    return from_ns(total_ns)


class EskfEventType(enum.Enum):
    """
    Enumerates the kinds of time-ordered ESKF events

    Attributes:
        IMU: Inertial sample that drives propagation
        POSE: Absolute pose observation from LiDAR map matching
    """

    IMU = "imu"
    POSE = "pose"


class EskfPhase(enum.Enum):
    """
    Processing phase of the filter state machine

    Attributes:
        WAITING_FOR_IMU: No inertial sample has been propagated yet
        PROPAGATED: The latest IMU sample advanced the nominal state
        CORRECTED: A pose observation was applied after the latest propagation
    """

    WAITING_FOR_IMU = "waiting_for_imu"
    PROPAGATED = "propagated"
    CORRECTED = "corrected"


@dataclass(frozen=True)
class ImuSample:
    """
    IMU sample with raw motion data

    Fields:
        frame_id: IMU frame identifier for this sample
        angular_velocity_rps: Angular velocity in rad/s, XYZ order
        linear_acceleration_mps2: Specific force in m/s^2, XYZ order
        orientation_wxyz: Optional orientation reported by the IMU driver,
            passed through without being used by the filter
    """

    frame_id: str
    angular_velocity_rps: list[float]
    linear_acceleration_mps2: list[float]
    orientation_wxyz: Optional[list[float]] = None


@dataclass(frozen=True)
class PoseObservation:
    """
    Absolute pose observation from the map-matching collaborator

    Fields:
        frame_id: Frame the pose is expressed in
        position_m: Position in meters, XYZ order
        orientation_wxyz: Orientation quaternion in wxyz order
        covariance: 6x6 covariance, row-major, ordered [attitude; position]
    """

    frame_id: str
    position_m: list[float]
    orientation_wxyz: list[float]
    covariance: list[float]


EskfPayload = Union[ImuSample, PoseObservation]


@dataclass(frozen=True)
class EskfEvent:
    """
    Time-stamped event consumed by the filter state machine

    Fields:
        t_meas: Measurement timestamp
        event_type: Kind of event carried by the payload
        payload: IMU sample or pose observation
    """

    t_meas: EskfTime
    event_type: EskfEventType
    payload: EskfPayload


@dataclass(frozen=True)
class EskfCorrectionReport:
    """
    Outcome of a single correction attempt

    Fields:
        t_meas: Timestamp of the pose observation
        accepted: True when the observation was injected into the state
        reason: Empty when accepted, otherwise a short rejection reason
        innovation: Residual ordered [attitude; position]
        mahalanobis_d2: Squared Mahalanobis distance of the innovation, or
            0.0 when it could not be evaluated
    """

    t_meas: EskfTime
    accepted: bool
    reason: str
    innovation: list[float]
    mahalanobis_d2: float


@dataclass(frozen=True)
class EskfOdometry:
    """
    Odometry estimate published once per IMU cycle

    Fields:
        t_meas: Timestamp of the IMU sample that produced this estimate
        position_m: World-frame position in meters
        orientation_wxyz: World-from-body orientation quaternion
        linear_velocity_mps: World-frame velocity in m/s
        angular_velocity_rps: Raw body angular velocity in rad/s
        pose_covariance: 6x6 pose covariance, row-major
        twist_covariance: 6x6 twist covariance, row-major
    """

    t_meas: EskfTime
    position_m: list[float]
    orientation_wxyz: list[float]
    linear_velocity_mps: list[float]
    angular_velocity_rps: list[float]
    pose_covariance: list[float]
    twist_covariance: list[float]


@dataclass(frozen=True)
class EskfBias:
    """
    IMU bias estimate published after an accepted correction

    Fields:
        t_meas: Timestamp of the IMU sample that closed the cycle
        accel_bias_mps2: Accelerometer bias in m/s^2
        gyro_bias_rps: Gyroscope bias in rad/s
    """

    t_meas: EskfTime
    accel_bias_mps2: list[float]
    gyro_bias_rps: list[float]


@dataclass(frozen=True)
class EskfOutputs:
    """
    Outputs produced by processing a single event

    Fields:
        odometry: Odometry estimate, or None when no propagation happened
        bias: Bias estimate when a correction was accepted this cycle
        correction: Report of the correction attempted this cycle, if any
    """

    odometry: Optional[EskfOdometry] = None
    bias: Optional[EskfBias] = None
    correction: Optional[EskfCorrectionReport] = None
