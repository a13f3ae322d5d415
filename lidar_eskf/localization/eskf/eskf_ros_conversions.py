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
Conversion helpers from ROS messages to ESKF types
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Optional
from typing import Protocol

from builtin_interfaces.msg import Time as TimeMsg
from nav_msgs.msg import Odometry as OdometryMsg
from sensor_msgs.msg import Imu as ImuMsg

from lidar_eskf.localization.eskf.eskf_types import EskfTime
from lidar_eskf.localization.eskf.eskf_types import ImuSample
from lidar_eskf.localization.eskf.eskf_types import PoseObservation


class Vector3Like(Protocol):
    """
    Protocol for geometry messages with x/y/z fields
    """

    x: float
    y: float
    z: float


class QuaternionLike(Protocol):
    """
    Protocol for geometry messages with x/y/z/w fields
    """

    x: float
    y: float
    z: float
    w: float


def eskf_time_from_ros(stamp: TimeMsg) -> EskfTime:
    """
    Convert a ROS time stamp into an ESKF time
    """

    return EskfTime(sec=int(stamp.sec), nanosec=int(stamp.nanosec))


def ros_time_from_eskf(t: EskfTime) -> TimeMsg:
    """
    Convert an ESKF time into a ROS time stamp
    """

    carry_sec: int = t.nanosec // 1_000_000_000
    nanosec: int = t.nanosec % 1_000_000_000
    sec: int = t.sec + carry_sec

    stamp: TimeMsg = TimeMsg()
    stamp.sec = sec
    stamp.nanosec = nanosec

    return stamp


def vector3_from_ros(msg: Vector3Like) -> list[float]:
    """
    Convert a ROS Vector3-like message into a validated list
    """

    values: list[float] = [float(msg.x), float(msg.y), float(msg.z)]
    if not all(math.isfinite(value) for value in values):
        raise ValueError("Vector entries must be finite")

    return values


def quaternion_wxyz_from_ros(msg: QuaternionLike) -> list[float]:
    """
    Convert a ROS quaternion into a unit quaternion in wxyz order
    """

    values: list[float] = [float(msg.w), float(msg.x), float(msg.y), float(msg.z)]
    if not all(math.isfinite(value) for value in values):
        raise ValueError("Quaternion entries must be finite")

    norm: float = math.sqrt(sum(value * value for value in values))
    if norm < 1.0e-12:
        raise ValueError("Quaternion must have non-zero norm")

    return [value / norm for value in values]


def cov6x6_from_ros(cov: Sequence[float]) -> list[float]:
    """
    Convert a ROS covariance list into a validated 6x6 covariance
    """

    if len(cov) != 36:
        raise ValueError("Expected 36 covariance entries")

    values: list[float] = [float(value) for value in cov]

    if not all(math.isfinite(value) for value in values):
        raise ValueError("Covariance entries must be finite")

    return values


def imu_sample_from_ros(msg: ImuMsg) -> ImuSample:
    """
    Convert a ROS IMU message into an ESKF IMU sample

    The orientation is kept only when the driver reports one, which REP-145
    signals with a first orientation covariance entry other than -1.
    """

    orientation_wxyz: Optional[list[float]] = None
    if float(msg.orientation_covariance[0]) != -1.0:
        try:
            orientation_wxyz = quaternion_wxyz_from_ros(msg.orientation)
        except ValueError:
            orientation_wxyz = None

    return ImuSample(
        frame_id=msg.header.frame_id,
        angular_velocity_rps=vector3_from_ros(msg.angular_velocity),
        linear_acceleration_mps2=vector3_from_ros(msg.linear_acceleration),
        orientation_wxyz=orientation_wxyz,
    )


def pose_observation_from_ros(msg: OdometryMsg) -> PoseObservation:
    """
    Convert a map-matching odometry message into a pose observation

    The covariance is copied in the order it was published. The filter
    reorders it according to its configured covariance order.
    """

    return PoseObservation(
        frame_id=msg.header.frame_id,
        position_m=vector3_from_ros(msg.pose.pose.position),
        orientation_wxyz=quaternion_wxyz_from_ros(msg.pose.pose.orientation),
        covariance=cov6x6_from_ros(msg.pose.covariance),
    )
