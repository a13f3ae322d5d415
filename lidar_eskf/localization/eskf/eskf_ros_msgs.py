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
ROS message builders for ESKF localization
"""

from __future__ import annotations

from geometry_msgs.msg import Point
from geometry_msgs.msg import Quaternion
from geometry_msgs.msg import TwistStamped
from geometry_msgs.msg import Vector3
from nav_msgs.msg import Odometry as OdometryMsg

from lidar_eskf.localization.eskf.eskf_ros_conversions import ros_time_from_eskf
from lidar_eskf.localization.eskf.eskf_types import EskfBias
from lidar_eskf.localization.eskf.eskf_types import EskfOdometry


def to_odom_msg(
    odometry: EskfOdometry, frame_id: str, child_frame_id: str
) -> OdometryMsg:
    msg: OdometryMsg = OdometryMsg()
    msg.header.stamp = ros_time_from_eskf(odometry.t_meas)
    msg.header.frame_id = frame_id
    msg.child_frame_id = child_frame_id

    msg.pose.pose.position = _to_point(odometry.position_m)
    msg.pose.pose.orientation = _to_quaternion(odometry.orientation_wxyz)
    msg.pose.covariance = _to_covariance_6x6(odometry.pose_covariance)

    msg.twist.twist.linear = _to_vector3(odometry.linear_velocity_mps)
    msg.twist.twist.angular = _to_vector3(odometry.angular_velocity_rps)
    msg.twist.covariance = _to_covariance_6x6(odometry.twist_covariance)

    return msg


def to_bias_msg(bias: EskfBias, frame_id: str) -> TwistStamped:
    msg: TwistStamped = TwistStamped()
    msg.header.stamp = ros_time_from_eskf(bias.t_meas)
    msg.header.frame_id = frame_id
    msg.twist.linear = _to_vector3(bias.accel_bias_mps2)
    msg.twist.angular = _to_vector3(bias.gyro_bias_rps)

    return msg


def _to_point(values: list[float]) -> Point:
    point: Point = Point()
    point.x = float(values[0])
    point.y = float(values[1])
    point.z = float(values[2])

    return point


def _to_vector3(values: list[float]) -> Vector3:
    vec: Vector3 = Vector3()
    vec.x = float(values[0])
    vec.y = float(values[1])
    vec.z = float(values[2])

    return vec


def _to_quaternion(values_wxyz: list[float]) -> Quaternion:
    quat: Quaternion = Quaternion()
    quat.w = float(values_wxyz[0])
    quat.x = float(values_wxyz[1])
    quat.y = float(values_wxyz[2])
    quat.z = float(values_wxyz[3])

    return quat


def _to_covariance_6x6(covariance: list[float]) -> list[float]:
    if len(covariance) != 36:
        raise ValueError("Expected 36 covariance entries")

    return [float(value) for value in covariance]
