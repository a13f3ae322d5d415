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

import math
from types import ModuleType

import pytest


nav_msgs: ModuleType = pytest.importorskip(
    "nav_msgs.msg", reason="requires ROS message packages"
)

from builtin_interfaces.msg import Time as TimeMsg
from geometry_msgs.msg import Quaternion as QuaternionMsg
from geometry_msgs.msg import TwistStamped as TwistStampedMsg
from nav_msgs.msg import Odometry as OdometryMsg
from sensor_msgs.msg import Imu as ImuMsg

from lidar_eskf.localization.eskf.eskf_ros_conversions import cov6x6_from_ros
from lidar_eskf.localization.eskf.eskf_ros_conversions import eskf_time_from_ros
from lidar_eskf.localization.eskf.eskf_ros_conversions import imu_sample_from_ros
from lidar_eskf.localization.eskf.eskf_ros_conversions import (
    pose_observation_from_ros,
)
from lidar_eskf.localization.eskf.eskf_ros_conversions import (
    quaternion_wxyz_from_ros,
)
from lidar_eskf.localization.eskf.eskf_ros_conversions import ros_time_from_eskf
from lidar_eskf.localization.eskf.eskf_ros_msgs import to_bias_msg
from lidar_eskf.localization.eskf.eskf_ros_msgs import to_odom_msg
from lidar_eskf.localization.eskf.eskf_types import EskfBias
from lidar_eskf.localization.eskf.eskf_types import EskfOdometry
from lidar_eskf.localization.eskf.eskf_types import EskfTime
from lidar_eskf.localization.eskf.eskf_types import ImuSample
from lidar_eskf.localization.eskf.eskf_types import PoseObservation


def test_time_round_trip() -> None:
    stamp: TimeMsg = TimeMsg(sec=12, nanosec=345)

    assert eskf_time_from_ros(stamp) == EskfTime(sec=12, nanosec=345)


def test_ros_time_carries_nanoseconds() -> None:
    stamp: TimeMsg = ros_time_from_eskf(EskfTime(sec=1, nanosec=1_500_000_000))

    assert stamp.sec == 2
    assert stamp.nanosec == 500_000_000


def test_quaternion_is_normalized_to_wxyz() -> None:
    msg: QuaternionMsg = QuaternionMsg(x=0.0, y=0.0, z=2.0, w=2.0)

    values: list[float] = quaternion_wxyz_from_ros(msg)

    assert values == pytest.approx([math.sqrt(0.5), 0.0, 0.0, math.sqrt(0.5)])


def test_quaternion_with_zero_norm_raises() -> None:
    with pytest.raises(ValueError):
        quaternion_wxyz_from_ros(QuaternionMsg(x=0.0, y=0.0, z=0.0, w=0.0))


def test_cov6x6_rejects_length() -> None:
    with pytest.raises(ValueError):
        cov6x6_from_ros([0.0] * 35)


def test_imu_sample_without_orientation() -> None:
    msg: ImuMsg = ImuMsg()
    msg.header.frame_id = "imu_link"
    msg.linear_acceleration.z = 9.82
    msg.angular_velocity.x = 0.1
    msg.orientation_covariance[0] = -1.0

    sample: ImuSample = imu_sample_from_ros(msg)

    assert sample.frame_id == "imu_link"
    assert sample.linear_acceleration_mps2 == [0.0, 0.0, 9.82]
    assert sample.angular_velocity_rps == [0.1, 0.0, 0.0]
    assert sample.orientation_wxyz is None


def test_imu_sample_with_orientation() -> None:
    msg: ImuMsg = ImuMsg()

    sample: ImuSample = imu_sample_from_ros(msg)

    assert sample.orientation_wxyz == pytest.approx([1.0, 0.0, 0.0, 0.0])


def test_pose_observation_from_odometry() -> None:
    msg: OdometryMsg = OdometryMsg()
    msg.header.frame_id = "map"
    msg.pose.pose.position.x = 1.0
    msg.pose.pose.position.y = -2.0
    msg.pose.pose.position.z = 0.5
    covariance: list[float] = [0.0] * 36
    covariance[0] = 0.1
    msg.pose.covariance = covariance

    observation: PoseObservation = pose_observation_from_ros(msg)

    assert observation.frame_id == "map"
    assert observation.position_m == [1.0, -2.0, 0.5]
    assert observation.orientation_wxyz == pytest.approx([1.0, 0.0, 0.0, 0.0])
    assert observation.covariance[0] == pytest.approx(0.1)
    assert len(observation.covariance) == 36


def test_to_odom_msg_copies_fields() -> None:
    pose_covariance: list[float] = [float(index) for index in range(36)]
    odometry: EskfOdometry = EskfOdometry(
        t_meas=EskfTime(sec=5, nanosec=10),
        position_m=[1.0, 2.0, 3.0],
        orientation_wxyz=[1.0, 0.0, 0.0, 0.0],
        linear_velocity_mps=[0.1, 0.2, 0.3],
        angular_velocity_rps=[0.0, 0.0, 0.5],
        pose_covariance=pose_covariance,
        twist_covariance=[0.0] * 36,
    )

    msg: OdometryMsg = to_odom_msg(odometry, "world", "base_link")

    assert msg.header.stamp.sec == 5
    assert msg.header.stamp.nanosec == 10
    assert msg.header.frame_id == "world"
    assert msg.child_frame_id == "base_link"
    assert msg.pose.pose.position.y == 2.0
    assert msg.pose.pose.orientation.w == 1.0
    assert msg.twist.twist.linear.z == pytest.approx(0.3)
    assert msg.twist.twist.angular.z == 0.5
    assert list(msg.pose.covariance) == pose_covariance


def test_to_bias_msg_uses_linear_and_angular() -> None:
    bias: EskfBias = EskfBias(
        t_meas=EskfTime(sec=1, nanosec=0),
        accel_bias_mps2=[0.01, 0.02, 0.03],
        gyro_bias_rps=[-0.1, 0.0, 0.1],
    )

    msg: TwistStampedMsg = to_bias_msg(bias, "world")

    assert msg.header.frame_id == "world"
    assert msg.twist.linear.x == pytest.approx(0.01)
    assert msg.twist.angular.x == pytest.approx(-0.1)
