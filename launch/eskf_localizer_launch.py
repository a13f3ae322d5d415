################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

from launch import LaunchDescription
from launch_ros.actions import Node


################################################################################
# Localizer parameters
################################################################################


# The ROS package that provides the localizer executable
PACKAGE_NAME: str = "lidar_eskf"

# Name of the localizer node
NODE_NAME: str = "eskf_localizer"

# Frame that odometry and bias estimates are expressed in
WORLD_FRAME_ID: str = "world"

# Frame of the vehicle body
BODY_FRAME_ID: str = "base_link"


################################################################################
# ROS launch
################################################################################


def generate_launch_description() -> LaunchDescription:
    ld: LaunchDescription = LaunchDescription()

    localizer_node: Node = Node(
        package=PACKAGE_NAME,
        executable="eskf_localizer",
        name=NODE_NAME,
        output="screen",
        parameters=[
            {
                "world_frame_id": WORLD_FRAME_ID,
                "body_frame_id": BODY_FRAME_ID,
                "imu_frequency": 50.0,
                "sigma_acceleration": 0.1,
                "sigma_gyroscope": 0.01,
                "sigma_acceleration_bias": 1.0e-4,
                "sigma_gyroscope_bias": 1.0e-5,
                "gravity": 9.82,
                "acc_queue_size": 5,
                "acc_smoothing_mode": "mean",
                "pose_covariance_order": "attitude_first",
            }
        ],
        remappings=[
            ("imu", "imu/data"),
            ("measurements", "ndt/odom"),
        ],
    )
    ld.add_action(localizer_node)

    return ld
