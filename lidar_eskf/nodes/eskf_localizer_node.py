################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

from typing import Optional

import rclpy.node
import rclpy.publisher
import rclpy.qos
import rclpy.subscription
from geometry_msgs.msg import TwistStamped as TwistStampedMsg
from nav_msgs.msg import Odometry as OdometryMsg
from sensor_msgs.msg import Imu as ImuMsg

from lidar_eskf.localization.eskf.eskf_config import EskfConfig
from lidar_eskf.localization.eskf.eskf_event_queue import EskfEventQueue
from lidar_eskf.localization.eskf.eskf_filter import EskfFilter
from lidar_eskf.localization.eskf.eskf_ros_conversions import eskf_time_from_ros
from lidar_eskf.localization.eskf.eskf_ros_conversions import imu_sample_from_ros
from lidar_eskf.localization.eskf.eskf_ros_conversions import (
    pose_observation_from_ros,
)
from lidar_eskf.localization.eskf.eskf_ros_msgs import to_bias_msg
from lidar_eskf.localization.eskf.eskf_ros_msgs import to_odom_msg
from lidar_eskf.localization.eskf.eskf_types import EskfCorrectionReport
from lidar_eskf.localization.eskf.eskf_types import EskfEvent
from lidar_eskf.localization.eskf.eskf_types import EskfEventType
from lidar_eskf.localization.eskf.eskf_types import EskfOutputs
from lidar_eskf.localization.eskf.eskf_types import ImuSample
from lidar_eskf.localization.eskf.eskf_types import PoseObservation
from lidar_eskf.nodes import eskf_localizer_params as eskf_params


################################################################################
# ROS parameters
################################################################################


NODE_NAME: str = "eskf_localizer"

# ROS topics
IMU_TOPIC: str = "imu"
POSE_TOPIC: str = "measurements"

ODOM_TOPIC: str = "imu_odom"
BIAS_TOPIC: str = "bias"

# ROS parameters
PARAM_WORLD_FRAME_ID: str = "world_frame_id"
PARAM_BODY_FRAME_ID: str = "body_frame_id"

DEFAULT_WORLD_FRAME_ID: str = "world"
DEFAULT_BODY_FRAME_ID: str = "base_link"


################################################################################
# ROS node
################################################################################


class EskfLocalizerNode(rclpy.node.Node):
    def __init__(self) -> None:
        """
        Initialize resources
        """

        super().__init__(NODE_NAME)

        self.declare_parameter(PARAM_WORLD_FRAME_ID, DEFAULT_WORLD_FRAME_ID)
        self.declare_parameter(PARAM_BODY_FRAME_ID, DEFAULT_BODY_FRAME_ID)
        self.declare_parameter(
            eskf_params.PARAM_IMU_FREQUENCY, eskf_params.DEFAULT_IMU_FREQUENCY
        )
        self.declare_parameter(
            eskf_params.PARAM_SIGMA_ACCELERATION,
            eskf_params.DEFAULT_SIGMA_ACCELERATION,
        )
        self.declare_parameter(
            eskf_params.PARAM_SIGMA_GYROSCOPE, eskf_params.DEFAULT_SIGMA_GYROSCOPE
        )
        self.declare_parameter(
            eskf_params.PARAM_SIGMA_GYROSCOPE_LEGACY,
            eskf_params.DEFAULT_SIGMA_GYROSCOPE,
        )
        self.declare_parameter(
            eskf_params.PARAM_SIGMA_ACCELERATION_BIAS,
            eskf_params.DEFAULT_SIGMA_ACCELERATION_BIAS,
        )
        self.declare_parameter(
            eskf_params.PARAM_SIGMA_GYROSCOPE_BIAS,
            eskf_params.DEFAULT_SIGMA_GYROSCOPE_BIAS,
        )
        self.declare_parameter(eskf_params.PARAM_GRAVITY, eskf_params.DEFAULT_GRAVITY)
        self.declare_parameter(
            eskf_params.PARAM_INIT_BIAS_ACC_X, eskf_params.DEFAULT_INIT_BIAS_ACC
        )
        self.declare_parameter(
            eskf_params.PARAM_INIT_BIAS_ACC_Y, eskf_params.DEFAULT_INIT_BIAS_ACC
        )
        self.declare_parameter(
            eskf_params.PARAM_INIT_BIAS_ACC_Z, eskf_params.DEFAULT_INIT_BIAS_ACC
        )
        self.declare_parameter(
            eskf_params.PARAM_ACC_QUEUE_SIZE, eskf_params.DEFAULT_ACC_QUEUE_SIZE
        )
        self.declare_parameter(
            eskf_params.PARAM_ACC_SMOOTHING_MODE,
            eskf_params.DEFAULT_ACC_SMOOTHING_MODE,
        )
        self.declare_parameter(
            eskf_params.PARAM_POSE_COVARIANCE_ORDER,
            eskf_params.DEFAULT_POSE_COVARIANCE_ORDER,
        )
        self.declare_parameter(
            eskf_params.PARAM_POSE_GATE_D2, eskf_params.DEFAULT_POSE_GATE_D2
        )
        self.declare_parameter(
            eskf_params.PARAM_MAX_POSE_AGE_SEC, eskf_params.DEFAULT_MAX_POSE_AGE_SEC
        )
        self.declare_parameter(
            eskf_params.PARAM_DT_IMU_MAX_SEC, eskf_params.DEFAULT_DT_IMU_MAX_SEC
        )
        for param_name in (
            eskf_params.PARAM_INIT_VAR_VELOCITY,
            eskf_params.PARAM_INIT_VAR_ATTITUDE,
            eskf_params.PARAM_INIT_VAR_POSITION,
            eskf_params.PARAM_INIT_VAR_BIAS_ACC,
            eskf_params.PARAM_INIT_VAR_BIAS_GYR,
        ):
            self.declare_parameter(param_name, eskf_params.DEFAULT_INIT_VAR)

        self._world_frame_id: str = str(self.get_parameter(PARAM_WORLD_FRAME_ID).value)
        self._body_frame_id: str = str(self.get_parameter(PARAM_BODY_FRAME_ID).value)

        sigma_gyroscope: float = self._get_param_with_legacy(
            eskf_params.PARAM_SIGMA_GYROSCOPE,
            eskf_params.PARAM_SIGMA_GYROSCOPE_LEGACY,
            eskf_params.DEFAULT_SIGMA_GYROSCOPE,
        )

        try:
            config: EskfConfig = EskfConfig(
                imu_frequency=self._get_float(eskf_params.PARAM_IMU_FREQUENCY),
                sigma_acceleration=self._get_float(
                    eskf_params.PARAM_SIGMA_ACCELERATION
                ),
                sigma_gyroscope=sigma_gyroscope,
                sigma_acceleration_bias=self._get_float(
                    eskf_params.PARAM_SIGMA_ACCELERATION_BIAS
                ),
                sigma_gyroscope_bias=self._get_float(
                    eskf_params.PARAM_SIGMA_GYROSCOPE_BIAS
                ),
                gravity=self._get_float(eskf_params.PARAM_GRAVITY),
                init_bias_acc_x=self._get_float(eskf_params.PARAM_INIT_BIAS_ACC_X),
                init_bias_acc_y=self._get_float(eskf_params.PARAM_INIT_BIAS_ACC_Y),
                init_bias_acc_z=self._get_float(eskf_params.PARAM_INIT_BIAS_ACC_Z),
                acc_queue_size=int(
                    self.get_parameter(eskf_params.PARAM_ACC_QUEUE_SIZE).value
                ),
                acc_smoothing_mode=str(
                    self.get_parameter(eskf_params.PARAM_ACC_SMOOTHING_MODE).value
                ),
                pose_covariance_order=str(
                    self.get_parameter(eskf_params.PARAM_POSE_COVARIANCE_ORDER).value
                ),
                pose_gate_d2=self._get_float(eskf_params.PARAM_POSE_GATE_D2),
                max_pose_age_sec=self._get_float(eskf_params.PARAM_MAX_POSE_AGE_SEC),
                dt_imu_max_sec=self._get_float(eskf_params.PARAM_DT_IMU_MAX_SEC),
                init_var_velocity=self._get_float(
                    eskf_params.PARAM_INIT_VAR_VELOCITY
                ),
                init_var_attitude=self._get_float(
                    eskf_params.PARAM_INIT_VAR_ATTITUDE
                ),
                init_var_position=self._get_float(
                    eskf_params.PARAM_INIT_VAR_POSITION
                ),
                init_var_bias_acc=self._get_float(
                    eskf_params.PARAM_INIT_VAR_BIAS_ACC
                ),
                init_var_bias_gyr=self._get_float(
                    eskf_params.PARAM_INIT_VAR_BIAS_GYR
                ),
                world_frame_id=self._world_frame_id,
                body_frame_id=self._body_frame_id,
            )
        except ValueError as exc:
            self.get_logger().error(f"Invalid ESKF configuration: {exc}")
            raise

        qos_profile: rclpy.qos.QoSProfile = (
            rclpy.qos.QoSPresetProfiles.SENSOR_DATA.value
        )

        self._odom_pub: rclpy.publisher.Publisher = self.create_publisher(
            msg_type=OdometryMsg,
            topic=ODOM_TOPIC,
            qos_profile=qos_profile,
        )
        self._bias_pub: rclpy.publisher.Publisher = self.create_publisher(
            msg_type=TwistStampedMsg,
            topic=BIAS_TOPIC,
            qos_profile=qos_profile,
        )

        self._imu_sub: rclpy.subscription.Subscription = self.create_subscription(
            msg_type=ImuMsg,
            topic=IMU_TOPIC,
            callback=self._handle_imu,
            qos_profile=qos_profile,
        )
        self._pose_sub: rclpy.subscription.Subscription = self.create_subscription(
            msg_type=OdometryMsg,
            topic=POSE_TOPIC,
            callback=self._handle_pose,
            qos_profile=qos_profile,
        )

        self._queue: EskfEventQueue = EskfEventQueue()
        self._filter: EskfFilter = EskfFilter(config)

        self.get_logger().info("ESKF localizer initialized")

    def stop(self) -> None:
        self.get_logger().info("ESKF localizer deinitialized")

        self.destroy_node()

    def _handle_imu(self, message: ImuMsg) -> None:
        try:
            sample: ImuSample = imu_sample_from_ros(message)
        except ValueError as exc:
            self.get_logger().warn(f"Rejecting IMU message: {exc}")
            return

        event: EskfEvent = EskfEvent(
            t_meas=eskf_time_from_ros(message.header.stamp),
            event_type=EskfEventType.IMU,
            payload=sample,
        )
        self._process_event(event)

    def _handle_pose(self, message: OdometryMsg) -> None:
        try:
            observation: PoseObservation = pose_observation_from_ros(message)
        except ValueError as exc:
            self.get_logger().warn(f"Rejecting pose observation: {exc}")
            return

        event: EskfEvent = EskfEvent(
            t_meas=eskf_time_from_ros(message.header.stamp),
            event_type=EskfEventType.POSE,
            payload=observation,
        )
        self._process_event(event)

    def _process_event(self, event: EskfEvent) -> None:
        """
        Serialize IMU and pose callbacks into the filter

        The queue is drained after every callback, so it holds one event at
        a time and does not reorder across callbacks. Late poses are handled
        by the filter's staleness check and late IMU samples are dropped.
        """

        self._queue.push(event)
        for queued_event in self._queue.drain():
            outputs: EskfOutputs = self._filter.process_event(queued_event)
            self._publish_outputs(outputs)

    def _publish_outputs(self, outputs: EskfOutputs) -> None:
        if outputs.odometry is not None:
            self._odom_pub.publish(
                to_odom_msg(
                    outputs.odometry,
                    frame_id=self._world_frame_id,
                    child_frame_id=self._body_frame_id,
                )
            )

        if outputs.bias is not None:
            self._bias_pub.publish(to_bias_msg(outputs.bias, self._world_frame_id))

        report: Optional[EskfCorrectionReport] = outputs.correction
        if report is not None and not report.accepted:
            self.get_logger().debug(f"Pose correction rejected: {report.reason}")

    def _get_float(self, param_name: str) -> float:
        return float(self.get_parameter(param_name).value)

    def _get_param_with_legacy(
        self, param_name: str, legacy_name: str, default: float
    ) -> float:
        current_value: float = float(self.get_parameter(param_name).value)
        legacy_value: float = float(self.get_parameter(legacy_name).value)
        if legacy_value != default and current_value == default:
            self.get_logger().warn(
                f"Parameter '{legacy_name}' is deprecated, " f"use '{param_name}'"
            )
            return legacy_value
        if legacy_value != default and current_value != default:
            self.get_logger().warn(
                f"Parameter '{legacy_name}' is deprecated and ignored in "
                f"favor of '{param_name}'"
            )
        return current_value
