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

from lidar_eskf.localization.eskf.eskf_event_queue import EskfEventQueue
from lidar_eskf.localization.eskf.eskf_types import EskfEvent
from lidar_eskf.localization.eskf.eskf_types import EskfEventType
from lidar_eskf.localization.eskf.eskf_types import EskfTime
from lidar_eskf.localization.eskf.eskf_types import ImuSample
from lidar_eskf.localization.eskf.eskf_types import PoseObservation
from lidar_eskf.localization.eskf.eskf_types import from_ns
from lidar_eskf.localization.eskf.eskf_types import from_seconds
from lidar_eskf.localization.eskf.eskf_types import to_ns
from lidar_eskf.localization.eskf.eskf_types import to_seconds


def _imu_event(t_ns: int) -> EskfEvent:
    return EskfEvent(
        t_meas=from_ns(t_ns),
        event_type=EskfEventType.IMU,
        payload=ImuSample(
            frame_id="imu",
            angular_velocity_rps=[0.0, 0.0, 0.0],
            linear_acceleration_mps2=[0.0, 0.0, 9.82],
        ),
    )


def _pose_event(t_ns: int) -> EskfEvent:
    return EskfEvent(
        t_meas=from_ns(t_ns),
        event_type=EskfEventType.POSE,
        payload=PoseObservation(
            frame_id="world",
            position_m=[0.0, 0.0, 0.0],
            orientation_wxyz=[1.0, 0.0, 0.0, 0.0],
            covariance=[0.0] * 36,
        ),
    )


def test_time_conversions() -> None:
    timestamp: EskfTime = from_ns(2_500_000_001)

    assert timestamp == EskfTime(sec=2, nanosec=500_000_001)
    assert to_ns(timestamp) == 2_500_000_001
    assert to_seconds(EskfTime(sec=1, nanosec=250_000_000)) == 1.25


def test_from_seconds_rollover() -> None:
    timestamp: EskfTime = from_seconds(1.999_999_999_6)

    assert timestamp.sec == 2
    assert timestamp.nanosec == 0


def test_queue_orders_by_timestamp() -> None:
    queue: EskfEventQueue = EskfEventQueue()
    queue.push(_imu_event(30))
    queue.push(_imu_event(10))
    queue.push(_pose_event(20))

    assert len(queue) == 3
    ordered: list[int] = [to_ns(event.t_meas) for event in queue.drain()]

    assert ordered == [10, 20, 30]
    assert len(queue) == 0


def test_queue_keeps_arrival_order_for_equal_timestamps() -> None:
    queue: EskfEventQueue = EskfEventQueue()
    queue.push(_pose_event(5))
    queue.push(_imu_event(5))

    kinds: list[EskfEventType] = [event.event_type for event in queue.drain()]

    assert kinds == [EskfEventType.POSE, EskfEventType.IMU]


def test_pop_on_empty_queue_returns_none() -> None:
    queue: EskfEventQueue = EskfEventQueue()

    assert queue.pop() is None
