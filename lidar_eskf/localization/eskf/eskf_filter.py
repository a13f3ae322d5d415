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
Event-driven ESKF state machine

The filter owns the nominal state, the error state and a single pending pose
observation slot. Events are handled to completion one at a time:

    IMU:  WAITING_FOR_IMU | PROPAGATED | CORRECTED -> PROPAGATED
          then, if a pose is pending, PROPAGATED -> CORRECTED
    POSE: stored in the pending slot, replacing any unconsumed pose
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from lidar_eskf.localization.eskf.accel_smoothing_buffer import AccelSmoothingBuffer
from lidar_eskf.localization.eskf.eskf_config import EskfConfig
from lidar_eskf.localization.eskf.eskf_correct import REASON_INVALID_COVARIANCE
from lidar_eskf.localization.eskf.eskf_correct import CorrectionResult
from lidar_eskf.localization.eskf.eskf_correct import correct
from lidar_eskf.localization.eskf.eskf_linalg import as_vector3
from lidar_eskf.localization.eskf.eskf_outputs import build_bias
from lidar_eskf.localization.eskf.eskf_outputs import build_odometry
from lidar_eskf.localization.eskf.eskf_outputs import (
    observation_covariance_attitude_first,
)
from lidar_eskf.localization.eskf.eskf_propagate import ProcessNoise
from lidar_eskf.localization.eskf.eskf_propagate import propagate
from lidar_eskf.localization.eskf.eskf_state import EskfErrorState
from lidar_eskf.localization.eskf.eskf_state import EskfNominalState
from lidar_eskf.localization.eskf.eskf_state import default_error_state
from lidar_eskf.localization.eskf.eskf_state import default_nominal_state
from lidar_eskf.localization.eskf.eskf_types import EskfBias
from lidar_eskf.localization.eskf.eskf_types import EskfCorrectionReport
from lidar_eskf.localization.eskf.eskf_types import EskfEvent
from lidar_eskf.localization.eskf.eskf_types import EskfEventType
from lidar_eskf.localization.eskf.eskf_types import EskfOutputs
from lidar_eskf.localization.eskf.eskf_types import EskfPhase
from lidar_eskf.localization.eskf.eskf_types import EskfTime
from lidar_eskf.localization.eskf.eskf_types import ImuSample
from lidar_eskf.localization.eskf.eskf_types import PoseObservation
from lidar_eskf.localization.eskf.eskf_types import to_ns


_LOG: logging.Logger = logging.getLogger(__name__)

# Seconds per nanosecond for time conversions
_NS_TO_S: float = 1.0e-9


class EskfFilter:
    """
    Error-state Kalman filter fusing IMU samples with pose observations
    """

    def __init__(self, config: EskfConfig) -> None:
        self._config: EskfConfig = config
        self._noise: ProcessNoise = ProcessNoise.from_config(config)
        self._gravity_mps2: np.ndarray = np.asarray(
            config.gravity_vector_mps2, dtype=float
        )
        self._accel_buffer: AccelSmoothingBuffer = AccelSmoothingBuffer(
            config.acc_queue_size, config.acc_smoothing_mode
        )

        self._nominal: EskfNominalState = default_nominal_state(config)
        self._error_state: EskfErrorState = default_error_state(config)
        self._phase: EskfPhase = EskfPhase.WAITING_FOR_IMU
        self._last_imu_time: Optional[EskfTime] = None
        self._pending_pose: Optional[tuple[EskfTime, PoseObservation]] = None

        self.diagnostics: dict[str, int] = {
            "imu_invalid": 0,
            "imu_out_of_order": 0,
            "imu_gap": 0,
            "pose_overwritten": 0,
            "pose_stale": 0,
            "correction_accepted": 0,
            "correction_rejected": 0,
        }

    @property
    def phase(self) -> EskfPhase:
        return self._phase

    @property
    def nominal(self) -> EskfNominalState:
        return self._nominal

    @property
    def error_state(self) -> EskfErrorState:
        return self._error_state

    @property
    def last_imu_time(self) -> Optional[EskfTime]:
        return self._last_imu_time

    @property
    def has_pending_pose(self) -> bool:
        return self._pending_pose is not None

    def process_event(self, event: EskfEvent) -> EskfOutputs:
        """
        Run the transition for a single event and return its outputs
        """

        if event.event_type == EskfEventType.IMU:
            if not isinstance(event.payload, ImuSample):
                raise ValueError("IMU event payload must be an ImuSample")
            return self._handle_imu(event.t_meas, event.payload)

        if event.event_type == EskfEventType.POSE:
            if not isinstance(event.payload, PoseObservation):
                raise ValueError("POSE event payload must be a PoseObservation")
            self._handle_pose(event.t_meas, event.payload)
            return EskfOutputs()

        raise ValueError(f"Unsupported event type: {event.event_type}")

    def _handle_imu(self, t_meas: EskfTime, sample: ImuSample) -> EskfOutputs:
        try:
            accel_raw: np.ndarray = as_vector3(
                "linear_acceleration_mps2", sample.linear_acceleration_mps2
            )
            gyro: np.ndarray = as_vector3(
                "angular_velocity_rps", sample.angular_velocity_rps
            )
        except ValueError as exc:
            self.diagnostics["imu_invalid"] += 1
            _LOG.info("Skipping IMU propagation, %s", exc)
            return EskfOutputs()

        dt: Optional[float] = self._step_seconds(t_meas)
        if dt is None:
            return EskfOutputs()

        accel: np.ndarray = self._accel_buffer.push(accel_raw)

        covariance: np.ndarray
        self._nominal, covariance = propagate(
            self._nominal,
            self._error_state.covariance,
            accel_mps2=accel,
            gyro_rps=gyro,
            dt=dt,
            noise=self._noise,
            gravity_mps2=self._gravity_mps2,
        )
        self._error_state = EskfErrorState(
            mean=self._error_state.mean, covariance=covariance
        )
        self._last_imu_time = t_meas
        self._phase = EskfPhase.PROPAGATED

        report: Optional[EskfCorrectionReport] = None
        bias: Optional[EskfBias] = None
        if self._pending_pose is not None:
            report = self._correct()
            if report.accepted:
                bias = build_bias(t_meas, self._nominal)

        return EskfOutputs(
            odometry=build_odometry(
                t_meas,
                self._nominal,
                self._error_state.covariance,
                angular_velocity_rps=gyro,
                sigma_gyroscope=self._config.sigma_gyroscope,
                covariance_order=self._config.pose_covariance_order,
            ),
            bias=bias,
            correction=report,
        )

    def _step_seconds(self, t_meas: EskfTime) -> Optional[float]:
        if self._last_imu_time is None:
            return self._config.imu_period_sec

        dt_ns: int = to_ns(t_meas) - to_ns(self._last_imu_time)
        if dt_ns <= 0:
            self.diagnostics["imu_out_of_order"] += 1
            _LOG.warning(
                "Dropping IMU sample not after the previous one (dt_ns=%d)", dt_ns
            )
            return None

        if dt_ns > self._config.dt_imu_max_ns:
            self.diagnostics["imu_gap"] += 1
            _LOG.warning(
                "IMU gap of %d ns exceeds %d ns, integrating the nominal period",
                dt_ns,
                self._config.dt_imu_max_ns,
            )
            return self._config.imu_period_sec

        return float(dt_ns) * _NS_TO_S

    def _handle_pose(self, t_meas: EskfTime, observation: PoseObservation) -> None:
        if self._last_imu_time is not None:
            age_ns: int = to_ns(self._last_imu_time) - to_ns(t_meas)
            if age_ns > self._config.max_pose_age_ns:
                self.diagnostics["pose_stale"] += 1
                _LOG.warning(
                    "Discarding pose observation %d ns older than the filter state",
                    age_ns,
                )
                return

        if self._pending_pose is not None:
            self.diagnostics["pose_overwritten"] += 1
            _LOG.debug("Replacing unconsumed pose observation")

        self._pending_pose = (t_meas, observation)

    def _correct(self) -> EskfCorrectionReport:
        if self._phase != EskfPhase.PROPAGATED:
            raise RuntimeError("Correction requires a freshly propagated state")
        if self._pending_pose is None:
            raise RuntimeError("Correction requires a pending pose observation")

        t_meas: EskfTime
        observation: PoseObservation
        t_meas, observation = self._pending_pose
        self._pending_pose = None

        try:
            covariance_meas: np.ndarray = observation_covariance_attitude_first(
                observation.covariance, self._config.pose_covariance_order
            )
        except ValueError as exc:
            self.diagnostics["correction_rejected"] += 1
            _LOG.warning("Rejecting pose observation, %s", exc)
            return EskfCorrectionReport(
                t_meas=t_meas,
                accepted=False,
                reason=REASON_INVALID_COVARIANCE,
                innovation=[],
                mahalanobis_d2=0.0,
            )

        result: CorrectionResult = correct(
            self._nominal,
            self._error_state,
            position_m=np.asarray(observation.position_m, dtype=float),
            orientation_wxyz=np.asarray(observation.orientation_wxyz, dtype=float),
            covariance_meas=covariance_meas,
            gate_d2=self._config.pose_gate_d2,
        )

        if result.accepted:
            self._nominal = result.nominal
            self._error_state = result.error_state
            self._phase = EskfPhase.CORRECTED
            self.diagnostics["correction_accepted"] += 1
        else:
            self.diagnostics["correction_rejected"] += 1
            _LOG.warning(
                "Skipping pose correction (%s), continuing with propagation only",
                result.reason,
            )

        return EskfCorrectionReport(
            t_meas=t_meas,
            accepted=result.accepted,
            reason=result.reason,
            innovation=result.innovation.tolist(),
            mahalanobis_d2=result.mahalanobis_d2,
        )
