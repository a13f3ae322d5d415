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
Time-ordered event queue feeding the ESKF state machine
"""

from __future__ import annotations

from bisect import bisect_right
from typing import Iterator
from typing import Optional

from lidar_eskf.localization.eskf.eskf_types import EskfEvent
from lidar_eskf.localization.eskf.eskf_types import to_ns


class EskfEventQueue:
    """
    Single ordered source of IMU and pose events

    Events are kept sorted by measurement time. Events with equal timestamps
    keep their arrival order.
    """

    def __init__(self) -> None:
        self._events: list[EskfEvent] = []
        self._timestamps_ns: list[int] = []

    def __len__(self) -> int:
        return len(self._events)

    def push(self, event: EskfEvent) -> None:
        event_ns: int = to_ns(event.t_meas)
        insert_index: int = bisect_right(self._timestamps_ns, event_ns)
        self._timestamps_ns.insert(insert_index, event_ns)
        self._events.insert(insert_index, event)

    def pop(self) -> Optional[EskfEvent]:
        if not self._events:
            return None
        self._timestamps_ns.pop(0)
        return self._events.pop(0)

    def drain(self) -> Iterator[EskfEvent]:
        """
        Yield and remove events in time order until the queue is empty
        """

        while self._events:
            event: Optional[EskfEvent] = self.pop()
            if event is not None:
                yield event
