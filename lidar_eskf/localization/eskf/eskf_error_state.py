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
Explicit error-state layout for ESKF covariance bookkeeping

The error state stores small deviations from the nominal state so the filter
can track uncertainty with linearized dynamics. The stacked order is fixed:

    [delta v, delta theta, delta p, delta b_a, delta b_g]

The attitude error delta theta is a body-frame rotation vector, composed on
the right of the nominal rotation. The process noise vector uses its own
order:

    [accel noise, gyro noise, accel bias walk, gyro bias walk]
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ErrorBlock:
    """
    Descriptor for a contiguous block in a stacked vector

    Fields:
        name: Human-readable name for the block
        dim: Dimension of the block
        start: Starting index of the block in the stacked vector
    """

    name: str
    dim: int
    start: int

    @property
    def sl(self) -> slice:
        """
        Slice for this block inside the stacked vector
        """

        return slice(self.start, self.start + self.dim)


def _stack_blocks(
    entries: tuple[tuple[str, str, int], ...],
) -> tuple[dict[str, ErrorBlock], list[str], int]:
    blocks: dict[str, ErrorBlock] = {}
    order: list[str] = []
    start: int = 0
    for key, name, dim in entries:
        blocks[key] = ErrorBlock(name=name, dim=dim, start=start)
        order.append(key)
        start += dim
    return blocks, order, start


class EskfErrorStateLayout:
    """
    Deterministic 15-dim error-state layout and 12-dim noise layout
    """

    def __init__(self) -> None:
        blocks, order, dim = _stack_blocks(
            (
                ("v", "v_w", 3),
                ("theta", "theta_b", 3),
                ("p", "p_w", 3),
                ("ba", "b_a", 3),
                ("bg", "b_g", 3),
            )
        )
        noise_blocks, noise_order, noise_dim = _stack_blocks(
            (
                ("acc", "n_a", 3),
                ("gyr", "n_g", 3),
                ("ba", "w_a", 3),
                ("bg", "w_g", 3),
            )
        )

        self.blocks: dict[str, ErrorBlock] = blocks
        self.order: list[str] = order
        self.dim: int = dim

        self.noise_blocks: dict[str, ErrorBlock] = noise_blocks
        self.noise_order: list[str] = noise_order
        self.noise_dim: int = noise_dim

    def sl_v(self) -> slice:
        """
        Slice for velocity error delta v
        """

        return self.blocks["v"].sl

    def sl_theta(self) -> slice:
        """
        Slice for attitude small-angle error delta theta
        """

        return self.blocks["theta"].sl

    def sl_p(self) -> slice:
        """
        Slice for position error delta p
        """

        return self.blocks["p"].sl

    def sl_ba(self) -> slice:
        """
        Slice for accel bias error delta b_a
        """

        return self.blocks["ba"].sl

    def sl_bg(self) -> slice:
        """
        Slice for gyro bias error delta b_g
        """

        return self.blocks["bg"].sl

    def sl_noise(self, key: str) -> slice:
        """
        Slice for a process noise block
        """

        return self.noise_blocks[key].sl


ESKF_LAYOUT: EskfErrorStateLayout = EskfErrorStateLayout()
