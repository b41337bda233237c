"""Tensor-product indexing of basis coefficients."""

from __future__ import annotations

from typing import Iterator, Sequence, Tuple

import numpy as np

CONSTANT_SLOT = 0


class CoefficientIndex:
    """Bijection between flat coefficient slots and per-dimension orders.

    Slots are enumerated by a mixed-radix counter with dimension 0 varying
    fastest: when dimension ``k`` reaches ``p_k + 1`` it resets and carries
    into ``k + 1``. Slot 0 is always the all-zero (constant) multi-index.
    Restart files store coefficients in this order.
    """

    def __init__(self, orders: Sequence[int]) -> None:
        if len(orders) == 0:
            raise ValueError("at least one polynomial order is required")
        if any(int(o) < 0 for o in orders):
            raise ValueError("polynomial orders must be non-negative")
        self.orders = tuple(int(o) for o in orders)
        self.radices = tuple(o + 1 for o in self.orders)
        self.size = int(np.prod(self.radices))

        table = np.zeros((self.size, len(self.orders)), dtype=int)
        counter = [0] * len(self.orders)
        last = len(self.orders) - 1
        for slot in range(self.size):
            for k in range(last):
                if counter[k] == self.radices[k]:
                    counter[k] = 0
                    counter[k + 1] += 1
            table[slot] = counter
            counter[0] += 1
        table.setflags(write=False)
        self.multi_indices = table

    @property
    def dimension(self) -> int:
        return len(self.orders)

    def __len__(self) -> int:
        return self.size

    def __getitem__(self, slot: int) -> Tuple[int, ...]:
        return tuple(int(o) for o in self.multi_indices[slot])

    def __iter__(self) -> Iterator[Tuple[int, ...]]:
        for slot in range(self.size):
            yield self[slot]

    def flat_index(self, multi_index: Sequence[int]) -> int:
        if len(multi_index) != self.dimension:
            raise ValueError(
                f"multi-index has length {len(multi_index)}, expected {self.dimension}"
            )
        slot = 0
        stride = 1
        for order, radix in zip(multi_index, self.radices):
            if not 0 <= order < radix:
                raise ValueError(f"order {order} outside [0, {radix - 1}]")
            slot += int(order) * stride
            stride *= radix
        return slot

    def active_slots(self) -> range:
        """Slots that carry bias information (everything but the constant)."""
        return range(CONSTANT_SLOT + 1, self.size)
