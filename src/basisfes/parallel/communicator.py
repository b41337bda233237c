"""Collective communication between walkers sharing one bias model.

Walkers only synchronise at the histogram reduction of each update period,
so the transport needs three collectives: an elementwise sum, a logical OR
for the stop decision, and an abort that releases everyone waiting.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterator, List, Optional, Protocol, runtime_checkable

import numpy as np

from basisfes.utils.errors import CollectiveAbort

logger = logging.getLogger("basisfes")


@runtime_checkable
class Communicator(Protocol):
    """Minimal collective interface used by the reducer and the method."""

    @property
    def rank(self) -> int: ...

    @property
    def size(self) -> int: ...

    def allreduce_sum(self, values: np.ndarray) -> np.ndarray: ...

    def allreduce_any(self, flag: bool) -> bool: ...

    def abort(self, reason: str) -> None: ...


class SerialCommunicator:
    """Single-walker transport: every collective is the identity."""

    rank = 0
    size = 1

    def __init__(self) -> None:
        self.aborted: Optional[str] = None

    def allreduce_sum(self, values: np.ndarray) -> np.ndarray:
        return np.array(values, copy=True)

    def allreduce_any(self, flag: bool) -> bool:
        return bool(flag)

    def abort(self, reason: str) -> None:
        self.aborted = reason
        logger.error("Aborting run: %s", reason)


class _SharedState:
    def __init__(self, size: int, timeout: Optional[float]) -> None:
        self.barrier = threading.Barrier(size, timeout=timeout)
        self.slots: List[Optional[np.ndarray]] = [None] * size
        self.reason: Optional[str] = None


class ThreadCommunicator:
    """One rank of an in-process walker group (see :class:`ThreadCommunicatorGroup`)."""

    def __init__(self, shared: _SharedState, rank: int, size: int) -> None:
        self._shared = shared
        self._rank = rank
        self._size = size

    @property
    def rank(self) -> int:
        return self._rank

    @property
    def size(self) -> int:
        return self._size

    def _wait(self) -> None:
        try:
            self._shared.barrier.wait()
        except threading.BrokenBarrierError as exc:
            reason = self._shared.reason or "collective barrier broken (timeout)"
            raise CollectiveAbort(f"rank {self._rank}: {reason}") from exc

    def allreduce_sum(self, values: np.ndarray) -> np.ndarray:
        """Sum ``values`` across ranks; every rank gets the same array.

        Contributions are added in rank order so the result does not depend
        on thread scheduling.
        """
        self._shared.slots[self._rank] = np.array(values, copy=True)
        self._wait()
        slots = self._shared.slots
        total = np.array(slots[0], copy=True)
        for contribution in slots[1:]:
            total += contribution
        # Nobody may overwrite a slot until every rank has read all of them.
        self._wait()
        return total

    def allreduce_any(self, flag: bool) -> bool:
        total = self.allreduce_sum(np.array([1 if flag else 0], dtype=np.int64))
        return bool(total[0] > 0)

    def abort(self, reason: str) -> None:
        if self._shared.reason is None:
            self._shared.reason = f"aborted by rank {self._rank}: {reason}"
        logger.error("Rank %d aborting run: %s", self._rank, reason)
        self._shared.barrier.abort()


class ThreadCommunicatorGroup:
    """Build ``size`` communicators that share one in-process barrier.

    Intended for running several walkers as threads, for example in tests
    or small demos. ``timeout`` (seconds) bounds every barrier wait.
    """

    def __init__(self, size: int, timeout: Optional[float] = None) -> None:
        if size <= 0:
            raise ValueError("size must be a positive integer")
        shared = _SharedState(size, timeout)
        self._members = [ThreadCommunicator(shared, rank, size) for rank in range(size)]

    def __len__(self) -> int:
        return len(self._members)

    def __getitem__(self, rank: int) -> ThreadCommunicator:
        return self._members[rank]

    def __iter__(self) -> Iterator[ThreadCommunicator]:
        return iter(self._members)


class MPICommunicator:
    """One walker per MPI process, reducing over an mpi4py communicator.

    ``comm`` defaults to ``MPI.COMM_WORLD``. The sum reduction keeps the
    dtype of the input array so integer histograms stay integers.
    """

    def __init__(self, comm=None) -> None:
        try:
            from mpi4py import MPI
        except ImportError as exc:  # pragma: no cover - optional dependency missing
            raise ImportError(
                "MPICommunicator requires mpi4py. Install with `pip install 'basisfes[mpi]'`."
            ) from exc
        self._mpi = MPI
        self._comm = comm if comm is not None else MPI.COMM_WORLD

    @property
    def rank(self) -> int:
        return int(self._comm.Get_rank())

    @property
    def size(self) -> int:
        return int(self._comm.Get_size())

    def allreduce_sum(self, values: np.ndarray) -> np.ndarray:
        sendbuf = np.ascontiguousarray(values)
        recvbuf = np.empty_like(sendbuf)
        self._comm.Allreduce(sendbuf, recvbuf, op=self._mpi.SUM)
        return recvbuf

    def allreduce_any(self, flag: bool) -> bool:
        return bool(self._comm.allreduce(bool(flag), op=self._mpi.LOR))

    def abort(self, reason: str) -> None:
        logger.error("Rank %d aborting run: %s", self.rank, reason)
        self._comm.Abort(1)
