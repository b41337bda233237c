from __future__ import annotations

import numpy as np
import pytest

MPI = pytest.importorskip("mpi4py.MPI")

from basisfes.parallel.communicator import Communicator, MPICommunicator  # noqa: E402


class _RecordingComm:
    def __init__(self):
        self.abort_codes = []

    def Get_rank(self):
        return 2

    def Get_size(self):
        return 4

    def Abort(self, code):
        self.abort_codes.append(code)


def test_mpi_communicator_satisfies_protocol():
    comm = MPICommunicator(MPI.COMM_SELF)
    assert isinstance(comm, Communicator)
    assert comm.rank == 0
    assert comm.size == 1


def test_single_process_sum_keeps_values_and_dtype():
    comm = MPICommunicator(MPI.COMM_SELF)
    counts = np.array([0, 3, 1, 0], dtype=np.int64)
    out = comm.allreduce_sum(counts)
    np.testing.assert_array_equal(out, counts)
    assert out.dtype == np.int64
    out[1] = 99
    assert counts[1] == 3


def test_single_process_any_is_the_local_flag():
    comm = MPICommunicator(MPI.COMM_SELF)
    assert comm.allreduce_any(True)
    assert not comm.allreduce_any(False)


def test_abort_calls_mpi_abort_with_failure_code(caplog):
    raw = _RecordingComm()
    comm = MPICommunicator(raw)
    comm.abort("bad grid")
    assert raw.abort_codes == [1]
    assert "Rank 2 aborting run: bad grid" in caplog.text
