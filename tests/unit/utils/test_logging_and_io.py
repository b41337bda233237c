from __future__ import annotations

import json
import logging

import numpy as np
import pytest

from basisfes.utils.json_io import dump_json_file, load_json_file, to_jsonable
from basisfes.utils.logging_utils import BORDER, StageTimer, emit_banner, format_duration
from basisfes.utils.path_utils import ensure_directory
from basisfes.utils.validation import all_finite, broadcast_per_cv
from basisfes.utils.errors import ConfigurationError

logger = logging.getLogger("basisfes.tests")


@pytest.mark.parametrize(
    "seconds, expected",
    [
        (0.25, "250 ms"),
        (5.0, "5.00 s"),
        (125.0, "2 min 5.0 s"),
        (3725.0, "1 h 2 min 5.0 s"),
        (90000.0, "1 d 1 h 0 min"),
        (-3.0, "0 ms"),
    ],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_emit_banner_frames_message(caplog):
    with caplog.at_level(logging.WARNING, logger="basisfes.tests"):
        emit_banner("Something happened", logger=logger, details=["detail"], level=logging.WARNING)
    messages = [r.getMessage() for r in caplog.records]
    assert messages == [BORDER, "Something happened", "detail", BORDER]
    assert all(r.levelno == logging.WARNING for r in caplog.records)


def test_emit_banner_echo(capsys):
    emit_banner("Hello", logger=logger, echo=True)
    out = capsys.readouterr().out.splitlines()
    assert out == [BORDER, "Hello", BORDER]


def test_stage_timer_logs_completion(caplog):
    with caplog.at_level(logging.DEBUG, logger="basisfes.tests"):
        with StageTimer("Sweep 1", logger) as timer:
            pass
    assert timer.elapsed >= 0.0
    assert "Sweep 1 completed in" in caplog.text


def test_stage_timer_logs_failure_and_propagates(caplog):
    with caplog.at_level(logging.DEBUG, logger="basisfes.tests"):
        with pytest.raises(RuntimeError):
            with StageTimer("Sweep 2", logger):
                raise RuntimeError("boom")
    failed = [r for r in caplog.records if "Sweep 2 failed" in r.getMessage()]
    assert failed and failed[0].levelno == logging.ERROR


def test_json_round_trip_with_numpy(tmp_path):
    payload = {"coefficients": np.array([0.0, 1.5]), "iteration": np.int64(3), "nested": (1, 2)}
    path = dump_json_file(payload, tmp_path / "sub" / "state.json")
    assert load_json_file(path) == {"coefficients": [0.0, 1.5], "iteration": 3, "nested": [1, 2]}
    assert to_jsonable(np.float32(2.0)) == 2.0


def test_load_json_file_names_the_file(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(json.JSONDecodeError, match="broken.json"):
        load_json_file(path)


def test_ensure_directory(tmp_path):
    target = ensure_directory(tmp_path / "a" / "b")
    assert target.is_dir()
    assert ensure_directory(target) == target


def test_broadcast_per_cv():
    assert broadcast_per_cv([2.0], 3, "springs") == (2.0, 2.0, 2.0)
    assert broadcast_per_cv([1, 2], 2, "springs") == (1.0, 2.0)
    with pytest.raises(ConfigurationError, match="springs"):
        broadcast_per_cv([1, 2], 3, "springs")
    with pytest.raises(ConfigurationError):
        broadcast_per_cv([], 1, "springs")


def test_all_finite():
    assert all_finite([])
    assert all_finite(np.array([1.0, 2.0]))
    assert not all_finite([1.0, np.inf])
