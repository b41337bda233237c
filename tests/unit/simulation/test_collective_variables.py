from __future__ import annotations

import math

import numpy as np
import pytest

from basisfes.simulation.cvs import AngleCV, ParticleCoordinateCV
from basisfes.simulation.snapshot import Snapshot


def _numeric_gradient(cv, snapshot, h=1e-6):
    grad = np.zeros_like(snapshot.positions)
    for a in range(snapshot.n_atoms):
        for d in range(3):
            orig = snapshot.positions[a, d]
            snapshot.positions[a, d] = orig + h
            cv.evaluate(snapshot)
            plus = cv.value
            snapshot.positions[a, d] = orig - h
            cv.evaluate(snapshot)
            minus = cv.value
            snapshot.positions[a, d] = orig
            grad[a, d] = (plus - minus) / (2 * h)
    cv.evaluate(snapshot)
    return grad


def test_particle_coordinate_value_and_gradient():
    snapshot = Snapshot(positions=[[0.0, 0.0, 0.0], [1.0, 2.0, 3.0]])
    cv = ParticleCoordinateCV(1, axis=1)
    cv.evaluate(snapshot)
    assert cv.value == 2.0
    expected = np.zeros((2, 3))
    expected[1, 1] = 1.0
    np.testing.assert_array_equal(cv.gradient, expected)


def test_particle_coordinate_rejects_bad_axis():
    with pytest.raises(ValueError):
        ParticleCoordinateCV(0, axis=3)


def test_right_angle():
    snapshot = Snapshot(positions=[[1.0, 0.0, 0.0], [0.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
    cv = AngleCV(0, 1, 2)
    cv.evaluate(snapshot)
    assert cv.value == pytest.approx(math.pi / 2)
    assert cv.bounds == (0.0, math.pi)


def test_angle_gradient_matches_finite_difference():
    snapshot = Snapshot(
        positions=[[1.1, 0.2, -0.3], [0.0, 0.1, 0.0], [-0.4, 0.9, 0.5], [3.0, 3.0, 3.0]]
    )
    cv = AngleCV(0, 1, 2)
    cv.evaluate(snapshot)
    np.testing.assert_allclose(cv.gradient, _numeric_gradient(cv, snapshot), atol=1e-6)
    np.testing.assert_array_equal(cv.gradient[3], np.zeros(3))
    np.testing.assert_allclose(cv.gradient.sum(axis=0), np.zeros(3), atol=1e-12)


def test_angle_uses_minimum_image():
    box = np.array([10.0, 10.0, 10.0])
    wrapped = Snapshot(
        positions=[[9.5, 0.0, 0.0], [0.5, 0.0, 0.0], [0.5, 1.0, 0.0]], box=box
    )
    cv = AngleCV(0, 1, 2)
    cv.evaluate(wrapped)
    assert cv.value == pytest.approx(math.pi / 2)


def test_angle_rejects_missing_atoms():
    snapshot = Snapshot(positions=np.zeros((2, 3)))
    with pytest.raises(IndexError, match="atom 2"):
        AngleCV(0, 1, 2).evaluate(snapshot)


def test_periodic_difference_wraps():
    cv = ParticleCoordinateCV(0, bounds=(-math.pi, math.pi))
    cv.periodic = True
    cv.value = math.pi - 0.1
    assert cv.difference(-math.pi + 0.1) == pytest.approx(-0.2)
    cv.periodic = False
    assert cv.difference(-math.pi + 0.1) == pytest.approx(2 * math.pi - 0.2)


def test_snapshot_defaults():
    snapshot = Snapshot(positions=[[1.0, 2.0, 3.0]])
    assert snapshot.n_atoms == 1
    np.testing.assert_array_equal(snapshot.forces, np.zeros((1, 3)))
    np.testing.assert_array_equal(snapshot.virial, np.zeros((3, 3)))
    np.testing.assert_array_equal(snapshot.apply_minimum_image([5.0, 0, 0]), [5.0, 0, 0])
