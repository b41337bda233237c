from __future__ import annotations

import numpy as np
import pytest

from basisfes.basis.model import BiasModel
from basisfes.basis.polynomials import internal_coordinates
from basisfes.config import normalize_config


def test_fresh_model_is_zeroed(model_1d):
    assert model_1d.iteration == 0
    assert model_1d.coefficients.shape == (5,)
    assert not model_1d.coefficients.any()
    assert model_1d.unbias.shape == (12,)
    assert not model_1d.unbias.any()
    assert model_1d.histogram.data.sum() == 0


def test_basis_matrix_shape_and_constant_row(model_2d):
    matrix = model_2d.basis_matrix()
    assert matrix.shape == (12, 30)
    np.testing.assert_allclose(matrix[0], np.ones(30))
    assert matrix is model_2d.basis_matrix()


def test_basis_matrix_matches_table_product(model_2d):
    matrix = model_2d.basis_matrix()
    bins = model_2d.histogram.interior_multi_indices()
    for slot in (1, 5, 11):
        multi = model_2d.index[slot]
        for col in (0, 7, 29):
            expected = model_2d.table.product(bins[col], multi)
            assert matrix[slot, col] == pytest.approx(expected)


def test_bias_on_grid_ignores_constant_slot(model_1d):
    model_1d.coefficients[0] = 42.0
    np.testing.assert_allclose(model_1d.bias_on_grid(), np.zeros(10))
    model_1d.coefficients[2] = 1.5
    x = internal_coordinates(10)
    np.testing.assert_allclose(model_1d.bias_on_grid(), 1.5 * (3 * x**2 - 1) / 2)


def test_from_config_loads_initial_coefficients(config_factory):
    config = config_factory(orders=(2,), coefficients=(0.0, 0.5, 0.25), iteration=7)
    model = BiasModel.from_config(normalize_config(config, 1))
    np.testing.assert_allclose(model.coefficients, [0.0, 0.5, 0.25])
    assert model.iteration == 7


def test_load_coefficients_rejects_wrong_length(model_1d):
    with pytest.raises(ValueError, match="Expected 5 coefficients"):
        model_1d.load_coefficients([1.0, 2.0])


def test_reset_clears_everything(model_1d):
    model_1d.histogram.increment([0.1])
    model_1d.coefficients[1] = 3.0
    model_1d.unbias[4] = 2.0
    model_1d.iteration = 5
    model_1d.reset()
    assert model_1d.histogram.data.sum() == 0
    assert not model_1d.coefficients.any()
    assert not model_1d.unbias.any()
    assert model_1d.iteration == 0
