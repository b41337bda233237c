from __future__ import annotations

import numpy as np
import pytest

from basisfes.basis.polynomials import (
    PolynomialTable,
    internal_coordinates,
    legendre_table,
)


def test_internal_coordinates_follow_bin_mapping():
    x = internal_coordinates(4)
    np.testing.assert_allclose(x, [-0.75, -0.25, 0.25, 0.75])


@pytest.mark.parametrize("nbins", [1, 5, 10, 37])
def test_order_zero_is_constant(nbins):
    lut = PolynomialTable([3], [nbins])[0]
    values = lut.value_matrix()
    derivs = lut.deriv_matrix()
    np.testing.assert_array_equal(values[0], np.ones(nbins))
    np.testing.assert_array_equal(derivs[0], np.zeros(nbins))


@pytest.mark.parametrize("nbins", [4, 10, 25])
def test_values_match_closed_form(nbins):
    x = internal_coordinates(nbins)
    lut = PolynomialTable([4], [nbins])[0]
    vals = lut.value_matrix()
    np.testing.assert_allclose(vals[1], x, atol=1e-12)
    np.testing.assert_allclose(vals[2], (3 * x**2 - 1) / 2, atol=1e-12)
    np.testing.assert_allclose(vals[3], (5 * x**3 - 3 * x) / 2, atol=1e-12)
    np.testing.assert_allclose(vals[4], (35 * x**4 - 30 * x**2 + 3) / 8, atol=1e-12)


@pytest.mark.parametrize("nbins", [4, 10, 25])
def test_derivatives_match_closed_form(nbins):
    x = internal_coordinates(nbins)
    lut = PolynomialTable([4], [nbins])[0]
    ders = lut.deriv_matrix()
    np.testing.assert_allclose(ders[1], np.ones(nbins), atol=1e-12)
    np.testing.assert_allclose(ders[2], 3 * x, atol=1e-12)
    np.testing.assert_allclose(ders[3], (15 * x**2 - 3) / 2, atol=1e-12)
    np.testing.assert_allclose(ders[4], (140 * x**3 - 60 * x) / 8, atol=1e-12)


def test_values_agree_with_numpy_legendre():
    x = internal_coordinates(16)
    vals, ders = legendre_table(7, x)
    for j in range(8):
        coef = np.zeros(j + 1)
        coef[j] = 1.0
        np.testing.assert_allclose(vals[j], np.polynomial.legendre.legval(x, coef), atol=1e-12)
        dcoef = np.polynomial.legendre.legder(coef)
        np.testing.assert_allclose(ders[j], np.polynomial.legendre.legval(x, dcoef), atol=1e-10)


def test_flat_layout_is_bin_plus_order_times_nbins():
    table = PolynomialTable([2, 3], [5, 7])
    lut = table[1]
    x = internal_coordinates(7)
    assert lut.values.shape == (4 * 7,)
    assert lut.value(3, 2) == pytest.approx((3 * x[3] ** 2 - 1) / 2)
    assert lut.values[3 + 2 * 7] == pytest.approx(lut.value(3, 2))
    assert lut.deriv(6, 1) == pytest.approx(1.0)


def test_order_zero_table_has_single_row():
    lut = PolynomialTable([0], [6])[0]
    assert lut.values.shape == (6,)
    np.testing.assert_array_equal(lut.derivs, np.zeros(6))


def test_product_multiplies_dimensions():
    table = PolynomialTable([2, 2], [4, 4])
    x = internal_coordinates(4)
    expected = x[1] * (3 * x[2] ** 2 - 1) / 2
    assert table.product((1, 2), (1, 2)) == pytest.approx(expected)


def test_mismatched_lengths_rejected():
    with pytest.raises(ValueError):
        PolynomialTable([2, 2], [4])
