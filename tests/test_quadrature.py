import numpy as np
from pyobstacle.integration import quadrature as q

def integrate_ref_tri(func, order):
    pts, wts = q.volume('tri', order)
    fvals = np.array([func(xy) for xy in pts])
    return (fvals * wts).sum()

def integrate_ref_quad(func, order):
    pts, wts = q.volume('quad', order)
    fvals = np.array([func(xy) for xy in pts])
    return (fvals * wts).sum()

def test_constant_volume():
    for et in ('tri','quad'):
        pts,wts=q.volume(et,3)
        area = wts.sum()
        exact = 0.5 if et=='tri' else 4.0
        assert np.isclose(area, exact, rtol=1e-12)

def test_linear_exact_tri():
    # ∫_T r dA  over reference triangle  = 1/6
    val = integrate_ref_tri(lambda xy: xy[0], order=4)
    assert np.isclose(val, 1/6, rtol=1e-12)

def test_quadratic_exact_quad():
    # ∫_[-1,1]^2 x^2 y^2 = 4/9
    val = integrate_ref_quad(lambda xy: xy[0]**2 * xy[1]**2, order=2)
    assert np.isclose(val, 4/9, rtol=1e-12)

def test_gauss_legendre_interval():
    x, w = q.gauss_legendre(3)
    assert np.isclose(w.sum(), 2.0)
    # exact up to degree 5
    assert np.isclose((w * x**4).sum(), 2/5)

def test_invalid_order():
    import pytest
    with pytest.raises(ValueError):
        q.gauss_legendre(0)
    with pytest.raises(KeyError):
        q.volume('hex', 2)
