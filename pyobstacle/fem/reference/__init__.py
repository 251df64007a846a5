# pyobstacle.fem.reference
"""
Order-agnostic reference-element factory.
"""
from functools import lru_cache
from importlib import import_module
import numpy as np


class Ref:
    def __init__(self, shape_lambda, deriv_lambdas):
        self.shape_lambda = shape_lambda
        self.deriv_lambdas = deriv_lambdas

    @lru_cache(maxsize=None)
    def shape(self, xi, eta):
        return np.asarray(self.shape_lambda(xi, eta), dtype=float).ravel()

    @lru_cache(maxsize=None)
    def derivative(self, xi, eta, order_xi, order_eta):
        alpha = (order_xi, order_eta)
        if alpha not in self.deriv_lambdas:
            raise ValueError(f"Derivative order {alpha} not computed. "
                             f"Adjust max_deriv_order >= {order_xi + order_eta}.")
        return np.asarray(self.deriv_lambdas[alpha](xi, eta), dtype=float).ravel()

    @lru_cache(maxsize=None)
    def grad(self, xi, eta):
        dphi_dxi = self.derivative(xi, eta, 1, 0)
        dphi_deta = self.derivative(xi, eta, 0, 1)
        return np.hstack((dphi_dxi[:, None], dphi_deta[:, None]))

    @property
    def n_loc(self) -> int:
        return self.shape(0.0, 0.0).shape[0]


@lru_cache(maxsize=None)
def get_reference(element_type: str, poly_order: int = 1, max_deriv_order: int = 1):
    if element_type == "quad":
        shape_l, deriv_lambdas = import_module("pyobstacle.fem.reference.quad_qn").quad_qn(poly_order, max_deriv_order)
    elif element_type == "tri":
        shape_l, deriv_lambdas = import_module("pyobstacle.fem.reference.tri_pn").tri_pn(poly_order, max_deriv_order)
    else:
        raise KeyError(element_type)
    return Ref(shape_l, deriv_lambdas)
