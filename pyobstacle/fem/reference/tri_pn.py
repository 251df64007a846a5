from functools import lru_cache
import sympy as sp


@lru_cache(maxsize=None)
def tri_pn(n: int, max_deriv_order: int = 1):
    """
    Return lambdified shape functions and derivatives up to max_deriv_order for Pn triangular elements.

    Args:
        n: Polynomial order of the Pn element (>= 1).
        max_deriv_order: Maximum total derivative order to compute.

    Returns:
        tuple: (shape_lambda, deriv_lambdas)
            - shape_lambda: Callable giving shape function values [phi_1, ..., phi_N] at (xi, eta).
            - deriv_lambdas: Dict with keys (alpha_xi, alpha_eta), values are callables giving
                             derivative values [D^alpha phi_1, ..., D^alpha phi_N] at (xi, eta).
    """
    if n < 1:
        raise ValueError("Polynomial order n must be positive.")
    xi_sym, eta_sym = sp.symbols("xi eta")

    # 1. Pn nodal points on the reference triangle (0,0)-(1,0)-(0,1), rows of constant eta
    nodes_ref_coords = [(sp.Rational(i_level, n), sp.Rational(j_level, n))
                        for j_level in range(n + 1)
                        for i_level in range(n + 1 - j_level)]
    num_nodes = len(nodes_ref_coords)

    # 2. Monomial basis for polynomials of degree <= n
    monomials_sym = [xi_sym**pow_xi * eta_sym**(total_degree - pow_xi)
                     for total_degree in range(n + 1)
                     for pow_xi in range(total_degree + 1)]

    # 3. Vandermonde matrix
    V_matrix = sp.zeros(num_nodes, num_nodes)
    for i_node, (node_xi, node_eta) in enumerate(nodes_ref_coords):
        for j_monomial, monomial in enumerate(monomials_sym):
            V_matrix[i_node, j_monomial] = monomial.subs({xi_sym: node_xi, eta_sym: node_eta})

    # 4. Lagrange coefficients
    try:
        coeffs_matrix = (V_matrix.T).inv()
    except ValueError as exc:
        raise RuntimeError(f"Vandermonde matrix is singular for tri_pn order n={n}.") from exc

    # 5. Symbolic Lagrange basis
    monomials_matrix_col = sp.Matrix(monomials_sym)
    basis_sym_list = [sp.expand((coeffs_matrix.row(k) * monomials_matrix_col)[0, 0])
                      for k in range(num_nodes)]

    # 6. Derivatives and lambdification
    multi_indices = [(i, j) for i in range(max_deriv_order + 1)
                     for j in range(max_deriv_order + 1) if i + j <= max_deriv_order]
    shape_lambda = sp.lambdify((xi_sym, eta_sym), sp.Matrix(basis_sym_list), "numpy")
    deriv_lambdas = {
        alpha: sp.lambdify(
            (xi_sym, eta_sym),
            sp.Matrix([sp.diff(phi, xi_sym, alpha[0], eta_sym, alpha[1]) for phi in basis_sym_list]),
            "numpy",
        )
        for alpha in multi_indices
    }
    return shape_lambda, deriv_lambdas
