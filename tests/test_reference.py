import numpy as np
import pytest
from pyobstacle.fem.reference import get_reference


def _quad_nodes(p):
    s = np.linspace(-1, 1, p + 1)
    return [(x, y) for y in s for x in s]


def _tri_nodes(p):
    return [(i / p, j / p) for j in range(p + 1) for i in range(p + 1 - j)]


@pytest.mark.parametrize("element_type,p,nodes", [
    ("quad", 1, _quad_nodes(1)), ("quad", 2, _quad_nodes(2)),
    ("tri", 1, _tri_nodes(1)), ("tri", 2, _tri_nodes(2)),
])
def test_kronecker_property(element_type, p, nodes):
    ref = get_reference(element_type, p)
    assert ref.n_loc == len(nodes)
    V = np.array([ref.shape(*xy) for xy in nodes])
    assert np.allclose(V, np.eye(len(nodes)))


@pytest.mark.parametrize("element_type", ["quad", "tri"])
@pytest.mark.parametrize("p", [1, 2, 3])
def test_partition_of_unity(element_type, p):
    ref = get_reference(element_type, p)
    xi, eta = 0.21, 0.37
    assert np.isclose(ref.shape(xi, eta).sum(), 1.0)
    assert np.allclose(ref.grad(xi, eta).sum(axis=0), 0.0)


def test_q1_gradient_values():
    ref = get_reference("quad", 1)
    g = ref.grad(0.0, 0.0)
    # bl, br, tl, tr at the centre
    assert np.allclose(g, 0.25 * np.array([[-1, -1], [1, -1], [-1, 1], [1, 1]]))


def test_unknown_element():
    with pytest.raises(KeyError):
        get_reference("hex", 1)
    with pytest.raises(ValueError):
        get_reference("tri", 1).derivative(0.1, 0.1, 2, 0)
