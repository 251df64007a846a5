import numpy as np
import pytest
from pyobstacle.core.constraints import (ConstraintSet, ConstraintManager, ConstraintConflictError,
                                         ConstraintSetClosedError, ConstraintIndexError)
from pyobstacle.utils.bitset import ActiveSet


class TestConstraintSet:
    def test_close_sorts_lines(self):
        cs = ConstraintSet()
        cs.add_line(4, 1.0)
        cs.add_line(1, -2.0)
        cs.add_line(3, 0.5)
        assert not cs.is_closed
        cs.close()
        assert cs.is_closed
        assert cs.indices.tolist() == [1, 3, 4]
        assert np.allclose(cs.values, [-2.0, 0.5, 1.0])
        assert list(cs) == [1, 3, 4]
        assert 3 in cs and 2 not in cs and len(cs) == 3

    def test_same_value_twice_is_fine(self):
        cs = ConstraintSet({2: 1.5})
        cs.add_line(2, 1.5)
        assert cs.value(2) == 1.5

    def test_conflict(self):
        cs = ConstraintSet({2: 1.5})
        with pytest.raises(ConstraintConflictError):
            cs.add_line(2, 0.0)
        cs.add_line(2, 0.0, overwrite=True)
        assert cs.value(2) == 0.0

    def test_conflict_is_value_error(self):
        assert issubclass(ConstraintConflictError, ValueError)
        assert issubclass(ConstraintIndexError, IndexError)

    def test_closed_set_is_frozen(self):
        cs = ConstraintSet({0: 1.0}).close()
        with pytest.raises(ConstraintSetClosedError):
            cs.add_line(1, 0.0)
        with pytest.raises(ConstraintSetClosedError):
            cs.merge(ConstraintSet({5: 0.0}))

    def test_validate(self):
        cs = ConstraintSet({0: 1.0, 7: 2.0}).close()
        cs.validate(8)
        with pytest.raises(ConstraintIndexError):
            cs.validate(7)
        with pytest.raises(ConstraintIndexError):
            ConstraintSet({-1: 0.0}).validate(3)

    def test_distribute(self):
        cs = ConstraintSet({1: 5.0, 3: -1.0}).close()
        v = np.zeros(4)
        out = cs.distribute(v)
        assert out is v
        assert np.allclose(v, [0, 5, 0, -1])
        assert np.allclose(ConstraintSet().close().distribute(np.ones(2)), 1.0)

    def test_equality_is_order_sensitive_until_closed(self):
        a = ConstraintSet(); a.add_line(2, 1.0); a.add_line(0, 3.0)
        b = ConstraintSet(); b.add_line(0, 3.0); b.add_line(2, 1.0)
        assert a != b
        assert a.close() == b.close()
        assert a.as_dict() == {0: 3.0, 2: 1.0}


class TestConstraintManager:
    def setup_method(self):
        self.psi = np.array([-0.2, -0.4, -0.6, -0.8, -1.0])
        self.boundary = ConstraintSet({0: 0.0, 4: 0.0}).close()
        self.manager = ConstraintManager(self.boundary, self.psi)

    def test_active_lines_take_obstacle_values(self):
        cs = self.manager.build_constraints(ActiveSet.from_indices(5, [2, 1]))
        assert cs.is_closed
        assert cs.as_dict() == {0: 0.0, 1: -0.4, 2: -0.6, 4: 0.0}
        assert cs.indices.tolist() == [0, 1, 2, 4]

    def test_boundary_overrides_active(self):
        active = ActiveSet.from_indices(5, [0, 2])
        cs = self.manager.build_constraints(active)
        assert cs.value(0) == 0.0                # boundary value, not psi[0]
        assert self.manager.overridden(active).tolist() == [0]

    def test_idempotent(self):
        active = ActiveSet.from_indices(5, [1, 2, 3])
        assert self.manager.build_constraints(active) == self.manager.build_constraints(active)

    def test_empty_active_set_gives_boundary(self):
        assert self.manager.build_constraints(ActiveSet.empty(5)) == self.boundary

    def test_size_mismatch(self):
        with pytest.raises(ValueError):
            self.manager.build_constraints(ActiveSet.empty(4))
        with pytest.raises(ConstraintIndexError):
            ConstraintManager(ConstraintSet({9: 0.0}).close(), self.psi)
