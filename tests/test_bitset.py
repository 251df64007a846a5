import numpy as np
import pytest
from pyobstacle.utils.bitset import BitSet, ActiveSet

def test_bitset():
    a=BitSet([True,False,True,True])
    assert a.cardinality()==3
    assert a.to_indices().tolist()==[0,2,3]
    assert len(a)==4
    assert repr(a)=='<BitSet 3/4>'

def test_bitset_equality_by_content():
    a=BitSet([True,False,True])
    assert a == BitSet(np.array([1,0,1],dtype=bool))
    assert a != BitSet([True,True,True])
    assert hash(a) == hash(BitSet([True,False,True]))

def test_active_set_iterates_sorted():
    s = ActiveSet.from_indices(6, [4, 1, 3])
    assert list(s) == [1, 3, 4]
    assert 3 in s and 2 not in s

def test_active_set_indicator():
    s = ActiveSet.from_indices(4, [0, 2])
    assert np.array_equal(s.indicator(), [1.0, 0.0, 1.0, 0.0])
    assert ActiveSet.empty(4).cardinality() == 0

def test_active_set_out_of_range():
    with pytest.raises(IndexError):
        ActiveSet.from_indices(3, [3])
