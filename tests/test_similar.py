import numpy as np
import pytest

from nestedarrays import (
  ArrayOfSimilarArrays,
  VectorOfSimilarArrays,
  VectorOfSimilarVectors,
  ArrayOfSimilarVectors,
  nestedview,
  flatview,
  IndexOutOfRange,
  RankMismatch,
  DimensionMismatch,
  ShapeMismatch,
  GrowthNotSupported )

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_nestedview():
  flat = np.random.default_rng(0).random((4,5,2,3))
  A = nestedview(flat, 2)

  assert A.shape == (4,5)
  assert A.inner_shape == (2,3)
  assert A.outer_ndim == 2
  assert A.inner_ndim == 2
  assert len(A) == 4
  assert flatview(A) is flat

  A[2,4][:] = 4.2
  assert np.all(flat[2,4] == 4.2)

  assert np.shares_memory(A[1,1], flat)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_invalid_inner_ndim():
  with pytest.raises(DimensionMismatch):
    nestedview(np.zeros((2,3)), 2)

  with pytest.raises(DimensionMismatch):
    nestedview(np.zeros((2,3)), -1)

  with pytest.raises(DimensionMismatch):
    VectorOfSimilarVectors(np.zeros((2,3,4)))

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_getitem():
  flat = np.arange(24).reshape(2,3,4)
  A = nestedview(flat, 1)

  assert np.array_equal(A[1,2], [20, 21, 22, 23])

  row = A[1]
  assert isinstance(row, ArrayOfSimilarArrays)
  assert row.shape == (3,)
  assert np.array_equal(row[0], [12, 13, 14, 15])

  sub = A[:, 1:]
  assert sub.shape == (2,2)
  assert np.shares_memory(sub.flat, flat)

  with pytest.raises(IndexOutOfRange):
    A[2,0]

  with pytest.raises(IndexOutOfRange):
    A[0,-1]

  with pytest.raises(RankMismatch):
    A[0,0,0]

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_scalar_elements():
  flat = np.arange(6.0).reshape(2,3)
  A = nestedview(flat, 0)

  elem = A[1,2]
  assert elem.shape == ()

  elem[()] = -1.0
  assert flat[1,2] == -1.0

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_setitem():
  flat = np.zeros((3,2,2))
  A = VectorOfSimilarArrays(flat)

  A[1] = np.ones((2,2))
  assert np.all(flat[1] == 1.0)

  with pytest.raises(ShapeMismatch):
    A[1] = np.ones(4)

  with pytest.raises(RankMismatch):
    A[0:2] = np.ones((2,2))

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_push_resize():
  A = VectorOfSimilarArrays(np.empty((0,2,3)))

  for i in range(4):
    A.push(np.full((2,3), float(i)))

  assert len(A) == 4
  assert flatview(A).shape == (4,2,3)
  assert np.all(A[3] == 3.0)

  A.resize(6)
  assert flatview(A).shape == (6,2,3)
  assert np.all(A[5] == 0.0)

  A.resize(2)
  assert flatview(A).shape == (2,2,3)
  assert [float(a[0,0]) for a in A] == [0.0, 1.0]

  with pytest.raises(ShapeMismatch):
    A.push(np.zeros((3,2)))

  A.extend([np.ones((2,3)), np.ones((2,3))])
  assert len(A) == 4

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_push_reallocates_shared():
  flat = np.zeros((2,3))
  A = VectorOfSimilarVectors(flat)

  A.resize(1)
  A.push(np.ones(3))

  # caller array not written past the truncated length
  assert np.all(flat == 0.0)
  assert np.all(A[1] == 1.0)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_growth_not_supported():
  A = ArrayOfSimilarVectors(np.zeros((2,3,4)))

  assert A.shape == (2,3)

  with pytest.raises(GrowthNotSupported):
    A.push(np.zeros(4))

  with pytest.raises(GrowthNotSupported):
    A.resize(3)
