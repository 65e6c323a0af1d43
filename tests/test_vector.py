from copy import copy
import numpy as np
import pytest

from nestedarrays import (
  VectorOfArrays,
  VectorOfVectors,
  IndexOutOfRange,
  RankMismatch,
  DimensionMismatch,
  ShapeMismatch,
  InvalidStructure,
  GrowthNotSupported,
  BufferPinned )

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def example_arrays():
  return [
    np.arange(6.0).reshape(2,3),
    np.arange(10.0, 12.0).reshape(1,2),
    np.zeros((0,4)),
    np.arange(20.0, 24.0).reshape(2,2) ]

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def assert_invariants(va):
  ptr = va.internal_element_ptr()

  assert len(ptr) == len(va) + 1
  assert ptr[0] == 0
  assert ptr[-1] == len(va.flat)
  assert np.all(np.diff(ptr) >= 0)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_empty():
  va = VectorOfArrays(inner_ndim = 3)

  assert len(va) == 0
  assert va.inner_ndim == 3
  assert va.dtype == np.float64
  assert va.flat.shape == (0,)
  assert np.array_equal(va.element_ptr(), [0])
  assert va.kernel_shapes().shape == (0, 3)

  with pytest.raises(DimensionMismatch):
    VectorOfArrays(inner_ndim = 0)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_from_arrays():
  arrays = example_arrays()
  va = VectorOfArrays(arrays)

  assert len(va) == 4
  assert va.inner_ndim == 2
  assert np.array_equal(va.element_ptr(), [0, 6, 8, 8, 12])
  assert np.array_equal(va.kernel_shapes(), [[2,3], [1,2], [0,4], [2,2]])
  assert np.array_equal(va.elem_sizes, [6, 2, 0, 4])
  assert_invariants(va)

  for a, b in zip(va, arrays):
    assert a.shape == b.shape
    assert np.array_equal(a, b)

  # data is copied
  arrays[0][0,0] = -1.0
  assert va[0][0,0] == 0.0

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_from_arrays_dimension_mismatch():
  with pytest.raises(DimensionMismatch):
    VectorOfArrays([np.zeros(3), np.zeros((1,2))])

  with pytest.raises(DimensionMismatch):
    VectorOfArrays([np.zeros(3)], inner_ndim = 2)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_dtype():
  va = VectorOfArrays([np.arange(3), np.arange(2.0)])
  assert va.dtype == np.float64

  va = VectorOfArrays([np.arange(3)], dtype = np.int8)
  assert va.dtype == np.int8

  va.push([1, 2])
  assert np.array_equal(va[1], [1, 2])

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_lossy_cast():
  va = VectorOfVectors([[1, 2, 3]], dtype = np.int64)

  with pytest.raises(TypeError):
    va.push([1.7, 2.9])

  with pytest.raises(TypeError):
    va.extend([[4, 5], [0.5]])

  assert len(va) == 1

  with pytest.raises(TypeError):
    va[0] = [0.5, 1.5, 2.5]

  assert np.array_equal(va[0], [1, 2, 3])

  with pytest.raises(TypeError):
    VectorOfArrays([np.arange(2.0)], dtype = np.int64)

  # empty arrays default to float64, but carry no values
  vv = VectorOfVectors([[1, 2], []], dtype = np.int64)
  assert vv.dtype == np.int64

  vv.push([])
  assert len(vv) == 3

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_push():
  va = VectorOfArrays(inner_ndim = 2)
  arrays = example_arrays()

  for i, arr in enumerate(arrays):
    va.push(arr)

    assert len(va) == i + 1
    assert_invariants(va)
    assert np.array_equal(va[i], arr)
    assert va[i].shape == arr.shape

  with pytest.raises(DimensionMismatch):
    va.push(np.zeros(3))

  assert len(va) == len(arrays)
  assert_invariants(va)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_push_growth():
  va = VectorOfVectors(dtype = np.int64)

  for i in range(100):
    va.push(np.full(i % 5, i))

  assert len(va) == 100
  assert_invariants(va)

  ncap, dcap = va.capacity
  assert ncap >= 100
  assert dcap >= len(va.flat)

  for i in range(100):
    assert np.array_equal(va[i], np.full(i % 5, i))

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_extend():
  va = VectorOfArrays(example_arrays()[:2])
  va.extend(example_arrays()[2:])

  assert len(va) == 4
  assert_invariants(va)

  with pytest.raises(DimensionMismatch):
    va.extend([np.zeros((1,1)), np.zeros(2)])

  # nothing appended when any array is invalid
  assert len(va) == 4

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_getitem_view():
  va = VectorOfArrays(example_arrays())

  elem = va[3]
  elem[1,0] = 100.0

  assert va.flat[10] == 100.0

  va.flat[6] = -5.0
  assert va[1][0,0] == -5.0

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_getitem_out_of_range():
  va = VectorOfArrays(example_arrays())

  with pytest.raises(IndexOutOfRange):
    va[4]

  with pytest.raises(IndexOutOfRange):
    va[-1]

  with pytest.raises(RankMismatch):
    va[0, 1]

  # compatible with generic index errors
  with pytest.raises(IndexError):
    va[10]

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_getitem_selection():
  arrays = example_arrays()
  va = VectorOfArrays(arrays)

  sub = va[[3, 0]]

  assert isinstance(sub, VectorOfArrays)
  assert len(sub) == 2
  assert_invariants(sub)
  assert np.array_equal(sub[0], arrays[3])
  assert np.array_equal(sub[1], arrays[0])

  sub = va[1:]
  assert len(sub) == 3
  assert np.array_equal(sub.element_ptr(), [0, 2, 2, 6])

  sub = va[np.array([True, False, True, False])]
  assert len(sub) == 2
  assert sub[1].shape == (0,4)

  with pytest.raises(IndexOutOfRange):
    va[[0, 7]]

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_setitem():
  va = VectorOfArrays(example_arrays())

  va[1] = np.array([[7.0, 8.0]])
  assert np.array_equal(va.flat[6:8], [7.0, 8.0])

  with pytest.raises(ShapeMismatch):
    va[1] = np.array([7.0, 8.0])

  with pytest.raises(ShapeMismatch):
    va[0] = np.zeros((3,2))

  with pytest.raises(IndexOutOfRange):
    va[4] = np.zeros((1,1))

  assert np.array_equal(va.flat[6:8], [7.0, 8.0])

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_resize():
  arrays = example_arrays()
  va = VectorOfArrays(arrays)
  gen = va.generation

  va.resize(4)
  assert len(va) == 4

  va.resize(2)

  assert len(va) == 2
  assert len(va.flat) == 8
  assert va.generation > gen
  assert_invariants(va)

  for a, b in zip(va, arrays[:2]):
    assert np.array_equal(a, b)

  with pytest.raises(GrowthNotSupported):
    va.resize(3)

  with pytest.raises(ValueError):
    va.resize(-1)

  assert len(va) == 2

  va.push(arrays[3])
  assert len(va) == 3
  assert np.array_equal(va[2], arrays[3])
  assert_invariants(va)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_reserve():
  va = VectorOfArrays(inner_ndim = 2)
  va.reserve(10, (4,5))

  assert len(va) == 0
  assert va.capacity == (10, 200)

  gen = va.generation

  for i in range(10):
    va.push(np.ones((4,5)))

  # no reallocation of reserved data
  assert va.generation == gen

  with pytest.raises(DimensionMismatch):
    va.reserve(1, (3,))

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_element_ptr_copy():
  va = VectorOfVectors([[1, 2], [3]])

  ptr = va.element_ptr()
  ptr[1] = 99

  assert np.array_equal(va.internal_element_ptr(), [0, 2, 3])
  assert np.shares_memory(va.internal_element_ptr(), va.internal_element_ptr())

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_from_raw():
  data = np.arange(12.0)
  va = VectorOfArrays.from_raw(
    data,
    [0, 6, 8, 12],
    [[2,3], [2,1], [1,4]] )

  assert len(va) == 3
  assert va.inner_ndim == 2
  assert va.flat is data
  assert va[2].shape == (1,4)

  va[0][1,2] = -1.0
  assert data[5] == -1.0

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_from_raw_policies():
  data = np.arange(8.0)
  ptr = [0, 5, 3, 8]

  with pytest.raises(InvalidStructure):
    VectorOfVectors.from_raw(data, ptr)

  with pytest.raises(InvalidStructure):
    VectorOfVectors.from_raw(data, ptr, checks = 'simple')

  va = VectorOfVectors.from_raw(data, ptr, checks = 'none')
  assert len(va) == 3

  shapes = [[2,2], [1,1], [2,3]]
  ptr = [0, 4, 5, 8]

  with pytest.raises(InvalidStructure):
    VectorOfArrays.from_raw(data, ptr, shapes, checks = 'full')

  # sizes not compared with shapes
  VectorOfArrays.from_raw(data, ptr, shapes, checks = 'simple')
  VectorOfArrays.from_raw(data, ptr, shapes, checks = 'none')

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_from_raw_structure():
  with pytest.raises(InvalidStructure):
    VectorOfVectors.from_raw(np.zeros((2,2)), [0, 4], checks = 'none')

  with pytest.raises(InvalidStructure):
    VectorOfVectors.from_raw(np.zeros(2), [], checks = 'none')

  with pytest.raises(InvalidStructure):
    VectorOfVectors.from_raw(np.zeros(2), [0.0, 2.0], checks = 'none')

  with pytest.raises(InvalidStructure):
    VectorOfArrays.from_raw(np.zeros(2), [0, 2], [2, 1], checks = 'none')

  with pytest.raises(ValueError):
    VectorOfVectors.from_raw(np.zeros(2), [0, 2], checks = 'paranoid')

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_from_raw_copies_tables():
  data = np.arange(6.0)
  ptr = np.array([0, 2, 6], dtype = np.intp)
  shapes = np.array([[1, 2], [2, 2]], dtype = np.intp)

  va = VectorOfArrays.from_raw(data, ptr, shapes)

  ptr[1] = 5
  shapes[0] = [2, 1]

  assert va.flat is data
  assert np.array_equal(va.element_ptr(), [0, 2, 6])
  assert va[0].shape == (1, 2)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_from_raw_push_does_not_modify_caller():
  data = np.arange(6)
  ptr = np.array([0, 2, 6], dtype = np.intp)

  va = VectorOfVectors.from_raw(data, ptr)
  va.resize(1)
  va.push([-1, -2])

  assert np.array_equal(data, np.arange(6))
  assert np.array_equal(ptr, [0, 2, 6])
  assert np.array_equal(va[1], [-1, -2])

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_bulk_tables_accepted_by_all_policies():
  va = VectorOfArrays(example_arrays())

  for checks in ['none', 'simple', 'full']:
    vb = VectorOfArrays.from_raw(
      va.flat,
      va.element_ptr(),
      va.kernel_shapes(),
      checks = checks )

    assert len(vb) == len(va)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_pinned():
  va = VectorOfVectors([[1, 2], [3], [4, 5, 6]])

  with va.pinned() as views:
    assert len(views) == 3
    assert np.array_equal(views[2], [4, 5, 6])

    views[1][0] = 30
    va[0] = [10, 20]

    with pytest.raises(BufferPinned):
      va.push([7])

    with pytest.raises(BufferPinned):
      va.resize(1)

    with pytest.raises(BufferPinned):
      va.reserve(5)

  assert np.array_equal(va.flat, [10, 20, 30, 4, 5, 6])

  va.push([7])
  assert len(va) == 4

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_pinned_multidim():
  va = VectorOfArrays(example_arrays())

  with va.pinned() as views:
    assert views[0].shape == (2,3)
    assert views[3].shape == (2,2)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_copy():
  va = VectorOfArrays(example_arrays())
  vb = copy(va)

  assert type(vb) is VectorOfArrays
  vb[0] = np.zeros((2,3))

  assert va[0][1,2] == 5.0
  assert np.array_equal(vb.element_ptr(), va.element_ptr())

  vv = VectorOfVectors([[1], [2, 3]]).copy()
  assert type(vv) is VectorOfVectors

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def test_repr():
  va = VectorOfVectors([[1, 2], [3]])
  assert repr(va).startswith('VectorOfVectors([')
