# Enable postponed evaluation of annotations
from __future__ import annotations
from partis.utils import TYPING

if TYPING:
  from typing import (
    Callable,
    Union )

from collections.abc import (
  Sequence,
  MutableSequence )
import numpy as np

from .errors import (
  NestedArrayError,
  IndexOutOfRange,
  RankMismatch )
from .checks import no_consistency_checks
from .vector import (
  VectorOfArrays,
  VectorOfVectors )
from .similar import ArrayOfSimilarArrays

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def _is_nested_seq(A) -> bool:
  """Whether ``A`` is a non-empty Python sequence (e.g. a list) of arrays or
  sequences
  """
  if (
    isinstance(A, (np.ndarray, str, bytes, ArrayOfSimilarArrays, VectorOfArrays))
    or not isinstance(A, Sequence)
    or len(A) == 0 ):

    return False

  return all(
    isinstance(a, np.ndarray)
    or ( isinstance(a, Sequence) and not isinstance(a, (str, bytes)) )
    for a in A )

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def is_nested(A) -> bool:
  """Whether the elements of ``A`` are themselves arrays

  True for :class:`ArrayOfSimilarArrays`, :class:`VectorOfArrays`, numpy
  arrays of ``dtype = object``, and Python sequences (e.g. lists) of arrays or
  sequences.
  """
  return (
    isinstance(A, (ArrayOfSimilarArrays, VectorOfArrays))
    or ( isinstance(A, np.ndarray) and A.dtype == object )
    or _is_nested_seq(A) )

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def outer_rank(A) -> int:
  """Number of indices needed to select an element of a nested array
  """
  if isinstance(A, (ArrayOfSimilarArrays, VectorOfArrays)):
    return A.outer_ndim

  if _is_nested_seq(A):
    return 1

  return np.ndim(A)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def _outer_key(A, outer : tuple):
  # python sequences only accept a single index
  if isinstance(A, (np.ndarray, ArrayOfSimilarArrays, VectorOfArrays)):
    return outer

  return outer[0]

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def _split(A, idx : tuple) -> tuple[tuple, tuple]:
  r = outer_rank(A)

  if len(idx) < r:
    raise RankMismatch(
      f"Expected at least {r} indices for {type(A).__name__}: {len(idx)}")

  return idx[:r], idx[r:]

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def _check_rank(A, idx : tuple):
  ndim = np.ndim(A)

  if len(idx) > ndim:
    raise RankMismatch(f"Expected at most {ndim} indices for array: {len(idx)}")

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def _getitem(A, key : tuple):
  try:
    return A[key]
  except NestedArrayError:
    raise
  except IndexError as e:
    raise IndexOutOfRange(str(e)) from e

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def _setitem(A, key : tuple, x):
  try:
    A[key] = x
  except NestedArrayError:
    raise
  except IndexError as e:
    raise IndexOutOfRange(str(e)) from e

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def deepgetindex(A, *idx):
  """Recursive indexing of flat or nested arrays

  If ``A`` is a nested array (see :func:`is_nested`), the first
  ``outer_rank(A)`` indices select an element of ``A``, and the remaining
  indices are applied to that element.
  Otherwise, equivalent to ``A[idx]``.

  Examples
  --------

  .. code-block:: python

    va = VectorOfArrays([np.zeros((2,3)), np.ones((4,1))])
    deepgetindex(va, 1, 3, 0) == va[1][3,0]

  Raises
  ------
  RankMismatch :
    If there are too few indices for a nested array, or too many for a
    non-nested array.
  IndexOutOfRange :
    If an index is out of range.
  """
  if is_nested(A):
    outer, inner = _split(A, idx)
    elem = _getitem(A, _outer_key(A, outer))

    if not inner:
      return elem

    return deepgetindex(elem, *inner)

  A = np.asarray(A)
  _check_rank(A, idx)

  return _getitem(A, idx)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def deepsetindex(A, x, *idx):
  """Recursive assignment into flat or nested arrays

  Mirrors :func:`deepgetindex`, assigning ``x`` to the indexed location.

  Returns
  -------
  A
  """
  if is_nested(A):
    outer, inner = _split(A, idx)
    key = _outer_key(A, outer)

    if not inner:
      _setitem(A, key, x)
      return A

    deepsetindex(_getitem(A, key), x, *inner)
    return A

  _check_rank(A, idx)

  if isinstance(A, np.ndarray) or not isinstance(A, MutableSequence):
    _setitem(A, idx, x)

  elif len(idx) == 1:
    # innermost python list, e.g. the rows of a list of lists
    _setitem(A, idx[0], x)

  else:
    raise RankMismatch(f"Expected 1 index for {type(A).__name__}: {len(idx)}")

  return A

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def deepview(A, *idx):
  """Recursive view of flat or nested arrays

  Like :func:`deepgetindex`, but the innermost indexing returns a view into
  ``A`` instead of a copy, a 0-dimensional array if all indices are integers.

  A :class:`VectorOfArrays` layer may only be indexed by an integer, or by a
  slice with step 1, which returns a vector of arrays sharing the flat data of
  that layer.
  The values of an innermost Python list cannot be viewed, and are copied.

  Raises
  ------
  TypeError :
    If a :class:`VectorOfArrays` layer is indexed by an index array, a mask,
    or a slice with a step other than 1.
  """
  if is_nested(A):
    outer, inner = _split(A, idx)

    if isinstance(A, VectorOfArrays):
      elem = _vector_view(A, outer[0])
    else:
      elem = _getitem(A, _outer_key(A, outer))

    if not inner:
      return elem

    return deepview(elem, *inner)

  A = np.asarray(A)
  _check_rank(A, idx)

  return _getitem(A, idx + (Ellipsis,))

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def _vector_view(A : VectorOfArrays, idx):
  """Element view, or a vector of arrays sharing the flat data of ``A``
  """
  if not isinstance(idx, slice):
    if isinstance(idx, (int, np.integer)):
      return _getitem(A, (idx,))

    raise TypeError(
      f"View of vector of arrays requires an integer or a slice: {type(idx).__name__}")

  start, stop, step = idx.indices(len(A))

  if step != 1:
    raise TypeError(f"View of vector of arrays requires a slice with step 1: {step}")

  stop = max(start, stop)

  ptr = A.internal_element_ptr()
  flat = A.flat[ptr[start]:ptr[stop]]
  elem_ptr = ptr[start:stop+1] - ptr[start]

  if A.inner_ndim == 1:
    return VectorOfVectors.from_raw(
      flat,
      elem_ptr,
      checks = no_consistency_checks )

  return VectorOfArrays.from_raw(
    flat,
    elem_ptr,
    A.internal_kernel_shapes()[start:stop],
    checks = no_consistency_checks )

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def _vmap(f : Callable, arr) -> np.ndarray:
  arr = np.asarray(arr)

  if arr.size == 0:
    return np.empty(arr.shape, dtype = arr.dtype)

  return np.vectorize(f)(arr)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def _map_flat(f : Callable, A : Union[VectorOfArrays, ArrayOfSimilarArrays]):
  flat = _vmap(f, A.flat)

  if isinstance(A, ArrayOfSimilarArrays):
    return ArrayOfSimilarArrays(flat, A.inner_ndim)

  if A.inner_ndim == 1:
    return VectorOfVectors.from_raw(
      flat,
      A.element_ptr(),
      checks = no_consistency_checks )

  return VectorOfArrays.from_raw(
    flat,
    A.element_ptr(),
    A.kernel_shapes(),
    checks = no_consistency_checks )

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def innermap(f : Callable, A):
  """Nested map at depth 2, ``f`` is applied to every value of every element
  array of ``A``

  The result has the same nested structure as ``A``.
  """
  if isinstance(A, (ArrayOfSimilarArrays, VectorOfArrays)):
    return _map_flat(f, A)

  if not is_nested(A):
    raise TypeError(f"Expected nested array: {type(A).__name__}")

  if _is_nested_seq(A):
    return [ _vmap(f, a) for a in A ]

  out = np.empty(A.shape, dtype = object)

  for i in np.ndindex(A.shape):
    out[i] = _vmap(f, A[i])

  return out

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def deepmap(f : Callable, A):
  """Map ``f`` over the values of the innermost layer of nested arrays

  If ``A`` is not nested, equivalent to a vectorized ``f(A)``.
  """
  if isinstance(A, (ArrayOfSimilarArrays, VectorOfArrays)):
    return _map_flat(f, A)

  if not is_nested(A):
    return _vmap(f, A)

  if _is_nested_seq(A):
    return [ deepmap(f, a) for a in A ]

  out = np.empty(A.shape, dtype = object)

  for i in np.ndindex(A.shape):
    out[i] = deepmap(f, A[i])

  return out
