# Enable postponed evaluation of annotations
from __future__ import annotations
from partis.utils import TYPING

if TYPING:
  from typing import (
    Optional,
    Union )
  from .typing import N, M, Where

import logging
from collections.abc import (
  Iterable,
  Sequence )
import numpy as np

from .errors import (
  IndexOutOfRange,
  RankMismatch,
  DimensionMismatch,
  ShapeMismatch,
  GrowthNotSupported )

log = logging.getLogger(__name__)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def _is_int(idx) -> bool:
  return isinstance(idx, (int, np.integer)) and not isinstance(idx, (bool, np.bool_))

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
class ArrayOfSimilarArrays(Sequence):
  """View of a flat array as an array of equally shaped arrays

  The leading (outer) axes of ``flat`` index the element arrays, and the
  trailing ``inner_ndim`` axes are the axes of each element array.
  No data is copied, element arrays are views into ``flat``.

  Parameters
  ----------
  flat :
    Array of shape ``(*outer_shape, *inner_shape)``.
  inner_ndim :
    Dimensionality of the element arrays, ``0 <= inner_ndim < flat.ndim``.

  Notes
  -----
  With a single outer axis, element arrays may be appended with :meth:`push`,
  and the number of elements changed with :meth:`resize`. When the flat array
  must grow, it is reallocated (and no longer shared with the original
  ``flat``).

  Examples
  --------

  .. code-block:: python

    flat = np.zeros((4,5,2,3))
    A = nestedview(flat, 2)

    A.shape == (4,5)
    A.inner_shape == (2,3)

    A[2,4][:] = 4.2
    np.all(flat[2,4] == 4.2)

  """
  #-----------------------------------------------------------------------------
  def __init__(self,
    flat : np.ndarray,
    inner_ndim : int = 1 ):

    flat = np.asarray(flat)

    if not 0 <= inner_ndim < flat.ndim:
      raise DimensionMismatch(
        f"Must have 0 <= inner_ndim < flat.ndim = {flat.ndim}: {inner_ndim}")

    self._data = flat
    self._inner_ndim = int(inner_ndim)
    self._outer_ndim = flat.ndim - self._inner_ndim
    self._size = flat.shape[0]
    # flat array is borrowed from the caller, copy before writing past the end
    self._shared = True
    self._generation = 0

  #-----------------------------------------------------------------------------
  def __class_getitem__(cls, *args):
    from types import GenericAlias
    return GenericAlias(cls, args)

  #-----------------------------------------------------------------------------
  def __copy__(self):
    return ArrayOfSimilarArrays(np.copy(self.flat), self._inner_ndim)

  #-----------------------------------------------------------------------------
  def copy(self) -> ArrayOfSimilarArrays:
    return self.__copy__()

  #-----------------------------------------------------------------------------
  @property
  def flat(self) -> np.ndarray:
    """The wrapped array, of shape ``(*shape, *inner_shape)``
    """
    if self._size == self._data.shape[0]:
      return self._data

    return self._data[:self._size]

  #-----------------------------------------------------------------------------
  @property
  def dtype(self) -> np.dtype:
    return self._data.dtype

  #-----------------------------------------------------------------------------
  @property
  def inner_ndim(self) -> int:
    return self._inner_ndim

  #-----------------------------------------------------------------------------
  @property
  def outer_ndim(self) -> int:
    return self._outer_ndim

  #-----------------------------------------------------------------------------
  @property
  def shape(self) -> tuple[int, ...]:
    """Shape of the (outer) array of element arrays
    """
    return (self._size, *self._data.shape[1:self._outer_ndim])

  #-----------------------------------------------------------------------------
  @property
  def inner_shape(self) -> tuple[int, ...]:
    """Common shape of all element arrays
    """
    return self._data.shape[self._outer_ndim:]

  #-----------------------------------------------------------------------------
  @property
  def generation(self) -> int:
    """Incremented each time the flat array is reallocated or truncated
    """
    return self._generation

  #-----------------------------------------------------------------------------
  def __len__(self):
    return self._size

  #-----------------------------------------------------------------------------
  def __iter__(self):
    for i in range(self._size):
      yield self[i]

  #-----------------------------------------------------------------------------
  def __repr__(self):
    return f"{type(self).__name__}({self.flat!r}, inner_ndim = {self._inner_ndim})"

  #-----------------------------------------------------------------------------
  def _elem_index(self, idx) -> Optional[tuple[int, ...]]:
    """Validated element index, or None if ``idx`` selects more than one element
    """
    if len(idx) > self._outer_ndim:
      raise RankMismatch(
        f"Expected at most {self._outer_ndim} indices for array of arrays: {len(idx)}")

    if len(idx) < self._outer_ndim or not all(_is_int(i) for i in idx):
      return None

    for axis, (i, n) in enumerate(zip(idx, self.shape)):
      if not 0 <= i < n:
        raise IndexOutOfRange(
          f"Index along axis {axis} must be in the range [0,{n}): {i}")

    return tuple(int(i) for i in idx)

  #-----------------------------------------------------------------------------
  def __getitem__(self, idx : Union[int, tuple, Where]):
    if not isinstance(idx, tuple):
      idx = (idx,)

    elem_idx = self._elem_index(idx)

    if elem_idx is not None:
      # trailing ellipsis returns a view even for 0-dimensional elements
      return self.flat[elem_idx + (Ellipsis,)]

    try:
      sub = self.flat[idx + (Ellipsis,)]
    except IndexError as e:
      raise IndexOutOfRange(str(e)) from e

    if sub.ndim == self._inner_ndim:
      return sub

    return ArrayOfSimilarArrays(sub, self._inner_ndim)

  #-----------------------------------------------------------------------------
  def __setitem__(self, idx, arr : np.ndarray):
    if not isinstance(idx, tuple):
      idx = (idx,)

    elem_idx = self._elem_index(idx)

    if elem_idx is None:
      raise RankMismatch(
        f"Assignment requires {self._outer_ndim} integer indices: {idx}")

    arr = np.asarray(arr)

    if arr.shape != self.inner_shape:
      raise ShapeMismatch(
        f"Assigned array must have shape {self.inner_shape}: {arr.shape}")

    self.flat[elem_idx] = arr

  #-----------------------------------------------------------------------------
  def _check_growable(self, op):
    if self._outer_ndim != 1:
      raise GrowthNotSupported(
        f"Cannot {op} array of arrays with {self._outer_ndim} outer dimensions")

  #-----------------------------------------------------------------------------
  def _reserve(self, num : int):
    size = self._size
    required = size + num

    if not self._shared and self._data.shape[0] >= required:
      return

    cap = max(required, 2*size)
    data = np.empty((cap, *self.inner_shape), dtype = self._data.dtype)
    data[:size] = self._data[:size]

    log.debug(
      f"Reallocated flat array: {self._data.shape[0]} -> {cap} elements"
      f" of shape {self.inner_shape}")

    self._data = data
    self._shared = False
    self._generation += 1

  #-----------------------------------------------------------------------------
  def push(self, arr : np.ndarray):
    """Appends an element array along the outer axis

    Raises
    ------
    GrowthNotSupported :
      If there is more than one outer axis.
    ShapeMismatch :
      If ``arr.shape != inner_shape``.
    """
    self._check_growable('push')

    arr = np.asarray(arr)

    if arr.shape != self.inner_shape:
      raise ShapeMismatch(
        f"Appended array must have shape {self.inner_shape}: {arr.shape}")

    self._reserve(1)
    self._data[self._size] = arr
    self._size += 1

  #-----------------------------------------------------------------------------
  def extend(self, arrays : Iterable[np.ndarray]):
    """Appends multiple element arrays along the outer axis
    """
    self._check_growable('extend')

    arrays = [ np.asarray(a) for a in arrays ]

    for i, arr in enumerate(arrays):
      if arr.shape != self.inner_shape:
        raise ShapeMismatch(
          f"Appended arrays must have shape {self.inner_shape}: arrays[{i}].shape = {arr.shape}")

    self._reserve(len(arrays))

    for arr in arrays:
      self._data[self._size] = arr
      self._size += 1

  #-----------------------------------------------------------------------------
  def reserve(self, num : int):
    """Reserves memory for ``num`` additional element arrays
    """
    self._check_growable('reserve')

    if num < 0:
      raise ValueError(f"Must have num >= 0: {num}")

    self._reserve(num)

  #-----------------------------------------------------------------------------
  def resize(self, num : int):
    """Changes the number of element arrays

    New element arrays are filled with zeros.
    """
    self._check_growable('resize')

    if num < 0:
      raise ValueError(f"Must have num >= 0: {num}")

    size = self._size

    if num < size:
      self._size = int(num)
      self._generation += 1

    elif num > size:
      self._reserve(num - size)
      self._data[size:num] = 0
      self._size = int(num)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
class VectorOfSimilarArrays(ArrayOfSimilarArrays):
  """Vector of equally shaped arrays, stacked along the first axis of ``flat``
  """
  def __init__(self, flat : np.ndarray[(N, ...)]):
    flat = np.asarray(flat)
    super().__init__(flat, flat.ndim - 1)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
class VectorOfSimilarVectors(ArrayOfSimilarArrays):
  """Vector of equal length vectors, the rows of ``flat``
  """
  def __init__(self, flat : np.ndarray[(N, M)]):
    flat = np.asarray(flat)

    if flat.ndim != 2:
      raise DimensionMismatch(f"Must have flat.ndim = 2: {flat.ndim}")

    super().__init__(flat, 1)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
class ArrayOfSimilarVectors(ArrayOfSimilarArrays):
  """Array of equal length vectors along the last axis of ``flat``
  """
  def __init__(self, flat : np.ndarray[(..., M)]):
    super().__init__(flat, 1)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def nestedview(
  flat : np.ndarray,
  inner_ndim : int = 1 ) -> ArrayOfSimilarArrays:
  """View ``flat`` as an array of ``inner_ndim``-dimensional arrays

  See :class:`ArrayOfSimilarArrays`.
  """
  return ArrayOfSimilarArrays(flat, inner_ndim)
