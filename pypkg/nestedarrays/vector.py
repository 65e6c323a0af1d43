# Enable postponed evaluation of annotations
from __future__ import annotations
from partis.utils import TYPING

if TYPING:
  from typing import (
    Optional,
    Union )
  from .typing import N, NE, ND, NK, Where, ConsistencyChecks

import logging
from collections.abc import (
  Iterable,
  Sequence )
from contextlib import contextmanager
import numpy as np

from .errors import (
  IndexOutOfRange,
  RankMismatch,
  DimensionMismatch,
  ShapeMismatch,
  InvalidStructure,
  GrowthNotSupported,
  BufferPinned )
from .checks import (
  full_consistency_checks,
  get_consistency_checks )

log = logging.getLogger(__name__)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def _check_int_index(idx, size : int) -> int:
  if isinstance(idx, (bool, np.bool_)) or not isinstance(idx, (int, np.integer)):
    raise TypeError(f"Element index must be an integer: {type(idx).__name__}")

  if not 0 <= idx < size:
    raise IndexOutOfRange(f"Element index must be in the range [0,{size}): {idx}")

  return int(idx)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def _cast(arr : np.ndarray, dtype : np.dtype) -> np.ndarray:
  # empty arrays carry no values to lose, e.g. ``np.asarray([])`` is float64
  if arr.size and not np.can_cast(arr.dtype, dtype, casting = 'same_kind'):
    raise TypeError(
      f"Element data must be castable to {dtype} with 'same_kind' casting: {arr.dtype}")

  return arr.astype(dtype, copy = False)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
class PinnedViews(Sequence):
  """Unchecked element views of a pinned :class:`VectorOfArrays`

  Only valid within the ``with`` block of :meth:`VectorOfArrays.pinned`.
  """
  __slots__ = ('_data', '_elem_ptr', '_kernel_shapes')

  #-----------------------------------------------------------------------------
  def __init__(self, data, elem_ptr, kernel_shapes):
    self._data = data
    self._elem_ptr = elem_ptr
    self._kernel_shapes = kernel_shapes

  #-----------------------------------------------------------------------------
  def __len__(self):
    return len(self._elem_ptr) - 1

  #-----------------------------------------------------------------------------
  def __getitem__(self, i):
    arr = self._data[self._elem_ptr[i]:self._elem_ptr[i+1]]

    if self._kernel_shapes is not None:
      arr = arr.reshape(self._kernel_shapes[i])

    return arr

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
class VectorOfArrays(Sequence):
  """Vector of arrays with equal dimensionality, but different shapes

  The data of all elements is stored in a single contiguous flat array,
  similar to compressed sparse row format, except that 'column' indices are not
  explicitly stored. For element arrays with more than one dimension, the shape
  of each element is stored in a table of kernel shapes.

  Parameters
  ----------
  arrays :
    Initial element arrays, copied into the flat data.
  inner_ndim :
    Dimensionality of the element arrays.
    (default: ``arrays[0].ndim``, or 1 if there are no arrays)
  dtype :
    Data type of the flat data.
    (default: result type of ``arrays``, or float64)

  Notes
  -----
  Indexing with an integer returns a view into :attr:`flat`, which is only valid
  until the next call to :meth:`push`, :meth:`extend`, or :meth:`reserve` that
  needs to reallocate the data (see :attr:`generation`).
  The length of :attr:`flat` must never be changed directly.

  Examples
  --------

  .. code-block:: python

    va = VectorOfArrays([np.ones((2,3)), np.zeros((1,2))])
    va.push(np.arange(4).reshape(2,2))

    va.flat.shape == (12,)
    va.element_ptr() == [0, 6, 8, 12]

  """
  #-----------------------------------------------------------------------------
  def __init__(self,
    arrays : Optional[Iterable[np.ndarray]] = None,
    inner_ndim : Optional[int] = None,
    dtype : Optional[np.dtype] = None ):

    arrays = [] if arrays is None else [np.asarray(a) for a in arrays]

    if inner_ndim is None:
      inner_ndim = arrays[0].ndim if len(arrays) else 1

    if inner_ndim < 1:
      raise DimensionMismatch(f"Must have inner_ndim >= 1: {inner_ndim}")

    for i, arr in enumerate(arrays):
      if arr.ndim != inner_ndim:
        raise DimensionMismatch(
          f"All arrays must have ndim = {inner_ndim}: arrays[{i}].ndim = {arr.ndim}")

    if dtype is None:
      dtype = np.result_type(*arrays) if len(arrays) else np.float64

    dtype = np.dtype(dtype)
    arrays = [ _cast(arr, dtype) for arr in arrays ]

    n = len(arrays)

    elem_ptr = np.zeros(n+1, dtype = np.intp)
    np.cumsum(
      np.array([arr.size for arr in arrays], dtype = np.intp),
      out = elem_ptr[1:] )

    if n:
      data = np.concatenate([arr.reshape(-1) for arr in arrays])
    else:
      data = np.empty(0, dtype = dtype)

    kernel_shapes = None

    if inner_ndim > 1:
      kernel_shapes = np.array(
        [arr.shape for arr in arrays],
        dtype = np.intp ).reshape(n, inner_ndim)

    self._init(data, elem_ptr, kernel_shapes, inner_ndim, shared = False)

  #-----------------------------------------------------------------------------
  def _init(self, data, elem_ptr, kernel_shapes, inner_ndim, shared):
    self._data = data
    self._ptr = elem_ptr
    self._kshape = kernel_shapes if inner_ndim > 1 else None
    self._inner_ndim = inner_ndim
    self._n = len(elem_ptr) - 1
    # data is borrowed from the caller, copy before writing past the end
    self._shared = shared
    self._pins = 0
    self._generation = 0

  #-----------------------------------------------------------------------------
  @classmethod
  def _adopt(cls, data, elem_ptr, kernel_shapes, inner_ndim, shared):
    obj = cls.__new__(cls)
    obj._init(data, elem_ptr, kernel_shapes, inner_ndim, shared)
    return obj

  #-----------------------------------------------------------------------------
  @classmethod
  def from_raw(cls,
    data : np.ndarray[(ND,)],
    elem_ptr : np.ndarray[(NE,), np.dtype[np.integer]],
    kernel_shapes : Optional[np.ndarray[(NE, NK), np.dtype[np.integer]]] = None,
    checks : Union[str, ConsistencyChecks] = full_consistency_checks ) -> VectorOfArrays:
    """Creates a vector of arrays from existing flat data, without copying the data

    Parameters
    ----------
    data :
      Flat data of all elements. The array is used directly as the storage of
      the new vector of arrays, the caller must not change its length.
    elem_ptr :
      Offsets of each element, where element ``i`` is
      ``data[elem_ptr[i]:elem_ptr[i+1]]``, with ``elem_ptr[0] == 0`` and
      ``elem_ptr[-1] == len(data)``. The table is copied, later changes to
      ``elem_ptr`` (or ``kernel_shapes``) do not affect the new vector of arrays.
    kernel_shapes :
      Shape of each element array. If not given, elements are 1-dimensional.
    checks :
      Consistency checks applied to the tables, see
      :func:`~nestedarrays.checks.get_consistency_checks`.

    Raises
    ------
    InvalidStructure :
      If the tables fail the consistency checks.
    """
    checks = get_consistency_checks(checks)

    data = np.asarray(data)

    if data.ndim != 1:
      raise InvalidStructure(f"Must have data.ndim = 1: {data.ndim}")

    elem_ptr = np.asarray(elem_ptr)

    if elem_ptr.ndim != 1 or len(elem_ptr) == 0:
      raise InvalidStructure(
        f"Must have elem_ptr.ndim = 1 and len(elem_ptr) > 0: {elem_ptr.ndim}, {len(elem_ptr)}")

    if not np.issubdtype(elem_ptr.dtype, np.integer):
      raise InvalidStructure(f"Must have integral elem_ptr.dtype: {elem_ptr.dtype}")

    # tables are copied, only the flat data is shared with the caller
    elem_ptr = np.array(elem_ptr, dtype = np.intp)
    inner_ndim = 1

    if kernel_shapes is not None:
      kernel_shapes = np.asarray(kernel_shapes)

      if kernel_shapes.ndim != 2 or kernel_shapes.shape[1] < 1:
        raise InvalidStructure(
          f"Must have kernel_shapes.ndim = 2 and kernel_shapes.shape[1] > 0: {kernel_shapes.shape}")

      if kernel_shapes.size and not np.issubdtype(kernel_shapes.dtype, np.integer):
        raise InvalidStructure(f"Must have integral kernel_shapes.dtype: {kernel_shapes.dtype}")

      kernel_shapes = np.array(kernel_shapes, dtype = np.intp)
      inner_ndim = kernel_shapes.shape[1]

    checks(data, elem_ptr, kernel_shapes)

    log.debug(
      f"Adopted raw tables: {len(elem_ptr) - 1} elements, {len(data)} values,"
      f" inner_ndim = {inner_ndim}, checks = {getattr(checks, '__name__', checks)}")

    return cls._adopt(data, elem_ptr, kernel_shapes, inner_ndim, shared = True)

  #-----------------------------------------------------------------------------
  def __class_getitem__(cls, *args):
    from types import GenericAlias
    return GenericAlias(cls, args)

  #-----------------------------------------------------------------------------
  def __copy__(self):
    n = self._n
    kshape = None if self._kshape is None else np.copy(self._kshape[:n])

    return self._adopt(
      np.copy(self.flat),
      np.copy(self._ptr[:n+1]),
      kshape,
      self._inner_ndim,
      shared = False )

  #-----------------------------------------------------------------------------
  def copy(self) -> VectorOfArrays:
    """Copy with independent data and tables
    """
    return self.__copy__()

  #-----------------------------------------------------------------------------
  @property
  def flat(self) -> np.ndarray[(ND,)]:
    """Data of all element arrays as a single flat array

    The elements of the returned array may be modified (visible through the
    element views), but its length must not be changed.
    """
    size = self._ptr[self._n]

    if size == len(self._data):
      return self._data

    return self._data[:size]

  #-----------------------------------------------------------------------------
  @property
  def dtype(self) -> np.dtype:
    return self._data.dtype

  #-----------------------------------------------------------------------------
  @property
  def inner_ndim(self) -> int:
    """Dimensionality of the element arrays
    """
    return self._inner_ndim

  #-----------------------------------------------------------------------------
  @property
  def outer_ndim(self) -> int:
    return 1

  #-----------------------------------------------------------------------------
  @property
  def elem_sizes(self) -> np.ndarray[(NE,), np.dtype[np.integer]]:
    """Number of values in each element
    """
    return np.diff(self.internal_element_ptr())

  #-----------------------------------------------------------------------------
  @property
  def capacity(self) -> tuple[int, int]:
    """Number of elements, and number of flat values, that may be stored
    before the next reallocation
    """
    return len(self._ptr) - 1, len(self._data)

  #-----------------------------------------------------------------------------
  @property
  def generation(self) -> int:
    """Incremented each time the flat data is reallocated or truncated,
    invalidating previously returned element views
    """
    return self._generation

  #-----------------------------------------------------------------------------
  def element_ptr(self) -> np.ndarray[(NE,), np.dtype[np.integer]]:
    """Copy of the element pointers, may be freely modified
    """
    return np.copy(self._ptr[:self._n+1])

  #-----------------------------------------------------------------------------
  def internal_element_ptr(self) -> np.ndarray[(NE,), np.dtype[np.integer]]:
    """Internal element pointers

    The returned array must not be modified in any way, see
    :meth:`element_ptr` for a safe version.
    """
    if len(self._ptr) == self._n + 1:
      return self._ptr

    return self._ptr[:self._n+1]

  #-----------------------------------------------------------------------------
  def kernel_shapes(self) -> np.ndarray[(NE, NK), np.dtype[np.integer]]:
    """Copy of the shape of every element
    """
    if self._kshape is None:
      return self.elem_sizes.reshape(self._n, 1)

    return np.copy(self._kshape[:self._n])

  #-----------------------------------------------------------------------------
  def internal_kernel_shapes(self) -> Optional[np.ndarray[(NE, NK), np.dtype[np.integer]]]:
    """Internal table of element shapes, or None if ``inner_ndim == 1``

    The returned array must not be modified in any way.
    """
    if self._kshape is None:
      return None

    return self._kshape[:self._n]

  #-----------------------------------------------------------------------------
  def __len__(self):
    return self._n

  #-----------------------------------------------------------------------------
  def __iter__(self):
    for i in range(self._n):
      yield self._get(i)

  #-----------------------------------------------------------------------------
  def __repr__(self):
    return f"{type(self).__name__}({list(self)!r})"

  #-----------------------------------------------------------------------------
  def _elem_shape(self, i : int) -> tuple[int, ...]:
    if self._kshape is None:
      return (int(self._ptr[i+1] - self._ptr[i]),)

    return tuple(int(s) for s in self._kshape[i])

  #-----------------------------------------------------------------------------
  def _get(self, i : int) -> np.ndarray:
    arr = self._data[self._ptr[i]:self._ptr[i+1]]

    if self._kshape is not None:
      arr = arr.reshape(self._elem_shape(i))

    return arr

  #-----------------------------------------------------------------------------
  def __getitem__(self, idx : Union[int, Where]):
    if isinstance(idx, tuple):
      if len(idx) != 1:
        raise RankMismatch(f"Expected 1 index for vector of arrays: {len(idx)}")

      idx = idx[0]

    if isinstance(idx, (int, np.integer)) and not isinstance(idx, (bool, np.bool_)):
      return self._get(_check_int_index(idx, self._n))

    try:
      sel = np.arange(self._n)[idx]
    except IndexError as e:
      raise IndexOutOfRange(str(e)) from e

    if sel.ndim == 0:
      return self._get(int(sel))

    if sel.ndim != 1:
      raise RankMismatch(f"Selection must be 1-dimensional: {sel.ndim}")

    return self._select(sel)

  #-----------------------------------------------------------------------------
  def _select(self, sel : np.ndarray[(N,), np.dtype[np.integer]]) -> VectorOfArrays:
    # gather selected elements (in selection order) into a new flat array
    ptr = self.internal_element_ptr()
    starts = ptr[:-1][sel]
    counts = np.diff(ptr)[sel]

    elem_ptr = np.zeros(len(sel)+1, dtype = np.intp)
    np.cumsum(counts, out = elem_ptr[1:])

    data_idx = np.repeat(starts - elem_ptr[:-1], counts) + np.arange(elem_ptr[-1])

    kernel_shapes = None

    if self._kshape is not None:
      kernel_shapes = self._kshape[:self._n][sel]

    return self._adopt(
      self._data[data_idx],
      elem_ptr,
      kernel_shapes,
      self._inner_ndim,
      shared = False )

  #-----------------------------------------------------------------------------
  def __setitem__(self, idx : int, arr : np.ndarray):
    if isinstance(idx, tuple):
      if len(idx) != 1:
        raise RankMismatch(f"Expected 1 index for vector of arrays: {len(idx)}")

      idx = idx[0]

    i = _check_int_index(idx, self._n)
    shape = self._elem_shape(i)
    arr = np.asarray(arr)

    if arr.shape != shape:
      raise ShapeMismatch(
        f"Assigned array must have the shape of element {i}, {shape}: {arr.shape}")

    self._data[self._ptr[i]:self._ptr[i+1]] = _cast(arr, self.dtype).reshape(-1)

  #-----------------------------------------------------------------------------
  @contextmanager
  def pinned(self):
    """Guarantee that the flat data is not reallocated within a ``with`` block

    Yields
    ------
    views : PinnedViews
      Unchecked element views, which must not be used outside of the block.

    Examples
    --------

    .. code-block:: python

      with va.pinned() as views:
        total = sum(v.sum() for v in views)

    Raises
    ------
    BufferPinned :
      Calling :meth:`push`, :meth:`extend`, :meth:`reserve`, or :meth:`resize`
      while pinned.
    """
    self._pins += 1

    try:
      yield PinnedViews(
        self._data,
        self.internal_element_ptr(),
        self.internal_kernel_shapes() )

    finally:
      self._pins -= 1

  #-----------------------------------------------------------------------------
  def _check_unpinned(self, op):
    if self._pins:
      raise BufferPinned(f"Cannot {op} while pinned")

  #-----------------------------------------------------------------------------
  def _check_array(self, arr) -> np.ndarray:
    arr = np.asarray(arr)

    if arr.ndim != self._inner_ndim:
      raise DimensionMismatch(
        f"Element array must have ndim = {self._inner_ndim}: {arr.ndim}")

    return arr

  #-----------------------------------------------------------------------------
  def _reserve(self, num_elems : int, num_data : int):
    """Ensures capacity for additional elements and flat values
    """
    n = self._n
    size = int(self._ptr[n])

    ptr_size = n + 1 + num_elems
    data_size = size + num_data

    realloc_ptr = self._shared or len(self._ptr) < ptr_size
    realloc_data = self._shared or len(self._data) < data_size

    if not (realloc_ptr or realloc_data):
      return

    # NOTE: new arrays are only assigned after all allocations succeed
    ptr = self._ptr
    kshape = self._kshape
    data = self._data

    if realloc_ptr:
      # grow geometrically, by at least the requested amount
      cap = max(ptr_size, 2*(n+1))
      ptr = np.empty(cap, dtype = np.intp)
      ptr[:n+1] = self._ptr[:n+1]

      if kshape is not None:
        kshape = np.empty((cap-1, self._inner_ndim), dtype = np.intp)
        kshape[:n] = self._kshape[:n]

    if realloc_data:
      cap = max(data_size, 2*size)
      data = np.empty(cap, dtype = self._data.dtype)
      data[:size] = self._data[:size]

      log.debug(
        f"Reallocated flat data: {len(self._data)} -> {cap} values"
        f" ({self._data.dtype})")

    self._ptr = ptr
    self._kshape = kshape
    self._data = data
    self._shared = False

    if realloc_data:
      self._generation += 1

  #-----------------------------------------------------------------------------
  def _append(self, arr : np.ndarray):
    # assumes capacity was already reserved
    n = self._n
    start = self._ptr[n]
    stop = start + arr.size

    self._data[start:stop] = arr.reshape(-1)
    self._ptr[n+1] = stop

    if self._kshape is not None:
      self._kshape[n] = arr.shape

    self._n = n + 1

  #-----------------------------------------------------------------------------
  def push(self, arr : np.ndarray):
    """Appends an element array

    The data of ``arr`` is copied into :attr:`flat`.

    Raises
    ------
    DimensionMismatch :
      If ``arr.ndim != inner_ndim``
    TypeError :
      If ``arr.dtype`` cannot be cast to :attr:`dtype` with ``same_kind``
      casting, e.g. float data into an integer vector of arrays.
    """
    self._check_unpinned('push')
    arr = _cast(self._check_array(arr), self.dtype)

    self._reserve(1, arr.size)
    self._append(arr)

  #-----------------------------------------------------------------------------
  def extend(self, arrays : Iterable[np.ndarray]):
    """Appends multiple element arrays

    All arrays are validated before any are appended.
    """
    self._check_unpinned('extend')
    arrays = [ _cast(self._check_array(a), self.dtype) for a in arrays ]

    self._reserve(len(arrays), sum(a.size for a in arrays))

    for arr in arrays:
      self._append(arr)

  #-----------------------------------------------------------------------------
  def reserve(self,
    num : int,
    shape : Optional[tuple[int, ...]] = None ):
    """Reserves memory for additional element arrays

    Does not change the length or content.

    Parameters
    ----------
    num :
      Number of additional elements.
    shape :
      Maximum shape of each additional element.
      If not given, only the element pointers are reserved.
    """
    self._check_unpinned('reserve')

    if num < 0:
      raise ValueError(f"Must have num >= 0: {num}")

    size = 0

    if shape is not None:
      shape = tuple(shape)

      if len(shape) != self._inner_ndim:
        raise DimensionMismatch(
          f"Reserved shape must have {self._inner_ndim} dimensions: {shape}")

      size = int(np.prod(shape, dtype = np.intp))

    self._reserve(num, num * size)

  #-----------------------------------------------------------------------------
  def resize(self, num : int):
    """Shrinks to the first ``num`` element arrays

    Raises
    ------
    GrowthNotSupported :
      If ``num > len(self)``, since the shapes of new elements are unknown.
    """
    self._check_unpinned('resize')

    if num < 0:
      raise ValueError(f"Must have num >= 0: {num}")

    if num > self._n:
      raise GrowthNotSupported(
        f"Vector of arrays may only shrink, {self._n} -> {num}")

    if num == self._n:
      return

    self._n = int(num)
    self._generation += 1

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
class VectorOfVectors(VectorOfArrays):
  """Vector of 1-dimensional arrays of different lengths

  Parameters
  ----------
  arrays :
    Initial element vectors, copied into the flat data.
  dtype :
    Data type of the flat data.
  """
  #-----------------------------------------------------------------------------
  def __init__(self,
    arrays : Optional[Iterable[np.ndarray]] = None,
    dtype : Optional[np.dtype] = None ):

    super().__init__(arrays, inner_ndim = 1, dtype = dtype)

  #-----------------------------------------------------------------------------
  @classmethod
  def from_raw(cls,
    data : np.ndarray[(ND,)],
    elem_ptr : np.ndarray[(NE,), np.dtype[np.integer]],
    checks : Union[str, ConsistencyChecks] = full_consistency_checks ) -> VectorOfVectors:
    """Creates a vector of vectors from existing flat data, without copying

    See :meth:`VectorOfArrays.from_raw`.
    """
    return super().from_raw(data, elem_ptr, checks = checks)
