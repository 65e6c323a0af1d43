# Enable postponed evaluation of annotations
from __future__ import annotations
from partis.utils import TYPING

if TYPING:
  from typing import Union
  from .typing import NE

import numpy as np

from .errors import ShapeMismatch
from .vector import VectorOfArrays
from .similar import ArrayOfSimilarArrays

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def flatview(A) -> np.ndarray:
  """Flat representation of a nested array

  For :class:`VectorOfArrays` the length of the returned array must not be
  changed. For :class:`ArrayOfSimilarArrays` this is the wrapped array.
  Arrays that are not nested are returned unchanged.
  """
  if isinstance(A, (VectorOfArrays, ArrayOfSimilarArrays)):
    return A.flat

  return A

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def innersize(A : Union[VectorOfArrays, ArrayOfSimilarArrays]) -> tuple[int, ...]:
  """Common shape of the element arrays of ``A``

  Raises
  ------
  ShapeMismatch :
    If the element arrays do not all have the same shape.
  """
  if isinstance(A, ArrayOfSimilarArrays):
    return A.inner_shape

  if not isinstance(A, VectorOfArrays):
    raise TypeError(f"Expected nested array: {type(A).__name__}")

  if len(A) == 0:
    raise ShapeMismatch("Inner size of an empty vector of arrays is undefined")

  shapes = A.kernel_shapes()

  if not np.all(shapes == shapes[0]):
    raise ShapeMismatch("Element arrays do not have equal shapes")

  return tuple(int(s) for s in shapes[0])

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def element_ptr(A : VectorOfArrays) -> np.ndarray[(NE,), np.dtype[np.integer]]:
  """Copy of the element pointers of ``A``
  """
  return A.element_ptr()

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def internal_element_ptr(A : VectorOfArrays) -> np.ndarray[(NE,), np.dtype[np.integer]]:
  """Internal element pointers of ``A``, which must not be modified
  """
  return A.internal_element_ptr()
