# Enable postponed evaluation of annotations
from __future__ import annotations
from partis.utils import TYPING

if TYPING:
  from typing import (
    Optional,
    Union )
  from .typing import N, NE, ND, NK, ConsistencyChecks

import numpy as np
from .errors import InvalidStructure

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def _first(mask : np.ndarray[(N,), np.dtype[bool]]) -> Optional[int]:
  """Index of the first ``True`` entry, or None
  """
  idx = np.flatnonzero(mask)

  if len(idx):
    return int(idx[0])

  return None

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def no_consistency_checks(
  data : np.ndarray[(ND,)],
  elem_ptr : np.ndarray[(NE,), np.dtype[np.integer]],
  kernel_shapes : Optional[np.ndarray[(NE, NK), np.dtype[np.integer]]] = None ):
  """Performs no validation of ragged array tables

  Only appropriate where the tables are known to be consistent by
  construction.
  """
  pass

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def simple_consistency_checks(
  data : np.ndarray[(ND,)],
  elem_ptr : np.ndarray[(NE,), np.dtype[np.integer]],
  kernel_shapes : Optional[np.ndarray[(NE, NK), np.dtype[np.integer]]] = None ):
  """Validates the element pointers against the data buffer

  Parameters
  ----------
  data :
    Flat data of all elements.
  elem_ptr :
    Offsets into ``data``, where element ``i`` is
    ``data[elem_ptr[i]:elem_ptr[i+1]]``.
  kernel_shapes :
    Shape of each element, if the elements are multi-dimensional.

  Raises
  ------
  InvalidStructure :
    On the first violated condition:

    * ``elem_ptr[0] == 0``
    * ``elem_ptr[i] <= elem_ptr[i+1]``
    * ``elem_ptr[-1] == len(data)``
    * ``len(kernel_shapes) == len(elem_ptr) - 1``

  Notes
  -----
  The size of each element is not compared with its kernel shape, see
  :func:`full_consistency_checks`.
  """

  if elem_ptr[0] != 0:
    raise InvalidStructure(f"Must have elem_ptr[0] = 0: {elem_ptr[0]}")

  i = _first(elem_ptr[1:] < elem_ptr[:-1])

  if i is not None:
    raise InvalidStructure(
      f"Must have elem_ptr[i] <= elem_ptr[i+1]: elem_ptr[{i}] = {elem_ptr[i]}"
      f" > elem_ptr[{i+1}] = {elem_ptr[i+1]}")

  if elem_ptr[-1] != len(data):
    raise InvalidStructure(
      f"Must have elem_ptr[-1] = len(data) = {len(data)}: {elem_ptr[-1]}")

  if kernel_shapes is not None and len(kernel_shapes) != len(elem_ptr) - 1:
    raise InvalidStructure(
      f"Must have len(kernel_shapes) = len(elem_ptr) - 1 = {len(elem_ptr) - 1}:"
      f" {len(kernel_shapes)}")

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def full_consistency_checks(
  data : np.ndarray[(ND,)],
  elem_ptr : np.ndarray[(NE,), np.dtype[np.integer]],
  kernel_shapes : Optional[np.ndarray[(NE, NK), np.dtype[np.integer]]] = None ):
  """Validates the element pointers, and that each element's kernel shape
  matches its size

  Performs all of :func:`simple_consistency_checks`, and additionally
  ``prod(kernel_shapes[i]) == elem_ptr[i+1] - elem_ptr[i]``.

  Raises
  ------
  InvalidStructure :
    On the first violated condition.
  """

  simple_consistency_checks(data, elem_ptr, kernel_shapes)

  if kernel_shapes is None:
    return

  i = _first(np.any(kernel_shapes < 0, axis = 1))

  if i is not None:
    raise InvalidStructure(
      f"Must have non-negative kernel_shapes[{i}]: {tuple(kernel_shapes[i])}")

  sizes = np.prod(kernel_shapes, axis = 1, dtype = np.intp)
  counts = np.diff(elem_ptr)

  i = _first(sizes != counts)

  if i is not None:
    raise InvalidStructure(
      f"Must have prod(kernel_shapes[{i}]) = elem_ptr[{i+1}] - elem_ptr[{i}]"
      f" = {counts[i]}: {tuple(kernel_shapes[i])}")

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
CONSISTENCY_CHECKS = {
  'none' : no_consistency_checks,
  'simple' : simple_consistency_checks,
  'full' : full_consistency_checks }

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def get_consistency_checks(
  checks : Union[str, ConsistencyChecks, None] ) -> ConsistencyChecks:
  """Resolves a consistency checking policy

  Parameters
  ----------
  checks :
    One of ``'none'``, ``'simple'``, ``'full'``, or a callable with the
    signature ``checks(data, elem_ptr, kernel_shapes)``.
    (default: :func:`full_consistency_checks`)
  """
  if checks is None:
    return full_consistency_checks

  if callable(checks):
    return checks

  try:
    return CONSISTENCY_CHECKS[checks]
  except (KeyError, TypeError):
    raise ValueError(
      f"'checks' must be one of {list(CONSISTENCY_CHECKS)}, or callable: {checks!r}") from None
