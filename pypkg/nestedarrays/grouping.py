# Enable postponed evaluation of annotations
from __future__ import annotations
from partis.utils import TYPING

if TYPING:
  from typing import Union
  from .typing import N, NE

from collections.abc import Mapping
import numpy as np

from .errors import LengthMismatch
from .checks import no_consistency_checks
from .vector import VectorOfVectors

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def consgrouped_ptrs(
  keys : np.ndarray[(N, ...)] ) -> np.ndarray[(NE,), np.dtype[np.integer]]:
  """Element pointers grouping equal consecutive entries of ``keys``

  Parameters
  ----------
  keys :
    Values to group. Entries are compared along the first axis, a new group
    starts wherever an entry differs from the previous one.

  Returns
  -------
  elem_ptr :
    Offsets of each group, with ``elem_ptr[0] == 0`` and
    ``elem_ptr[-1] == len(keys)``. Equal entries that are not adjacent are
    in different groups.

  Examples
  --------

  .. code-block:: python

    keys = [1, 1, 2, 3, 3, 2, 2, 2]
    elem_ptr = consgrouped_ptrs(keys)

    elem_ptr == [0, 2, 3, 5, 8]

    data = [1, 2, 3, 4, 5, 6, 7, 8]
    VectorOfVectors.from_raw(data, elem_ptr) == [[1, 2], [3], [4, 5], [6, 7, 8]]

  """
  keys = np.asarray(keys)

  if keys.ndim == 0:
    raise ValueError(f"Must have keys.ndim > 0: {keys.ndim}")

  n = len(keys)

  if n == 0:
    return np.zeros(1, dtype = np.intp)

  # mask of the first entry of each group
  _mask = np.empty(n, dtype = bool)
  _mask[0] = True
  diff = keys[1:] != keys[:-1]

  if diff.ndim > 1:
    # multi-dimensional entries differ if any of their values differ
    diff = np.any(diff, axis = tuple(range(1, diff.ndim)))

  _mask[1:] = diff

  # NOTE: 'nonzero' returns a tuple of arrays
  return np.concatenate(np.nonzero(_mask) + ([n],)).astype(np.intp)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def consgroupedview(
  keys : np.ndarray[(N, ...)],
  target : Union[np.ndarray[(N,)], tuple, Mapping] ):
  """Groups equal consecutive entries of ``keys``, and applies the grouping to
  ``target``

  The grouping is computed once with :func:`consgrouped_ptrs`.
  No data is copied, the flat data of each result is the corresponding
  target array.

  Parameters
  ----------
  keys :
    Values to group.
  target :
    A vector, or a tuple, named tuple, or mapping of vectors, each of length
    ``len(keys)``.

  Returns
  -------
  VectorOfVectors, or a container of the same kind as ``target`` of
  VectorOfVectors.

  Raises
  ------
  ValueError :
    If ``keys`` is 0-dimensional.
  LengthMismatch :
    If any target has a different length than ``keys``.

  Examples
  --------

  .. code-block:: python

    keys = [1, 1, 2, 3, 3, 2, 2, 2]
    columns = {
      'b' : np.array([1, 2, 3, 4, 5, 6, 7, 8]),
      'c' : np.array([1.1, 2.2, 3.3, 4.4, 5.5, 6.6, 7.7, 8.8]) }

    groups = consgroupedview(keys, columns)

    list(groups['c']) == [[1.1, 2.2], [3.3], [4.4, 5.5], [6.6, 7.7, 8.8]]
    groups['c'].flat is columns['c']

  """
  keys = np.asarray(keys)
  elem_ptr = consgrouped_ptrs(keys)

  if isinstance(target, Mapping):
    names = list(target.keys())
    values = [ target[k] for k in names ]

  elif isinstance(target, tuple):
    names = getattr(target, '_fields', None)
    values = list(target)

  else:
    names = None
    values = [target]

  values = [ np.asarray(v) for v in values ]

  for i, v in enumerate(values):
    if v.ndim == 0 or len(v) != len(keys):
      name = i if names is None else names[i]
      raise LengthMismatch(
        f"Target must have length len(keys) = {len(keys)}: {name!r} -> {v.shape}")

  results = [
    VectorOfVectors.from_raw(v, elem_ptr, checks = no_consistency_checks)
    for v in values ]

  if isinstance(target, Mapping):
    return dict(zip(names, results))

  if isinstance(target, tuple):
    if names is not None:
      return type(target)(*results)

    return tuple(results)

  return results[0]
