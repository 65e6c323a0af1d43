# Enable postponed evaluation of annotations
from __future__ import annotations
from partis.utils import TYPING

if TYPING:
  from typing import (
    Optional,
    Union )
  from .typing import N, M

import numpy as np

from .errors import (
  DimensionMismatch,
  LengthMismatch )
from .vector import VectorOfArrays
from .similar import ArrayOfSimilarArrays
from .functions import innersize

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def _stacked(
  X : Union[ArrayOfSimilarArrays, VectorOfArrays] ) -> np.ndarray[(N, ...)]:
  """Element arrays stacked along a leading axis, without copying
  """
  if isinstance(X, ArrayOfSimilarArrays):
    if X.outer_ndim != 1:
      raise DimensionMismatch(
        f"Expected a vector of similar arrays, outer_ndim = 1: {X.outer_ndim}")

    return X.flat

  if isinstance(X, VectorOfArrays):
    return X.flat.reshape(len(X), *innersize(X))

  raise TypeError(f"Expected nested array: {type(X).__name__}")

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def _weights(
  w : Optional[np.ndarray[(N,)]],
  n : int ) -> Optional[np.ndarray[(N,)]]:

  if w is None:
    return None

  w = np.asarray(w, dtype = np.float64)

  if w.shape != (n,):
    raise LengthMismatch(f"Weights must have shape ({n},): {w.shape}")

  return w

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def _denom(
  w : Optional[np.ndarray[(N,)]],
  n : int,
  corrected : bool ) -> float:
  # frequency weights correction
  total = n if w is None else np.sum(w)
  return total - 1 if corrected else total

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def vsum(X, w = None) -> np.ndarray:
  """Sum of the element arrays of ``X``, optionally weighted

  Parameters
  ----------
  X :
    Vector of equally shaped arrays.
  w :
    Weight of each element array.
  """
  flat = _stacked(X)
  w = _weights(w, len(flat))

  if w is None:
    return np.sum(flat, axis = 0)

  return np.tensordot(w, flat, axes = 1)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def vmean(X, w = None) -> np.ndarray:
  """Mean of the element arrays of ``X``, optionally weighted
  """
  flat = _stacked(X)
  w = _weights(w, len(flat))

  return np.average(flat, axis = 0, weights = w)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def vvar(X, w = None, corrected : bool = True) -> np.ndarray:
  """Element-wise sample variance of the element arrays of ``X``

  Parameters
  ----------
  X :
    Vector of equally shaped arrays.
  w :
    Weight of each element array, treated as frequency weights.
  corrected :
    Apply Bessel's correction.
  """
  flat = _stacked(X)
  w = _weights(w, len(flat))

  dx = flat - np.average(flat, axis = 0, weights = w)

  if w is None:
    s = np.sum(dx**2, axis = 0)
  else:
    s = np.tensordot(w, dx**2, axes = 1)

  return s / _denom(w, len(flat), corrected)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def vcov(X, w = None, corrected : bool = True) -> np.ndarray[(M, M)]:
  """Covariance matrix between the components of the element vectors of ``X``
  """
  flat = _stacked(X)

  if flat.ndim != 2:
    raise DimensionMismatch(f"Expected a vector of similar vectors: {flat.shape}")

  w = _weights(w, len(flat))

  dx = flat - np.average(flat, axis = 0, weights = w)
  wdx = dx if w is None else w[:,None] * dx

  return (wdx.T @ dx) / _denom(w, len(flat), corrected)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def vcor(X, w = None) -> np.ndarray[(M, M)]:
  """Pearson correlation matrix between the components of the element vectors
  of ``X``
  """
  cov = vcov(X, w)
  sd = np.sqrt(np.diag(cov))

  return cov / np.outer(sd, sd)
