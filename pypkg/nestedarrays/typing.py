from typing import (
  Union,
  Callable,
  Optional )
import numpy as np
from partis.utils.typing import NewType

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++

Where = NewType('Where', Union[slice, np.ndarray[..., np.dtype[Union[np.integer, bool]]]])
"""Array indexing or boolean mask
"""

N = NewType('N', int)
"""A variable size
"""

M = NewType('M', int)
"""A variable size
"""

NE = NewType('NE', int)
"""A variable number of elements (inner arrays) of a nested array
"""

ND = NewType('ND', int)
"""A variable number of values in the flat data buffer
"""

NK = NewType('NK', int)
"""Dimensionality of the inner (element) arrays
"""

ConsistencyChecks = NewType('ConsistencyChecks', Callable[
  [ np.ndarray, np.ndarray, Optional[np.ndarray] ],
  None ])
"""Validation policy applied to the raw tables of a ragged array
"""
