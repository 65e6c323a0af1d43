from .errors import (
  NestedArrayError,
  IndexOutOfRange,
  RankMismatch,
  DimensionMismatch,
  ShapeMismatch,
  InvalidStructure,
  GrowthNotSupported,
  LengthMismatch,
  BufferPinned )
from .checks import (
  no_consistency_checks,
  simple_consistency_checks,
  full_consistency_checks,
  get_consistency_checks )
from .vector import (
  VectorOfArrays,
  VectorOfVectors )
from .similar import (
  ArrayOfSimilarArrays,
  VectorOfSimilarArrays,
  VectorOfSimilarVectors,
  ArrayOfSimilarVectors,
  nestedview )
from .functions import (
  flatview,
  innersize,
  element_ptr,
  internal_element_ptr )
from .grouping import (
  consgrouped_ptrs,
  consgroupedview )
from .deep import (
  is_nested,
  outer_rank,
  deepgetindex,
  deepsetindex,
  deepview,
  innermap,
  deepmap )
from .stats import (
  vsum,
  vmean,
  vvar,
  vcov,
  vcor )
