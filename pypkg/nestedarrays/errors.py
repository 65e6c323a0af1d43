#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
class NestedArrayError(Exception):
  """Base class of all errors raised by nested array operations
  """
  pass

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
class IndexOutOfRange(NestedArrayError, IndexError):
  """Element index outside the valid range of a nested array
  """
  pass

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
class RankMismatch(NestedArrayError, IndexError):
  """Number of index components does not match the rank being indexed
  """
  pass

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
class DimensionMismatch(NestedArrayError, ValueError):
  """Arrays of inconsistent dimensionality
  """
  pass

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
class ShapeMismatch(NestedArrayError, ValueError):
  """Assigned data does not have the shape of the element it replaces
  """
  pass

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
class InvalidStructure(NestedArrayError, ValueError):
  """Raw data, element pointers, or kernel shapes failed a consistency check
  """
  pass

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
class GrowthNotSupported(NestedArrayError, ValueError):
  """Requested growth where the shape of new elements cannot be determined
  """
  pass

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
class LengthMismatch(NestedArrayError, ValueError):
  """Sequences expected to have equal length do not
  """
  pass

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
class BufferPinned(NestedArrayError, RuntimeError):
  """Structural mutation attempted while the buffer is pinned
  """
  pass
