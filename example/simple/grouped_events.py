from partis.utils import init_logging

init_logging(
  'debug',
  # autodetect color
  with_color = None )

import logging
import numpy as np
from nestedarrays import (
  VectorOfArrays,
  consgroupedview,
  deepgetindex,
  nestedview,
  vmean )

log = logging.getLogger(__name__)

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def run_grouped_events():
  rng = np.random.default_rng(1234)

  # sorted event id of each recorded hit
  event = np.sort(rng.integers(0, 8, size = 40))

  hits = {
    'channel' : rng.integers(0, 16, size = len(event)),
    'energy' : rng.exponential(2.0, size = len(event)) }

  groups = consgroupedview(event, hits)

  for i, (channel, energy) in enumerate(zip(groups['channel'], groups['energy'])):
    log.info(f"event {event[groups['energy'].element_ptr()[i]]}: {len(channel)} hits, {energy.sum():.3f} total energy")

  # calibration applied to the flat data is visible in every group
  groups['energy'].flat[:] *= 1.05
  assert groups['energy'].flat is hits['energy']

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def run_image_stack():
  images = VectorOfArrays(inner_ndim = 2)
  images.reserve(4, (32, 32))

  for n in (8, 16, 32, 24):
    images.push(np.full((n, n), float(n)))

  log.info(f"kernel shapes: {images.kernel_shapes().tolist()}")
  log.info(f"pixel (3, 5, 7): {deepgetindex(images, 3, 5, 7)}")

  images.resize(2)
  log.info(f"after resize: {len(images)} images, {len(images.flat)} values")

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
def run_similar_vectors():
  samples = nestedview(np.random.default_rng(0).normal(size = (1000, 3)), 1)

  log.info(f"mean of {len(samples)} samples: {vmean(samples)}")

#+++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++++
if __name__ == '__main__':
  run_grouped_events()
  run_image_stack()
  run_similar_vectors()
