"""Mapping between raw depth units and hue levels."""

import logging
import math

import numpy as np

from .errors import InvalidConfigError
from .values import HUE_ENCODER_MAX

_logger = logging.getLogger(__name__)

HUE_MM_SCALE = 0.001  # uint16 depth values in mm
HUE_CM_SCALE = 0.01  # uint16 depth values in cm

# Substituted for a zero lower bound before taking its inverse.
INVERSE_EPS = 1e-9


def check_range(depth_min_m: float, depth_max_m: float, depth_scale: float):
    """Raise `InvalidConfigError` if the depth range cannot be encoded."""
    values = (depth_min_m, depth_max_m, depth_scale)
    if not all(math.isfinite(v) for v in values):
        raise InvalidConfigError(f"non-finite depth range parameters {values}")
    if depth_scale <= 0:
        raise InvalidConfigError(f"depth_scale must be positive, got {depth_scale}")
    if depth_min_m < 0:
        raise InvalidConfigError(f"depth_min_m must be >= 0, got {depth_min_m}")
    if depth_max_m <= depth_min_m:
        raise InvalidConfigError(
            f"depth_max_m ({depth_max_m}) must exceed depth_min_m ({depth_min_m})"
        )


class DepthRange:
    """Normalizes raw depth to hue levels and back.

    Raw depth values are integers in sensor units, `depth_scale` meters per
    unit. Depth in [depth_min_m, depth_max_m] is spread linearly over the
    levels [0, HUE_ENCODER_MAX]. With `inverse` the spreading happens in
    disparity (1/depth) space instead, which yields finer quantization for
    close depths and coarser quantization for far depths.

    Raw depth 0 means no measurement and always maps to level 0 and back.
    """

    def __init__(
        self,
        depth_min_m: float,
        depth_max_m: float,
        depth_scale: float = HUE_MM_SCALE,
        inverse: bool = False,
        ftype: np.dtype = np.float32,
    ):
        check_range(depth_min_m, depth_max_m, depth_scale)
        self.depth_min_m = depth_min_m
        self.depth_max_m = depth_max_m
        self.depth_scale = depth_scale
        self.inverse = inverse
        self.ftype = np.dtype(ftype).type

        min_u = depth_min_m / depth_scale
        max_u = depth_max_m / depth_scale
        if inverse:
            if min_u == 0.0:
                _logger.debug("zero depth minimum, using %g before inversion", INVERSE_EPS)
                min_u = INVERSE_EPS
            min_u = 1.0 / min_u
            max_u = 1.0 / max_u

        # Negative under inversion
        self.depth_min_u = min_u
        self.depth_max_u = max_u
        self.depth_range_u = max_u - min_u

    def __repr__(self):
        return (
            f"DepthRange(depth_min_m={self.depth_min_m}, depth_max_m={self.depth_max_m}, "
            f"depth_scale={self.depth_scale}, inverse={self.inverse})"
        )

    def to_level(self, depth: np.ndarray) -> np.ndarray:
        """Quantize raw depth to hue levels.

        Depth outside the configured range is clamped to level 0 (below)
        or HUE_ENCODER_MAX (above).

        Params:
            depth: (*,) raw depth array, 0 marks invalid samples

        Returns:
            z: (*,) uint16 array in range [0,HUE_ENCODER_MAX]
        """
        depth = np.asarray(depth)
        ftype = self.ftype
        valid = depth != 0
        d = depth.astype(ftype)
        if self.inverse:
            with np.errstate(divide="ignore"):
                d = np.where(valid, ftype(1) / d, ftype(0))

        d = (d - ftype(self.depth_min_u)) / ftype(self.depth_range_u)
        d = np.clip(d, 0.0, 1.0)
        # Round half away from zero
        z = np.floor(ftype(HUE_ENCODER_MAX) * d + ftype(0.5)).astype(np.uint16)
        z[~valid] = 0
        return z

    def from_level(self, z: np.ndarray) -> np.ndarray:
        """Restore raw depth from hue levels.

        Params:
            z: (*,) hue levels, 0 and levels above HUE_ENCODER_MAX are invalid

        Returns:
            depth: (*,) uint16 raw depth array, 0 where invalid
        """
        z = np.asarray(z)
        ftype = self.ftype
        valid = (z > 0) & (z <= HUE_ENCODER_MAX)

        d = ftype(self.depth_min_u) + (
            ftype(self.depth_range_u) * z.astype(ftype) / ftype(HUE_ENCODER_MAX)
        )
        if self.inverse:
            with np.errstate(divide="ignore"):
                d = np.where(valid, ftype(1) / d, ftype(0))

        info = np.iinfo(np.uint16)
        d = np.clip(np.floor(d + ftype(0.5)), info.min, info.max)
        return np.where(valid, d, 0).astype(np.uint16)
