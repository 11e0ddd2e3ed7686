"""Fidelity measures between original and reconstructed depth images."""

import logging
import math

import numpy as np

_logger = logging.getLogger(__name__)

# Returned by `psnr_depth` for inputs it cannot compare.
PSNR_INVALID = -1.0


def mse_depth(a: np.ndarray, b: np.ndarray, max_i: int) -> float:
    """Mean squared error over pixels where both images are below `max_i`.

    Saturated pixels are excluded so that clipping does not dominate the
    error. Returns 0 if no pixel qualifies.
    """
    ok = (a < max_i) & (b < max_i)
    if not ok.any():
        return 0.0
    diff = a[ok].astype(np.int64) - b[ok].astype(np.int64)
    return float(np.square(diff).mean())


def psnr_depth(
    a: np.ndarray, b: np.ndarray, depth_max_m: float, depth_scale: float
) -> float:
    """Peak signal-to-noise ratio of two uint16 depth images.

    The peak is `depth_max_m / depth_scale` in raw depth units.

    Params:
        a: (H,W) uint16 original depth
        b: (H,W) uint16 reconstructed depth
        depth_max_m: maximum encoded depth in meters
        depth_scale: meters per raw depth unit

    Returns:
        psnr: in dB, `math.inf` for identical images and PSNR_INVALID if
            the images are empty, differ in shape or are not uint16.
    """
    a, b = np.asarray(a), np.asarray(b)
    if a.size == 0 or b.size == 0 or a.shape != b.shape:
        _logger.warning("cannot compare depth images %s and %s", a.shape, b.shape)
        return PSNR_INVALID
    if a.dtype != np.uint16 or b.dtype != np.uint16:
        _logger.warning("cannot compare depth images of type %s and %s", a.dtype, b.dtype)
        return PSNR_INVALID

    max_i = round(depth_max_m / depth_scale)
    if max_i <= 0:
        _logger.warning("non-positive peak intensity %d", max_i)
        return PSNR_INVALID

    mse = mse_depth(a, b, max_i)
    if mse == 0.0:
        return math.inf
    return 20.0 * math.log10(max_i) - 10.0 * math.log10(mse)
