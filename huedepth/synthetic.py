"""Synthetic depth images for tests and validation."""

from typing import Iterator

import numpy as np

from .scaling import HUE_MM_SCALE


def generate_synthetic_depth(
    w: int, h: int, vmin: float, vmax: float, inc: float = 0.0
) -> np.ndarray:
    """Row-major uint16 ramp `round(vmin + inc * i)` over all pixels.

    `inc` defaults to spreading [vmin, vmax) evenly over the image.
    """
    if inc == 0.0:
        inc = (vmax - vmin) / (w * h)
    i = np.arange(w * h, dtype=np.float64)
    d = np.floor(vmin + inc * i + 0.5)
    d = np.clip(d, 0, np.iinfo(np.uint16).max)
    return d.astype(np.uint16).reshape(h, w)


def generate_synthetic_depth_images(
    n: int,
    size: int = 512,
    speed: int = 10,
    depth_scale: float = HUE_MM_SCALE,
    seed: int = 123,
) -> Iterator[np.ndarray]:
    """Moving cosine depth pattern in [0..2] meters with hard edges.

    Each frame rolls the pattern by `speed` rows and deletes random
    rectangles (depth 0) to mimic occlusion boundaries.

    Yields:
        depth: (size,size) uint16 raw depth in units of `depth_scale`
    """
    t = np.linspace(0, 1, size)
    d_col = np.cos(2 * np.pi / 0.25 * t)
    d_row = np.cos(2 * np.pi / 0.25 * t)
    d = d_col[None, :] + d_row[:, None]
    d = (d - d.min()) * 0.5  # [0..2]
    d = np.round(d / depth_scale).astype(np.uint16)

    gen = np.random.default_rng(seed)

    def rr():
        x1 = gen.integers(0, d.shape[1])
        y1 = gen.integers(0, d.shape[0])
        x2 = x1 + gen.integers(d.shape[1] - x1)
        y2 = y1 + gen.integers(d.shape[0] - y1)
        return slice(y1, y2), slice(x1, x2)

    for k in range(n):
        dmod = np.roll(d, -speed * k, axis=0)
        for _ in range(4):
            dmod[rr()] = 0
        yield dmod
