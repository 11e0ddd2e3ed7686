""" Hue value codec.

Maps a single quantized depth level in [0, HUE_ENCODER_MAX] to an 8-bit
color triple and back. Increasing levels sweep the hue circle

    black -> red -> yellow -> green -> cyan -> blue -> magenta -> (red)

with one channel moving while the others are pinned at 0 or 255. Level 0 is
reserved for invalid depth and encodes to black.

The code points are bit-compatible with the hue colorization of Intel
RealSense cameras described in

References:
        Sonoda, Tetsuri, and Anders Grunnet-Jepsen.
        "Depth image compression by colorization for Intel RealSense depth
        cameras." Intel, Rev 1.0 (2021).
"""

import enum
from typing import NamedTuple

import numpy as np

from .errors import LevelOutOfRangeError

HUE_ENCODER_MAX = 1530

# Triples whose channel sum does not exceed this are treated as black.
HUE_DECODE_MIN_SUM = 128

# Color the reference encoder emits for levels above HUE_ENCODER_MAX.
OVERFLOW_RGB = (255, 0, 0)


class ChannelOrder(enum.Enum):
    """Memory order of the three color channels."""

    RGB = "rgb"
    BGR = "bgr"  # OpenCV


class Segment(NamedTuple):
    """One piece of the hue ramp.

    Each channel is `slope * level + offset` for levels in [start, stop).
    """

    start: int
    stop: int
    name: str
    channels: tuple  # ((slope, offset),) * 3 in R,G,B order


# fmt: off
SEGMENTS = (
    Segment(   0,    1, "black",           (( 0,    0), ( 0,    0), ( 0,    0))),
    Segment(   1,  256, "red -> yellow",   (( 0,  255), ( 1,   -1), ( 0,    0))),
    Segment( 256,  511, "yellow -> green", ((-1,  511), ( 0,  255), ( 0,    0))),
    Segment( 511,  766, "green -> cyan",   (( 0,    0), ( 0,  255), ( 1, -511))),
    Segment( 766, 1021, "cyan -> blue",    (( 0,    0), (-1, 1021), ( 0,  255))),
    Segment(1021, 1276, "blue -> magenta", (( 1, -1021), ( 0,   0), ( 0,  255))),
    Segment(1276, 1531, "magenta -> red",  (( 0,  255), ( 0,    0), (-1, 1531))),
)

# Known (level, (R, G, B)) pairs, one per segment start.
CODE_POINTS = (
    (   0, (  0,   0,   0)),
    (   1, (255,   0,   0)),
    ( 256, (255, 255,   0)),
    ( 511, (  0, 255,   0)),
    ( 766, (  0, 255, 255)),
    (1021, (  0,   0, 255)),
    (1276, (255,   0, 255)),
)
# fmt: on

_SEGMENT_BINS = [s.start for s in SEGMENTS[1:]] + [SEGMENTS[-1].stop]


def _check_levels(z: np.ndarray, strict: bool):
    if z.size == 0:
        return
    if z.min() < 0:
        raise LevelOutOfRangeError(f"negative hue level {z.min()}")
    if strict and z.max() > HUE_ENCODER_MAX:
        raise LevelOutOfRangeError(
            f"hue level {z.max()} exceeds HUE_ENCODER_MAX={HUE_ENCODER_MAX}"
        )


def hue_encode(
    z: np.ndarray,
    *,
    order: ChannelOrder = ChannelOrder.RGB,
    strict: bool = True,
) -> np.ndarray:
    """Encode quantized depth levels into 8-bit color triples.

    Image-sized inputs should go through `HueCodec`, which uses a
    pre-computed lookup table built from this function.

    Params:
        z: (*,) integer array in range [0,HUE_ENCODER_MAX]
        order: channel order of the output
        strict: raise for levels above HUE_ENCODER_MAX. When False such
            levels are mapped to OVERFLOW_RGB like the reference encoder.

    Returns:
        rgb: (*,3) uint8 array
    """
    z = np.asarray(z)
    if not np.issubdtype(z.dtype, np.integer):
        raise LevelOutOfRangeError(f"hue levels must be integers, got {z.dtype}")
    _check_levels(z, strict)

    z = z.astype(np.int32)
    idx = np.digitize(z, _SEGMENT_BINS)

    o = np.empty(z.shape + (3,), dtype=np.uint8)
    o[idx == len(SEGMENTS)] = OVERFLOW_RGB
    for k, seg in enumerate(SEGMENTS):
        m = idx == k
        for c, (slope, offset) in enumerate(seg.channels):
            o[m, c] = slope * z[m] + offset

    if order is ChannelOrder.BGR:
        o = np.ascontiguousarray(o[..., ::-1])
    return o


def hue_encode_value(
    v: int,
    *,
    order: ChannelOrder = ChannelOrder.RGB,
    strict: bool = True,
) -> tuple:
    """Encode a single level, returning a 3-tuple of ints."""
    v = int(v)
    if v < 0 or (strict and v > HUE_ENCODER_MAX):
        raise LevelOutOfRangeError(f"hue level {v} outside [0,{HUE_ENCODER_MAX}]")

    rgb = OVERFLOW_RGB
    for seg in SEGMENTS:
        if seg.start <= v < seg.stop:
            rgb = tuple(slope * v + offset for slope, offset in seg.channels)
            break

    if order is ChannelOrder.BGR:
        return rgb[::-1]
    return rgb


def hue_decode(
    rgb: np.ndarray, *, order: ChannelOrder = ChannelOrder.RGB
) -> np.ndarray:
    """Decode hue-encoded 8-bit color triples into quantized depth levels.

    This is a total function: any triple that does not resolve to a hue
    segment, including near-black noise, decodes to 0.

    Params:
        rgb: (*,3) uint8 array in range [0,255]
        order: channel order of the input

    Returns:
        z: (*,) uint16 array in range [0,HUE_ENCODER_MAX]
    """
    rgb = np.asarray(rgb)
    assert rgb.shape[-1] == 3

    if order is ChannelOrder.BGR:
        rgb = rgb[..., ::-1]
    r, g, b = (rgb[..., c].astype(np.int32) for c in range(3))

    # Ties resolve with priority r > g > b
    r_max = (r >= g) & (r >= b)
    g_max = ~r_max & (g >= b)
    b_max = ~r_max & ~g_max

    z = np.select(
        [r_max & (g >= b), r_max & (g < b), g_max, b_max],
        [g - b + 1, g - b + 1531, b - r + 511, r - g + 1021],
        default=0,
    )
    z[(r + g + b) <= HUE_DECODE_MIN_SUM] = 0
    return z.astype(np.uint16)


def hue_decode_value(
    c0: int, c1: int, c2: int, *, order: ChannelOrder = ChannelOrder.RGB
) -> int:
    """Decode a single color triple given in `order`."""
    r, g, b = (c0, c1, c2) if order is ChannelOrder.RGB else (c2, c1, c0)
    r, g, b = int(r), int(g), int(b)

    if r + g + b <= HUE_DECODE_MIN_SUM:
        return 0
    if r >= g and r >= b:
        if g >= b:
            return g - b + 1  # red -> yellow
        return g - b + 1531  # magenta -> red
    if g >= b:
        return b - r + 511  # yellow -> cyan
    return r - g + 1021  # cyan -> magenta
