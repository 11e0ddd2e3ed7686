""" Hue-based depth to color compression codec.

Converts 16-bit single-channel depth images into 8-bit, three-channel color
images and back. The color images hold roughly 10.5 bits of depth
information, but survive further compression by standard lossy image and
video codecs with only small artifacts.

References:
        Sonoda, Tetsuri, and Anders Grunnet-Jepsen.
        "Depth image compression by colorization for Intel RealSense depth
        cameras." Intel, Rev 1.0 (2021).
"""

import dataclasses
import functools
import logging
from typing import Optional, Tuple

import numpy as np

from .errors import InvalidInputError
from .scaling import HUE_MM_SCALE, DepthRange, check_range
from .values import HUE_ENCODER_MAX, ChannelOrder, hue_decode, hue_encode

_logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class CodecConfig:
    """Parameters shared by the encoding and the decoding side.

    Both sides must use identical values, otherwise decoded depth is
    silently rescaled.
    """

    depth_min_m: float
    depth_max_m: float
    depth_scale: float = HUE_MM_SCALE
    inverse_colorization: bool = False
    channel_order: ChannelOrder = ChannelOrder.RGB

    def __post_init__(self):
        check_range(self.depth_min_m, self.depth_max_m, self.depth_scale)


def _check_image(x, dtype, ndim: int, what: str):
    if not isinstance(x, np.ndarray):
        raise InvalidInputError(f"{what} must be a numpy array, got {type(x).__name__}")
    if x.size == 0:
        raise InvalidInputError(f"{what} is empty")
    if x.dtype != dtype:
        raise InvalidInputError(f"{what} must be {np.dtype(dtype)}, got {x.dtype}")
    if x.ndim != ndim or (ndim == 3 and x.shape[-1] != 3):
        raise InvalidInputError(f"{what} has invalid shape {x.shape}")


class HueCodec:
    """Encodes depth images to hue color images and back.

    The encoder precomputes a lookup table of all HUE_ENCODER_MAX+1 colors
    at construction; decoding evaluates the closed-form inverse directly.
    Instances are immutable and may be shared between threads, output
    buffers may not.

    Params:
        depth_min_m: lower bound of the encoded depth range in meters
        depth_max_m: upper bound of the encoded depth range in meters
        depth_scale: meters per raw depth unit
        inverse_colorization: encode disparity (1/depth) instead of depth
        channel_order: channel order of the color images
        use_lut: encode through the lookup table or compute on the fly
    """

    def __init__(
        self,
        depth_min_m: float,
        depth_max_m: float,
        depth_scale: float = HUE_MM_SCALE,
        inverse_colorization: bool = False,
        *,
        channel_order: ChannelOrder = ChannelOrder.RGB,
        use_lut: bool = True,
    ):
        self._config = CodecConfig(
            depth_min_m,
            depth_max_m,
            depth_scale,
            inverse_colorization,
            ChannelOrder(channel_order),
        )
        self._range = DepthRange(
            depth_min_m, depth_max_m, depth_scale, inverse=inverse_colorization
        )
        self.use_lut = use_lut

        lut = hue_encode(
            np.arange(0, HUE_ENCODER_MAX + 1, dtype=np.uint16),
            order=self._config.channel_order,
        )
        lut.setflags(write=False)
        self._enc_lut = lut
        _logger.debug("built encoder lookup table for %r", self._range)

    @classmethod
    def from_config(cls, config: CodecConfig, use_lut: bool = True) -> "HueCodec":
        return cls(
            config.depth_min_m,
            config.depth_max_m,
            config.depth_scale,
            config.inverse_colorization,
            channel_order=config.channel_order,
            use_lut=use_lut,
        )

    @property
    def config(self) -> CodecConfig:
        return self._config

    @property
    def depth_min_m(self) -> float:
        return self._config.depth_min_m

    @property
    def depth_max_m(self) -> float:
        return self._config.depth_max_m

    @property
    def depth_scale(self) -> float:
        return self._config.depth_scale

    @property
    def inverse_colorization(self) -> bool:
        return self._config.inverse_colorization

    @property
    def channel_order(self) -> ChannelOrder:
        return self._config.channel_order

    @property
    def range(self) -> DepthRange:
        return self._range

    @property
    def enc_lut(self) -> np.ndarray:
        """(HUE_ENCODER_MAX+1,3) read-only uint8 color per level."""
        return self._enc_lut

    def __repr__(self):
        c = self._config
        return (
            f"HueCodec({c.depth_min_m}, {c.depth_max_m}, {c.depth_scale}, "
            f"{c.inverse_colorization}, channel_order={c.channel_order})"
        )

    def encode_levels(self, depth: np.ndarray) -> np.ndarray:
        """Quantize raw depth to hue levels, see `DepthRange.to_level`."""
        return self._range.to_level(depth)

    def decode_levels(self, z: np.ndarray) -> np.ndarray:
        """Restore raw depth from hue levels, see `DepthRange.from_level`."""
        return self._range.from_level(z)

    def encode(
        self, depth: np.ndarray, output: Optional[np.ndarray] = None
    ) -> np.ndarray:
        """Compress depth to color.

        Params:
            depth: (H,W) uint16 raw depth image, 0 marks invalid samples
            output: optional (H,W,3) uint8 array that receives the result.
                Reused when shape and dtype fit, otherwise ignored.

        Returns:
            rgb: (H,W,3) uint8 color image

        Raises:
            InvalidInputError: `depth` is empty or not a (H,W) uint16 array.
                Nothing is written to `output` in that case.
        """
        _check_image(depth, np.uint16, 2, "depth image")
        # `depth` is fully consumed into `z` before `output` is touched,
        # so `output` may alias the input.
        z = self._range.to_level(depth)

        output = self._reusable(output, depth.shape + (3,), np.uint8)
        if not self.use_lut:
            rgb = hue_encode(z, order=self._config.channel_order)
            if output is None:
                return rgb
            np.copyto(output, rgb)
            return output

        if output is None:
            return np.ascontiguousarray(self._enc_lut[z])
        np.take(self._enc_lut, z, axis=0, out=output)
        return output

    def decode(
        self, rgb: np.ndarray, output: Optional[np.ndarray] = None
    ) -> np.ndarray:
        """Decompress color to depth.

        Colors that do not belong to the hue ramp, e.g. compression noise
        near black, decode to 0 (invalid depth).

        Params:
            rgb: (H,W,3) uint8 color image
            output: optional (H,W) uint16 array that receives the result.
                Reused when shape and dtype fit, otherwise ignored.

        Returns:
            depth: (H,W) uint16 raw depth image

        Raises:
            InvalidInputError: `rgb` is empty or not a (H,W,3) uint8 array.
                Nothing is written to `output` in that case.
        """
        _check_image(rgb, np.uint8, 3, "color image")
        z = hue_decode(rgb, order=self._config.channel_order)
        depth = self._range.from_level(z)

        output = self._reusable(output, rgb.shape[:2], np.uint16)
        if output is None:
            return depth
        np.copyto(output, depth)
        return output

    def _reusable(self, output, shape, dtype) -> Optional[np.ndarray]:
        if output is None:
            return None
        if output.shape != shape or output.dtype != dtype:
            _logger.debug(
                "ignoring output buffer %s/%s, need %s/%s",
                output.shape,
                output.dtype,
                shape,
                np.dtype(dtype),
            )
            return None
        return output


@functools.lru_cache(maxsize=16)
def _cached_codec(zrange, depth_scale, inv_depth, channel_order) -> HueCodec:
    return HueCodec(zrange[0], zrange[1], depth_scale, inv_depth, channel_order=channel_order)


def depth2rgb(
    d: np.ndarray,
    zrange: Tuple[float, float],
    *,
    depth_scale: float = HUE_MM_SCALE,
    inv_depth: bool = False,
    channel_order: ChannelOrder = ChannelOrder.RGB,
    output: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Compress depth to RGB

    The colorization process requires fitting a 16-bit depth map into a 10.5-bit color image.
    We limit the depth range to `zrange` and re-normalize before colorization.

    With disparity encoding we actually encode 1/depth with the property that for closer depths
    the quantization is finer and coarser for larger depth values.

    Params:
        d: (H,W) uint16 raw depth map
        zrange: (min, max) depth in meters mapped to [0..HUE_ENCODER_MAX]
        depth_scale: meters per raw depth unit
        inv_depth: colorizes 1/depth with finer quantization for closer depths
        output: optional buffer to write the result to

    Returns:
        rgb: color encoded depth map
    """
    codec = _cached_codec(tuple(zrange), depth_scale, inv_depth, channel_order)
    return codec.encode(d, output=output)


def rgb2depth(
    rgb: np.ndarray,
    zrange: Tuple[float, float],
    *,
    depth_scale: float = HUE_MM_SCALE,
    inv_depth: bool = False,
    channel_order: ChannelOrder = ChannelOrder.RGB,
    output: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Decompress RGB to depth

    See `depth2rgb` for explanation of parameters.

    Returns:
        d: (H,W) uint16 raw depth map
    """
    codec = _cached_codec(tuple(zrange), depth_scale, inv_depth, channel_order)
    return codec.decode(rgb, output=output)
