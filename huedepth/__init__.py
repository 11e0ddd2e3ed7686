from .codec import CodecConfig, HueCodec, depth2rgb, rgb2depth
from .errors import (
    HueCodecError,
    InvalidConfigError,
    InvalidInputError,
    LevelOutOfRangeError,
)
from .metrics import PSNR_INVALID, mse_depth, psnr_depth
from .scaling import HUE_CM_SCALE, HUE_MM_SCALE, DepthRange
from .values import (
    CODE_POINTS,
    HUE_ENCODER_MAX,
    SEGMENTS,
    ChannelOrder,
    hue_decode,
    hue_decode_value,
    hue_encode,
    hue_encode_value,
)

__version__ = "0.1.0"
