class HueCodecError(Exception):
    """Base class of all errors raised by huedepth."""


class InvalidInputError(HueCodecError, ValueError):
    """Empty buffer, wrong dtype or wrong shape passed to the codec."""


class InvalidConfigError(HueCodecError, ValueError):
    """Depth range or scale that cannot be used for encoding."""


class LevelOutOfRangeError(HueCodecError, ValueError):
    """Hue level outside [0, HUE_ENCODER_MAX]."""
