"""Codec configuration from YAML files, mappings and command lines.

Example:

    cfg = load_config("codec.yaml", ["depth_max_m=4.0", "inverse_colorization=true"])
    codec = HueCodec.from_config(cfg)
"""

import dataclasses
import logging
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException

from .codec import CodecConfig, HueCodec
from .errors import InvalidConfigError
from .scaling import HUE_MM_SCALE
from .values import ChannelOrder

_logger = logging.getLogger(__name__)


@dataclasses.dataclass
class CodecSettings:
    """Schema and defaults for `CodecConfig` fields."""

    depth_min_m: float = 0.0
    depth_max_m: float = 2.0
    depth_scale: float = HUE_MM_SCALE
    inverse_colorization: bool = False
    channel_order: ChannelOrder = ChannelOrder.RGB


Source = Union[None, str, Path, Mapping]


def load_config(source: Source = None, overrides: Sequence[str] = ()) -> CodecConfig:
    """Merge defaults, `source` and dotlist `overrides` into a `CodecConfig`.

    Params:
        source: path of a YAML file or a mapping of settings
        overrides: `key=value` strings applied last

    Raises:
        InvalidConfigError: unknown keys, wrong types or an unusable range
    """
    try:
        cfg = OmegaConf.structured(CodecSettings)
        if isinstance(source, (str, Path)):
            _logger.debug("loading codec config from %s", source)
            cfg = OmegaConf.merge(cfg, OmegaConf.load(source))
        elif source is not None:
            cfg = OmegaConf.merge(cfg, OmegaConf.create(dict(source)))
        if overrides:
            cfg = OmegaConf.merge(cfg, OmegaConf.from_dotlist(list(overrides)))
        settings: CodecSettings = OmegaConf.to_object(cfg)
    except OmegaConfBaseException as e:
        raise InvalidConfigError(str(e)) from e

    return CodecConfig(**dataclasses.asdict(settings))


def load_config_from_cli(args: Optional[Sequence[str]] = None) -> CodecConfig:
    """Like `load_config` with overrides taken from the command line.

    A `config=<path>` argument names a YAML file merged before the others.
    """
    cli = OmegaConf.from_cli(list(args) if args is not None else None)
    source = cli.pop("config", None)
    overrides = [f"{k}={v}" for k, v in cli.items()]
    return load_config(source, overrides)


def codec_from_config(source: Source = None, overrides: Sequence[str] = ()) -> HueCodec:
    return HueCodec.from_config(load_config(source, overrides))
