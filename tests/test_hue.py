import io
import math

import numpy as np
import pytest

import huedepth as hd
from huedepth.codec import _cached_codec
from huedepth.synthetic import generate_synthetic_depth, generate_synthetic_depth_images


def identity_codec(**kwargs):
    # depth units map 1:1 to hue levels
    return hd.HueCodec(0.0, hd.HUE_ENCODER_MAX, 1.0, False, **kwargs)


@pytest.mark.parametrize("use_lut", [True, False])
@pytest.mark.parametrize("order", list(hd.ChannelOrder))
def test_canonical(use_lut, order):
    codec = identity_codec(channel_order=order, use_lut=use_lut)

    # 40x40 ramp touching every level in [0,HUE_ENCODER_MAX]
    dim = math.ceil(math.sqrt(hd.HUE_ENCODER_MAX))
    d = generate_synthetic_depth(dim, dim, 0, hd.HUE_ENCODER_MAX + 1)
    assert set(np.unique(d)) == set(range(hd.HUE_ENCODER_MAX + 1))

    rgb = codec.encode(d)
    assert rgb.shape == d.shape + (3,)
    assert rgb.dtype == np.uint8
    np.testing.assert_array_equal(codec.decode(rgb), d)
    np.testing.assert_array_equal(rgb, hd.hue_encode(d, order=order))


def test_channel_order():
    d = np.arange(1, 1531, dtype=np.uint16).reshape(30, 51)
    rgb = identity_codec().encode(d)
    bgr = identity_codec(channel_order=hd.ChannelOrder.BGR).encode(d)
    np.testing.assert_array_equal(bgr, rgb[..., ::-1])
    for level, color in hd.CODE_POINTS[1:]:
        assert tuple(rgb.reshape(-1, 3)[level - 1]) == color


def test_enc_lut():
    codec = hd.HueCodec(0.3, 10.0)
    assert codec.enc_lut.shape == (hd.HUE_ENCODER_MAX + 1, 3)
    np.testing.assert_array_equal(
        codec.enc_lut, hd.hue_encode(np.arange(hd.HUE_ENCODER_MAX + 1))
    )
    with pytest.raises(ValueError):
        codec.enc_lut[0] = 1


def test_config_roundtrip():
    cfg = hd.CodecConfig(0.3, 10.0, hd.HUE_CM_SCALE, True, hd.ChannelOrder.BGR)
    codec = hd.HueCodec.from_config(cfg)
    assert codec.config == cfg
    assert codec.depth_min_m == 0.3
    assert codec.depth_max_m == 10.0
    assert codec.depth_scale == hd.HUE_CM_SCALE
    assert codec.inverse_colorization
    assert codec.channel_order is hd.ChannelOrder.BGR
    assert codec.range.inverse

    with pytest.raises(hd.InvalidConfigError):
        hd.CodecConfig(2.0, 1.0)
    with pytest.raises(hd.InvalidConfigError):
        hd.HueCodec(0.0, 1.0, 0.0)


@pytest.mark.parametrize("shape", [(1, 512), (480, 640)])
@pytest.mark.parametrize("zrange", [(0.0, 2.0), (0.5, 2.0)])
@pytest.mark.parametrize("inv_depth", [True, False])
@pytest.mark.parametrize("seed", [123, 456])
def test_enc_dec_variants(seed, shape, zrange, inv_depth):
    rng = np.random.default_rng(seed)
    codec = hd.HueCodec(zrange[0], zrange[1], hd.HUE_MM_SCALE, inv_depth)

    lo, hi = int(zrange[0] * 1000) + 1, int(zrange[1] * 1000)
    d = rng.integers(lo, hi, size=shape, dtype=np.uint16)
    d[0, :10] = 0
    dr = codec.decode(codec.encode(d))

    assert dr.dtype == np.uint16
    np.testing.assert_array_equal(dr[0, :10], 0)
    err = abs(dr.astype(int) - d.astype(int))
    if not inv_depth:
        # step of 2000/1530 units plus rounding
        assert err.max() <= 1
    elif zrange[0] > 0:
        assert (err / np.maximum(d, 1)).max() < 0.01


def test_inverse_zero_min():
    # degenerate lower bound is replaced, not rejected
    codec = hd.HueCodec(0.0, 2.0, hd.HUE_MM_SCALE, True)
    d = np.arange(0, 4000, dtype=np.uint16).reshape(40, 100)
    z = codec.encode_levels(d)
    assert z[0, 0] == 0
    # every valid depth lands on the last level
    assert (z.ravel()[1:] == hd.HUE_ENCODER_MAX).all()
    dr = codec.decode(codec.encode(d))
    assert dr.shape == d.shape


def test_clamping():
    codec = hd.HueCodec(0.5, 2.0)
    d = np.array([[0, 100, 499, 500, 2000, 2001, 60000]], dtype=np.uint16)
    z = codec.encode_levels(d)
    np.testing.assert_array_equal(z, [[0, 0, 0, 0, 1530, 1530, 1530]])
    np.testing.assert_array_equal(
        codec.decode_levels(z), [[0, 0, 0, 0, 2000, 2000, 2000]]
    )


def test_output_reuse():
    codec = hd.HueCodec(0.0, 2.0)
    d = next(generate_synthetic_depth_images(1, size=64))

    out = np.zeros(d.shape + (3,), np.uint8)
    rgb = codec.encode(d, output=out)
    assert rgb is out
    np.testing.assert_array_equal(out, codec.encode(d))

    dout = np.zeros(d.shape, np.uint16)
    dr = codec.decode(rgb, output=dout)
    assert dr is dout
    np.testing.assert_array_equal(dout, codec.decode(rgb))

    # ill-fitting buffers are left alone
    wrong = np.full((3, 3, 3), 7, np.uint8)
    rgb = codec.encode(d, output=wrong)
    assert rgb is not wrong
    assert (wrong == 7).all()
    wrong = np.full(d.shape, 7, np.float32)
    dr = codec.decode(rgb, output=wrong)
    assert dr is not wrong
    assert (wrong == 7).all()


def test_output_aliasing():
    codec = identity_codec()
    h, w = 16, 32
    src = np.arange(1, h * w + 1, dtype=np.uint16).reshape(h, w)

    buf = np.zeros(h * w * 3, np.uint8)
    depth = buf[: h * w * 2].view(np.uint16).reshape(h, w)
    depth[:] = src
    rgb = codec.encode(depth, output=buf.reshape(h, w, 3))
    assert np.shares_memory(rgb, depth)
    np.testing.assert_array_equal(rgb, codec.encode(src))

    out = buf[: h * w * 2].view(np.uint16).reshape(h, w)
    dr = codec.decode(buf.reshape(h, w, 3), output=out)
    np.testing.assert_array_equal(dr, src)


@pytest.mark.parametrize(
    "bad",
    [
        np.zeros((0, 0), np.uint16),
        np.zeros((4, 4), np.float32),
        np.zeros((4, 4), np.uint8),
        np.zeros((4, 4, 3), np.uint16),
        [[1, 2], [3, 4]],
    ],
)
def test_encode_invalid_input(bad):
    codec = hd.HueCodec(0.0, 2.0)
    out = np.full((4, 4, 3), 7, np.uint8)
    with pytest.raises(hd.InvalidInputError):
        codec.encode(bad, output=out)
    assert (out == 7).all()


@pytest.mark.parametrize(
    "bad",
    [
        np.zeros((0, 0, 3), np.uint8),
        np.zeros((4, 4), np.uint8),
        np.zeros((4, 4, 4), np.uint8),
        np.zeros((4, 4, 3), np.uint16),
        np.zeros((4, 4, 3), np.float32),
    ],
)
def test_decode_invalid_input(bad):
    codec = hd.HueCodec(0.0, 2.0)
    out = np.full((4, 4), 7, np.uint16)
    with pytest.raises(hd.InvalidInputError):
        codec.decode(bad, output=out)
    assert (out == 7).all()


def test_depth2rgb():
    _cached_codec.cache_clear()
    r = (0.0, 2.0)
    d = np.random.default_rng(0).integers(0, 2000, (64, 64), dtype=np.uint16)
    rgb = hd.depth2rgb(d, r)
    dr = hd.rgb2depth(rgb, r)
    assert abs(dr.astype(int) - d).max() <= 1
    assert _cached_codec.cache_info().currsize == 1

    rgb = hd.depth2rgb(d + 100, (0.1, 2.1), inv_depth=True)
    dr = hd.rgb2depth(rgb, (0.1, 2.1), inv_depth=True)
    assert _cached_codec.cache_info().currsize == 2
    assert dr.shape == d.shape


def test_psnr_synthetic():
    codec = hd.HueCodec(0.0, 2.0)
    for d in generate_synthetic_depth_images(3, size=128):
        dr = codec.decode(codec.encode(d))
        assert hd.psnr_depth(d, dr, codec.depth_max_m, codec.depth_scale) > 60.0


def test_lossless_video():
    av = pytest.importorskip("av")

    codec = hd.HueCodec(0.0, 2.0)
    din = list(generate_synthetic_depth_images(5, size=64))
    ded = [codec.decode(codec.encode(d)) for d in din]

    file = io.BytesIO()
    output = av.open(file, "w", format="matroska")
    stream = output.add_stream("ffv1", rate=30)
    stream.pix_fmt = "bgr0"  # packed rgb, rgb24 <-> yuv is lossy
    stream.width = din[0].shape[1]
    stream.height = din[0].shape[0]
    for i, d in enumerate(din):
        frame = av.VideoFrame.from_ndarray(codec.encode(d), format="rgb24")
        frame.pts = i
        output.mux(stream.encode(frame))
    output.mux(stream.encode(None))
    output.close()

    file.seek(0)
    container = av.open(file, "r")
    dr = [
        codec.decode(f.to_ndarray(format="rgb24"))
        for f in container.decode(video=0)
    ]
    container.close()

    assert len(dr) == len(din)
    for a, b in zip(ded, dr):
        np.testing.assert_array_equal(a, b)


@pytest.mark.parametrize("shape", [(480, 640), (1080, 1920)])
@pytest.mark.parametrize("use_lut", [True, False])
def test_enc_perf(benchmark, shape, use_lut):
    d = np.random.default_rng(0).integers(0, 2000, shape, dtype=np.uint16)
    codec = hd.HueCodec(0.0, 2.0, use_lut=use_lut)

    output = np.empty(shape + (3,), np.uint8)
    _ = benchmark(codec.encode, d, output=output)


@pytest.mark.parametrize("shape", [(480, 640), (1080, 1920)])
def test_dec_perf(benchmark, shape):
    d = np.random.default_rng(0).integers(0, 2000, shape, dtype=np.uint16)
    codec = hd.HueCodec(0.0, 2.0)

    output = np.empty_like(d)
    e = codec.encode(d)
    _ = benchmark(codec.decode, e, output=output)
