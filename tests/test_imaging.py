import pytest

from hsclient.imaging import (
    SMDHIconType,
    next_pow2,
    place_smdh_icon,
    rgba_to_abgr,
    tile_abgr8,
)


def test_next_pow2_icon_sizes():
    assert next_pow2(SMDHIconType.large.value) == 64
    assert next_pow2(SMDHIconType.small.value) == 32


@pytest.mark.parametrize("n", list(range(1, 600)) + [1 << 20, (1 << 20) + 1])
def test_next_pow2_invariants(n):
    p = next_pow2(n)
    assert p & (p - 1) == 0
    assert p >= n
    assert p // 2 < n


def test_rgba_to_abgr_reverses_each_pixel():
    assert rgba_to_abgr(bytes([1, 2, 3, 4, 5, 6, 7, 8])) == bytes([4, 3, 2, 1, 8, 7, 6, 5])


def test_rgba_to_abgr_round_trip():
    data = bytes(range(64))
    assert rgba_to_abgr(rgba_to_abgr(data)) == data


def test_rgba_to_abgr_bad_length():
    with pytest.raises(ValueError):
        rgba_to_abgr(b"abc")


def _distinct_pixels(count):
    return b"".join(i.to_bytes(4, "big") for i in range(1, count + 1))


@pytest.mark.parametrize("w,h", [(8, 8), (16, 8), (32, 16)])
def test_tile_is_permutation_for_pow2(w, h):
    pixels = _distinct_pixels(w * h)
    data, subtex = tile_abgr8(pixels, w, h)
    assert len(data) == len(pixels)
    chunks = sorted(data[i:i + 4] for i in range(0, len(data), 4))
    assert chunks == sorted(pixels[i:i + 4] for i in range(0, len(pixels), 4))
    assert subtex.right == 1.0
    assert subtex.bottom == 0.0


def test_tile_non_pow2_size():
    w, h = 13, 10
    pixels = _distinct_pixels(w * h)
    data, subtex = tile_abgr8(pixels, w, h)
    assert (subtex.tex_width, subtex.tex_height) == (next_pow2(w), next_pow2(h))
    assert len(data) == subtex.tex_width * subtex.tex_height * 4
    nonzero = [data[i:i + 4] for i in range(0, len(data), 4) if data[i:i + 4] != b"\0\0\0\0"]
    assert len(nonzero) == w * h
    assert subtex.right * subtex.tex_width == pytest.approx(w)
    assert (1.0 - subtex.bottom) * subtex.tex_height == pytest.approx(h)
    assert subtex.top == 1.0 and subtex.left == 0.0


def test_tile_first_pixel_at_origin():
    pixels = _distinct_pixels(64)
    data, _ = tile_abgr8(pixels, 8, 8)
    assert data[:4] == pixels[:4]


def test_tile_bad_length():
    with pytest.raises(ValueError):
        tile_abgr8(b"\0" * 12, 2, 2)


@pytest.mark.parametrize("kind", list(SMDHIconType))
def test_place_smdh_icon_layout(kind):
    dim = kind.value
    dim2 = next_pow2(dim)
    icon = bytes((i * 7 + 3) % 251 for i in range(dim * dim * 2))
    data, subtex = place_smdh_icon(icon, kind)
    assert len(data) == dim2 * dim2 * 2
    assert subtex.width == subtex.height == dim
    assert subtex.tex_width == subtex.tex_height == dim2
    assert subtex.right == subtex.top == dim / dim2
    start = (dim2 - dim) * dim2 * 2
    assert data[:start] == bytes(start)
    chunk = dim * 8 * 2
    for block in range(dim // 8):
        dst = start + block * dim2 * 8 * 2
        assert data[dst:dst + chunk] == icon[block * chunk:(block + 1) * chunk]


def test_place_smdh_icon_bad_length():
    with pytest.raises(ValueError):
        place_smdh_icon(b"\0" * 10, SMDHIconType.small)