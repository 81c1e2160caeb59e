"""Conversion of raw pixel data into GPU texture layout."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SMDHIconType(Enum):
    """Icon size in an SMDH; the value is the edge length in pixels."""

    large = 48
    small = 24


@dataclass(frozen=True)
class SubTexture:
    """The visible part of a power-of-two texture."""

    width: int
    height: int
    left: float
    top: float
    right: float
    bottom: float
    tex_width: int
    tex_height: int


def next_pow2(i: int) -> int:
    """Smallest power of two not below ``i`` (32-bit arithmetic)."""
    i = (i - 1) & 0xFFFFFFFF
    for shift in (1, 2, 4, 8, 16):
        i |= i >> shift
    return (i + 1) & 0xFFFFFFFF


def rgba_to_abgr(pixels: bytes) -> bytes:
    """Reverse the byte order of every 4-byte pixel."""
    if len(pixels) % 4:
        raise ValueError("pixel data length is not a multiple of 4")
    out = bytearray(pixels)
    for start in range(0, len(out), 4):
        out[start:start + 4] = out[start:start + 4][::-1]
    return bytes(out)


def _tile_offset(x: int, y: int, tex_width: int) -> int:
    block = ((y >> 3) * (tex_width >> 3) + (x >> 3)) << 6
    morton = (
        (x & 1)
        | ((y & 1) << 1)
        | ((x & 2) << 1)
        | ((y & 2) << 2)
        | ((x & 4) << 2)
        | ((y & 4) << 3)
    )
    return block + morton


def tile_abgr8(pixels: bytes, width: int, height: int) -> tuple[bytes, SubTexture]:
    """Swizzle linear 32-bit pixels into an 8x8-tiled power-of-two texture."""
    if len(pixels) != width * height * 4:
        raise ValueError("pixel data does not match the given dimensions")
    tex_width = next_pow2(width)
    tex_height = next_pow2(height)
    subtex = SubTexture(
        width=width,
        height=height,
        left=0.0,
        top=1.0,
        right=width / tex_width,
        bottom=1.0 - height / tex_height,
        tex_width=tex_width,
        tex_height=tex_height,
    )
    dst = bytearray(tex_width * tex_height * 4)
    for x in range(width):
        for y in range(height):
            pos = _tile_offset(x, y, tex_width) * 4
            src = (y * width + x) * 4
            dst[pos:pos + 4] = pixels[src:src + 4]
    return bytes(dst), subtex


def place_smdh_icon(icon: bytes, icon_type: SMDHIconType) -> tuple[bytes, SubTexture]:
    """Place pre-tiled RGB565 icon data into a power-of-two texture."""
    dim = icon_type.value
    if len(icon) != dim * dim * 2:
        raise ValueError("icon data does not match the icon size")
    dim2 = next_pow2(dim)
    subtex = SubTexture(
        width=dim,
        height=dim,
        left=0.0,
        top=dim / dim2,
        right=dim / dim2,
        bottom=0.0,
        tex_width=dim2,
        tex_height=dim2,
    )
    dst = bytearray(dim2 * dim2 * 2)
    chunk = dim * 8 * 2
    dst_pos = (dim2 - dim) * dim2 * 2
    for src_pos in range(0, len(icon), chunk):
        dst[dst_pos:dst_pos + chunk] = icon[src_pos:src_pos + chunk]
        dst_pos += dim2 * 8 * 2
    return bytes(dst), subtex