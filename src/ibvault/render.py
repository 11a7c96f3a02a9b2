"""
Default image rasterizer.

The export pipeline treats the rasterizer as an external collaborator:
a callable taking the result title and returning valid PNG bytes.
Applications with a real drawing stack pass their own; this module only
provides a plain single-colour baseline so the pipeline works headless.
"""

import struct
import zlib
from typing import Callable, Tuple

from ibvault.pngmeta import END_CHUNK, PNG_SIGNATURE, build_chunk


Rasterizer = Callable[[str], bytes]
RGB = Tuple[int, int, int]


def solid_png(width: int, height: int, rgb: RGB = (0x0B, 0x12, 0x20)) -> bytes:
    """
    Encode a width x height truecolor PNG filled with one colour.

    Raises:
        ValueError: on non-positive dimensions or out-of-range colour components
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if any(not 0 <= c <= 255 for c in rgb):
        raise ValueError(f"Colour components must be in 0..255, got {rgb}")

    # bit depth 8, colour type 2 (RGB), deflate, adaptive filtering, no interlace
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    row = b"\x00" + bytes(rgb) * width
    idat = zlib.compress(row * height, 9)
    return (
        PNG_SIGNATURE
        + build_chunk(b"IHDR", ihdr)
        + build_chunk(b"IDAT", idat)
        + build_chunk(END_CHUNK, b"")
    )


def solid_rasterizer(width: int, height: int, rgb: RGB) -> Rasterizer:
    """Rasterizer ignoring the title and returning a solid_png() of fixed size."""
    def rasterize(title: str) -> bytes:
        return solid_png(width, height, rgb)
    return rasterize
