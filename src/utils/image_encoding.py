"""Pixel-format conversion and data-URI encoding for extracted images.

Images pulled out of PDFs arrive in whatever form the producer embedded
them (24-bit RGB, greyscale, palette, CMYK, ...).  Everything is normalised
to interleaved RGBA and re-encoded as a lossless PNG so downstream
consumers only ever see one format.
"""

import base64
import io

from PIL import Image

PNG_DATA_URI_PREFIX = "data:image/png;base64,"

_OPAQUE = 255


def decode_image(data: bytes) -> Image.Image:
    """Decode encoded image bytes (PNG, JPEG, ...) into a loaded PIL image."""
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


def expand_rgb_to_rgba(image: Image.Image) -> Image.Image:
    """Return a copy of an RGB *image* with a fully opaque alpha channel."""
    if image.mode != "RGB":
        raise ValueError(f"expected an RGB image, got mode {image.mode!r}")
    rgba = image.copy()
    rgba.putalpha(_OPAQUE)
    return rgba


def to_rgba(image: Image.Image) -> Image.Image:
    """Normalise any PIL image mode to RGBA."""
    if image.mode == "RGBA":
        return image
    if image.mode == "RGB":
        return expand_rgb_to_rgba(image)
    return image.convert("RGBA")


def encode_png_data_uri(image: Image.Image) -> str:
    """Encode *image* as ``data:image/png;base64,<payload>``."""
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return PNG_DATA_URI_PREFIX + base64.b64encode(buf.getvalue()).decode("ascii")
