from __future__ import annotations

from io import BytesIO

from PIL import Image, ImageOps


def _target_size(width: int, height: int, src_width: int, src_height: int) -> tuple[int, int]:
    if width <= 0 and height <= 0:
        raise ValueError("Either width or height must be positive")
    if width <= 0:
        width = max(1, round(src_width * height / src_height))
    elif height <= 0:
        height = max(1, round(src_height * width / src_width))
    return width, height


def resize_image(source: bytes, width: int, height: int, *, quality: int = 85) -> bytes:
    """Resize encoded image bytes and return a JPEG encoding.

    A zero width (or height) is derived from the other dimension so the
    aspect ratio is preserved. Images over Pillow's pixel limit raise
    ValueError like any other undecodable input.
    """
    try:
        with Image.open(BytesIO(source)) as img:
            img = ImageOps.exif_transpose(img)
            img = img.convert("RGB")
            size = _target_size(width, height, img.width, img.height)
            resized = img.resize(size, Image.Resampling.LANCZOS)
    except Image.DecompressionBombError as exc:
        raise ValueError(str(exc)) from exc
    buf = BytesIO()
    resized.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()
