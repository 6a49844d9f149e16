from PIL import Image

RESAMPLE_NAMES = ("nearest", "bilinear", "bicubic", "lanczos")


def get_resample_by_name(name: str):
    lname = (name or "").lower()
    if lname == "nearest":
        return Image.Resampling.NEAREST
    elif lname == "bilinear":
        return Image.Resampling.BILINEAR
    elif lname == "lanczos":
        return Image.Resampling.LANCZOS
    else:
        return Image.Resampling.BICUBIC


def parse_color(value) -> tuple[int, int, int]:
    """
    Accepts a Pillow color name ("white"), a hex string ("#ffffff") or an RGB(A) sequence.
    Alpha is dropped; favicon canvases are RGB.
    """
    from PIL import ImageColor
    if isinstance(value, str):
        return ImageColor.getrgb(value)[:3]
    r, g, b = [int(c) for c in list(value)[:3]]
    return (r, g, b)


def pil_to_png_bytes(im: Image.Image, dpi: int) -> bytes:
    from io import BytesIO
    buf = BytesIO()
    im.save(buf, format="PNG", optimize=True, dpi=(dpi, dpi))
    return buf.getvalue()
