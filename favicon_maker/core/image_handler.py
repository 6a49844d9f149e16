from pathlib import Path
from PIL import Image

SUPPORTED_INPUTS = (".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tif", ".tiff", ".webp", ".ico")


def load_image_with_alpha(path: str | Path, max_edit_dimension: int | None = None) -> Image.Image:
    """
    Load an image and convert to RGBA. Optionally downscale so max(width, height) <= max_edit_dimension
    for very large source logos.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"File not found: {p}")
    if p.suffix.lower() not in SUPPORTED_INPUTS:
        raise ValueError(f"Unsupported format: {p.suffix}")
    with Image.open(p) as src:
        img = src.convert("RGBA")
    if max_edit_dimension and max(img.width, img.height) > max_edit_dimension:
        scale = max_edit_dimension / max(img.width, img.height)
        new_size = (max(1, int(img.width * scale)), max(1, int(img.height * scale)))
        img = img.resize(new_size, Image.Resampling.LANCZOS)
    return img


def open_image_dialog(parent) -> str | None:
    from tkinter import filedialog
    path = filedialog.askopenfilename(
        parent=parent,
        title="Open Image",
        filetypes=[
            ("All supported", "*.png;*.jpg;*.jpeg;*.bmp;*.gif;*.tif;*.tiff;*.webp;*.ico"),
            ("PNG", "*.png"),
            ("JPEG", "*.jpg;*.jpeg"),
            ("All files", "*.*"),
        ],
    )
    return path or None


def choose_folder_dialog(parent) -> str | None:
    from tkinter import filedialog
    path = filedialog.askdirectory(parent=parent, title="Choose Favicon Folder", mustexist=True)
    return path or None
