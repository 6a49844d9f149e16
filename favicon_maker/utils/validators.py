MAX_DIMENSION = 4096
COLOR_MODES = ("RGB", "RGBA", "L")


def valid_dimensions(width, height) -> bool:
    try:
        w, h = int(width), int(height)
    except (TypeError, ValueError):
        return False
    return 1 <= w <= MAX_DIMENSION and 1 <= h <= MAX_DIMENSION


def valid_file_name(name: str) -> bool:
    if not name or name in (".", ".."):
        return False
    return "/" not in name and "\\" not in name
