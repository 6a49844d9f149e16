"""
Folder and file handles for export destinations.

A Folder is obtained once per export run from a picker. File entries are
handles: creating one checks the overwrite policy but writes nothing, the
bytes land on disk only when a document is encoded into the entry.
"""
from pathlib import Path
from typing import Callable, Optional

from favicon_maker.utils.logger import get_logger
from favicon_maker.utils.validators import valid_file_name

logger = get_logger("storage")


class FileEntry:
    def __init__(self, folder: "Folder", name: str):
        self.folder = folder
        self.name = name

    @property
    def path(self) -> Path:
        return self.folder.path / self.name

    @property
    def native_path(self) -> str:
        return str(self.path)

    def write(self, data: bytes) -> int:
        self.path.write_bytes(data)
        logger.debug("Wrote %d bytes to %s", len(data), self.path)
        return len(data)

    def read(self) -> bytes:
        return self.path.read_bytes()

    def __repr__(self):
        return f"FileEntry({self.native_path!r})"


class Folder:
    def __init__(self, path: str | Path):
        p = Path(path).resolve()
        if not p.is_dir():
            raise NotADirectoryError(f"Not a folder: {p}")
        self.path = p

    @property
    def native_path(self) -> str:
        return str(self.path)

    def create_file(self, name: str, overwrite: bool = False) -> FileEntry:
        if not valid_file_name(name):
            raise ValueError(f"Invalid file name: {name!r}")
        entry = FileEntry(self, name)
        if entry.path.exists() and not overwrite:
            raise FileExistsError(f"File already exists: {entry.path}")
        return entry

    def get_entries(self) -> list[FileEntry]:
        return [FileEntry(self, p.name) for p in sorted(self.path.iterdir()) if p.is_file()]

    def __repr__(self):
        return f"Folder({self.native_path!r})"


FolderPicker = Callable[[], Optional[Folder]]


def fixed_folder(path: str | Path) -> FolderPicker:
    """Picker that always answers with the same folder, creating it if needed."""
    def pick() -> Folder:
        p = Path(path)
        p.mkdir(parents=True, exist_ok=True)
        return Folder(p)
    return pick


def dialog_folder_picker(parent) -> FolderPicker:
    def pick() -> Folder | None:
        from favicon_maker.core.image_handler import choose_folder_dialog
        chosen = choose_folder_dialog(parent)
        if not chosen:
            logger.info("Folder picker cancelled")
            return None
        return Folder(chosen)
    return pick
