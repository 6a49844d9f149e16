"""Shared fixtures: a fresh document host, a recording alert and folder pickers."""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from favicon_maker.core.host import DocumentHost
from favicon_maker.core.storage import Folder


class AlertRecorder:
    def __init__(self) -> None:
        self.calls: list[tuple[str, bool]] = []

    def __call__(self, message: str, error: bool = False) -> None:
        self.calls.append((message, error))

    @property
    def messages(self) -> list[str]:
        return [m for m, _ in self.calls]

    @property
    def errors(self) -> list[str]:
        return [m for m, err in self.calls if err]


class PickerStub:
    def __init__(self, folder: Folder | None) -> None:
        self.folder = folder
        self.calls = 0

    def __call__(self) -> Folder | None:
        self.calls += 1
        return self.folder


@pytest.fixture
def host() -> DocumentHost:
    return DocumentHost()


@pytest.fixture
def alerts() -> AlertRecorder:
    return AlertRecorder()


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    d = tmp_path / "out"
    d.mkdir()
    return d


@pytest.fixture
def picker(out_dir: Path) -> PickerStub:
    return PickerStub(Folder(out_dir))


@pytest.fixture
def logo_path(tmp_path: Path) -> Path:
    """A 46x46 RGBA logo with distinct quadrants and a translucent corner."""
    img = Image.new("RGBA", (46, 46), (255, 255, 255, 255))
    px = img.load()
    for y in range(46):
        for x in range(46):
            if x < 23 and y < 23:
                px[x, y] = (200, 30, 40, 255)
            elif x >= 23 and y < 23:
                px[x, y] = (10, 120, 250, 255)
            elif x < 23:
                px[x, y] = (x * 5, y * 3, 90, 255)
            else:
                px[x, y] = (0, 0, 0, 128)
    path = tmp_path / "logo.png"
    img.save(path)
    return path


@pytest.fixture
def logo_doc(host: DocumentHost, logo_path: Path):
    return host.execute_as_modal(lambda: host.open_document(logo_path), command_name="Open Document")
