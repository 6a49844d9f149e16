"""
In-process document host.

The host owns every open document, the active-document pointer and an
exclusive modal lock. Workflow code asks the host to create, duplicate,
transform, encode and close documents; all pixel work happens here, via Pillow.
Document-mutating calls are only accepted while a modal scope is held.
"""
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from PIL import Image, ImageChops

from favicon_maker.core.errors import DocumentClosedError, HostError, ModalBusyError, ModalStateError
from favicon_maker.core.image_handler import load_image_with_alpha
from favicon_maker.core.storage import FileEntry
from favicon_maker.utils.helpers import get_resample_by_name, parse_color, pil_to_png_bytes
from favicon_maker.utils.logger import get_logger
from favicon_maker.utils.validators import COLOR_MODES, valid_dimensions

logger = get_logger("host")


@dataclass
class HistoryLog:
    """Bounded activity log of completed modal commands, newest last."""
    limit: int = 50

    def __post_init__(self):
        self._entries: list[str] = []

    def push(self, command_name: str):
        self._entries.append(command_name)
        if len(self._entries) > self.limit:
            self._entries.pop(0)

    def entries(self) -> list[str]:
        return list(self._entries)

    def __len__(self):
        return len(self._entries)


class Document:
    def __init__(self, host: "DocumentHost", doc_id: int, image: Image.Image, resolution: int,
                 title: str, path: Path | None = None):
        self._host = host
        self.id = doc_id
        self.image = image
        self.resolution = resolution
        self.title = title
        self.path = path
        self.closed = False

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def mode(self) -> str:
        return self.image.mode

    def _check_usable(self):
        if self.closed:
            raise DocumentClosedError(f"Document {self.id} ({self.title}) is closed")
        self._host._require_modal()

    def duplicate(self, title: str | None = None) -> "Document":
        self._check_usable()
        return self._host._add_document(
            self.image.copy(), self.resolution, title or f"{self.title} copy"
        )

    def close(self, save_changes: bool = False):
        self._check_usable()
        if save_changes:
            if self.path is None:
                raise HostError(f"Document {self.title!r} has no file to save to")
            self.image.save(self.path, dpi=(self.resolution, self.resolution))
        self._host._remove_document(self)

    def resize_image(self, width: int, height: int):
        self._check_usable()
        if not valid_dimensions(width, height):
            raise HostError(f"Invalid image size: {width}x{height}")
        resample = get_resample_by_name(self._host.resample)
        self.image = self.image.resize((int(width), int(height)), resample=resample)
        logger.debug("Resized document %d to %dx%d", self.id, width, height)

    def save_png(self, entry: FileEntry):
        self._check_usable()
        entry.write(pil_to_png_bytes(self.image, dpi=self.resolution))

    def invert(self):
        self._check_usable()
        if self.image.mode == "RGBA":
            r, g, b, a = self.image.split()
            r, g, b = ImageChops.invert(r), ImageChops.invert(g), ImageChops.invert(b)
            self.image = Image.merge("RGBA", (r, g, b, a))
        else:
            self.image = ImageChops.invert(self.image)

    def __repr__(self):
        state = "closed" if self.closed else f"{self.width}x{self.height}"
        return f"<Document {self.id} {self.title!r} {state}>"


class DocumentHost:
    def __init__(self, resample: str = "bicubic"):
        self.resample = resample
        self.history = HistoryLog(limit=50)
        self._documents: dict[int, Document] = {}
        self._next_id = 1
        self._modal_lock = threading.Lock()
        self._modal_command: str | None = None
        self._modal_owner: int | None = None
        self._deferred: list[dict] = []
        self._commands: dict[str, Callable[[Document, dict], None]] = {
            "invert": lambda doc, desc: doc.invert(),
        }

    # ---------- Documents ----------
    @property
    def active_document(self) -> Optional[Document]:
        if not self._documents:
            return None
        # Most recently opened document is frontmost
        return next(reversed(self._documents.values()))

    @property
    def open_documents(self) -> list[Document]:
        return list(self._documents.values())

    def get_document(self, doc_id: int) -> Document:
        try:
            return self._documents[doc_id]
        except KeyError:
            raise HostError(f"No open document with id {doc_id}") from None

    def create_document(self, width: int, height: int, resolution: int = 72, mode: str = "RGB",
                        fill: Any = "white", title: str | None = None) -> Document:
        self._require_modal()
        if not valid_dimensions(width, height):
            raise HostError(f"Invalid document size: {width}x{height}")
        if mode not in COLOR_MODES:
            raise HostError(f"Unsupported color mode: {mode}")
        if resolution <= 0:
            raise HostError(f"Invalid resolution: {resolution}")
        try:
            color = parse_color(fill)
        except (ValueError, TypeError) as e:
            raise HostError(f"Invalid fill {fill!r}: {e}") from e
        if mode == "L":
            img = Image.new("L", (int(width), int(height)), color[0])
        else:
            img = Image.new(mode, (int(width), int(height)), color + ((255,) if mode == "RGBA" else ()))
        return self._add_document(img, resolution, title or f"Untitled-{self._next_id}")

    def open_document(self, path: str | Path, resolution: int = 72) -> Document:
        self._require_modal()
        p = Path(path)
        try:
            img = load_image_with_alpha(p, max_edit_dimension=3072)
        except (OSError, ValueError) as e:
            raise HostError(f"Failed to open {p.name}: {e}") from e
        return self._add_document(img, resolution, p.name, path=p)

    def _add_document(self, image: Image.Image, resolution: int, title: str, path: Path | None = None) -> Document:
        doc = Document(self, self._next_id, image, resolution, title, path=path)
        self._next_id += 1
        self._documents[doc.id] = doc
        logger.debug("Opened document %d %r (%dx%d)", doc.id, title, doc.width, doc.height)
        return doc

    def _remove_document(self, doc: Document):
        self._documents.pop(doc.id, None)
        doc.closed = True
        logger.debug("Closed document %d %r", doc.id, doc.title)

    # ---------- Batch commands ----------
    def batch_play(self, commands: list[dict], synchronous_execution: bool = False) -> list[dict]:
        """
        Run structured edit commands such as
        {"_obj": "invert", "_target": [{"_ref": "document", "_id": 3}]}.
        Without synchronous_execution the commands are queued and run when the
        current modal scope exits.
        """
        self._require_modal()
        for desc in commands:
            if desc.get("_obj") not in self._commands:
                raise HostError(f"Unknown batch command: {desc.get('_obj')!r}")
        if not synchronous_execution:
            self._deferred.extend(commands)
            return [{"_obj": desc["_obj"], "deferred": True} for desc in commands]
        return [self._play(desc) for desc in commands]

    def _play(self, desc: dict) -> dict:
        doc = self._resolve_target(desc)
        self._commands[desc["_obj"]](doc, desc)
        return {"_obj": desc["_obj"], "documentID": doc.id}

    def _resolve_target(self, desc: dict) -> Document:
        for ref in desc.get("_target") or []:
            if ref.get("_ref") == "document" and "_id" in ref:
                return self.get_document(ref["_id"])
        doc = self.active_document
        if doc is None:
            raise HostError(f"No target document for {desc.get('_obj')!r}")
        return doc

    # ---------- Modal scope ----------
    @property
    def in_modal(self) -> bool:
        return self._modal_command is not None

    def _require_modal(self):
        if not self.in_modal:
            raise ModalStateError("Document changes must run inside execute_as_modal")
        if self._modal_owner != threading.get_ident():
            raise ModalStateError(f"{self._modal_command!r} holds the modal scope on another thread")

    def execute_as_modal(self, callback: Callable[[], Any], command_name: str) -> Any:
        """
        Run callback with exclusive document-mutation rights. The lock is not
        reentrant: a second request while one is held raises ModalBusyError.
        """
        if not self._modal_lock.acquire(blocking=False):
            raise ModalBusyError(f"Cannot run {command_name!r}: {self._modal_command!r} is in progress")
        self._modal_command = command_name
        self._modal_owner = threading.get_ident()
        logger.debug("Modal scope entered: %s", command_name)
        try:
            result = callback()
            pending, self._deferred = self._deferred, []
            for desc in pending:
                self._play(desc)
            self.history.push(command_name)
            return result
        finally:
            if self._deferred:
                logger.warning("Dropping %d deferred command(s) from failed %r", len(self._deferred), command_name)
                self._deferred = []
            self._modal_command = None
            self._modal_owner = None
            self._modal_lock.release()
            logger.debug("Modal scope left: %s", command_name)
