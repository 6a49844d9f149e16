"""
Light/dark favicon export.

The active document is written out as six PNGs:

    light@2x.png  native size
    dark@2x.png   native size, inverted
    light@1x.png  small size          (same bytes as light.png)
    dark@1x.png   small size, inverted (same bytes as dark.png)

Each derived variant is made on a temporary duplicate which is always closed
without saving before the next variant starts, or before the error leaves
the modal scope.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from favicon_maker.core.errors import PipelineError, PreconditionError
from favicon_maker.core.host import Document, DocumentHost
from favicon_maker.core.storage import FileEntry, Folder, FolderPicker
from favicon_maker.utils.config import ExportSettings
from favicon_maker.utils.logger import get_logger

logger = get_logger("exporter")

EXPORT_COMMAND = "Export Favicons"


class ExportState(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    FOLDER_SELECTED = "folder_selected"
    BRANCH_LIGHT_2X = "branch_light_2x"
    BRANCH_DARK_2X = "branch_dark_2x"
    BRANCH_LIGHT_1X = "branch_light_1x"
    BRANCH_DARK_1X = "branch_dark_1x"
    COMPLETED = "completed"
    FAILED = "failed"


class BranchStep(Enum):
    DUPLICATING = "duplicating"
    TRANSFORMING = "transforming"
    ENCODING = "encoding"
    CLOSING = "closing"


@dataclass
class ExportResult:
    state: ExportState = ExportState.IDLE
    folder: Optional[Folder] = None
    written: list[Path] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state is ExportState.COMPLETED


def invert_command(doc: Document) -> dict:
    return {"_obj": "invert", "_target": [{"_ref": "document", "_id": doc.id}]}


class FaviconExporter:
    def __init__(self, host: DocumentHost, pick_folder: FolderPicker, alert: Callable[..., None],
                 settings: ExportSettings | None = None):
        self.host = host
        self.pick_folder = pick_folder
        self.alert = alert
        self.settings = settings or ExportSettings()
        self.state = ExportState.IDLE
        self.step: BranchStep | None = None

    def export(self) -> ExportResult:
        result = ExportResult()
        self.step = None
        self._enter(ExportState.VALIDATING)
        try:
            original = self._require_active_document()
            folder = self._require_folder()
            result.folder = folder
            self._enter(ExportState.FOLDER_SELECTED)
            self.host.execute_as_modal(
                lambda: self._run_pipeline(original, folder, result),
                command_name=EXPORT_COMMAND,
            )
            entries = folder.get_entries()
            logger.debug("Destination now holds %d file(s)", len(entries))
        except PreconditionError as e:
            logger.warning("Export aborted: %s", e)
            self.alert(str(e), error=True)
            return self._finish(result, ExportState.FAILED, str(e))
        except Exception as e:
            logger.exception("Export error: %s", e)
            self.alert(f"Export failed: {e}", error=True)
            return self._finish(result, ExportState.FAILED, str(e))

        self.alert(f"Successfully exported {len(result.written)} favicon files to:\n{folder.native_path}")
        return self._finish(result, ExportState.COMPLETED)

    # ---------- Preconditions ----------
    def _require_active_document(self) -> Document:
        doc = self.host.active_document
        if doc is None:
            raise PreconditionError("Please create or open a document first")
        return doc

    def _require_folder(self) -> Folder:
        folder = self.pick_folder()
        if not folder:
            raise PreconditionError("No folder selected")
        return folder

    # ---------- Pipeline ----------
    def _run_pipeline(self, original: Document, folder: Folder, result: ExportResult):
        names = self.settings.names
        small = self.settings.small_size
        temp: Document | None = None
        try:
            files = {name: folder.create_file(name, overwrite=True) for name in names.all()}

            self._enter(ExportState.BRANCH_LIGHT_2X)
            logger.info("Saving %s at %dx%d", names.light_2x, original.width, original.height)
            self._encode(original, files[names.light_2x], result)

            self._enter(ExportState.BRANCH_DARK_2X)
            logger.info("Creating dark version at %dx%d", original.width, original.height)
            temp = self._duplicate(original)
            self._step(BranchStep.TRANSFORMING)
            self._invert(temp)
            self._encode(temp, files[names.dark_2x], result)
            self._close(temp)
            temp = None

            self._enter(ExportState.BRANCH_LIGHT_1X)
            logger.info("Creating %s and %s at %dx%d", names.light_1x, names.light, small, small)
            temp = self._duplicate(original)
            self._step(BranchStep.TRANSFORMING)
            temp.resize_image(small, small)
            self._encode(temp, files[names.light_1x], result)
            self._encode(temp, files[names.light], result)
            self._close(temp)
            temp = None

            self._enter(ExportState.BRANCH_DARK_1X)
            logger.info("Creating %s and %s at %dx%d", names.dark_1x, names.dark, small, small)
            temp = self._duplicate(original)
            self._step(BranchStep.TRANSFORMING)
            # Invert at full size before downsampling so both dark outputs agree
            self._invert(temp)
            temp.resize_image(small, small)
            self._encode(temp, files[names.dark_1x], result)
            self._encode(temp, files[names.dark], result)
            self._close(temp)
            temp = None
        except Exception as e:
            logger.error("Error in export process (%s, %s): %s", self.state.value,
                         self.step.value if self.step else "-", e)
            if temp is not None and not temp.closed:
                temp.close(save_changes=False)
            raise PipelineError(str(e) or type(e).__name__) from e

    def _duplicate(self, doc: Document) -> Document:
        self._step(BranchStep.DUPLICATING)
        return doc.duplicate()

    def _invert(self, doc: Document):
        self.host.batch_play([invert_command(doc)], synchronous_execution=True)

    def _encode(self, doc: Document, entry: FileEntry, result: ExportResult):
        self._step(BranchStep.ENCODING)
        doc.save_png(entry)
        result.written.append(entry.path)

    def _close(self, doc: Document):
        self._step(BranchStep.CLOSING)
        doc.close(save_changes=False)

    # ---------- State ----------
    def _enter(self, state: ExportState):
        logger.debug("Export state: %s -> %s", self.state.value, state.value)
        self.state = state
        self.step = None

    def _step(self, step: BranchStep):
        logger.debug("  %s: %s", self.state.value, step.value)
        self.step = step

    def _finish(self, result: ExportResult, state: ExportState, error: str | None = None) -> ExportResult:
        self._enter(state)
        result.state = state
        result.error = error
        return result
