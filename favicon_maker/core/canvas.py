from typing import Callable, Optional

from favicon_maker.core.errors import HostError
from favicon_maker.core.host import Document, DocumentHost
from favicon_maker.utils.config import ExportSettings
from favicon_maker.utils.logger import get_logger

logger = get_logger("canvas")

CREATE_COMMAND = "Create Favicon Canvas"


def create_canvas(host: DocumentHost, alert: Callable[..., None],
                  settings: ExportSettings | None = None) -> Optional[Document]:
    """
    Create the blank favicon canvas and make it the active document.
    Host failures are logged and reported through alert; None is returned.
    """
    settings = settings or ExportSettings()

    def create():
        return host.create_document(
            width=settings.canvas_width,
            height=settings.canvas_height,
            resolution=settings.resolution,
            mode=settings.mode,
            fill=settings.fill,
        )

    try:
        doc = host.execute_as_modal(create, command_name=CREATE_COMMAND)
    except HostError as e:
        logger.exception("Failed to create canvas")
        alert(f"Canvas creation failed: {e}", error=True)
        return None
    logger.info("Canvas created successfully (%dx%d)", doc.width, doc.height)
    return doc
