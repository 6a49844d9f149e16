class FaviconError(Exception):
    """Base class for every error raised by favicon_maker."""


class PreconditionError(FaviconError):
    """Export cannot start: no active document or no destination folder."""


class PipelineError(FaviconError):
    """A host or storage call failed while the export pipeline was running."""


class HostError(FaviconError):
    """The document host rejected a request."""


class ModalStateError(HostError):
    pass


class ModalBusyError(HostError):
    pass


class DocumentClosedError(HostError):
    pass
