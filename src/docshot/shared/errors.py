"""Error hierarchy for a document capture run."""


class DocshotError(Exception):
    """Base class for every error a capture run can raise."""


class ParameterError(DocshotError):
    """Invalid caller input, raised before any remote interaction."""


class RemoteError(DocshotError):
    """The viewport channel is unreachable or a command failed."""


class ImageToolError(DocshotError):
    """An image decode/resize/crop/append/write step failed."""


class WorkspaceError(DocshotError):
    """The temporary workspace for a run could not be created."""
