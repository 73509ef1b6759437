"""Domain exceptions shared by services and mapped to HTTP statuses in the routers."""


class ContentValidationError(ValueError):
    """Caller-supplied input is missing, too short, or otherwise unusable (HTTP 400)."""


class SummarySourceNotFound(FileNotFoundError):
    """The Markdown page to summarise does not exist on disk (HTTP 404)."""
