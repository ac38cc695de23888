"""
Domain exceptions.

Each carries the HTTP status the API layer answers with. Pre-condition
failures are raised before any store mutation; per-object failures inside a
batch are recorded in result payloads instead.
"""


class ImageBrowserError(Exception):
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ImageBrowserError):
    """Bad path, name or conflict-policy input."""

    status_code = 400


class InvalidPath(ValidationError):
    pass


class NotFound(ImageBrowserError):
    status_code = 404


class AlreadyExists(ImageBrowserError):
    status_code = 400


class StoreError(ImageBrowserError):
    """The object store itself failed."""

    status_code = 500


class ExhaustedRename(ImageBrowserError):
    status_code = 500
