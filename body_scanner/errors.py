"""Exceptions raised by the request body scanner."""


class BodyScannerError(Exception):
    """Base class for scanner errors."""


class RuleTransformationError(BodyScannerError):
    """The merged rule map could not be turned into parameters."""


class HandlerNotFoundError(BodyScannerError):
    """The requested handler does not exist in the analysed source."""

    def __init__(self, handler: str, file_path: str = "<string>"):
        self.handler = handler
        self.file_path = file_path
        super().__init__(f"Handler {handler!r} not found in {file_path}")
