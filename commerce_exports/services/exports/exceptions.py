"""
Export pipeline exceptions.

Precondition errors subclass ValueError so the API maps them to 422 unless a
narrower handler applies; missing jobs subclass LookupError (404).
"""


class ExportPreconditionError(ValueError):
    """An export request cannot be processed as given."""


class UnknownExportResourceError(ExportPreconditionError):
    """No export handler is registered for the requested resource."""

    def __init__(self, resource: str):
        self.resource = resource
        super().__init__(f"No export handler registered for resource '{resource}'")


class UnsupportedExportFormatError(ExportPreconditionError):
    """The handler cannot produce the requested file format."""

    def __init__(self, resource: str, format: str):
        self.resource = resource
        self.format = format
        super().__init__(f"Format '{format}' is not supported for {resource}")


class UnknownExportColumnError(ExportPreconditionError):
    """Requested columns are not exportable and the column policy rejects them."""

    def __init__(self, resource: str, keys: list[str]):
        self.resource = resource
        self.keys = keys
        super().__init__(f"Unknown columns for {resource}: {', '.join(keys)}")


class ExportJobNotFoundError(LookupError):
    """The export job does not exist."""

    def __init__(self, job_id: object):
        self.job_id = job_id
        super().__init__(f"Export job {job_id} not found")


class InvalidExportTransitionError(RuntimeError):
    """A status change would move a job backwards or out of a terminal state."""

    def __init__(self, job_id: object, current: str, target: str):
        self.job_id = job_id
        self.current = current
        self.target = target
        super().__init__(f"Export job {job_id} cannot move from {current} to {target}")
