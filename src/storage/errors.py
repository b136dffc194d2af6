"""
Storage Errors

Exceptions raised by the content store and the paginated fetcher.
"""


class PaginationError(RuntimeError):
    """
    Raised once a bulk read has exhausted its retries.
    Callers get the complete row set or this error, never a partial set.
    """
    def __init__(self, resource: str, attempts: int, last_error: BaseException | None):
        super().__init__(
            f"Failed to fetch {resource} after {attempts} attempts: {last_error}"
        )
        self.resource = resource
        self.attempts = attempts
        self.last_error = last_error


class StoreWriteError(RuntimeError):
    """Raised when a required insert or update does not commit. Fatal to a run."""
    def __init__(self, action: str, module_slug: str, cause: BaseException | None = None):
        super().__init__(f"Failed to {action} for {module_slug}: {cause}")
        self.action = action
        self.module_slug = module_slug
        self.cause = cause


class InvalidProvenanceError(ValueError):
    """Raised when a row's provenance columns fail validation."""
    def __init__(self, table: str, row_id: int, reason: str):
        super().__init__(f"Invalid provenance on {table}#{row_id}: {reason}")
        self.table = table
        self.row_id = row_id
