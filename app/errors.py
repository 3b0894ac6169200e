"""
Error taxonomy for the ingestion pipeline.

Query- and record-level errors (UpstreamError, PersistenceError) are caught by
the runner and refresher and turned into outcomes. Run-level errors
(NotFoundError, AuthorizationError) abort and are mapped to HTTP statuses by
the routes.
"""


class IngestionError(Exception):
    """Base class for all ingestion errors."""
    status_code = 500


class UpstreamError(IngestionError):
    """Platform API unreachable, non-success, or returned a malformed payload."""
    status_code = 502

    def __init__(self, message, upstream_status=None):
        self.upstream_status = upstream_status
        super().__init__(message)


class PersistenceError(IngestionError):
    """A store write or read failed."""
    status_code = 500


class NotFoundError(IngestionError):
    """Referenced rule or creator does not exist."""
    status_code = 404

    def __init__(self, kind, ident):
        self.kind = kind
        self.ident = ident
        super().__init__(f"{kind.capitalize()} not found")


class AuthorizationError(IngestionError):
    """Caller lacks operator rights."""
    status_code = 401

    def __init__(self, message='Unauthorized'):
        super().__init__(message)
