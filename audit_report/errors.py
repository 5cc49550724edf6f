"""Exception taxonomy shared by the capture, chunking and assembly stages."""


class AuditError(Exception):
    """Base exception for audit generation errors."""

    status_code = 500
    retryable = False

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InputError(AuditError):
    """Raised when the requested URL is missing or invalid."""

    status_code = 400


class CaptureError(AuditError):
    """Raised when the page could not be rendered or fetched."""

    retryable = True


class NavigationTimeout(CaptureError):
    """Raised when the page did not finish loading within the navigation bound."""
    pass


class InvalidImage(AuditError):
    """Raised when captured image data is malformed or has no area."""
    pass


class EmptyInput(AuditError):
    """Raised when there are no chunks to place in a document."""
    pass


class DeadlineExceeded(AuditError):
    """Raised when a pipeline run goes past its overall time budget."""

    retryable = True


def check_cancelled(cancelled, stage: str):
    """Raise DeadlineExceeded if the run owning this worker has been cancelled."""
    if cancelled is not None and cancelled.is_set():
        raise DeadlineExceeded(f"Audit timeout: {stage} stopped after the deadline passed")


class PipelineError(Exception):
    """
    The single error kind surfaced at the boundary.

    Carries a short summary, a human-readable detail string, the status
    code the boundary should answer with and whether re-running the whole
    pipeline may succeed. Never carries a traceback.
    """

    def __init__(self, error: str, details: str = "", status_code: int = 500, kind: str = "AuditError",
                 retryable: bool = False):
        super().__init__(f"{error}: {details}" if details else error)
        self.error = error
        self.details = details
        self.status_code = status_code
        self.kind = kind
        self.retryable = retryable

    def to_dict(self) -> dict:
        payload = {"error": self.error}
        if self.details:
            payload["details"] = self.details
        return payload
