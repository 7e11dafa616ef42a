"""
Domain errors raised by services, hooks and cascades.

Routes never build these by hand, the exception handlers in
teamauth.main turn them into JSON responses.
"""
from typing import Any, Dict, List, Optional


class TeamAuthError(Exception):
    """Base class for all domain errors."""

    status_code: int = 500

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.data = data or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.__class__.__name__, "message": self.message}
        if self.data:
            body["data"] = self.data
        return body


class BadRequest(TeamAuthError):
    status_code = 400


class Forbidden(TeamAuthError):
    status_code = 403


class NotFound(TeamAuthError):
    status_code = 404


class MethodNotAllowed(TeamAuthError):
    status_code = 405


class CascadeError(TeamAuthError):
    """
    A lifecycle cascade failed after some of its steps were committed.

    Completed steps are not rolled back, the error records which steps ran
    so that an operator can reconcile the remaining ones.
    """

    def __init__(
        self,
        cascade: str,
        step: str,
        resource_id: Optional[str],
        completed: List[str],
        cause: BaseException
    ):
        super().__init__(
            f"Cascade '{cascade}' failed at step '{step}' for resource {resource_id}: {cause}",
            {
                "cascade": cascade,
                "step": step,
                "resource": resource_id,
                "completed": list(completed),
            }
        )
        self.cascade = cascade
        self.step = step
        self.resource_id = resource_id
        self.completed = list(completed)
        self.cause = cause
