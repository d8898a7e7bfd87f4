"""Pipeline error types."""

from typing import Any, Dict, Optional


class LeadGenError(Exception):
    """Base error for the lead-generation core."""

    code = "leadgen_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        payload = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class JobNotFoundError(LeadGenError):
    """Raised when a lead-gen job id does not resolve to a record."""

    code = "job_not_found"

    def __init__(self, job_id: Any):
        super().__init__(f"Job not found: {job_id}", {"job_id": str(job_id)})


class PoolNotFoundError(LeadGenError):
    code = "pool_not_found"

    def __init__(self, pool_id: Any):
        super().__init__(f"Lead pool not found: {pool_id}", {"pool_id": str(pool_id)})


class JobAlreadyRunningError(LeadGenError):
    """Raised when run is invoked on a job whose status is still RUNNING."""

    code = "job_already_running"

    def __init__(self, job_id: Any):
        super().__init__(
            f"Job {job_id} is already RUNNING; pass force=True to re-run it",
            {"job_id": str(job_id)}
        )
