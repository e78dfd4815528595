"""Enums for harvest jobs and picture reconciliation."""

from enum import Enum

JOB_STATUS_BASE = "http://veeakker.be/lfw-job-statusses/"


class JobStatus(str, Enum):
    """Lifecycle status of a harvest job."""

    RUNNING = "running"
    FINISHED = "finished"
    ERROR = "error"

    @property
    def uri(self) -> str:
        """URI under which the status is stored in the triple store."""
        return f"{JOB_STATUS_BASE}{self.value}"

    @classmethod
    def from_uri(cls, uri: str) -> "JobStatus":
        """Parse a stored status URI."""
        if not uri.startswith(JOB_STATUS_BASE):
            raise ValueError(f"Unknown job status URI: {uri}")
        return cls(uri[len(JOB_STATUS_BASE):])

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.FINISHED, JobStatus.ERROR)


class PictureOutcome(str, Enum):
    """What happened to a product thumbnail during reconciliation."""

    UNCHANGED = "unchanged"  # Stored source equals the payload image
    REPLACED = "replaced"  # Old thumbnail removed (if any), new one downloaded
    REMOVED = "removed"  # Payload has no image, stored thumbnail removed
    ABSENT = "absent"  # Payload has no image and nothing was stored


class StoreBackend(str, Enum):
    """Triple store transport."""

    SPARQL = "sparql"
    MEMORY = "memory"
