"""
Jobs for the Switchboard host.

Jobs are the second way a module packages units of work (the first being
routes). A job is defined by its options, an optional cron schedule and its
behavior. Modules derive from ``Job``, set ``name`` (matched against the
``type`` of a job definition) and implement ``_run``; the host decides when
``run`` is called, either from a cron timer or on demand.
"""

import logging
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence

from croniter import croniter

from .exceptions import JobValidationError
from ..utils.metrics import record_job_run

logger = logging.getLogger(__name__)


class JobStatus(Enum):
    """
    Idle means not executing and nothing pending. Scheduled means a cron timer
    will fire it. Running means it is executing right now. Error means the
    last run raised.
    """
    IDLE = "idle"
    SCHEDULED = "scheduled"
    RUNNING = "running"
    ERROR = "error"


@dataclass
class JobDefinition:
    """The type of job to create, its cron schedule (if any) and its options."""
    type: str
    schedule: Optional[str] = None
    options: Optional[Dict[str, Any]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "schedule": self.schedule,
            "options": dict(self.options) if self.options is not None else None,
        }


def is_valid_cron(expression: str) -> bool:
    """
    True when ``expression`` is a cron expression croniter can iterate. A
    sixth field is read as a leading seconds field.
    """
    try:
        return croniter.is_valid(expression, second_at_beginning=True)
    except Exception:
        return False


class Job(ABC):
    """
    Base class for module jobs.

    Subclasses must define:
        - name: matched against ``JobDefinition.type``; unique per module
        - _run(self) -> bool (coroutine)

    Optional overrides:
        - required_options: option keys that must be present
        - _handle_error(self, err)
        - _validate_options(self, options)

    Example:
        class SyncTickets(Job):
            name = "syncTickets"
            required_options = ("project",)

            async def _run(self) -> bool:
                ...
                return True
    """

    name: str = "job"
    required_options: Sequence[str] = ()

    def __init__(self, definition: JobDefinition):
        self.definition = definition
        self._status = JobStatus.IDLE
        self._running_id: Optional[str] = None

        self._validate_options(definition.options)

        if definition.schedule:
            if not is_valid_cron(definition.schedule):
                raise JobValidationError(
                    f"You have specified a cron schedule for a {self.name} job "
                    f"but the cron format is not valid",
                    job_type=self.name,
                    field="schedule",
                    value=definition.schedule
                )
            self.schedule()

    @property
    def status(self) -> JobStatus:
        return self._status

    @property
    def running_id(self) -> Optional[str]:
        return self._running_id

    def schedule(self) -> "Job":
        """Mark the job as scheduled under a freshly generated timer id."""
        if not self.definition.schedule:
            raise JobValidationError(
                "Schedule property not set on job definition.",
                job_type=self.name,
                field="schedule"
            )
        self._running_id = str(uuid.uuid4())
        self._status = JobStatus.SCHEDULED
        return self

    def as_json(self) -> Dict[str, Any]:
        """Information about this job for reporting."""
        return {
            "running_id": self._running_id,
            "type": self.name,
            "definition": self.definition.to_dict(),
        }

    async def run(self) -> bool:
        """
        Execute the job once.

        This is the only entry point, used by cron timers and manual triggers
        alike. Errors raised by ``_run`` are handled here and never reach the
        caller; the return value says whether the run succeeded.
        """
        previous_status = self._status
        self._status = JobStatus.RUNNING
        started = time.monotonic()

        try:
            result = bool(await self._run())
        except Exception as e:
            self._status = JobStatus.ERROR
            record_job_run(self.name, "error", time.monotonic() - started)
            try:
                self._handle_error(e)
            except Exception:
                logger.exception(f"Error handler of job {self.name} raised")
            return False

        if previous_status in (JobStatus.IDLE, JobStatus.SCHEDULED):
            self._status = previous_status
        else:
            # Recovering from ERROR (or an overlapping run's RUNNING) is not
            # restored; the job goes back to SCHEDULED or IDLE.
            self._status = self._resting_status()

        record_job_run(self.name, "success" if result else "failure", time.monotonic() - started)
        return result

    def set_options(self, options: Dict[str, Any]) -> None:
        self._validate_options(options)
        self.definition.options = options

    def _resting_status(self) -> JobStatus:
        if self._running_id and self.definition.schedule:
            return JobStatus.SCHEDULED
        return JobStatus.IDLE

    @abstractmethod
    async def _run(self) -> bool:
        """Do the work the job entails."""

    def _handle_error(self, err: Exception) -> None:
        """
        Called when ``_run`` raises. Logs by default; override to notify an
        owner or clean up.
        """
        logger.error(
            f"Job {self.name} failed with error: {err}",
            exc_info=err,
            extra={"job_type": self.name, "running_id": self._running_id}
        )

    def _validate_options(self, options: Optional[Dict[str, Any]] = None) -> None:
        """
        Ensure the given options are usable; raises ``JobValidationError``.
        """
        options = options if options is not None else self.definition.options
        if options is None:
            raise JobValidationError(
                "Unable to validate options because none were given",
                job_type=self.name,
                field="options"
            )

        for key in self.required_options:
            if key not in options:
                raise JobValidationError(
                    f'The "{key}" option is required for the {self.name} job',
                    job_type=self.name,
                    field=key
                )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r} status={self._status.value}>"
