import logging

from prometheus_client import Counter, Gauge, Histogram, REGISTRY, generate_latest

from ..core.config import get_settings

logger = logging.getLogger(__name__)


def metrics_enabled() -> bool:
    return get_settings().METRICS_ENABLED


# Job run metrics
JOB_RUN_COUNT = Counter(
    "switchboard_job_run_count",
    "Number of job runs",
    ["job_type", "outcome"]
)

JOB_RUN_DURATION = Histogram(
    "switchboard_job_run_duration_seconds",
    "Duration of job runs in seconds",
    ["job_type"],
    buckets=(0.1, 0.5, 1, 2, 5, 10, 30, 60, 120, 300, 600, 1800, 3600)
)

# Module metrics
MODULE_LOAD_COUNT = Counter(
    "switchboard_module_load_count",
    "Number of module load attempts",
    ["outcome"]
)

ACTIVE_MODULES = Gauge(
    "switchboard_active_modules",
    "Number of modules in the running table"
)

SCHEDULED_JOBS = Gauge(
    "switchboard_scheduled_jobs",
    "Number of jobs with an active cron timer"
)


def record_job_run(job_type: str, outcome: str, duration: float) -> None:
    """
    Record one job run.

    Args:
        job_type: Name of the job
        outcome: success, failure or error
        duration: Duration of the run in seconds
    """
    if not metrics_enabled():
        return

    JOB_RUN_COUNT.labels(job_type=job_type, outcome=outcome).inc()
    JOB_RUN_DURATION.labels(job_type=job_type).observe(duration)


def record_module_load(outcome: str) -> None:
    if not metrics_enabled():
        return

    MODULE_LOAD_COUNT.labels(outcome=outcome).inc()


def set_active_modules(count: int) -> None:
    if not metrics_enabled():
        return

    ACTIVE_MODULES.set(count)


def set_scheduled_jobs(count: int) -> None:
    if not metrics_enabled():
        return

    SCHEDULED_JOBS.set(count)


def get_metrics() -> bytes:
    """
    Get the current metrics in Prometheus format.

    Returns:
        Metrics data as bytes
    """
    if not metrics_enabled():
        return b""

    return generate_latest(REGISTRY)
