from .logger import setup_logging, get_logger, LoggerAdapter
from .metrics import (
    record_job_run, record_module_load, get_metrics,
    JOB_RUN_COUNT, JOB_RUN_DURATION, MODULE_LOAD_COUNT, ACTIVE_MODULES, SCHEDULED_JOBS
)
