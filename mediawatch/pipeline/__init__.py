"""Ingestion, enrichment, brief and maintenance jobs."""

from .brief import DailyBriefGenerator
from .cleanup import run_evidence_cleanup
from .deadline import Deadline
from .enrichment import Enricher, EnrichmentTask
from .orchestrator import IngestionOrchestrator, IngestionStats
from .pool import WorkerPool
from .scheduler import ScheduledJob, Scheduler

__all__ = [
    "DailyBriefGenerator",
    "Deadline",
    "Enricher",
    "EnrichmentTask",
    "IngestionOrchestrator",
    "IngestionStats",
    "ScheduledJob",
    "Scheduler",
    "WorkerPool",
    "run_evidence_cleanup",
]
