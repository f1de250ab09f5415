"""
Performance metrics for session splitting runs.

Provides phase timing, memory usage tracking and a per-run summary that the
command line logs once processing completes.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional

import psutil

logger = logging.getLogger(__name__)


class ProcessingPhase(Enum):
    """Enumeration of processing phases for timing."""
    LOADING = "loading"
    WINDOWING = "windowing"
    WRITING = "writing"
    TOTAL_EXECUTION = "total_execution"


def get_process_memory_mb() -> float:
    """Resident memory of the current process in MB."""
    try:
        return psutil.Process().memory_info().rss / (1024 * 1024)
    except psutil.Error:
        return 0.0


@dataclass
class PhaseMetrics:
    """Metrics for a single processing phase."""
    phase: ProcessingPhase
    start_time: float
    end_time: Optional[float] = None
    duration_seconds: Optional[float] = None
    memory_start_mb: Optional[float] = None
    memory_end_mb: Optional[float] = None
    memory_delta_mb: Optional[float] = None

    def complete(self, memory_mb: Optional[float] = None):
        """Complete the phase timing and calculate metrics."""
        self.end_time = time.perf_counter()
        self.duration_seconds = self.end_time - self.start_time

        if memory_mb is not None:
            self.memory_end_mb = memory_mb
            if self.memory_start_mb is not None:
                self.memory_delta_mb = self.memory_end_mb - self.memory_start_mb


@dataclass
class RunMetrics:
    """Counters and timings for one session splitting run."""
    records_loaded: int = 0
    malformed_epoch_records: int = 0
    identifiers_discovered: int = 0
    windows_emitted: int = 0
    windows_ignored: int = 0
    identifiers_skipped: int = 0
    peak_memory_mb: float = 0.0
    phases: Dict[ProcessingPhase, PhaseMetrics] = field(default_factory=dict)

    def time_phase(self, phase: ProcessingPhase) -> 'PhaseTimer':
        """Context manager timing one phase."""
        return PhaseTimer(self, phase)

    def record_memory(self, memory_mb: Optional[float] = None):
        """Update peak memory with the current (or given) reading."""
        if memory_mb is None:
            memory_mb = get_process_memory_mb()
        self.peak_memory_mb = max(self.peak_memory_mb, memory_mb)

    def get_phase_duration(self, phase: ProcessingPhase) -> Optional[float]:
        metrics = self.phases.get(phase)
        return metrics.duration_seconds if metrics else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'records_loaded': self.records_loaded,
            'malformed_epoch_records': self.malformed_epoch_records,
            'identifiers_discovered': self.identifiers_discovered,
            'windows_emitted': self.windows_emitted,
            'windows_ignored': self.windows_ignored,
            'identifiers_skipped': self.identifiers_skipped,
            'peak_memory_mb': round(self.peak_memory_mb, 2),
            'phase_durations': {
                phase.value: round(m.duration_seconds, 4)
                for phase, m in self.phases.items()
                if m.duration_seconds is not None
            }
        }

    def log_summary(self, log: Optional[logging.Logger] = None):
        """Log a one-block run summary."""
        log = log or logger
        total = self.get_phase_duration(ProcessingPhase.TOTAL_EXECUTION)
        log.info(
            f"Processed {self.records_loaded} records, {self.identifiers_discovered} identifiers: "
            f"{self.windows_emitted} session(s) written, {self.windows_ignored} ignored, "
            f"{self.identifiers_skipped} skipped"
        )
        if self.malformed_epoch_records:
            log.warning(f"{self.malformed_epoch_records} record(s) had a malformed epoch time")
        if total is not None:
            log.info(f"Completed in {total:.2f}s (peak memory {self.peak_memory_mb:.1f} MB)")


class PhaseTimer:
    """Context manager recording a PhaseMetrics entry on a RunMetrics."""

    def __init__(self, metrics: RunMetrics, phase: ProcessingPhase):
        self.metrics = metrics
        self.phase = phase
        self.phase_metrics: Optional[PhaseMetrics] = None

    def __enter__(self) -> PhaseMetrics:
        memory = get_process_memory_mb()
        self.phase_metrics = PhaseMetrics(
            phase=self.phase,
            start_time=time.perf_counter(),
            memory_start_mb=memory
        )
        self.metrics.record_memory(memory)
        return self.phase_metrics

    def __exit__(self, exc_type, exc_val, exc_tb):
        memory = get_process_memory_mb()
        self.phase_metrics.complete(memory)
        self.metrics.phases[self.phase] = self.phase_metrics
        self.metrics.record_memory(memory)
        logger.debug(f"Phase {self.phase.value} took {self.phase_metrics.duration_seconds:.4f}s")
        return False
