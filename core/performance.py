"""
=================================================
Execution metrics for statement dispatch.
=================================================

Measures wall time, CPU time and resident memory change around a block of
work. The execution coordinator wraps every dispatch in an ExecutionMonitor
and exposes the collected numbers as Query.metrics.

Example:
    >>> from core.performance import ExecutionMonitor
    >>>
    >>> with ExecutionMonitor('batch insert') as monitor:
    ...     run_statements()
    >>> print(monitor.metrics['execution_time'])
"""

import logging
import time
from typing import Dict, Optional

import psutil

logger = logging.getLogger(__name__)


class ExecutionMonitor:
    """Context manager collecting execution metrics with psutil.

    Attributes:
        label: Name of the monitored unit of work, used in log lines
        metrics: Collected values after the block exits. Keys are
            execution_time (seconds), cpu_time (seconds) and
            memory_delta (MB); resource keys are missing when psutil
            cannot read the current process.
    """

    def __init__(self, label: str, log: Optional[logging.Logger] = None):
        self.label = label
        self.metrics: Dict[str, float] = {}
        self._log = log or logger
        self._start_time = None
        self._start_cpu_times = None
        self._start_memory = None

    def __enter__(self) -> 'ExecutionMonitor':
        self._start_time = time.perf_counter()
        try:
            process = psutil.Process()
            self._start_cpu_times = process.cpu_times()
            self._start_memory = process.memory_info()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            self._log.warning("Could not access process metrics")
        return self

    def __exit__(self, exc_type, exc, tb):
        self.metrics['execution_time'] = time.perf_counter() - self._start_time

        if self._start_cpu_times is not None:
            try:
                process = psutil.Process()
                end_cpu_times = process.cpu_times()
                end_memory = process.memory_info()
                self.metrics['cpu_time'] = (
                    (end_cpu_times.user - self._start_cpu_times.user) +
                    (end_cpu_times.system - self._start_cpu_times.system)
                )
                self.metrics['memory_delta'] = (end_memory.rss - self._start_memory.rss) / 1024 / 1024
            except (psutil.NoSuchProcess, psutil.AccessDenied):
                self._log.warning("Could not collect final process metrics")

        self._log.debug(
            f"{self.label} finished in {self.metrics['execution_time']:.4f}s "
            f"(cpu {self.metrics.get('cpu_time', 0.0):.4f}s, "
            f"memory {self.metrics.get('memory_delta', 0.0):+.2f}MB)"
        )
        return False
