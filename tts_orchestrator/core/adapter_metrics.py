"""
Per-adapter request counters shared by the performance monitor and the
selection strategies.
"""
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional


@dataclass
class AdapterMetrics:
    """
    Rolling counters for one adapter.

    Attributes:
        total_requests: Synthesis attempts recorded
        successful_requests: Attempts whose response reported success
        average_response_time: Rolling mean of attempt duration (ms)
        last_used: Time of the most recent attempt
        average_synthesis_rate: Rolling mean words/sec over measured attempts
        average_memory_usage: Rolling mean MB over measured attempts
        measured_requests: Attempts that contributed a synthesis rate
    """
    total_requests: int = 0
    successful_requests: int = 0
    average_response_time: float = 0.0
    last_used: Optional[datetime] = None
    average_synthesis_rate: float = 0.0
    average_memory_usage: float = 0.0
    measured_requests: int = 0

    @property
    def success_rate(self) -> float:
        """successful/total in [0, 1]; 0.0 when nothing was recorded."""
        if self.total_requests == 0:
            return 0.0
        return self.successful_requests / self.total_requests

    @property
    def failed_requests(self) -> int:
        return self.total_requests - self.successful_requests

    @property
    def error_rate(self) -> float:
        """Percent of failed attempts (0 - 100); 0.0 when nothing was recorded."""
        if self.total_requests == 0:
            return 0.0
        return self.failed_requests / self.total_requests * 100

    def record(
        self,
        response_time_ms: float,
        success: bool,
        synthesis_rate: Optional[float] = None,
        memory_usage: Optional[float] = None,
        when: Optional[datetime] = None,
    ) -> None:
        """Fold one attempt into the counters. Callers hold the adapter lock."""
        count = self.total_requests
        self.average_response_time = (self.average_response_time * count + response_time_ms) / (count + 1)
        self.total_requests = count + 1
        if success:
            self.successful_requests += 1
        self.last_used = when or datetime.now()

        if synthesis_rate is not None:
            measured = self.measured_requests
            self.average_synthesis_rate = (self.average_synthesis_rate * measured + synthesis_rate) / (measured + 1)
            self.average_memory_usage = (self.average_memory_usage * measured + (memory_usage or 0.0)) / (measured + 1)
            self.measured_requests = measured + 1

    def snapshot(self) -> "AdapterMetrics":
        return replace(self)
