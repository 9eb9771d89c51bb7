"""
Prometheus metrics for the swap risk dashboard.

Tracks swap attempts, orchestrator state transitions, quoted price impact
and ledger transport failures. Exposed through the web server's /metrics
endpoint.
"""

import logging
import threading
from decimal import Decimal
from typing import Optional, Tuple, Union

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)


class SwapMetrics:
    """
    Swap and quote metrics collection.

    Each instance owns its registry unless one is passed in, so tests and
    multiple app instances do not collide on metric names.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry()
        self._lock = threading.RLock()
        self._initialize_metrics()

    def _initialize_metrics(self):
        """Initialize all Prometheus metrics"""

        # === SWAP METRICS ===
        self.swaps_started_total = Counter(
            "swap_risk_swaps_started_total",
            "Total number of swap attempts started",
            ["direction"],
            registry=self.registry,
        )

        self.swaps_finished_total = Counter(
            "swap_risk_swaps_finished_total",
            "Total number of swap attempts by terminal outcome",
            ["direction", "outcome"],
            registry=self.registry,
        )

        self.state_transitions_total = Counter(
            "swap_risk_state_transitions_total",
            "Swap orchestrator state transitions",
            ["state"],
            registry=self.registry,
        )

        self.approvals_submitted_total = Counter(
            "swap_risk_approvals_submitted_total",
            "Approval instructions issued because allowance was insufficient",
            registry=self.registry,
        )

        # === QUOTE METRICS ===
        self.quotes_total = Counter(
            "swap_risk_quotes_total",
            "Quotes computed",
            ["source"],
            registry=self.registry,
        )

        self.quoted_price_impact_pct = Histogram(
            "swap_risk_quoted_price_impact_pct",
            "Absolute price impact of quoted swaps in percent",
            ["direction"],
            buckets=[0.1, 0.5, 1, 3, 10, 25, 50, 100],
            registry=self.registry,
        )

        # === LEDGER METRICS ===
        self.transport_errors_total = Counter(
            "swap_risk_transport_errors_total",
            "Failed reads or writes against the external ledger",
            ["operation"],
            registry=self.registry,
        )

    def record_swap_started(self, direction: str):
        with self._lock:
            self.swaps_started_total.labels(direction=direction).inc()

    def record_transition(self, state: str):
        with self._lock:
            self.state_transitions_total.labels(state=state).inc()

    def record_swap_finished(self, direction: str, outcome: str):
        """Record a terminal outcome ("confirmed" or a failure reason)."""
        with self._lock:
            self.swaps_finished_total.labels(direction=direction, outcome=outcome).inc()

    def record_approval_submitted(self):
        with self._lock:
            self.approvals_submitted_total.inc()

    def record_quote(
        self,
        source: str,
        direction: Optional[str] = None,
        impact_pct: Optional[Union[Decimal, float]] = None,
    ):
        with self._lock:
            self.quotes_total.labels(source=source).inc()
            if direction is not None and impact_pct is not None:
                self.quoted_price_impact_pct.labels(direction=direction).observe(
                    abs(float(impact_pct))
                )

    def record_transport_error(self, operation: str):
        with self._lock:
            self.transport_errors_total.labels(operation=operation).inc()

    def render(self) -> Tuple[bytes, str]:
        """Return the exposition payload and its content type."""
        return generate_latest(self.registry), CONTENT_TYPE_LATEST


_default_metrics: Optional[SwapMetrics] = None


def get_metrics() -> SwapMetrics:
    """Process-wide metrics instance used when none is injected."""
    global _default_metrics
    if _default_metrics is None:
        _default_metrics = SwapMetrics()
        logger.debug("Initialized default swap metrics registry")
    return _default_metrics
