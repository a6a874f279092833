import time
import logging
from typing import Dict, Optional
from contextlib import contextmanager

from compliance_kb.core.config import settings

logger = logging.getLogger(__name__)

class LatencyTracker:
    """Times knowledge base scans; slow ones are logged as warnings."""

    def __init__(self, slow_threshold_ms: Optional[float] = None):
        self.slow_threshold_ms = settings.SLOW_SEARCH_MS if slow_threshold_ms is None else slow_threshold_ms
        self.last_ms: Dict[str, float] = {}

    @contextmanager
    def measure(self, operation: str, tenant_id: str):
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self.last_ms[operation] = elapsed_ms
            if elapsed_ms >= self.slow_threshold_ms:
                logger.warning(f"Slow {operation} for tenant {tenant_id}: {elapsed_ms:.2f}ms")
            else:
                logger.info(f"{operation} for tenant {tenant_id} took {elapsed_ms:.2f}ms")
