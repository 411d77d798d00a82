"""
Activity stream for harvesting runs.

Every noteworthy step (cache skip, fetch attempt, not-found, error, batch
milestones) is reported here as one timestamped line through ``logging``.
Counts per event kind are kept so callers and tests can inspect a run.
"""

import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

SKIP = "skip"
FETCH = "fetch"
STORED = "stored"
NOT_FOUND = "not_found"
ERROR = "error"
BATCH_START = "batch_start"
BATCH_END = "batch_end"

_LEVELS = {
    ERROR: logging.ERROR,
    NOT_FOUND: logging.INFO,
}


class ActivityLog:
    """Key/value "activity happened" notifications"""

    def __init__(self, keep_history: bool = False):
        self.counts: Counter = Counter()
        self.keep_history = keep_history
        self.history: List[Tuple[str, Dict[str, Any]]] = []

    def record(self, event: str, message: Optional[str] = None, **details: Any) -> None:
        self.counts[event] += 1
        if self.keep_history:
            self.history.append((event, details))
        logger.log(_LEVELS.get(event, logging.INFO), message or self._describe(event, details))

    def events(self, event: str) -> List[Dict[str, Any]]:
        return [details for kind, details in self.history if kind == event]

    def reset(self) -> None:
        self.counts.clear()
        self.history.clear()

    @staticmethod
    def _describe(event: str, details: Dict[str, Any]) -> str:
        if not details:
            return event
        rendered = ", ".join(f"{key}={value}" for key, value in details.items())
        return f"{event}: {rendered}"
