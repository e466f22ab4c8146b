"""
apimock Request Log and Statistics

Bounded log of recent mock requests and the counters reported by the
statistics endpoint.
"""

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from ..common import generate_id, isoformat, utc_now


DEFAULT_LOG_CAPACITY = 1000


@dataclass
class RequestLogEntry:
    """One inbound mock request."""

    method: str
    path: str
    body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)
    id: str = field(default_factory=generate_id)
    timestamp: datetime = field(default_factory=utc_now)
    matched: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'method': self.method,
            'url': self.path,
            'body': self.body,
            'headers': self.headers,
            'timestamp': isoformat(self.timestamp),
            'matched': self.matched
        }


class RequestLogStore:
    """
    FIFO log of the most recent requests.

    Backed by a deque with maxlen, so appending past capacity drops the
    oldest entry in the same operation.

    Example:
        store = RequestLogStore(capacity=1000)
        entry = store.append(RequestLogEntry('GET', '/api/users'))
        store.list(limit=10)  # most recent first
    """

    def __init__(self, capacity: int = DEFAULT_LOG_CAPACITY):
        if capacity <= 0:
            raise ValueError('Request log capacity must be positive')
        self.capacity = capacity
        self._entries: deque = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, entry: RequestLogEntry) -> RequestLogEntry:
        with self._lock:
            self._entries.append(entry)
        return entry

    def mark_matched(self, entry: RequestLogEntry) -> None:
        with self._lock:
            entry.matched = True

    def list(self, limit: Optional[int] = 100) -> List[RequestLogEntry]:
        """Return up to limit entries, most recent first."""
        with self._lock:
            entries = list(reversed(self._entries))
        return entries if limit is None else entries[:max(limit, 0)]

    def count_since(self, since: datetime) -> int:
        with self._lock:
            return sum(1 for e in self._entries if e.timestamp >= since)

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        return count

    def __len__(self) -> int:
        return len(self._entries)


class StatisticsCollector:
    """Rolling request counters."""

    def __init__(self):
        self._lock = threading.Lock()
        self.total_requests = 0
        self.matched_requests = 0
        self.start_time = utc_now()

    def record_request(self) -> None:
        with self._lock:
            self.total_requests += 1

    def record_match(self) -> None:
        with self._lock:
            self.matched_requests += 1

    def reset(self) -> None:
        with self._lock:
            self.total_requests = 0
            self.matched_requests = 0

    def snapshot(
        self,
        log_store: Optional[RequestLogStore] = None,
        registry_counts: Optional[Dict[str, int]] = None
    ) -> Dict[str, Any]:
        """
        Build the statistics payload.

        Args:
            log_store: Used for the number of requests in the last hour
            registry_counts: Config and route counts from the registry
        """
        with self._lock:
            data: Dict[str, Any] = {
                'totalRequests': self.total_requests,
                'matchedRequests': self.matched_requests
            }

        data.update(registry_counts or {})
        data['recentRequests'] = log_store.count_since(utc_now() - timedelta(hours=1)) if log_store else 0
        data['uptimeSeconds'] = round((utc_now() - self.start_time).total_seconds(), 2)
        return data
