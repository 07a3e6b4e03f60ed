# data_enricher/utils/diagnostics.py
import threading
from collections import deque
from dataclasses import dataclass, field, asdict
from typing import List, Dict, Any, Optional, Callable
from datetime import datetime
from ..config import DIAGNOSTICS_BUFFER_SIZE


@dataclass
class DiagnosticEvent:
    """One entry of the diagnostic side channel"""
    timestamp: str
    level: str
    component: str
    message: str
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class DiagnosticBuffer:
    """Thread-safe circular buffer for diagnostic events emitted by the pipeline"""

    def __init__(self, max_size: int = 1000):
        self.max_size = max_size
        self.buffer = deque(maxlen=max_size)
        self.lock = threading.Lock()
        self.subscribers: List[Callable[[DiagnosticEvent], None]] = []
        self.subscriber_lock = threading.Lock()

    def add_event(self, level: str, component: str, message: str,
                  payload: Optional[Dict[str, Any]] = None,
                  timestamp: Optional[str] = None) -> DiagnosticEvent:
        """Add an event to the buffer and notify subscribers"""
        if timestamp is None:
            timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        event = DiagnosticEvent(
            timestamp=timestamp,
            level=level,
            component=component,
            message=message,
            payload=dict(payload or {}),
        )

        with self.lock:
            self.buffer.append(event)

        self._notify_subscribers(event)
        return event

    def get_recent_events(self, limit: int = 50, level: Optional[str] = None,
                          component: Optional[str] = None) -> List[DiagnosticEvent]:
        """Get recent events, optionally filtered by level and component prefix"""
        with self.lock:
            events = list(self.buffer)

        if level:
            events = [e for e in events if e.level.lower() == level.lower()]
        if component:
            events = [e for e in events if e.component.startswith(component)]

        return events[-limit:] if events else []

    def get_all_events(self) -> List[DiagnosticEvent]:
        with self.lock:
            return list(self.buffer)

    def clear(self):
        with self.lock:
            self.buffer.clear()

    def subscribe(self, callback: Callable[[DiagnosticEvent], None]):
        with self.subscriber_lock:
            self.subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[DiagnosticEvent], None]):
        with self.subscriber_lock:
            if callback in self.subscribers:
                self.subscribers.remove(callback)

    def _notify_subscribers(self, event: DiagnosticEvent):
        with self.subscriber_lock:
            callbacks = list(self.subscribers)
        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                # a broken subscriber must not break the pipeline
                print(f"Error notifying diagnostics subscriber: {e}")

    def get_stats(self) -> Dict[str, Any]:
        """Get event statistics"""
        with self.lock:
            total_events = len(self.buffer)
            level_counts: Dict[str, int] = {}
            component_counts: Dict[str, int] = {}

            for event in self.buffer:
                level_counts[event.level] = level_counts.get(event.level, 0) + 1
                component_counts[event.component] = component_counts.get(event.component, 0) + 1

            return {
                "total_events": total_events,
                "level_counts": level_counts,
                "component_counts": component_counts,
                "buffer_size": self.max_size,
                "buffer_usage": (total_events / self.max_size) * 100
            }


# Global diagnostics buffer instance
diagnostic_buffer = DiagnosticBuffer(max_size=DIAGNOSTICS_BUFFER_SIZE)


def get_recent_events(limit: int = 50, level: Optional[str] = None,
                      component: Optional[str] = None) -> List[Dict[str, Any]]:
    """Get recent events from the global buffer as plain dicts"""
    return [e.to_dict() for e in diagnostic_buffer.get_recent_events(limit, level, component)]


def get_diagnostic_stats() -> Dict[str, Any]:
    return diagnostic_buffer.get_stats()
