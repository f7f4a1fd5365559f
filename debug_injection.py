"""
Forced-error hooks for exercising the classified error paths.

The resolver takes an injector at construction time and asks it once per
lookup which error kind, if any, to raise instead of reconciling.
"""
import logging
import threading

from errors import ErrorKind

logger = logging.getLogger(__name__)


class NoErrorInjection:
    def forced_error(self):
        return None


class FixedErrorInjection:
    """Always forces the same kind. Handy for a single resolver in tests."""

    def __init__(self, kind):
        self.kind = ErrorKind(kind)

    def forced_error(self):
        return self.kind


class ProcessErrorSwitch:
    """
    Process-wide switch shared by every resolver holding it.
    Last writer wins; it is a test control, not a production lock.
    """

    def __init__(self, kind=None):
        self._lock = threading.Lock()
        self._kind = ErrorKind.from_name(kind) if kind else None
        self._touched = self._kind is not None

    def set(self, kind):
        kind = kind if isinstance(kind, ErrorKind) else ErrorKind.from_name(kind)
        with self._lock:
            self._kind = kind
            self._touched = True
        logger.warning("Debug error injection enabled", extra={"event": "debug_switch_set", "data": {"kind": kind.value}})

    def clear(self):
        with self._lock:
            self._kind = None
            self._touched = True
        logger.info("Debug error injection cleared", extra={"event": "debug_switch_cleared"})

    def seed(self, kind):
        """Apply a startup default once; ignored after any explicit set or clear."""
        with self._lock:
            if self._touched or kind is None:
                return False
        self.set(kind)
        return True

    def forced_error(self):
        with self._lock:
            return self._kind


DEBUG_SWITCH = ProcessErrorSwitch()


def set_debug_error(kind):
    DEBUG_SWITCH.set(kind)


def clear_debug_error():
    DEBUG_SWITCH.clear()
