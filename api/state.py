"""
Process-wide application state for the FuelEU Ledger API.

Holds what must be shared across requests and threads: the compliance
parameters built from settings, the balance lock registry, and (for
``STORAGE_BACKEND=memory``) the single in-memory ledger store.
"""
import threading
import logging
from typing import Optional
from datetime import datetime, timezone

from src.compliance.fueleu import ComplianceParameters
from src.compliance.locking import BalanceLocks, balance_locks
from src.compliance.memory import InMemoryComplianceStore

logger = logging.getLogger(__name__)


class ApplicationState:
    """
    Singleton application state.

    Double-checked locking guards creation; the memory store is created
    lazily on first use.
    """

    _instance: Optional['ApplicationState'] = None
    _lock: threading.Lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        from api.config import settings

        self._state_lock = threading.Lock()
        self._startup_time = datetime.now(timezone.utc)
        self._memory_store: Optional[InMemoryComplianceStore] = None
        self.params: ComplianceParameters = settings.compliance_parameters()
        self.locks: BalanceLocks = balance_locks
        self._initialized = True
        logger.info(
            "Application state initialized (target %.4f gCO2eq/MJ, backend %s)",
            self.params.target_intensity, settings.storage_backend,
        )

    @property
    def memory_store(self) -> InMemoryComplianceStore:
        """The shared in-memory ledger store."""
        with self._state_lock:
            if self._memory_store is None:
                self._memory_store = InMemoryComplianceStore()
            return self._memory_store

    def reset_memory_store(self) -> None:
        """Discard every in-memory balance, entry, pool and route."""
        with self._state_lock:
            self._memory_store = None

    @property
    def uptime_seconds(self) -> float:
        """Get application uptime in seconds."""
        return (datetime.now(timezone.utc) - self._startup_time).total_seconds()


def get_app_state() -> ApplicationState:
    """
    Get the application state singleton.

    Returns:
        ApplicationState: The singleton application state instance
    """
    return ApplicationState()
