"""
FastAPI dependencies wiring the ledger services to the configured store.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from api.config import settings
from api.database import get_db
from api.repositories import SqlComplianceStore
from api.state import get_app_state
from src.compliance.banking import BankingService
from src.compliance.ledger import ComplianceService
from src.compliance.pooling import PoolingService
from src.compliance.ports import ComplianceStore
from src.compliance.routes import RouteService


def get_store(db: Session = Depends(get_db)) -> ComplianceStore:
    """Request-scoped store: SQL on the request's session, or the shared memory store."""
    if settings.storage_backend == "memory":
        return get_app_state().memory_store
    return SqlComplianceStore(db)


def get_compliance_service(store: ComplianceStore = Depends(get_store)) -> ComplianceService:
    state = get_app_state()
    return ComplianceService(store, params=state.params, locks=state.locks)


def get_banking_service(store: ComplianceStore = Depends(get_store)) -> BankingService:
    return BankingService(store, locks=get_app_state().locks)


def get_pooling_service(store: ComplianceStore = Depends(get_store)) -> PoolingService:
    return PoolingService(store, locks=get_app_state().locks)


def get_route_service(store: ComplianceStore = Depends(get_store)) -> RouteService:
    state = get_app_state()
    return RouteService(store, params=state.params, locks=state.locks)
