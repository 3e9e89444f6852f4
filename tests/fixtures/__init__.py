"""
Shared test fixtures for the requestworker library.

This module provides reusable test fixtures including:
- Message models (OrderCreated, OrderCancelled, Note)
- State models (WorkerState, RequestState, CredentialState, AliasedState)
- Background services (OrderService, NotesService) under the FixtureService marker
- Resolution scope doubles (RecordingScopeFactory)

Usage:
    from tests.fixtures import (
        FixtureService,
        OrderCreated,
        OrderService,
        RecordingScopeFactory,
        WorkerState,
    )
"""

from tests.fixtures.messages import (
    AliasedState,
    CredentialState,
    Note,
    OrderCancelled,
    OrderCreated,
    RequestState,
    WorkerState,
)
from tests.fixtures.services import (
    FixtureService,
    NotesService,
    OrderService,
    RecordingScope,
    RecordingScopeFactory,
    Rendezvous,
)

__all__ = [
    # Messages
    "Note",
    "OrderCancelled",
    "OrderCreated",
    # State
    "AliasedState",
    "CredentialState",
    "RequestState",
    "WorkerState",
    # Services
    "FixtureService",
    "NotesService",
    "OrderService",
    "Rendezvous",
    # Scopes
    "RecordingScope",
    "RecordingScopeFactory",
]
