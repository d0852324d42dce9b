"""
Fixtures dos testes de core de Inscrições.

Usa repositórios em memória e um FakeUnitOfWork: nenhum teste
deste diretório toca banco de dados.
"""

from typing import List

import pytest

from src.core.registrations.ports import (
    InMemoryEventStore,
    InMemoryRegistrationRepository,
    InMemoryTicketRepository,
)
from src.core.registrations.use_cases import (
    CancelRegistrationService,
    CheckAvailabilityService,
    ExpireTicketsService,
    IssueTicketForRegistrationService,
    RegisterForEventService,
    UseTicketService,
    VerifyTicketService,
)
from src.core.shared.events import DomainEvent
from src.core.shared.interfaces import UnitOfWork


class FakeUnitOfWork(UnitOfWork):
    """
    Fake Unit of Work para testes.

    Permite testar:
    - Comportamento de commit/rollback
    - Eventos publicados somente após commit
    """

    def __init__(self):
        super().__init__()
        self.committed = False
        self.rolled_back = False
        self.published: List[DomainEvent] = []

    def _begin_transaction(self):
        self.committed = False
        self.rolled_back = False

    def commit(self):
        self.committed = True
        self.published.extend(self._events)
        self.clear_events()

    def rollback(self):
        self.rolled_back = True
        self.clear_events()

    def published_types(self) -> List[str]:
        return [e.event_type for e in self.published]


@pytest.fixture
def event_store():
    return InMemoryEventStore()


@pytest.fixture
def registration_repo():
    return InMemoryRegistrationRepository()


@pytest.fixture
def ticket_repo(event_store):
    return InMemoryTicketRepository(event_store=event_store)


@pytest.fixture
def uow():
    return FakeUnitOfWork()


@pytest.fixture
def uow_factory():
    """Um FakeUnitOfWork por chamada, como o Factory do container."""
    return FakeUnitOfWork


class Services:
    """Monta use cases sobre os mesmos repositórios em memória."""

    def __init__(self, event_store, registration_repo, ticket_repo, clock):
        self.event_store = event_store
        self.registration_repo = registration_repo
        self.ticket_repo = ticket_repo
        self.clock = clock

    def register(self, uow=None, **kwargs):
        return RegisterForEventService(
            self.event_store, self.registration_repo, self.ticket_repo,
            uow or FakeUnitOfWork(), now=self.clock, **kwargs
        )

    def cancel(self, uow=None):
        return CancelRegistrationService(
            self.event_store, self.registration_repo, self.ticket_repo,
            uow or FakeUnitOfWork(), now=self.clock
        )

    def availability(self, **kwargs):
        return CheckAvailabilityService(
            self.event_store, self.registration_repo, now=self.clock, **kwargs
        )

    def issue(self, uow=None):
        return IssueTicketForRegistrationService(
            self.event_store, self.registration_repo, self.ticket_repo,
            uow or FakeUnitOfWork(), now=self.clock
        )

    def verify(self, clock=None):
        return VerifyTicketService(self.event_store, self.ticket_repo, now=clock or self.clock)

    def use(self, uow=None, clock=None):
        return UseTicketService(
            self.event_store, self.ticket_repo, uow or FakeUnitOfWork(), now=clock or self.clock
        )

    def expire(self, uow=None, clock=None):
        return ExpireTicketsService(
            self.event_store, self.ticket_repo, uow or FakeUnitOfWork(), now=clock or self.clock
        )


@pytest.fixture
def services(event_store, registration_repo, ticket_repo, clock):
    return Services(event_store, registration_repo, ticket_repo, clock)
