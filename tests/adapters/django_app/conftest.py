"""
Fixtures para testes dos adapters Django.

O Django já foi configurado em tests/conftest.py (SQLite em memória).
Aqui ficam factories de models e services montados sobre os
repositórios Django reais.
"""

from datetime import timedelta
import uuid

import pytest


@pytest.fixture
def event_model_factory(now):
    """
    Factory para criar EventModel publicado e em andamento.

    Example:
        event = event_model_factory(capacity=1)
    """
    from src.adapters.django_app.registrations.models import EventModel

    def create_event(**kwargs):
        defaults = {
            "id": str(uuid.uuid4()),
            "capacity": 10,
            "start_time": now - timedelta(hours=1),
            "end_time": now + timedelta(hours=2),
            "status": "published",
            "is_public": True,
        }
        defaults.update(kwargs)
        return EventModel.objects.create(**defaults)

    return create_event


@pytest.fixture
def publisher():
    from src.adapters.django_app.events.publishers import InMemoryEventPublisher
    return InMemoryEventPublisher()


@pytest.fixture
def django_services(publisher, clock):
    """Use cases sobre repositórios Django e DjangoUnitOfWork."""
    from src.adapters.django_app.registrations.repositories import (
        DjangoDomainEventLog,
        DjangoEventStore,
        DjangoRegistrationRepository,
        DjangoTicketRepository,
    )
    from src.adapters.django_app.shared.unit_of_work import DjangoUnitOfWork
    from src.core.registrations import use_cases

    event_store = DjangoEventStore()
    registration_repo = DjangoRegistrationRepository()
    ticket_repo = DjangoTicketRepository()

    def uow():
        return DjangoUnitOfWork(event_publisher=publisher, event_log=DjangoDomainEventLog())

    class DjangoServices:

        def register(self):
            return use_cases.RegisterForEventService(
                event_store, registration_repo, ticket_repo, uow(), now=clock
            )

        def cancel(self):
            return use_cases.CancelRegistrationService(
                event_store, registration_repo, ticket_repo, uow(), now=clock
            )

        def use(self, now=None):
            return use_cases.UseTicketService(event_store, ticket_repo, uow(), now=now or clock)

        def expire(self, now=None):
            return use_cases.ExpireTicketsService(
                event_store, ticket_repo, uow(), now=now or clock
            )

    return DjangoServices()
