"""
Repositórios Django para Inscrições e Ingressos.

Implementam as interfaces (Ports) definidas no Core.
São DRIVEN ADAPTERS - acionados pelo Core em resposta a operações.

Concorrência:
- Admissão: SELECT ... FOR UPDATE na linha do evento serializa
  contagem + insert até o fim da transação (PostgreSQL)
- Transições: UPDATE ... WHERE status = <esperado>, conferindo
  o número de linhas afetadas (compare-and-set)

Erros do banco (conectividade, constraint) viram StorageError.
"""

from contextlib import contextmanager
from datetime import datetime
from functools import wraps
from typing import Any, Dict, Iterator, List, Optional
import logging

from django.db import DatabaseError, transaction

from src.core.registrations.entities import (
    EventInfo,
    RegistrationEntity,
    RegistrationStatus,
    TicketEntity,
    TicketStatus,
)
from src.core.shared.events import DomainEvent
from src.core.shared.exceptions import StorageError

from .mappers import DomainEventMapper, EventMapper, RegistrationMapper, TicketMapper
from .models import DomainEventModel, EventModel, RegistrationModel, TicketModel

logger = logging.getLogger(__name__)


def storage_errors(method):
    """Converte DatabaseError em StorageError preservando a causa."""

    @wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except DatabaseError as e:
            logger.error("Falha de persistência em %s: %s", method.__qualname__, e)
            raise StorageError(f"Falha de persistência: {e}") from e

    return wrapper


class DjangoEventStore:
    """Leitura de eventos via ORM."""

    def __init__(self):
        self._mapper = EventMapper()

    @storage_errors
    def get_event(self, event_id: str) -> Optional[EventInfo]:
        model = EventModel.objects.filter(id=event_id).first()
        if model is None:
            logger.debug("Event not found: %s", event_id)
            return None
        return self._mapper.to_entity(model)


class DjangoRegistrationRepository:
    """
    Implementação Django do RegistrationRepository.

    Example:
        repo = DjangoRegistrationRepository()
        with transaction.atomic():
            with repo.lock_event_for_admission(event_id):
                if repo.count_active_registrations(event_id) < capacity:
                    repo.insert(registration)
    """

    def __init__(self, using: str = "default"):
        self._using = using
        self._mapper = RegistrationMapper()

    @contextmanager
    def lock_event_for_admission(self, event_id: str) -> Iterator[None]:
        """
        Bloqueia a linha do evento até o fim da transação corrente.

        O lock do banco não é liberado na saída do contexto, e sim no
        commit/rollback do UnitOfWork.

        Raises:
            RuntimeError: Fora de transaction.atomic()
        """
        if not transaction.get_connection(self._using).in_atomic_block:
            raise RuntimeError("lock_event_for_admission exige transação aberta")

        try:
            locked = list(
                EventModel.objects.using(self._using)
                .select_for_update()
                .filter(id=event_id)
                .values_list("id", flat=True)
            )
        except DatabaseError as e:
            raise StorageError(f"Falha ao bloquear evento {event_id}: {e}") from e

        if not locked:
            logger.warning("Lock de admissão em evento inexistente: %s", event_id)
        yield

    @storage_errors
    def count_active_registrations(self, event_id: str) -> int:
        return (
            RegistrationModel.objects.using(self._using)
            .filter(event_id=event_id, status=RegistrationStatus.ACTIVE.value)
            .count()
        )

    @storage_errors
    def find_by_event_and_user(self, event_id: str, user_id: str) -> Optional[RegistrationEntity]:
        model = (
            RegistrationModel.objects.using(self._using)
            .filter(event_id=event_id, user_id=user_id)
            .first()
        )
        return self._mapper.to_entity(model) if model else None

    @storage_errors
    def insert(self, registration: RegistrationEntity) -> None:
        self._mapper.to_model(registration).save(using=self._using, force_insert=True)
        logger.debug("Registration inserted: %s", registration.id)

    @storage_errors
    def update_status(
        self,
        registration_id: str,
        expected: RegistrationStatus,
        new: RegistrationStatus,
        changed_at: datetime,
    ) -> bool:
        fields: Dict[str, Any] = {"status": new.value}
        if new == RegistrationStatus.CANCELLED:
            fields["cancelled_at"] = changed_at
        else:
            fields["cancelled_at"] = None
            fields["reactivated_at"] = changed_at

        updated = (
            RegistrationModel.objects.using(self._using)
            .filter(id=registration_id, status=expected.value)
            .update(**fields)
        )
        return updated == 1

    @storage_errors
    def get_by_id(self, registration_id: str) -> Optional[RegistrationEntity]:
        model = RegistrationModel.objects.using(self._using).filter(id=registration_id).first()
        return self._mapper.to_entity(model) if model else None

    @storage_errors
    def list_by_event(
        self,
        event_id: str,
        status: Optional[RegistrationStatus] = None,
    ) -> List[RegistrationEntity]:
        queryset = RegistrationModel.objects.using(self._using).filter(event_id=event_id)
        if status is not None:
            queryset = queryset.filter(status=status.value)
        return self._mapper.to_entity_list(queryset.order_by("created_at"))


class DjangoTicketRepository:
    """Implementação Django do TicketRepository."""

    def __init__(self, using: str = "default"):
        self._using = using
        self._mapper = TicketMapper()

    def _queryset(self):
        return TicketModel.objects.using(self._using)

    @storage_errors
    def insert(self, ticket: TicketEntity) -> None:
        self._mapper.to_model(ticket).save(using=self._using, force_insert=True)
        logger.debug("Ticket inserted: %s", ticket.id)

    @storage_errors
    def update_status(
        self,
        ticket_id: str,
        expected: TicketStatus,
        new: TicketStatus,
        changed_at: datetime,
    ) -> bool:
        fields: Dict[str, Any] = {"status": new.value}
        if new.timestamp_field:
            fields[new.timestamp_field] = changed_at

        updated = (
            self._queryset()
            .filter(id=ticket_id, status=expected.value)
            .update(**fields)
        )
        return updated == 1

    @storage_errors
    def get_by_id(self, ticket_id: str) -> Optional[TicketEntity]:
        model = self._queryset().filter(id=ticket_id).first()
        return self._mapper.to_entity(model) if model else None

    @storage_errors
    def get_by_code(self, ticket_code: str) -> Optional[TicketEntity]:
        model = self._queryset().filter(ticket_code=ticket_code).first()
        return self._mapper.to_entity(model) if model else None

    @storage_errors
    def code_exists(self, ticket_code: str) -> bool:
        return self._queryset().filter(ticket_code=ticket_code).exists()

    @storage_errors
    def find_valid_for_registration(self, registration_id: str) -> Optional[TicketEntity]:
        model = (
            self._queryset()
            .filter(registration_id=registration_id, status=TicketStatus.VALID.value)
            .first()
        )
        return self._mapper.to_entity(model) if model else None

    @storage_errors
    def list_by_user(self, user_id: str) -> List[TicketEntity]:
        return self._mapper.to_entity_list(
            self._queryset().filter(user_id=user_id).order_by("-issued_at")
        )

    @storage_errors
    def list_by_event(self, event_id: str) -> List[TicketEntity]:
        return self._mapper.to_entity_list(
            self._queryset().filter(event_id=event_id).order_by("-issued_at")
        )

    @storage_errors
    def list_valid_for_ended_events(self, now: datetime) -> List[TicketEntity]:
        return self._mapper.to_entity_list(
            self._queryset()
            .filter(status=TicketStatus.VALID.value, event__end_time__lte=now)
            .order_by("issued_at")
        )


class DjangoDomainEventLog:
    """
    Log de auditoria de eventos de domínio via ORM.

    Gravado pelo DjangoUnitOfWork dentro da transação da operação.
    """

    @storage_errors
    def append(self, event: DomainEvent, sequence: int = 0) -> None:
        DomainEventMapper.to_model(event, sequence=sequence).save(force_insert=True)
        logger.debug("Event stored: %s for %s", event.event_type, event.aggregate_id)

    @storage_errors
    def get_events_for_aggregate(self, aggregate_id: str) -> List[Dict[str, Any]]:
        events = (
            DomainEventModel.objects
            .filter(aggregate_id=aggregate_id)
            .order_by("sequence")
        )
        return [
            {
                "event_id": e.event_id,
                "event_type": e.event_type,
                "aggregate_id": e.aggregate_id,
                "event_data": e.event_data,
                "sequence": e.sequence,
                "occurred_at": e.occurred_at,
            }
            for e in events
        ]
