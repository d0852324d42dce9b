"""
Ports (Interfaces) do Domínio de Inscrições e Ingressos.

Define os contratos que os Adapters de infraestrutura devem implementar.

Tipos de Ports:
- EventStore: Leitura de eventos (sistema externo)
- AccessPolicy: Quem tem acesso elevado a um evento
- RegistrationRepository: Persistência de inscrições + lock de admissão
- TicketRepository: Persistência de ingressos com compare-and-set

Concorrência:
    Transições de status usam compare-and-set (`update_status` com o
    status esperado). Retorno False significa que outra transação
    chegou primeiro; o core relê e reporta o estado real.

    A admissão (verificação de capacidade + insert) roda dentro de
    `lock_event_for_admission`, que serializa admissões por evento.
"""

from collections import defaultdict
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
import threading
from typing import ContextManager, Dict, Iterator, List, Optional, Protocol, runtime_checkable

from src.core.shared.exceptions import StorageError
from .entities import (
    EventInfo,
    RegistrationEntity,
    RegistrationStatus,
    TicketEntity,
    TicketStatus,
)


@runtime_checkable
class EventStore(Protocol):
    """Interface de leitura de eventos (pertencem a outro sistema)."""

    def get_event(self, event_id: str) -> Optional[EventInfo]:
        """Retorna o evento ou None se não existir."""
        ...


@runtime_checkable
class AccessPolicy(Protocol):
    """
    Decide se um usuário tem acesso elevado a um evento.

    Acesso elevado libera inscrição em eventos privados. Eventos não
    publicados continuam fechados para todos.
    Chamadas anônimas (user_id None) nunca têm acesso elevado.
    """

    def has_elevated_access(self, event: EventInfo, user_id: Optional[str]) -> bool:
        ...


class OwnerAccessPolicy:
    """Política padrão: apenas o dono do evento tem acesso elevado."""

    def has_elevated_access(self, event: EventInfo, user_id: Optional[str]) -> bool:
        if user_id is None:
            return False
        return event.owner_id is not None and event.owner_id == user_id


@runtime_checkable
class RegistrationRepository(Protocol):
    """
    Interface para persistência de Inscrições.

    Implementações:
    - DjangoRegistrationRepository (SELECT ... FOR UPDATE na linha do evento)
    - InMemoryRegistrationRepository (lock por evento, para testes)
    """

    def lock_event_for_admission(self, event_id: str) -> ContextManager[None]:
        """
        Serializa admissões do evento enquanto o contexto estiver aberto.

        Deve ser usado dentro de uma transação do UnitOfWork.
        """
        ...

    def count_active_registrations(self, event_id: str) -> int:
        ...

    def find_by_event_and_user(self, event_id: str, user_id: str) -> Optional[RegistrationEntity]:
        ...

    def insert(self, registration: RegistrationEntity) -> None:
        """
        Insere nova inscrição.

        Raises:
            StorageError: Se violar unicidade (event_id, user_id)
        """
        ...

    def update_status(
        self,
        registration_id: str,
        expected: RegistrationStatus,
        new: RegistrationStatus,
        changed_at: datetime,
    ) -> bool:
        """
        Compare-and-set de status.

        CANCELLED carimba cancelled_at; ACTIVE (reativação) limpa
        cancelled_at e carimba reactivated_at.

        Returns:
            True se a linha estava em `expected` e foi atualizada
        """
        ...

    def get_by_id(self, registration_id: str) -> Optional[RegistrationEntity]:
        ...

    def list_by_event(
        self,
        event_id: str,
        status: Optional[RegistrationStatus] = None,
    ) -> List[RegistrationEntity]:
        ...


@runtime_checkable
class TicketRepository(Protocol):
    """Interface para persistência de Ingressos."""

    def insert(self, ticket: TicketEntity) -> None:
        """
        Raises:
            StorageError: Se ticket_code já existir
        """
        ...

    def update_status(
        self,
        ticket_id: str,
        expected: TicketStatus,
        new: TicketStatus,
        changed_at: datetime,
    ) -> bool:
        """Compare-and-set de status, carimbando `new.timestamp_field`."""
        ...

    def get_by_id(self, ticket_id: str) -> Optional[TicketEntity]:
        ...

    def get_by_code(self, ticket_code: str) -> Optional[TicketEntity]:
        ...

    def code_exists(self, ticket_code: str) -> bool:
        ...

    def find_valid_for_registration(self, registration_id: str) -> Optional[TicketEntity]:
        ...

    def list_by_user(self, user_id: str) -> List[TicketEntity]:
        ...

    def list_by_event(self, event_id: str) -> List[TicketEntity]:
        ...

    def list_valid_for_ended_events(self, now: datetime) -> List[TicketEntity]:
        """Ingressos ainda válidos cujo evento terminou antes de `now`."""
        ...


# ---------------------------------------------------------------------------
# Implementações em memória
# ---------------------------------------------------------------------------


class InMemoryEventStore:
    """
    Event Store em memória.

    Example:
        store = InMemoryEventStore()
        store.add(EventInfo(id="e1", start_time=..., end_time=..., capacity=10))
    """

    def __init__(self):
        self._events: Dict[str, EventInfo] = {}

    def add(self, event: EventInfo) -> None:
        self._events[event.id] = event

    def get_event(self, event_id: str) -> Optional[EventInfo]:
        return self._events.get(event_id)

    def clear(self) -> None:
        self._events.clear()


class InMemoryRegistrationRepository:
    """
    Implementação em memória do RegistrationRepository.

    Thread-safe: um lock global protege os dados e um lock por evento
    serializa admissões, reproduzindo o SELECT ... FOR UPDATE do banco.
    Entidades são copiadas na entrada e na saída, como numa leitura do banco.

    Não usar em produção!
    """

    def __init__(self):
        self._rows: Dict[str, RegistrationEntity] = {}
        self._lock = threading.RLock()
        self._event_locks: Dict[str, threading.Lock] = defaultdict(threading.Lock)

    @contextmanager
    def lock_event_for_admission(self, event_id: str) -> Iterator[None]:
        with self._lock:
            event_lock = self._event_locks[event_id]
        with event_lock:
            yield

    def count_active_registrations(self, event_id: str) -> int:
        with self._lock:
            return sum(
                1 for r in self._rows.values()
                if r.event_id == event_id and r.status == RegistrationStatus.ACTIVE
            )

    def find_by_event_and_user(self, event_id: str, user_id: str) -> Optional[RegistrationEntity]:
        with self._lock:
            for r in self._rows.values():
                if r.event_id == event_id and r.user_id == user_id:
                    return replace(r)
        return None

    def insert(self, registration: RegistrationEntity) -> None:
        with self._lock:
            for r in self._rows.values():
                if r.event_id == registration.event_id and r.user_id == registration.user_id:
                    raise StorageError(
                        f"Inscrição duplicada para evento {registration.event_id}"
                    )
            self._rows[registration.id] = replace(registration)

    def update_status(
        self,
        registration_id: str,
        expected: RegistrationStatus,
        new: RegistrationStatus,
        changed_at: datetime,
    ) -> bool:
        with self._lock:
            row = self._rows.get(registration_id)
            if row is None or row.status != expected:
                return False
            row.status = new
            if new == RegistrationStatus.CANCELLED:
                row.cancelled_at = changed_at
            else:
                row.cancelled_at = None
                row.reactivated_at = changed_at
            return True

    def get_by_id(self, registration_id: str) -> Optional[RegistrationEntity]:
        with self._lock:
            row = self._rows.get(registration_id)
            return replace(row) if row else None

    def list_by_event(
        self,
        event_id: str,
        status: Optional[RegistrationStatus] = None,
    ) -> List[RegistrationEntity]:
        with self._lock:
            rows = [
                replace(r) for r in self._rows.values()
                if r.event_id == event_id and (status is None or r.status == status)
            ]
        return sorted(rows, key=lambda r: r.created_at)

    def clear(self) -> None:
        """Limpa todos os dados (útil para testes)."""
        with self._lock:
            self._rows.clear()


class InMemoryTicketRepository:
    """
    Implementação em memória do TicketRepository.

    Recebe o EventStore para resolver o fim dos eventos na varredura
    de expiração (no banco isso é um JOIN).
    """

    def __init__(self, event_store: Optional[EventStore] = None):
        self._tickets: Dict[str, TicketEntity] = {}
        self._lock = threading.RLock()
        self._event_store = event_store

    def insert(self, ticket: TicketEntity) -> None:
        with self._lock:
            if self._find_by_code(ticket.ticket_code) is not None:
                raise StorageError("Código de ingresso duplicado")
            if (
                ticket.status == TicketStatus.VALID
                and self._find_valid(ticket.registration_id) is not None
            ):
                raise StorageError("Inscrição já possui ingresso válido")
            self._tickets[ticket.id] = replace(ticket)

    def update_status(
        self,
        ticket_id: str,
        expected: TicketStatus,
        new: TicketStatus,
        changed_at: datetime,
    ) -> bool:
        with self._lock:
            row = self._tickets.get(ticket_id)
            if row is None or row.status != expected:
                return False
            row.status = new
            if new.timestamp_field:
                setattr(row, new.timestamp_field, changed_at)
            return True

    def get_by_id(self, ticket_id: str) -> Optional[TicketEntity]:
        with self._lock:
            row = self._tickets.get(ticket_id)
            return replace(row) if row else None

    def get_by_code(self, ticket_code: str) -> Optional[TicketEntity]:
        with self._lock:
            row = self._find_by_code(ticket_code)
            return replace(row) if row else None

    def code_exists(self, ticket_code: str) -> bool:
        with self._lock:
            return self._find_by_code(ticket_code) is not None

    def find_valid_for_registration(self, registration_id: str) -> Optional[TicketEntity]:
        with self._lock:
            row = self._find_valid(registration_id)
            return replace(row) if row else None

    def list_by_user(self, user_id: str) -> List[TicketEntity]:
        with self._lock:
            rows = [replace(t) for t in self._tickets.values() if t.user_id == user_id]
        return sorted(rows, key=lambda t: t.issued_at, reverse=True)

    def list_by_event(self, event_id: str) -> List[TicketEntity]:
        with self._lock:
            rows = [replace(t) for t in self._tickets.values() if t.event_id == event_id]
        return sorted(rows, key=lambda t: t.issued_at, reverse=True)

    def list_valid_for_ended_events(self, now: datetime) -> List[TicketEntity]:
        if self._event_store is None:
            return []
        with self._lock:
            valid = [replace(t) for t in self._tickets.values() if t.status == TicketStatus.VALID]
        ended = []
        for ticket in valid:
            event = self._event_store.get_event(ticket.event_id)
            if event is not None and event.has_ended(now):
                ended.append(ticket)
        return ended

    def clear(self) -> None:
        with self._lock:
            self._tickets.clear()

    def _find_by_code(self, ticket_code: str) -> Optional[TicketEntity]:
        for t in self._tickets.values():
            if t.ticket_code == ticket_code:
                return t
        return None

    def _find_valid(self, registration_id: str) -> Optional[TicketEntity]:
        for t in self._tickets.values():
            if t.registration_id == registration_id and t.status == TicketStatus.VALID:
                return t
        return None
