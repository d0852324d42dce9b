"""
Unit of Work - Implementação Django.

Gerencia a transação que envolve inscrição + ingresso (ou
cancelamento + cancelamento do ingresso), garantindo que as
escritas sejam aplicadas juntas ou não sejam aplicadas.

Responsabilidades:
- Abrir/fechar transaction.atomic()
- Gravar eventos de domínio no log de auditoria dentro da transação
- Publicar eventos somente após o commit (transaction.on_commit)
- Converter falhas do banco em StorageError
"""

from typing import Dict, List, Optional
import logging

from django.db import DatabaseError, transaction

from src.core.shared.events import DomainEvent
from src.core.shared.exceptions import StorageError
from src.core.shared.interfaces import DomainEventLog, EventPublisher, UnitOfWork

logger = logging.getLogger(__name__)


class DjangoUnitOfWork(UnitOfWork):
    """
    Implementação Django do Unit of Work.

    Usa transaction.atomic(); se já houver uma transação externa,
    vira um savepoint e os eventos só saem quando a externa comitar.

    Example:
        with DjangoUnitOfWork(event_publisher=publisher) as uow:
            registration_repo.insert(registration)
            uow.publish_event(RegistrationCreatedEvent(...))
        # Commit + eventos publicados

    Example com rollback:
        with DjangoUnitOfWork() as uow:
            registration_repo.insert(registration)
            raise EventNotAvailableError(...)
        # Rollback, eventos descartados
    """

    def __init__(
        self,
        event_publisher: Optional[EventPublisher] = None,
        event_log: Optional[DomainEventLog] = None,
        using: str = "default",
    ):
        super().__init__()
        self._event_publisher = event_publisher
        self._event_log = event_log
        self._using = using
        self._atomic = None
        self._sequence_counters: Dict[str, int] = {}

    def _begin_transaction(self) -> None:
        if self._atomic is not None:
            raise RuntimeError("Unit of Work já possui transação aberta")
        self._atomic = transaction.atomic(using=self._using)
        self._atomic.__enter__()
        self._sequence_counters = {}
        logger.debug("Transaction started")

    def commit(self) -> None:
        """
        Ordem de execução:
        1. Gravar eventos no log de auditoria (mesma transação)
        2. Agendar publicação para depois do commit
        3. Fechar o atomic (commit real)

        Raises:
            StorageError: Se o banco falhar ao gravar ou comitar
        """
        if self._atomic is None:
            logger.warning("Transaction already finalized")
            return

        events = list(self._events)
        try:
            if self._event_log and events:
                self._persist_events(events)
            if events:
                transaction.on_commit(
                    lambda: self._publish_events(events),
                    using=self._using,
                )
        except StorageError:
            self.rollback()
            raise
        except DatabaseError as e:
            self.rollback()
            raise StorageError(f"Falha ao gravar eventos de domínio: {e}") from e

        atomic, self._atomic = self._atomic, None
        self.clear_events()
        try:
            atomic.__exit__(None, None, None)
        except DatabaseError as e:
            logger.error("Commit failed: %s", e)
            raise StorageError(f"Falha no commit: {e}") from e
        logger.debug("Transaction committed")

    def rollback(self) -> None:
        """Desfaz as escritas e descarta eventos. Chamado no `__exit__` com exceção."""
        self.clear_events()
        if self._atomic is None:
            return

        atomic, self._atomic = self._atomic, None
        try:
            transaction.set_rollback(True, using=self._using)
            atomic.__exit__(None, None, None)
            logger.debug("Transaction rolled back")
        except DatabaseError as e:
            logger.error("Rollback failed: %s", e)

    def _persist_events(self, events: List[DomainEvent]) -> None:
        for event in events:
            sequence = self._get_next_sequence(event.aggregate_id)
            self._event_log.append(event=event, sequence=sequence)

    def _publish_events(self, events: List[DomainEvent]) -> None:
        """
        Publica eventos para consumidores.

        Falhas são logadas e não propagam: a operação já foi comitada
        e o evento está no log de auditoria para reprocessamento.
        """
        for event in events:
            logger.info(
                "Publishing event: %s for aggregate %s",
                event.event_type, event.aggregate_id,
            )
            if self._event_publisher:
                try:
                    self._event_publisher.publish(event)
                except Exception:
                    logger.exception("Failed to publish event %s", event.event_id)

    def _get_next_sequence(self, aggregate_id: str) -> int:
        if aggregate_id not in self._sequence_counters:
            existing = self._event_log.get_events_for_aggregate(aggregate_id)
            self._sequence_counters[aggregate_id] = len(existing)

        self._sequence_counters[aggregate_id] += 1
        return self._sequence_counters[aggregate_id]


class InMemoryUnitOfWork(UnitOfWork):
    """
    Unit of Work em memória para testes.

    Não persiste nada; os repositórios em memória aplicam as escritas
    imediatamente. Registra os eventos "publicados" após commit.

    Example:
        uow = InMemoryUnitOfWork()
        with uow:
            uow.publish_event(event)

        assert uow.committed
        assert len(uow.published_events) == 1
    """

    def __init__(self, event_publisher: Optional[EventPublisher] = None):
        super().__init__()
        self._event_publisher = event_publisher
        self._committed = False
        self._rolled_back = False
        self._published_events: List[DomainEvent] = []

    def _begin_transaction(self) -> None:
        self._committed = False
        self._rolled_back = False

    def commit(self) -> None:
        self._committed = True
        self._published_events.extend(self._events)
        if self._event_publisher:
            self._event_publisher.publish_batch(list(self._events))
        self.clear_events()

    def rollback(self) -> None:
        self._rolled_back = True
        self.clear_events()

    @property
    def committed(self) -> bool:
        return self._committed

    @property
    def rolled_back(self) -> bool:
        return self._rolled_back

    @property
    def published_events(self) -> List[DomainEvent]:
        return self._published_events

    def reset(self) -> None:
        """Reset para próximo teste."""
        self._committed = False
        self._rolled_back = False
        self._published_events.clear()
        self.clear_events()
