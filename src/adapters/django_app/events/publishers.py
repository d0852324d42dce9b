"""
Event Publishers - Publicadores de Eventos de Domínio.

Chamados pelo UnitOfWork depois do commit.
Implementações:
- LoggingEventPublisher: Apenas loga (desenvolvimento)
- CeleryEventPublisher: Despacha via Celery (produção)
- InMemoryEventPublisher: Para testes
"""

from typing import Callable, Dict, List
import json
import logging

from kombu.exceptions import OperationalError

from src.core.shared.events import DomainEvent
from src.core.shared.interfaces import EventPublisher

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], None]


class LoggingEventPublisher(EventPublisher):
    """
    Publisher que loga eventos e executa handlers locais síncronos.

    Usado em desenvolvimento, sem infraestrutura de mensageria.
    """

    def __init__(self, log_level: int = logging.INFO):
        self._log_level = log_level
        self._handlers: Dict[str, List[EventHandler]] = {}

    def publish(self, event: DomainEvent) -> None:
        logger.log(
            self._log_level,
            "[EVENT] %s | aggregate=%s | data=%s",
            event.event_type,
            event.aggregate_id,
            json.dumps(event.to_dict()["data"], default=str),
        )
        for handler in self._handlers.get(event.event_type, []):
            handler(event)

    def register_handler(self, event_type: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event_type, []).append(handler)


class CeleryEventPublisher(EventPublisher):
    """
    Publisher que envia eventos para a task `dispatch_domain_event`.

    Broker indisponível é logado e não quebra a operação: ela já foi
    comitada e o evento está no log de auditoria.
    """

    def __init__(self, also_log: bool = True):
        self._also_log = also_log

    def publish(self, event: DomainEvent) -> None:
        from src.adapters.django_app.events.handlers import dispatch_domain_event

        if self._also_log:
            logger.info(
                "[EVENT->CELERY] %s | aggregate=%s",
                event.event_type, event.aggregate_id,
            )

        try:
            dispatch_domain_event.delay(event.event_type, event.to_dict())
        except OperationalError:
            logger.error(
                "Falha ao publicar evento %s no Celery", event.event_id, exc_info=True,
            )


class InMemoryEventPublisher(EventPublisher):
    """Armazena eventos publicados para verificação em testes."""

    def __init__(self):
        self._published_events: List[DomainEvent] = []

    def publish(self, event: DomainEvent) -> None:
        self._published_events.append(event)

    @property
    def published_events(self) -> List[DomainEvent]:
        return self._published_events.copy()

    def get_events_by_type(self, event_type: str) -> List[DomainEvent]:
        return [e for e in self._published_events if e.event_type == event_type]

    def clear(self) -> None:
        self._published_events.clear()


def get_event_publisher(mode: str = "logging") -> EventPublisher:
    """
    Factory para obter publisher pelo modo configurado
    (EVENT_PUBLISHER_MODE: logging, celery ou memory).

    Raises:
        ValueError: Modo desconhecido
    """
    publishers = {
        "logging": LoggingEventPublisher,
        "celery": CeleryEventPublisher,
        "memory": InMemoryEventPublisher,
    }
    try:
        return publishers[mode]()
    except KeyError:
        raise ValueError(f"EVENT_PUBLISHER_MODE inválido: {mode}")
