"""
Shared Domain Components.

Contém componentes compartilhados entre todos os domínios:
- Exceções de domínio
- Interfaces (Ports)
- Base classes para Domain Events
- Relógio (fonte de "agora" injetável)
"""

from .exceptions import (
    DomainException,
    ValidationError,
    EntityNotFoundError,
    BusinessRuleViolationError,
    EventNotAvailableReason,
    EventNotAvailableError,
    AlreadyCancelledError,
    TicketWrongStatusError,
    TicketEventEndedError,
    StorageError,
)
from .events import DomainEvent
from .interfaces import UnitOfWork, EventPublisher, DomainEventLog
from .clock import utcnow

__all__ = [
    "DomainException",
    "ValidationError",
    "EntityNotFoundError",
    "BusinessRuleViolationError",
    "EventNotAvailableReason",
    "EventNotAvailableError",
    "AlreadyCancelledError",
    "TicketWrongStatusError",
    "TicketEventEndedError",
    "StorageError",
    "DomainEvent",
    "UnitOfWork",
    "EventPublisher",
    "DomainEventLog",
    "utcnow",
]
