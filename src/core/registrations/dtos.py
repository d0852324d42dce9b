"""
Data Transfer Objects (DTOs) do Domínio de Inscrições.

DTOs transportam dados entre camadas sem expor entidades:
- Input DTOs: dados de entrada (de tasks, comandos, APIs)
- Output DTOs: resultado das operações, serializáveis via to_dict()
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional

from src.core.shared.exceptions import EventNotAvailableReason
from .entities import RegistrationEntity, TicketEntity


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class RegistrationOutcome(Enum):
    """
    Como register() resolveu a chamada.

    - CREATED: nova inscrição, nova vaga consumida
    - DUPLICATE: já havia inscrição ativa; nada foi alterado
    - REACTIVATED: inscrição cancelada voltou a ficar ativa
    """

    CREATED = "created"
    DUPLICATE = "duplicate"
    REACTIVATED = "reactivated"


# =============================================================================
# INPUT DTOs (Entrada)
# =============================================================================

@dataclass(frozen=True)
class RegisterInputDTO:
    """
    DTO de entrada para inscrição.

    Attributes:
        event_id: Evento alvo
        user_id: Usuário que se inscreve
    """

    event_id: str
    user_id: str

    def to_dict(self) -> dict:
        return {"event_id": self.event_id, "user_id": self.user_id}


@dataclass(frozen=True)
class ListTicketsQueryDTO:
    """Filtro de listagem de ingressos: por usuário ou por evento."""

    user_id: Optional[str] = None
    event_id: Optional[str] = None


# =============================================================================
# OUTPUT DTOs (Saída)
# =============================================================================

@dataclass
class RegistrationOutputDTO:
    id: str
    event_id: str
    user_id: str
    status: str
    created_at: datetime
    cancelled_at: Optional[datetime] = None
    reactivated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, entity: RegistrationEntity) -> "RegistrationOutputDTO":
        return cls(
            id=entity.id,
            event_id=entity.event_id,
            user_id=entity.user_id,
            status=entity.status.value,
            created_at=entity.created_at,
            cancelled_at=entity.cancelled_at,
            reactivated_at=entity.reactivated_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_id": self.event_id,
            "user_id": self.user_id,
            "status": self.status,
            "created_at": _iso(self.created_at),
            "cancelled_at": _iso(self.cancelled_at),
            "reactivated_at": _iso(self.reactivated_at),
        }


@dataclass
class TicketOutputDTO:
    """
    DTO de saída de ingresso.

    Inclui o ticket_code: quem recebe este DTO é o dono do ingresso
    ou o operador da portaria.
    """

    id: str
    event_id: str
    user_id: str
    registration_id: str
    ticket_code: str
    status: str
    issued_at: datetime
    used_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, entity: TicketEntity) -> "TicketOutputDTO":
        return cls(
            id=entity.id,
            event_id=entity.event_id,
            user_id=entity.user_id,
            registration_id=entity.registration_id,
            ticket_code=entity.ticket_code,
            status=entity.status.value,
            issued_at=entity.issued_at,
            used_at=entity.used_at,
            cancelled_at=entity.cancelled_at,
            expired_at=entity.expired_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_id": self.event_id,
            "user_id": self.user_id,
            "registration_id": self.registration_id,
            "ticket_code": self.ticket_code,
            "status": self.status,
            "issued_at": _iso(self.issued_at),
            "used_at": _iso(self.used_at),
            "cancelled_at": _iso(self.cancelled_at),
            "expired_at": _iso(self.expired_at),
        }


@dataclass
class RegistrationResultDTO:
    """
    Resultado de register().

    `ticket` é o ingresso válido da inscrição. Em DUPLICATE pode ser
    None se o ingresso original já foi usado ou expirou.
    """

    outcome: RegistrationOutcome
    registration: RegistrationOutputDTO
    ticket: Optional[TicketOutputDTO] = None

    @property
    def is_duplicate(self) -> bool:
        return self.outcome == RegistrationOutcome.DUPLICATE

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "registration": self.registration.to_dict(),
            "ticket": self.ticket.to_dict() if self.ticket else None,
        }


@dataclass
class CancellationOutputDTO:
    registration: RegistrationOutputDTO
    cancelled_ticket: Optional[TicketOutputDTO] = None

    def to_dict(self) -> dict:
        return {
            "registration": self.registration.to_dict(),
            "cancelled_ticket": (
                self.cancelled_ticket.to_dict() if self.cancelled_ticket else None
            ),
        }


@dataclass
class AvailabilityOutputDTO:
    event_id: str
    available: bool
    reason: Optional[EventNotAvailableReason] = None

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "available": self.available,
            "reason": self.reason.value if self.reason else None,
        }


@dataclass
class TicketVerificationDTO:
    """Resultado positivo de verify(): ingresso válido para o evento."""

    ticket: TicketOutputDTO
    event_end_time: datetime
    valid: bool = True

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "ticket": self.ticket.to_dict(),
            "event_end_time": _iso(self.event_end_time),
        }


@dataclass
class TicketListDTO:
    items: List[TicketOutputDTO] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.items)

    def to_dict(self) -> dict:
        return {"total": self.total, "items": [t.to_dict() for t in self.items]}
