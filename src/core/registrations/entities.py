"""
Entidades do Domínio de Inscrições e Ingressos.

Este módulo define as entidades de domínio que encapsulam
as regras de negócio de inscrição em eventos e do ciclo de
vida dos ingressos.

Entidades:
- EventInfo: Visão somente-leitura de um evento (dono externo)
- RegistrationEntity: Inscrição de um usuário em um evento
- TicketEntity: Ingresso emitido para uma inscrição ativa

Regras de Negócio Encapsuladas:
- Evento deve terminar depois de começar
- Status explícito + timestamp opcional (nunca inferido de nulls)
- Transições de status controladas por tabela
- Ingresso só é emitido para inscrição ativa
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
import uuid

from src.core.shared.clock import utcnow
from src.core.shared.exceptions import (
    ValidationError,
    BusinessRuleViolationError,
    AlreadyCancelledError,
    TicketWrongStatusError,
)


class EventStatus(Enum):
    """Status de publicação de um evento."""

    DRAFT = "draft"
    PUBLISHED = "published"
    CANCELLED = "cancelled"

    @classmethod
    def from_string(cls, value: str) -> "EventStatus":
        """
        Converte string para enum (aceita nome ou valor).

        Raises:
            ValueError: Se valor inválido
        """
        for status in cls:
            if value.lower() in (status.value, status.name.lower()):
                return status
        raise ValueError(f"Status de evento inválido: {value}")


@dataclass(frozen=True)
class EventInfo:
    """
    Visão de leitura de um Evento.

    O evento pertence a um sistema externo (Event Store); o core
    apenas lê capacidade, janela de tempo, status e visibilidade.

    Attributes:
        id: Identificador do evento
        capacity: Limite de participantes (None = ilimitado)
        start_time: Início do evento
        end_time: Fim do evento
        status: Status de publicação
        is_public: Se o evento é público
        owner_id: Dono do evento (usado pela política de acesso)
    """

    id: str
    start_time: datetime
    end_time: datetime
    capacity: Optional[int] = None
    status: EventStatus = EventStatus.PUBLISHED
    is_public: bool = True
    owner_id: Optional[str] = None

    def __post_init__(self):
        if self.end_time <= self.start_time:
            raise ValidationError(
                "Fim do evento deve ser posterior ao início",
                field="end_time"
            )
        if self.capacity is not None and self.capacity < 0:
            raise ValidationError(
                "Capacidade não pode ser negativa",
                field="capacity"
            )

    @property
    def is_unlimited(self) -> bool:
        """Evento sem limite de participantes."""
        return self.capacity is None

    def has_ended(self, now: datetime) -> bool:
        """Verifica se o evento já terminou no instante `now`."""
        return now >= self.end_time


class RegistrationStatus(Enum):
    """
    Estados possíveis de uma inscrição.

    Fluxo de Estados:
        ACTIVE ⇄ CANCELLED

        CANCELLED → ACTIVE acontece apenas pela reativação
        (ramo de register() para linha cancelada).
    """

    ACTIVE = "active"
    CANCELLED = "cancelled"


@dataclass
class RegistrationEntity:
    """
    Entidade de Domínio: Inscrição.

    Invariantes:
    - No máximo uma inscrição ativa por (event_id, user_id)
    - Nunca removida fisicamente; o histórico acumula via cancelar/reativar
    - cancelled_at só é preenchido enquanto status == CANCELLED

    Example:
        registration = RegistrationEntity.create(event_id="e1", user_id="u1")
        registration.cancel()
        registration.reactivate()
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    event_id: str = ""
    user_id: str = ""
    status: RegistrationStatus = RegistrationStatus.ACTIVE
    created_at: datetime = field(default_factory=utcnow)
    cancelled_at: Optional[datetime] = None
    reactivated_at: Optional[datetime] = None

    @classmethod
    def create(
        cls,
        event_id: str,
        user_id: str,
        now: Optional[datetime] = None,
    ) -> "RegistrationEntity":
        """
        Factory method para criar inscrição ativa.

        Raises:
            ValidationError: Se event_id ou user_id vazios
        """
        if not event_id:
            raise ValidationError("Evento é obrigatório", field="event_id")
        if not user_id:
            raise ValidationError("Usuário é obrigatório", field="user_id")

        return cls(
            event_id=event_id,
            user_id=user_id,
            status=RegistrationStatus.ACTIVE,
            created_at=now or utcnow(),
        )

    @property
    def is_active(self) -> bool:
        return self.status == RegistrationStatus.ACTIVE

    def cancel(self, now: Optional[datetime] = None) -> None:
        """
        Cancela a inscrição.

        Raises:
            AlreadyCancelledError: Se já estiver cancelada
        """
        if self.status == RegistrationStatus.CANCELLED:
            raise AlreadyCancelledError(self.id)

        self.status = RegistrationStatus.CANCELLED
        self.cancelled_at = now or utcnow()

    def reactivate(self, now: Optional[datetime] = None) -> None:
        """
        Reativa uma inscrição cancelada, reaproveitando sua identidade.

        Raises:
            BusinessRuleViolationError: Se a inscrição não está cancelada
        """
        if self.status != RegistrationStatus.CANCELLED:
            raise BusinessRuleViolationError(
                "Apenas inscrições canceladas podem ser reativadas",
                rule="apenas_cancelada_pode_reativar"
            )

        self.status = RegistrationStatus.ACTIVE
        self.cancelled_at = None
        self.reactivated_at = now or utcnow()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RegistrationEntity):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)


class TicketStatus(Enum):
    """
    Estados possíveis de um ingresso.

    Fluxo de Estados:
        VALID → USED       (terminal)
        VALID → CANCELLED  (terminal)
        VALID → EXPIRED    (terminal, dirigido pelo tempo)
    """

    VALID = "valid"
    USED = "used"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self != TicketStatus.VALID

    @property
    def timestamp_field(self) -> Optional[str]:
        """Campo de timestamp carimbado ao entrar neste status."""
        return {
            TicketStatus.USED: "used_at",
            TicketStatus.CANCELLED: "cancelled_at",
            TicketStatus.EXPIRED: "expired_at",
        }.get(self)

    def can_transition_to(self, new_status: "TicketStatus") -> bool:
        return self == TicketStatus.VALID and new_status.is_terminal


@dataclass
class TicketEntity:
    """
    Entidade de Domínio: Ingresso.

    Invariantes:
    - registration_id referencia inscrição ativa no momento da emissão
    - Status monotônico: nenhuma transição sai de USED/CANCELLED/EXPIRED
    - ticket_code é opaco, URL-safe e único

    Attributes:
        id: Identificador único (UUID)
        event_id: Evento do ingresso
        user_id: Dono do ingresso
        registration_id: Inscrição que originou o ingresso
        ticket_code: Token apresentado na entrada do evento
        status: Estado atual
        issued_at: Momento da emissão
        used_at / cancelled_at / expired_at: Carimbo da transição terminal
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    event_id: str = ""
    user_id: str = ""
    registration_id: str = ""
    ticket_code: str = ""
    status: TicketStatus = TicketStatus.VALID
    issued_at: datetime = field(default_factory=utcnow)
    used_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    expired_at: Optional[datetime] = None

    @classmethod
    def issue(
        cls,
        registration: RegistrationEntity,
        ticket_code: str,
        now: Optional[datetime] = None,
    ) -> "TicketEntity":
        """
        Emite ingresso válido vinculado à inscrição.

        Raises:
            BusinessRuleViolationError: Se inscrição não está ativa
            ValidationError: Se código vazio
        """
        if not registration.is_active:
            raise BusinessRuleViolationError(
                "Ingresso só pode ser emitido para inscrição ativa",
                rule="inscricao_inativa"
            )
        if not ticket_code:
            raise ValidationError("Código do ingresso é obrigatório", field="ticket_code")

        return cls(
            event_id=registration.event_id,
            user_id=registration.user_id,
            registration_id=registration.id,
            ticket_code=ticket_code,
            status=TicketStatus.VALID,
            issued_at=now or utcnow(),
        )

    @property
    def is_valid(self) -> bool:
        return self.status == TicketStatus.VALID

    def ensure_valid(self) -> None:
        """
        Raises:
            TicketWrongStatusError: Se status diferente de VALID
        """
        if not self.is_valid:
            raise TicketWrongStatusError(
                self.ticket_code,
                current=self.status.value,
                used_at=self.used_at,
            )

    def transition_to(self, new_status: TicketStatus, now: Optional[datetime] = None) -> None:
        """
        Aplica transição de status carimbando o timestamp correspondente.

        Raises:
            TicketWrongStatusError: Se transição não permitida
        """
        if not self.status.can_transition_to(new_status):
            raise TicketWrongStatusError(
                self.ticket_code,
                current=self.status.value,
                used_at=self.used_at,
            )

        self.status = new_status
        setattr(self, new_status.timestamp_field, now or utcnow())

    def use(self, now: Optional[datetime] = None) -> None:
        self.transition_to(TicketStatus.USED, now)

    def cancel(self, now: Optional[datetime] = None) -> None:
        self.transition_to(TicketStatus.CANCELLED, now)

    def expire(self, now: Optional[datetime] = None) -> None:
        self.transition_to(TicketStatus.EXPIRED, now)

    def __repr__(self) -> str:
        return (
            f"TicketEntity("
            f"id={self.id[:8]}..., "
            f"registration_id={self.registration_id[:8]}..., "
            f"status={self.status.value}"
            f")"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TicketEntity):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
