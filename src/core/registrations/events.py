"""
Domain Events do Domínio de Inscrições e Ingressos.

Eventos:
- RegistrationCreatedEvent: Nova inscrição admitida
- RegistrationReactivatedEvent: Inscrição cancelada voltou a ficar ativa
- RegistrationCancelledEvent: Inscrição foi cancelada
- TicketIssuedEvent: Ingresso emitido
- TicketCancelledEvent: Ingresso cancelado junto com a inscrição
- TicketUsedEvent: Ingresso apresentado na entrada
- TicketExpiredEvent: Ingresso expirou pelo fim do evento

Uso:
    Eventos são criados pelos gerenciadores de ciclo de vida e publicados
    através do UnitOfWork após commit bem-sucedido.

    with uow:
        registration_repo.insert(registration)
        uow.publish_event(RegistrationCreatedEvent(...))
"""

from dataclasses import dataclass
from typing import Optional

from src.core.shared.events import DomainEvent


@dataclass
class RegistrationCreatedEvent(DomainEvent):
    """
    Evento: Inscrição criada.

    Handlers típicos:
    - Enviar confirmação com o código do ingresso
    - Atualizar contagem de vagas em dashboards
    """

    event_ref_id: str = ""
    user_id: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Registration"


@dataclass
class RegistrationReactivatedEvent(DomainEvent):
    """Evento: Inscrição cancelada foi reativada (mesma identidade)."""

    event_ref_id: str = ""
    user_id: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Registration"


@dataclass
class RegistrationCancelledEvent(DomainEvent):
    """
    Evento: Inscrição cancelada.

    Attributes:
        cancelled_ticket_id: Ingresso cancelado junto (se havia um válido)
    """

    event_ref_id: str = ""
    user_id: str = ""
    cancelled_ticket_id: Optional[str] = None

    @property
    def aggregate_type(self) -> str:
        return "Registration"


@dataclass
class TicketIssuedEvent(DomainEvent):
    registration_id: str = ""
    event_ref_id: str = ""
    user_id: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Ticket"


@dataclass
class TicketCancelledEvent(DomainEvent):
    registration_id: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Ticket"


@dataclass
class TicketUsedEvent(DomainEvent):
    """
    Evento: Ingresso usado na entrada do evento.

    O código do ingresso não é incluído: eventos vão para logs e filas,
    e o código funciona como credencial de acesso.
    """

    event_ref_id: str = ""
    user_id: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Ticket"


@dataclass
class TicketExpiredEvent(DomainEvent):
    event_ref_id: str = ""

    @property
    def aggregate_type(self) -> str:
        return "Ticket"
