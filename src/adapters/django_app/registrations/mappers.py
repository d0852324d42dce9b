"""
Mappers para conversão entre Entities (Core) e Models (Django).

Responsabilidades:
- EventModel → EventInfo (somente leitura)
- RegistrationEntity ⇄ RegistrationModel
- TicketEntity ⇄ TicketModel
- DomainEvent → DomainEventModel (log de auditoria)

Mappers são stateless e não contêm lógica de negócio.
"""

from typing import Iterable, List

from src.core.registrations.entities import (
    EventInfo,
    EventStatus,
    RegistrationEntity,
    RegistrationStatus,
    TicketEntity,
    TicketStatus,
)
from src.core.shared.events import DomainEvent

from .models import (
    DomainEventModel,
    EventModel,
    RegistrationModel,
    TicketModel,
)


class EventMapper:
    """Mapper de EventModel para a visão de leitura EventInfo."""

    @staticmethod
    def to_entity(model: EventModel) -> EventInfo:
        return EventInfo(
            id=model.id,
            capacity=model.capacity,
            start_time=model.start_time,
            end_time=model.end_time,
            status=EventStatus(model.status),
            is_public=model.is_public,
            owner_id=model.owner_id,
        )

    @staticmethod
    def to_model(entity: EventInfo) -> EventModel:
        """Usado por fixtures e scripts de carga; o core nunca grava eventos."""
        return EventModel(
            id=entity.id,
            owner_id=entity.owner_id,
            capacity=entity.capacity,
            start_time=entity.start_time,
            end_time=entity.end_time,
            status=entity.status.value,
            is_public=entity.is_public,
        )


class RegistrationMapper:

    @staticmethod
    def to_model(entity: RegistrationEntity) -> RegistrationModel:
        """
        Note:
            Não chama .save() - deixa isso para o Repository
        """
        return RegistrationModel(
            id=entity.id,
            event_id=entity.event_id,
            user_id=entity.user_id,
            status=entity.status.value,
            created_at=entity.created_at,
            cancelled_at=entity.cancelled_at,
            reactivated_at=entity.reactivated_at,
        )

    @staticmethod
    def to_entity(model: RegistrationModel) -> RegistrationEntity:
        """
        Bypassa o factory method .create() pois os dados
        já foram validados na criação original.
        """
        return RegistrationEntity(
            id=model.id,
            event_id=model.event_id,
            user_id=model.user_id,
            status=RegistrationStatus(model.status),
            created_at=model.created_at,
            cancelled_at=model.cancelled_at,
            reactivated_at=model.reactivated_at,
        )

    @staticmethod
    def to_entity_list(models: Iterable[RegistrationModel]) -> List[RegistrationEntity]:
        return [RegistrationMapper.to_entity(model) for model in models]


class TicketMapper:

    @staticmethod
    def to_model(entity: TicketEntity) -> TicketModel:
        return TicketModel(
            id=entity.id,
            registration_id=entity.registration_id,
            event_id=entity.event_id,
            user_id=entity.user_id,
            ticket_code=entity.ticket_code,
            status=entity.status.value,
            issued_at=entity.issued_at,
            used_at=entity.used_at,
            cancelled_at=entity.cancelled_at,
            expired_at=entity.expired_at,
        )

    @staticmethod
    def to_entity(model: TicketModel) -> TicketEntity:
        return TicketEntity(
            id=model.id,
            event_id=model.event_id,
            user_id=model.user_id,
            registration_id=model.registration_id,
            ticket_code=model.ticket_code,
            status=TicketStatus(model.status),
            issued_at=model.issued_at,
            used_at=model.used_at,
            cancelled_at=model.cancelled_at,
            expired_at=model.expired_at,
        )

    @staticmethod
    def to_entity_list(models: Iterable[TicketModel]) -> List[TicketEntity]:
        return [TicketMapper.to_entity(model) for model in models]


class DomainEventMapper:
    """Mapper de DomainEvent para o log de auditoria."""

    @staticmethod
    def to_model(event: DomainEvent, sequence: int = 0) -> DomainEventModel:
        return DomainEventModel(
            event_id=event.event_id,
            event_type=event.event_type,
            aggregate_type=event.aggregate_type,
            aggregate_id=event.aggregate_id,
            event_data=event.to_dict()["data"],
            version=event.version,
            sequence=sequence,
            occurred_at=event.occurred_at,
        )
