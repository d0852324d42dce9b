"""
Domínio de Inscrições e Ingressos.

Este módulo contém toda a lógica de negócio de inscrição em eventos
e do ciclo de vida dos ingressos:
- Entidades (EventInfo, RegistrationEntity, TicketEntity)
- Avaliação de disponibilidade e guarda de capacidade
- Use Cases (inscrever, cancelar, verificar, usar, expirar)
- Domain Events (RegistrationCreated, TicketUsed, ...)
- Ports (Event Store, repositórios, política de acesso)

Características do Domínio:
- Inscrições ativas nunca passam da capacidade, mesmo sob concorrência
- register() é idempotente: cria, reativa ou devolve DUPLICATE
- Ingresso usado uma única vez (compare-and-set)
- Códigos de ingresso imprevisíveis e URL-safe
"""

from .entities import (
    EventInfo,
    EventStatus,
    RegistrationEntity,
    RegistrationStatus,
    TicketEntity,
    TicketStatus,
)
from .events import (
    RegistrationCreatedEvent,
    RegistrationReactivatedEvent,
    RegistrationCancelledEvent,
    TicketIssuedEvent,
    TicketCancelledEvent,
    TicketUsedEvent,
    TicketExpiredEvent,
)
from .dtos import (
    RegistrationOutcome,
    RegisterInputDTO,
    ListTicketsQueryDTO,
    RegistrationOutputDTO,
    RegistrationResultDTO,
    TicketOutputDTO,
    CancellationOutputDTO,
    AvailabilityOutputDTO,
    TicketVerificationDTO,
    TicketListDTO,
)
from .ports import (
    EventStore,
    AccessPolicy,
    OwnerAccessPolicy,
    RegistrationRepository,
    TicketRepository,
)
from .availability import AvailabilityEvaluator, AvailabilityResult
from .capacity import CapacityGuard
from .ticket_codes import TicketCodeGenerator, generate_ticket_code
from .use_cases import (
    RegisterForEventService,
    CancelRegistrationService,
    CheckAvailabilityService,
    IssueTicketForRegistrationService,
    VerifyTicketService,
    UseTicketService,
    ExpireTicketsService,
    GetRegistrationService,
    ListEventRegistrationsService,
    GetTicketService,
    ListTicketsService,
)

__all__ = [
    # Entities
    "EventInfo",
    "EventStatus",
    "RegistrationEntity",
    "RegistrationStatus",
    "TicketEntity",
    "TicketStatus",
    # Events
    "RegistrationCreatedEvent",
    "RegistrationReactivatedEvent",
    "RegistrationCancelledEvent",
    "TicketIssuedEvent",
    "TicketCancelledEvent",
    "TicketUsedEvent",
    "TicketExpiredEvent",
    # DTOs
    "RegistrationOutcome",
    "RegisterInputDTO",
    "ListTicketsQueryDTO",
    "RegistrationOutputDTO",
    "RegistrationResultDTO",
    "TicketOutputDTO",
    "CancellationOutputDTO",
    "AvailabilityOutputDTO",
    "TicketVerificationDTO",
    "TicketListDTO",
    # Ports
    "EventStore",
    "AccessPolicy",
    "OwnerAccessPolicy",
    "RegistrationRepository",
    "TicketRepository",
    # Domain services
    "AvailabilityEvaluator",
    "AvailabilityResult",
    "CapacityGuard",
    "TicketCodeGenerator",
    "generate_ticket_code",
    # Use Cases
    "RegisterForEventService",
    "CancelRegistrationService",
    "CheckAvailabilityService",
    "IssueTicketForRegistrationService",
    "VerifyTicketService",
    "UseTicketService",
    "ExpireTicketsService",
    "GetRegistrationService",
    "ListEventRegistrationsService",
    "GetTicketService",
    "ListTicketsService",
]
