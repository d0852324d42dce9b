"""
Use Cases (Application Services) do Domínio de Inscrições e Ingressos.

Use Cases implementados:
- RegisterForEventService: Inscreve usuário (cria, reativa ou DUPLICATE)
- CancelRegistrationService: Cancela inscrição e seu ingresso
- CheckAvailabilityService: Consulta se o evento aceita inscrições
- IssueTicketForRegistrationService: Reemite ingresso para inscrição ativa
- VerifyTicketService: Verifica ingresso sem alterar estado
- UseTicketService: Marca ingresso como usado (single-use)
- GetRegistrationService / ListEventRegistrationsService
- GetTicketService / ListTicketsService
- ExpireTicketsService: Expira ingressos de eventos terminados

Responsabilidades dos Use Cases:
- Abrir a transação (via UoW)
- Carregar o evento e reportar NotFound
- Delegar regras aos gerenciadores de ciclo de vida
- Retornar DTOs de saída
"""

from typing import Optional

from src.core.shared.clock import Clock, utcnow
from src.core.shared.exceptions import EntityNotFoundError, ValidationError
from src.core.shared.interfaces import UnitOfWork

from .availability import AvailabilityEvaluator
from .dtos import (
    AvailabilityOutputDTO,
    CancellationOutputDTO,
    ListTicketsQueryDTO,
    RegisterInputDTO,
    RegistrationOutputDTO,
    RegistrationResultDTO,
    TicketListDTO,
    TicketOutputDTO,
    TicketVerificationDTO,
)
from .entities import EventInfo, RegistrationStatus
from .lifecycle import RegistrationLifecycleManager, TicketLifecycleManager
from .ports import AccessPolicy, EventStore, RegistrationRepository, TicketRepository
from .ticket_codes import TicketCodeGenerator


def _load_event(event_store: EventStore, event_id: str) -> EventInfo:
    event = event_store.get_event(event_id)
    if event is None:
        raise EntityNotFoundError(
            f"Evento {event_id} não encontrado",
            entity_type="Event",
            entity_id=event_id,
        )
    return event


class RegisterForEventService:
    """
    Use Case: Inscrever usuário em evento.

    Fluxo:
    1. Carregar evento (NotFound se não existir)
    2. Inscrição ativa existente → DUPLICATE com o ingresso atual
    3. Avaliar disponibilidade (publicado, visibilidade, fim, lotação)
    4. Sob o lock do evento: confirmar vaga e criar/reativar
    5. Emitir ingresso na mesma transação
    6. Eventos de domínio publicados após commit

    Example:
        service = RegisterForEventService(event_store, registration_repo, ticket_repo, uow)
        result = service.execute(RegisterInputDTO(event_id="e1", user_id="u1"))
        result.outcome       # RegistrationOutcome.CREATED
        result.ticket.ticket_code
    """

    def __init__(
        self,
        event_store: EventStore,
        registration_repo: RegistrationRepository,
        ticket_repo: TicketRepository,
        uow: UnitOfWork,
        access_policy: Optional[AccessPolicy] = None,
        code_generator: Optional[TicketCodeGenerator] = None,
        now: Clock = utcnow,
    ):
        self.event_store = event_store
        self.uow = uow
        tickets = TicketLifecycleManager(ticket_repo, event_store, uow, code_generator, now)
        self.registrations = RegistrationLifecycleManager(
            registration_repo,
            tickets,
            AvailabilityEvaluator(access_policy, now),
            uow,
            now,
        )

    def execute(self, input_dto: RegisterInputDTO) -> RegistrationResultDTO:
        """
        Raises:
            EntityNotFoundError: Evento não existe
            ValidationError: user_id vazio
            EventNotAvailableError: Evento indisponível (reason)
            StorageError: Falha de persistência
        """
        with self.uow:
            event = _load_event(self.event_store, input_dto.event_id)
            result = self.registrations.register(event, input_dto.user_id)

        return RegistrationResultDTO(
            outcome=result.outcome,
            registration=RegistrationOutputDTO.from_entity(result.registration),
            ticket=TicketOutputDTO.from_entity(result.ticket) if result.ticket else None,
        )


class CancelRegistrationService:
    """
    Use Case: Cancelar inscrição.

    A inscrição e seu ingresso válido são cancelados na mesma transação;
    a vaga volta a ficar disponível para outros usuários.
    """

    def __init__(
        self,
        event_store: EventStore,
        registration_repo: RegistrationRepository,
        ticket_repo: TicketRepository,
        uow: UnitOfWork,
        now: Clock = utcnow,
    ):
        self.uow = uow
        tickets = TicketLifecycleManager(ticket_repo, event_store, uow, now=now)
        self.registrations = RegistrationLifecycleManager(
            registration_repo,
            tickets,
            AvailabilityEvaluator(now=now),
            uow,
            now,
        )

    def execute(self, registration_id: str) -> CancellationOutputDTO:
        """
        Raises:
            EntityNotFoundError: Inscrição não existe
            AlreadyCancelledError: Inscrição já cancelada
        """
        with self.uow:
            registration, ticket = self.registrations.cancel(registration_id)

        return CancellationOutputDTO(
            registration=RegistrationOutputDTO.from_entity(registration),
            cancelled_ticket=TicketOutputDTO.from_entity(ticket) if ticket else None,
        )


class CheckAvailabilityService:
    """
    Use Case: Consultar disponibilidade (somente leitura).

    O resultado é informativo; não reserva vaga.
    """

    def __init__(
        self,
        event_store: EventStore,
        registration_repo: RegistrationRepository,
        access_policy: Optional[AccessPolicy] = None,
        now: Clock = utcnow,
    ):
        self.event_store = event_store
        self.registration_repo = registration_repo
        self.evaluator = AvailabilityEvaluator(access_policy, now)

    def execute(self, event_id: str, user_id: Optional[str] = None) -> AvailabilityOutputDTO:
        event = _load_event(self.event_store, event_id)
        result = self.evaluator.evaluate(
            event,
            active_count=lambda: self.registration_repo.count_active_registrations(event.id),
            user_id=user_id,
        )
        return AvailabilityOutputDTO(
            event_id=event.id,
            available=result.available,
            reason=result.reason,
        )


class IssueTicketForRegistrationService:
    """
    Use Case: Emitir ingresso para inscrição ativa sem ingresso válido.

    Usado em reemissão administrativa, por exemplo depois que o
    ingresso anterior foi invalidado manualmente.
    """

    def __init__(
        self,
        event_store: EventStore,
        registration_repo: RegistrationRepository,
        ticket_repo: TicketRepository,
        uow: UnitOfWork,
        code_generator: Optional[TicketCodeGenerator] = None,
        now: Clock = utcnow,
    ):
        self.registration_repo = registration_repo
        self.uow = uow
        self.tickets = TicketLifecycleManager(ticket_repo, event_store, uow, code_generator, now)

    def execute(self, registration_id: str) -> TicketOutputDTO:
        """
        Raises:
            EntityNotFoundError: Inscrição não existe
            BusinessRuleViolationError: Inscrição inativa ou com ingresso válido
        """
        with self.uow:
            registration = self.registration_repo.get_by_id(registration_id)
            if registration is None:
                raise EntityNotFoundError(
                    f"Inscrição {registration_id} não encontrada",
                    entity_type="Registration",
                    entity_id=registration_id,
                )
            ticket = self.tickets.issue(registration)

        return TicketOutputDTO.from_entity(ticket)


class VerifyTicketService:
    """Use Case: Verificar ingresso na portaria (não altera estado)."""

    def __init__(
        self,
        event_store: EventStore,
        ticket_repo: TicketRepository,
        now: Clock = utcnow,
    ):
        self.tickets = TicketLifecycleManager(ticket_repo, event_store, uow=None, now=now)

    def execute(self, ticket_code: str) -> TicketVerificationDTO:
        """
        Raises:
            ValidationError, EntityNotFoundError,
            TicketWrongStatusError, TicketEventEndedError
        """
        ticket, event = self.tickets.verify(ticket_code)
        return TicketVerificationDTO(
            ticket=TicketOutputDTO.from_entity(ticket),
            event_end_time=event.end_time,
        )


class UseTicketService:
    """
    Use Case: Usar ingresso.

    Entre requisições concorrentes com o mesmo código, exatamente uma
    recebe sucesso; as demais recebem TicketWrongStatusError("used").
    """

    def __init__(
        self,
        event_store: EventStore,
        ticket_repo: TicketRepository,
        uow: UnitOfWork,
        now: Clock = utcnow,
    ):
        self.uow = uow
        self.tickets = TicketLifecycleManager(ticket_repo, event_store, uow, now=now)

    def execute(self, ticket_code: str) -> TicketOutputDTO:
        with self.uow:
            ticket = self.tickets.use(ticket_code)
        return TicketOutputDTO.from_entity(ticket)


class ExpireTicketsService:
    """Use Case: Expirar ingressos válidos de eventos já terminados."""

    def __init__(
        self,
        event_store: EventStore,
        ticket_repo: TicketRepository,
        uow: UnitOfWork,
        now: Clock = utcnow,
    ):
        self.uow = uow
        self.tickets = TicketLifecycleManager(ticket_repo, event_store, uow, now=now)

    def execute(self) -> int:
        """Retorna quantos ingressos foram expirados."""
        with self.uow:
            expired = self.tickets.expire_ended()
        return len(expired)


class GetRegistrationService:
    """Use Case: Obter inscrição por ID."""

    def __init__(self, registration_repo: RegistrationRepository):
        self.registration_repo = registration_repo

    def execute(self, registration_id: str) -> RegistrationOutputDTO:
        registration = self.registration_repo.get_by_id(registration_id)
        if registration is None:
            raise EntityNotFoundError(
                f"Inscrição {registration_id} não encontrada",
                entity_type="Registration",
                entity_id=registration_id,
            )
        return RegistrationOutputDTO.from_entity(registration)


class ListEventRegistrationsService:
    """Use Case: Listar inscrições de um evento (opcionalmente por status)."""

    def __init__(self, event_store: EventStore, registration_repo: RegistrationRepository):
        self.event_store = event_store
        self.registration_repo = registration_repo

    def execute(self, event_id: str, status: Optional[str] = None) -> list:
        _load_event(self.event_store, event_id)

        status_filter = None
        if status:
            try:
                status_filter = RegistrationStatus(status.lower())
            except ValueError:
                raise ValidationError(f"Status inválido: {status}", field="status")

        return [
            RegistrationOutputDTO.from_entity(r)
            for r in self.registration_repo.list_by_event(event_id, status_filter)
        ]


class GetTicketService:
    """Use Case: Obter ingresso por ID."""

    def __init__(self, ticket_repo: TicketRepository):
        self.ticket_repo = ticket_repo

    def execute(self, ticket_id: str) -> TicketOutputDTO:
        ticket = self.ticket_repo.get_by_id(ticket_id)
        if ticket is None:
            raise EntityNotFoundError(
                f"Ingresso {ticket_id} não encontrado",
                entity_type="Ticket",
                entity_id=ticket_id,
            )
        return TicketOutputDTO.from_entity(ticket)


class ListTicketsService:
    """Use Case: Listar ingressos de um usuário ou de um evento."""

    def __init__(self, ticket_repo: TicketRepository):
        self.ticket_repo = ticket_repo

    def execute(self, query: ListTicketsQueryDTO) -> TicketListDTO:
        if bool(query.user_id) == bool(query.event_id):
            raise ValidationError(
                "Informe exatamente um filtro: user_id ou event_id",
                field="query"
            )

        if query.user_id:
            tickets = self.ticket_repo.list_by_user(query.user_id)
        else:
            tickets = self.ticket_repo.list_by_event(query.event_id)

        return TicketListDTO(items=[TicketOutputDTO.from_entity(t) for t in tickets])
