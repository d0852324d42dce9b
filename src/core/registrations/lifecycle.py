"""
Gerenciadores de ciclo de vida de Inscrições e Ingressos.

Contêm as regras transacionais compartilhadas pelos use cases.
Devem sempre ser chamados dentro de um `with uow:` aberto pelo use case:
as escritas de inscrição e ingresso precisam cair na mesma transação.

Transições concorrentes usam compare-and-set no repositório; quando o
CAS perde, o estado real é relido e reportado ao chamador.
"""

from dataclasses import dataclass
import logging
from typing import List, Optional, Tuple

from src.core.shared.clock import Clock, utcnow
from src.core.shared.exceptions import (
    AlreadyCancelledError,
    BusinessRuleViolationError,
    EntityNotFoundError,
    TicketEventEndedError,
    TicketWrongStatusError,
    ValidationError,
)
from src.core.shared.interfaces import UnitOfWork
from .availability import AvailabilityEvaluator
from .capacity import CapacityGuard
from .dtos import RegistrationOutcome
from .entities import (
    EventInfo,
    RegistrationEntity,
    RegistrationStatus,
    TicketEntity,
    TicketStatus,
)
from .events import (
    RegistrationCancelledEvent,
    RegistrationCreatedEvent,
    RegistrationReactivatedEvent,
    TicketCancelledEvent,
    TicketExpiredEvent,
    TicketIssuedEvent,
    TicketUsedEvent,
)
from .ports import EventStore, RegistrationRepository, TicketRepository
from .ticket_codes import TicketCodeGenerator

logger = logging.getLogger(__name__)


@dataclass
class RegistrationResult:
    outcome: RegistrationOutcome
    registration: RegistrationEntity
    ticket: Optional[TicketEntity] = None


class TicketLifecycleManager:
    """
    Emissão e transições de ingressos.

    Example:
        manager = TicketLifecycleManager(ticket_repo, event_store, uow)
        with uow:
            ticket = manager.issue(registration)
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        event_store: EventStore,
        uow: Optional[UnitOfWork],
        code_generator: Optional[TicketCodeGenerator] = None,
        now: Clock = utcnow,
    ):
        self.ticket_repo = ticket_repo
        self.event_store = event_store
        self.uow = uow
        self.code_generator = code_generator or TicketCodeGenerator()
        self._now = now

    def issue(self, registration: RegistrationEntity) -> TicketEntity:
        """
        Emite ingresso para inscrição ativa.

        Raises:
            BusinessRuleViolationError: Inscrição inativa ou já com ingresso válido
            StorageError: Se não for possível gerar código único
        """
        if self.ticket_repo.find_valid_for_registration(registration.id) is not None:
            raise BusinessRuleViolationError(
                "Inscrição já possui ingresso válido",
                rule="ingresso_valido_existente"
            )

        code = self.code_generator.generate_unique(self.ticket_repo.code_exists)
        ticket = TicketEntity.issue(registration, code, now=self._now())
        self.ticket_repo.insert(ticket)

        self.uow.publish_event(
            TicketIssuedEvent(
                aggregate_id=ticket.id,
                registration_id=registration.id,
                event_ref_id=ticket.event_id,
                user_id=ticket.user_id,
            )
        )
        return ticket

    def cancel_for_registration(self, registration_id: str) -> Optional[TicketEntity]:
        """
        Cancela o ingresso válido da inscrição, se houver.

        Ingressos já usados ou expirados não são tocados.
        """
        ticket = self.ticket_repo.find_valid_for_registration(registration_id)
        if ticket is None:
            return None

        now = self._now()
        if not self.ticket_repo.update_status(
            ticket.id, TicketStatus.VALID, TicketStatus.CANCELLED, now
        ):
            # Usado ou expirado em paralelo: o estado terminal prevalece
            return None

        ticket.cancel(now)
        self.uow.publish_event(
            TicketCancelledEvent(aggregate_id=ticket.id, registration_id=registration_id)
        )
        return ticket

    def verify(self, ticket_code: str) -> Tuple[TicketEntity, EventInfo]:
        """
        Verifica se o ingresso pode ser usado agora. Não altera estado.

        Ordem: código vazio → inexistente → status → evento terminado.

        Raises:
            ValidationError: Código vazio
            EntityNotFoundError: Código desconhecido
            TicketWrongStatusError: Ingresso não está válido
            TicketEventEndedError: Evento já terminou
        """
        if not ticket_code or not ticket_code.strip():
            raise ValidationError("Código do ingresso é obrigatório", field="ticket_code")

        ticket = self.ticket_repo.get_by_code(ticket_code)
        if ticket is None:
            raise EntityNotFoundError(
                "Ingresso não encontrado",
                entity_type="Ticket",
            )

        ticket.ensure_valid()

        event = self.event_store.get_event(ticket.event_id)
        if event is None:
            raise EntityNotFoundError(
                f"Evento {ticket.event_id} não encontrado",
                entity_type="Event",
                entity_id=ticket.event_id,
            )

        if event.has_ended(self._now()):
            raise TicketEventEndedError(ticket_code, event.end_time)

        return ticket, event

    def use(self, ticket_code: str) -> TicketEntity:
        """
        Marca o ingresso como usado. Apenas um chamador concorrente vence.

        Raises:
            As mesmas exceções de verify(); o perdedor de uma corrida
            recebe TicketWrongStatusError com current="used".
        """
        ticket, _event = self.verify(ticket_code)

        now = self._now()
        if not self.ticket_repo.update_status(
            ticket.id, TicketStatus.VALID, TicketStatus.USED, now
        ):
            current = self.ticket_repo.get_by_id(ticket.id)
            logger.info("Uso concorrente do ingresso %s rejeitado", ticket.id)
            raise TicketWrongStatusError(
                ticket_code,
                current=current.status.value if current else ticket.status.value,
                used_at=current.used_at if current else None,
            )

        ticket.use(now)
        self.uow.publish_event(
            TicketUsedEvent(
                aggregate_id=ticket.id,
                event_ref_id=ticket.event_id,
                user_id=ticket.user_id,
            )
        )
        return ticket

    def expire_ended(self) -> List[TicketEntity]:
        """Expira ingressos válidos de eventos já terminados."""
        now = self._now()
        expired = []
        for ticket in self.ticket_repo.list_valid_for_ended_events(now):
            if self.ticket_repo.update_status(
                ticket.id, TicketStatus.VALID, TicketStatus.EXPIRED, now
            ):
                ticket.expire(now)
                expired.append(ticket)
                self.uow.publish_event(
                    TicketExpiredEvent(aggregate_id=ticket.id, event_ref_id=ticket.event_id)
                )
        return expired


class RegistrationLifecycleManager:
    """
    Inscrição, reativação e cancelamento.

    register() resolve três casos em uma chamada idempotente:
    - sem inscrição → cria e emite ingresso (consome vaga)
    - inscrição ativa → DUPLICATE, nada muda
    - inscrição cancelada → reativa a mesma linha e emite novo ingresso
    """

    def __init__(
        self,
        registration_repo: RegistrationRepository,
        tickets: TicketLifecycleManager,
        availability: AvailabilityEvaluator,
        uow: UnitOfWork,
        now: Clock = utcnow,
    ):
        self.registration_repo = registration_repo
        self.tickets = tickets
        self.availability = availability
        self.capacity_guard = CapacityGuard(registration_repo)
        self.uow = uow
        self._now = now

    def register(self, event: EventInfo, user_id: str) -> RegistrationResult:
        """
        Raises:
            ValidationError: user_id vazio
            EventNotAvailableError: Evento indisponível (motivo incluso)
            StorageError: Falha de persistência
        """
        if not user_id:
            raise ValidationError("Usuário é obrigatório", field="user_id")

        current = self.registration_repo.find_by_event_and_user(event.id, user_id)
        if current is not None and current.is_active:
            return self._duplicate(current)

        self.availability.ensure_available(
            event,
            active_count=lambda: self.registration_repo.count_active_registrations(event.id),
            user_id=user_id,
        )

        with self.capacity_guard.admission(event) as slot:
            # Relido sob lock: outra requisição do mesmo usuário pode ter vencido
            current = self.registration_repo.find_by_event_and_user(event.id, user_id)
            if current is not None and current.is_active:
                return self._duplicate(current)

            slot.claim()

            if current is None:
                return self._create(event, user_id)
            return self._reactivate(current)

    def cancel(self, registration_id: str) -> Tuple[RegistrationEntity, Optional[TicketEntity]]:
        """
        Cancela a inscrição e o ingresso válido dela, atomicamente.

        Raises:
            EntityNotFoundError: Inscrição não existe
            AlreadyCancelledError: Já cancelada (inclusive por corrida perdida)
        """
        registration = self.registration_repo.get_by_id(registration_id)
        if registration is None:
            raise EntityNotFoundError(
                f"Inscrição {registration_id} não encontrada",
                entity_type="Registration",
                entity_id=registration_id,
            )

        now = self._now()
        registration.cancel(now)

        if not self.registration_repo.update_status(
            registration.id, RegistrationStatus.ACTIVE, RegistrationStatus.CANCELLED, now
        ):
            raise AlreadyCancelledError(registration.id)

        ticket = self.tickets.cancel_for_registration(registration.id)

        self.uow.publish_event(
            RegistrationCancelledEvent(
                aggregate_id=registration.id,
                event_ref_id=registration.event_id,
                user_id=registration.user_id,
                cancelled_ticket_id=ticket.id if ticket else None,
            )
        )
        logger.info("Inscrição %s cancelada", registration.id)
        return registration, ticket

    def _duplicate(self, registration: RegistrationEntity) -> RegistrationResult:
        ticket = self.tickets.ticket_repo.find_valid_for_registration(registration.id)
        return RegistrationResult(RegistrationOutcome.DUPLICATE, registration, ticket)

    def _create(self, event: EventInfo, user_id: str) -> RegistrationResult:
        registration = RegistrationEntity.create(event.id, user_id, now=self._now())
        self.registration_repo.insert(registration)
        self.uow.publish_event(
            RegistrationCreatedEvent(
                aggregate_id=registration.id,
                event_ref_id=event.id,
                user_id=user_id,
            )
        )
        ticket = self.tickets.issue(registration)
        logger.info("Inscrição %s criada no evento %s", registration.id, event.id)
        return RegistrationResult(RegistrationOutcome.CREATED, registration, ticket)

    def _reactivate(self, registration: RegistrationEntity) -> RegistrationResult:
        now = self._now()
        registration.reactivate(now)
        if not self.registration_repo.update_status(
            registration.id, RegistrationStatus.CANCELLED, RegistrationStatus.ACTIVE, now
        ):
            # Sob o lock do evento só a própria admissão reativa; ler o estado real
            fresh = self.registration_repo.get_by_id(registration.id)
            if fresh is not None and fresh.is_active:
                return self._duplicate(fresh)
            raise BusinessRuleViolationError(
                "Inscrição mudou de estado durante a reativação",
                rule="reativacao_concorrente"
            )

        self.uow.publish_event(
            RegistrationReactivatedEvent(
                aggregate_id=registration.id,
                event_ref_id=registration.event_id,
                user_id=registration.user_id,
            )
        )
        ticket = self.tickets.issue(registration)
        logger.info("Inscrição %s reativada", registration.id)
        return RegistrationResult(RegistrationOutcome.REACTIVATED, registration, ticket)
