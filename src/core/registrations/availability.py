"""
Avaliação de disponibilidade de eventos.

Regras aplicadas em ordem, a primeira que falhar define o motivo:

1. Evento não publicado → NOT_PUBLISHED (sem exceção)
2. Evento privado e usuário sem acesso elevado → PRIVATE
3. Evento já terminou (now >= end_time) → ENDED
4. Capacidade definida e inscrições ativas >= capacidade → FULL

Esta avaliação é informativa: não reserva vaga. A decisão final de
admissão é do CapacityGuard, sob lock.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from src.core.shared.clock import Clock, utcnow
from src.core.shared.exceptions import EventNotAvailableError, EventNotAvailableReason
from .entities import EventInfo, EventStatus
from .ports import AccessPolicy, OwnerAccessPolicy


@dataclass(frozen=True)
class AvailabilityResult:
    """Resultado da avaliação: disponível ou motivo da indisponibilidade."""

    available: bool
    reason: Optional[EventNotAvailableReason] = None

    @classmethod
    def ok(cls) -> "AvailabilityResult":
        return cls(available=True)

    @classmethod
    def unavailable(cls, reason: EventNotAvailableReason) -> "AvailabilityResult":
        return cls(available=False, reason=reason)


class AvailabilityEvaluator:
    """
    Avalia se um evento aceita inscrições agora.

    Example:
        evaluator = AvailabilityEvaluator(OwnerAccessPolicy())
        result = evaluator.evaluate(
            event,
            active_count=lambda: repo.count_active_registrations(event.id),
            user_id="u1",
        )
    """

    def __init__(self, access_policy: Optional[AccessPolicy] = None, now: Clock = utcnow):
        self._access_policy = access_policy or OwnerAccessPolicy()
        self._now = now

    def evaluate(
        self,
        event: EventInfo,
        active_count: Callable[[], int],
        user_id: Optional[str] = None,
    ) -> AvailabilityResult:
        """
        Args:
            event: Evento avaliado
            active_count: Contagem de inscrições ativas, só chamada
                quando o evento tem capacidade definida
            user_id: Usuário solicitante (None = anônimo)
        """
        if event.status != EventStatus.PUBLISHED:
            return AvailabilityResult.unavailable(EventNotAvailableReason.NOT_PUBLISHED)

        if not event.is_public and not self._access_policy.has_elevated_access(event, user_id):
            return AvailabilityResult.unavailable(EventNotAvailableReason.PRIVATE)

        if event.has_ended(self._now()):
            return AvailabilityResult.unavailable(EventNotAvailableReason.ENDED)

        if not event.is_unlimited and active_count() >= event.capacity:
            return AvailabilityResult.unavailable(EventNotAvailableReason.FULL)

        return AvailabilityResult.ok()

    def ensure_available(
        self,
        event: EventInfo,
        active_count: Callable[[], int],
        user_id: Optional[str] = None,
    ) -> None:
        """
        Raises:
            EventNotAvailableError: Com o motivo da primeira regra violada
        """
        result = self.evaluate(event, active_count, user_id)
        if not result.available:
            raise EventNotAvailableError(event.id, result.reason)
