"""
Guarda de capacidade.

Garante que o número de inscrições ativas de um evento nunca passe da
capacidade, mesmo com admissões concorrentes. A verificação de contagem
e a escrita que consome a vaga acontecem sob o mesmo lock do evento.

Example:
    with guard.admission(event) as slot:
        current = repo.find_by_event_and_user(event.id, user_id)
        if current and current.is_active:
            return current          # duplicata: não consome vaga
        slot.claim()                # EventNotAvailableError(FULL)
        repo.insert(registration)
"""

from contextlib import contextmanager
import logging
from typing import Iterator

from src.core.shared.exceptions import EventNotAvailableError, EventNotAvailableReason
from .entities import EventInfo
from .ports import RegistrationRepository

logger = logging.getLogger(__name__)


class AdmissionSlot:
    """Vaga em disputa, válida apenas dentro de `CapacityGuard.admission`."""

    def __init__(self, event: EventInfo, registration_repo: RegistrationRepository):
        self._event = event
        self._registration_repo = registration_repo
        self.claimed = False

    def claim(self) -> None:
        """
        Confirma que há vaga para mais uma inscrição ativa.

        Raises:
            EventNotAvailableError: FULL se a capacidade foi atingida
        """
        if not self._event.is_unlimited:
            active = self._registration_repo.count_active_registrations(self._event.id)
            if active >= self._event.capacity:
                logger.info(
                    "Admissão recusada: evento %s lotado (%d/%d)",
                    self._event.id, active, self._event.capacity,
                )
                raise EventNotAvailableError(self._event.id, EventNotAvailableReason.FULL)
        self.claimed = True


class CapacityGuard:
    """Serializa admissões por evento usando o lock do repositório."""

    def __init__(self, registration_repo: RegistrationRepository):
        self._registration_repo = registration_repo

    @contextmanager
    def admission(self, event: EventInfo) -> Iterator[AdmissionSlot]:
        with self._registration_repo.lock_event_for_admission(event.id):
            yield AdmissionSlot(event, self._registration_repo)
