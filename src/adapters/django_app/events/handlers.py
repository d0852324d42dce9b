"""
Event Handlers - Tasks Celery do domínio de Inscrições.

- dispatch_domain_event: ponto de entrada dos eventos publicados
  pelo CeleryEventPublisher; roteia por tipo de evento
- handle_occupancy_changed: registra a ocupação do evento após
  inscrição, reativação ou cancelamento
- handle_ticket_used: registra entrada no evento
- expire_ended_event_tickets: varredura periódica (Celery Beat)
  que expira ingressos de eventos já terminados

Padrão:
    @shared_task(bind=True, ...)
    def handle_<evento>(self, event_data: dict) -> None:
        ...
"""

import logging
from typing import Any, Dict

from celery import shared_task

from src.core.shared.exceptions import StorageError

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(StorageError,),
    acks_late=True,
)
def handle_occupancy_changed(self, event_data: Dict[str, Any]) -> int:
    """
    Loga a ocupação atual do evento afetado.

    Returns:
        Número de inscrições ativas no evento
    """
    from src.config.container import get_container

    event_ref_id = event_data.get("data", {}).get("event_ref_id")
    repo = get_container().registration_repository()
    active = repo.count_active_registrations(event_ref_id)

    logger.info(
        "[HANDLER] %s: evento %s com %d inscrições ativas",
        event_data.get("event_type"), event_ref_id, active,
    )
    return active


@shared_task(bind=True, ignore_result=True)
def handle_ticket_used(self, event_data: Dict[str, Any]) -> None:
    data = event_data.get("data", {})
    logger.info(
        "[HANDLER] Entrada registrada: ingresso %s no evento %s",
        event_data.get("aggregate_id"), data.get("event_ref_id"),
    )


# =============================================================================
# Event Dispatcher (Router)
# =============================================================================

EVENT_HANDLERS = {
    "RegistrationCreatedEvent": handle_occupancy_changed,
    "RegistrationReactivatedEvent": handle_occupancy_changed,
    "RegistrationCancelledEvent": handle_occupancy_changed,
    "TicketUsedEvent": handle_ticket_used,
}


@shared_task(bind=True, max_retries=5, default_retry_delay=30)
def dispatch_domain_event(self, event_type: str, event_data: Dict[str, Any]) -> bool:
    """
    Dispatcher central para Domain Events.

    Returns:
        True se algum handler foi acionado
    """
    handler = EVENT_HANDLERS.get(event_type)

    if handler is None:
        logger.debug("[DISPATCHER] Sem handler para %s", event_type)
        return False

    logger.info("[DISPATCHER] Roteando %s para %s", event_type, handler.name)
    handler.delay(event_data)
    return True


# =============================================================================
# Scheduled Tasks (Beat)
# =============================================================================

@shared_task(bind=True)
def expire_ended_event_tickets(self) -> int:
    """
    Expira ingressos válidos de eventos terminados.

    A verificação de ingresso já recusa eventos terminados; esta
    varredura apenas materializa o status "expired" no banco.

    Returns:
        Número de ingressos expirados
    """
    from src.config.container import get_container

    service = get_container().expire_tickets_service()
    expired = service.execute()

    logger.info("[SCHEDULED] %d ingressos expirados", expired)
    return expired
