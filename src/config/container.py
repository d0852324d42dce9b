"""
Dependency Injection Container.

Configura e gerencia as dependências da aplicação com dependency-injector.

Padrões:
- Singleton: Uma instância para toda app (repositories, publisher)
- Factory: Nova instância por chamada (services, UoW)

Imports dos adapters Django são tardios: o container pode ser montado
antes de django.setup() (ex: worker Celery importando tasks).
"""

import importlib
from typing import Any, Callable, Optional

from dependency_injector import containers, providers


def _lazy(module_path: str, attr: str) -> Callable[..., Any]:
    """Adia o import de `module_path.attr` até a primeira chamada."""

    def factory(*args, **kwargs):
        return getattr(importlib.import_module(module_path), attr)(*args, **kwargs)

    factory.__name__ = attr
    return factory


_REPOSITORIES = "src.adapters.django_app.registrations.repositories"
_UOW = "src.adapters.django_app.shared.unit_of_work"
_PUBLISHERS = "src.adapters.django_app.events.publishers"
_CORE = "src.core.registrations"


class Container(containers.DeclarativeContainer):
    """
    Container principal de Dependency Injection.

    Organização:
    - Configuration: valores vindos do Django settings
    - Infrastructure: publisher, log de auditoria, Event Store
    - Repositories: Persistência
    - Unit of Work: Transações
    - Services: Use Cases

    Example:
        container = get_container()
        service = container.register_for_event_service()
        result = service.execute(RegisterInputDTO(event_id="e1", user_id="u1"))
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    config = providers.Configuration(default={
        "event_publisher_mode": "logging",
        "ticket_code_bytes": 24,
        "ticket_code_max_attempts": 5,
    })

    # =========================================================================
    # Infrastructure
    # =========================================================================

    event_publisher = providers.Singleton(
        _lazy(_PUBLISHERS, "get_event_publisher"),
        mode=config.event_publisher_mode,
    )

    event_log = providers.Singleton(_lazy(_REPOSITORIES, "DjangoDomainEventLog"))

    event_store = providers.Singleton(_lazy(_REPOSITORIES, "DjangoEventStore"))

    access_policy = providers.Singleton(_lazy(_CORE, "OwnerAccessPolicy"))

    ticket_code_generator = providers.Singleton(
        _lazy(_CORE, "TicketCodeGenerator"),
        nbytes=config.ticket_code_bytes.as_int(),
        max_attempts=config.ticket_code_max_attempts.as_int(),
    )

    # =========================================================================
    # Repositories
    # =========================================================================

    registration_repository = providers.Singleton(
        _lazy(_REPOSITORIES, "DjangoRegistrationRepository")
    )

    ticket_repository = providers.Singleton(_lazy(_REPOSITORIES, "DjangoTicketRepository"))

    # =========================================================================
    # Unit of Work (Factory - nova instância por operação)
    # =========================================================================

    unit_of_work = providers.Factory(
        _lazy(_UOW, "DjangoUnitOfWork"),
        event_publisher=event_publisher,
        event_log=event_log,
    )

    # =========================================================================
    # Services / Use Cases
    # =========================================================================

    register_for_event_service = providers.Factory(
        _lazy(_CORE, "RegisterForEventService"),
        event_store=event_store,
        registration_repo=registration_repository,
        ticket_repo=ticket_repository,
        uow=unit_of_work,
        access_policy=access_policy,
        code_generator=ticket_code_generator,
    )

    cancel_registration_service = providers.Factory(
        _lazy(_CORE, "CancelRegistrationService"),
        event_store=event_store,
        registration_repo=registration_repository,
        ticket_repo=ticket_repository,
        uow=unit_of_work,
    )

    # Leitura - sem UoW
    check_availability_service = providers.Factory(
        _lazy(_CORE, "CheckAvailabilityService"),
        event_store=event_store,
        registration_repo=registration_repository,
        access_policy=access_policy,
    )

    issue_ticket_service = providers.Factory(
        _lazy(_CORE, "IssueTicketForRegistrationService"),
        event_store=event_store,
        registration_repo=registration_repository,
        ticket_repo=ticket_repository,
        uow=unit_of_work,
        code_generator=ticket_code_generator,
    )

    verify_ticket_service = providers.Factory(
        _lazy(_CORE, "VerifyTicketService"),
        event_store=event_store,
        ticket_repo=ticket_repository,
    )

    use_ticket_service = providers.Factory(
        _lazy(_CORE, "UseTicketService"),
        event_store=event_store,
        ticket_repo=ticket_repository,
        uow=unit_of_work,
    )

    expire_tickets_service = providers.Factory(
        _lazy(_CORE, "ExpireTicketsService"),
        event_store=event_store,
        ticket_repo=ticket_repository,
        uow=unit_of_work,
    )

    get_registration_service = providers.Factory(
        _lazy(_CORE, "GetRegistrationService"),
        registration_repo=registration_repository,
    )

    list_event_registrations_service = providers.Factory(
        _lazy(_CORE, "ListEventRegistrationsService"),
        event_store=event_store,
        registration_repo=registration_repository,
    )

    get_ticket_service = providers.Factory(
        _lazy(_CORE, "GetTicketService"),
        ticket_repo=ticket_repository,
    )

    list_tickets_service = providers.Factory(
        _lazy(_CORE, "ListTicketsService"),
        ticket_repo=ticket_repository,
    )


# =============================================================================
# Container Global (Singleton)
# =============================================================================

_container: Optional[Container] = None


def get_container() -> Container:
    """
    Retorna instância global do container, configurada a partir
    do Django settings na primeira chamada.
    """
    global _container

    if _container is None:
        from django.conf import settings

        _container = Container()
        _container.config.from_dict({
            "event_publisher_mode": getattr(settings, "EVENT_PUBLISHER_MODE", "logging"),
            "ticket_code_bytes": getattr(settings, "TICKET_CODE_BYTES", 24),
            "ticket_code_max_attempts": getattr(settings, "TICKET_CODE_MAX_ATTEMPTS", 5),
        })

    return _container


def reset_container() -> None:
    """Reset do container (para testes)."""
    global _container
    _container = None


# =============================================================================
# Testing Container
# =============================================================================

def create_testing_container(now: Optional[Callable] = None) -> Container:
    """
    Container com implementações InMemory, sem banco nem broker.

    Args:
        now: Relógio injetado nos services (padrão: utcnow)

    Example:
        container = create_testing_container()
        container.event_store().add(event)
        result = container.register_for_event_service().execute(input_dto)
    """
    from src.adapters.django_app.events.publishers import InMemoryEventPublisher
    from src.adapters.django_app.shared.unit_of_work import InMemoryUnitOfWork
    from src.core.registrations.ports import (
        InMemoryEventStore,
        InMemoryRegistrationRepository,
        InMemoryTicketRepository,
    )

    container = Container()
    event_store = InMemoryEventStore()

    container.event_publisher.override(providers.Singleton(InMemoryEventPublisher))
    container.event_store.override(providers.Object(event_store))
    container.registration_repository.override(
        providers.Singleton(InMemoryRegistrationRepository)
    )
    container.ticket_repository.override(
        providers.Singleton(InMemoryTicketRepository, event_store=event_store)
    )
    container.unit_of_work.override(
        providers.Factory(InMemoryUnitOfWork, event_publisher=container.event_publisher)
    )

    if now is not None:
        for name in (
            "register_for_event_service",
            "cancel_registration_service",
            "check_availability_service",
            "issue_ticket_service",
            "verify_ticket_service",
            "use_ticket_service",
            "expire_tickets_service",
        ):
            getattr(container, name).add_kwargs(now=now)

    return container
