"""
Testes Unitários para Use Cases de Inscrições e Ingressos.

Estratégia de Teste:
- Repositórios em memória (thread-safe) e FakeUnitOfWork
- Relógio fixo injetado nos services
- Cenários concorrentes com threads reais sobre os adapters em memória

Coverage:
- RegisterForEventService: CREATED / DUPLICATE / REACTIVATED, capacidade
- CancelRegistrationService
- CheckAvailabilityService
- IssueTicketForRegistrationService
- VerifyTicketService / UseTicketService / ExpireTicketsService
- Consultas de inscrições e ingressos
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
import threading

import pytest

from src.core.registrations.dtos import (
    ListTicketsQueryDTO,
    RegisterInputDTO,
    RegistrationOutcome,
)
from src.core.registrations.entities import EventStatus, TicketEntity, TicketStatus
from src.core.registrations.use_cases import (
    GetRegistrationService,
    GetTicketService,
    ListEventRegistrationsService,
    ListTicketsService,
)
from src.core.shared.exceptions import (
    AlreadyCancelledError,
    BusinessRuleViolationError,
    EntityNotFoundError,
    EventNotAvailableError,
    EventNotAvailableReason,
    StorageError,
    TicketEventEndedError,
    TicketWrongStatusError,
    ValidationError,
)


def run_concurrently(n, fn):
    """Executa fn(i) em n threads liberadas ao mesmo tempo; exceções viram resultado."""
    barrier = threading.Barrier(n)

    def worker(i):
        barrier.wait()
        try:
            return fn(i)
        except Exception as e:
            return e

    with ThreadPoolExecutor(max_workers=n) as pool:
        return list(pool.map(worker, range(n)))


@pytest.fixture
def event(event_store, make_event):
    event = make_event(id="event-1", capacity=2)
    event_store.add(event)
    return event


def register(services, event_id, user_id, uow=None):
    return services.register(uow).execute(RegisterInputDTO(event_id=event_id, user_id=user_id))


class TestRegisterForEventService:

    def test_inscricao_criada_com_ingresso(self, services, event, uow, now):
        """Deve criar inscrição ativa e emitir ingresso válido."""
        result = register(services, event.id, "user-a", uow)

        assert result.outcome == RegistrationOutcome.CREATED
        assert result.registration.status == "active"
        assert result.registration.created_at == now
        assert result.ticket.status == "valid"
        assert result.ticket.registration_id == result.registration.id
        assert result.ticket.ticket_code
        assert uow.committed
        assert uow.published_types() == ["RegistrationCreatedEvent", "TicketIssuedEvent"]

    def test_inscricao_duplicada_nao_altera_nada(self, services, event, ticket_repo, uow):
        """Segunda inscrição ativa retorna DUPLICATE com o mesmo ingresso."""
        first = register(services, event.id, "user-a")
        second = register(services, event.id, "user-a", uow)

        assert second.outcome == RegistrationOutcome.DUPLICATE
        assert second.is_duplicate
        assert second.registration.id == first.registration.id
        assert second.ticket.ticket_code == first.ticket.ticket_code
        assert len(ticket_repo.list_by_event(event.id)) == 1
        assert uow.published == []

    def test_duplicada_tem_precedencia_sobre_lotado(self, services, event_store, make_event):
        """Usuário já inscrito recebe DUPLICATE mesmo com evento lotado."""
        full = make_event(id="tiny", capacity=1)
        event_store.add(full)
        register(services, full.id, "user-a")

        result = register(services, full.id, "user-a")

        assert result.outcome == RegistrationOutcome.DUPLICATE

    def test_evento_inexistente(self, services, uow):
        with pytest.raises(EntityNotFoundError) as exc_info:
            register(services, "missing", "user-a", uow)

        assert exc_info.value.entity_type == "Event"
        assert uow.rolled_back

    def test_usuario_vazio(self, services, event):
        with pytest.raises(ValidationError) as exc_info:
            register(services, event.id, "")

        assert exc_info.value.field == "user_id"

    @pytest.mark.parametrize("overrides,reason", [
        ({"status": EventStatus.DRAFT}, EventNotAvailableReason.NOT_PUBLISHED),
        ({"is_public": False, "owner_id": "owner"}, EventNotAvailableReason.PRIVATE),
        ({"capacity": 0}, EventNotAvailableReason.FULL),
    ])
    def test_evento_indisponivel(
        self, services, event_store, make_event, registration_repo, overrides, reason
    ):
        event = make_event(**overrides)
        event_store.add(event)

        with pytest.raises(EventNotAvailableError) as exc_info:
            register(services, event.id, "user-a")

        assert exc_info.value.reason == reason
        assert registration_repo.count_active_registrations(event.id) == 0

    def test_evento_terminado(self, services, event_store, make_event, now):
        event = make_event(start_time=now - timedelta(hours=3), end_time=now)
        event_store.add(event)

        with pytest.raises(EventNotAvailableError) as exc_info:
            register(services, event.id, "user-a")

        assert exc_info.value.reason == EventNotAvailableReason.ENDED

    def test_dono_inscreve_em_evento_privado(self, services, event_store, make_event):
        event = make_event(is_public=False, owner_id="owner")
        event_store.add(event)

        result = register(services, event.id, "owner")

        assert result.outcome == RegistrationOutcome.CREATED

    @pytest.mark.parametrize("status", [EventStatus.DRAFT, EventStatus.CANCELLED])
    def test_dono_rejeitado_em_evento_nao_publicado(
        self, services, event_store, make_event, registration_repo, ticket_repo, uow, status
    ):
        event = make_event(status=status, owner_id="owner")
        event_store.add(event)

        with pytest.raises(EventNotAvailableError) as exc_info:
            register(services, event.id, "owner", uow)

        assert exc_info.value.reason == EventNotAvailableReason.NOT_PUBLISHED
        assert registration_repo.list_by_event(event.id) == []
        assert ticket_repo.list_by_event(event.id) == []
        assert uow.rolled_back
        assert uow.published == []

    def test_reativacao_reaproveita_inscricao(self, services, event, ticket_repo, uow):
        """Cancelar e reinscrever reativa a mesma inscrição com novo ingresso."""
        first = register(services, event.id, "user-a")
        services.cancel().execute(first.registration.id)

        again = register(services, event.id, "user-a", uow)

        assert again.outcome == RegistrationOutcome.REACTIVATED
        assert again.registration.id == first.registration.id
        assert again.registration.status == "active"
        assert again.registration.cancelled_at is None
        assert again.registration.reactivated_at is not None
        assert again.ticket.ticket_code != first.ticket.ticket_code
        assert ticket_repo.get_by_id(first.ticket.id).status == TicketStatus.CANCELLED
        assert uow.published_types() == ["RegistrationReactivatedEvent", "TicketIssuedEvent"]

    def test_cenario_capacidade_um(self, services, event_store, make_event):
        """
        Evento com capacidade 1, usuários A e B:
        A entra, B fica de fora, A cancela, B entra, A fica de fora,
        B cancela e A reativa a inscrição original.
        """
        event = make_event(id="solo", capacity=1)
        event_store.add(event)
        cancel = services.cancel()

        a = register(services, event.id, "A")
        assert a.outcome == RegistrationOutcome.CREATED

        with pytest.raises(EventNotAvailableError) as exc_info:
            register(services, event.id, "B")
        assert exc_info.value.reason == EventNotAvailableReason.FULL

        cancel.execute(a.registration.id)
        b = register(services, event.id, "B")
        assert b.outcome == RegistrationOutcome.CREATED

        with pytest.raises(EventNotAvailableError) as exc_info:
            register(services, event.id, "A")
        assert exc_info.value.reason == EventNotAvailableReason.FULL

        cancel.execute(b.registration.id)
        a_again = register(services, event.id, "A")
        assert a_again.outcome == RegistrationOutcome.REACTIVATED
        assert a_again.registration.id == a.registration.id
        assert a_again.ticket.ticket_code != a.ticket.ticket_code

    @pytest.mark.slow
    def test_capacidade_respeitada_sob_concorrencia(
        self, services, event_store, make_event, registration_repo, uow_factory
    ):
        """Admissões concorrentes nunca ultrapassam a capacidade."""
        event = make_event(id="crowded", capacity=5)
        event_store.add(event)
        uows = [uow_factory() for _ in range(20)]

        results = run_concurrently(
            20, lambda i: register(services, event.id, f"user-{i}", uows[i])
        )

        created = [r for r in results if not isinstance(r, Exception)]
        rejected = [r for r in results if isinstance(r, EventNotAvailableError)]
        assert len(created) == 5
        assert len(rejected) == 15
        assert all(e.reason == EventNotAvailableReason.FULL for e in rejected)
        assert registration_repo.count_active_registrations(event.id) == 5
        for result, uow in zip(results, uows):
            if isinstance(result, Exception):
                assert uow.rolled_back
                assert uow.published == []
            else:
                assert uow.committed
                assert uow.published_types() == ["RegistrationCreatedEvent", "TicketIssuedEvent"]

    def test_mesmo_usuario_concorrente_cria_uma_vez(
        self, services, event, registration_repo, ticket_repo, uow_factory
    ):
        """Requisições repetidas em paralelo geram uma inscrição e um ingresso."""
        uows = [uow_factory() for _ in range(10)]

        results = run_concurrently(10, lambda i: register(services, event.id, "user-a", uows[i]))

        outcomes = [r.outcome for r in results]
        assert outcomes.count(RegistrationOutcome.CREATED) == 1
        assert outcomes.count(RegistrationOutcome.DUPLICATE) == 9
        assert len(registration_repo.list_by_event(event.id)) == 1
        valid = [t for t in ticket_repo.list_by_event(event.id) if t.is_valid]
        assert len(valid) == 1
        published = [uow.published_types() for uow in uows]
        assert published.count(["RegistrationCreatedEvent", "TicketIssuedEvent"]) == 1
        assert published.count([]) == 9


class TestCancelRegistrationService:

    def test_cancelar_inscricao_e_ingresso(self, services, event, ticket_repo, uow, now):
        created = register(services, event.id, "user-a")

        result = services.cancel(uow).execute(created.registration.id)

        assert result.registration.status == "cancelled"
        assert result.registration.cancelled_at == now
        assert result.cancelled_ticket.status == "cancelled"
        assert result.cancelled_ticket.cancelled_at == now
        assert ticket_repo.find_valid_for_registration(created.registration.id) is None
        assert uow.published_types() == ["TicketCancelledEvent", "RegistrationCancelledEvent"]

    def test_cancelamento_libera_vaga(self, services, event, registration_repo):
        created = register(services, event.id, "user-a")
        services.cancel().execute(created.registration.id)

        assert registration_repo.count_active_registrations(event.id) == 0

    def test_cancelar_duas_vezes(self, services, event):
        created = register(services, event.id, "user-a")
        services.cancel().execute(created.registration.id)

        with pytest.raises(AlreadyCancelledError):
            services.cancel().execute(created.registration.id)

    def test_cancelar_inexistente(self, services):
        with pytest.raises(EntityNotFoundError) as exc_info:
            services.cancel().execute("missing")

        assert exc_info.value.entity_type == "Registration"

    def test_ingresso_usado_nao_e_cancelado(self, services, event, ticket_repo):
        """Estado terminal do ingresso prevalece sobre o cancelamento."""
        created = register(services, event.id, "user-a")
        services.use().execute(created.ticket.ticket_code)

        result = services.cancel().execute(created.registration.id)

        assert result.cancelled_ticket is None
        assert ticket_repo.get_by_id(created.ticket.id).status == TicketStatus.USED

    def test_cancelamento_concorrente(self, services, event, uow_factory):
        """Entre cancelamentos paralelos, só um vence; os outros recebem AlreadyCancelled."""
        created = register(services, event.id, "user-a")
        uows = [uow_factory() for _ in range(8)]

        results = run_concurrently(
            8, lambda i: services.cancel(uows[i]).execute(created.registration.id)
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 7
        assert all(isinstance(e, AlreadyCancelledError) for e in failures)
        published = [uow.published_types() for uow in uows]
        assert published.count(["TicketCancelledEvent", "RegistrationCancelledEvent"]) == 1
        assert published.count([]) == 7


class TestCheckAvailabilityService:

    def test_disponivel(self, services, event):
        result = services.availability().execute(event.id)

        assert result.available is True
        assert result.to_dict() == {"event_id": event.id, "available": True, "reason": None}

    def test_lotado(self, services, event):
        register(services, event.id, "user-a")
        register(services, event.id, "user-b")

        result = services.availability().execute(event.id)

        assert result.available is False
        assert result.reason == EventNotAvailableReason.FULL

    def test_privado_para_anonimo(self, services, event_store, make_event):
        event = make_event(is_public=False, owner_id="owner")
        event_store.add(event)

        assert services.availability().execute(event.id).reason == EventNotAvailableReason.PRIVATE
        assert services.availability().execute(event.id, user_id="owner").available is True

    def test_evento_inexistente(self, services):
        with pytest.raises(EntityNotFoundError):
            services.availability().execute("missing")


class TestIssueTicketForRegistrationService:

    def test_inscricao_com_ingresso_valido(self, services, event):
        created = register(services, event.id, "user-a")

        with pytest.raises(BusinessRuleViolationError) as exc_info:
            services.issue().execute(created.registration.id)

        assert exc_info.value.rule == "ingresso_valido_existente"

    def test_reemite_apos_uso(self, services, event):
        """Inscrição ativa sem ingresso válido recebe novo ingresso."""
        created = register(services, event.id, "user-a")
        services.use().execute(created.ticket.ticket_code)

        ticket = services.issue().execute(created.registration.id)

        assert ticket.status == "valid"
        assert ticket.ticket_code != created.ticket.ticket_code

    def test_inscricao_cancelada(self, services, event):
        created = register(services, event.id, "user-a")
        services.cancel().execute(created.registration.id)

        with pytest.raises(BusinessRuleViolationError) as exc_info:
            services.issue().execute(created.registration.id)

        assert exc_info.value.rule == "inscricao_inativa"

    def test_inscricao_inexistente(self, services):
        with pytest.raises(EntityNotFoundError):
            services.issue().execute("missing")

    def test_repositorio_recusa_segundo_ingresso_valido(
        self, services, event, registration_repo, ticket_repo, now
    ):
        created = register(services, event.id, "user-a")
        registration = registration_repo.get_by_id(created.registration.id)

        with pytest.raises(StorageError):
            ticket_repo.insert(TicketEntity.issue(registration, "outro-codigo", now=now))

        assert len(ticket_repo.list_by_event(event.id)) == 1

    def test_reemissao_concorrente_gera_um_ingresso(
        self, services, event, ticket_repo, uow_factory, monkeypatch
    ):
        """As duas threads passam da checagem antes de inserir; só uma grava."""
        created = register(services, event.id, "user-a")
        services.use().execute(created.ticket.ticket_code)

        both_checked = threading.Barrier(2)
        code_exists = ticket_repo.code_exists

        def code_exists_after_both(code):
            both_checked.wait(timeout=5)
            return code_exists(code)

        monkeypatch.setattr(ticket_repo, "code_exists", code_exists_after_both)
        uows = [uow_factory() for _ in range(2)]

        results = run_concurrently(
            2, lambda i: services.issue(uows[i]).execute(created.registration.id)
        )

        issued = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(issued) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], StorageError)
        valid = [t for t in ticket_repo.list_by_event(event.id) if t.is_valid]
        assert len(valid) == 1
        assert valid[0].ticket_code == issued[0].ticket_code
        assert sorted(uow.published_types() for uow in uows) == [[], ["TicketIssuedEvent"]]


class TestVerifyTicketService:

    def test_ingresso_valido(self, services, event):
        created = register(services, event.id, "user-a")

        result = services.verify().execute(created.ticket.ticket_code)

        assert result.valid is True
        assert result.ticket.id == created.ticket.id
        assert result.event_end_time == event.end_time

    @pytest.mark.parametrize("code", ["", "   "])
    def test_codigo_vazio(self, services, code):
        with pytest.raises(ValidationError) as exc_info:
            services.verify().execute(code)

        assert exc_info.value.field == "ticket_code"

    def test_codigo_desconhecido(self, services):
        with pytest.raises(EntityNotFoundError):
            services.verify().execute("unknown-code")

    def test_ingresso_usado(self, services, event, now):
        created = register(services, event.id, "user-a")
        services.use().execute(created.ticket.ticket_code)

        with pytest.raises(TicketWrongStatusError) as exc_info:
            services.verify().execute(created.ticket.ticket_code)

        assert exc_info.value.current == "used"
        assert exc_info.value.used_at == now

    def test_evento_terminado_nao_altera_status(self, services, event, ticket_repo):
        """Ingresso válido de evento terminado falha sem mudar o status gravado."""
        created = register(services, event.id, "user-a")
        after_end = lambda: event.end_time + timedelta(minutes=1)

        with pytest.raises(TicketEventEndedError) as exc_info:
            services.verify(clock=after_end).execute(created.ticket.ticket_code)

        assert exc_info.value.end_time == event.end_time
        assert ticket_repo.get_by_id(created.ticket.id).status == TicketStatus.VALID

    def test_status_tem_precedencia_sobre_fim(self, services, event):
        created = register(services, event.id, "user-a")
        services.cancel().execute(created.registration.id)
        after_end = lambda: event.end_time + timedelta(minutes=1)

        with pytest.raises(TicketWrongStatusError) as exc_info:
            services.verify(clock=after_end).execute(created.ticket.ticket_code)

        assert exc_info.value.current == "cancelled"


class TestUseTicketService:

    def test_usar_ingresso(self, services, event, uow, now):
        created = register(services, event.id, "user-a")

        ticket = services.use(uow).execute(created.ticket.ticket_code)

        assert ticket.status == "used"
        assert ticket.used_at == now
        assert uow.published_types() == ["TicketUsedEvent"]
        assert created.ticket.ticket_code not in str(uow.published[0].to_dict())

    def test_segundo_uso_falha(self, services, event):
        created = register(services, event.id, "user-a")
        services.use().execute(created.ticket.ticket_code)

        with pytest.raises(TicketWrongStatusError) as exc_info:
            services.use().execute(created.ticket.ticket_code)

        assert exc_info.value.current == "used"

    def test_evento_terminado(self, services, event):
        created = register(services, event.id, "user-a")
        after_end = lambda: event.end_time

        with pytest.raises(TicketEventEndedError):
            services.use(clock=after_end).execute(created.ticket.ticket_code)

    def test_uso_concorrente_tem_um_vencedor(self, services, event, ticket_repo, uow_factory):
        """Entre usos paralelos do mesmo código, exatamente um tem sucesso."""
        created = register(services, event.id, "user-a")
        code = created.ticket.ticket_code
        uows = [uow_factory() for _ in range(8)]

        results = run_concurrently(8, lambda i: services.use(uows[i]).execute(code))

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 7
        assert all(isinstance(e, TicketWrongStatusError) for e in failures)
        assert all(e.current == "used" for e in failures)
        assert ticket_repo.get_by_id(created.ticket.id).status == TicketStatus.USED
        published = [uow.published_types() for uow in uows]
        assert published.count(["TicketUsedEvent"]) == 1
        assert published.count([]) == 7


class TestExpireTicketsService:

    def test_expira_ingressos_de_eventos_terminados(
        self, services, event, event_store, make_event, ticket_repo, uow
    ):
        ended_soon = event
        later_event = make_event(
            id="later",
            start_time=event.start_time,
            end_time=event.end_time + timedelta(days=1),
        )
        event_store.add(later_event)
        a = register(services, ended_soon.id, "user-a")
        used = register(services, ended_soon.id, "user-b")
        services.use().execute(used.ticket.ticket_code)
        c = register(services, later_event.id, "user-c")

        after_end = lambda: ended_soon.end_time + timedelta(minutes=1)
        expired = services.expire(uow, clock=after_end).execute()

        assert expired == 1
        assert ticket_repo.get_by_id(a.ticket.id).status == TicketStatus.EXPIRED
        assert ticket_repo.get_by_id(a.ticket.id).expired_at == after_end()
        assert ticket_repo.get_by_id(used.ticket.id).status == TicketStatus.USED
        assert ticket_repo.get_by_id(c.ticket.id).status == TicketStatus.VALID
        assert uow.published_types() == ["TicketExpiredEvent"]

    def test_ingresso_expirado_reporta_status(self, services, event):
        created = register(services, event.id, "user-a")
        after_end = lambda: event.end_time + timedelta(minutes=1)
        services.expire(clock=after_end).execute()

        with pytest.raises(TicketWrongStatusError) as exc_info:
            services.verify(clock=after_end).execute(created.ticket.ticket_code)

        assert exc_info.value.current == "expired"

    def test_nada_a_expirar(self, services, event):
        register(services, event.id, "user-a")

        assert services.expire().execute() == 0


class TestConsultas:

    def test_obter_inscricao(self, services, event, registration_repo):
        created = register(services, event.id, "user-a")

        result = GetRegistrationService(registration_repo).execute(created.registration.id)

        assert result.to_dict()["status"] == "active"

        with pytest.raises(EntityNotFoundError):
            GetRegistrationService(registration_repo).execute("missing")

    def test_listar_inscricoes_do_evento(self, services, event, event_store, registration_repo):
        a = register(services, event.id, "user-a")
        register(services, event.id, "user-b")
        services.cancel().execute(a.registration.id)
        service = ListEventRegistrationsService(event_store, registration_repo)

        assert len(service.execute(event.id)) == 2
        active = service.execute(event.id, status="ACTIVE")
        assert [r.user_id for r in active] == ["user-b"]
        assert [r.user_id for r in service.execute(event.id, "cancelled")] == ["user-a"]

        with pytest.raises(ValidationError):
            service.execute(event.id, status="pending")
        with pytest.raises(EntityNotFoundError):
            service.execute("missing")

    def test_obter_ingresso(self, services, event, ticket_repo):
        created = register(services, event.id, "user-a")

        assert GetTicketService(ticket_repo).execute(created.ticket.id).ticket_code == (
            created.ticket.ticket_code
        )
        with pytest.raises(EntityNotFoundError):
            GetTicketService(ticket_repo).execute("missing")

    def test_listar_ingressos(self, services, event, ticket_repo):
        register(services, event.id, "user-a")
        register(services, event.id, "user-b")
        service = ListTicketsService(ticket_repo)

        assert service.execute(ListTicketsQueryDTO(user_id="user-a")).total == 1
        by_event = service.execute(ListTicketsQueryDTO(event_id=event.id))
        assert by_event.total == 2
        assert by_event.to_dict()["total"] == 2

    @pytest.mark.parametrize("query", [
        ListTicketsQueryDTO(),
        ListTicketsQueryDTO(user_id="u", event_id="e"),
    ])
    def test_listar_ingressos_exige_um_filtro(self, ticket_repo, query):
        with pytest.raises(ValidationError) as exc_info:
            ListTicketsService(ticket_repo).execute(query)

        assert exc_info.value.field == "query"