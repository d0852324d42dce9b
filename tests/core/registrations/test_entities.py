"""
Testes Unitários para Entidades do Domínio de Inscrições e Ingressos.

Coverage:
- EventInfo: validações e janela de tempo
- RegistrationEntity: criação, cancelamento, reativação
- TicketEntity: emissão e máquina de estados valid → used/cancelled/expired
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.core.registrations.entities import (
    EventInfo,
    EventStatus,
    RegistrationEntity,
    RegistrationStatus,
    TicketEntity,
    TicketStatus,
)
from src.core.shared.exceptions import (
    AlreadyCancelledError,
    BusinessRuleViolationError,
    TicketWrongStatusError,
    ValidationError,
)


NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def registration():
    return RegistrationEntity.create(event_id="event-1", user_id="user-a", now=NOW)


@pytest.fixture
def ticket(registration):
    return TicketEntity.issue(registration, "code-abc", now=NOW)


class TestEventInfo:

    def test_evento_valido(self):
        event = EventInfo(
            id="e1",
            start_time=NOW,
            end_time=NOW + timedelta(hours=1),
            capacity=5,
        )

        assert event.status == EventStatus.PUBLISHED
        assert event.is_public is True
        assert event.is_unlimited is False

    def test_fim_antes_do_inicio_erro(self):
        """Deve rejeitar evento que termina antes de começar."""
        with pytest.raises(ValidationError) as exc_info:
            EventInfo(id="e1", start_time=NOW, end_time=NOW)

        assert exc_info.value.field == "end_time"

    def test_capacidade_negativa_erro(self):
        with pytest.raises(ValidationError) as exc_info:
            EventInfo(
                id="e1",
                start_time=NOW,
                end_time=NOW + timedelta(hours=1),
                capacity=-1,
            )

        assert exc_info.value.field == "capacity"

    def test_capacidade_none_e_ilimitado(self):
        event = EventInfo(id="e1", start_time=NOW, end_time=NOW + timedelta(hours=1))
        assert event.is_unlimited is True

    def test_has_ended_inclui_o_instante_final(self):
        """Evento termina exatamente em end_time (now >= end_time)."""
        end = NOW + timedelta(hours=1)
        event = EventInfo(id="e1", start_time=NOW, end_time=end)

        assert event.has_ended(end - timedelta(seconds=1)) is False
        assert event.has_ended(end) is True

    def test_status_from_string(self):
        assert EventStatus.from_string("published") == EventStatus.PUBLISHED
        assert EventStatus.from_string("DRAFT") == EventStatus.DRAFT

        with pytest.raises(ValueError):
            EventStatus.from_string("archived")


class TestRegistrationEntity:

    def test_criar_inscricao_ativa(self, registration):
        assert len(registration.id) == 36  # UUID
        assert registration.status == RegistrationStatus.ACTIVE
        assert registration.is_active is True
        assert registration.created_at == NOW
        assert registration.cancelled_at is None

    @pytest.mark.parametrize("event_id,user_id,field", [
        ("", "user-a", "event_id"),
        ("event-1", "", "user_id"),
    ])
    def test_criar_sem_identificadores_erro(self, event_id, user_id, field):
        with pytest.raises(ValidationError) as exc_info:
            RegistrationEntity.create(event_id=event_id, user_id=user_id)

        assert exc_info.value.field == field

    def test_cancelar(self, registration):
        """Deve cancelar e carimbar cancelled_at."""
        later = NOW + timedelta(minutes=5)
        registration.cancel(later)

        assert registration.status == RegistrationStatus.CANCELLED
        assert registration.cancelled_at == later

    def test_cancelar_duas_vezes_erro(self, registration):
        registration.cancel(NOW)

        with pytest.raises(AlreadyCancelledError) as exc_info:
            registration.cancel(NOW)

        assert exc_info.value.registration_id == registration.id

    def test_reativar_limpa_cancelamento(self, registration):
        """Deve reativar mantendo a identidade e limpando cancelled_at."""
        original_id = registration.id
        registration.cancel(NOW)
        registration.reactivate(NOW + timedelta(hours=1))

        assert registration.id == original_id
        assert registration.is_active is True
        assert registration.cancelled_at is None
        assert registration.reactivated_at == NOW + timedelta(hours=1)

    def test_reativar_inscricao_ativa_erro(self, registration):
        with pytest.raises(BusinessRuleViolationError) as exc_info:
            registration.reactivate(NOW)

        assert exc_info.value.rule == "apenas_cancelada_pode_reativar"

    def test_igualdade_por_id(self, registration):
        from dataclasses import replace

        copy = replace(registration, status=RegistrationStatus.CANCELLED)
        assert copy == registration
        assert len({copy, registration}) == 1


class TestTicketEntityEmissao:

    def test_emitir_para_inscricao_ativa(self, registration, ticket):
        assert ticket.status == TicketStatus.VALID
        assert ticket.registration_id == registration.id
        assert ticket.event_id == "event-1"
        assert ticket.user_id == "user-a"
        assert ticket.ticket_code == "code-abc"
        assert ticket.issued_at == NOW

    def test_emitir_para_inscricao_cancelada_erro(self, registration):
        """Ingresso só pode ser emitido para inscrição ativa."""
        registration.cancel(NOW)

        with pytest.raises(BusinessRuleViolationError) as exc_info:
            TicketEntity.issue(registration, "code-abc", now=NOW)

        assert exc_info.value.rule == "inscricao_inativa"

    def test_emitir_sem_codigo_erro(self, registration):
        with pytest.raises(ValidationError):
            TicketEntity.issue(registration, "", now=NOW)

    def test_repr_nao_expoe_codigo(self, ticket):
        assert "code-abc" not in repr(ticket)


class TestTicketEntityTransicoes:

    @pytest.mark.parametrize("action,status,stamp", [
        ("use", TicketStatus.USED, "used_at"),
        ("cancel", TicketStatus.CANCELLED, "cancelled_at"),
        ("expire", TicketStatus.EXPIRED, "expired_at"),
    ])
    def test_transicao_a_partir_de_valid(self, ticket, action, status, stamp):
        """Deve ir para o estado terminal carimbando o timestamp próprio."""
        later = NOW + timedelta(minutes=30)
        getattr(ticket, action)(later)

        assert ticket.status == status
        assert getattr(ticket, stamp) == later
        assert ticket.is_valid is False

    @pytest.mark.parametrize("first", ["use", "cancel", "expire"])
    @pytest.mark.parametrize("second", ["use", "cancel", "expire"])
    def test_estados_terminais_nao_transicionam(self, ticket, first, second):
        getattr(ticket, first)(NOW)
        status_before = ticket.status

        with pytest.raises(TicketWrongStatusError) as exc_info:
            getattr(ticket, second)(NOW)

        assert exc_info.value.current == status_before.value
        assert ticket.status == status_before

    def test_erro_de_status_usado_informa_used_at(self, ticket):
        used_at = NOW + timedelta(minutes=1)
        ticket.use(used_at)

        with pytest.raises(TicketWrongStatusError) as exc_info:
            ticket.ensure_valid()

        assert exc_info.value.current == "used"
        assert exc_info.value.used_at == used_at
        assert exc_info.value.to_dict()["used_at"] == used_at.isoformat()

    def test_tabela_de_transicoes(self):
        assert TicketStatus.VALID.can_transition_to(TicketStatus.USED)
        assert not TicketStatus.VALID.can_transition_to(TicketStatus.VALID)
        assert not TicketStatus.USED.can_transition_to(TicketStatus.CANCELLED)
        assert TicketStatus.VALID.timestamp_field is None
