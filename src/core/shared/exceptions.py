"""
Exceções de Domínio do motor de inscrições e ingressos.

Este módulo define exceções específicas do domínio que permitem
comunicar erros de forma clara e tipada entre as camadas.

Hierarquia:
    DomainException (base - fluxo de controle esperado)
    ├── ValidationError (validação de entrada)
    ├── EntityNotFoundError (evento/inscrição/ingresso não existe)
    └── BusinessRuleViolationError (regra de negócio violada)
        ├── EventNotAvailableError (evento não aceita inscrições)
        ├── AlreadyCancelledError (inscrição já cancelada)
        ├── TicketWrongStatusError (ingresso fora do status válido)
        └── TicketEventEndedError (evento do ingresso já terminou)

    StorageError (falha inesperada de persistência - NÃO é DomainException)

A separação entre DomainException e StorageError permite que a camada
externa escolha entre respostas 4xx e 5xx sem inspecionar mensagens.
"""

from datetime import datetime
from enum import Enum
from typing import Optional


class DomainException(Exception):
    """
    Exceção base para todos os erros de domínio.

    Todas as exceções específicas do domínio devem herdar desta classe.
    Isso permite capturar qualquer erro de domínio de forma genérica.

    Example:
        try:
            service.execute(input_dto)
        except DomainException as e:
            logger.info(f"Erro de domínio: {e}")
    """

    def __init__(self, message: str, code: str = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict:
        """Serializa exceção para dicionário (útil para APIs)."""
        return {
            "error": self.code,
            "message": self.message,
        }


class ValidationError(DomainException):
    """
    Erro de validação de dados de entrada.

    Example:
        if not ticket_code:
            raise ValidationError("Código do ingresso é obrigatório", field="ticket_code")
    """

    def __init__(self, message: str, field: str = None):
        self.field = field
        code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(message, code)

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        return result


class EntityNotFoundError(DomainException):
    """
    Entidade não encontrada no repositório.

    Lançada quando uma busca por ID (ou código de ingresso)
    não retorna resultado. Nunca é re-tentada pelo core.
    """

    def __init__(self, message: str, entity_type: str = None, entity_id: str = None):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(message, "ENTITY_NOT_FOUND")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.entity_type:
            result["entity_type"] = self.entity_type
        if self.entity_id:
            result["entity_id"] = self.entity_id
        return result


class BusinessRuleViolationError(DomainException):
    """
    Violação de regra de negócio.

    Lançada quando uma operação viola uma regra de negócio
    estabelecida no domínio.
    """

    def __init__(self, message: str, rule: str = None, code: str = None):
        self.rule = rule
        super().__init__(message, code or "BUSINESS_RULE_VIOLATION")

    def to_dict(self) -> dict:
        result = super().to_dict()
        if self.rule:
            result["rule"] = self.rule
        return result


class EventNotAvailableReason(Enum):
    """
    Motivos pelos quais um evento não aceita novas inscrições.

    O motivo faz parte do contrato (é exibido ao cliente),
    não é um detalhe incidental da mensagem.
    """

    NOT_PUBLISHED = "not_published"
    PRIVATE = "private"
    ENDED = "ended"
    FULL = "full"


class EventNotAvailableError(BusinessRuleViolationError):
    """
    Evento não disponível para inscrição.

    Attributes:
        event_id: ID do evento
        reason: Motivo (EventNotAvailableReason)
    """

    MESSAGES = {
        EventNotAvailableReason.NOT_PUBLISHED: "Evento não está publicado",
        EventNotAvailableReason.PRIVATE: "Evento privado",
        EventNotAvailableReason.ENDED: "Evento já terminou",
        EventNotAvailableReason.FULL: "Evento atingiu a capacidade máxima",
    }

    def __init__(self, event_id: str, reason: EventNotAvailableReason):
        self.event_id = event_id
        self.reason = reason
        super().__init__(
            self.MESSAGES[reason],
            rule=f"evento_{reason.value}",
            code="EVENT_NOT_AVAILABLE",
        )

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["event_id"] = self.event_id
        result["reason"] = self.reason.value
        return result


class AlreadyCancelledError(BusinessRuleViolationError):
    """Inscrição já está cancelada (reportado, nunca re-tentado)."""

    def __init__(self, registration_id: str):
        self.registration_id = registration_id
        super().__init__(
            f"Inscrição {registration_id} já está cancelada",
            rule="inscricao_ja_cancelada",
            code="ALREADY_CANCELLED",
        )

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["registration_id"] = self.registration_id
        return result


class TicketWrongStatusError(BusinessRuleViolationError):
    """
    Ingresso não está com status válido.

    Carrega o status atual para que o cliente possa exibir
    "ingresso usado/cancelado/expirado".

    Attributes:
        ticket_code: Código do ingresso
        current: Status atual (valor string do TicketStatus)
        used_at: Momento de uso, quando o status é "used"
    """

    def __init__(self, ticket_code: str, current: str, used_at: Optional[datetime] = None):
        self.ticket_code = ticket_code
        self.current = current
        self.used_at = used_at
        super().__init__(
            f"Ingresso está com status {current}",
            rule="ingresso_status_invalido",
            code="TICKET_WRONG_STATUS",
        )

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["current"] = self.current
        if self.used_at:
            result["used_at"] = self.used_at.isoformat()
        return result


class TicketEventEndedError(BusinessRuleViolationError):
    """Evento do ingresso já terminou (expiração avaliada na verificação)."""

    def __init__(self, ticket_code: str, end_time: datetime):
        self.ticket_code = ticket_code
        self.end_time = end_time
        super().__init__(
            "Evento já terminou",
            rule="evento_do_ingresso_terminou",
            code="TICKET_EVENT_ENDED",
        )

    def to_dict(self) -> dict:
        result = super().to_dict()
        result["end_time"] = self.end_time.isoformat()
        return result


class StorageError(Exception):
    """
    Falha na camada de persistência.

    Conectividade, violação de constraint não classificada, etc.
    Propaga até o chamador sem retry automático: re-executar uma
    escrita parcialmente aplicada pode duplicar efeitos.

    A exceção original do driver fica disponível em __cause__.
    """

    code = "STORAGE_FAILURE"

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": str(self),
        }
