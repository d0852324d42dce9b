"""
Django Models para o domínio de Inscrições e Ingressos.

Estes models são ADAPTERS - implementam a persistência para as
entidades de domínio definidas em src/core/registrations/entities.py.

IMPORTANTE:
- Models NÃO contêm lógica de negócio
- Status é explícito; timestamps são opcionais e nunca definem o status
- Models são mapeados para/de Entities via Mappers

Tabelas:
- events: Eventos (lidos pelo Event Store)
- registrations: Inscrições, únicas por (evento, usuário)
- tickets: Ingressos, código único
- domain_events: Log de auditoria de eventos de domínio
"""

from django.db import models
from django.utils import timezone


class EventStatusChoices(models.TextChoices):
    """Espelha EventStatus do Core."""
    DRAFT = 'draft', 'Rascunho'
    PUBLISHED = 'published', 'Publicado'
    CANCELLED = 'cancelled', 'Cancelado'


class RegistrationStatusChoices(models.TextChoices):
    """Espelha RegistrationStatus do Core."""
    ACTIVE = 'active', 'Ativa'
    CANCELLED = 'cancelled', 'Cancelada'


class TicketStatusChoices(models.TextChoices):
    """Espelha TicketStatus do Core."""
    VALID = 'valid', 'Válido'
    USED = 'used', 'Usado'
    CANCELLED = 'cancelled', 'Cancelado'
    EXPIRED = 'expired', 'Expirado'


class EventModel(models.Model):
    """
    Evento ao qual usuários se inscrevem.

    A linha do evento também é o ponto de serialização das admissões:
    o repositório faz SELECT ... FOR UPDATE nela antes de contar vagas.
    """

    id = models.CharField(
        max_length=36,
        primary_key=True,
        editable=False,
        help_text="UUID único do evento"
    )

    owner_id = models.CharField(
        max_length=100,
        null=True,
        blank=True,
        db_index=True,
        help_text="Usuário dono do evento"
    )

    capacity = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text="Limite de inscrições ativas (vazio = ilimitado)"
    )

    start_time = models.DateTimeField(help_text="Início do evento")

    end_time = models.DateTimeField(
        db_index=True,
        help_text="Fim do evento"
    )

    status = models.CharField(
        max_length=20,
        choices=EventStatusChoices.choices,
        default=EventStatusChoices.DRAFT,
        db_index=True,
    )

    is_public = models.BooleanField(default=True)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'events'
        verbose_name = 'Evento'
        verbose_name_plural = 'Eventos'
        ordering = ['start_time']

    def __str__(self):
        return f"Evento {self.id[:8]} ({self.status})"


class RegistrationModel(models.Model):
    """
    Inscrição de um usuário em um evento.

    Nunca é removida: cancelar e reativar alteram a mesma linha.
    """

    id = models.CharField(
        max_length=36,
        primary_key=True,
        editable=False,
        help_text="UUID único da inscrição"
    )

    event = models.ForeignKey(
        EventModel,
        on_delete=models.PROTECT,
        related_name='registrations',
    )

    user_id = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Usuário inscrito"
    )

    status = models.CharField(
        max_length=20,
        choices=RegistrationStatusChoices.choices,
        default=RegistrationStatusChoices.ACTIVE,
        db_index=True,
    )

    created_at = models.DateTimeField(default=timezone.now)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    reactivated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'registrations'
        verbose_name = 'Inscrição'
        verbose_name_plural = 'Inscrições'
        ordering = ['created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['event', 'user_id'],
                name='unique_registration_per_event_user',
            ),
        ]
        indexes = [
            models.Index(fields=['event', 'status'], name='idx_registration_event_status'),
        ]

    def __str__(self):
        return f"Inscrição {self.id[:8]} ({self.status})"


class TicketModel(models.Model):
    """Ingresso emitido para uma inscrição."""

    id = models.CharField(
        max_length=36,
        primary_key=True,
        editable=False,
        help_text="UUID único do ingresso"
    )

    registration = models.ForeignKey(
        RegistrationModel,
        on_delete=models.PROTECT,
        related_name='tickets',
    )

    event = models.ForeignKey(
        EventModel,
        on_delete=models.PROTECT,
        related_name='tickets',
    )

    user_id = models.CharField(max_length=100, db_index=True)

    ticket_code = models.CharField(
        max_length=64,
        unique=True,
        help_text="Código URL-safe apresentado na entrada"
    )

    status = models.CharField(
        max_length=20,
        choices=TicketStatusChoices.choices,
        default=TicketStatusChoices.VALID,
        db_index=True,
    )

    issued_at = models.DateTimeField(default=timezone.now, db_index=True)
    used_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    expired_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'tickets'
        verbose_name = 'Ingresso'
        verbose_name_plural = 'Ingressos'
        ordering = ['-issued_at']
        constraints = [
            # No máximo um ingresso válido por inscrição
            models.UniqueConstraint(
                fields=['registration'],
                condition=models.Q(status='valid'),
                name='unique_valid_ticket_per_registration',
            ),
        ]
        indexes = [
            models.Index(fields=['event', 'status'], name='idx_ticket_event_status'),
            models.Index(fields=['user_id', 'issued_at'], name='idx_ticket_user_issued'),
        ]

    def __str__(self):
        return f"Ingresso {self.id[:8]} ({self.status})"


class DomainEventModel(models.Model):
    """
    Log de auditoria dos eventos de domínio.

    Gravado na mesma transação da operação que gerou o evento.
    """

    event_id = models.CharField(
        max_length=36,
        primary_key=True,
        help_text="UUID único do evento"
    )

    event_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Tipo do evento (ex: TicketUsedEvent)"
    )

    aggregate_type = models.CharField(
        max_length=100,
        db_index=True,
        help_text="Tipo do agregado (Registration ou Ticket)"
    )

    aggregate_id = models.CharField(max_length=36, db_index=True)

    event_data = models.JSONField(default=dict)

    version = models.IntegerField(default=1)

    sequence = models.BigIntegerField(
        default=0,
        help_text="Sequência do evento no agregado"
    )

    occurred_at = models.DateTimeField()

    recorded_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'domain_events'
        verbose_name = 'Evento de Domínio'
        verbose_name_plural = 'Eventos de Domínio'
        ordering = ['recorded_at']
        indexes = [
            models.Index(fields=['aggregate_id', 'sequence'], name='idx_event_aggregate_seq'),
            models.Index(fields=['event_type', 'recorded_at'], name='idx_event_etype_recorded'),
        ]

    def __str__(self):
        return f"{self.event_type} - {self.aggregate_id[:8]} @ {self.occurred_at}"
