"""
Migration inicial para o domínio de Inscrições e Ingressos.

Cria as tabelas:
- events: Eventos
- registrations: Inscrições (única por evento + usuário)
- tickets: Ingressos (código único, um válido por inscrição)
- domain_events: Log de auditoria
"""

from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    """Migration inicial."""

    initial = True

    dependencies = [
    ]

    operations = [
        # =================================================================
        # Tabela: events
        # =================================================================
        migrations.CreateModel(
            name='EventModel',
            fields=[
                ('id', models.CharField(
                    max_length=36,
                    primary_key=True,
                    serialize=False,
                    editable=False,
                    help_text='UUID único do evento'
                )),
                ('owner_id', models.CharField(
                    max_length=100,
                    null=True,
                    blank=True,
                    db_index=True,
                    help_text='Usuário dono do evento'
                )),
                ('capacity', models.PositiveIntegerField(
                    null=True,
                    blank=True,
                    help_text='Limite de inscrições ativas (vazio = ilimitado)'
                )),
                ('start_time', models.DateTimeField(help_text='Início do evento')),
                ('end_time', models.DateTimeField(
                    db_index=True,
                    help_text='Fim do evento'
                )),
                ('status', models.CharField(
                    max_length=20,
                    choices=[
                        ('draft', 'Rascunho'),
                        ('published', 'Publicado'),
                        ('cancelled', 'Cancelado'),
                    ],
                    default='draft',
                    db_index=True,
                )),
                ('is_public', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'db_table': 'events',
                'verbose_name': 'Evento',
                'verbose_name_plural': 'Eventos',
                'ordering': ['start_time'],
            },
        ),

        # =================================================================
        # Tabela: registrations
        # =================================================================
        migrations.CreateModel(
            name='RegistrationModel',
            fields=[
                ('id', models.CharField(
                    max_length=36,
                    primary_key=True,
                    serialize=False,
                    editable=False,
                    help_text='UUID único da inscrição'
                )),
                ('user_id', models.CharField(
                    max_length=100,
                    db_index=True,
                    help_text='Usuário inscrito'
                )),
                ('status', models.CharField(
                    max_length=20,
                    choices=[
                        ('active', 'Ativa'),
                        ('cancelled', 'Cancelada'),
                    ],
                    default='active',
                    db_index=True,
                )),
                ('created_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('cancelled_at', models.DateTimeField(null=True, blank=True)),
                ('reactivated_at', models.DateTimeField(null=True, blank=True)),
                ('event', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='registrations',
                    to='registrations.eventmodel',
                )),
            ],
            options={
                'db_table': 'registrations',
                'verbose_name': 'Inscrição',
                'verbose_name_plural': 'Inscrições',
                'ordering': ['created_at'],
                'indexes': [
                    models.Index(fields=['event', 'status'], name='idx_registration_event_status'),
                ],
                'constraints': [
                    models.UniqueConstraint(
                        fields=['event', 'user_id'],
                        name='unique_registration_per_event_user',
                    ),
                ],
            },
        ),

        # =================================================================
        # Tabela: tickets
        # =================================================================
        migrations.CreateModel(
            name='TicketModel',
            fields=[
                ('id', models.CharField(
                    max_length=36,
                    primary_key=True,
                    serialize=False,
                    editable=False,
                    help_text='UUID único do ingresso'
                )),
                ('user_id', models.CharField(max_length=100, db_index=True)),
                ('ticket_code', models.CharField(
                    max_length=64,
                    unique=True,
                    help_text='Código URL-safe apresentado na entrada'
                )),
                ('status', models.CharField(
                    max_length=20,
                    choices=[
                        ('valid', 'Válido'),
                        ('used', 'Usado'),
                        ('cancelled', 'Cancelado'),
                        ('expired', 'Expirado'),
                    ],
                    default='valid',
                    db_index=True,
                )),
                ('issued_at', models.DateTimeField(
                    default=django.utils.timezone.now,
                    db_index=True
                )),
                ('used_at', models.DateTimeField(null=True, blank=True)),
                ('cancelled_at', models.DateTimeField(null=True, blank=True)),
                ('expired_at', models.DateTimeField(null=True, blank=True)),
                ('registration', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='tickets',
                    to='registrations.registrationmodel',
                )),
                ('event', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='tickets',
                    to='registrations.eventmodel',
                )),
            ],
            options={
                'db_table': 'tickets',
                'verbose_name': 'Ingresso',
                'verbose_name_plural': 'Ingressos',
                'ordering': ['-issued_at'],
                'indexes': [
                    models.Index(fields=['event', 'status'], name='idx_ticket_event_status'),
                    models.Index(fields=['user_id', 'issued_at'], name='idx_ticket_user_issued'),
                ],
                'constraints': [
                    models.UniqueConstraint(
                        fields=['registration'],
                        condition=models.Q(status='valid'),
                        name='unique_valid_ticket_per_registration',
                    ),
                ],
            },
        ),

        # =================================================================
        # Tabela: domain_events (log de auditoria)
        # =================================================================
        migrations.CreateModel(
            name='DomainEventModel',
            fields=[
                ('event_id', models.CharField(
                    max_length=36,
                    primary_key=True,
                    serialize=False,
                    help_text='UUID único do evento'
                )),
                ('event_type', models.CharField(
                    max_length=100,
                    db_index=True,
                    help_text='Tipo do evento (ex: TicketUsedEvent)'
                )),
                ('aggregate_type', models.CharField(
                    max_length=100,
                    db_index=True,
                    help_text='Tipo do agregado (Registration ou Ticket)'
                )),
                ('aggregate_id', models.CharField(max_length=36, db_index=True)),
                ('event_data', models.JSONField(default=dict)),
                ('version', models.IntegerField(default=1)),
                ('sequence', models.BigIntegerField(
                    default=0,
                    help_text='Sequência do evento no agregado'
                )),
                ('occurred_at', models.DateTimeField()),
                ('recorded_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'domain_events',
                'verbose_name': 'Evento de Domínio',
                'verbose_name_plural': 'Eventos de Domínio',
                'ordering': ['recorded_at'],
                'indexes': [
                    models.Index(fields=['aggregate_id', 'sequence'], name='idx_event_aggregate_seq'),
                    models.Index(fields=['event_type', 'recorded_at'], name='idx_event_etype_recorded'),
                ],
            },
        ),
    ]
