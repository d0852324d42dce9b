"""
Configuração do Celery para processamento assíncrono.

O Celery é usado para:
- Processar Domain Events publicados após commit
- Varredura periódica de expiração de ingressos (beat)

Uso:
    # Iniciar worker
    celery -A src.config.celery worker -l INFO -Q default,events

    # Iniciar beat (tarefas agendadas)
    celery -A src.config.celery beat -l INFO
"""

import os
from celery import Celery
from kombu import Queue, Exchange

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'src.config.settings')

app = Celery('registrations')

# Broker, backend e serialização vêm do Django settings (prefixo CELERY_)
app.config_from_object('django.conf:settings', namespace='CELERY')

app.conf.task_default_queue = 'default'

app.conf.task_queues = (
    Queue('default', Exchange('default'), routing_key='default'),
    Queue('events', Exchange('events'), routing_key='events.#'),
)

app.conf.task_routes = {
    'src.adapters.django_app.events.handlers.dispatch_domain_event': {'queue': 'events'},
    'src.adapters.django_app.events.handlers.handle_*': {'queue': 'events'},
}

app.autodiscover_tasks(['src.adapters.django_app.events'], related_name='handlers')

app.conf.beat_schedule = {
    'expire-ended-event-tickets': {
        'task': 'src.adapters.django_app.events.handlers.expire_ended_event_tickets',
        'schedule': float(os.environ.get('TICKET_EXPIRY_SWEEP_SECONDS', 900)),
    },
}
