"""
Configuração do Django App para Inscrições e Ingressos.
"""

from django.apps import AppConfig


class RegistrationsConfig(AppConfig):
    """Configuração do app Registrations."""

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'src.adapters.django_app.registrations'
    label = 'registrations'
    verbose_name = 'Inscrições e Ingressos'

    def ready(self):
        """Registra as tasks Celery do domínio no autodiscover."""
        from src.adapters.django_app.events import handlers  # noqa: F401
