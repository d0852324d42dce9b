"""
Configurações globais do Pytest para o motor de Inscrições e Ingressos.

Este arquivo é carregado automaticamente pelo pytest e:
- Configura o Django (SQLite em memória; PostgreSQL com --run-integration)
- Fornece fixtures compartilhadas (relógio fixo, eventos de exemplo)
"""

from datetime import datetime, timedelta, timezone
import os

import pytest


FIXED_NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def pytest_addoption(parser):
    """Adiciona opções de linha de comando."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="run integration tests (requires DATABASE_URL pointing to PostgreSQL)",
    )


def pytest_configure(config):
    """Configura Django antes da coleta dos testes."""
    import django
    from django.conf import settings

    from src.adapters.django_app.shared.database import DatabaseConfig

    if config.getoption("--run-integration") and os.getenv("DATABASE_URL"):
        database = DatabaseConfig.from_url(os.environ["DATABASE_URL"]).to_django_config()
    else:
        database = DatabaseConfig(engine="sqlite", name=":memory:").to_django_config()

    if not settings.configured:
        settings.configure(
            DEBUG=True,
            SECRET_KEY="tests-only",
            DATABASES={"default": database},
            INSTALLED_APPS=[
                "django.contrib.contenttypes",
                "django.contrib.auth",
                "src.adapters.django_app.registrations",
            ],
            DEFAULT_AUTO_FIELD="django.db.models.BigAutoField",
            USE_TZ=True,
            TIME_ZONE="America/Sao_Paulo",
            EVENT_PUBLISHER_MODE="memory",
            TICKET_CODE_BYTES=24,
            TICKET_CODE_MAX_ATTEMPTS=5,
        )
        django.setup()


def pytest_collection_modifyitems(config, items):
    """Pula testes de integração fora do modo de integração."""
    if config.getoption("--run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="Integration tests require --run-integration")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture
def now():
    """Instante fixo usado como relógio dos services."""
    return FIXED_NOW


@pytest.fixture
def clock(now):
    return lambda: now


@pytest.fixture(autouse=True)
def reset_global_container():
    """Garante que cada teste inicia com container global limpo."""
    yield
    from src.config.container import reset_container
    reset_container()


@pytest.fixture
def make_event(now):
    """
    Factory de EventInfo publicado, público e em andamento.

    Example:
        event = make_event(capacity=1)
    """
    from src.core.registrations.entities import EventInfo

    counter = {"n": 0}

    def _make(**kwargs):
        counter["n"] += 1
        defaults = {
            "id": f"event-{counter['n']}",
            "start_time": now - timedelta(hours=1),
            "end_time": now + timedelta(hours=2),
            "capacity": 10,
        }
        defaults.update(kwargs)
        return EventInfo(**defaults)

    return _make
