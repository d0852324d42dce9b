"""
Relógio do domínio.

Toda decisão temporal do core (evento terminado, expiração de
ingresso, timestamps de transição) usa um callable `now` injetado
nos serviços. Em produção é `utcnow`; nos testes, um relógio fixo.
"""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Retorna o instante atual em UTC (timezone-aware)."""
    return datetime.now(timezone.utc)
