"""
Geração de códigos de ingresso.

O código é o que o participante apresenta na portaria, então precisa ser
imprevisível (gerado por CSPRNG), seguro para URL e único no repositório.
"""

import logging
import secrets
from typing import Callable

from src.core.shared.exceptions import StorageError

logger = logging.getLogger(__name__)

DEFAULT_CODE_BYTES = 24
DEFAULT_MAX_ATTEMPTS = 5


def generate_ticket_code(nbytes: int = DEFAULT_CODE_BYTES) -> str:
    """Gera código URL-safe com `nbytes` de entropia."""
    return secrets.token_urlsafe(nbytes)


class TicketCodeGenerator:
    """
    Gera códigos únicos com número limitado de tentativas.

    Colisões com 24 bytes de entropia são improváveis, mas a unicidade
    é garantida consultando o repositório antes de aceitar o código.
    A constraint única no banco continua sendo a proteção final.

    Example:
        generator = TicketCodeGenerator()
        code = generator.generate_unique(ticket_repo.code_exists)
    """

    def __init__(
        self,
        nbytes: int = DEFAULT_CODE_BYTES,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        token_factory: Callable[[int], str] = generate_ticket_code,
    ):
        if nbytes < 16:
            raise ValueError("Código de ingresso exige pelo menos 16 bytes de entropia")
        if max_attempts < 1:
            raise ValueError("max_attempts deve ser positivo")
        self.nbytes = nbytes
        self.max_attempts = max_attempts
        self._token_factory = token_factory

    def generate_unique(self, exists: Callable[[str], bool]) -> str:
        """
        Retorna um código ainda não usado.

        Raises:
            StorageError: Se todas as tentativas colidirem
        """
        for attempt in range(1, self.max_attempts + 1):
            code = self._token_factory(self.nbytes)
            if not exists(code):
                return code
            logger.warning("Colisão de código de ingresso (tentativa %d)", attempt)

        raise StorageError(
            f"Não foi possível gerar código único após {self.max_attempts} tentativas"
        )
