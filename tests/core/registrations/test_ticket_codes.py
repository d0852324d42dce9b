"""Testes para geração de códigos de ingresso."""

import re

import pytest

from src.core.registrations.ticket_codes import (
    DEFAULT_CODE_BYTES,
    TicketCodeGenerator,
    generate_ticket_code,
)
from src.core.shared.exceptions import StorageError


URL_SAFE = re.compile(r"^[A-Za-z0-9_-]+$")


class TestGenerateTicketCode:

    def test_codigo_url_safe(self):
        code = generate_ticket_code()

        assert URL_SAFE.match(code)
        # token_urlsafe: ~1.3 caracteres por byte
        assert len(code) >= DEFAULT_CODE_BYTES

    def test_codigos_distintos(self):
        codes = {generate_ticket_code() for _ in range(200)}
        assert len(codes) == 200


class TestTicketCodeGenerator:

    def test_gera_codigo_inexistente(self):
        generator = TicketCodeGenerator()
        code = generator.generate_unique(lambda c: False)

        assert URL_SAFE.match(code)

    def test_regenera_em_colisao(self):
        """Deve descartar códigos já existentes e tentar de novo."""
        tokens = iter(["taken-1", "taken-2", "fresh"])
        generator = TicketCodeGenerator(token_factory=lambda n: next(tokens))

        code = generator.generate_unique(lambda c: c.startswith("taken"))

        assert code == "fresh"

    def test_esgota_tentativas(self):
        generator = TicketCodeGenerator(max_attempts=3, token_factory=lambda n: "same")

        with pytest.raises(StorageError):
            generator.generate_unique(lambda c: True)

    def test_repassa_bytes_configurados(self):
        seen = []

        def factory(nbytes):
            seen.append(nbytes)
            return "x" * nbytes

        TicketCodeGenerator(nbytes=32, token_factory=factory).generate_unique(lambda c: False)

        assert seen == [32]

    @pytest.mark.parametrize("kwargs", [{"nbytes": 8}, {"max_attempts": 0}])
    def test_parametros_invalidos(self, kwargs):
        with pytest.raises(ValueError):
            TicketCodeGenerator(**kwargs)
