from __future__ import annotations


class InvalidAmountError(ValueError):
    """Gross amount is not positive, not finite, or above the engine's MAX_GROSS."""

    def __init__(self, value: object, reason: str = "Debe ser un numero positivo.") -> None:
        super().__init__(f"Valor bruto invalido: '{value}'. {reason}")
        self.value = value


class QuoteNotFoundError(KeyError):
    """No quote with the given id exists in the local store."""

    def __init__(self, quote_id: str) -> None:
        super().__init__(quote_id)
        self.quote_id = quote_id

    def __str__(self) -> str:
        return f"Cotización no encontrada: {self.quote_id}"


class QuoteTransitionError(Exception):
    """A lifecycle validator rejected the requested action; the quote was not changed."""

    def __init__(self, quote_id: str, action: str, reason: str) -> None:
        super().__init__(reason)
        self.quote_id = quote_id
        self.action = action
        self.reason = reason
