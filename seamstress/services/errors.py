from __future__ import annotations


class EngineError(ValueError):
    """Base for order engine failures; routers translate these into responses."""


class ParseError(EngineError):
    """A date or time value could not be read."""


class ReconciliationError(EngineError):
    """The payment ledger breaks its own invariants, pointing at an upstream data bug."""


class InvalidTransition(EngineError):
    """An order state-machine operation was attempted from a state that does not allow it."""
