"""Errors raised by the rentals domain and its use cases.

Everything derives from DomainException; the CLI turns any of them into
a one-line error for the operator.
"""


class DomainException(Exception):
    """Base class for all rentals errors."""


class ValidationError(DomainException):
    """Input or state that an order, draft or return cannot accept."""


class EntityNotFoundError(DomainException):
    """An order or profile id that the store does not know."""


class PersistenceError(DomainException):
    """A repository call failed or did not answer in time."""


class PersistenceTimeoutError(PersistenceError):
    """A repository call did not answer in time.

    The call may still complete after the caller gave up on it.
    """


class ReturnBatchError(PersistenceError):
    """The repository rejected the first batch of a return.

    The store reported the failure, so nothing from this return was
    saved; the operator may repeat the whole return.
    """


class ReturnOutcomeUnknownError(PersistenceError):
    """The first batch timed out and the order shows no trace of it.

    It may still land later; the operator has to look at the order
    before repeating anything.
    """


class ConfigurationError(DomainException):
    """An environment setting could not be parsed."""
