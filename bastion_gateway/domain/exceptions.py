"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """An operation's precondition does not hold; no state was changed"""

    error = "invalid_parameters"


class InsufficientFundsError(ValidationError):
    """Amount, collateral, stake or fee exceeds what the wallet can cover"""

    error = "insufficient_funds"


class InvalidParametersError(ValidationError):
    """Non-positive amounts, under-collateralization, unknown ids or a full circle"""

    error = "invalid_parameters"


class OperationPendingError(DomainException):
    """Another request for the same operation slot is still in flight"""

    def __init__(self, slot: str):
        super().__init__(f"An operation in slot '{slot}' is already pending")
        self.slot = slot


class CatalogUnavailableError(DomainException):
    """Catalog service returned an error or is unavailable"""

    pass
