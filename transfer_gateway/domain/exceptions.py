"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NotFoundError(DomainException):
    """Entity with the given id does not exist"""

    pass


class SenderUnavailableError(DomainException):
    """Source account of a transfer cannot be resolved"""

    pass


class InsufficientBalanceError(DomainException):
    """Account balance does not cover the requested amount"""

    def __init__(self, account_id: int, amount_cents: int):
        super().__init__(
            f"Account {account_id} balance is insufficient to transfer {amount_cents} cents"
        )
        self.account_id = account_id
        self.amount_cents = amount_cents


class DuplicateDefinitionError(DomainException):
    """This exact recurring transfer is already declared for the owner"""

    pass


class InvalidTransferError(DomainException):
    """Transfer request is malformed (non-positive amount, self transfer)"""

    pass
