"""
Accounting errors.

Every error raised while deriving a posting is an
AccountingError. The poster treats them as fatal to the current
attempt: the transaction is rolled back, the error is logged and
the source document stays unposted for a later retry.
"""


class AccountingError(Exception):
    """Base exception for all posting failures."""


class MissingLedgerError(AccountingError):
    """A required named ledger does not exist or is not active."""

    def __init__(self, ledger_name: str):
        self.ledger_name = ledger_name
        super().__init__(f"Required ledger '{ledger_name}' not found")


class SequenceRaceError(AccountingError):
    """Two allocations collided on the same document number counter."""


class ResolutionAmbiguityError(AccountingError):
    """Creating a party ledger would collide with an existing entry."""


class PartialTaxDataError(AccountingError):
    """A GST component is non-zero but its ledger is missing."""

    def __init__(self, component: str, amount, ledger_name: str):
        self.component = component
        self.amount = amount
        self.ledger_name = ledger_name
        super().__init__(
            f"{component} of {amount} has no ledger '{ledger_name}'"
        )


class UnbalancedVoucherError(AccountingError):
    """A voucher's debits and credits do not net to zero."""


class SourceDocumentNotFoundError(AccountingError):
    """The triggering document is not in the store."""
