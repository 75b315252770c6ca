"""Posting services."""

from ledger_poster.services.chart import ChartOfAccounts, seed_default_chart
from ledger_poster.services.journal_service import JournalService
from ledger_poster.services.ledger_resolver import LedgerResolver
from ledger_poster.services.document_sequencer import DocumentSequencer
from ledger_poster.services.commission import CommissionService
from ledger_poster.services.poster import TransactionalPoster

__all__ = [
    "ChartOfAccounts",
    "seed_default_chart",
    "JournalService",
    "LedgerResolver",
    "DocumentSequencer",
    "CommissionService",
    "TransactionalPoster",
]
