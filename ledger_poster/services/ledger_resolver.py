"""
Party ledger resolution.

Every customer and supplier gets its own ledger. The resolver
finds it, or creates it the first time the party is posted to,
and remembers the id on the party record.

Lookup order, first match wins:
1. the ledger id already linked on the party
2. an ACTIVE ledger with exactly the party's display name
3. a new ledger with defaults for the party kind

All three steps run in the caller's transaction. Two postings
for the same new customer race on step 3; the unique index on
ACTIVE ledger names makes the loser fail, and on its retry step 2
finds the winner's ledger.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_poster.models.enums import (
    DrCr,
    LedgerNature,
    LedgerStatus,
    NormalBalance,
    PartyType,
)
from ledger_poster.models.ledger import Ledger
from ledger_poster.models.party import Party
from ledger_poster.services.exceptions import ResolutionAmbiguityError

logger = logging.getLogger(__name__)

# Generic advances ledger that older party records were linked to.
# A party pointing here has no ledger of its own yet.
SENTINEL_LEDGER_ID = "customer-advances"


@dataclass(frozen=True)
class PartyLedgerDefaults:
    group_id: str
    nature: LedgerNature
    type: str
    normal_balance: NormalBalance
    opening_side: DrCr


PARTY_LEDGER_DEFAULTS = {
    # Trade receivables
    PartyType.CUSTOMER: PartyLedgerDefaults(
        group_id="1.1.2",
        nature=LedgerNature.ASSET,
        type="RECEIVABLE",
        normal_balance=NormalBalance.DEBIT,
        opening_side=DrCr.DR,
    ),
    # Trade payables
    PartyType.SUPPLIER: PartyLedgerDefaults(
        group_id="2.1.1",
        nature=LedgerNature.LIABILITY,
        type="PAYABLE",
        normal_balance=NormalBalance.CREDIT,
        opening_side=DrCr.CR,
    ),
}


class LedgerResolver:

    def __init__(self, db: Session):
        self.db = db

    def resolve_or_create(
        self,
        party_id: str,
        display_name: str,
        email: str = "",
        party_kind: PartyType = PartyType.CUSTOMER,
    ) -> str:
        """
        Return the ledger id for a party, creating the ledger if needed.

        Raises ResolutionAmbiguityError when the name only matches
        inactive ledgers: reusing one would post to a retired
        account and creating another would duplicate it.
        """
        if not display_name or not display_name.strip():
            raise ValueError(f"Party {party_id} has no name to resolve a ledger by")

        party = self.db.get(Party, party_id)

        # 1. Linked ledger
        if (
            party is not None
            and party.coa_ledger_id
            and party.coa_ledger_id != SENTINEL_LEDGER_ID
        ):
            if self.db.get(Ledger, party.coa_ledger_id) is not None:
                return party.coa_ledger_id
            logger.warning(
                "Party %s links to missing ledger %s",
                party_id, party.coa_ledger_id,
            )

        # 2. Exact name match
        matches = self.db.execute(
            select(Ledger).where(Ledger.name == display_name)
        ).scalars().all()
        active = [ledger for ledger in matches if ledger.is_active]

        if len(active) > 1:
            raise ResolutionAmbiguityError(
                f"{len(active)} active ledgers are named '{display_name}'"
            )
        if active:
            ledger_id = active[0].id
            self._link_existing(party, party_id, display_name, email, party_kind, ledger_id)
            logger.info("Linked party %s to ledger %s by name", party_id, ledger_id)
            return ledger_id
        if matches:
            raise ResolutionAmbiguityError(
                f"Ledger name '{display_name}' is only used by inactive "
                f"ledgers {[ledger.id for ledger in matches]}"
            )

        # 3. New ledger
        ledger = self._create_ledger(display_name, party_kind)
        self._link_new(party, party_id, display_name, email, party_kind, ledger.id)
        logger.info(
            "Created %s ledger %s for party %s",
            party_kind.value.lower(), ledger.id, party_id,
        )
        return ledger.id

    def _create_ledger(self, name: str, party_kind: PartyType) -> Ledger:
        defaults = PARTY_LEDGER_DEFAULTS[party_kind]
        ledger = Ledger(
            name=name,
            group_id=defaults.group_id,
            nature=defaults.nature,
            type=defaults.type,
            is_posting=True,
            normal_balance=defaults.normal_balance,
            allow_manual_journal=True,
            opening_balance_amount=Decimal("0"),
            opening_balance_dr_cr=defaults.opening_side,
            opening_balance_as_of=datetime.utcnow(),
            status=LedgerStatus.ACTIVE,
        )
        self.db.add(ledger)
        # Flush now so a concurrent duplicate fails here, not at commit.
        self.db.flush()
        return ledger

    def _link_existing(self, party, party_id, name, email, party_kind, ledger_id):
        # Merge: only the link changes on a known party
        if party is None:
            self.db.add(Party(
                id=party_id,
                name=name,
                email=email or "",
                type=party_kind.value,
                coa_ledger_id=ledger_id,
            ))
        else:
            party.coa_ledger_id = ledger_id
        self.db.flush()

    def _link_new(self, party, party_id, name, email, party_kind, ledger_id):
        if party is None:
            party = Party(id=party_id)
            self.db.add(party)
        party.coa_ledger_id = ledger_id
        party.name = name
        party.type = party_kind.value
        party.email = email or party.email or ""
        self.db.flush()
