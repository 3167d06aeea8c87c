"""Credit Ledger: atomic debit-and-increment against one account."""

from services.metering.credit_ledger.service import CreditLedger, build_credit_ledger

__all__ = ["CreditLedger", "build_credit_ledger"]
