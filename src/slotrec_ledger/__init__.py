"""Slot record reference host - keys, ledger, persistence and CLI."""
from .crypto import Keypair, verify_ed25519
from .ledger import Account, AccountMeta, Ledger, LedgerError, Transaction, TransactionInstruction
from .store import load_ledger, save_ledger

__all__ = [
    "Account",
    "AccountMeta",
    "Keypair",
    "Ledger",
    "LedgerError",
    "Transaction",
    "TransactionInstruction",
    "load_ledger",
    "save_ledger",
    "verify_ed25519",
]
