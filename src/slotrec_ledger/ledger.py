"""In-process ledger: fixed-length account slots, rent and atomic transactions.

A transaction runs its instructions against copies of the accounts it
names. The copies are written back only if every instruction succeeds.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence

from slotrec_core.codec import Writer
from slotrec_program.accounts import AccountInfo
from slotrec_program.errors import ProgramError

from .crypto import Keypair, verify_ed25519

logger = logging.getLogger(__name__)

SYSTEM_PROGRAM_ID = bytes(32)

# Rent: (overhead + len) * lamports/byte-year * exemption years
ACCOUNT_STORAGE_OVERHEAD = 128
LAMPORTS_PER_BYTE_YEAR = 3480
EXEMPTION_THRESHOLD_YEARS = 2
MAX_PERMITTED_DATA_LENGTH = 10 * 1024 * 1024  # 10 MiB

ProgramEntrypoint = Callable[[bytes, Sequence[AccountInfo], bytes, "InvokeContext"], None]

LEDGER_ERRORS = {
    "E_ACCOUNT_IN_USE": "Account already in use",
    "E_INSUFFICIENT_FUNDS": "Insufficient lamports",
    "E_INVALID_SYSTEM_PROGRAM": "System program account is not the system program",
    "E_MISSING_SIGNER": "Account must sign this operation",
    "E_SIGNATURE_INVALID": "Transaction signature invalid or missing",
    "E_READONLY_MODIFIED": "Instruction modified a read-only account",
    "E_DATA_TOO_LARGE": "Requested account size exceeds limit",
    "E_UNKNOWN_PROGRAM": "No program registered at this address",
    "E_ACCOUNT_NOT_FOUND": "Account not found",
}


class LedgerError(Exception):
    code = "E_LEDGER"

    def __init__(self, detail: str | None = None):
        self.detail = detail
        message = LEDGER_ERRORS.get(self.code, self.code)
        super().__init__(f"{message}: {detail}" if detail else message)

    def to_dict(self) -> dict:
        out = {"code": self.code, "message": LEDGER_ERRORS.get(self.code, self.code)}
        if self.detail:
            out["detail"] = self.detail
        return out


class AccountAlreadyInUse(LedgerError):
    code = "E_ACCOUNT_IN_USE"


class InsufficientFunds(LedgerError):
    code = "E_INSUFFICIENT_FUNDS"


class InvalidSystemProgram(LedgerError):
    code = "E_INVALID_SYSTEM_PROGRAM"


class MissingSigner(LedgerError):
    code = "E_MISSING_SIGNER"


class SignatureVerificationFailed(LedgerError):
    code = "E_SIGNATURE_INVALID"


class ReadonlyDataModified(LedgerError):
    code = "E_READONLY_MODIFIED"


class AccountDataTooLarge(LedgerError):
    code = "E_DATA_TOO_LARGE"


class UnknownProgram(LedgerError):
    code = "E_UNKNOWN_PROGRAM"


class AccountNotFound(LedgerError):
    code = "E_ACCOUNT_NOT_FOUND"


@dataclass
class Account:
    lamports: int
    owner: bytes = SYSTEM_PROGRAM_ID
    data: bytes = b""


@dataclass
class AccountMeta:
    pubkey: bytes
    is_signer: bool = False
    is_writable: bool = False


@dataclass
class TransactionInstruction:
    program_id: bytes
    keys: List[AccountMeta]
    data: bytes


@dataclass
class Transaction:
    fee_payer: bytes
    instructions: List[TransactionInstruction]
    signatures: Dict[bytes, bytes] = field(default_factory=dict)

    def message_bytes(self) -> bytes:
        """Deterministic message every signer signs."""
        w = Writer()
        w.fixed(self.fee_payer, 32, "fee_payer")
        w.length(len(self.instructions), "instructions")
        for ix in self.instructions:
            w.fixed(ix.program_id, 32, "program_id")
            w.length(len(ix.keys), "keys")
            for meta in ix.keys:
                w.fixed(meta.pubkey, 32, "pubkey")
                w.boolean(meta.is_signer, "is_signer")
                w.boolean(meta.is_writable, "is_writable")
            w.blob(ix.data, "data")
        return w.getvalue()

    def required_signers(self) -> List[bytes]:
        out = [self.fee_payer]
        for ix in self.instructions:
            for meta in ix.keys:
                if meta.is_signer and meta.pubkey not in out:
                    out.append(meta.pubkey)
        return out

    def sign(self, *signers: Keypair) -> "Transaction":
        msg = self.message_bytes()
        for kp in signers:
            self.signatures[kp.pubkey] = kp.sign(msg)
        return self


class InvokeContext:
    """Host services handed to a program for one transaction."""

    def __init__(self, ledger: "Ledger", logs: List[str]):
        self.ledger = ledger
        self.logs = logs

    def log(self, message: str) -> None:
        logger.debug("program log: %s", message)
        self.logs.append(f"Program log: {message}")

    def minimum_balance(self, data_len: int) -> int:
        return self.ledger.minimum_balance(data_len)

    def create_account(
        self,
        payer: AccountInfo,
        new_account: AccountInfo,
        system_program: AccountInfo,
        lamports: int,
        space: int,
        owner: bytes,
    ) -> None:
        self.logs.append(f"Program {SYSTEM_PROGRAM_ID.hex()} invoke")
        if system_program.key != SYSTEM_PROGRAM_ID:
            raise InvalidSystemProgram(system_program.key.hex())
        if not payer.is_signer:
            raise MissingSigner(f"payer {payer.key.hex()}")
        if not new_account.is_signer:
            raise MissingSigner(f"new account {new_account.key.hex()}")
        if not payer.is_writable or not new_account.is_writable:
            raise ReadonlyDataModified("create_account needs writable payer and new account")
        if new_account.lamports or new_account.data or new_account.owner != SYSTEM_PROGRAM_ID:
            raise AccountAlreadyInUse(new_account.key.hex())
        if space > MAX_PERMITTED_DATA_LENGTH:
            raise AccountDataTooLarge(f"{space} > {MAX_PERMITTED_DATA_LENGTH}")
        if payer.lamports < lamports:
            raise InsufficientFunds(f"payer has {payer.lamports}, needs {lamports}")

        payer.lamports -= lamports
        new_account.lamports += lamports
        new_account.data = bytearray(space)
        new_account.owner = owner
        self.logs.append(f"Program {SYSTEM_PROGRAM_ID.hex()} success")
        logger.debug("allocated %d bytes at %s for %d lamports", space, new_account.key.hex(), lamports)


class Ledger:
    def __init__(self):
        self.accounts: Dict[bytes, Account] = {}
        self.programs: Dict[bytes, ProgramEntrypoint] = {}

    def register_program(self, program_id: bytes, entrypoint: ProgramEntrypoint) -> None:
        self.programs[program_id] = entrypoint

    @staticmethod
    def minimum_balance(data_len: int) -> int:
        return (ACCOUNT_STORAGE_OVERHEAD + data_len) * LAMPORTS_PER_BYTE_YEAR * EXEMPTION_THRESHOLD_YEARS

    def get_account(self, pubkey: bytes) -> Account | None:
        return self.accounts.get(pubkey)

    def require_account(self, pubkey: bytes) -> Account:
        acct = self.accounts.get(pubkey)
        if acct is None:
            raise AccountNotFound(pubkey.hex())
        return acct

    def airdrop(self, pubkey: bytes, lamports: int) -> None:
        acct = self.accounts.setdefault(pubkey, Account(lamports=0))
        acct.lamports += lamports
        logger.info("airdrop %d lamports to %s", lamports, pubkey.hex())

    def _verify_signatures(self, tx: Transaction) -> None:
        msg = tx.message_bytes()
        for signer in tx.required_signers():
            sig = tx.signatures.get(signer)
            if sig is None or not verify_ed25519(signer, msg, sig):
                raise SignatureVerificationFailed(signer.hex())

    def _account_infos(self, working: Dict[bytes, AccountInfo], metas: Sequence[AccountMeta]) -> List[AccountInfo]:
        # An account listed more than once is a signer or writable if any of its metas says so.
        signers = {m.pubkey for m in metas if m.is_signer}
        writable = {m.pubkey for m in metas if m.is_writable}
        infos = []
        for meta in metas:
            info = working.get(meta.pubkey)
            if info is None:
                acct = self.accounts.get(meta.pubkey) or Account(lamports=0)
                info = AccountInfo(
                    key=meta.pubkey,
                    owner=acct.owner,
                    lamports=acct.lamports,
                    data=bytearray(acct.data),
                )
                working[meta.pubkey] = info
            info.is_signer = meta.pubkey in signers
            info.is_writable = meta.pubkey in writable
            infos.append(info)
        return infos

    def execute(self, tx: Transaction) -> dict:
        """Run ``tx`` atomically. Returns a PASS/FAIL result with program logs."""
        logs: List[str] = []
        working: Dict[bytes, AccountInfo] = {}
        try:
            self._verify_signatures(tx)
            for ix in tx.instructions:
                entrypoint = self.programs.get(ix.program_id)
                if entrypoint is None:
                    raise UnknownProgram(ix.program_id.hex())
                infos = self._account_infos(working, ix.keys)
                before = {
                    info.key: (info.lamports, info.owner, bytes(info.data))
                    for info in infos
                    if not info.is_writable
                }
                logs.append(f"Program {ix.program_id.hex()} invoke")
                entrypoint(ix.program_id, infos, ix.data, InvokeContext(self, logs))
                for info in infos:
                    if info.key in before and before[info.key] != (info.lamports, info.owner, bytes(info.data)):
                        raise ReadonlyDataModified(info.key.hex())
                logs.append(f"Program {ix.program_id.hex()} success")
        except (ProgramError, LedgerError) as e:
            logger.info("transaction rolled back: %s", e)
            logs.append(f"Program failed: {e}")
            return {"status": "FAIL", "error_count": 1, "errors": [e.to_dict()], "logs": logs}

        for key, info in working.items():
            # Empty system accounts are not kept.
            if info.lamports == 0 and not info.data and info.owner == SYSTEM_PROGRAM_ID:
                self.accounts.pop(key, None)
                continue
            self.accounts[key] = Account(lamports=info.lamports, owner=info.owner, data=bytes(info.data))
        logger.info("transaction committed: %d instruction(s), %d account(s)", len(tx.instructions), len(working))
        return {"status": "PASS", "error_count": 0, "errors": [], "logs": logs}
