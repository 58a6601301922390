"""Client side: instruction builders, the sample record and the demo flow."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from slotrec_core.account import unwrap_checked
from slotrec_core.schema import Amount, NestedStruct, Record, SimpleEnum
from slotrec_program.instruction import Initialize, Update, Validate, encode_instruction
from slotrec_program.processor import process_instruction

from .crypto import Keypair
from .ledger import (
    SYSTEM_PROGRAM_ID,
    AccountMeta,
    Ledger,
    Transaction,
    TransactionInstruction,
)
from .store import load_ledger


def open_ledger(path: Path | None, program_id: bytes) -> Ledger:
    ledger = load_ledger(path) if path is not None else Ledger()
    ledger.register_program(program_id, process_instruction)
    return ledger


def build_state(authority: bytes) -> Record:
    """Sample record with every field populated."""
    return Record(
        primitive_u8=42,
        primitive_u16=500,
        primitive_u32=99_999,
        primitive_u64=123456789,
        primitive_i64=-123456,
        primitive_bool=True,
        fixed_pubkey_bytes=authority,
        text="hello borsh",
        data=bytes([1, 2, 3, 4]),
        keys=[authority],
        simple_enum=SimpleEnum.SECOND,
        data_enum=Amount(42),
        maybe_amount=999,
        nested=NestedStruct(count=7, note="nested"),
    )


def initialize_instruction(program_id: bytes, payer: bytes, state: bytes, record: Record) -> TransactionInstruction:
    return TransactionInstruction(
        program_id=program_id,
        keys=[
            AccountMeta(payer, is_signer=True, is_writable=True),
            AccountMeta(state, is_signer=True, is_writable=True),
            AccountMeta(SYSTEM_PROGRAM_ID),
        ],
        data=encode_instruction(Initialize(record)),
    )


def update_instruction(
    program_id: bytes,
    state: bytes,
    new_u64: int,
    new_bool: bool,
    new_text: str,
    new_option: Optional[int],
) -> TransactionInstruction:
    return TransactionInstruction(
        program_id=program_id,
        keys=[AccountMeta(state, is_writable=True)],
        data=encode_instruction(Update(new_u64, new_bool, new_text, new_option)),
    )


def validate_instruction(program_id: bytes, state: bytes, expected_u8: int) -> TransactionInstruction:
    return TransactionInstruction(
        program_id=program_id,
        keys=[AccountMeta(state)],
        data=encode_instruction(Validate(expected_u8)),
    )


def send(ledger: Ledger, ix: TransactionInstruction, payer: Keypair, *signers: Keypair) -> dict:
    tx = Transaction(fee_payer=payer.pubkey, instructions=[ix])
    tx.sign(payer, *signers)
    return ledger.execute(tx)


def fetch_record(ledger: Ledger, state: bytes) -> Record:
    return unwrap_checked(ledger.require_account(state).data)


def run_demo(ledger: Ledger, program_id: bytes, payer: Keypair, state: Keypair) -> dict:
    """Initialize, update and validate one slot, then read it back.

    Stops at the first failing step; ``steps`` holds every result so far.
    """
    steps = []
    plan = [
        ("initialize", initialize_instruction(program_id, payer.pubkey, state.pubkey, build_state(payer.pubkey)), (state,)),
        ("update", update_instruction(program_id, state.pubkey, 555, False, "hello borsh", 777), ()),
        ("validate", validate_instruction(program_id, state.pubkey, 42), ()),
    ]
    for name, ix, extra_signers in plan:
        result = send(ledger, ix, payer, *extra_signers)
        steps.append({"step": name, **result})
        if result["status"] != "PASS":
            return {"status": "FAIL", "steps": steps}

    record = fetch_record(ledger, state.pubkey)
    return {
        "status": "PASS",
        "state": state.pubkey.hex(),
        "primitive_u64": record.primitive_u64,
        "steps": steps,
    }
