"""Create / Update / Validate over one fixed-length ledger slot.

Every handler runs all of its checks before touching ``data``; a slot is
either left as it was or fully rewritten with an encoding of the same length.
"""
from __future__ import annotations

from typing import Optional, Sequence

from slotrec_core.account import BadDiscriminator, encode_tagged, unwrap_checked, wrap
from slotrec_core.codec import DecodeError
from slotrec_core.schema import Record

from .accounts import AccountInfo, HostContext, next_account
from .errors import (
    AccountDataError,
    InvalidDiscriminator,
    MissingAuthorization,
    OptionVariantChange,
    OwnershipError,
    SizeMismatch,
    StringLengthChange,
    ValidationMismatch,
)
from .instruction import Initialize, Update, Validate, decode_instruction


def process_instruction(
    program_id: bytes,
    accounts: Sequence[AccountInfo],
    instruction_data: bytes,
    host: HostContext,
) -> None:
    ix = decode_instruction(instruction_data)
    if isinstance(ix, Initialize):
        process_initialize(program_id, accounts, ix.data, host)
    elif isinstance(ix, Update):
        process_update(program_id, accounts, ix.new_u64, ix.new_bool, ix.new_text, ix.new_option)
    elif isinstance(ix, Validate):
        process_validate(program_id, accounts, ix.expected_u8, host)


def load_record(program_id: bytes, state_account: AccountInfo) -> Record:
    """Ownership gate, then discriminator gate, then payload decode."""
    if not state_account.owner_matches(program_id):
        raise OwnershipError(f"owner {state_account.owner.hex()}")
    try:
        return unwrap_checked(state_account.data)
    except BadDiscriminator as e:
        raise InvalidDiscriminator(f"found {e.found.hex()}") from e
    except DecodeError as e:
        raise AccountDataError(str(e)) from e


def process_initialize(
    program_id: bytes,
    accounts: Sequence[AccountInfo],
    data: Record,
    host: HostContext,
) -> None:
    it = iter(accounts)
    payer = next_account(it)
    state_account = next_account(it)
    system_program = next_account(it)

    if not payer.is_signer or not state_account.is_signer:
        raise MissingAuthorization("payer and state account must both sign")

    serialized = encode_tagged(wrap(data))
    account_len = len(serialized)
    required_lamports = host.minimum_balance(account_len)

    if not state_account.owner_matches(program_id):
        host.log("Creating state account with rent-exempt balance")
        host.create_account(
            payer, state_account, system_program, required_lamports, account_len, program_id
        )
    elif state_account.data_len != account_len:
        raise SizeMismatch(f"slot holds {state_account.data_len} bytes, record needs {account_len}")

    # Prior content of an owned slot of the right size is not inspected.
    if state_account.data_len != account_len:
        raise SizeMismatch(f"slot holds {state_account.data_len} bytes, record needs {account_len}")
    state_account.data[:] = serialized


def process_update(
    program_id: bytes,
    accounts: Sequence[AccountInfo],
    new_u64: int,
    new_bool: bool,
    new_text: str,
    new_option: Optional[int],
) -> None:
    it = iter(accounts)
    state_account = next_account(it)

    record = load_record(program_id, state_account)

    old_len = len(record.text.encode("utf-8"))
    new_len = len(new_text.encode("utf-8"))
    if old_len != new_len:
        raise StringLengthChange(f"text is {old_len} bytes, new_text is {new_len}")
    if (record.maybe_amount is None) != (new_option is None):
        raise OptionVariantChange(
            "maybe_amount is {}, new_option is {}".format(
                "absent" if record.maybe_amount is None else "present",
                "absent" if new_option is None else "present",
            )
        )

    record.primitive_u64 = new_u64
    record.primitive_bool = new_bool
    record.text = new_text
    record.maybe_amount = new_option

    serialized = encode_tagged(wrap(record))
    if state_account.data_len != len(serialized):
        raise SizeMismatch(f"slot holds {state_account.data_len} bytes, record needs {len(serialized)}")
    state_account.data[:] = serialized


def process_validate(
    program_id: bytes,
    accounts: Sequence[AccountInfo],
    expected_u8: int,
    host: HostContext,
) -> None:
    it = iter(accounts)
    state_account = next_account(it)

    record = load_record(program_id, state_account)

    if record.primitive_u8 != expected_u8:
        host.log(f"Validation failed: expected {expected_u8}, got {record.primitive_u8}")
        raise ValidationMismatch(f"expected {expected_u8}, got {record.primitive_u8}")
    host.log("Validation passed")
