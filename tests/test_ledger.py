import pytest

from slotrec_core.account import encode_tagged, wrap
from slotrec_ledger import config
from slotrec_ledger.client import (
    build_state,
    fetch_record,
    initialize_instruction,
    open_ledger,
    run_demo,
    send,
    update_instruction,
    validate_instruction,
)
from slotrec_ledger.crypto import Keypair, parse_secret_key, verify_ed25519
from slotrec_ledger.ledger import (
    SYSTEM_PROGRAM_ID,
    AccountMeta,
    AccountNotFound,
    Ledger,
    Transaction,
    TransactionInstruction,
)
from slotrec_ledger.store import load_ledger, save_ledger
from slotrec_program.instruction import Update, encode_instruction

from conftest import make_record

PROGRAM_ID = config.parse_program_id(config.DEFAULT_PROGRAM_ID_HEX)


@pytest.fixture
def payer():
    return Keypair.from_seed(b"\x11" * 32)


@pytest.fixture
def state():
    return Keypair.from_seed(b"\x22" * 32)


@pytest.fixture
def ledger(payer):
    ledger = open_ledger(None, PROGRAM_ID)
    ledger.airdrop(payer.pubkey, 10**9)
    return ledger


@pytest.fixture
def created(ledger, payer, state):
    ix = initialize_instruction(PROGRAM_ID, payer.pubkey, state.pubkey, make_record())
    result = send(ledger, ix, payer, state)
    assert result["status"] == "PASS", result
    return ledger


def snapshot(ledger):
    return {k: (a.lamports, a.owner, a.data) for k, a in ledger.accounts.items()}


def test_rent_minimum_balance():
    assert Ledger.minimum_balance(0) == 128 * 3480 * 2
    assert Ledger.minimum_balance(100) == 228 * 3480 * 2


def test_create_allocates_rent_exempt_slot(created, payer, state):
    expected = encode_tagged(wrap(make_record()))
    acct = created.get_account(state.pubkey)
    assert acct.owner == PROGRAM_ID
    assert acct.data == expected
    assert acct.lamports == Ledger.minimum_balance(len(expected))
    assert created.get_account(payer.pubkey).lamports == 10**9 - acct.lamports
    assert created.get_account(SYSTEM_PROGRAM_ID) is None


def test_create_logs(ledger, payer, state):
    ix = initialize_instruction(PROGRAM_ID, payer.pubkey, state.pubkey, make_record())
    result = send(ledger, ix, payer, state)
    assert "Program log: Creating state account with rent-exempt balance" in result["logs"]


def test_create_again_overwrites_in_place(created, payer, state):
    lamports = created.get_account(state.pubkey).lamports
    other = make_record(primitive_u8=1, text="xyz")
    result = send(created, initialize_instruction(PROGRAM_ID, payer.pubkey, state.pubkey, other), payer, state)
    assert result["status"] == "PASS"
    assert fetch_record(created, state.pubkey) == other
    assert created.get_account(state.pubkey).lamports == lamports


def test_create_again_with_different_size_fails(created, payer, state):
    before = snapshot(created)
    bigger = make_record(text="abcdef")
    result = send(created, initialize_instruction(PROGRAM_ID, payer.pubkey, state.pubkey, bigger), payer, state)
    assert result["status"] == "FAIL"
    assert result["errors"][0]["code"] == "E_SIZE_MISMATCH"
    assert result["errors"][0]["custom"] == 1
    assert snapshot(created) == before


def test_create_without_funds_rolls_back(payer, state):
    ledger = open_ledger(None, PROGRAM_ID)
    ledger.airdrop(payer.pubkey, 10)
    before = snapshot(ledger)
    result = send(ledger, initialize_instruction(PROGRAM_ID, payer.pubkey, state.pubkey, make_record()), payer, state)
    assert result["errors"][0]["code"] == "E_INSUFFICIENT_FUNDS"
    assert snapshot(ledger) == before


def test_create_on_prefunded_address_is_in_use(ledger, payer, state):
    ledger.airdrop(state.pubkey, 5)
    result = send(ledger, initialize_instruction(PROGRAM_ID, payer.pubkey, state.pubkey, make_record()), payer, state)
    assert result["errors"][0]["code"] == "E_ACCOUNT_IN_USE"


def test_create_without_state_signature_is_rejected(ledger, payer, state):
    ix = initialize_instruction(PROGRAM_ID, payer.pubkey, state.pubkey, make_record())
    # Declared signer that never signed.
    result = send(ledger, ix, payer)
    assert result["errors"][0]["code"] == "E_SIGNATURE_INVALID"

    # Not declared a signer at all: the program refuses.
    ix.keys[1] = AccountMeta(state.pubkey, is_signer=False, is_writable=True)
    result = send(ledger, ix, payer)
    assert result["errors"][0]["code"] == "E_MISSING_SIGNATURE"
    assert ledger.get_account(state.pubkey) is None


def test_tampered_signature_is_rejected(ledger, payer, state):
    ix = initialize_instruction(PROGRAM_ID, payer.pubkey, state.pubkey, make_record())
    tx = Transaction(fee_payer=payer.pubkey, instructions=[ix]).sign(payer, state)
    ix.data = ix.data[:-1] + b"\x01"
    result = ledger.execute(tx)
    assert result["errors"][0]["code"] == "E_SIGNATURE_INVALID"


def test_wrong_system_program(ledger, payer, state):
    ix = initialize_instruction(PROGRAM_ID, payer.pubkey, state.pubkey, make_record())
    ix.keys[2] = AccountMeta(b"\x05" * 32)
    result = send(ledger, ix, payer, state)
    assert result["errors"][0]["code"] == "E_INVALID_SYSTEM_PROGRAM"


def test_update_rejections_leave_slot_untouched(created, payer, state):
    before = snapshot(created)
    result = send(created, update_instruction(PROGRAM_ID, state.pubkey, 1, False, "abcd", None), payer)
    assert result["errors"][0]["code"] == "E_STRING_LENGTH_CHANGE"
    result = send(created, update_instruction(PROGRAM_ID, state.pubkey, 1, False, "abc", 5), payer)
    assert result["errors"][0]["code"] == "E_OPTION_VARIANT_CHANGE"
    assert snapshot(created) == before


def test_update_through_readonly_meta_is_rejected(created, payer, state):
    before = snapshot(created)
    ix = TransactionInstruction(
        program_id=PROGRAM_ID,
        keys=[AccountMeta(state.pubkey, is_writable=False)],
        data=encode_instruction(Update(1, False, "xyz", None)),
    )
    result = send(created, ix, payer)
    assert result["errors"][0]["code"] == "E_READONLY_MODIFIED"
    assert snapshot(created) == before


def test_validate_result(created, payer, state):
    before = snapshot(created)
    ok = send(created, validate_instruction(PROGRAM_ID, state.pubkey, 42), payer)
    assert ok["status"] == "PASS"
    assert "Program log: Validation passed" in ok["logs"]
    bad = send(created, validate_instruction(PROGRAM_ID, state.pubkey, 41), payer)
    assert bad["errors"][0]["code"] == "E_INVALID_ACCOUNT_DATA"
    assert "Program log: Validation failed: expected 41, got 42" in bad["logs"]
    assert snapshot(created) == before


def test_unknown_program(ledger, payer, state):
    ix = validate_instruction(b"\x44" * 32, state.pubkey, 1)
    result = send(ledger, ix, payer)
    assert result["errors"][0]["code"] == "E_UNKNOWN_PROGRAM"


def test_demo_flow(ledger, payer, state):
    result = run_demo(ledger, PROGRAM_ID, payer, state)
    assert result["status"] == "PASS", result
    assert [s["step"] for s in result["steps"]] == ["initialize", "update", "validate"]
    record = fetch_record(ledger, state.pubkey)
    assert record.primitive_u64 == 555
    assert record.primitive_bool is False
    assert record.maybe_amount == 777
    assert record.fixed_pubkey_bytes == payer.pubkey


def test_fetch_missing_account(ledger):
    with pytest.raises(AccountNotFound):
        fetch_record(ledger, b"\x33" * 32)


def test_store_round_trip(tmp_path, created, state):
    path = tmp_path / "ledger" / "ledger.parquet"
    save_ledger(created, path)
    loaded = load_ledger(path)
    assert snapshot(loaded) == snapshot(created)
    assert load_ledger(tmp_path / "missing.parquet").accounts == {}


def test_keys_and_signatures(payer):
    msg = b"message"
    sig = payer.sign(msg)
    assert verify_ed25519(payer.pubkey, msg, sig)
    assert not verify_ed25519(payer.pubkey, b"other", sig)
    assert not verify_ed25519(payer.pubkey, msg, sig[:10])
    assert parse_secret_key(payer.secret_key.hex()).pubkey == payer.pubkey
    assert parse_secret_key(str(list(payer.secret_key))).pubkey == payer.pubkey
    assert parse_secret_key(("11" * 32)).pubkey == payer.pubkey
    with pytest.raises(ValueError):
        parse_secret_key((b"\x00" * 32 + payer.pubkey).hex())


def test_sample_state_uses_authority(payer):
    r = build_state(payer.pubkey)
    assert r.keys == [payer.pubkey]
    assert r.text == "hello borsh"


def test_repeated_meta_keeps_strongest_flags(ledger, payer, state):
    ix = initialize_instruction(PROGRAM_ID, payer.pubkey, state.pubkey, make_record())
    ix.keys.append(AccountMeta(state.pubkey))
    result = send(ledger, ix, payer, state)
    assert result["status"] == "PASS", result
    assert fetch_record(ledger, state.pubkey) == make_record()


def test_writable_then_readonly_meta_can_still_be_written(created, payer, state):
    ix = update_instruction(PROGRAM_ID, state.pubkey, 77, True, "xyz", None)
    ix.keys.append(AccountMeta(state.pubkey, is_writable=False))
    result = send(created, ix, payer)
    assert result["status"] == "PASS", result
    assert fetch_record(created, state.pubkey).primitive_u64 == 77
