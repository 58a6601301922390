import json
import subprocess
import sys
from pathlib import Path

import pytest
from click.testing import CliRunner

from slotrec_ledger.cli import main
from slotrec_ledger.crypto import load_keypair


@pytest.fixture
def env(tmp_path):
    runner = CliRunner()
    ledger = tmp_path / "ledger.parquet"

    def invoke(*args):
        return runner.invoke(main, ["--ledger", str(ledger), *args], catch_exceptions=False)

    payer_path = tmp_path / "payer.json"
    state_path = tmp_path / "state.json"
    payer = invoke("keygen", str(payer_path)).output.strip()
    state = invoke("keygen", str(state_path)).output.strip()
    r = invoke("airdrop", payer, "1000000000")
    assert r.exit_code == 0, r.output
    return invoke, payer_path, state_path, state


def test_create_show_update_validate(env):
    invoke, payer_path, state_path, state = env

    r = invoke("create", "--payer", str(payer_path), "--state", str(state_path))
    assert r.exit_code == 0, r.output
    assert json.loads(r.output)["status"] == "PASS"

    shown = json.loads(invoke("show", state).output)
    assert shown["discriminator"] == "BORSHDEM"
    assert shown["record"]["text"] == "hello borsh"
    length = shown["length"]

    r = invoke("update", state, "--payer", str(payer_path), "--u64", "555", "--text", "HELLO BORSH", "--option", "7")
    assert r.exit_code == 0, r.output
    shown = json.loads(invoke("show", state).output)
    assert shown["length"] == length
    assert shown["record"]["primitive_u64"] == 555
    assert shown["record"]["primitive_bool"] is False
    assert shown["record"]["maybe_amount"] == 7

    r = invoke("validate", state, "--payer", str(payer_path), "--expected", "42")
    assert r.exit_code == 0, r.output


def test_failures_exit_nonzero(env):
    invoke, payer_path, state_path, state = env
    invoke("create", "--payer", str(payer_path), "--state", str(state_path))

    r = invoke("update", state, "--payer", str(payer_path), "--u64", "1", "--text", "too long now", "--option", "1")
    assert r.exit_code == 1
    assert json.loads(r.output)["errors"][0]["code"] == "E_STRING_LENGTH_CHANGE"

    r = invoke("update", state, "--payer", str(payer_path), "--u64", "1", "--text", "hello borsh")
    assert r.exit_code == 1
    assert json.loads(r.output)["errors"][0]["code"] == "E_OPTION_VARIANT_CHANGE"

    r = invoke("validate", state, "--payer", str(payer_path), "--expected", "1")
    assert r.exit_code == 1
    out = json.loads(r.output)
    assert out["errors"][0]["code"] == "E_INVALID_ACCOUNT_DATA"
    assert "Program log: Validation failed: expected 1, got 42" in out["logs"]


def test_create_from_record_file(env, tmp_path):
    invoke, payer_path, state_path, state = env
    record = {
        "primitive_u8": 3,
        "primitive_u16": 2,
        "primitive_u32": 1,
        "primitive_u64": 0,
        "primitive_i64": -1,
        "primitive_bool": False,
        "fixed_pubkey_bytes": "00" * 32,
        "text": "",
        "data": "",
        "keys": [],
        "simple_enum": "Third",
        "data_enum": {"Name": {"label": "n"}},
        "maybe_amount": None,
        "nested": {"count": 0, "note": ""},
    }
    path = tmp_path / "record.json"
    path.write_text(json.dumps(record), encoding="utf-8")
    r = invoke("create", "--payer", str(payer_path), "--state", str(state_path), "--record", str(path))
    assert r.exit_code == 0, r.output
    assert json.loads(invoke("show", state).output)["record"] == record


def test_payer_from_environment(env, monkeypatch):
    invoke, payer_path, state_path, state = env
    secret = json.loads(payer_path.read_text(encoding="utf-8"))
    monkeypatch.setenv("SLOTREC_PAYER_PRIVATE_KEY", json.dumps(secret))
    r = invoke("create", "--state", str(state_path))
    assert r.exit_code == 0, r.output


def run(cmd, cwd):
    return subprocess.run(cmd, cwd=cwd, check=False, capture_output=True, text=True)


def test_demo_then_corrupt_discriminator(tmp_path):
    repo = Path(__file__).resolve().parents[1]
    ledger = tmp_path / "ledger.parquet"
    keys = tmp_path / "keys"

    r = run([sys.executable, "-m", "slotrec_ledger.cli", "--ledger", str(ledger), "demo", "--keys-dir", str(keys)], cwd=repo)
    assert r.returncode == 0, r.stderr + r.stdout
    result = json.loads(r.stdout)
    assert result["status"] == "PASS"
    state = load_keypair(keys / "state.json").pubkey.hex()
    assert result["state"] == state

    r = run([sys.executable, "scripts/corrupt_one_byte.py", str(ledger), state], cwd=repo)
    assert r.returncode == 0, r.stderr + r.stdout

    r = run([sys.executable, "-m", "slotrec_ledger.cli", "--ledger", str(ledger), "validate", state,
             "--payer", str(keys / "payer.json"), "--expected", "42"], cwd=repo)
    assert r.returncode != 0
    assert json.loads(r.stdout)["errors"][0]["code"] == "E_INVALID_DISCRIMINATOR"
