"""slotrec - drive the record program against a local ledger file."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from slotrec_core.account import decode_tagged
from slotrec_core.schema import record_from_dict, record_to_dict

from . import config
from .client import (
    build_state,
    initialize_instruction,
    open_ledger,
    run_demo,
    send,
    update_instruction,
    validate_instruction,
)
from .crypto import Keypair, load_keypair, parse_secret_key, save_keypair
from .store import save_ledger


def _echo_json(obj) -> None:
    click.echo(json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _address(value: str) -> bytes:
    try:
        raw = bytes.fromhex(value)
    except ValueError:
        raise click.BadParameter(f"not hex: {value!r}") from None
    if len(raw) != 32:
        raise click.BadParameter("address must be 32 bytes of hex")
    return raw


def _payer(path: Path | None) -> Keypair:
    if path is not None:
        return load_keypair(path)
    secret = config.payer_secret()
    if secret is None:
        raise click.UsageError(f"--payer not given and none of {', '.join(config.PAYER_SECRET_ENV)} set")
    return parse_secret_key(secret)


def _finish(ctx: click.Context, ledger, result: dict) -> None:
    save_ledger(ledger, ctx.obj["ledger_path"])
    _echo_json(result)
    if result["status"] != "PASS":
        raise SystemExit(1)


payer_option = click.option(
    "--payer", "payer_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Payer keypair file (defaults to SLOTREC_PAYER_PRIVATE_KEY).",
)


@click.group()
@click.option("--ledger", "ledger_path", type=click.Path(dir_okay=False, path_type=Path),
              default=config.LEDGER_PATH, show_default=True, envvar="SLOTREC_LEDGER_PATH")
@click.option("--program-id", default=config.PROGRAM_ID_HEX, envvar="SLOTREC_PROGRAM_ID",
              help="Record program address (hex).")
@click.option("-v", "--verbose", is_flag=True, default=config.DEBUG)
@click.pass_context
def main(ctx: click.Context, ledger_path: Path, program_id: str, verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["ledger_path"] = ledger_path
    try:
        ctx.obj["program_id"] = config.parse_program_id(program_id)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--program-id") from None


def _open(ctx: click.Context):
    return open_ledger(ctx.obj["ledger_path"], ctx.obj["program_id"])


@main.command("keygen")
@click.argument("out", type=click.Path(dir_okay=False, path_type=Path))
def keygen_cmd(out: Path):
    """Write a new keypair file and print its address."""
    kp = Keypair.generate()
    save_keypair(kp, out)
    click.echo(kp.pubkey.hex())


@main.command("airdrop")
@click.argument("address")
@click.argument("lamports", type=click.IntRange(min=1))
@click.pass_context
def airdrop_cmd(ctx: click.Context, address: str, lamports: int):
    ledger = _open(ctx)
    ledger.airdrop(_address(address), lamports)
    save_ledger(ledger, ctx.obj["ledger_path"])
    _echo_json({"address": address, "lamports": ledger.get_account(_address(address)).lamports})


@main.command("create")
@payer_option
@click.option("--state", "state_path", required=True,
              type=click.Path(exists=True, dir_okay=False, path_type=Path), help="State account keypair file.")
@click.option("--record", "record_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help="Record as JSON (defaults to the sample record).")
@click.pass_context
def create_cmd(ctx: click.Context, payer_path: Path | None, state_path: Path, record_path: Path | None):
    """Allocate (if needed) and write the record slot."""
    payer = _payer(payer_path)
    state = load_keypair(state_path)
    if record_path is not None:
        record = record_from_dict(json.loads(record_path.read_text(encoding="utf-8")))
    else:
        record = build_state(payer.pubkey)
    ledger = _open(ctx)
    ix = initialize_instruction(ctx.obj["program_id"], payer.pubkey, state.pubkey, record)
    _finish(ctx, ledger, send(ledger, ix, payer, state))


@main.command("update")
@click.argument("address")
@payer_option
@click.option("--u64", "new_u64", type=click.IntRange(0, 2**64 - 1), required=True)
@click.option("--bool/--no-bool", "new_bool", default=False, show_default=True)
@click.option("--text", "new_text", required=True)
@click.option("--option", "new_option", type=click.IntRange(0, 2**64 - 1), default=None,
              help="New maybe_amount; omit to keep it absent.")
@click.pass_context
def update_cmd(ctx: click.Context, address: str, payer_path: Path | None, new_u64: int, new_bool: bool,
               new_text: str, new_option: int | None):
    """Overwrite fields of the slot in place."""
    payer = _payer(payer_path)
    ledger = _open(ctx)
    ix = update_instruction(ctx.obj["program_id"], _address(address), new_u64, new_bool, new_text, new_option)
    _finish(ctx, ledger, send(ledger, ix, payer))


@main.command("validate")
@click.argument("address")
@payer_option
@click.option("--expected", "expected_u8", type=click.IntRange(0, 255), required=True)
@click.pass_context
def validate_cmd(ctx: click.Context, address: str, payer_path: Path | None, expected_u8: int):
    """Check primitive_u8 of the slot without writing."""
    payer = _payer(payer_path)
    ledger = _open(ctx)
    ix = validate_instruction(ctx.obj["program_id"], _address(address), expected_u8)
    _finish(ctx, ledger, send(ledger, ix, payer))


@main.command("show")
@click.argument("address")
@click.pass_context
def show_cmd(ctx: click.Context, address: str):
    """Decode and print the slot (no discriminator gate)."""
    ledger = _open(ctx)
    acct = ledger.require_account(_address(address))
    tagged = decode_tagged(acct.data)
    _echo_json({
        "address": address,
        "owner": acct.owner.hex(),
        "lamports": acct.lamports,
        "length": len(acct.data),
        "discriminator": tagged.discriminator.decode("ascii", errors="replace"),
        "record": record_to_dict(tagged.payload),
    })


@main.command("demo")
@click.option("--keys-dir", type=click.Path(file_okay=False, path_type=Path), default=None,
              help="Keep the generated payer/state keypairs here.")
@click.pass_context
def demo_cmd(ctx: click.Context, keys_dir: Path | None):
    """Fund fresh keys, then initialize, update and validate one slot."""
    payer = Keypair.generate()
    state = Keypair.generate()
    if keys_dir is not None:
        save_keypair(payer, keys_dir / "payer.json")
        save_keypair(state, keys_dir / "state.json")
    ledger = _open(ctx)
    ledger.airdrop(payer.pubkey, config.DEMO_AIRDROP_LAMPORTS)
    result = run_demo(ledger, ctx.obj["program_id"], payer, state)
    _finish(ctx, ledger, result)


def run() -> None:
    """Console entry point: fail closed with a single-line reason."""
    try:
        main(standalone_mode=False)
    except click.exceptions.Abort:
        raise SystemExit(1)
    except click.ClickException as e:
        e.show()
        raise SystemExit(e.exit_code)
    except Exception as e:
        click.echo(f"FATAL: {e}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    run()
