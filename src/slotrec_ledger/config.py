"""
Runtime configuration from environment variables.
CLI options override these values.
"""

import os

# Ledger snapshot location
LEDGER_PATH = os.getenv("SLOTREC_LEDGER_PATH", "./data/ledger.parquet")

# Program address the record program is registered under (hex, 32 bytes)
DEFAULT_PROGRAM_ID_HEX = "64a497ec529f6fda1dbf2800f48980f88a660ab06e6efd7da45861b49c1130fb"
PROGRAM_ID_HEX = os.getenv("SLOTREC_PROGRAM_ID", DEFAULT_PROGRAM_ID_HEX)

# Payer secret (hex seed, hex secret key or JSON byte array), first match wins
PAYER_SECRET_ENV = ["SLOTREC_PAYER_PRIVATE_KEY", "SLOTREC_PAYER_SECRET_KEY"]

DEBUG = os.getenv("SLOTREC_DEBUG", "false").lower() == "true"

# Lamports given to fresh keypairs by `slotrec demo`
DEMO_AIRDROP_LAMPORTS = int(os.getenv("SLOTREC_DEMO_AIRDROP", "1000000000"))


def parse_program_id(value: str) -> bytes:
    raw = bytes.fromhex(value)
    if len(raw) != 32:
        raise ValueError("program id must be 32 bytes of hex")
    return raw


def program_id() -> bytes:
    return parse_program_id(PROGRAM_ID_HEX)


def payer_secret() -> str | None:
    for name in PAYER_SECRET_ENV:
        value = os.getenv(name)
        if value:
            return value
    return None
