import sys
from pathlib import Path

from slotrec_ledger.store import load_ledger, save_ledger


def main():
    if len(sys.argv) != 3:
        print("Usage: corrupt_one_byte.py <ledger.parquet> <address-hex>")
        raise SystemExit(2)

    path = Path(sys.argv[1])
    address = bytes.fromhex(sys.argv[2])
    ledger = load_ledger(path)
    acct = ledger.get_account(address)
    if acct is None or len(acct.data) < 8:
        print("Account missing or too small to corrupt safely.")
        raise SystemExit(2)

    # Flip the last discriminator byte. The slot keeps its length but no
    # longer carries the record tag.
    idx = 7
    b = bytearray(acct.data)
    b[idx] ^= 0x01
    acct.data = bytes(b)
    save_ledger(ledger, path)
    print(f"Corrupted 1 byte at offset {idx} in {address.hex()}")


if __name__ == "__main__":
    main()
