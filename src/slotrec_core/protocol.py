"""Slot record protocol constants.

Single source of truth for the on-ledger discriminator and field layouts.
Keep this file stable. Writers and readers must remain synchronized.
"""

# Account discriminator, stamped in front of every encoded record
ACCOUNT_DISCRIMINATOR = b"BORSHDEM"
DISCRIMINATOR_LEN = 8

# Fixed-width little-endian field formats
U8_FMT = "<B"
U16_FMT = "<H"
U32_FMT = "<I"
U64_FMT = "<Q"
I64_FMT = "<q"

# Strings, byte buffers and sequences: [Len(4) | Items...]
LEN_PREFIX_FMT = U32_FMT
LEN_PREFIX_LEN = 4

# Enums and options: [Tag(1) | Payload...]
TAG_FMT = U8_FMT
TAG_LEN = 1
OPTION_NONE = 0
OPTION_SOME = 1

PUBKEY_LEN = 32

# Record sizing with every variable-length field empty:
# u8 + u16 + u32 + u64 + i64 + bool + pubkey
FIXED_PREFIX_LEN = 1 + 2 + 4 + 8 + 8 + 1 + PUBKEY_LEN
