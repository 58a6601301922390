"""Tagged record: [Discriminator(8) | Record] as stored in a ledger slot."""
from __future__ import annotations

from dataclasses import dataclass

from .codec import Reader
from .protocol import ACCOUNT_DISCRIMINATOR, DISCRIMINATOR_LEN
from .schema import Record, encode_record, read_record


class ValidationError(Exception):
    """Slot bytes are well-formed but not this schema's data."""


class BadDiscriminator(ValidationError):
    def __init__(self, found: bytes):
        super().__init__(f"Invalid account discriminator {bytes(found)!r}")
        self.found = bytes(found)


@dataclass
class TaggedRecord:
    discriminator: bytes
    payload: Record


def wrap(record: Record) -> TaggedRecord:
    return TaggedRecord(discriminator=ACCOUNT_DISCRIMINATOR, payload=record)


def encode_tagged(tagged: TaggedRecord) -> bytes:
    if len(tagged.discriminator) != DISCRIMINATOR_LEN:
        raise ValueError(f"discriminator must be {DISCRIMINATOR_LEN} bytes")
    return bytes(tagged.discriminator) + encode_record(tagged.payload)


def decode_tagged(buf: bytes) -> TaggedRecord:
    """Decode without the discriminator gate. For inspection, not for trust."""
    rd = Reader(buf)
    disc = rd.fixed(DISCRIMINATOR_LEN, "discriminator")
    payload = read_record(rd)
    rd.finish()
    return TaggedRecord(discriminator=disc, payload=payload)


def unwrap_checked(buf: bytes) -> Record:
    """Return the payload of ``buf`` after the discriminator gate.

    The leading 8 bytes are compared before any payload byte is read, so a
    foreign or uninitialized slot fails with BadDiscriminator and never
    reaches the record decoder.
    """
    head = bytes(buf[:DISCRIMINATOR_LEN])
    if head != ACCOUNT_DISCRIMINATOR:
        raise BadDiscriminator(head)
    rd = Reader(buf, DISCRIMINATOR_LEN)
    payload = read_record(rd)
    rd.finish()
    return payload
