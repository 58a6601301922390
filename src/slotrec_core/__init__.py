"""Slot record core - schema, codec and tagged record."""
from .account import TaggedRecord, BadDiscriminator, ValidationError, wrap, encode_tagged, decode_tagged, unwrap_checked
from .codec import DecodeError, EncodeError, InvalidTag, InvalidValue, TrailingBytes, Truncated
from .protocol import ACCOUNT_DISCRIMINATOR, DISCRIMINATOR_LEN
from .schema import (
    Amount,
    Name,
    NestedStruct,
    Record,
    SimpleEnum,
    decode_record,
    encode_record,
    encoded_size,
    record_from_dict,
    record_to_dict,
)

__all__ = [
    "ACCOUNT_DISCRIMINATOR",
    "DISCRIMINATOR_LEN",
    "Amount",
    "BadDiscriminator",
    "DecodeError",
    "EncodeError",
    "InvalidTag",
    "InvalidValue",
    "Name",
    "NestedStruct",
    "Record",
    "SimpleEnum",
    "TaggedRecord",
    "TrailingBytes",
    "Truncated",
    "ValidationError",
    "decode_record",
    "decode_tagged",
    "encode_record",
    "encode_tagged",
    "encoded_size",
    "record_from_dict",
    "record_to_dict",
    "unwrap_checked",
    "wrap",
]
