"""Record schema and its deterministic encoding.

Wire order is the field order of ``Record``. Nothing is keyed or sorted:
two records are equal exactly when their encodings are equal.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import ClassVar, List, Optional, Union

from .codec import EncodeError, InvalidTag, Reader, Writer
from .protocol import FIXED_PREFIX_LEN, LEN_PREFIX_LEN, PUBKEY_LEN, TAG_LEN


class SimpleEnum(IntEnum):
    FIRST = 0
    SECOND = 1
    THIRD = 2


@dataclass(frozen=True)
class Amount:
    value: int
    TAG: ClassVar[int] = 0


@dataclass(frozen=True)
class Name:
    label: str
    TAG: ClassVar[int] = 1


DataEnum = Union[Amount, Name]


@dataclass
class NestedStruct:
    count: int
    note: str


@dataclass
class Record:
    primitive_u8: int
    primitive_u16: int
    primitive_u32: int
    primitive_u64: int
    primitive_i64: int
    primitive_bool: bool
    fixed_pubkey_bytes: bytes
    text: str
    data: bytes
    keys: List[bytes] = field(default_factory=list)
    simple_enum: SimpleEnum = SimpleEnum.FIRST
    data_enum: DataEnum = field(default_factory=lambda: Amount(0))
    maybe_amount: Optional[int] = None
    nested: NestedStruct = field(default_factory=lambda: NestedStruct(0, ""))


# --- writers ---

def _write_key(w: Writer, key: bytes) -> None:
    w.fixed(key, PUBKEY_LEN, "keys[]")


def _write_u64(w: Writer, v: int) -> None:
    w.u64(v, "maybe_amount")


def _simple_enum(v) -> SimpleEnum:
    try:
        return SimpleEnum(v)
    except ValueError:
        raise EncodeError(f"simple_enum out of range: {v!r}") from None


def write_data_enum(w: Writer, v: DataEnum) -> None:
    if isinstance(v, Amount):
        w.tag(Amount.TAG, "data_enum")
        w.u64(v.value, "data_enum.Amount.value")
    elif isinstance(v, Name):
        w.tag(Name.TAG, "data_enum")
        w.string(v.label, "data_enum.Name.label")
    else:
        raise EncodeError(f"data_enum must be Amount or Name, got {type(v).__name__}")


def write_nested(w: Writer, v: NestedStruct) -> None:
    w.u32(v.count, "nested.count")
    w.string(v.note, "nested.note")


def write_record(w: Writer, r: Record) -> None:
    w.u8(r.primitive_u8, "primitive_u8")
    w.u16(r.primitive_u16, "primitive_u16")
    w.u32(r.primitive_u32, "primitive_u32")
    w.u64(r.primitive_u64, "primitive_u64")
    w.i64(r.primitive_i64, "primitive_i64")
    w.boolean(r.primitive_bool, "primitive_bool")
    w.fixed(r.fixed_pubkey_bytes, PUBKEY_LEN, "fixed_pubkey_bytes")
    w.string(r.text, "text")
    w.blob(r.data, "data")
    w.seq(r.keys, _write_key, "keys")
    w.tag(_simple_enum(r.simple_enum).value, "simple_enum")
    write_data_enum(w, r.data_enum)
    w.option(r.maybe_amount, _write_u64, "maybe_amount")
    write_nested(w, r.nested)


# --- readers ---

def read_simple_enum(rd: Reader) -> SimpleEnum:
    t = rd.tag("simple_enum")
    try:
        return SimpleEnum(t)
    except ValueError:
        raise InvalidTag("SimpleEnum", t) from None


def read_data_enum(rd: Reader) -> DataEnum:
    t = rd.tag("data_enum")
    if t == Amount.TAG:
        return Amount(rd.u64("data_enum.Amount.value"))
    if t == Name.TAG:
        return Name(rd.string("data_enum.Name.label"))
    raise InvalidTag("DataEnum", t)


def read_nested(rd: Reader) -> NestedStruct:
    count = rd.u32("nested.count")
    return NestedStruct(count, rd.string("nested.note"))


def read_record(rd: Reader) -> Record:
    return Record(
        primitive_u8=rd.u8("primitive_u8"),
        primitive_u16=rd.u16("primitive_u16"),
        primitive_u32=rd.u32("primitive_u32"),
        primitive_u64=rd.u64("primitive_u64"),
        primitive_i64=rd.i64("primitive_i64"),
        primitive_bool=rd.boolean("primitive_bool"),
        fixed_pubkey_bytes=rd.fixed(PUBKEY_LEN, "fixed_pubkey_bytes"),
        text=rd.string("text"),
        data=rd.blob("data"),
        keys=rd.seq(lambda r: r.fixed(PUBKEY_LEN, "keys[]"), "keys"),
        simple_enum=read_simple_enum(rd),
        data_enum=read_data_enum(rd),
        maybe_amount=rd.option(lambda r: r.u64("maybe_amount"), "maybe_amount"),
        nested=read_nested(rd),
    )


def encode_record(r: Record) -> bytes:
    w = Writer()
    write_record(w, r)
    return w.getvalue()


def decode_record(buf: bytes) -> Record:
    """Decode a whole buffer. Raises DecodeError if it is short, malformed or too long."""
    rd = Reader(buf)
    r = read_record(rd)
    rd.finish()
    return r


def encoded_size(r: Record) -> int:
    """Encoded length of ``r`` from its variable-length parts only.

    Fixed-width values never move this number, which is what makes in-place
    updates of those fields size-safe.
    """
    n = FIXED_PREFIX_LEN
    n += LEN_PREFIX_LEN + len(r.text.encode("utf-8"))
    n += LEN_PREFIX_LEN + len(r.data)
    n += LEN_PREFIX_LEN + PUBKEY_LEN * len(r.keys)
    n += TAG_LEN
    if isinstance(r.data_enum, Amount):
        n += TAG_LEN + 8
    elif isinstance(r.data_enum, Name):
        n += TAG_LEN + LEN_PREFIX_LEN + len(r.data_enum.label.encode("utf-8"))
    else:
        raise EncodeError(f"data_enum must be Amount or Name, got {type(r.data_enum).__name__}")
    n += TAG_LEN + (0 if r.maybe_amount is None else 8)
    n += 4 + LEN_PREFIX_LEN + len(r.nested.note.encode("utf-8"))
    return n


# --- JSON-friendly form for the CLI ---

def record_to_dict(r: Record) -> dict:
    if isinstance(r.data_enum, Amount):
        data_enum = {"Amount": {"value": r.data_enum.value}}
    else:
        data_enum = {"Name": {"label": r.data_enum.label}}
    return {
        "primitive_u8": r.primitive_u8,
        "primitive_u16": r.primitive_u16,
        "primitive_u32": r.primitive_u32,
        "primitive_u64": r.primitive_u64,
        "primitive_i64": r.primitive_i64,
        "primitive_bool": r.primitive_bool,
        "fixed_pubkey_bytes": bytes(r.fixed_pubkey_bytes).hex(),
        "text": r.text,
        "data": bytes(r.data).hex(),
        "keys": [bytes(k).hex() for k in r.keys],
        "simple_enum": SimpleEnum(r.simple_enum).name.title(),
        "data_enum": data_enum,
        "maybe_amount": r.maybe_amount,
        "nested": {"count": r.nested.count, "note": r.nested.note},
    }


def record_from_dict(d: dict) -> Record:
    if not isinstance(d["primitive_bool"], bool):
        raise ValueError(f"primitive_bool must be true or false, got {d['primitive_bool']!r}")
    (variant, payload), = d["data_enum"].items()
    if variant == "Amount":
        data_enum: DataEnum = Amount(int(payload["value"]))
    elif variant == "Name":
        data_enum = Name(str(payload["label"]))
    else:
        raise ValueError(f"Unknown data_enum variant {variant!r}")
    try:
        simple_enum = SimpleEnum[str(d["simple_enum"]).upper()]
    except KeyError:
        raise ValueError(f"Unknown simple_enum variant {d['simple_enum']!r}") from None
    return Record(
        primitive_u8=int(d["primitive_u8"]),
        primitive_u16=int(d["primitive_u16"]),
        primitive_u32=int(d["primitive_u32"]),
        primitive_u64=int(d["primitive_u64"]),
        primitive_i64=int(d["primitive_i64"]),
        primitive_bool=d["primitive_bool"],
        fixed_pubkey_bytes=bytes.fromhex(d["fixed_pubkey_bytes"]),
        text=d["text"],
        data=bytes.fromhex(d.get("data", "")),
        keys=[bytes.fromhex(k) for k in d.get("keys", [])],
        simple_enum=simple_enum,
        data_enum=data_enum,
        maybe_amount=None if d.get("maybe_amount") is None else int(d["maybe_amount"]),
        nested=NestedStruct(int(d["nested"]["count"]), d["nested"]["note"]),
    )


__all__ = [
    "Amount",
    "DataEnum",
    "Name",
    "NestedStruct",
    "Record",
    "SimpleEnum",
    "decode_record",
    "encode_record",
    "encoded_size",
    "read_record",
    "record_from_dict",
    "record_to_dict",
    "write_record",
]
