"""Program requests: [Tag(1) | Fields...] with the record codec rules."""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from slotrec_core.codec import DecodeError, InvalidTag, Reader, Writer
from slotrec_core.schema import Record, read_record, write_record

from .errors import InvalidInstructionData


@dataclass
class Initialize:
    """Create (or re-initialize) the slot and store the full record."""
    data: Record
    TAG: ClassVar[int] = 0


@dataclass
class Update:
    """Overwrite fields without changing the encoded length."""
    new_u64: int
    new_bool: bool
    new_text: str
    new_option: Optional[int]
    TAG: ClassVar[int] = 1


@dataclass
class Validate:
    """Read the slot and compare ``primitive_u8``."""
    expected_u8: int
    TAG: ClassVar[int] = 2


Instruction = Union[Initialize, Update, Validate]


def encode_instruction(ix: Instruction) -> bytes:
    w = Writer()
    if isinstance(ix, Initialize):
        w.tag(Initialize.TAG, "instruction")
        write_record(w, ix.data)
    elif isinstance(ix, Update):
        w.tag(Update.TAG, "instruction")
        w.u64(ix.new_u64, "new_u64")
        w.boolean(ix.new_bool, "new_bool")
        w.string(ix.new_text, "new_text")
        w.option(ix.new_option, lambda w_, v: w_.u64(v, "new_option"), "new_option")
    elif isinstance(ix, Validate):
        w.tag(Validate.TAG, "instruction")
        w.u8(ix.expected_u8, "expected_u8")
    else:
        raise TypeError(f"Unknown instruction {type(ix).__name__}")
    return w.getvalue()


def read_instruction(rd: Reader) -> Instruction:
    t = rd.tag("instruction")
    if t == Initialize.TAG:
        return Initialize(read_record(rd))
    if t == Update.TAG:
        return Update(
            new_u64=rd.u64("new_u64"),
            new_bool=rd.boolean("new_bool"),
            new_text=rd.string("new_text"),
            new_option=rd.option(lambda r: r.u64("new_option"), "new_option"),
        )
    if t == Validate.TAG:
        return Validate(rd.u8("expected_u8"))
    raise InvalidTag("instruction", t)


def decode_instruction(buf: bytes) -> Instruction:
    rd = Reader(buf)
    try:
        ix = read_instruction(rd)
        rd.finish()
    except DecodeError as e:
        raise InvalidInstructionData(str(e)) from e
    return ix
