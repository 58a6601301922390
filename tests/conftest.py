import pytest

from slotrec_core.schema import Amount, Name, NestedStruct, Record, SimpleEnum

AUTHORITY = bytes(range(32))


def make_record(**overrides) -> Record:
    fields = dict(
        primitive_u8=42,
        primitive_u16=500,
        primitive_u32=99_999,
        primitive_u64=123456789,
        primitive_i64=-123456,
        primitive_bool=True,
        fixed_pubkey_bytes=AUTHORITY,
        text="abc",
        data=bytes([1, 2, 3, 4]),
        keys=[AUTHORITY, bytes(32)],
        simple_enum=SimpleEnum.SECOND,
        data_enum=Amount(42),
        maybe_amount=None,
        nested=NestedStruct(count=7, note="nested"),
    )
    fields.update(overrides)
    return Record(**fields)


@pytest.fixture
def record():
    return make_record()


@pytest.fixture
def named_record():
    return make_record(data_enum=Name("label"), maybe_amount=999, text="héllo")
