"""Host boundary: what the program sees of the ledger.

The host builds one AccountInfo per account the caller listed and passes a
HostContext for everything the program cannot do on its own. Authorization
and ownership arrive here as plain facts; the program never looks them up.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Protocol

from .errors import NotEnoughAccountKeys


@dataclass
class AccountInfo:
    key: bytes
    owner: bytes
    lamports: int = 0
    data: bytearray = field(default_factory=bytearray)
    is_signer: bool = False
    is_writable: bool = False

    @property
    def data_len(self) -> int:
        return len(self.data)

    def owner_matches(self, program_id: bytes) -> bool:
        return self.owner == program_id


class HostContext(Protocol):
    def log(self, message: str) -> None:
        ...

    def minimum_balance(self, data_len: int) -> int:
        ...

    def create_account(
        self,
        payer: AccountInfo,
        new_account: AccountInfo,
        system_program: AccountInfo,
        lamports: int,
        space: int,
        owner: bytes,
    ) -> None:
        """Allocate ``space`` zeroed bytes for ``new_account`` owned by ``owner``."""
        ...


def next_account(it: Iterator[AccountInfo]) -> AccountInfo:
    try:
        return next(it)
    except StopIteration:
        raise NotEnoughAccountKeys() from None
