"""Slot record program - size-preserving Create / Update / Validate."""
from .accounts import AccountInfo, HostContext
from .errors import ERRORS, ProgramError
from .instruction import Initialize, Update, Validate, decode_instruction, encode_instruction
from .processor import process_instruction

__all__ = [
    "ERRORS",
    "AccountInfo",
    "HostContext",
    "Initialize",
    "ProgramError",
    "Update",
    "Validate",
    "decode_instruction",
    "encode_instruction",
    "process_instruction",
]
