from __future__ import annotations

ERRORS = {
  "E_INVALID_DISCRIMINATOR": "Invalid account discriminator",
  "E_SIZE_MISMATCH": "Account data size mismatch",
  "E_STRING_LENGTH_CHANGE": "String length cannot change after initialization",
  "E_OPTION_VARIANT_CHANGE": "Option variant cannot change after initialization",
  "E_INCORRECT_PROGRAM_ID": "Account is not owned by this program",
  "E_MISSING_SIGNATURE": "Missing required signature",
  "E_INVALID_ACCOUNT_DATA": "Account data failed validation",
  "E_ACCOUNT_DECODE": "Account data could not be decoded",
  "E_INVALID_INSTRUCTION": "Instruction data could not be decoded",
  "E_NOT_ENOUGH_ACCOUNTS": "Not enough account keys provided",
}


class ProgramError(Exception):
    """Terminal failure of one instruction. Nothing is written when raised."""

    code = "E_PROGRAM"
    custom_code: int | None = None

    def __init__(self, detail: str | None = None):
        self.detail = detail
        message = ERRORS.get(self.code, self.code)
        super().__init__(f"{message}: {detail}" if detail else message)

    def to_dict(self) -> dict:
        out = {"code": self.code, "message": ERRORS.get(self.code, self.code)}
        if self.custom_code is not None:
            out["custom"] = self.custom_code
        if self.detail:
            out["detail"] = self.detail
        return out


# Schema errors, numbered as custom program errors.

class InvalidDiscriminator(ProgramError):
    code = "E_INVALID_DISCRIMINATOR"
    custom_code = 0


class SizeMismatch(ProgramError):
    code = "E_SIZE_MISMATCH"
    custom_code = 1


class StringLengthChange(ProgramError):
    code = "E_STRING_LENGTH_CHANGE"
    custom_code = 2


class OptionVariantChange(ProgramError):
    code = "E_OPTION_VARIANT_CHANGE"
    custom_code = 3


# Host-boundary and request errors.

class OwnershipError(ProgramError):
    code = "E_INCORRECT_PROGRAM_ID"


class MissingAuthorization(ProgramError):
    code = "E_MISSING_SIGNATURE"


class ValidationMismatch(ProgramError):
    code = "E_INVALID_ACCOUNT_DATA"


class AccountDataError(ProgramError):
    code = "E_ACCOUNT_DECODE"


class InvalidInstructionData(ProgramError):
    code = "E_INVALID_INSTRUCTION"


class NotEnoughAccountKeys(ProgramError):
    code = "E_NOT_ENOUGH_ACCOUNTS"
