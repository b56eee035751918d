"""
core/documents.py -- Brazilian tax identifier (CPF / CNPJ) validation.

  CPF  -- individual taxpayer number, 11 digits, 2 check digits.
  CNPJ -- entity taxpayer number, 14 digits, 2 check digits.

Input may carry punctuation ("529.982.247-25", "11.222.333/0001-81"); every
non-digit character is stripped before validation. The length decides the
scheme, and the check digits are verified by validate_docbr, which also
rejects all-identical sequences such as "00000000000".

Layer rule: no imports from api/ or auth/.
"""

from __future__ import annotations

import re

from validate_docbr import CNPJ, CPF

from core.errors import InvalidFormatError

CPF_LENGTH = 11
CNPJ_LENGTH = 14

_NON_DIGITS = re.compile(r"\D")

_cpf_validator = CPF()
_cnpj_validator = CNPJ()


def clean_document(raw: str | None) -> str:
    """Return only the digits of raw ("" for None)."""
    if raw is None:
        return ""
    return _NON_DIGITS.sub("", str(raw))


def is_valid_cpf(digits: str) -> bool:
    """Checksum test for an already-cleaned 11 digit string."""
    return len(digits) == CPF_LENGTH and digits.isdigit() and _cpf_validator.validate(digits)


def is_valid_cnpj(digits: str) -> bool:
    """Checksum test for an already-cleaned 14 digit string."""
    return len(digits) == CNPJ_LENGTH and digits.isdigit() and _cnpj_validator.validate(digits)


def validate_document(raw: str | None) -> bool:
    """Validate a CPF or CNPJ, punctuation allowed.

    Raises InvalidFormatError when the cleaned value is neither 11 nor 14
    digits long (this includes input with no digits at all). A value of the
    right length that fails its checksum returns False rather than raising.
    """
    digits = clean_document(raw)
    if len(digits) not in (CPF_LENGTH, CNPJ_LENGTH):
        raise InvalidFormatError("The CPF/CNPJ provided is in an invalid format.")
    if len(digits) == CPF_LENGTH:
        return is_valid_cpf(digits)
    return is_valid_cnpj(digits)
