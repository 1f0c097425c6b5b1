"""
Subject validation and normalization.

Checks IP addresses and email addresses before anything is sent upstream,
and applies email masking.
"""

import ipaddress
import re
from dataclasses import dataclass
from typing import Optional

import idna

from .enums import ErrorCode
from .exceptions import ValidationError


# Local part: printable ASCII without whitespace, quotes or angle brackets.
LOCAL_PART_PATTERN = re.compile(r"^[A-Za-z0-9!#$%&'*+/=?^_`{|}~.-]{1,64}$")

MASKED_LOCAL_PART = "anonymous"


@dataclass
class SubjectValidationResult:
    """Result of validating a single subject."""

    valid: bool
    canonical: Optional[str]
    error: Optional[ValidationError]

    def raise_for_error(self) -> str:
        """Return the canonical subject or raise the validation error."""
        if not self.valid:
            raise self.error
        return self.canonical


def is_email(subject: str) -> bool:
    """Email subjects are told apart from IPs by the '@'."""
    return "@" in subject


def mask_email(email: str) -> str:
    """Replace the local part so the address cannot be attributed to a person."""
    if "@" not in email:
        return email
    return f"{MASKED_LOCAL_PART}@{email.split('@', 1)[1]}"


class SubjectValidator:
    """
    Validates checked subjects.

    IP addresses are validated with the ``ipaddress`` module and kept in
    their original textual form. Email domains must survive IDNA encoding.
    """

    def validate_ip(self, raw_ip: str) -> SubjectValidationResult:
        if not isinstance(raw_ip, str) or not raw_ip.strip():
            return self._failure(ErrorCode.INVALID_IP, "IP address is empty", raw_ip)

        candidate = raw_ip.strip()
        try:
            ipaddress.ip_address(candidate)
        except ValueError:
            return self._failure(
                ErrorCode.INVALID_IP, f"Invalid IP address: {raw_ip}", raw_ip
            )

        return SubjectValidationResult(valid=True, canonical=candidate, error=None)

    def validate_email(self, raw_email: str) -> SubjectValidationResult:
        if not isinstance(raw_email, str) or not raw_email.strip():
            return self._failure(ErrorCode.INVALID_EMAIL, "Email address is empty", raw_email)

        candidate = raw_email.strip()
        if candidate.count("@") != 1:
            return self._failure(
                ErrorCode.INVALID_EMAIL, f"Invalid email address: {raw_email}", raw_email
            )

        local, domain = candidate.split("@")
        if (
            not LOCAL_PART_PATTERN.match(local)
            or local.startswith(".")
            or local.endswith(".")
            or ".." in local
        ):
            return self._failure(
                ErrorCode.INVALID_EMAIL, f"Invalid email address: {raw_email}", raw_email
            )

        if "." not in domain:
            return self._failure(
                ErrorCode.INVALID_EMAIL, f"Invalid email domain: {domain}", raw_email
            )

        try:
            ascii_domain = idna.encode(domain.lower(), uts46=True).decode("ascii")
        except idna.IDNAError as e:
            return self._failure(
                ErrorCode.INVALID_EMAIL,
                f"Invalid email domain: {domain}",
                raw_email,
                idna_error=str(e),
            )

        return SubjectValidationResult(
            valid=True, canonical=f"{local}@{ascii_domain}", error=None
        )

    def is_valid_ip(self, raw_ip: str) -> bool:
        return self.validate_ip(raw_ip).valid

    def is_valid_email(self, raw_email: str) -> bool:
        return self.validate_email(raw_email).valid

    @staticmethod
    def _failure(
        code: ErrorCode, message: str, raw_input, **extra
    ) -> SubjectValidationResult:
        return SubjectValidationResult(
            valid=False,
            canonical=None,
            error=ValidationError(
                code=code.value,
                message=message,
                details={"raw_input": raw_input, **extra},
            ),
        )
