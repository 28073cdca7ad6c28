import re
from typing import Mapping

from email_validator import EmailNotValidError, validate_email

from signpad.schemas.submission import SubmissionRecord

DRAWN_SIGNATURE_RE = re.compile(r"^data:image/(png|webp);base64,")
TERMS_CHECKED = "on"
SIGNATURE_METHODS = {"drawn", "typed"}


def _field(data: Mapping[str, str], name: str) -> str:
    value = data.get(name)
    return value if isinstance(value, str) else ""


def _is_valid_email(value: str) -> bool:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def validate_input(data: Mapping[str, str], require_signature: bool = True) -> list[str]:
    """Check a raw form post and return every violation found, in field order.

    An empty list means the submission is valid.
    """
    errors: list[str] = []

    if not _field(data, "fullName").strip():
        errors.append("Full name is required.")

    email = _field(data, "email").strip()
    if not email or not _is_valid_email(email):
        errors.append("Valid email address is required.")

    if data.get("agreeTerms") != TERMS_CHECKED:
        errors.append("You must agree to the terms and conditions.")

    if require_signature:
        method = _field(data, "signatureMethod")
        signature = _field(data, "signatureData")

        if not signature:
            errors.append("Signature is required.")
        elif method == "drawn":
            if not DRAWN_SIGNATURE_RE.match(signature):
                errors.append("Invalid signature image format.")
        elif method == "typed":
            if len(signature.strip()) < 2:
                errors.append("Typed signature must be at least 2 characters long.")
        else:
            errors.append("Invalid signature method.")

    return errors


def normalize_submission(
    data: Mapping[str, str],
    client_ip: str | None = None,
    user_agent: str | None = None,
) -> SubmissionRecord:
    """Build the record to persist from an already validated form post."""
    method = _field(data, "signatureMethod")
    signature = _field(data, "signatureData")
    # A row claiming "drawn" must have files; without a payload it is stored as typed.
    if method not in SIGNATURE_METHODS or not signature.strip():
        method = "typed"
    company = _field(data, "company").strip()

    return SubmissionRecord(
        full_name=_field(data, "fullName").strip(),
        email=_field(data, "email").strip().lower(),
        company=company or None,
        signature_method=method,
        # Drawn signatures live on disk; only typed text goes into the row.
        signature_text=signature.strip() if method == "typed" and signature.strip() else None,
        agree_terms=data.get("agreeTerms") == TERMS_CHECKED,
        ip_address=client_ip,
        user_agent=user_agent,
    )
