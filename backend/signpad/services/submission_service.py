import logging
from typing import Mapping

from signpad.config import Settings
from signpad.errors import DecodeError, PersistenceError, StorageError
from signpad.schemas.submission import SubmissionOutcome
from signpad.services.signature_service import (
    SIGNATURE_FORMATS,
    remove_signature_files,
    rename_signature_files,
    restore_signature_files,
    save_signature_files,
)
from signpad.services.submission_store import SubmissionStore
from signpad.services.validation_service import normalize_submission, validate_input
from signpad.utils.security import generate_temp_id

logger = logging.getLogger(__name__)
success_logger = logging.getLogger("signpad.submissions")


def resolve_formats(form: Mapping[str, str], cfg: Settings) -> list[str]:
    formats = [cfg.default_format]
    if cfg.save_multiple_formats:
        formats = list(SIGNATURE_FORMATS)
    requested = form.get("signatureFormat")
    if requested and requested in cfg.allowed_formats:
        formats = [requested]
    return formats


def _finalize_files(store: SubmissionStore, submission_id: int, files: dict[str, str], cfg: Settings) -> dict[str, str]:
    """Swap temp-named files for id-named ones; on failure keep the temp names."""
    try:
        renamed = rename_signature_files(files, submission_id, cfg)
    except StorageError as exc:
        logger.error("Signature rename failed, keeping temporary filenames - Context: %s",
                     {"submission_id": submission_id, "error": str(exc), "files": files})
        return files

    try:
        store.update_file_references(submission_id, renamed)
    except PersistenceError as exc:
        restore_signature_files(renamed, files, cfg)
        logger.error("File reference update failed, keeping temporary filenames - Context: %s",
                     {"submission_id": submission_id, "error": str(exc)})
        return files
    return renamed


def process_submission(
    form: Mapping[str, str],
    client_ip: str | None,
    user_agent: str | None,
    store: SubmissionStore,
    cfg: Settings,
) -> SubmissionOutcome:
    """Validate, store the signature and record the submission.

    User-correctable problems come back as a failed outcome. Storage and
    database failures are raised for the caller to report.
    """
    errors = validate_input(form, require_signature=cfg.require_signature)
    if errors:
        return SubmissionOutcome(success=False, message="Validation failed", data={"errors": errors})

    record = normalize_submission(form, client_ip, user_agent)
    signature_data = form.get("signatureData") or ""

    files: dict[str, str] = {}
    if record.signature_method == "drawn" and signature_data:
        try:
            files = save_signature_files(signature_data, generate_temp_id(), resolve_formats(form, cfg), cfg)
        except DecodeError as exc:
            return SubmissionOutcome(
                success=False,
                message="Signature could not be processed.",
                data={"errors": [exc.message]},
            )
        record.signature_files = files

    try:
        submission_id = store.insert(record)
    except PersistenceError:
        remove_signature_files(files.values(), cfg)
        raise

    if files:
        files = _finalize_files(store, submission_id, files, cfg)

    success_logger.info("Form submitted successfully - ID: %s, Email: %s, Method: %s",
                        submission_id, record.email, record.signature_method)

    return SubmissionOutcome(
        success=True,
        message="Form submitted successfully!",
        data={
            "submission_id": submission_id,
            "signature_method": record.signature_method,
            "signature_files": files,
        },
    )
