import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from signpad.errors import PersistenceError
from signpad.models.submission import FormSubmission
from signpad.schemas.submission import SubmissionRecord

logger = logging.getLogger(__name__)

FILE_COLUMNS = {
    "png": "signature_file_png",
    "webp": "signature_file_webp",
    "svg": "signature_file_svg",
}


class SubmissionStore:
    """Reads and writes ``form_submissions`` rows through the ORM."""

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, action: str, exc: SQLAlchemyError) -> PersistenceError:
        self.db.rollback()
        logger.error("Database error during %s - Context: %s", action, {"error": str(exc)})
        return PersistenceError(f"{action} failed")

    def insert(self, record: SubmissionRecord) -> int:
        now = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        row = FormSubmission(
            full_name=record.full_name,
            email=record.email,
            company=record.company,
            signature_method=record.signature_method,
            signature_data=record.signature_text if record.signature_method == "typed" else None,
            agree_terms=record.agree_terms,
            ip_address=record.ip_address,
            user_agent=record.user_agent,
            submitted_at=now,
        )
        for fmt, column in FILE_COLUMNS.items():
            setattr(row, column, record.signature_files.get(fmt))

        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as exc:
            raise self._fail("insert", exc) from exc
        return row.id

    def update_file_references(self, submission_id: int, files: dict[str, str]) -> None:
        values = {
            FILE_COLUMNS[fmt]: name
            for fmt, name in files.items()
            if fmt in FILE_COLUMNS and name
        }
        if not values:
            return
        try:
            self.db.query(FormSubmission).filter(FormSubmission.id == submission_id).update(values)
            self.db.commit()
        except SQLAlchemyError as exc:
            raise self._fail("file reference update", exc) from exc

    def get(self, submission_id: int) -> FormSubmission | None:
        try:
            return self.db.query(FormSubmission).filter(FormSubmission.id == submission_id).first()
        except SQLAlchemyError as exc:
            raise self._fail("lookup", exc) from exc

    def count(self) -> int:
        try:
            return self.db.query(FormSubmission).count()
        except SQLAlchemyError as exc:
            raise self._fail("count", exc) from exc

    def list_submissions(self, page: int = 1, per_page: int = 50) -> list[FormSubmission]:
        try:
            return (
                self.db.query(FormSubmission)
                .order_by(FormSubmission.submitted_at.desc(), FormSubmission.id.desc())
                .offset((page - 1) * per_page)
                .limit(per_page)
                .all()
            )
        except SQLAlchemyError as exc:
            raise self._fail("listing", exc) from exc

    def signature_files(self, submission_id: int) -> dict[str, str] | None:
        """Stored filename per format, or None when the submission does not exist."""
        row = self.get(submission_id)
        if row is None:
            return None
        return {
            fmt: getattr(row, column)
            for fmt, column in FILE_COLUMNS.items()
            if getattr(row, column)
        }
