from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse

from signpad.config import Settings, get_settings
from signpad.dependencies import get_store, require_admin_token
from signpad.models.submission import FormSubmission
from signpad.schemas.submission import (
    SignatureDeleteResponse,
    SubmissionListResponse,
    SubmissionResponse,
)
from signpad.services.signature_service import remove_signature_files, signature_file_path
from signpad.services.submission_store import SubmissionStore

router = APIRouter(
    prefix="/submissions",
    tags=["submissions-admin"],
    dependencies=[Depends(require_admin_token)],
)

MEDIA_TYPES = {
    "png": "image/png",
    "webp": "image/webp",
    "svg": "image/svg+xml",
}


def _submission_to_response(row: FormSubmission) -> SubmissionResponse:
    return SubmissionResponse(
        id=row.id,
        full_name=row.full_name,
        email=row.email,
        company=row.company,
        signature_method=row.signature_method,
        signature_data=row.signature_data,
        signature_file_png=row.signature_file_png,
        signature_file_webp=row.signature_file_webp,
        signature_file_svg=row.signature_file_svg,
        agree_terms=bool(row.agree_terms),
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        submitted_at=row.submitted_at,
    )


@router.get("", response_model=SubmissionListResponse)
async def list_submissions(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    store: SubmissionStore = Depends(get_store),
):
    rows = store.list_submissions(page=page, per_page=per_page)
    return SubmissionListResponse(
        submissions=[_submission_to_response(r) for r in rows],
        total=store.count(),
        page=page,
        per_page=per_page,
    )


@router.get("/{submission_id}", response_model=SubmissionResponse)
async def get_submission(submission_id: int, store: SubmissionStore = Depends(get_store)):
    row = store.get(submission_id)
    if not row:
        raise HTTPException(status_code=404, detail="Submission not found")
    return _submission_to_response(row)


@router.get("/{submission_id}/signature/{fmt}")
async def download_signature(
    submission_id: int,
    fmt: str,
    store: SubmissionStore = Depends(get_store),
    cfg: Settings = Depends(get_settings),
):
    if fmt not in MEDIA_TYPES:
        raise HTTPException(status_code=400, detail=f"Invalid format. Must be one of: {sorted(MEDIA_TYPES)}")

    files = store.signature_files(submission_id)
    if files is None:
        raise HTTPException(status_code=404, detail="Submission not found")

    path = signature_file_path(files.get(fmt), cfg)
    if path is None:
        raise HTTPException(status_code=404, detail="Signature file missing")
    return FileResponse(path=str(path), filename=path.name, media_type=MEDIA_TYPES[fmt])


@router.delete("/{submission_id}/signature", response_model=SignatureDeleteResponse)
async def delete_signature(
    submission_id: int,
    store: SubmissionStore = Depends(get_store),
    cfg: Settings = Depends(get_settings),
):
    """Remove the signature image files of a submission. The row itself is kept."""
    files = store.signature_files(submission_id)
    if files is None:
        raise HTTPException(status_code=404, detail="Submission not found")
    deleted = remove_signature_files(files.values(), cfg)
    return SignatureDeleteResponse(submission_id=submission_id, deleted=deleted)
