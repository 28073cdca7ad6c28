from typing import Any

from pydantic import BaseModel


class SubmissionRecord(BaseModel):
    full_name: str
    email: str
    company: str | None = None
    signature_method: str
    signature_text: str | None = None
    signature_files: dict[str, str] = {}
    agree_terms: bool
    ip_address: str | None = None
    user_agent: str | None = None


class SubmissionOutcome(BaseModel):
    success: bool
    message: str
    data: dict[str, Any] | None = None


class ApiResponse(BaseModel):
    success: bool
    message: str
    data: dict[str, Any] | None = None
    timestamp: str


class SubmissionResponse(BaseModel):
    id: int
    full_name: str
    email: str
    company: str | None
    signature_method: str
    signature_data: str | None
    signature_file_png: str | None
    signature_file_webp: str | None
    signature_file_svg: str | None
    agree_terms: bool
    ip_address: str | None
    user_agent: str | None
    submitted_at: str


class SubmissionListResponse(BaseModel):
    submissions: list[SubmissionResponse]
    total: int
    page: int
    per_page: int


class SignatureDeleteResponse(BaseModel):
    submission_id: int
    deleted: int
