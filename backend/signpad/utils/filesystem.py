from pathlib import Path


def ensure_upload_dir(upload_path: Path) -> Path:
    upload_path.mkdir(mode=0o755, parents=True, exist_ok=True)
    return upload_path


def resolve_in_dir(directory: Path, filename: str) -> Path | None:
    """Return ``directory / filename`` unless it escapes ``directory``."""
    base = directory.resolve()
    candidate = (base / filename).resolve()
    if candidate.parent != base:
        return None
    return candidate
