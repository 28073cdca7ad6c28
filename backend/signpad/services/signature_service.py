"""Turn data-URL signatures into image files in the upload directory.

Raster payloads are decoded once into a Pillow image and re-encoded into
every requested format. SVG payloads are written through unchanged. Files
are first named after a temporary token and renamed once the submission
row has an id.
"""
import base64
import binascii
import io
import logging
import math
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable

from PIL import Image

from signpad.config import Settings
from signpad.errors import DecodeError, StorageError
from signpad.utils.filesystem import ensure_upload_dir, resolve_in_dir

logger = logging.getLogger(__name__)

DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<body>.+)$", re.DOTALL)
SVG_MIME = "image/svg+xml"
RASTER_MIMES = {"image/png", "image/webp", "image/jpeg", "image/gif"}
FILENAME_PREFIX = "signature"
# Room for the "data:<mime>;base64," prefix in front of the payload.
DATA_URL_HEADER_ROOM = 64
SIGNATURE_FORMATS = ("png", "webp", "svg")

SVG_WRAPPER = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<svg xmlns="http://www.w3.org/2000/svg" xmlns:xlink="http://www.w3.org/1999/xlink" '
    'width="{width}" height="{height}" viewBox="0 0 {width} {height}">\n'
    '  <image width="{width}" height="{height}" '
    'href="data:image/png;base64,{payload}" xlink:href="data:image/png;base64,{payload}"/>\n'
    "</svg>\n"
)


def _timestamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")


def build_filename(token: str, extension: str) -> str:
    return f"{FILENAME_PREFIX}_{token}_{_timestamp()}_{uuid.uuid4().hex[:13]}.{extension}"


def max_data_url_length(max_bytes: int) -> int:
    """Longest data URL whose payload can still decode to ``max_bytes``."""
    return 4 * math.ceil(max_bytes / 3) + DATA_URL_HEADER_ROOM


def parse_data_url(value: str) -> tuple[str, str]:
    """Split ``data:<mime>;base64,<payload>`` into (mime, payload)."""
    match = DATA_URL_RE.match(value or "")
    if not match:
        raise DecodeError(DecodeError.MALFORMED_DATA_URL, "Signature data is not a valid image data URL.")
    return match.group("mime").lower(), match.group("body")


def _decode_body(body: str, max_bytes: int) -> bytes:
    compact = "".join(body.split())
    # Reject on the encoded length first so huge payloads are never decoded.
    if (len(compact) * 3) // 4 - 2 > max_bytes:
        raise DecodeError(DecodeError.OVERSIZE, "Signature file too large.")
    try:
        raw = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(DecodeError.MALFORMED_DATA_URL, "Signature data is not valid base64.") from exc
    if len(raw) > max_bytes:
        raise DecodeError(DecodeError.OVERSIZE, "Signature file too large.")
    return raw


def _open_image(raw: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(raw))
        image.load()
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeError(DecodeError.CORRUPT_IMAGE, "Signature image could not be read.") from exc
    return image


def _with_alpha(image: Image.Image) -> Image.Image:
    # Keep transparency: palette and grey images are widened to RGBA before encoding.
    if image.mode in ("RGB", "RGBA"):
        return image
    return image.convert("RGBA")


def _write_png(image: Image.Image, path: Path) -> None:
    _with_alpha(image).save(path, format="PNG", compress_level=9)


def _write_webp(image: Image.Image, path: Path) -> None:
    _with_alpha(image).save(path, format="WEBP", quality=90)


def _write_svg(image: Image.Image, path: Path) -> None:
    buf = io.BytesIO()
    _with_alpha(image).save(buf, format="PNG", compress_level=9)
    width, height = image.size
    payload = base64.b64encode(buf.getvalue()).decode("ascii")
    path.write_text(SVG_WRAPPER.format(width=width, height=height, payload=payload), encoding="utf-8")


ENCODERS: dict[str, Callable[[Image.Image, Path], None]] = {
    "png": _write_png,
    "webp": _write_webp,
    "svg": _write_svg,
}


def _requested_formats(formats: Iterable[str], allowed: Iterable[str]) -> list[str]:
    allowed_set = {f.lower() for f in allowed}
    selected: list[str] = []
    for fmt in formats:
        fmt = fmt.lower()
        if fmt in allowed_set and fmt in ENCODERS and fmt not in selected:
            selected.append(fmt)
    return selected


def _upload_dir(cfg: Settings) -> Path:
    try:
        return ensure_upload_dir(cfg.upload_path)
    except OSError as exc:
        raise StorageError(f"Upload directory unavailable: {cfg.upload_path}") from exc


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.error("Could not remove signature file %s: %s", path, exc)


def _save_svg(body: str, token: str, cfg: Settings) -> dict[str, str]:
    if "svg" not in cfg.allowed_formats:
        raise DecodeError(DecodeError.UNSUPPORTED_MIME, "SVG signatures are not accepted.")
    raw = _decode_body(body, cfg.max_file_size)
    if b"<svg" not in raw or b"</svg>" not in raw:
        raise DecodeError(DecodeError.INVALID_SVG, "Signature SVG content is invalid.")

    path = _upload_dir(cfg) / build_filename(token, "svg")
    try:
        path.write_bytes(raw)
    except OSError as exc:
        _discard(path)
        raise StorageError("Failed to save SVG file") from exc
    return {"svg": path.name}


def save_signature_files(data_url: str, token: str, formats: Iterable[str], cfg: Settings) -> dict[str, str]:
    """Persist a data-URL signature and return ``{format: filename}``.

    Nothing is left on disk when this raises: files written before the
    failure are removed again.
    """
    formats = list(formats)
    try:
        mime, body = parse_data_url(data_url)
        if mime == SVG_MIME:
            return _save_svg(body, token, cfg)
        if mime not in RASTER_MIMES:
            raise DecodeError(DecodeError.UNSUPPORTED_MIME, "Unsupported signature image type.")

        raw = _decode_body(body, cfg.max_file_size)
        image = _open_image(raw)
    except (DecodeError, StorageError) as exc:
        logger.warning("Signature file processing failed - Context: %s",
                       {"error": str(exc), "token": token, "formats": formats})
        raise

    saved: dict[str, str] = {}
    write_failed = False
    try:
        upload_dir = _upload_dir(cfg)
        with image:
            for fmt in _requested_formats(formats, cfg.allowed_formats):
                filename = build_filename(token, fmt)
                path = upload_dir / filename
                try:
                    ENCODERS[fmt](image, path)
                except OSError as exc:
                    write_failed = True
                    logger.warning("Writing %s signature failed: %s", fmt, exc)
                    _discard(path)
                    continue
                except Exception:
                    _discard(path)
                    raise
                saved[fmt] = filename

        if not saved:
            if write_failed:
                raise StorageError("Failed to save signature in any format")
            raise DecodeError(DecodeError.NO_FORMATS, "None of the requested signature formats is supported.")
    except Exception as exc:
        remove_signature_files(saved.values(), cfg)
        logger.error("Signature file processing failed - Context: %s",
                     {"error": str(exc), "token": token, "formats": formats})
        raise

    return saved


def rename_signature_files(files: dict[str, str], submission_id: int, cfg: Settings) -> dict[str, str]:
    """Rename temp-named files after the submission id.

    All or nothing: if one rename fails the others are moved back, so the
    caller's stored references stay valid.
    """
    upload_dir = cfg.upload_path
    stamp = _timestamp()
    renamed: dict[str, str] = {}
    try:
        for fmt, old_name in files.items():
            new_name = f"{FILENAME_PREFIX}_{submission_id}_{stamp}{Path(old_name).suffix}"
            (upload_dir / old_name).rename(upload_dir / new_name)
            renamed[fmt] = new_name
    except OSError as exc:
        restore_signature_files(renamed, files, cfg)
        raise StorageError(f"Failed to rename signature files for submission {submission_id}") from exc
    return renamed


def restore_signature_files(renamed: dict[str, str], original: dict[str, str], cfg: Settings) -> None:
    """Undo :func:`rename_signature_files` for the formats in ``renamed``."""
    for fmt, new_name in renamed.items():
        try:
            (cfg.upload_path / new_name).rename(cfg.upload_path / original[fmt])
        except OSError as exc:
            logger.error("Could not restore %s to %s: %s", new_name, original[fmt], exc)


def remove_signature_files(filenames: Iterable[str], cfg: Settings) -> int:
    """Best-effort delete; returns how many files were removed."""
    deleted = 0
    for name in filenames:
        path = resolve_in_dir(cfg.upload_path, name)
        if path is None or not path.is_file():
            continue
        try:
            path.unlink()
        except OSError as exc:
            logger.error("Could not remove signature file %s: %s", path, exc)
            continue
        deleted += 1
    return deleted


def signature_file_path(filename: str | None, cfg: Settings) -> Path | None:
    if not filename:
        return None
    path = resolve_in_dir(cfg.upload_path, filename)
    if path is None or not path.is_file():
        return None
    return path
