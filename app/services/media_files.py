from __future__ import annotations

"""
Uploaded-media file helpers
===========================

Uploads are referenced by site-relative paths such as ``/uploads/pp.png``
(written by the legacy uploader, sometimes with Windows separators). This
module decides which references are ours, maps them onto the local disk, and
removes them best-effort.

- `is_managed_upload(path)`           → bool
- `resolve_upload_path(path, base)`   → Path under `base` (default: cwd)
- `collect_user_upload_paths(u, ps)`  → ordered, de-duplicated references
- `delete_upload_files(paths, base)`  → {"deleted", "missing", "errors"}
"""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
import logging

from app.core.config import settings

logger = logging.getLogger("alpha.media")


def _normalize(path: Optional[str]) -> str:
    return (path or "").strip().replace("\\", "/")


def _prefix_parts() -> List[str]:
    return [part for part in settings.UPLOADS_URL_PREFIX.split("/") if part]


def is_managed_upload(path: Optional[str]) -> bool:
    """True for local upload references; external URLs and blanks are not ours."""
    normalized = _normalize(path)
    if not normalized:
        return False
    return normalized.startswith(settings.UPLOADS_URL_PREFIX.rstrip("/") + "/")


def resolve_upload_path(path: str, base_dir: Optional[Path | str] = None) -> Path:
    """Map ``/uploads/x.mp3`` (or ``\\uploads\\x.mp3``) to ``<base_dir>/uploads/x.mp3``.

    Raises `ValueError` when the reference points outside the uploads tree
    (``..`` segments, symlinks).
    """
    normalized = _normalize(path)
    if normalized.startswith("/"):
        normalized = normalized[1:]
    base = Path(base_dir) if base_dir is not None else Path.cwd()
    target = base.joinpath(*[part for part in normalized.split("/") if part])
    root = base.joinpath(*_prefix_parts()).resolve()
    resolved = target.resolve()
    if resolved == root or not resolved.is_relative_to(root):
        raise ValueError(f"{path!r} is outside the uploads directory")
    return target


def collect_user_upload_paths(user: Any, podcasts: Iterable[Any]) -> List[str]:
    """Gather every managed upload owned by `user`, in a stable order.

    Order: profile picture, then per podcast its image/audio/video followed by
    each episode's audio/video.
    """
    seen: set[str] = set()
    ordered: List[str] = []

    def _add(value: Optional[str]) -> None:
        if is_managed_upload(value) and value not in seen:
            seen.add(value)
            ordered.append(value)

    _add(getattr(user, "profile_picture", None))
    for podcast in podcasts:
        _add(podcast.image)
        _add(podcast.audio_url)
        _add(podcast.video_url)
        for episode in podcast.episodes or []:
            _add(episode.audio_url)
            _add(episode.video_url)
    return ordered


def delete_upload_files(paths: Iterable[str], base_dir: Optional[Path | str] = None) -> Dict[str, List[Any]]:
    """Remove each referenced file; never raises for filesystem errors."""
    result: Dict[str, List[Any]] = {"deleted": [], "missing": [], "errors": []}
    for ref in paths:
        try:
            target = resolve_upload_path(ref, base_dir)
        except ValueError as exc:
            logger.warning("Refusing to delete %s: %s", ref, exc)
            result["errors"].append({"path": ref, "error": str(exc)})
            continue
        try:
            target.unlink()
        except FileNotFoundError:
            result["missing"].append(ref)
        except OSError as exc:
            logger.warning("Could not delete upload %s: %s", target, exc)
            result["errors"].append({"path": ref, "error": str(exc)})
        else:
            result["deleted"].append(ref)
    return result


__all__ = [
    "is_managed_upload",
    "resolve_upload_path",
    "collect_user_upload_paths",
    "delete_upload_files",
]
