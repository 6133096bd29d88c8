from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, List, Optional, Sequence
from urllib.parse import urljoin

import requests

from .config import DOWNLOAD_TIMEOUT_SECONDS, MAX_REDIRECTS
from .images import ImageDescriptor, unique_file_path


REDIRECT_STATUSES = (301, 302)
CHUNK_SIZE = 8 * 1024

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], requests.Session]


class DownloadError(RuntimeError):
    """Raised when a single file could not be fetched."""


def ensure_directory(path: Path) -> None:
    if not path.exists():
        path.mkdir(parents=True, exist_ok=True)
        logger.debug("Created directory %s", path)


def _open_response(
    session: requests.Session
    ,url: str
    ,*
    ,deadline: float
    ,max_redirects: int
) -> requests.Response:
    """GET url, following 301/302 by hand so the hop count stays bounded."""

    current = url
    for _ in range(max_redirects + 1):
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise DownloadError(f"Timed out fetching {url}")
        response = session.get(current, stream=True, allow_redirects=False, timeout=(remaining, remaining))
        if response.status_code not in REDIRECT_STATUSES:
            return response

        location = response.headers.get("Location")
        response.close()
        if not location:
            raise DownloadError(f"HTTP {response.status_code} without a Location header for {current}")
        current = urljoin(current, location)
    raise DownloadError(f"Too many redirects (>{max_redirects}) for {url}")


def _stream_to_file(response: requests.Response, dest_path: Path, cancelled: threading.Event) -> None:
    """Copy the body into dest_path (never replacing an existing file), deleting it on failure."""

    try:
        with open(dest_path, "xb") as handle:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if cancelled.is_set():
                    raise DownloadError("Download cancelled")
                if chunk:
                    handle.write(chunk)
    except FileExistsError:
        raise
    except Exception:
        dest_path.unlink(missing_ok=True)
        raise


def _fetch(
    session: requests.Session
    ,url: str
    ,dest_path: Path
    ,timeout: float
    ,max_redirects: int
) -> None:
    deadline = time.monotonic() + timeout
    response = _open_response(session, url, deadline=deadline, max_redirects=max_redirects)

    with response:
        if response.status_code != 200:
            raise DownloadError(f"Download failed: HTTP {response.status_code}")

        # Body is read on its own thread; the join below enforces the deadline.
        cancelled = threading.Event()
        errors: List[BaseException] = []

        def run() -> None:
            try:
                _stream_to_file(response, dest_path, cancelled)
            except BaseException as exc:
                errors.append(exc)

        reader = threading.Thread(target=run, name="notion2obsidian-download", daemon=True)
        reader.start()
        reader.join(max(0.0, deadline - time.monotonic()))

        if reader.is_alive():
            cancelled.set()
            response.close()
            dest_path.unlink(missing_ok=True)
            raise DownloadError(f"Timed out after {timeout}s downloading {url}")
        if errors:
            raise errors[0]


def download_file(
    url: str
    ,dest_path: Path
    ,*
    ,session: Optional[requests.Session] = None
    ,timeout: float = DOWNLOAD_TIMEOUT_SECONDS
    ,max_redirects: int = MAX_REDIRECTS
) -> None:
    """Stream url into dest_path within timeout seconds overall, deleting the partial file on failure."""

    if session is not None:
        _fetch(session, url, dest_path, timeout, max_redirects)
        return
    with requests.Session() as own_session:
        _fetch(own_session, url, dest_path, timeout, max_redirects)


def _download_one(
    image: ImageDescriptor
    ,session: requests.Session
    ,timeout: float
    ,max_redirects: int
) -> bool:
    ensure_directory(image.local_path.parent)
    image.local_path = unique_file_path(image.local_path)
    try:
        logger.debug("Downloading image: %s", image.url)
        download_file(image.url, image.local_path, session=session, timeout=timeout, max_redirects=max_redirects)
    except (DownloadError, requests.RequestException, OSError) as exc:
        logger.warning("Failed to download image %s: %s", image.url, exc)
        return False
    logger.debug("Saved to %s", image.local_path)
    return True


def _download_pooled(
    images: Sequence[ImageDescriptor]
    ,session_factory: SessionFactory
    ,timeout: float
    ,max_redirects: int
    ,max_workers: int
) -> List[bool]:
    """Download on a thread pool where every worker thread owns its session."""

    local = threading.local()
    sessions: List[requests.Session] = []
    lock = threading.Lock()

    def worker_session() -> requests.Session:
        if not hasattr(local, "session"):
            local.session = session_factory()
            with lock:
                sessions.append(local.session)
        return local.session

    try:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            return list(
                pool.map(lambda image: _download_one(image, worker_session(), timeout, max_redirects), images)
            )
    finally:
        for worker in sessions:
            worker.close()


def download_images(
    images: Sequence[ImageDescriptor]
    ,image_dir: Path
    ,*
    ,session: Optional[requests.Session] = None
    ,timeout: float = DOWNLOAD_TIMEOUT_SECONDS
    ,max_redirects: int = MAX_REDIRECTS
    ,max_workers: int = 1
    ,session_factory: SessionFactory = requests.Session
) -> List[ImageDescriptor]:
    """Download each image, returning only those that were saved.

    Sequential downloads share session (or one session made by session_factory
    and closed afterwards). With max_workers > 1 each worker thread gets its
    own session from session_factory.
    """

    if not images:
        return []

    ensure_directory(Path(image_dir))

    if max_workers > 1:
        outcomes = _download_pooled(images, session_factory, timeout, max_redirects, max_workers)
    elif session is not None:
        outcomes = [_download_one(image, session, timeout, max_redirects) for image in images]
    else:
        own_session = session_factory()
        try:
            outcomes = [_download_one(image, own_session, timeout, max_redirects) for image in images]
        finally:
            own_session.close()

    return [image for image, ok in zip(images, outcomes) if ok]
