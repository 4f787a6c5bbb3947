"""Deliver files to the remote endpoint as multipart uploads."""

import logging
import mimetypes
from pathlib import Path
from typing import Optional, Sequence

import httpx

from .config import SyncConfig
from .exceptions import RequestBuildError, ServerRejectedError, TransportError
from .models import UploadOutcome
from .paths import join_segments

logger = logging.getLogger(__name__)

FILE_FIELD = "file"
PATH_FIELD = "path"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def create_client(config: SyncConfig) -> httpx.Client:
    """Build the long-lived HTTP client shared by all uploads."""
    return httpx.Client(timeout=config.request_timeout)


def _send(
    client: httpx.Client,
    path: Path,
    url: str,
    routing_segments: Optional[Sequence[str]],
) -> httpx.Response:
    """
    Post one file and return the 2xx response.

    Raises:
        OSError: If the file cannot be opened
        TransportError: On network-level failure
        RequestBuildError: If the request cannot be encoded
        ServerRejectedError: On a non-2xx status
    """
    content_type = mimetypes.guess_type(path.name)[0] or DEFAULT_CONTENT_TYPE
    data = None
    if routing_segments is not None:
        data = {PATH_FIELD: join_segments(routing_segments)}

    with open(path, "rb") as f:
        try:
            response = client.post(
                url,
                files={FILE_FIELD: (path.name, f, content_type)},
                data=data,
            )
        except httpx.RequestError as e:
            raise TransportError(f"{type(e).__name__}: {e}", cause=e) from e
        except (ValueError, httpx.InvalidURL) as e:
            raise RequestBuildError(f"{type(e).__name__}: {e}") from e

    logger.debug(f"Response for {path}: {response.status_code} {response.reason_phrase}")
    if not response.is_success:
        raise ServerRejectedError(
            f"Server answered {response.status_code} for {path.name}",
            status_code=response.status_code,
        )
    return response


def upload(
    client: httpx.Client,
    path: Path,
    url: str,
    routing_segments: Optional[Sequence[str]] = None,
) -> UploadOutcome:
    """
    Upload a file and classify the result.

    A single synchronous POST is made; failures are not retried.

    Args:
        client: Shared HTTP client
        path: File to send
        url: Endpoint URL (suffix already applied)
        routing_segments: Directory segments between the watch root and the
            file; the ``path`` part is omitted when None

    Returns:
        SUCCESS for 2xx, SERVER_REJECTED with the status otherwise,
        TRANSPORT_ERROR with the cause for network failures, SKIPPED if
        the file could not be read or the request could not be encoded
    """
    try:
        response = _send(client, path, url, routing_segments)
    except ServerRejectedError as e:
        return UploadOutcome.rejected(path, e.status_code)
    except TransportError as e:
        return UploadOutcome.transport_error(path, str(e))
    except RequestBuildError as e:
        logger.warning(f"Cannot build upload request for {path!r}: {e}")
        return UploadOutcome.skipped(path, f"cannot encode request: {e}")
    except OSError as e:
        return UploadOutcome.skipped(path, f"cannot read file: {e}")

    return UploadOutcome.success(path, response.status_code)
