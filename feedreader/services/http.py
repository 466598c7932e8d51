"""Outbound HTTP for page discovery and feed fetching."""

from __future__ import annotations

import logging
import time
from typing import Optional
from urllib.parse import urlparse

import requests

from ..config import get_fetch_timeout, get_user_agent
from ..errors import FetchError, ValidationError
from ..observability.metrics import FEED_FETCH_DURATION


logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = {"http", "https"}


def validate_remote_url(url: Optional[str]) -> str:
    """Return ``url`` stripped, or raise :class:`ValidationError` if unusable."""

    value = (url or "").strip()
    if not value:
        raise ValidationError("Missing url parameter", details={"field": "url"})
    parsed = urlparse(value)
    if parsed.scheme.lower() not in _ALLOWED_SCHEMES or not parsed.netloc:
        raise ValidationError("Invalid URL", details={"field": "url", "url": value})
    return value


def http_get(
    url: str,
    *,
    accept: Optional[str] = None,
    error_cls: type[FetchError] = FetchError,
) -> requests.Response:
    """GET ``url`` with the configured timeout; non-2xx responses raise ``error_cls``."""

    headers = {"User-Agent": get_user_agent()}
    if accept:
        headers["Accept"] = accept
    timeout = get_fetch_timeout()
    start = time.monotonic()
    try:
        response = requests.get(url, headers=headers, timeout=timeout)
    except requests.exceptions.Timeout as exc:
        raise error_cls(url, f"Timed out after {timeout:g}s fetching {url}", cause=exc) from exc
    except requests.exceptions.RequestException as exc:
        raise error_cls(url, f"Error making GET request to {url}", cause=exc) from exc
    finally:
        FEED_FETCH_DURATION.observe(time.monotonic() - start)

    if not 200 <= response.status_code < 300:
        logger.info("GET %s returned HTTP %s", url, response.status_code)
        cause = requests.exceptions.HTTPError(
            f"{response.status_code} {response.reason or ''}".strip(),
            response=response,
        )
        raise error_cls(url, f"Received {response.status_code} response from {url}", cause=cause) from cause
    return response
