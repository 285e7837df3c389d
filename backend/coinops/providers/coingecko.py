from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from http.client import HTTPException
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from pydantic import TypeAdapter, ValidationError

from coinops.schemas.coin import Quote

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.coingecko.com/api/v3"
DEFAULT_TIMEOUT = 10.0

_PRICE_PATH = "/simple/price"
_QUOTES = TypeAdapter(dict[str, Quote])


class UpstreamError(Exception):
    """The price provider could not deliver a usable response."""


def _build_url(base_url: str, ids: Sequence[str]) -> str:
    params = {
        "ids": ",".join(ids),
        "vs_currencies": "usd",
        "include_24hr_change": "true",
    }
    return f"{base_url.rstrip('/')}{_PRICE_PATH}?{urlencode(params, safe=',')}"


def fetch_quotes(
    ids: Sequence[str],
    *,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, Quote]:
    url = _build_url(base_url, ids)
    request = Request(url, headers={"Accept": "application/json"})
    try:
        with urlopen(request, timeout=timeout) as response:
            if response.status != 200:
                raise UpstreamError(f"unexpected status {response.status}")
            body = response.read().decode("utf-8")
        payload = json.loads(body)
    except HTTPError as exc:
        status = "rate limited" if exc.code == 429 else f"status {exc.code}"
        raise UpstreamError(f"coingecko responded with {status}") from exc
    except (URLError, HTTPException, OSError) as exc:
        raise UpstreamError(f"coingecko request failed: {exc}") from exc
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise UpstreamError("coingecko returned an undecodable body") from exc

    try:
        quotes = _QUOTES.validate_python(payload)
    except ValidationError as exc:
        raise UpstreamError("coingecko returned a malformed payload") from exc

    log.debug("Fetched %d quotes for %d ids", len(quotes), len(ids))
    return quotes
