from __future__ import annotations

from typing import Any

import requests

from eth_sniper.utils.errors import PermanentGatewayError, TransientGatewayError

_TRANSIENT_STATUS = {408, 425, 429}


def request_json(method: str, url: str, provider: str, timeout: float, **kwargs) -> Any:
    """Perform one HTTP call and decode the JSON body.

    Timeouts, connection problems, 408/425/429 and 5xx become
    ``TransientGatewayError``; any other non-2xx status or an undecodable body
    becomes ``PermanentGatewayError``. No retries here; the gateway retries.
    """
    try:
        r = requests.request(method, url, timeout=timeout, **kwargs)
    except (requests.Timeout, requests.ConnectionError) as e:
        raise TransientGatewayError(f"{provider}: {type(e).__name__}", provider=provider) from e
    except requests.RequestException as e:
        raise PermanentGatewayError(f"{provider}: {e}", provider=provider) from e

    if r.status_code in _TRANSIENT_STATUS or r.status_code >= 500:
        raise TransientGatewayError(f"{provider}: HTTP {r.status_code}", provider=provider)
    if r.status_code == 404:
        raise PermanentGatewayError(f"{provider}: not found", provider=provider)
    if r.status_code >= 400:
        raise PermanentGatewayError(f"{provider}: HTTP {r.status_code}", provider=provider)
    try:
        return r.json()
    except ValueError as e:
        raise PermanentGatewayError(f"{provider}: invalid JSON response", provider=provider) from e
