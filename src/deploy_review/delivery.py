from __future__ import annotations

import json
import urllib.error
import urllib.request

from .errors import DeliveryFailed


def post_webhook(url: str, payload: dict, timeout_s: int = 30) -> str:
    if not (url or "").strip():
        raise ValueError("webhook url is required")

    body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    req = urllib.request.Request(
        url.strip(),
        method="POST",
        data=body,
        headers={"Content-Type": "application/json"},
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            code = int(getattr(resp, "status", 0) or 0)
            text = resp.read().decode("utf-8", errors="replace")
            if 200 <= code < 300:
                return text or "OK"
            raise DeliveryFailed(f"webhook delivery failed: HTTP {code}: {text[:500]}")
    except urllib.error.HTTPError as e:
        text = ""
        try:
            text = e.read().decode("utf-8", errors="replace")
        except Exception:
            text = ""
        raise DeliveryFailed(f"webhook delivery failed: HTTP {e.code}: {text[:500]}") from e
    except urllib.error.URLError as e:
        raise DeliveryFailed(f"webhook delivery failed: {e}") from e
