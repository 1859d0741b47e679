from __future__ import annotations

import urllib.error
import urllib.request

from . import __version__
from .errors import RemoteFetchError

DEFAULT_API_URL = "https://api.github.com"


def api_url_for(api_base_url: str, path: str) -> str:
    base = (api_base_url or DEFAULT_API_URL).strip().rstrip("/")
    return f"{base}/{path.lstrip('/')}"


def api_get(url: str, *, token: str = "", timeout_s: int = 30) -> tuple[int, str]:
    """
    GET `url` and return (HTTP status, body text).

    Non-2xx responses are returned rather than raised so callers can inspect
    the error body. Transport failures raise RemoteFetchError.
    """
    headers = {
        "Accept": "application/vnd.github+json",
        "User-Agent": f"git-doctor/{__version__}",
    }
    if token.strip():
        headers["Authorization"] = f"token {token.strip()}"
    req = urllib.request.Request(url, method="GET", headers=headers)
    try:
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            code = int(getattr(resp, "status", 0) or 0)
            return code, resp.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as e:
        payload = ""
        try:
            payload = e.read().decode("utf-8", errors="replace")
        except Exception:
            payload = ""
        return int(getattr(e, "code", 0) or 0), payload
    except urllib.error.URLError as e:
        raise RemoteFetchError(f"GET {url} failed: {e}") from e
    except OSError as e:
        raise RemoteFetchError(f"GET {url} failed: {e}") from e
