"""
Utility helpers shared across routers/services.
"""

from typing import Optional
from urllib.parse import urlencode


def absolute_url(path: str, base: str, query: Optional[dict] = None) -> str:
    """
    Join a relative path onto an absolute base URL, optionally adding a query string.
    """
    base_url = (base or "").rstrip("/")
    if not path:
        url = base_url + "/"
    elif path.startswith("http://") or path.startswith("https://"):
        url = path
    else:
        if not path.startswith("/"):
            path = "/" + path
        url = base_url + path
    if query:
        url = f"{url}?{urlencode(query)}"
    return url
