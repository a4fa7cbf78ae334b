import ipaddress
import re
from urllib.parse import urlsplit

URL_RE = re.compile(r"^https?://", re.I)


def extract_host(value: str) -> str:
    """Normalize input that may be a full URL (with scheme/path) into just the hostname.
    - Strips protocol (http/https)
    - Removes credentials, port, path, query, fragment
    - Keeps IPv6 literals without their brackets
    - Lowercases result
    """
    v = (value or "").strip()
    if not v:
        return v
    # Add scheme if starts with //
    if v.startswith("//"):
        v = "http:" + v
    if "://" in v:
        v2 = v.split("://", 1)[1]
    else:
        v2 = v
    # Remove path/query/fragment
    for sep in ["/", "?", "#"]:
        if sep in v2:
            v2 = v2.split(sep, 1)[0]
    # Remove credentials
    if "@" in v2:
        v2 = v2.split("@", 1)[1]
    if v2.startswith("["):
        return v2[1:].split("]", 1)[0].lower()
    if is_ip_literal(v2):
        return v2.lower()
    # Remove port
    if ":" in v2:
        host_part = v2.split(":", 1)[0]
    else:
        host_part = v2
    return host_part.lower()


def is_url(value: str) -> bool:
    """True when ``value`` is an absolute http(s) URL with a host."""
    v = (value or "").strip()
    if not URL_RE.match(v):
        return False
    try:
        return bool(urlsplit(v).hostname)
    except ValueError:
        return False


def is_ip_literal(host: str) -> bool:
    h = (host or "").strip()
    if h.startswith("[") and h.endswith("]"):
        h = h[1:-1]
    try:
        ipaddress.ip_address(h)
    except ValueError:
        return False
    return True


def host_and_port_to_url(host: str, port: int, scheme: str) -> str:
    """Build the URL for an open port.

    The port is left out when it is the scheme default.
    """
    netloc = f"[{host}]" if ":" in host and not host.startswith("[") else host
    if (scheme == "http" and port == 80) or (scheme == "https" and port == 443):
        return f"{scheme}://{netloc}/"
    return f"{scheme}://{netloc}:{port}/"
