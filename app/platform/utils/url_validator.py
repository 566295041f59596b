import ipaddress
from typing import Optional, Tuple
from urllib.parse import urlparse

PRIVATE_HOST_ERROR = "Cannot scan internal/private network addresses"

BLOCKED_HOSTNAMES = {"localhost", "localhost.localdomain", "ip6-localhost", "ip6-loopback"}
BLOCKED_HOST_SUFFIXES = (".localhost", ".local", ".internal")


def normalize_url(url: str) -> Tuple[str, bool]:

    url = url.strip()

    parsed = urlparse(url)

    if not parsed.scheme:
        normalized = f"https://{url}"
        return normalized, True

    return url, False


def check_host(hostname: str) -> Optional[str]:
    """Return an error message when `hostname` must not be scanned."""
    host = hostname.lower().rstrip(".")

    if host in BLOCKED_HOSTNAMES or host.endswith(BLOCKED_HOST_SUFFIXES):
        return PRIVATE_HOST_ERROR

    try:
        ip = ipaddress.ip_address(host)
    except ValueError:
        if "." not in host:
            return "Invalid URL format: missing top-level domain"
        return None

    if (
        ip.is_private
        or ip.is_loopback
        or ip.is_link_local
        or ip.is_reserved
        or ip.is_multicast
        or ip.is_unspecified
    ):
        return PRIVATE_HOST_ERROR
    return "Cannot scan IP addresses directly"


def validate_url(url: str) -> Tuple[bool, str, str]:
    if not url or not url.strip():
        return False, "", "URL cannot be empty"

    normalized_url, was_modified = normalize_url(url)

    try:
        parsed = urlparse(normalized_url)

        if parsed.scheme not in ['http', 'https']:
            return False, normalized_url, f"Invalid URL scheme: {parsed.scheme} (must be http or https)"

        if not parsed.netloc or not parsed.hostname:
            return False, normalized_url, "Invalid URL format: missing domain"

        # Raises ValueError for a non-numeric or out-of-range port
        parsed.port

        host_error = check_host(parsed.hostname)
        if host_error:
            return False, normalized_url, host_error

        return True, normalized_url, ""

    except ValueError as e:
        return False, normalized_url, f"URL parsing error: {str(e)}"
