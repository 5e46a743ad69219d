"""WebSocket URL normalization for push mode."""


def normalize_socket_url(url: str, secure_context: bool = False) -> str:
    """
    Map a feed URL onto a WebSocket URL.

    - wss:// is returned unchanged
    - ws:// is upgraded to wss:// when the hosting context is secure
    - https:// becomes wss://; http:// becomes ws:// (or wss:// in a
      secure context)
    - a bare host/path gets wss:// or ws:// to match the hosting context

    Args:
        url: Feed URL as configured
        secure_context: Whether the hosting context itself is secure

    Returns:
        ws:// or wss:// URL
    """
    url = url.strip()
    scheme, sep, rest = url.partition("://")
    if not sep:
        scheme, rest = "", url.lstrip("/")
    scheme = scheme.lower()
    context_scheme = "wss" if secure_context else "ws"

    if scheme == "wss":
        return url
    if scheme == "https":
        return f"wss://{rest}"
    if scheme in ("ws", "http", ""):
        return f"{context_scheme}://{rest}"

    raise ValueError(f"Unsupported feed URL scheme: {scheme!r}")
