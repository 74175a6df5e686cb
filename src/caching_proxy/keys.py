import hashlib

KEY_SEPARATOR = "|"


def request_target(path: str, query: str = "") -> str:
    """Build the request target (path plus query) used as the key base."""
    if query:
        return f"{path}?{query}"
    return path


def derive_key(
    target: str,
    unique_by_user: bool = False,
    user_agent: str | None = None,
    cookie: str | None = None,
) -> str:
    """
    Derive the cache key for a request.

    The key is the hex SHA-256 of the request target, optionally followed by
    the User-Agent and raw Cookie values. Components are joined with ``|`` in
    that fixed order; absent or empty components are skipped, so a request
    without them hashes exactly like the bare target. The HTTP method is not
    part of the key.

    Args:
        target: Request path with query string, as received.
        unique_by_user: Whether to keep separate entries per user.
        user_agent: The User-Agent header value, if any.
        cookie: The raw Cookie header value, if any.

    Returns:
        A 64 character lowercase hex digest.
    """
    parts = [target]

    if unique_by_user:
        if user_agent:
            parts.append(user_agent)
        if cookie:
            parts.append(cookie)

    raw_key = KEY_SEPARATOR.join(parts)
    return hashlib.sha256(raw_key.encode("utf-8")).hexdigest()
