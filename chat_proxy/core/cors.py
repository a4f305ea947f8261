"""CORS header assembly.

Every response carries the same CORS headers. The proxy either answers with a
wildcard origin or reflects the caller's origin when it starts with one of the
configured prefixes (e.g. ``chrome-extension://`` matches every extension).
Unknown origins receive the first configured origin, which browsers reject.
"""

from __future__ import annotations

from chat_proxy.core.config import AppSettings

ALLOWED_METHODS = "POST, OPTIONS"
ALLOWED_HEADERS = "Content-Type"


def parse_allowed_origins(origins_string: str | None) -> list[str]:
    """Parse comma-separated origin prefixes into an ordered list.

    Args:
        origins_string: Comma-separated origins, or None.

    Returns:
        List of trimmed, non-empty origins in their configured order.

    Examples:
        >>> parse_allowed_origins("https://a.example, chrome-extension://")
        ['https://a.example', 'chrome-extension://']
        >>> parse_allowed_origins(None)
        []
    """
    if not origins_string:
        return []

    return [origin.strip() for origin in origins_string.split(",") if origin.strip()]


def resolve_allow_origin(origin: str | None, app_settings: AppSettings) -> str:
    """Pick the Access-Control-Allow-Origin value for a request origin."""
    if app_settings.cors_allow_any_origin:
        return "*"

    allowed = parse_allowed_origins(app_settings.cors_allowed_origins)
    if not allowed:
        return "*"

    if origin and any(origin.startswith(prefix) for prefix in allowed):
        return origin

    return allowed[0]


def build_cors_headers(origin: str | None, app_settings: AppSettings) -> dict[str, str]:
    """Build the CORS headers attached to every response.

    Args:
        origin: Value of the request's Origin header, if any.
        app_settings: Application settings holding the CORS policy.

    Returns:
        Mapping of header name to value.
    """
    allow_origin = resolve_allow_origin(origin, app_settings)

    headers = {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
    }
    if app_settings.cors_max_age_seconds is not None:
        headers["Access-Control-Max-Age"] = str(app_settings.cors_max_age_seconds)
    if allow_origin != "*":
        headers["Vary"] = "Origin"

    return headers
