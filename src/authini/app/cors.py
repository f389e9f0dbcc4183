from typing import Dict, Optional, Set


def get_cors_headers(origin_value: Optional[str], allowed_origins: Set[str]) -> Dict[str, str]:
    """Return CORS headers for the request origin.

    `*` in `allowed_origins` allows any origin. Otherwise the origin is echoed back only
    when it is listed.
    """
    headers = {
        "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
        "Access-Control-Allow-Headers": "Authorization, Content-Type",
        "Vary": "Origin",
    }

    if "*" in allowed_origins:
        headers["Access-Control-Allow-Origin"] = "*"
    elif origin_value and origin_value.rstrip("/") in allowed_origins:
        headers["Access-Control-Allow-Origin"] = origin_value

    return headers
