# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Configuration helpers for easyhttp."""

import os
from dataclasses import dataclass

from .version import __version__

DEFAULT_USER_AGENT = f"easyhttp/{__version__}"
CONTENT_TYPE_FORM = "application/x-www-form-urlencoded"
CONTENT_TYPE_JSON = "application/json;charset=UTF-8"
CONTENT_TYPE_XML = "text/xml"


def _float_env(name: str, default: float | None) -> float | None:
    try:
        value = os.getenv(name)
        if value is None:
            return default
        parsed = float(value)
        # Zero or negative disables the deadline.
        return parsed if parsed > 0 else None
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    try:
        value = os.getenv(name)
        return int(value) if value is not None else default
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class HttpSettings:
    """Client defaults applied to every new `Client`."""

    timeout: float | None = 30.0
    connect_timeout: float | None = 10.0
    max_redirects: int = 10
    user_agent: str = DEFAULT_USER_AGENT
    proxy: str | None = None
    use_cookiejar: bool = False
    verify_ssl: bool = True
    json_content_type: str = CONTENT_TYPE_JSON

    @classmethod
    def from_env(cls) -> "HttpSettings":
        """Create settings from environment variables (evaluated at call time)."""
        max_redirects = _int_env("EASYHTTP_MAX_REDIRECTS", cls.max_redirects)
        if max_redirects < 0:
            max_redirects = cls.max_redirects
        return cls(
            timeout=_float_env("EASYHTTP_TIMEOUT", cls.timeout),
            connect_timeout=_float_env("EASYHTTP_CONNECT_TIMEOUT", cls.connect_timeout),
            max_redirects=max_redirects,
            user_agent=os.getenv("EASYHTTP_USER_AGENT", cls.user_agent),
            proxy=os.getenv("EASYHTTP_PROXY") or None,
            use_cookiejar=_bool_env("EASYHTTP_COOKIEJAR", cls.use_cookiejar),
            verify_ssl=_bool_env("EASYHTTP_VERIFY_SSL", cls.verify_ssl),
            json_content_type=os.getenv("EASYHTTP_JSON_CONTENT_TYPE", cls.json_content_type),
        )


def load_http_settings() -> HttpSettings:
    """Load HTTP settings from environment with sensible defaults."""
    return HttpSettings.from_env()


__all__ = [
    "CONTENT_TYPE_FORM",
    "CONTENT_TYPE_JSON",
    "CONTENT_TYPE_XML",
    "DEFAULT_USER_AGENT",
    "HttpSettings",
    "load_http_settings",
]
