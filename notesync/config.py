# Copyright: Ankitects Pty Ltd and contributors
# License: GNU AGPL, version 3 or later; http://www.gnu.org/licenses/agpl.html

"""Store configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

DEFAULT_TIMEOUT_SECS = 30.0
DEFAULT_MAX_PAGES = 100_000

ENV_URL = "NOTESYNC_URL"
ENV_LOAD_TIMEOUT = "NOTESYNC_LOAD_TIMEOUT"
ENV_SAVE_TIMEOUT = "NOTESYNC_SAVE_TIMEOUT"
ENV_COMPRESS = "NOTESYNC_COMPRESS"
ENV_MAX_PAGES = "NOTESYNC_MAX_PAGES"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class StoreConfig:
    """Where notes are loaded from and saved to, and how long to wait."""

    url: str
    load_timeout_secs: float = DEFAULT_TIMEOUT_SECS
    save_timeout_secs: float = DEFAULT_TIMEOUT_SECS
    compress_uploads: bool = False
    # Upper bound on pageIndex + 1, so a bad index cannot allocate huge page lists.
    max_pages: int = DEFAULT_MAX_PAGES
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.url:
            raise ValueError("url is required")
        if self.load_timeout_secs <= 0 or self.save_timeout_secs <= 0:
            raise ValueError("timeouts must be positive")
        if self.max_pages <= 0:
            raise ValueError("max_pages must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> StoreConfig:
        env = os.environ if environ is None else environ
        url = env.get(ENV_URL, "")
        if not url:
            raise ValueError(f"{ENV_URL} is not set")
        return cls(
            url=url,
            load_timeout_secs=float(env.get(ENV_LOAD_TIMEOUT, DEFAULT_TIMEOUT_SECS)),
            save_timeout_secs=float(env.get(ENV_SAVE_TIMEOUT, DEFAULT_TIMEOUT_SECS)),
            compress_uploads=env.get(ENV_COMPRESS, "").strip().lower() in _TRUTHY,
            max_pages=int(env.get(ENV_MAX_PAGES, DEFAULT_MAX_PAGES)),
        )
