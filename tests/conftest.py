"""Shared pytest fixtures.

Provides:
- ``make_settings``: Settings factory that ignores the local .env file
- ``sample_pages``: a two-page project snapshot
"""

from __future__ import annotations

import pytest

from config.settings import Settings
from models.site import Page

INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <title>Demo</title>
</head>
<body>
    <nav>
        <a href="index.html">Home</a>
    </nav>
    <h1 class="text-2xl">Old Title</h1>
    <p>Welcome</p>
</body>
</html>"""

ABOUT_HTML = """<!DOCTYPE html>
<html lang="en">
<body>
    <h1>About</h1>
</body>
</html>"""


@pytest.fixture
def make_settings():
    """Build Settings with every tier field pinned (env vars cannot leak in)."""

    def _make(**overrides) -> Settings:
        values = {
            "custom_llm_base_url": "",
            "custom_llm_model": "",
            "custom_llm_api_key": "",
            "cloud_fallback_enabled": True,
            "tier2_enabled": True,
            "hf_token": "",
            "tier1_timeout": 180_000,
            "tier2_timeout": 60_000,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def sample_pages() -> list[Page]:
    return [
        Page(path="index.html", html=INDEX_HTML),
        Page(path="about.html", html=ABOUT_HTML),
    ]
