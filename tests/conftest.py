"""Root test configuration: environment isolation and post-writing helpers"""

import logging
import os
from pathlib import Path

import pytest


GOOD_POST = """\
---
layout: post
title: Hoisting
---

Declarations move to the top.[^1]

[^1]: Only declarations, not assignments.
"""

BAD_POST = """\
---
layout: post
title: Broken

Front matter never closes.
"""


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """Drop MDSITE_* env vars and restore root logging after each test."""
    for name in list(os.environ):
        if name.startswith("MDSITE_"):
            monkeypatch.delenv(name)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture(name="good_post")
def good_post_fixture():
    return GOOD_POST


@pytest.fixture(name="bad_post")
def bad_post_fixture():
    return BAD_POST


@pytest.fixture(name="write_post")
def write_post_fixture(tmp_path):
    """Return a helper that writes text to tmp_path/<relative name> and returns the path."""
    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path
    return _write
