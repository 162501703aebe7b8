"""Shared fixtures for the detector tests."""
from pathlib import Path

import pytest

from helpers import REACT_ROOT


@pytest.fixture
def react_root() -> Path:
    """Root of the canonical React example project."""
    assert (REACT_ROOT / 'src' / 'App.tsx').exists(), "React fixture project is missing"
    return REACT_ROOT


@pytest.fixture
def write_project(tmp_path):
    """Write {relative path: text} into a temporary project root."""
    def _write(files: dict) -> Path:
        for relative, text in files.items():
            target = tmp_path / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding='utf-8')
        return tmp_path
    return _write
