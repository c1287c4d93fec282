"""Packaging metadata checks."""

import tomllib
from pathlib import Path

PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


def test_requires_python_matches_algopy() -> None:
    """algorand-python publishes builds for 3.12+ only."""
    project = tomllib.loads(PYPROJECT.read_text())["project"]
    assert project["requires-python"] == ">=3.12"
