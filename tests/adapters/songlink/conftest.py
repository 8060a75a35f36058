"""Shared fixtures for song.link adapter tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tracklink.adapters.songlink.schema import LinksResponse

FIXTURES = Path(__file__).resolve().parents[2] / "data" / "songlink"


@pytest.fixture
def links_payload_full() -> dict[str, object]:
    return json.loads((FIXTURES / "links.json").read_text())


@pytest.fixture
def links_response(links_payload_full: dict[str, object]) -> LinksResponse:
    return LinksResponse.model_validate(links_payload_full)
