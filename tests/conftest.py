"""
Shared fixtures.
"""

from pathlib import Path

import pytest

CONFIG_YAML = """\
timezone: Europe/Berlin
booking:
  max_alternatives: 3
services:
  - name: Haircut
    duration_minutes: 30
    price: "25.00"
  - name: Coloring
    duration_minutes: 90
staff:
  - name: Anna
    services: [Haircut, Coloring]
    availability:
      2024-11-25: ["09:00-12:00", "13:00-17:00"]
  - name: Max
    services: [Haircut]
    availability:
      2024-11-25: ["10:00-11:00"]
"""


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML, encoding="utf-8")
    return path
