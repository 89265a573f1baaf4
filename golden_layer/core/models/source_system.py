"""
SourceSystem model: governance registry entry for an upstream system.
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field


class SourceSystem(BaseModel):
    """
    An upstream system that lands raw records.

    Attributes:
        source_system_id: Registry identifier
        system_code: Unique code (e.g. "SRC_ENTERPRISE")
        system_name: Display name
        system_type: Functional classification (e.g. "MARKET_DATA")
        is_active: Steps owned by inactive systems are skipped
    """

    source_system_id: int
    system_code: str = Field(..., min_length=1)
    system_name: str
    system_type: str
    is_active: bool = True


class SourceSystemRegistry:
    """Read-only lookup over the source-system registry."""

    def __init__(self, systems: list[SourceSystem]):
        self._systems = {s.source_system_id: s for s in systems}

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "SourceSystemRegistry":
        """
        Load the registry from a YAML file with a ``source_systems`` list.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the section is missing
        """
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Source system configuration file not found: {config_path}")

        with open(path) as f:
            config = yaml.safe_load(f)

        if not config or "source_systems" not in config:
            raise ValueError("Configuration file must contain 'source_systems' section")
        return cls([SourceSystem(**s) for s in config["source_systems"]])

    def get(self, source_system_id: int) -> SourceSystem | None:
        return self._systems.get(source_system_id)

    def is_active(self, source_system_id: int) -> bool:
        """Unregistered systems are treated as active."""
        system = self._systems.get(source_system_id)
        return system is None or system.is_active

    def __iter__(self):
        return iter(self._systems.values())

    def __len__(self) -> int:
        return len(self._systems)
