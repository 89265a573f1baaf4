"""
Crosswalk configuration loading.

Reads key spaces, crosswalk rules and precomputed paths from YAML.
"""

from pathlib import Path

import yaml

from golden_layer.core.models import CrosswalkPath, CrosswalkRule, KeySpace

from .graph import DEFAULT_MAX_HOPS, CrosswalkGraph


class CrosswalkConfigLoader:
    """
    Loads a crosswalk graph from a YAML configuration file.

    Expected YAML format:
    ```yaml
    key_spaces:
      - key_id: 7
        name: ent_investment_team_id
        source_system_id: 1
        key_type: PRIMARY

    rules:
      - crosswalk_id: 1
        from_space: ent_investment_team_id
        to_space: investment_team_enterprise_key
        mapping_type: "1:1"
        transformation:
          strip_prefix: ENT-IT-
          add_prefix: IT-

    paths:
      - from_space: stm_security_id
        to_space: asset_enterprise_key
        crosswalk_ids: [11, 16]
        hop_count: 2
        reliability: HIGH
    ```
    """

    def __init__(self, config_path: str | Path):
        """
        Initialize the crosswalk config loader.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Crosswalk configuration file not found: {config_path}")

    def load_graph(self, max_hops: int = DEFAULT_MAX_HOPS) -> CrosswalkGraph:
        """
        Parse the file into a crosswalk graph.

        Args:
            max_hops: Hop ceiling for the graph

        Returns:
            CrosswalkGraph with every space, rule and path registered

        Raises:
            ValueError: If the file has no 'rules' section
            pydantic.ValidationError: If an entry is malformed
            CrosswalkConfigError: If rules or paths are inconsistent
        """
        with open(self.config_path) as f:
            config = yaml.safe_load(f)

        if not config or "rules" not in config:
            raise ValueError("Configuration file must contain 'rules' section")

        spaces = [KeySpace(**s) for s in config.get("key_spaces") or []]
        rules = [CrosswalkRule(**r) for r in config["rules"]]
        paths = [CrosswalkPath(**p) for p in config.get("paths") or []]
        return CrosswalkGraph(rules=rules, paths=paths, spaces=spaces, max_hops=max_hops)
