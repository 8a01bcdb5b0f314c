"""
Customer Configuration Loader
============================

Loads a customer's deployment settings. Configuration problems are the one
class of error that always aborts a build: without a workspace name or the
connector list there is no correct template to produce, so every failure here
surfaces as ConfigError.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from config import CONFIG_FILE_NAMES, ENCODING, SHARED_DIRECTORY, customer_directory
from models.deployment_config import DeploymentConfig, parse_deployment_config
from models.errors import ConfigError

logger = logging.getLogger(__name__)


class ConfigStore(ABC):
    """Source of per-customer DeploymentConfig objects."""

    @abstractmethod
    def load(self, customer: str) -> DeploymentConfig:
        """
        Load and validate a customer's configuration.

        Raises:
            ConfigError: If the configuration is missing, unreadable or incomplete
        """
        pass


class InMemoryConfigStore(ConfigStore):
    """ConfigStore over already-parsed configuration documents."""

    def __init__(self, configs: Dict[str, Any], shared_links: Optional[Dict[str, Any]] = None):
        self.configs = configs
        self.shared_links = shared_links

    def load(self, customer: str) -> DeploymentConfig:
        if customer not in self.configs:
            raise ConfigError(f"No configuration for customer '{customer}'")
        return parse_deployment_config(self.configs[customer], customer, self.shared_links)


class FileConfigStore(ConfigStore):
    """
    Reads Customers/<name>/config.yaml (or .yml/.json) below a repository root.

    An optional Shared/config.yaml may carry ContentLinks common to every
    customer; customer links override them rule by rule.
    """

    def __init__(self, root: str):
        self.root = Path(root)

    def load(self, customer: str) -> DeploymentConfig:
        config_path = self._find_config(self.root / customer_directory(customer))
        if config_path is None:
            raise ConfigError(f"No configuration file found for customer '{customer}'",
                              str(self.root / customer_directory(customer)))

        raw = read_config_file(config_path)
        shared_links = self._load_shared_links()
        config = parse_deployment_config(raw, str(config_path), shared_links)

        logger.info(f"Loaded configuration for '{config.customer_name}' from {config_path} "
                    f"({len(config.enabled_connector_ids())} enabled connectors, "
                    f"{len(config.exclude_rules)} excluded rules)")
        return config

    def _load_shared_links(self) -> Optional[Dict[str, Any]]:
        shared_path = self._find_config(self.root / SHARED_DIRECTORY)
        if shared_path is None:
            return None
        raw = read_config_file(shared_path)
        if not isinstance(raw, dict):
            raise ConfigError("Shared configuration is not a mapping", str(shared_path))
        return raw.get('ContentLinks')

    @staticmethod
    def _find_config(directory: Path) -> Optional[Path]:
        for name in CONFIG_FILE_NAMES:
            candidate = directory / name
            if candidate.is_file():
                return candidate
        return None


def read_config_file(path: Path) -> Any:
    """
    Read a YAML or JSON configuration file.

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    try:
        with open(path, 'r', encoding=ENCODING) as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read configuration file: {str(e)}", str(path))

    try:
        if path.suffix.lower() == '.json':
            return json.loads(content)
        return yaml.safe_load(content)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot parse configuration file: {str(e)}", str(path))
