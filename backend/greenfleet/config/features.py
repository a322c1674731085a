"""
Tenant feature catalogue loader.

Loads config/tenant_features.yml, the single source of truth for which
features exist, how they are labelled and which are enabled for new tenants.

Consumers:
  - tenant_service.initialize_tenant_features: seeds TenantFeature rows
  - main: logs the catalogue at startup

Usage:
    from greenfleet.config.features import get_feature_config_loader

    loader = get_feature_config_loader()
    defaults = loader.default_features()
"""

import logging
import os
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

import yaml

from greenfleet.config.settings import get_feature_config_path

logger = logging.getLogger(__name__)

_FILENAME = "tenant_features.yml"

# Used when the YAML file cannot be found
_FALLBACK_FEATURES: Dict[str, Dict[str, Any]] = {
    "VEHICLES": {"label": "Vehicle management", "category": "core", "default": True},
    "FUEL_RECORDS": {"label": "Fuel records and odometer readings", "category": "core", "default": True},
    "DASHBOARD_FM": {"label": "Fleet manager dashboard", "category": "dashboard", "default": True},
    "DASHBOARD_DRIVER": {"label": "Driver dashboard", "category": "dashboard", "default": True},
}


class FeatureConfigLoader:
    """
    Thread-safe singleton loader for config/tenant_features.yml.
    """

    _instance: Optional["FeatureConfigLoader"] = None
    _lock = Lock()

    def __new__(cls, config_path: Optional[str] = None):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None):
        if self._initialized:
            return

        self._config_path = config_path or get_feature_config_path()
        self._raw: Dict[str, Any] = {}
        self._features: Dict[str, Dict[str, Any]] = {}
        self._categories: Dict[str, str] = {}
        self._load_lock = Lock()

        self._load()
        self._initialized = True

    def _resolve_path(self) -> Optional[Path]:
        if self._config_path:
            return Path(self._config_path)

        candidates = [
            # Repository root (backend/greenfleet/config -> root)
            Path(__file__).parent.parent.parent.parent / "config" / _FILENAME,
            Path(os.getcwd()) / "config" / _FILENAME,
            Path(os.getcwd()) / ".." / "config" / _FILENAME,
        ]

        for p in candidates:
            resolved = p.resolve()
            if resolved.exists():
                return resolved
        return None

    def _load(self) -> None:
        with self._load_lock:
            path = self._resolve_path()
            if path is None or not path.exists():
                logger.warning(
                    "Feature config not found, using built-in defaults",
                    extra={"config_path": str(path) if path else None},
                )
                self._raw = {}
                self._features = dict(_FALLBACK_FEATURES)
                self._categories = {}
                return

            logger.info("Loading feature config from %s", path)
            with open(path, "r") as f:
                self._raw = yaml.safe_load(f) or {}

            self._features = self._raw.get("features", {}) or {}
            self._categories = self._raw.get("categories", {}) or {}
            logger.info("Loaded %d tenant features", len(self._features))

    def reload(self) -> None:
        """Re-read the YAML from disk."""
        self._load()

    @property
    def feature_keys(self) -> List[str]:
        return list(self._features.keys())

    def default_features(self) -> List[str]:
        """Feature keys enabled for newly created tenants."""
        return [key for key, cfg in self._features.items() if cfg.get("default")]

    def label_for(self, feature_key: str) -> str:
        return self._features.get(feature_key, {}).get("label", feature_key)

    def by_category(self) -> Dict[str, List[str]]:
        grouped: Dict[str, List[str]] = {}
        for key, cfg in self._features.items():
            grouped.setdefault(cfg.get("category", "other"), []).append(key)
        return grouped

    def get_all(self) -> Dict[str, Any]:
        return {
            "version": self._raw.get("version", 1),
            "categories": dict(self._categories),
            "features": {key: dict(cfg) for key, cfg in self._features.items()},
        }


def get_feature_config_loader(config_path: Optional[str] = None) -> FeatureConfigLoader:
    """Return the singleton FeatureConfigLoader."""
    return FeatureConfigLoader(config_path)


def reset_feature_config_loader() -> None:
    """Reset singleton (for tests only)."""
    FeatureConfigLoader._instance = None
