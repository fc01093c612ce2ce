import os
from pathlib import Path
from typing import List, Optional

from omegaconf import DictConfig, OmegaConf
from omegaconf.errors import OmegaConfBaseException

from ..exceptions import ConfigurationError
from .models import AppConfig

# Environment variables that override a config key when set
ENV_OVERRIDES = {
    "DATABASE_URL": "database.url",
    "DIRECTIONS_API_KEY": "directions.api_key",
    "GOOGLE_MAPS_API_KEY": "directions.api_key",
    "PORT": "server.port",
}

class ConfigManager:
    """Centralises loading and validation of the application configuration"""

    def __init__(self, config_dir: Path = Path("conf")):
        self.config_dir = config_dir

    def load(self, profile: str = "config", overrides: Optional[List[str]] = None) -> DictConfig:
        """
        Loads ``<config_dir>/<profile>.yaml`` on top of the structured defaults.
        A missing file is not an error: the defaults are complete.
        """
        schema = OmegaConf.structured(AppConfig)
        config_path = self.config_dir / f"{profile}.yaml"

        try:
            layers = [schema]
            if config_path.exists():
                layers.append(OmegaConf.load(config_path))
            env_cfg = self._env_overrides()
            if env_cfg:
                layers.append(OmegaConf.from_dotlist(env_cfg))
            if overrides:
                layers.append(OmegaConf.from_dotlist(overrides))
            cfg = OmegaConf.merge(*layers)
        except OmegaConfBaseException as e:
            raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e

        self._validate(cfg)
        return cfg

    @staticmethod
    def _env_overrides() -> List[str]:
        dotlist = []
        for env_name, key in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                dotlist.append(f"{key}={value}")
        return dotlist

    @staticmethod
    def _validate(cfg: DictConfig):
        if cfg.clustering.radius_meters <= 0:
            raise ConfigurationError("clustering.radius_meters must be positive")
        if cfg.prediction.max_cycles < 1:
            raise ConfigurationError("prediction.max_cycles must be at least 1")
        for phase in ("green", "yellow", "red"):
            if phase not in cfg.prediction.default_durations:
                raise ConfigurationError(f"Missing default duration for phase: {phase}")
        if cfg.confidence.high_min_observations < cfg.confidence.medium_min_observations:
            raise ConfigurationError("High confidence cannot require fewer observations than medium")


_config: Optional[DictConfig] = None

def get_config() -> DictConfig:
    """Process-wide configuration, loaded lazily from ./conf."""
    global _config
    if _config is None:
        _config = ConfigManager().load()
    return _config

def set_config(cfg: DictConfig):
    global _config
    _config = cfg
