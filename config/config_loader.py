"""Configuration loader for multihypotracking."""

import yaml
from pathlib import Path
from typing import Any, Dict, Optional
from dataclasses import dataclass, field

from utils import get_logger

logger = get_logger('config')


@dataclass
class SolverConfig:
    """Integer linear program solver configuration."""
    time_limit: Optional[float] = None
    mip_rel_gap: float = 0.0
    presolve: bool = True
    verbose: bool = False


@dataclass
class LearningConfig:
    """Structured max-margin learning configuration."""
    regularizer_weight: float = 1.0
    learning_rate: float = 0.1
    max_iterations: int = 100
    epsilon: float = 1e-5
    show_progress: bool = True


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"


@dataclass
class Config:
    """Main configuration class."""
    solver: SolverConfig = field(default_factory=SolverConfig)
    learning: LearningConfig = field(default_factory=LearningConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'Config':
        """Create Config from dictionary."""
        config_dict = config_dict or {}
        return cls(
            solver=SolverConfig(**config_dict.get('solver', {})),
            learning=LearningConfig(**config_dict.get('learning', {})),
            logging=LoggingConfig(**config_dict.get('logging', {}))
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert Config to dictionary."""
        return {
            'solver': dict(self.solver.__dict__),
            'learning': dict(self.learning.__dict__),
            'logging': dict(self.logging.__dict__)
        }


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to YAML config file. If None, defaults are used.

    Returns:
        Config object with all settings.
    """
    if config_path is None:
        return Config()

    config_path = Path(config_path)

    if not config_path.exists():
        logger.warning(f"Config file {config_path} not found. Using defaults.")
        return Config()

    with open(config_path, 'r') as f:
        config_dict = yaml.safe_load(f)

    return Config.from_dict(config_dict)


def save_config(config: Config, path: str):
    """
    Save configuration to YAML file.

    Args:
        config: Config object to save.
        path: Path where to save the config.
    """
    config_dict = config.to_dict()

    with open(path, 'w') as f:
        yaml.dump(config_dict, f, default_flow_style=False, indent=2)
