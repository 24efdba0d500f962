"""
Server Configuration

Loads configuration from environment variables and provides defaults.
Supports loading from .env file using python-dotenv.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from feedrank.models.config import RankingConfig

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent

# Single .env at the project root
_root_env = BASE_DIR / ".env"
if _root_env.exists():
    load_dotenv(_root_env)


@dataclass
class ServerConfig:
    """Server configuration."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Data: dataset folder loaded into the in-memory stores at startup
    datasets_dir: Path = BASE_DIR / "data" / "datasets"
    dataset: Optional[str] = None

    # Durable vector tier: JSON directory when set, else in-memory
    vectors_dir: Optional[Path] = None
    # Fast tier: Redis when set, else in-process TTL dict
    redis_url: Optional[str] = None

    # Optional JSON file with RankingConfig overrides
    ranking_config_path: Optional[Path] = None

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""

        def _path_env(key: str, default: Optional[Path] = None) -> Optional[Path]:
            v = os.getenv(key)
            if not v:
                return default
            p = Path(v)
            return p if p.is_absolute() else (BASE_DIR / p).resolve()

        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            datasets_dir=_path_env("DATASETS_DIR", BASE_DIR / "data" / "datasets"),
            dataset=os.getenv("DATASET") or None,
            vectors_dir=_path_env("VECTORS_DIR"),
            redis_url=os.getenv("REDIS_URL") or None,
            ranking_config_path=_path_env("RANKING_CONFIG_PATH"),
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []
        if self.dataset and not (self.datasets_dir / self.dataset).exists():
            errors.append(f"Dataset not found: {self.datasets_dir / self.dataset}")
        if self.ranking_config_path and not self.ranking_config_path.exists():
            errors.append(f"Ranking config not found: {self.ranking_config_path}")
        return len(errors) == 0, errors

    def ensure_directories(self):
        """Create required directories if they don't exist."""
        if self.vectors_dir:
            self.vectors_dir.mkdir(parents=True, exist_ok=True)

    def load_ranking_config(self) -> RankingConfig:
        """RankingConfig from ranking_config_path merged over defaults."""
        if not self.ranking_config_path:
            return RankingConfig()
        with open(self.ranking_config_path) as f:
            return RankingConfig.from_dict(json.load(f))


# Global config instance
_config: Optional[ServerConfig] = None


def get_config() -> ServerConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = ServerConfig.from_env()
        _config.ensure_directories()
    return _config
