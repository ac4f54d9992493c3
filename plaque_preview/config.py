"""
Configuration management for the Plaque Preview service
Loads settings from YAML files with environment variable overrides
"""

import os
import yaml
from pathlib import Path
from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from loguru import logger


class AppConfig(BaseModel):
    """Main application configuration"""

    # Flask settings
    SECRET_KEY: str = Field(default_factory=lambda: os.urandom(24).hex())
    FLASK_ENV: str = "development"
    DEBUG: bool = True
    TESTING: bool = False

    # Paths
    ASSETS_DIR: str = "assets"
    PREVIEW_FOLDER: str = "previews"
    UPLOAD_ROOT: str = "public"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    # Plaque backgrounds (style key -> texture filename under ASSETS_DIR/backgrounds)
    PLAQUE_STYLES: Dict[str, str] = {
        "dark-maple-wood": "DarkMapleWood1.png",
        "clear-plaque": "ClearPlaque8.png",
        "black-marble": "BlackMarble8.png",
    }
    DEFAULT_PLAQUE_STYLE: str = "dark-maple-wood"

    # Card image acquisition
    IMAGE_FETCH_TIMEOUT: float = 10.0
    ACQUISITION_WORKERS: int = 4

    # Output
    OUTPUT_FORMAT: str = "PNG"
    FONT_PATHS: List[str] = [
        "arialbd.ttf",
        "arial.ttf",
        "DejaVuSans-Bold.ttf",
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    ]


def load_yaml_config(file_path: str) -> Dict:
    """Load configuration from YAML file"""
    path = Path(file_path)
    if not path.exists():
        logger.warning(f"Config file not found: {file_path}")
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    except Exception as e:
        logger.error(f"Error loading config file {file_path}: {e}")
        return {}


def load_config(environment: str = "development", overrides: Optional[Dict] = None) -> AppConfig:
    """Load configuration with environment-specific overrides"""

    # Load base settings
    base_config = load_yaml_config("config/settings.yaml")

    # Load environment-specific settings
    env_config = load_yaml_config(f"config/settings_{environment}.yaml")

    # Merge configurations (env overrides base)
    config_dict = {**base_config, **env_config}

    # Apply environment variable overrides
    env_overrides = {
        'FLASK_ENV': os.getenv('FLASK_ENV', environment),
        'LOG_LEVEL': os.getenv('LOG_LEVEL'),
        'SECRET_KEY': os.getenv('SECRET_KEY'),
        'ASSETS_DIR': os.getenv('ASSETS_DIR'),
        'PREVIEW_FOLDER': os.getenv('PREVIEW_FOLDER'),
        'UPLOAD_ROOT': os.getenv('UPLOAD_ROOT'),
    }

    # Only include non-None values
    env_overrides = {k: v for k, v in env_overrides.items() if v is not None}
    config_dict.update(env_overrides)

    # Special handling for boolean DEBUG flag
    if 'FLASK_ENV' in config_dict:
        config_dict['DEBUG'] = config_dict['FLASK_ENV'] == 'development'

    # Explicit overrides (application factory callers, tests) win over everything
    if overrides:
        config_dict.update(overrides)

    try:
        return AppConfig(**config_dict)
    except Exception as e:
        logger.error(f"Configuration validation error: {e}")
        # Return default config on validation error
        return AppConfig()


# Global config instance
_config_instance = None

def get_config() -> AppConfig:
    """Get the global configuration instance"""
    global _config_instance
    if _config_instance is None:
        _config_instance = load_config(os.getenv('FLASK_ENV', 'development'))
    return _config_instance


def set_config(config: AppConfig) -> None:
    """Replace the global configuration instance (used by the app factory)"""
    global _config_instance
    _config_instance = config
