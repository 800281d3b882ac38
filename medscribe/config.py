import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict


ROOT_DIR = Path(__file__).resolve().parent.parent

ENV_OVERRIDES = {
    "CATALOG_PATH": "catalog_path",
    "DATA_DIR": "data_dir",
    "INSTRUCTIONS_PATH": "instructions_path",
    "OTEL_ENDPOINT": "otel_endpoint",
    "AUDIT_LOG": "audit_log",
    "WATCH_CATALOG": "watch_catalog",
    "LOG_LEVEL": "log_level",
}


class Settings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    catalog_path: str = str(ROOT_DIR / "catalog" / "diseases.json")
    data_dir: str = str(ROOT_DIR / "data")
    instructions_path: Optional[str] = None
    otel_endpoint: Optional[str] = None
    audit_log: Optional[str] = None
    watch_catalog: bool = False
    log_level: str = "INFO"


def load_settings(
    config_path: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None
) -> Settings:
    """Build settings from an optional YAML file, then environment overrides."""
    if environ is None:
        environ = os.environ

    data: Dict[str, Any] = {}
    if config_path:
        with open(config_path, 'r', encoding='utf-8') as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"config file {config_path} must contain a mapping")
        data.update(loaded)

    for env_name, field in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value:
            data[field] = value

    try:
        return Settings(**data)
    except Exception as e:
        raise ValueError(f"Invalid configuration: {e}") from e
