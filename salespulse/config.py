from __future__ import annotations
from pydantic import BaseModel
from pathlib import Path
from typing import Any, Dict, List
import os, yaml

class LLMConfig(BaseModel):
    base_url: str = ""
    api_key: str = ""
    model: str = "gpt-4"
    temperature: float = 0.3

class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080

class StorageConfig(BaseModel):
    backend: str = "memory"  # memory | sql
    db_url: str = "sqlite:///salespulse.db"
    seed_sample_data: bool = True
    logs_key_prefix: str = "logs"
    ttl_seconds: int = 60*60*24*3

class IntegrationsConfig(BaseModel):
    hubspot_token: str = ""
    gong_token: str = ""
    hubspot_base_url: str = "https://api.hubapi.com"
    gong_base_url: str = "https://api.gong.io/v2"
    timeout_seconds: float = 30.0

class PipelineConfig(BaseModel):
    silence_threshold_days: int = 5
    hot_lead_score: int = 80
    at_risk_health_score: int = 60
    top_deals_per_stage: int = 3

class Config(BaseModel):
    llm: LLMConfig = LLMConfig()
    server: ServerConfig = ServerConfig()
    storage: StorageConfig = StorageConfig()
    integrations: IntegrationsConfig = IntegrationsConfig()
    pipeline: PipelineConfig = PipelineConfig()

# (section, key, env var, cast)
_ENV_OVERRIDES = [
    ("llm", "base_url", "LLM_BASE_URL", str),
    ("llm", "api_key", "LLM_API_KEY", str),
    ("llm", "model", "LLM_MODEL", str),
    ("llm", "temperature", "LLM_TEMPERATURE", float),
    ("server", "host", "SERVER_HOST", str),
    ("server", "port", "SERVER_PORT", int),
    ("storage", "backend", "STORAGE_BACKEND", str),
    ("storage", "db_url", "DATABASE_URL", str),
    ("integrations", "hubspot_token", "HUBSPOT_ACCESS_TOKEN", str),
    ("integrations", "gong_token", "GONG_ACCESS_TOKEN", str),
]

def _apply_env(data: Dict[str, Any]) -> Dict[str, Any]:
    for section, key, env, cast in _ENV_OVERRIDES:
        if os.environ.get(env):
            data.setdefault(section, {})
            data[section][key] = cast(os.environ[env])
    if os.environ.get("SEED_SAMPLE_DATA"):
        data.setdefault("storage", {})
        data["storage"]["seed_sample_data"] = os.environ["SEED_SAMPLE_DATA"].lower() == "true"
    return data

def load_config() -> Config:
    """
    Load settings from YAML. CONFIG_PATH wins; otherwise look for
    'config/server_config.yaml' one level above the package. Without a file
    everything comes from environment variables and defaults.
    """
    cfg_env = os.environ.get("CONFIG_PATH")
    if cfg_env:
        cfg_path = Path(cfg_env)
    else:
        cfg_path = Path(__file__).resolve().parents[1] / "config" / "server_config.yaml"

    data: Dict[str, Any] = {}
    if cfg_path.exists():
        with open(cfg_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    return Config(**_apply_env(data))

def missing_integrations(cfg: Config) -> List[str]:
    missing = []
    if not cfg.integrations.hubspot_token: missing.append("HubSpot")
    if not cfg.integrations.gong_token: missing.append("Gong")
    if not cfg.llm.api_key: missing.append("OpenAI")
    return missing

def integrations_configured(cfg: Config) -> bool:
    return not missing_integrations(cfg)
