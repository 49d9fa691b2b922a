"""
Configuration: loads settings from .dbexplorer.yaml, environment variables,
and built-in defaults (in that priority order: CLI args > env > YAML > defaults).
"""

import os

import yaml


_DEFAULTS = {
    "model_dir": "semanticmodel",
    "log_dir": ".dbexplorer/logs",
    "strict_load": True,
    "reject_duplicates": False,
    "export_format": "markdown",
    "export_strategies": [],
    "llm_base_url": "http://localhost:1234/v1",
    "llm_model": "gpt-4o-mini",
    "llm_api_key": "",
    "llm_max_retries": 3,
    "llm_retry_delay": 2.0,
    "llm_temperature": 0.2,
}

# Config file search locations
_CONFIG_FILENAMES = [".dbexplorer.yaml", ".dbexplorer.yml"]


def _find_config_file(explicit_path: str | None = None,
                      search_dirs: list[str] | None = None) -> str | None:
    """Find the config file. Checks explicit path, then each search dir
    (default: CWD, then user home)."""
    if explicit_path:
        if os.path.isfile(explicit_path):
            return explicit_path
        return None

    if search_dirs is None:
        search_dirs = [os.getcwd(), os.path.expanduser("~")]
    for d in search_dirs:
        for name in _CONFIG_FILENAMES:
            path = os.path.join(d, name)
            if os.path.isfile(path):
                return path
    return None


def _load_yaml(path: str) -> dict:
    """Load YAML file, returns empty dict on failure."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return {}


def _as_bool(value) -> bool:
    """Interpret a YAML or env value; strings must spell true/yes/on/1."""
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "on", "1")
    return bool(value)


class Config:
    """Application configuration.

    Settings are resolved in priority order:
    1. CLI arguments (handled by caller)
    2. Environment variables (``DBEXPLORER_*``)
    3. .dbexplorer.yaml config file
    4. Built-in defaults
    """

    def __init__(self, yaml_data: dict | None = None):
        yd = yaml_data or {}

        # Helper: env var > yaml > default
        def _get(env_key: str, yaml_key: str, default, cast=str):
            env_val = os.getenv(env_key)
            if env_val is not None:
                return cast(env_val)
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return cast(yaml_val)
            return default

        def _get_bool(env_key: str, yaml_key: str, default: bool) -> bool:
            env_val = os.getenv(env_key)
            if env_val is not None:
                return _as_bool(env_val)
            yaml_val = yd.get(yaml_key)
            if yaml_val is not None:
                return _as_bool(yaml_val)
            return default

        self.MODEL_DIR = _get("DBEXPLORER_MODEL_DIR", "model_dir",
                              _DEFAULTS["model_dir"])
        self.LOG_DIR = _get("DBEXPLORER_LOG_DIR", "log_dir",
                            _DEFAULTS["log_dir"])
        self.STRICT_LOAD = _get_bool("DBEXPLORER_STRICT_LOAD", "strict_load",
                                     _DEFAULTS["strict_load"])
        self.REJECT_DUPLICATES = _get_bool("DBEXPLORER_REJECT_DUPLICATES",
                                           "reject_duplicates",
                                           _DEFAULTS["reject_duplicates"])
        self.EXPORT_FORMAT = _get("DBEXPLORER_EXPORT_FORMAT", "export_format",
                                  _DEFAULTS["export_format"])

        # LLM endpoint (OpenAI-compatible) used by enrichment
        llm_section = yd.get("llm", {}) if isinstance(yd.get("llm"), dict) else {}

        def _llm(env_key: str, key: str, cast=str):
            env_val = os.getenv(env_key)
            if env_val is not None:
                return cast(env_val)
            if llm_section.get(key) is not None:
                return cast(llm_section[key])
            return _DEFAULTS[f"llm_{key}"]

        self.LLM_BASE_URL = _llm("DBEXPLORER_LLM_BASE_URL", "base_url")
        self.LLM_MODEL = _llm("DBEXPLORER_LLM_MODEL", "model")
        self.LLM_API_KEY = os.getenv("OPENAI_API_KEY") or _llm(
            "DBEXPLORER_LLM_API_KEY", "api_key")
        self.LLM_MAX_RETRIES = _llm("DBEXPLORER_LLM_MAX_RETRIES", "max_retries",
                                    cast=int)
        self.LLM_RETRY_DELAY = _llm("DBEXPLORER_LLM_RETRY_DELAY", "retry_delay",
                                    cast=float)
        self.LLM_TEMPERATURE = _llm("DBEXPLORER_LLM_TEMPERATURE", "temperature",
                                    cast=float)

        # Extra export strategies (dotted import paths)
        self.EXPORT_STRATEGIES: list[str] = yd.get(
            "export_strategies", _DEFAULTS["export_strategies"])
        if not isinstance(self.EXPORT_STRATEGIES, list):
            self.EXPORT_STRATEGIES = []

    def model_directory(self, project_path: str) -> str:
        """Return the semantic model directory inside *project_path*."""
        return os.path.join(project_path, self.MODEL_DIR)

    @classmethod
    def load(cls, config_path: str | None = None,
             project_path: str | None = None) -> "Config":
        """Load config from YAML file (if found) + env vars + defaults.

        When *project_path* is given it is searched before CWD and home.
        """
        search_dirs = None
        if project_path:
            search_dirs = [project_path, os.getcwd(), os.path.expanduser("~")]
        path = _find_config_file(config_path, search_dirs)
        yaml_data = _load_yaml(path) if path else {}
        return cls(yaml_data)
