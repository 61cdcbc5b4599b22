"""YAML config loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import DirnotesConfig


def load_config(cli_path: str | None = None) -> DirnotesConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults."""
    config_paths = [
        Path(cli_path) if cli_path else None,
        Path("./dirnotes.yaml"),
        Path.home() / ".dirnotes" / "config.yaml",
    ]

    for path in config_paths:
        if path and path.exists():
            try:
                with open(path, encoding="utf-8") as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                raw = _expand_env_vars(raw)
                return DirnotesConfig(**raw)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            except ValidationError as e:
                raise ValueError(f"Invalid config in {path}: {e}") from e

    return DirnotesConfig()


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `dirnotes config init`
DEFAULT_CONFIG_TEMPLATE = """\
# dirnotes.yaml

# Scanning
exclude:
  show_hidden: false
  exclude_patterns: []         # glob patterns on entry names, e.g. ["*.egg-info", "coverage"]
  # denylist: [node_modules, dist, build, .git, __pycache__, .venv]

# Refresh scheduling
refresh:
  debounce_seconds: 0.5        # quiet period after the last change
  min_interval_seconds: 1.0    # minimum gap between two scans
  timeout_seconds: 5.0         # abort a refresh cycle after this long
  auto_refresh: true

# Annotation document
document:
  filename: "directory-config.json"
  backup_corrupt: true

# AI annotations
annotator:
  enabled: false
  max_chars: 8
  language: "zh"               # zh | en

llm:
  provider: "anthropic"        # anthropic | openai | ollama | auto
  model: "claude-haiku-4-5-20251001"
  api_key_env: "ANTHROPIC_API_KEY"
  max_tokens: 256
  timeout: 60

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
