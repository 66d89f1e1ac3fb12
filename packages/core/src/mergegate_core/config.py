from pathlib import Path
from typing import Optional

import yaml

DEFAULT_NUM_APPROVALS_REQUIRED = 1

RULE_NAMES = ("file_coverage", "emoji_approval", "platform_approval")

DEFAULT_CONFIG: dict = {
    "default_num_approvals_required": DEFAULT_NUM_APPROVALS_REQUIRED,
    "rules": list(RULE_NAMES),  # always evaluated in RULE_NAMES order, whatever order is listed here
    "output": "text",  # "text" | "json"
}


def load_config(config_path: str = ".mergegate.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .mergegate.yml in the current directory
      3. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "rules": list(DEFAULT_CONFIG["rules"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    threshold = config["default_num_approvals_required"]
    if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 1:
        raise ValueError(f"default_num_approvals_required must be a positive integer, got {threshold!r}")
    unknown = [name for name in config["rules"] or [] if name not in RULE_NAMES]
    if unknown:
        raise ValueError(f"Unknown rule(s): {', '.join(unknown)}. Choose from {', '.join(RULE_NAMES)}.")
    if config["output"] not in ("text", "json"):
        raise ValueError(f"Unknown output format: {config['output']!r}. Choose 'text' or 'json'.")

    return config
