import tomllib
import shutil
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv
import os

CONFIG_DIR = Path.home() / ".lingocoach"
CONFIG_PATH = CONFIG_DIR / "config.toml"
PROJECT_CONFIG_EXAMPLE = Path(__file__).parent / "config.toml"

DEFAULT_OWNER_ID = "default"


def load_config() -> Dict[str, Any]:
    """Load config from ~/.lingocoach/config.toml, copy example if missing, load .env overrides."""
    load_dotenv()  # Load .env for overrides (e.g., DAILY_GOAL env var)
    if not CONFIG_PATH.exists():
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        shutil.copy(PROJECT_CONFIG_EXAMPLE, CONFIG_PATH)
    with open(CONFIG_PATH, "rb") as f:
        config = tomllib.load(f)

    profile_cfg = config.get("profile", {})
    config["profile"] = {
        "owner_id": os.getenv("LINGOCOACH_OWNER_ID", profile_cfg.get("owner_id", DEFAULT_OWNER_ID)),
    }
    study_cfg = config.get("study", {})
    config["study"] = {
        "daily_goal": int(os.getenv("DAILY_GOAL", study_cfg.get("daily_goal", 20))),
        "queue_limit": int(os.getenv("QUEUE_LIMIT", study_cfg.get("queue_limit", 20))),
        "streak_lookback_days": int(study_cfg.get("streak_lookback_days", 365)),
        "notification_top_k": int(study_cfg.get("notification_top_k", 10)),
    }
    grading_cfg = config.get("grading", {})
    config["grading"] = {
        "levenshtein_perfect_threshold": float(os.getenv(
            "LEVENSHTEIN_PERFECT_THRESHOLD",
            grading_cfg.get("levenshtein_perfect_threshold", 0.98)
        )),
        "levenshtein_good_threshold": float(os.getenv(
            "LEVENSHTEIN_GOOD_THRESHOLD",
            grading_cfg.get("levenshtein_good_threshold", 0.85)
        )),
        "levenshtein_pass_threshold": float(grading_cfg.get("levenshtein_pass_threshold", 0.7)),
        "levenshtein_partial_threshold": float(grading_cfg.get("levenshtein_partial_threshold", 0.5)),
    }
    quota_cfg = config.get("quota", {})
    config["quota"] = {
        "story_daily_limit": int(os.getenv("STORY_DAILY_LIMIT", quota_cfg.get("story_daily_limit", 2))),
    }
    logging_cfg = config.get("logging", {})
    config["logging"] = {
        "level": os.getenv("LOG_LEVEL", logging_cfg.get("level", "INFO")).upper(),
    }
    return config

def get_config_value(section: str, key: str, default: Optional[Any] = None) -> Any:
    """Get nested config value, e.g., get_config_value('study', 'daily_goal')."""
    config = load_config()
    value = config.get(section, {}).get(key, default)
    return value


def get_owner_id(config: Optional[Dict[str, Any]] = None) -> str:
    """Profile that store calls are scoped to when the caller names none."""
    config = config or load_config()
    owner_id = config.get("profile", {}).get("owner_id") or DEFAULT_OWNER_ID
    return str(owner_id)
