from datetime import datetime
from pathlib import Path

import pytest

import config
from db import database
from utils.directions import Direction
from utils.packages import ImportSucceeded, import_package

OWNER = "tester"
SEED_MS = int(datetime(2025, 11, 1, 9, 0).timestamp() * 1000)


def _write_test_config(config_path: Path) -> None:
    config_path.write_text(
        "\n".join(
            [
                "[profile]",
                f"owner_id = \"{OWNER}\"",
                "",
                "[study]",
                "daily_goal = 20",
                "queue_limit = 20",
                "streak_lookback_days = 365",
                "notification_top_k = 10",
                "",
                "[grading]",
                "levenshtein_perfect_threshold = 0.98",
                "levenshtein_good_threshold = 0.85",
                "",
                "[quota]",
                "story_daily_limit = 2",
            ]
        ),
        encoding="utf-8",
    )


def build_package(count: int, package_id: str = "en_tr_a1_001", start_id: int = 1000, reversible=True) -> dict:
    words = []
    for offset in range(count):
        word_id = start_id + offset
        words.append(
            {
                "id": word_id,
                "source": f"word{word_id}",
                "target": f"kelime{word_id}",
                "example": {"source": f"A word{word_id}.", "target": f"Bir kelime{word_id}."},
                "pronunciation": None,
                "level": "A1",
                "category": "basic",
                "reversible": reversible if isinstance(reversible, bool) else word_id in reversible,
                "user_added": False,
            }
        )
    return {
        "package_info": {"id": package_id, "version": "1.0.0", "level": "A1", "language_pair": "en_tr"},
        "words": words,
    }


@pytest.fixture()
def lingo_env(tmp_path, monkeypatch):
    config_dir = tmp_path / ".lingocoach"
    config_dir.mkdir()
    config_path = config_dir / "config.toml"
    _write_test_config(config_path)

    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_path)
    monkeypatch.setattr(database, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(database, "DB_PATH", config_dir / "lingocoach.db")
    for name in ("LINGOCOACH_OWNER_ID", "DAILY_GOAL", "QUEUE_LIMIT", "STORY_DAILY_LIMIT", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)

    database.init_db()
    return config_dir


@pytest.fixture()
def conn(lingo_env):
    with database.get_conn() as connection:
        yield connection


@pytest.fixture()
def seed_words(conn):
    def _seed(count=5, package_id="en_tr_a1_001", start_id=1000, select=Direction.SOURCE_TO_TARGET, reversible=True):
        document = build_package(count, package_id=package_id, start_id=start_id, reversible=reversible)
        states = list(import_package(conn, document, owner_id=OWNER, select=select, now_ms=SEED_MS))
        assert isinstance(states[-1], ImportSucceeded)
        return [start_id + offset for offset in range(count)]

    return _seed


@pytest.fixture()
def package_document():
    return build_package
