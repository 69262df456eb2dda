# SQL schema for LingoCoach database

SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Content packages (owned by ingestion)
CREATE TABLE IF NOT EXISTS packages (
    id TEXT PRIMARY KEY,
    version TEXT NOT NULL DEFAULT '1.0.0',
    level TEXT,
    language_pair TEXT,
    description TEXT,
    attribution TEXT,
    imported_at INTEGER NOT NULL
);

-- Vocabulary items (read-only for the scheduler)
CREATE TABLE IF NOT EXISTS items (
    id INTEGER PRIMARY KEY,
    source_text TEXT NOT NULL,
    target_text TEXT NOT NULL,
    example_source TEXT,
    example_target TEXT,
    pronunciation TEXT,
    level TEXT NOT NULL,
    category TEXT NOT NULL,
    reversible INTEGER NOT NULL DEFAULT 1,
    user_added INTEGER NOT NULL DEFAULT 0,
    package_id TEXT NOT NULL,
    position INTEGER NOT NULL DEFAULT 0,
    created_at INTEGER NOT NULL,
    FOREIGN KEY (package_id) REFERENCES packages (id) ON DELETE CASCADE
);

-- Per-direction study selection
CREATE TABLE IF NOT EXISTS selections (
    owner_id TEXT NOT NULL,
    item_id INTEGER NOT NULL,
    direction TEXT NOT NULL CHECK(direction IN ('source_to_target', 'target_to_source')),
    status TEXT NOT NULL DEFAULT 'selected' CHECK(status IN ('selected', 'hidden', 'mastered')),
    selected_at INTEGER NOT NULL,
    PRIMARY KEY (owner_id, item_id, direction),
    FOREIGN KEY (item_id) REFERENCES items (id) ON DELETE CASCADE
);

-- SM-2 progress per (owner, item, direction)
CREATE TABLE IF NOT EXISTS progress (
    owner_id TEXT NOT NULL,
    item_id INTEGER NOT NULL,
    direction TEXT NOT NULL CHECK(direction IN ('source_to_target', 'target_to_source')),
    repetitions INTEGER NOT NULL DEFAULT 0 CHECK(repetitions >= 0),
    ease_factor REAL NOT NULL DEFAULT 2.5 CHECK(ease_factor >= 1.3),
    interval_days INTEGER NOT NULL DEFAULT 0 CHECK(interval_days >= 0),
    due_at INTEGER NOT NULL,
    last_reviewed_at INTEGER,
    PRIMARY KEY (owner_id, item_id, direction),
    FOREIGN KEY (item_id) REFERENCES items (id) ON DELETE CASCADE
);

-- Study sessions
CREATE TABLE IF NOT EXISTS study_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_id TEXT NOT NULL,
    session_type TEXT NOT NULL DEFAULT 'review' CHECK(session_type IN ('review', 'new_words', 'mixed', 'quick_review')),
    started_at INTEGER NOT NULL,
    ended_at INTEGER,
    words_studied INTEGER NOT NULL DEFAULT 0,
    correct_answers INTEGER NOT NULL DEFAULT 0,
    total_duration_ms INTEGER NOT NULL DEFAULT 0
);

-- Daily progress counters
CREATE TABLE IF NOT EXISTS daily_stats (
    owner_id TEXT NOT NULL,
    date TEXT NOT NULL,
    words_studied INTEGER NOT NULL DEFAULT 0,
    correct_answers INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (owner_id, date)
);

-- Daily quota counters for unrelated limited resources
CREATE TABLE IF NOT EXISTS quota_usage (
    owner_id TEXT NOT NULL,
    resource TEXT NOT NULL,
    date TEXT NOT NULL,
    count INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (owner_id, resource, date)
);
"""

# Indexes for performance
INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_items_package ON items (package_id);
CREATE INDEX IF NOT EXISTS idx_items_position ON items (position);
CREATE INDEX IF NOT EXISTS idx_items_level_category ON items (level, category);
CREATE INDEX IF NOT EXISTS idx_selections_item ON selections (item_id);
CREATE INDEX IF NOT EXISTS idx_selections_owner_status ON selections (owner_id, direction, status);
CREATE INDEX IF NOT EXISTS idx_progress_item ON progress (item_id);
CREATE INDEX IF NOT EXISTS idx_progress_due ON progress (owner_id, direction, due_at);
CREATE INDEX IF NOT EXISTS idx_sessions_started ON study_sessions (owner_id, started_at);
CREATE INDEX IF NOT EXISTS idx_daily_stats_date ON daily_stats (date);
CREATE INDEX IF NOT EXISTS idx_quota_usage_date ON quota_usage (date);
"""
