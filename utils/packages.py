from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from db.database import write_transaction
from models.package import VocabularyPackage, WordEntry
from utils import clock
from utils.directions import Direction, directions_for_item, parse_direction
from utils.errors import InvalidInputError, NotFoundError, StorageError

logger = logging.getLogger(__name__)

IMPORT_BATCH_SIZE = 50
IMPORT_ERROR_INVALID = "invalid"
IMPORT_ERROR_STORAGE = "storage"
SELECTION_STATUSES = ("selected", "hidden", "mastered")


@dataclass(frozen=True)
class ImportIdle:
    package_id: Optional[str] = None


@dataclass(frozen=True)
class ImportInProgress:
    package_id: str
    current: int
    total: int

    @property
    def progress(self) -> int:
        if self.total <= 0:
            return 100
        return int(self.current * 100 / self.total)


@dataclass(frozen=True)
class ImportSucceeded:
    package_id: str
    word_count: int


@dataclass(frozen=True)
class ImportFailed:
    error: str
    package_id: Optional[str] = None
    kind: str = IMPORT_ERROR_INVALID

    @property
    def is_storage_failure(self) -> bool:
        return self.kind == IMPORT_ERROR_STORAGE


ImportState = Union[ImportIdle, ImportInProgress, ImportSucceeded, ImportFailed]


def load_package_file(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _upsert_package(conn, package: VocabularyPackage, now_ms: int) -> None:
    info = package.package_info
    conn.execute(
        """
        INSERT INTO packages (id, version, level, language_pair, description, attribution, imported_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            version = excluded.version,
            level = excluded.level,
            language_pair = excluded.language_pair,
            description = excluded.description,
            attribution = excluded.attribution,
            imported_at = excluded.imported_at
        """,
        (info.id, info.version, info.level, info.language_pair, info.description, info.attribution, now_ms),
    )


def _upsert_item(conn, package_id: str, word: WordEntry, now_ms: int) -> None:
    example = word.example
    conn.execute(
        """
        INSERT INTO items (
            id, source_text, target_text, example_source, example_target, pronunciation,
            level, category, reversible, user_added, package_id, position, created_at
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, (SELECT COALESCE(MAX(position), 0) + 1 FROM items), ?)
        ON CONFLICT(id) DO UPDATE SET
            source_text = excluded.source_text,
            target_text = excluded.target_text,
            example_source = excluded.example_source,
            example_target = excluded.example_target,
            pronunciation = excluded.pronunciation,
            level = excluded.level,
            category = excluded.category,
            reversible = excluded.reversible,
            user_added = excluded.user_added,
            package_id = excluded.package_id
        """,
        (
            word.id,
            word.source.strip(),
            word.target.strip(),
            example.source if example else None,
            example.target if example else None,
            word.pronunciation,
            word.level,
            word.category,
            int(word.reversible),
            int(word.user_added),
            package_id,
            now_ms,
        ),
    )


def _select_new_item(conn, owner_id: str, word: WordEntry, direction: Direction, now_ms: int) -> None:
    for concrete in directions_for_item(direction, word.reversible):
        conn.execute(
            """
            INSERT OR IGNORE INTO selections (owner_id, item_id, direction, status, selected_at)
            VALUES (?, ?, ?, 'selected', ?)
            """,
            (owner_id, word.id, concrete.value, now_ms),
        )


def import_package(
    conn,
    document: Union[Mapping[str, Any], VocabularyPackage],
    *,
    owner_id: Optional[str] = None,
    select: Optional[Direction] = None,
    now_ms: Optional[int] = None,
    batch_size: int = IMPORT_BATCH_SIZE,
) -> Iterator[ImportState]:
    """Load a vocabulary package into the item table, reporting progress as states.

    Yields ImportIdle, then one ImportInProgress per committed batch, then a single
    ImportSucceeded or ImportFailed. Each batch is its own transaction and item
    writes are upserts, so a consumer that stops early can simply run the import
    again. With ``owner_id`` and ``select`` the new items are also selected for
    study in that direction (existing selections are left untouched).
    """
    yield ImportIdle()
    try:
        package = document if isinstance(document, VocabularyPackage) else VocabularyPackage.model_validate(document)
    except ValidationError as exc:
        logger.warning("Rejected vocabulary package: %s", exc)
        yield ImportFailed(error=f"Invalid package document: {exc.error_count()} validation error(s)")
        return

    package_id = package.package_info.id
    now_ms = now_ms or clock.now_ms()
    words = package.words
    total = len(words)
    batch_size = max(batch_size, 1)
    try:
        with write_transaction(conn):
            _upsert_package(conn, package, now_ms)
        yield ImportInProgress(package_id=package_id, current=0, total=total)
        for start in range(0, total, batch_size):
            batch = words[start:start + batch_size]
            with write_transaction(conn):
                for word in batch:
                    _upsert_item(conn, package_id, word, now_ms)
                    if owner_id is not None and select is not None:
                        _select_new_item(conn, owner_id, word, select, now_ms)
            yield ImportInProgress(package_id=package_id, current=start + len(batch), total=total)
    except StorageError as exc:
        logger.error("Import of package %s failed: %s", package_id, exc)
        yield ImportFailed(error=str(exc), package_id=package_id, kind=IMPORT_ERROR_STORAGE)
        return
    logger.info("Imported package %s with %s words", package_id, total)
    yield ImportSucceeded(package_id=package_id, word_count=total)


def delete_package(conn, package_id: str) -> int:
    """Remove a package; its items, selections and progress rows go with it."""
    with write_transaction(conn):
        cursor = conn.execute("SELECT COUNT(*) FROM packages WHERE id = ?", (package_id,))
        if not cursor.fetchone()[0]:
            raise NotFoundError(f"Package {package_id} not found")
        cursor = conn.execute("SELECT COUNT(*) FROM items WHERE package_id = ?", (package_id,))
        item_count = int(cursor.fetchone()[0])
        conn.execute("DELETE FROM packages WHERE id = ?", (package_id,))
    logger.info("Deleted package %s (%s items)", package_id, item_count)
    return item_count


def get_item(conn, item_id: int) -> Dict[str, Any]:
    cursor = conn.cursor()
    cursor.execute("SELECT * FROM items WHERE id = ?", (item_id,))
    row = cursor.fetchone()
    if not row:
        raise NotFoundError(f"Item {item_id} not found")
    item = dict(row)
    item["reversible"] = bool(item["reversible"])
    item["user_added"] = bool(item["user_added"])
    return item


def list_items(
    conn,
    package_id: Optional[str] = None,
    level: Optional[str] = None,
    category: Optional[str] = None,
    limit: int = 100,
    offset: int = 0,
) -> List[Dict[str, Any]]:
    filters = []
    params: List[Any] = []
    if package_id:
        filters.append("package_id = ?")
        params.append(package_id)
    if level:
        filters.append("level = ?")
        params.append(level)
    if category:
        filters.append("category = ?")
        params.append(category)
    where_clause = f"WHERE {' AND '.join(filters)}" if filters else ""
    cursor = conn.cursor()
    cursor.execute(
        f"SELECT * FROM items {where_clause} ORDER BY position ASC, id ASC LIMIT ? OFFSET ?",
        (*params, limit, offset),
    )
    items = []
    for row in cursor.fetchall():
        item = dict(row)
        item["reversible"] = bool(item["reversible"])
        item["user_added"] = bool(item["user_added"])
        items.append(item)
    return items


def set_selection(
    conn,
    owner_id: str,
    item_id: int,
    direction: Direction,
    status: str = "selected",
    now_ms: Optional[int] = None,
) -> Tuple[Direction, ...]:
    """Mark an item selected, hidden or mastered for study in the given direction(s)."""
    direction = parse_direction(direction)
    if status not in SELECTION_STATUSES:
        raise InvalidInputError(f"Unknown selection status: {status!r}")
    now_ms = now_ms or clock.now_ms()
    with write_transaction(conn):
        item = get_item(conn, item_id)
        directions = directions_for_item(direction, item["reversible"])
        if not directions:
            raise InvalidInputError(f"Item {item_id} can only be studied source to target")
        for concrete in directions:
            conn.execute(
                """
                INSERT INTO selections (owner_id, item_id, direction, status, selected_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(owner_id, item_id, direction) DO UPDATE SET
                    status = excluded.status,
                    selected_at = excluded.selected_at
                """,
                (owner_id, item_id, concrete.value, status, now_ms),
            )
    return directions


USER_PACKAGE_ID = "user_custom"
USER_ITEM_LEVEL = "CUSTOM"
USER_ITEM_CATEGORY = "user_added"
FIRST_USER_ITEM_ID = 100000


def add_user_item(
    conn,
    owner_id: str,
    source: str,
    target: str,
    example_source: Optional[str] = None,
    example_target: Optional[str] = None,
    direction: Direction = Direction.MIXED,
    now_ms: Optional[int] = None,
) -> Dict[str, Any]:
    """Create a learner's own word in the ``user_custom`` package and select it for study.

    Words whose source or target text matches an existing user-added word
    (ignoring case) are rejected. Ids start at 100000 and always follow the highest
    stored id.
    """
    direction = parse_direction(direction)
    source = (source or "").strip()
    target = (target or "").strip()
    if not source or not target:
        raise InvalidInputError("Both source and target text are required")
    now_ms = now_ms or clock.now_ms()
    with write_transaction(conn):
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT id FROM items
            WHERE user_added = 1
                AND (LOWER(source_text) = LOWER(?) OR LOWER(target_text) = LOWER(?))
            """,
            (source, target),
        )
        if cursor.fetchone():
            raise InvalidInputError(f"Word {source!r} / {target!r} was already added")
        conn.execute(
            """
            INSERT OR IGNORE INTO packages (id, version, level, description, imported_at)
            VALUES (?, '1.0.0', ?, 'Words added by the learner', ?)
            """,
            (USER_PACKAGE_ID, USER_ITEM_LEVEL, now_ms),
        )
        cursor.execute("SELECT MAX(id) FROM items")
        last_id = cursor.fetchone()[0]
        item_id = max(int(last_id or 0) + 1, FIRST_USER_ITEM_ID)
        word = WordEntry(
            id=item_id,
            source=source,
            target=target,
            example={"source": example_source, "target": example_target}
            if example_source or example_target else None,
            level=USER_ITEM_LEVEL,
            category=USER_ITEM_CATEGORY,
            reversible=True,
            user_added=True,
        )
        _upsert_item(conn, USER_PACKAGE_ID, word, now_ms)
        _select_new_item(conn, owner_id, word, direction, now_ms)
        item = get_item(conn, item_id)
    logger.info("Added user word %s (%s -> %s) for %s", item_id, source, target, owner_id)
    return item
