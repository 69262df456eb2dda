import json
import sqlite3
from datetime import datetime

import pytest

from utils import packages
from utils.daily import record_answer
from utils.directions import Direction
from utils.errors import InvalidInputError, NotFoundError
from utils.packages import (
    ImportFailed,
    ImportIdle,
    ImportInProgress,
    ImportSucceeded,
    add_user_item,
    delete_package,
    get_item,
    import_package,
    list_items,
    load_package_file,
    set_selection,
)
from utils.progress import list_progress
from utils.queue import build_queue, count_selected

S2T = Direction.SOURCE_TO_TARGET
T2S = Direction.TARGET_TO_SOURCE
OWNER = "tester"
NOW_MS = int(datetime(2025, 11, 10, 12, 0).timestamp() * 1000)


def test_import_reports_states_per_batch(conn, package_document):
    states = list(import_package(conn, package_document(5), now_ms=NOW_MS, batch_size=2))

    assert isinstance(states[0], ImportIdle)
    progress = [state for state in states if isinstance(state, ImportInProgress)]
    assert [(state.current, state.total) for state in progress] == [(0, 5), (2, 5), (4, 5), (5, 5)]
    assert progress[-1].progress == 100
    assert states[-1] == ImportSucceeded(package_id="en_tr_a1_001", word_count=5)
    assert len(list_items(conn)) == 5


def test_import_accepts_language_named_fields(conn, tmp_path):
    document = {
        "package_info": {"id": "en_tr_a1_legacy", "version": "1.2.0", "level": "A1"},
        "words": [
            {
                "id": 1,
                "english": "house",
                "turkish": "ev",
                "example": {"en": "This is my house.", "tr": "Bu benim evim."},
                "level": "A1",
                "category": "home",
                "userAdded": True,
            }
        ],
    }
    path = tmp_path / "package.json"
    path.write_text(json.dumps(document), encoding="utf-8")

    states = list(import_package(conn, load_package_file(path), now_ms=NOW_MS))

    assert isinstance(states[-1], ImportSucceeded)
    item = get_item(conn, 1)
    assert (item["source_text"], item["target_text"]) == ("house", "ev")
    assert item["example_target"] == "Bu benim evim."
    assert item["user_added"] is True
    assert item["reversible"] is True


def test_invalid_document_fails_without_writes(conn, package_document):
    document = package_document(2)
    del document["words"][1]["target"]

    states = list(import_package(conn, document, now_ms=NOW_MS))

    assert isinstance(states[0], ImportIdle)
    assert isinstance(states[-1], ImportFailed)
    assert list_items(conn) == []


def test_reimport_is_idempotent(conn, package_document):
    list(import_package(conn, package_document(3), owner_id=OWNER, select=S2T, now_ms=NOW_MS))
    positions = [item["position"] for item in list_items(conn)]

    document = package_document(3)
    document["words"][0]["target"] = "yeni"
    states = list(import_package(conn, document, owner_id=OWNER, select=S2T, now_ms=NOW_MS))

    assert isinstance(states[-1], ImportSucceeded)
    items = list_items(conn)
    assert [item["position"] for item in items] == positions
    assert items[0]["target_text"] == "yeni"
    assert count_selected(conn, OWNER) == 3


def test_import_selects_mixed_directions_for_reversible_items(conn, package_document):
    list(import_package(conn, package_document(2, reversible={1000}), owner_id=OWNER, select=Direction.MIXED))

    rows = conn.execute(
        "SELECT item_id, direction FROM selections WHERE owner_id = ? ORDER BY item_id, direction",
        (OWNER,),
    ).fetchall()

    assert [(row["item_id"], row["direction"]) for row in rows] == [
        (1000, S2T.value),
        (1000, T2S.value),
        (1001, S2T.value),
    ]


def test_delete_package_cascades(conn, seed_words):
    ids = seed_words(3)
    record_answer(conn, owner_id=OWNER, item_id=ids[0], direction=S2T, quality=4, now_ms=NOW_MS)

    assert delete_package(conn, "en_tr_a1_001") == 3

    assert list_items(conn) == []
    assert list_progress(conn, OWNER) == []
    assert count_selected(conn, OWNER) == 0
    with pytest.raises(NotFoundError):
        delete_package(conn, "en_tr_a1_001")


def test_list_items_filters(conn, seed_words):
    seed_words(3)
    seed_words(2, package_id="en_tr_a2_001", start_id=2000)

    assert len(list_items(conn, package_id="en_tr_a2_001")) == 2
    assert len(list_items(conn, level="A1", limit=2)) == 2
    assert [item["id"] for item in list_items(conn, offset=4)] == [2001]
    assert list_items(conn, category="travel") == []


def test_set_selection(conn, seed_words):
    ids = seed_words(2, select=None, reversible={1000})

    assert set_selection(conn, OWNER, ids[0], Direction.MIXED, now_ms=NOW_MS) == (S2T, T2S)
    assert set_selection(conn, OWNER, ids[1], Direction.MIXED, now_ms=NOW_MS) == (S2T,)
    assert count_selected(conn, OWNER) == 2

    set_selection(conn, OWNER, ids[0], Direction.MIXED, "mastered", now_ms=NOW_MS)
    assert count_selected(conn, OWNER) == 1


def test_set_selection_rejects_bad_input(conn, seed_words):
    ids = seed_words(1, select=None, reversible=False)

    with pytest.raises(InvalidInputError):
        set_selection(conn, OWNER, ids[0], T2S)
    with pytest.raises(InvalidInputError):
        set_selection(conn, OWNER, ids[0], S2T, "archived")
    with pytest.raises(NotFoundError):
        set_selection(conn, OWNER, 999999, S2T)


def test_storage_failure_is_reported_as_storage(conn, package_document, monkeypatch):
    def _failing_upsert(*args, **kwargs):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(packages, "_upsert_item", _failing_upsert)

    states = list(import_package(conn, package_document(3), now_ms=NOW_MS))

    failed = states[-1]
    assert isinstance(failed, ImportFailed)
    assert failed.is_storage_failure
    assert failed.package_id == "en_tr_a1_001"
    assert list_items(conn) == []


def test_invalid_document_is_not_a_storage_failure(conn):
    failed = list(import_package(conn, {"package_info": {"id": "x"}}, now_ms=NOW_MS))[-1]

    assert isinstance(failed, ImportFailed)
    assert not failed.is_storage_failure


def test_add_user_item_creates_and_selects_both_directions(conn, seed_words):
    seed_words(2)

    item = add_user_item(conn, OWNER, " to wander ", "dolaşmak", example_source="We wander.", now_ms=NOW_MS)

    assert item["id"] == 100000
    assert item["user_added"] is True
    assert item["package_id"] == "user_custom"
    assert (item["source_text"], item["target_text"]) == ("to wander", "dolaşmak")
    assert item["example_source"] == "We wander."
    queue = build_queue(conn, OWNER, Direction.MIXED, NOW_MS, 20)
    assert [(entry.item_id, entry.direction) for entry in queue][-2:] == [(100000, S2T), (100000, T2S)]

    second = add_user_item(conn, OWNER, "to roam", "gezinmek", direction=S2T, now_ms=NOW_MS)
    assert second["id"] == 100001
    assert count_selected(conn, OWNER) == 4


def test_add_user_item_rejects_duplicates_and_blanks(conn):
    add_user_item(conn, OWNER, "lighthouse", "deniz feneri", now_ms=NOW_MS)

    with pytest.raises(InvalidInputError):
        add_user_item(conn, OWNER, "Lighthouse", "fener", now_ms=NOW_MS)
    with pytest.raises(InvalidInputError):
        add_user_item(conn, OWNER, "beacon", "DENIZ FENERI", now_ms=NOW_MS)
    with pytest.raises(InvalidInputError):
        add_user_item(conn, OWNER, "  ", "boş", now_ms=NOW_MS)

    assert len(list_items(conn, package_id="user_custom")) == 1


def test_user_items_follow_high_package_ids(conn, seed_words):
    seed_words(1, start_id=250000)

    assert add_user_item(conn, OWNER, "tide", "gelgit", now_ms=NOW_MS)["id"] == 250001
