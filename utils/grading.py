from Levenshtein import ratio as lev_ratio
from difflib import SequenceMatcher
from typing import Dict, Any, List
import unicodedata
from config import load_config

def _normalize(text: str) -> str:
    cleaned = unicodedata.normalize("NFC", text).strip().casefold()
    return " ".join(cleaned.split())

def quality_from_answer(expected: str, answer: str, config: Dict[str, Any] = None) -> int:
    """Grade a typed answer against the expected translation on the SM-2 0-5 scale."""
    if not config:
        config = load_config()
    grading_config = config.get('grading', {})
    perfect_th = grading_config.get('levenshtein_perfect_threshold', 0.98)
    good_th = grading_config.get('levenshtein_good_threshold', 0.85)
    pass_th = grading_config.get('levenshtein_pass_threshold', 0.7)
    partial_th = grading_config.get('levenshtein_partial_threshold', 0.5)

    if not answer or not answer.strip():
        return 0

    # Several accepted translations may be separated by commas or slashes
    candidates = [part for part in expected.replace("/", ",").split(",") if part.strip()] or [expected]
    answer_clean = _normalize(answer)
    lev = max(lev_ratio(answer_clean, _normalize(candidate)) for candidate in candidates)

    if lev >= perfect_th:
        return 5
    elif lev >= good_th:
        return 4
    elif lev >= pass_th:
        return 3
    elif lev >= partial_th:
        return 2
    return 1

def char_diff(expected_text: str, actual_text: str) -> Dict[str, List[Dict[str, str]]]:
    """Compute a character diff of a typed answer for display."""
    expected_chars = list(expected_text or "")
    actual_chars = list(actual_text or "")
    matcher = SequenceMatcher(None, expected_chars, actual_chars)
    expected: List[Dict[str, str]] = []
    actual: List[Dict[str, str]] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            for char in expected_chars[i1:i2]:
                expected.append({"token": char, "status": "match"})
            for char in actual_chars[j1:j2]:
                actual.append({"token": char, "status": "match"})
        elif tag == "delete":
            for char in expected_chars[i1:i2]:
                expected.append({"token": char, "status": "missing"})
        elif tag == "insert":
            for char in actual_chars[j1:j2]:
                actual.append({"token": char, "status": "extra"})
        elif tag == "replace":
            for char in expected_chars[i1:i2]:
                expected.append({"token": char, "status": "substitution"})
            for char in actual_chars[j1:j2]:
                actual.append({"token": char, "status": "substitution"})
    return {"expected": expected, "actual": actual}
