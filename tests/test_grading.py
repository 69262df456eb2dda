from utils.grading import char_diff, quality_from_answer

GRADING = {
    "grading": {
        "levenshtein_perfect_threshold": 0.98,
        "levenshtein_good_threshold": 0.85,
        "levenshtein_pass_threshold": 0.7,
        "levenshtein_partial_threshold": 0.5,
    }
}


def test_exact_answer_is_perfect_ignoring_case_and_spacing():
    assert quality_from_answer("ev", "ev", GRADING) == 5
    assert quality_from_answer("Good morning", "  good   MORNING ", GRADING) == 5


def test_small_typo_is_good():
    assert quality_from_answer("hello", "helo", GRADING) == 4


def test_unrelated_answer_gets_lowest_nonzero_grade():
    assert quality_from_answer("cat", "dog", GRADING) == 1


def test_blank_answer_is_zero():
    assert quality_from_answer("ev", "", GRADING) == 0
    assert quality_from_answer("ev", "   ", GRADING) == 0


def test_any_accepted_translation_counts():
    assert quality_from_answer("merhaba, selam", "selam", GRADING) == 5
    assert quality_from_answer("big / large", "large", GRADING) == 5


def test_char_diff_marks_missing_and_extra():
    diff = char_diff("ev", "evx")

    assert [token["status"] for token in diff["expected"]] == ["match", "match"]
    assert [token["status"] for token in diff["actual"]] == ["match", "match", "extra"]
