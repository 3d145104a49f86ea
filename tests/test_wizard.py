from esg_platform.wizard import (
    WIZARD_STEPS, LAST_STEP, get_step, get_step_by_key, progress_percentage,
    next_step, previous_step, go_to_step,
)
from esg_platform.results import BatchResult, OperationResult


def test_seven_ordered_steps():
    assert LAST_STEP == 7
    assert [s["number"] for s in WIZARD_STEPS] == list(range(1, 8))
    assert get_step_by_key("review_export")["number"] == 7
    assert get_step(0) is None
    assert get_step(8) is None


def test_progress():
    assert progress_percentage(1) == 0
    assert progress_percentage(4) == 50
    assert progress_percentage(7) == 100


def test_next_advances_furthest():
    result = next_step(1, 1)
    assert result.ok
    assert result.data["current_step"] == 2
    assert result.data["furthest_step"] == 2


def test_next_fails_on_last_step():
    result = next_step(7, 7)
    assert not result.ok
    assert "last" in result.error


def test_previous_keeps_furthest():
    result = previous_step(5, 5)
    assert result.data["current_step"] == 4
    assert result.data["furthest_step"] == 5
    assert not previous_step(1, 3).ok


def test_go_to_allows_visited_and_one_beyond():
    assert go_to_step(5, 5, 2).data["current_step"] == 2
    assert go_to_step(2, 5, 6).data["furthest_step"] == 6
    assert not go_to_step(2, 3, 6).ok
    assert not go_to_step(2, 3, 9).ok


def test_result_objects():
    assert OperationResult.failure(ValueError("bad")).to_dict() == {"ok": False, "data": None, "error": "bad"}
    batch = BatchResult()
    batch.add_success("a.pdf", {"id": 1})
    batch.add_failure("b.exe", "File type not allowed")
    summary = batch.summary()
    assert not batch.ok
    assert summary["total"] == 2
    assert summary["succeeded"] == 1
    assert summary["items"][1] == {"item": "b.exe", "ok": False, "error": "File type not allowed", "data": None}
