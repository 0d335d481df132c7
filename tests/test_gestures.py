import pytest

from config import LETTERS, NOTHING_LABEL, SPACE_LABEL
from gestures import (
    ConfirmationGate,
    LetterStabilizer,
    WordBuffer,
    char_for_label,
    label_for_index,
)


def feed(stabilizer, labels):
    return [stabilizer.update(label) for label in labels]


def test_label_table_is_total_over_28_indices():
    assert len(LETTERS) == 28
    assert label_for_index(0) == "A"
    assert label_for_index(25) == "Z"
    assert label_for_index(26) == NOTHING_LABEL
    assert label_for_index(27) == SPACE_LABEL
    with pytest.raises(ValueError):
        label_for_index(28)
    with pytest.raises(ValueError):
        label_for_index(-1)


def test_char_for_label_maps_sentinels():
    assert char_for_label("Q") == "Q"
    assert char_for_label(SPACE_LABEL) == " "
    assert char_for_label(NOTHING_LABEL) is None


def test_run_exceeding_threshold_promotes_incoming_label():
    stabilizer = LetterStabilizer({"S": 3}, 5)
    events = feed(stabilizer, ["S", "S", "S", "S", "A"])
    assert events == [None, None, None, None, "A"]


def test_run_equal_to_threshold_does_not_promote():
    stabilizer = LetterStabilizer({"S": 3}, 5)
    assert feed(stabilizer, ["S", "S", "S", "A"]) == [None] * 4


def test_labels_absent_from_map_use_default_threshold():
    stabilizer = LetterStabilizer({"S": 3}, 5)
    assert feed(stabilizer, ["B"] * 5 + ["C"])[-1] is None

    stabilizer = LetterStabilizer({"S": 3}, 5)
    assert feed(stabilizer, ["B"] * 6 + ["C"])[-1] == "C"


def test_default_configuration_thresholds():
    stabilizer = LetterStabilizer()
    assert stabilizer.threshold_for("N") == 6
    assert stabilizer.threshold_for("S") == 3
    assert stabilizer.threshold_for("K") == 5
    assert stabilizer.threshold_for(None) == 5


def test_first_tick_never_promotes():
    stabilizer = LetterStabilizer({}, 0)
    assert stabilizer.update("A") is None
    assert stabilizer.run.current_label == "A"
    assert stabilizer.run.consecutive_count == 1


def test_count_restarts_on_every_label_change():
    stabilizer = LetterStabilizer({}, 3)
    # short runs must not add up across labels
    assert feed(stabilizer, ["A", "A", "B", "B", "A", "A", "C"]) == [None] * 7
    assert stabilizer.run.consecutive_count == 1


def test_gate_holds_single_candidate():
    gate = ConfirmationGate()
    assert gate.offer("A")
    assert not gate.offer("B")
    assert gate.pending_letter == "A"
    assert gate.state == ConfirmationGate.AWAITING_CONFIRMATION


def test_confirm_resolves_pending_candidate():
    gate = ConfirmationGate()
    gate.offer(SPACE_LABEL)
    assert gate.confirm() is True
    assert gate.state == ConfirmationGate.IDLE
    assert gate.pending_letter is None


def test_confirm_and_reject_while_idle_are_noops():
    gate = ConfirmationGate()
    assert gate.confirm() is False
    gate.reject()
    assert gate.state == ConfirmationGate.IDLE


def test_reject_clears_pending():
    gate = ConfirmationGate()
    gate.offer("K")
    gate.reject()
    assert not gate.is_pending
    assert gate.offer("L")


def test_word_buffer_append_and_reset():
    word = WordBuffer()
    for char in "HI ":
        word.append(char)
    assert word.text == "HI "
    assert len(word) == 3
    word.reset()
    assert word.text == ""
