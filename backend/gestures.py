# gestures.py
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from config import (
    DEFAULT_THRESHOLD,
    LETTERS,
    NOTHING_LABEL,
    SPACE_CHARACTER,
    SPACE_LABEL,
    THRESHOLDS,
)

logger = logging.getLogger(__name__)


def label_for_index(index: int) -> str:
    if not 0 <= index < len(LETTERS):
        raise ValueError(f"Label index out of range: {index}")
    return LETTERS[index]


def char_for_label(label: str) -> Optional[str]:
    """Character a committed label contributes to the word, None for no hand."""
    if label == NOTHING_LABEL:
        return None
    if label == SPACE_LABEL:
        return SPACE_CHARACTER
    return label


@dataclass
class RunState:
    current_label: Optional[str] = None
    consecutive_count: int = 0


class LetterStabilizer:
    """
    Turns the per-tick label stream into rare promotion events.

    A run is broken when the incoming label differs from the current one. If the
    broken run was longer than the threshold of its own label, the incoming label
    is promoted. The count always restarts with the incoming label.
    """

    def __init__(self, thresholds: Optional[Dict[str, int]] = None, default_threshold: int = DEFAULT_THRESHOLD):
        self.thresholds = dict(THRESHOLDS if thresholds is None else thresholds)
        self.default_threshold = default_threshold
        self.run = RunState()

    def threshold_for(self, label: Optional[str]) -> int:
        return self.thresholds.get(label, self.default_threshold)

    def update(self, label: str) -> Optional[str]:
        if label == self.run.current_label:
            self.run.consecutive_count += 1
            return None

        prior_label = self.run.current_label
        prior_count = self.run.consecutive_count
        promoted = label if prior_count > self.threshold_for(prior_label) else None

        self.run.current_label = label
        self.run.consecutive_count = 1
        return promoted

    def reset(self):
        self.run = RunState()


class ConfirmationGate:
    IDLE = "idle"
    AWAITING_CONFIRMATION = "awaiting_confirmation"

    def __init__(self):
        self.state = self.IDLE
        self.pending_letter: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.state == self.AWAITING_CONFIRMATION

    def offer(self, label: str) -> bool:
        """Hold a candidate. A second candidate while one is pending is dropped."""
        if self.is_pending:
            logger.debug("Candidate %s dropped, %s still pending", label, self.pending_letter)
            return False
        self.state = self.AWAITING_CONFIRMATION
        self.pending_letter = label
        return True

    def confirm(self) -> bool:
        """Resolve the pending candidate; False when nothing was pending."""
        if not self.is_pending:
            return False
        self._clear()
        return True

    def reject(self):
        if self.is_pending:
            self._clear()

    def _clear(self):
        self.state = self.IDLE
        self.pending_letter = None


class WordBuffer:
    def __init__(self):
        self._chars = []

    def append(self, char: str):
        self._chars.append(char)

    def reset(self):
        self._chars.clear()

    @property
    def text(self) -> str:
        return "".join(self._chars)

    def __len__(self):
        return len(self._chars)
