import numpy as np
import pytest

from config import FRAME_SIZE, LETTERS


class ScriptedClassifier:
    """Returns a fixed label sequence, repeating the last label once exhausted."""

    def __init__(self, labels, fail_on=()):
        self.indices = [LETTERS.index(label) for label in labels]
        self.fail_on = set(fail_on)
        self.calls = 0

    async def load(self):
        pass

    async def preprocess(self, frame):
        return np.zeros((FRAME_SIZE, FRAME_SIZE), dtype=np.uint8)

    async def classify(self, image):
        call = self.calls
        self.calls += 1
        if call in self.fail_on:
            raise RuntimeError("classifier backend unreachable")
        return self.indices[min(call, len(self.indices) - 1)]


class ReadySource:
    async def wait_ready(self, timeout):
        pass

    def read(self):
        return np.zeros((FRAME_SIZE, FRAME_SIZE, 3), dtype=np.uint8)


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    async def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
