# sampler.py
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import numpy as np

from camera import CameraUnavailableError
from config import CAMERA_READY_TIMEOUT_SECONDS, FPS_WINDOW, SAMPLE_INTERVAL_SECONDS
from gestures import label_for_index

logger = logging.getLogger(__name__)


@dataclass
class Tick:
    label: str
    image: np.ndarray
    fps: float


class FpsMeter:
    def __init__(self, window: int = FPS_WINDOW, clock: Callable[[], float] = time.monotonic):
        self.window = window
        self.clock = clock
        self.fps = 0.0
        self.restart()

    def restart(self):
        self.frames = 0
        self.start = self.clock()

    def tick(self) -> Optional[float]:
        """Count one completed tick; returns a fresh estimate every `window` ticks."""
        self.frames += 1
        if self.frames < self.window:
            return None
        elapsed = self.clock() - self.start
        self.fps = self.window / elapsed if elapsed > 0 else 0.0
        self.restart()
        return self.fps


class SamplerLoop:
    """
    Fixed-period sampling of the frame source through the classifier.

    One tick at a time: the next tick starts only after the previous
    preprocess/classify round trip and the inter-tick delay have completed.
    """

    def __init__(
        self,
        source,
        classifier,
        on_tick: Callable[[Tick], Awaitable[None]],
        interval: float = SAMPLE_INTERVAL_SECONDS,
        ready_timeout: float = CAMERA_READY_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_error: Optional[Callable[[Exception], Awaitable[None]]] = None,
        on_unavailable: Optional[Callable[[CameraUnavailableError], Awaitable[None]]] = None,
    ):
        self.source = source
        self.classifier = classifier
        self.on_tick = on_tick
        self.on_error = on_error
        self.on_unavailable = on_unavailable
        self.interval = interval
        self.ready_timeout = ready_timeout
        self.sleep = sleep
        self.fps_meter = FpsMeter(clock=clock)
        self.ticks = 0
        self.failures = 0
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self.running:
            return self._task
        self._stop.clear()
        self._task = asyncio.create_task(self._run_guarded())
        return self._task

    async def stop(self):
        self._stop.set()
        task = self._task
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run_guarded(self):
        try:
            await self.run()
        except CameraUnavailableError as e:
            logger.error("❌ Camera unavailable, sampler stopped after %d ticks: %s", self.ticks, e)
            if self.on_unavailable is None:
                raise
            await self.on_unavailable(e)
        except Exception:
            logger.exception("❌ Sampler stopped unexpectedly")
        finally:
            self._stop.set()

    async def run(self):
        # CameraUnavailableError propagates: before the first tick the loop never starts,
        # after it a failed camera ends the loop
        await self.source.wait_ready(self.ready_timeout)
        self.fps_meter.restart()
        logger.info("✅ Sampler started (%.0f ms period)", self.interval * 1000)

        while not self._stop.is_set():
            await self.tick()
            if self._stop.is_set():
                break
            await self.sleep(self.interval)

        logger.info("Sampler stopped after %d ticks (%d failed)", self.ticks, self.failures)

    async def tick(self) -> Optional[str]:
        frame = self.source.read()
        try:
            processed = await self.classifier.preprocess(frame)
            index = await self.classifier.classify(processed)
            label = label_for_index(index)
        except Exception as e:
            # Transient: the run state is left untouched for this tick
            self.failures += 1
            logger.warning("⚠️ Classifier tick failed: %s", e)
            if self.on_error is not None:
                await self.on_error(e)
            return None

        self.ticks += 1
        self.fps_meter.tick()
        try:
            await self.on_tick(Tick(label=label, image=processed, fps=self.fps_meter.fps))
        except Exception as e:
            logger.exception("❌ Tick handler failed for %s", label)
            if self.on_error is not None:
                await self.on_error(e)
        return label
