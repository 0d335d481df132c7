import asyncio

import numpy as np
import pytest

from camera import BrowserCamera, CameraUnavailableError, decode_frame, encode_frame


def test_frame_data_url_decodes_to_bgr_image():
    image = np.full((32, 48, 3), 200, dtype=np.uint8)
    data_url = encode_frame(image)
    assert data_url.startswith("data:image/jpeg;base64,")

    frame = decode_frame(data_url)
    assert frame.shape == (32, 48, 3)


def test_decode_rejects_garbage():
    with pytest.raises(ValueError):
        decode_frame("data:image/jpeg;base64,not-base64!!")
    with pytest.raises(ValueError):
        decode_frame("data:image/jpeg;base64,aGVsbG8=")


def test_push_resizes_to_square_and_signals_ready():
    async def scenario():
        camera = BrowserCamera(size=224)
        assert not camera.is_ready
        camera.push(np.zeros((480, 640, 3), dtype=np.uint8))
        await camera.wait_ready(0.1)
        return camera

    camera = asyncio.run(scenario())
    assert camera.is_ready
    assert camera.read().shape == (224, 224, 3)


def test_fail_makes_wait_ready_raise():
    async def scenario():
        camera = BrowserCamera()
        camera.fail("Permission denied")
        await camera.wait_ready(1)

    with pytest.raises(CameraUnavailableError, match="Permission denied"):
        asyncio.run(scenario())


def test_no_frames_times_out():
    async def scenario():
        await BrowserCamera().wait_ready(0.01)

    with pytest.raises(CameraUnavailableError):
        asyncio.run(scenario())


def test_read_before_first_frame_raises():
    with pytest.raises(CameraUnavailableError):
        BrowserCamera().read()


def test_read_after_failure_raises_instead_of_stale_frame():
    camera = BrowserCamera(size=224)
    camera.push(np.zeros((224, 224, 3), dtype=np.uint8))
    camera.fail("Camera unplugged")
    assert not camera.is_ready
    with pytest.raises(CameraUnavailableError, match="Camera unplugged"):
        camera.read()
