import asyncio

import numpy as np
import pytest

torch = pytest.importorskip("torch")

from config import LETTERS  # noqa: E402
from model_infer import ISLModel, LetterCNN, preprocess_frame  # noqa: E402


def test_preprocess_produces_square_binary_image():
    frame = np.random.default_rng(0).integers(0, 255, (480, 640, 3), dtype=np.uint8)
    image = preprocess_frame(frame, size=224)
    assert image.shape == (224, 224)
    assert image.dtype == np.uint8
    assert set(np.unique(image)) <= {0, 255}


def test_cnn_scores_every_label():
    model = LetterCNN()
    model.eval()
    with torch.no_grad():
        out = model(torch.zeros((2, 1, 224, 224)))
    assert out.shape == (2, len(LETTERS))


def test_classify_returns_index_in_label_table():
    classifier = ISLModel(model_path="missing.pt")

    async def scenario():
        image = await classifier.preprocess(np.zeros((224, 224, 3), dtype=np.uint8))
        return await classifier.classify(image)

    index = asyncio.run(scenario())
    assert 0 <= index < len(LETTERS)


def test_load_requires_weights_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        asyncio.run(ISLModel(model_path=str(tmp_path / "nope.pt")).load())


def test_load_restores_saved_weights(tmp_path):
    path = tmp_path / "letters.pt"
    torch.save(LetterCNN().state_dict(), path)
    classifier = ISLModel(model_path=str(path))
    asyncio.run(classifier.load())
    assert classifier.loaded
