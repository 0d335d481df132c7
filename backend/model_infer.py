# model_infer.py
import asyncio
import logging
import os

import cv2
import numpy as np
import torch
import torch.nn as nn

from config import FRAME_SIZE, LETTERS, MODEL_PATH

logger = logging.getLogger(__name__)


class LetterClassifier:
    """Classifier collaborator: one preprocess and one classify call per tick."""

    async def load(self):
        pass

    async def preprocess(self, frame: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    async def classify(self, image: np.ndarray) -> int:
        raise NotImplementedError


class LetterCNN(nn.Module):
    def __init__(self, num_classes=len(LETTERS)):
        super().__init__()
        self.conv1 = nn.Conv2d(1, 16, 3, padding=1)
        self.conv2 = nn.Conv2d(16, 32, 3, padding=1)
        self.conv3 = nn.Conv2d(32, 64, 3, padding=1)
        self.pool = nn.MaxPool2d(2, 2)
        self.squeeze = nn.AdaptiveAvgPool2d((7, 7))
        self.fc1 = nn.Linear(64 * 7 * 7, 128)
        self.dropout = nn.Dropout(0.5)
        self.fc2 = nn.Linear(128, num_classes)

    def forward(self, x):
        x = self.pool(torch.relu(self.conv1(x)))
        x = self.pool(torch.relu(self.conv2(x)))
        x = self.pool(torch.relu(self.conv3(x)))
        x = self.squeeze(x).view(-1, 64 * 7 * 7)
        x = torch.relu(self.fc1(x))
        x = self.dropout(x)
        return self.fc2(x)


def preprocess_frame(frame: np.ndarray, size: int = FRAME_SIZE) -> np.ndarray:
    """Square, mirrored, binarized hand silhouette; also what the UI displays."""
    frame = cv2.resize(frame, (size, size))
    frame = cv2.flip(frame, 1)
    gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY) if frame.ndim == 3 else frame
    blurred = cv2.GaussianBlur(gray, (5, 5), 2)
    return cv2.adaptiveThreshold(
        blurred, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY_INV, 11, 2
    )


class ISLModel(LetterClassifier):
    def __init__(self, model_path=MODEL_PATH, device="cpu"):
        self.model_path = model_path
        self.device = torch.device(device)
        self.model = LetterCNN().to(self.device)
        self.model.eval()
        self.loaded = False

    async def load(self):
        await asyncio.to_thread(self._load_weights)

    def _load_weights(self):
        if not os.path.exists(self.model_path):
            raise FileNotFoundError(f"Model weights not found: {self.model_path}")
        self.model.load_state_dict(torch.load(self.model_path, map_location=self.device))
        self.model.eval()
        self.loaded = True
        logger.info("✅ Letter model loaded from %s", self.model_path)

    async def preprocess(self, frame):
        return await asyncio.to_thread(preprocess_frame, frame)

    async def classify(self, image):
        return await asyncio.to_thread(self.predict_index, image)

    def predict_index(self, image: np.ndarray) -> int:
        x = torch.tensor(image, dtype=torch.float32).div(255.0).view(1, 1, *image.shape[:2]).to(self.device)
        with torch.no_grad():
            return int(self.model(x).argmax(dim=1).item())
