# config.py
import os
from dotenv import load_dotenv

load_dotenv()

# Classifier output table: 26 letters, then "no hand" and "space"
LETTERS = [
    'A', 'B', 'C', 'D', 'E', 'F', 'G', 'H', 'I', 'J', 'K', 'L', 'M', 'N', 'O',
    'P', 'Q', 'R', 'S', 'T', 'U', 'V', 'W', 'X', 'Y', 'Z', '_NOTHING', '_SPACE'
]
NOTHING_LABEL = "_NOTHING"
SPACE_LABEL = "_SPACE"
SPACE_CHARACTER = os.getenv("SPACE_CHARACTER", " ")


def parse_thresholds(value: str) -> dict:
    """Parse "S=3,N=6" into {"S": 3, "N": 6}."""
    thresholds = {}
    for item in value.split(","):
        if not item.strip():
            continue
        label, _, count = item.partition("=")
        thresholds[label.strip().upper()] = int(count)
    return thresholds


# Minimum run length a label must exceed before the next label is promoted
DEFAULT_THRESHOLD = int(os.getenv("DEFAULT_THRESHOLD", "5"))
THRESHOLDS = parse_thresholds(os.getenv("THRESHOLDS", "S=3,E=5,A=5,N=6,R=5"))

# Sampler
FRAME_SIZE = int(os.getenv("FRAME_SIZE", "224"))
SAMPLE_INTERVAL_SECONDS = float(os.getenv("SAMPLE_INTERVAL_SECONDS", "0.2"))  # 5 samples/s
FPS_WINDOW = int(os.getenv("FPS_WINDOW", "10"))
CAMERA_READY_TIMEOUT_SECONDS = float(os.getenv("CAMERA_READY_TIMEOUT_SECONDS", "10"))

MODEL_PATH = os.getenv("MODEL_PATH", "./isl_letter_cnn.pt")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 8000))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Empty means run without persistence
MONGODB_URI = os.getenv("MONGODB_URI", "")
