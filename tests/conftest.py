"""Shared test fixtures for WoundScan."""

import tempfile
import threading
import time
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from core.inference_engine import InferenceEngine
from core.model_manager import ModelProvisioner
from core.utils import AnalysisConfig, WoundType

CLASSIFIER = "test-classifier.pt"
SEGMENTER = "test-segmenter.pt"


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


def _save(tmp_dir, name, array):
    path = tmp_dir / name
    Image.fromarray(array).save(path)
    return str(path)


@pytest.fixture
def sample_rgb_image(tmp_dir):
    """Random 224x224 RGB photo."""
    return _save(tmp_dir, "sample_rgb.png",
                 np.random.randint(0, 255, (224, 224, 3), dtype=np.uint8))


@pytest.fixture
def wide_image(tmp_dir):
    """Non-square 320x200 photo for crop-to-fill tests."""
    return _save(tmp_dir, "wide.png",
                 np.random.randint(0, 255, (200, 320, 3), dtype=np.uint8))


@pytest.fixture
def red_wound_image(tmp_dir):
    """Solid inflamed-red photo."""
    return _save(tmp_dir, "red.png", np.full((64, 64, 3), (200, 40, 40), dtype=np.uint8))


@pytest.fixture
def gray_image(tmp_dir):
    """Neutral gray photo with no dominant channel."""
    return _save(tmp_dir, "gray.png", np.full((64, 64, 3), 128, dtype=np.uint8))


@pytest.fixture
def corrupt_image(tmp_dir):
    path = tmp_dir / "corrupt.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0 definitely not a jpeg")
    return str(path)


# --- Fake inference sessions ---

class FakeSession:
    """Returns a fixed output for every run."""

    def __init__(self, output, delay: float = 0.0):
        self.output = np.asarray(output, dtype=np.float32)
        self.delay = delay
        self.calls = 0

    def run(self, tensor):
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        return self.output


class FailingSession:
    def run(self, tensor):
        raise RuntimeError("session crashed")


class NonReentrantGuard:
    """Shared across sessions; records any overlapping run() calls."""

    def __init__(self):
        self._lock = threading.Lock()
        self.active = 0
        self.overlaps = 0
        self.calls = 0

    def session(self, output, delay: float = 0.02):
        guard = self

        class _Session:
            def run(self, tensor):
                with guard._lock:
                    guard.active += 1
                    guard.calls += 1
                    if guard.active > 1:
                        guard.overlaps += 1
                time.sleep(delay)
                with guard._lock:
                    guard.active -= 1
                return np.asarray(output, dtype=np.float32)

        return _Session()


def logits_for(wound_type: WoundType, peak: float = 5.0) -> np.ndarray:
    labels = WoundType.model_labels()
    logits = np.zeros((1, len(labels)), dtype=np.float32)
    logits[0, labels.index(wound_type)] = peak
    return logits


def half_mask(height: int = 224, width: int = 224) -> np.ndarray:
    mask = np.zeros((1, height, width, 1), dtype=np.float32)
    mask[:, : height // 2] = 0.9
    return mask


@pytest.fixture
def model_bundle(tmp_dir):
    """Bundle directory containing both placeholder model files."""
    bundle = tmp_dir / "bundle"
    bundle.mkdir()
    (bundle / CLASSIFIER).write_bytes(b"classifier")
    (bundle / SEGMENTER).write_bytes(b"segmenter")
    return bundle


@pytest.fixture
def provisioner(model_bundle, tmp_dir):
    return ModelProvisioner(bundle_dir=model_bundle, cache_dir=tmp_dir / "cache")


@pytest.fixture
def make_engine(provisioner):
    """Build an engine whose loader maps model file names to sessions."""

    def _make(sessions, classification_model=CLASSIFIER, segmentation_model=SEGMENTER):
        def loader(path):
            session = sessions.get(Path(path).name)
            if session is None:
                raise RuntimeError(f"cannot load {path}")
            return session

        return InferenceEngine(
            provisioner=provisioner,
            classification_model=classification_model,
            segmentation_model=segmentation_model,
            session_loader=loader,
        )

    return _make


@pytest.fixture
def fast_config():
    return AnalysisConfig(
        classification_model=CLASSIFIER,
        segmentation_model=SEGMENTER,
        fallback_delay_s=0.0,
        random_seed=7,
    )


@pytest.fixture(autouse=True)
def _init_i18n():
    """Use English messages for all tests."""
    import i18n
    i18n.init("en")
