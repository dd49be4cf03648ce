"""Model session ownership, lazy initialization, and serialized inference.

The engine exclusively owns its sessions. Initialization runs at most once; a
second lock serializes every inference call because a session is not safe for
concurrent invocation. Callers wait for the lock, they are never rejected.
"""

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

import numpy as np

from core import constants
from core.model_manager import ModelProvisioner, get_model_provisioner
from core.utils import ResourceUnavailableError

logger = logging.getLogger("woundscan.inference_engine")


class EngineState(Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


class InferenceSession:
    """A loaded TorchScript model run on CPU.

    Input and output are numpy arrays; the model receives the NHWC tensor as-is.
    """

    def __init__(self, model_path: Path):
        import torch

        self.model_path = Path(model_path)
        self._module = torch.jit.load(str(self.model_path), map_location="cpu")
        self._module.eval()

    def run(self, tensor: np.ndarray) -> np.ndarray:
        import torch

        # torch.from_numpy rejects read-only arrays, so copy into a new tensor
        inputs = torch.tensor(tensor, dtype=torch.float32)
        with torch.inference_mode():
            outputs = self._module(inputs)
        if isinstance(outputs, (tuple, list)):
            outputs = outputs[0]
        return outputs.cpu().numpy()


SessionLoader = Callable[[Path], InferenceSession]


class InferenceEngine:
    """Owns the classification session and the optional segmentation session."""

    def __init__(
        self,
        provisioner: Optional[ModelProvisioner] = None,
        classification_model: str = constants.CLASSIFICATION_MODEL_NAME,
        segmentation_model: Optional[str] = constants.SEGMENTATION_MODEL_NAME,
        session_loader: SessionLoader = InferenceSession,
        eager: bool = False,
    ):
        self._provisioner = provisioner or get_model_provisioner()
        self._classification_model = classification_model
        self._segmentation_model = segmentation_model
        self._session_loader = session_loader

        self._state = EngineState.UNINITIALIZED
        self._error = ""
        self._classifier: Optional[InferenceSession] = None
        self._segmenter: Optional[InferenceSession] = None

        self._init_lock = threading.Lock()
        self._inference_lock = threading.Lock()

        if eager:
            threading.Thread(
                target=self.initialize, name="inference-engine-init", daemon=True
            ).start()

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def error(self) -> str:
        """Why initialization failed, empty otherwise."""
        return self._error

    @property
    def has_segmentation(self) -> bool:
        return self._segmenter is not None

    def initialize(self) -> EngineState:
        """Load sessions once. Concurrent callers wait for the same attempt."""
        with self._init_lock:
            if self._state in (EngineState.READY, EngineState.FAILED):
                return self._state

            self._state = EngineState.INITIALIZING
            logger.info("Initializing inference engine")

            try:
                self._classifier = self._load(self._classification_model)
            except Exception as e:
                self._error = f"{self._classification_model}: {e}"
                self._state = EngineState.FAILED
                logger.warning("Inference engine failed to initialize: %s", self._error)
                return self._state

            if self._segmentation_model:
                try:
                    self._segmenter = self._load(self._segmentation_model)
                except Exception as e:
                    logger.warning("Segmentation unavailable, area will be estimated: %s", e)
                    self._segmenter = None

            self._state = EngineState.READY
            logger.info(
                "Inference engine ready (segmentation %s)",
                "enabled" if self._segmenter else "disabled",
            )
            return self._state

    def ensure_ready(self) -> bool:
        """Initialize if needed and report whether inference can run."""
        if self._state is EngineState.READY:
            return True
        return self.initialize() is EngineState.READY

    def run_classification(self, tensor: np.ndarray) -> np.ndarray:
        """Raw classification logits as a flat vector."""
        if not self.ensure_ready():
            raise ResourceUnavailableError(f"Inference engine not ready: {self._error}")
        with self._inference_lock:
            logits = self._classifier.run(tensor)
        return np.asarray(logits, dtype=np.float64).reshape(-1)

    def run_segmentation(self, tensor: np.ndarray) -> np.ndarray:
        """Per-pixel wound probabilities."""
        if not self.ensure_ready():
            raise ResourceUnavailableError(f"Inference engine not ready: {self._error}")
        if self._segmenter is None:
            raise ResourceUnavailableError("No segmentation model loaded")
        with self._inference_lock:
            mask = self._segmenter.run(tensor)
        return np.asarray(mask, dtype=np.float32)

    def _load(self, model_name: str) -> InferenceSession:
        path = self._provisioner.resolve(model_name)
        if path is None:
            raise ResourceUnavailableError(f"Model {model_name} not found")
        return self._session_loader(path)
