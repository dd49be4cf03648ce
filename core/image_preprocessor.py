"""Wound photo loading and conversion to the model input tensor."""

import logging
from typing import Sequence

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from core import constants
from core.utils import DecodeError

logger = logging.getLogger("woundscan.image_preprocessor")


class ImagePreprocessor:
    """Handles loading and preprocessing of wound photos for model input."""

    @staticmethod
    def load_image(image_path: str) -> Image.Image:
        """Decode an image file into an RGB Pillow image.

        Raises DecodeError if the format is unrecognized or the file is corrupt.
        """
        try:
            with Image.open(image_path) as img:
                img.load()
                return img.convert("RGB")
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            raise DecodeError(f"Cannot decode image {image_path}: {e}") from e

    @staticmethod
    def preprocess(
        image_path: str,
        width: int = constants.INPUT_WIDTH,
        height: int = constants.INPUT_HEIGHT,
        means: Sequence[float] = constants.CHANNEL_MEANS,
    ) -> np.ndarray:
        """Preprocess a wound photo for the classification/segmentation models.

        The image is scaled and center-cropped to exactly width x height (no
        padding), then each RGB channel has its reference mean subtracted.
        Values are not rescaled beyond that.

        Returns a read-only float32 array of shape (1, height, width, 3).
        """
        img = ImagePreprocessor.load_image(image_path)
        fitted = ImageOps.fit(img, (width, height), method=Image.Resampling.BILINEAR)

        tensor = np.asarray(fitted, dtype=np.float32) - np.asarray(means, dtype=np.float32)
        tensor = np.ascontiguousarray(tensor[np.newaxis, ...])
        tensor.flags.writeable = False

        logger.debug("Preprocessed %s from %s to %s", image_path, img.size, tensor.shape)
        return tensor

    @staticmethod
    def to_rgb(tensor: np.ndarray, means: Sequence[float] = constants.CHANNEL_MEANS) -> np.ndarray:
        """Undo mean subtraction, giving (H, W, 3) pixel values on a 0-255 scale."""
        return tensor.reshape(-1, tensor.shape[-2], tensor.shape[-1]) + np.asarray(
            means, dtype=np.float32
        )
