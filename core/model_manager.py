"""Model provisioning from the packaged bundle into the cache."""

import logging
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Union

from core.utils import get_asset_path, get_models_dir

logger = logging.getLogger("woundscan.model_manager")


class ModelProvisioner:
    """Resolves model names to local files, copying from the bundle on first use.

    Files are addressed by name only: an existing cache file is returned as-is
    without re-copying or verifying it.
    """

    def __init__(
        self,
        bundle_dir: Optional[Union[str, Path]] = None,
        cache_dir: Optional[Union[str, Path]] = None,
    ):
        self._bundle_dir = Path(bundle_dir) if bundle_dir else Path(get_asset_path("models"))
        self._cache_dir = Path(cache_dir) if cache_dir else get_models_dir()

    @property
    def bundle_dir(self) -> Path:
        return self._bundle_dir

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def resolve(self, model_name: str) -> Optional[Path]:
        """Return the cached path for `model_name`, or None if it cannot be provided."""
        cached = self._cache_dir / model_name
        if cached.is_file():
            return cached

        source = self._bundle_dir / model_name
        partial = None
        try:
            self._cache_dir.mkdir(parents=True, exist_ok=True)
            # Unique name per copy so concurrent resolves never share a partial file
            with tempfile.NamedTemporaryFile(
                dir=self._cache_dir, prefix=model_name + ".", suffix=".part", delete=False
            ) as tmp:
                partial = Path(tmp.name)
                with open(source, "rb") as src:
                    shutil.copyfileobj(src, tmp)
            partial.replace(cached)
        except OSError as e:
            if partial is not None and partial.exists():
                partial.unlink()
            if cached.is_file():
                return cached
            logger.warning("Model %s not available: %s", model_name, e)
            return None

        logger.info("Provisioned model %s into %s", model_name, self._cache_dir)
        return cached


# Module-level singleton
_provisioner: Optional[ModelProvisioner] = None


def get_model_provisioner() -> ModelProvisioner:
    """Get the global ModelProvisioner instance."""
    global _provisioner
    if _provisioner is None:
        _provisioner = ModelProvisioner()
    return _provisioner
