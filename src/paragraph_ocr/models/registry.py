"""
Model registry: resolve local paths for model weights and dictionaries.

Files are searched in the models directory (``./models`` by default, or
``$PARAGRAPH_OCR_MODELS_DIR``). When a HuggingFace repository id is given,
missing files are fetched with huggingface_hub, which handles caching,
resumable downloads, and integrity checks.

Usage:
    from paragraph_ocr.models import ModelRegistry

    registry = ModelRegistry("./models")
    path = registry.get("recognition", "en_dict")
    print(registry.status())
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from .config import ALL_GROUPS, ModelFile, ModelGroup

logger = logging.getLogger(__name__)

MODELS_DIR_ENV = "PARAGRAPH_OCR_MODELS_DIR"


class ModelRegistry:
    """Central manager for all model files."""

    def __init__(
        self,
        models_dir: Optional[Union[str, Path]] = None,
        repo_id: Optional[str] = None,
    ):
        if models_dir is None:
            models_dir = os.environ.get(MODELS_DIR_ENV, "./models")
        self._models_dir = Path(models_dir)
        self._repo_id = repo_id
        self._groups = ALL_GROUPS

    @property
    def models_dir(self) -> Path:
        return self._models_dir

    @property
    def repo_id(self) -> Optional[str]:
        return self._repo_id

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, group_name: str, file_key: str) -> Path:
        """Return the local path for a model file, downloading if configured.

        Args:
            group_name: "detection" or "recognition"
            file_key:   e.g. "detector", "en_recognizer", "en_dict"

        Returns:
            Resolved Path to the file on disk.

        Raises:
            KeyError: unknown group or file key
            FileNotFoundError: file is neither local nor downloadable
        """
        group = self._resolve_group(group_name)
        mf = self._resolve_file(group, file_key)
        return self._ensure_file(mf)

    def status(self) -> str:
        """Return a human-readable status report."""
        lines = [
            "Model Registry Status",
            f"Directory:  {self._models_dir}",
            f"Repository: {self._repo_id or '-'}",
            "=" * 60,
        ]
        for group in self._groups.values():
            lines.append(f"\n{group.name}  ({group.description})")
            for key, mf in group.files.items():
                local = self._models_dir / mf.filename
                mark = "OK" if local.is_file() else "MISSING"
                lines.append(f"  [{mark:>7}]  {key:<18} {mf.filename}")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_group(self, name: str) -> ModelGroup:
        if name not in self._groups:
            available = ", ".join(self._groups)
            raise KeyError(f"Unknown model group '{name}'. Available: {available}")
        return self._groups[name]

    @staticmethod
    def _resolve_file(group: ModelGroup, key: str) -> ModelFile:
        if key not in group.files:
            available = ", ".join(group.files)
            raise KeyError(
                f"Unknown file '{key}' in group '{group.name}'. Available: {available}"
            )
        return group.files[key]

    def _ensure_file(self, mf: ModelFile) -> Path:
        """Return the local path, downloading via HF Hub if a repo is set."""
        local = self._models_dir / mf.filename
        if local.is_file():
            return local

        if self._repo_id is None:
            raise FileNotFoundError(
                f"Model file not found: {local} "
                f"(set {MODELS_DIR_ENV} or pass models_dir)"
            )

        from huggingface_hub import hf_hub_download

        logger.info("Downloading %s from %s", mf.filename, self._repo_id)
        downloaded = hf_hub_download(
            self._repo_id, mf.filename, local_dir=str(self._models_dir)
        )
        return Path(downloaded)
