"""Dataset loaders for recorded landmark sequences."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from ..config.map_config import read_cam_config, read_map_config
from ..datatypes import CameraIntrinsics, Landmark

logger = logging.getLogger(__name__)


class BaseDataset(ABC):
    """Abstract base class for a dataset loader."""

    def __init__(self, base_path: Path) -> None:
        """
        Initialize the dataset loader.

        Args:
            base_path: The root directory of the dataset.

        """
        self.base_path = Path(base_path)
        self.camera: CameraIntrinsics | None = None
        self.landmarks: dict[int, Landmark] = {}
        self.image_files: list[Path] = []

    @abstractmethod
    def load(self) -> None:
        """Load dataset-specific files (camera, map, image paths)."""
        pass


class ImageFolderDataset(BaseDataset):
    """
    Loader for a folder with `camera.yaml`, `map.yaml` and `images/`.
    """

    IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".bmp")

    def __init__(
        self,
        base_path: Path,
        map_file: str = "map.yaml",
        camera_file: str = "camera.yaml",
        image_dir: str = "images",
    ) -> None:
        super().__init__(base_path)
        self.map_file = map_file
        self.camera_file = camera_file
        self.image_dir = image_dir
        self.load()

    def load(self) -> None:
        """Load camera intrinsics, landmark map and image paths."""
        self.camera = read_cam_config(self.base_path / self.camera_file)
        self.landmarks = read_map_config(self.base_path / self.map_file)

        img_dir = self.base_path / self.image_dir
        self.image_files = sorted(
            p for p in img_dir.glob("*") if p.suffix.lower() in self.IMAGE_SUFFIXES
        )
        logger.info(
            "Loaded %d image paths and %d landmarks from %s",
            len(self.image_files),
            len(self.landmarks),
            self.base_path,
        )
