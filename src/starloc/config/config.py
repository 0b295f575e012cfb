import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml


@dataclass
class BlobDetectorConfig:
    """Parameters handed to cv2.SimpleBlobDetector."""

    min_threshold: float = 50.0
    max_threshold: float = 220.0
    threshold_step: float = 10.0
    min_repeatability: int = 2
    min_dist_between_blobs: float = 2.0

    filter_by_area: bool = True
    min_area: float = 2.0
    max_area: float = 1000.0

    filter_by_color: bool = True
    blob_color: int = 255


@dataclass
class LandmarkFinderConfig:
    """Configuration data class for landmark recognition."""

    # clustering
    max_radius_for_cluster: float = 40.0
    min_points_per_landmark: int = 5
    max_points_per_landmark: int = 9

    # corner hypotheses
    max_corner_hypotheses: int = 10
    corner_hypotheses_cutoff: float = 1.0  # relative to best score
    fw_cross_product: float = 1.0
    fw_length_triangle: float = 1.0
    corner_angle_tolerance: float = 0.2  # max |cos| at the right-angle corner
    point_inside_tolerance: float = 0.1  # margin around the unit square

    # id decoding
    grid_dim: int = 4
    intensity_threshold: float = 128.0

    blob: BlobDetectorConfig = field(default_factory=BlobDetectorConfig)


@dataclass
class LocalizerConfig:
    """Configuration data class for pose refinement."""

    estimate_2d_pose: bool = False
    cauchy_loss_scale: float = 9.0  # pixels
    camera_height_margin: float = 1.0  # camera stays this far below the lowest landmark

    # solver
    max_num_iterations: int = 100
    function_tolerance: float = 1e-6
    parameter_tolerance: float = 1e-8


@dataclass
class StargazerConfig:
    """Full pipeline configuration."""

    finder: LandmarkFinderConfig = field(default_factory=LandmarkFinderConfig)
    localizer: LocalizerConfig = field(default_factory=LocalizerConfig)

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def get_config(preset: str = "default") -> StargazerConfig:
    """
    Return the configuration for a named preset.

    Args:
        preset: Name of the preset (default, planar).

    Returns:
        The configuration object with preset-specific overrides.

    Raises:
        ValueError: If the preset is unknown.

    """
    cfg = StargazerConfig()

    if preset == "default":
        pass

    elif preset == "planar":
        # ground robots: fixed camera height, heading only
        cfg.localizer.estimate_2d_pose = True

    else:
        raise ValueError(f"Unknown config preset: {preset}")

    return cfg


def _update_dataclass(target: Any, values: dict[str, Any], section: str) -> None:
    known = {f.name: f for f in fields(target)}
    for key, value in values.items():
        if key not in known:
            raise ValueError(f"Unknown config key: {section}{key}")
        current = getattr(target, key)
        if hasattr(current, "__dataclass_fields__"):
            if not isinstance(value, dict):
                raise ValueError(f"Config section {section}{key} must be a mapping")
            _update_dataclass(current, value, f"{section}{key}.")
        elif isinstance(current, bool):
            setattr(target, key, bool(value))
        else:
            setattr(target, key, type(current)(value))


def load_config(path: str | Path, preset: str = "default") -> StargazerConfig:
    """
    Load a configuration file on top of a preset.

    Args:
        path: YAML or JSON file with optional `finder` and `localizer` sections.
        preset: Preset providing the defaults.

    Returns:
        The merged configuration.

    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config not found: {p}")

    with p.open("r", encoding="utf-8") as fp:
        if p.suffix.lower() in {".yaml", ".yml"}:
            raw = yaml.safe_load(fp) or {}
        else:
            raw = json.load(fp)

    if not isinstance(raw, dict):
        raise ValueError("Config root must be a JSON/YAML object")

    cfg = get_config(preset)
    _update_dataclass(cfg, raw, "")
    return cfg
