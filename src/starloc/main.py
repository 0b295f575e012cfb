import logging
from dataclasses import dataclass
from pathlib import Path

import cv2
import numpy as np
import rerun as rr
import tyro

from .config.config import StargazerConfig, get_config, load_config
from .datatypes import CameraIntrinsics, IdentifiedLandmark, Landmark
from .modules.dataset_loader import ImageFolderDataset
from .modules.landmark_finder import LandmarkFinder
from .modules.localizer import CeresLocalizer, PointCountMismatchError
from .state.ego_pose import EgoPose
from .utils.logging_utils import add_file_handler, setup_logger
from .utils.trajectory import save_trajectory

logger = logging.getLogger("starloc")


def init_rerun(landmarks: dict[int, Landmark]) -> None:
    """Initialize Rerun logging with the static landmark map."""
    rr.init("Stargazer Localization", spawn=True)

    # map frame: z up towards the ceiling
    rr.log("world", rr.ViewCoordinates.RIGHT_HAND_Z_UP, static=True)

    map_points = np.vstack([lm.world_points() for lm in landmarks.values()])
    rr.log(
        "world/landmarks",
        rr.Points3D(map_points, colors=[0, 255, 0], radii=0.02),
        static=True,
    )


def log_frame_rerun(
    image: np.ndarray,
    pose: EgoPose,
    camera: CameraIntrinsics,
    frame_id: int,
    points: np.ndarray,
    img_landmarks: list[IdentifiedLandmark],
    trajectory_history: list[np.ndarray],
) -> None:
    rr.set_time_sequence("frame", frame_id)

    rr.log(
        "world/camera",
        rr.Transform3D(translation=pose.position, mat3x3=pose.rotation_matrix()),
    )
    rr.log(
        "world/camera/image",
        rr.Pinhole(
            image_from_camera=camera.matrix(),
            width=image.shape[1],
            height=image.shape[0],
            image_plane_distance=0.5,
        ),
    )
    rr.log("world/camera/image", rr.Image(image))

    # all bright points
    if len(points) > 0:
        rr.log(
            "world/camera/image/points",
            rr.Points2D(points, colors=[255, 0, 0], radii=2),
        )

    # corners of identified landmarks
    if img_landmarks:
        rr.log(
            "world/camera/image/corners",
            rr.Points2D(
                np.vstack([lm.corners for lm in img_landmarks]),
                colors=[0, 255, 0],
                radii=4,
                labels=[f"{lm.landmark_id:#x}" for lm in img_landmarks for _ in lm.corners],
            ),
        )

    if len(trajectory_history) > 1:
        rr.log(
            "world/trajectory",
            rr.LineStrips3D([trajectory_history], colors=[255, 255, 0], radii=0.02),
        )


@dataclass
class Args:
    path: Path = Path("data")
    config: Path | None = None
    planar: bool = False
    headless: bool = False
    trajectory: Path = Path("trajectory.txt")
    log_level: str = "INFO"
    log_file: Path | None = None


def main(args: Args) -> None:
    setup_logger("starloc", getattr(logging, args.log_level.upper(), logging.INFO))
    if args.log_file is not None:
        add_file_handler(logger, str(args.log_file))

    # setup
    preset = "planar" if args.planar else "default"
    cfg: StargazerConfig
    if args.config is not None:
        cfg = load_config(args.config, preset)
    else:
        cfg = get_config(preset)

    loader = ImageFolderDataset(args.path)
    if not loader.image_files:
        logger.error("No images found.")
        return

    finder = LandmarkFinder(loader.landmarks.keys(), cfg.finder)
    localizer = CeresLocalizer(loader.landmarks, loader.camera, cfg.localizer)

    if not args.headless:
        init_rerun(loader.landmarks)

    trajectory: list[tuple[float, EgoPose]] = []
    trajectory_history: list[np.ndarray] = []

    for i, image_file in enumerate(loader.image_files):
        img = cv2.imread(str(image_file), cv2.IMREAD_GRAYSCALE)
        if img is None:
            logger.warning("Could not read %s", image_file)
            continue

        img_landmarks = finder.detect_landmarks(img)
        if not img_landmarks:
            logger.info("Frame %04d | no landmarks", i)
            continue

        try:
            pose = localizer.update_pose(img_landmarks)
        except PointCountMismatchError:
            continue

        summary = localizer.summary
        logger.info(
            "Frame %04d | LMs: %02d | Pos: %.3f %.3f %.3f | Yaw: %.1f deg | Cost: %.3f",
            i,
            len(img_landmarks),
            *pose.position,
            np.degrees(pose.yaw()),
            summary.final_cost if summary else float("nan"),
        )

        trajectory.append((float(i), pose.copy()))
        trajectory_history.append(pose.position.copy())

        if not args.headless:
            log_frame_rerun(
                img,
                pose,
                loader.camera,
                i,
                finder.points,
                img_landmarks,
                trajectory_history,
            )

    save_trajectory(trajectory, args.trajectory)
    logger.info("Done. %d poses written to %s", len(trajectory), args.trajectory)


def cli() -> None:
    main(tyro.cli(Args))


if __name__ == "__main__":
    cli()
