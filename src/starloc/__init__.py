"""Indoor localization from coded ceiling landmarks."""

from .datatypes import CameraIntrinsics, IdentifiedLandmark, Landmark, LandmarkHypothesis
from .modules.landmark_finder import LandmarkFinder
from .modules.localizer import CeresLocalizer, PointCountMismatchError
from .state.ego_pose import EgoPose

__version__ = "0.1.0"
