from .config import (
    BlobDetectorConfig,
    LandmarkFinderConfig,
    LocalizerConfig,
    StargazerConfig,
    get_config,
    load_config,
)
