# Finding Review Configuration
"""
Configuration settings for the finding review core.
Contains validation mode, export formatting constants, and logging setup.
"""

import logging
import os

# ============================================================================
# CONFIGURATION
# ============================================================================

VALIDATION_MODES = ("permissive", "strict")

CONFIG = {
    # "permissive" recovers from missing tags via the bare-JSON fallback,
    # "strict" requires exactly one non-empty <think> and <output> section
    "validation_mode": os.environ.get("FINDING_REVIEW_VALIDATION_MODE", "permissive"),
    "log_level": os.environ.get("FINDING_REVIEW_LOG_LEVEL", "INFO"),
}

# Indentation of the archive file and of the <output> JSON
ARCHIVE_INDENT = 2

# Severity given to boxes drawn by hand before the reviewer fills them in
DEFAULT_BOX_SEVERITY = 5

# Key used for errors that concern the whole archive
GLOBAL_ERROR_KEY = "GLOBAL"


def validation_mode() -> str:
    """Configured validation mode, "permissive" when the setting is unusable."""
    mode = CONFIG["validation_mode"]
    if mode not in VALIDATION_MODES:
        logging.getLogger(__name__).warning(
            "Unknown validation mode %r, expected one of %s; using permissive", mode, VALIDATION_MODES
        )
        return "permissive"
    return mode


# ============================================================================
# LOGGING SETUP
# ============================================================================

def setup_logging(level=None) -> logging.Logger:
    """Setup and return the logger for the service."""
    if level is None:
        level = CONFIG["log_level"]
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        force=True
    )
    return logging.getLogger("finding_review")
