"""
BigPdfAssembler - Numeric Constants

Simple numeric constants with ZERO internal imports to avoid circular dependencies.
For application-level constants (strings, paths), use config.py.
"""

from typing import Final

# ============================================================================
# Page Rotation
# ============================================================================

ROTATION_STEP_DEGREES: Final[int] = 90
VALID_ROTATIONS: Final[tuple[int, ...]] = (0, 90, 180, 270)

# ============================================================================
# Delivery
# ============================================================================

# Minimum gap between two successive split deliveries
DEFAULT_DELIVERY_DELAY_MS: Final[int] = 500

# ============================================================================
# Compression (high level)
# ============================================================================

MIN_IMAGE_DIMENSION_PX: Final[int] = 64
HIGH_COMPRESSION_JPEG_QUALITY: Final[int] = 60
HIGH_COMPRESSION_IMAGE_DPI: Final[int] = 150
