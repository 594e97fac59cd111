"""
Configuration constants for the motion COG tracker.
Defaults match a 640x480 webcam processed at roughly 10 frames per second.
"""

import cv2

# =============================================================================
# Camera Settings
# =============================================================================
FRAME_WIDTH = 640
FRAME_HEIGHT = 480
TARGET_FPS = 30
PROCESSING_FPS = 10  # 100ms per iteration

# =============================================================================
# Corner Detection (Shi-Tomasi)
# =============================================================================
MAX_CORNERS = 300  # Fresh budget whenever corners are re-detected
CORNER_QUALITY_LEVEL = 0.01
CORNER_MIN_DISTANCE = 5  # Pixels between returned corners
CORNER_BLOCK_SIZE = 3
CORNER_USE_HARRIS = False
CORNER_HARRIS_K = 0.04

# =============================================================================
# Optical Flow (Lucas-Kanade)
# =============================================================================
LK_WIN_SIZE = (10, 10)  # Smaller is faster
LK_MAX_LEVEL = 5  # Pyramid levels
LK_CRITERIA = (cv2.TERM_CRITERIA_EPS | cv2.TERM_CRITERIA_COUNT, 20, 0.3)
FB_ERROR_THRESHOLD = None  # Pixels; None disables the forward-backward check

# =============================================================================
# Motion Centroid Tracking
# =============================================================================
MIN_DIR_LENGTH = 15  # Shorter directions are jitter
MAX_DIR_LENGTH_DIVISOR = 8  # Directions longer than width // 8 are mismatches
ANGLE_RANGE = 20  # Degrees per angle bucket
MIN_DIRS_IN_LIST = 5  # Dominant bucket must hold more than this
MAX_WITHOUT_DIRS = 30  # Empty frames before the COG disappears

# =============================================================================
# Display
# =============================================================================
COG_RADIUS = 10
COG_COLOR = (0, 0, 255)  # Red (BGR)
ARROW_COLOR = (255, 0, 0)  # Blue (BGR)
ARROW_THICKNESS = 2

# =============================================================================
# Logging
# =============================================================================
LOG_LEVEL = "INFO"
