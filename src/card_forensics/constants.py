"""Default scoring constants for the pixel analysis algorithms."""

# Grayscale weights (ITU-R BT.601 luma)
LUMA_RED = 0.299
LUMA_GREEN = 0.587
LUMA_BLUE = 0.114

# Canny edge density
CANNY_LOW_THRESHOLD = 50.0  # Weak edge threshold (non-max-suppression mode only)
CANNY_HIGH_THRESHOLD = 150.0  # Strong edge threshold on Sobel magnitude
CANNY_DENSITY_SCALE = 10.0  # Edge density (%) mapped to a full score

# Harris corners
HARRIS_K = 0.04  # Sensitivity factor in det - k * trace^2
HARRIS_THRESHOLD = 10000.0  # Minimum response counted as a corner
HARRIS_WINDOW_SIZE = 1  # Structure tensor summation window (1 = pointwise)
HARRIS_DENSITY_FACTOR = 10000.0  # Corners per 10k pixels
HARRIS_BORDER = 2  # Pixels skipped at each image edge

# Hough-style line estimate
HOUGH_MAGNITUDE_THRESHOLD = 50.0  # Central-difference magnitude for a line pixel
HOUGH_PIXELS_PER_LINE = 100  # Edge pixels per estimated line
HOUGH_LINE_SCALE = 10.0  # Line count mapped to a full score

# Laplacian sharpness
SHARPNESS_VARIANCE_SCALE = 1000.0  # Variance mapped to a full score

# Entropy
MAX_ENTROPY_BITS = 8.0  # Entropy of a uniform 256-level histogram

# Local binary patterns
LBP_MAX_TRANSITIONS = 2  # Patterns with at most this many transitions are uniform

# Histogram of oriented gradients
HOG_BINS = 9  # Orientation bins spanning [-pi, pi]
HOG_VARIANCE_SCALE = 10000.0  # Bin spread mapped to a full score

# Color deviation (Delta-E approximation)
COLOR_SAMPLE_GRID = 100  # Roughly this many samples per image side
COLOR_DELTA_DIVISOR = 50.0  # Average delta that costs one score point

# Score bounds
MIN_SCORE = 0.0
MAX_SCORE = 10.0
MIN_DIMENSION = 3  # Smallest side with a non-empty 3x3 interior

# Cross-image comparison
HISTOGRAM_BINS_PER_CHANNEL = 8  # 256 / 32
SSIM_C1 = 6.5025  # (0.01 * 255)^2
SSIM_C2 = 58.5225  # (0.03 * 255)^2

# Authenticity aggregation
BASE_AUTHENTICITY_SCORE = 100
NO_REFERENCE_SCORE = 50
MAX_REFERENCES = 3
COLOR_CORRELATION_MIN = 0.70
COLOR_CORRELATION_PENALTY = 25
STRUCTURAL_SIMILARITY_MIN = 0.60
STRUCTURAL_SIMILARITY_PENALTY = 25
SHARPNESS_DIFFERENCE_MAX = 100.0
SHARPNESS_DIFFERENCE_PENALTY = 20
LIKELY_FAKE_BELOW = 50
LIKELY_AUTHENTIC_FROM = 75

# Standardized comparison canvas
STANDARD_WIDTH = 900
STANDARD_HEIGHT = 1200
STANDARD_FILL = (255, 255, 255, 255)

# Reference cache
REFERENCE_CACHE_TTL_SECONDS = 3600.0
REFERENCE_CACHE_MAX_ENTRIES = 256
