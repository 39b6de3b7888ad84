from pathlib import Path

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

# Results directories
RESULTS_DIR = PROJECT_ROOT / "results"
RESULTS_VIZ_DIR = RESULTS_DIR / "visualizations"

# Domino pip range (classic double-six set)
MIN_PIP = 0
MAX_PIP = 6

# Expression evaluation tolerances
EQUALITY_EPSILON = 1e-4
DIVISION_EPSILON = 1e-10
EXPRESSION_CACHE_SIZE = 4096  # parsed expressions and name patterns kept per process

# Search parameters
DEFAULT_TIME_LIMIT = 300  # seconds
RECURSION_HEADROOM = 100  # frames kept free below sys.getrecursionlimit()

# Visualization settings
VIZ_DPI = 300
VIZ_FIGSIZE = (8, 8)

# Logging configuration
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
