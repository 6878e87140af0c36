"""
Configuration module: default parameters, grids, and output settings.
"""

# ============================================================================
# STATISTICAL DEFAULTS
# ============================================================================

DEFAULT_CONFIDENCE_LEVEL = 0.95

# Success-failure condition: both n*p and n*(1-p) must reach this count
SUCCESS_FAILURE_THRESHOLD = 10

# Applied only when a caller asks for it explicitly
DEFAULT_CONTINUITY_CORRECTION = False

# ============================================================================
# GRID SETTINGS
# ============================================================================

DEFAULT_NS = [5, 10, 20, 50, 100, 200, 500, 1000]
DEFAULT_PS = [0.01, 0.05, 0.1, 0.25, 0.5]

# Fixed expected successes used when sweeping p at constant n*p
DEFAULT_EXPECTED_SUCCESSES = 5

# ============================================================================
# OUTPUT FILES
# ============================================================================

FIGURE_DPI = 150

OUTPUT_FILES = {
    "curve_csv": "probability_curve.csv",
    "grid_csv": "approximation_grid.csv",
    "expected_grid_csv": "expected_count_grid.csv",
    "curve_png": "exact_vs_normal.png",
    "error_png": "total_abs_error_by_n.png",
    "report_json": "approximation_report.json",
}

# ============================================================================
# LOGGING
# ============================================================================

LOG_LEVEL = "INFO"  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
