"""Package entry for approx_analysis (binomial vs normal approximation helpers).

Keep this file minimal so the package is importable via `-m approx_analysis.run`.
"""
__all__ = [
    "config",
    "errors",
    "approximation",
    "grid",
    "report",
    "run",
]
__version__ = "0.1.0"
