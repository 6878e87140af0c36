"""Approximation analysis exceptions and warnings."""

__all__ = ["InvalidParameter", "DegenerateTestWarning"]


class InvalidParameter(ValueError):
    """Raised when n, p, k or a confidence level is outside its valid domain."""

    pass


class DegenerateTestWarning(UserWarning):
    """Emitted when confidence bounds fall outside [0, n].

    The two-sided test cannot be carried out at this sample size. Bounds are
    returned unclamped so the caller can report the condition.
    """

    pass
