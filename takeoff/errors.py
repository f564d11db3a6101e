"""
Error types raised at the takeoff validation boundaries.
"""


class ValidationError(ValueError):
    """Raised when input is rejected before any state is changed."""
    pass
