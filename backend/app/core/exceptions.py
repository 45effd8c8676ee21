class ValidationError(ValueError):
    """Caller supplied an incomplete or semantically invalid pricing request."""
