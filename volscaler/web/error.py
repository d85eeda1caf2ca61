class NotFoundError(Exception):
    """Resource not found"""
    pass


class AuthenticationError(Exception):
    """The metrics endpoint rejected our credentials."""
    pass
