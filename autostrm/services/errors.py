class AutoStrmError(Exception):
    pass


class PathEscapeError(AutoStrmError):
    """A computed target path resolved outside the configured base path."""
