"""Exception classes."""


class ResizeInProgress(RuntimeError):
    """Exception class to be raised when a resize is already converging."""


# vim:et sw=4 ts=4
