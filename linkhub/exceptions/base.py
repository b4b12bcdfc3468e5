"""Base exception classes for LinkHub."""


class LinkHubError(Exception):
    """
    Base exception for all LinkHub errors.

    All custom exceptions in the application should inherit from this class
    to enable consistent error handling and catching.
    """

    pass
