"""levelboard/core/errors.py"""


class FetchError(Exception):
    """The archive could not be reached or returned an unusable payload."""
