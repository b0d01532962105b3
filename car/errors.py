"""
Exceptions raised by car
"""


__all__ = [
    'BackendWriteError',
    'CarError',
    'ConfigReadError',
    'InvalidArgument',
    'UnsupportedFormat',
]


class CarError(Exception):
    """
    Base exception for everything car reports to the user
    """


class InvalidArgument(CarError):
    """
    Raised when the destination or sources are missing or malformed
    """


class UnsupportedFormat(CarError):
    """
    Raised when a compression type is not one car knows how to write
    """
    def __init__(self, value: str):
        super().__init__(f'Unsupported format: {value}')
        self.value = value


class ConfigReadError(CarError):
    """
    Raised when a setting can't be read or converted to the requested type
    """


class BackendWriteError(CarError):
    """
    Raised when writing the archive fails partway.

    The destination may have been partially written; car does not remove it.
    """
