"""Exceptions raised by the slide document core."""


class SlideKitError(Exception):
    """Base class for SlideKit errors."""


class ImageDecodeError(SlideKitError):
    """An image file could not be read or decoded."""
