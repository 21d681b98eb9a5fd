from __future__ import annotations


class DieFormsError(Exception):
    """Base class for everything the height-field pipeline raises on purpose."""


class InvalidInputError(DieFormsError, ValueError):
    """
    The input image can't produce a mask we can measure distances on.

    Zero-size images, or images that are all RAISED / all BACKGROUND
    (no boundary at all), end up here.
    """


class InvalidParameterError(DieFormsError, ValueError):
    """A physical parameter is negative, zero where it must be positive, or not finite."""


class OutOfRangeError(DieFormsError, ValueError):
    """
    A computed height landed outside the physical range the output scale covers.

    We never clamp these. The caller gets the pixel, the value and the bound
    so they can decide which parameter to change.
    """

    def __init__(
        self,
        message: str,
        pixel: tuple[int, int] | None = None,
        value: float | None = None,
        bound: float | None = None,
    ) -> None:
        super().__init__(message)
        self.pixel = pixel
        self.value = value
        self.bound = bound
