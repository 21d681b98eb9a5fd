"""Positive/negative stamping-die height maps from a black/white image."""

from .config import DEFAULT_PARAMETERS, Parameters
from .distance import DistanceField, compute_distance_field
from .errors import DieFormsError, InvalidInputError, InvalidParameterError, OutOfRangeError
from .fade import FadeProfile, HeightField, fade_heights
from .forms import FormPair, generate_forms
from .mask import Mask, PixelClass, classify
from .pipeline import DieForms, run
from .quantize import HeightScale, QuantizedImage, quantize, quantize_pair, scale_for

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_PARAMETERS",
    "DieForms",
    "DieFormsError",
    "DistanceField",
    "FadeProfile",
    "FormPair",
    "HeightField",
    "HeightScale",
    "InvalidInputError",
    "InvalidParameterError",
    "Mask",
    "OutOfRangeError",
    "Parameters",
    "PixelClass",
    "QuantizedImage",
    "classify",
    "compute_distance_field",
    "fade_heights",
    "generate_forms",
    "quantize",
    "quantize_pair",
    "run",
    "scale_for",
]
