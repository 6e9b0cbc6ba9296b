"""FitCheckr: virtual try-on from a person photo and a clothing photo."""

__version__ = "1.0.0"
