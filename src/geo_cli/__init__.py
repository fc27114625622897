"""Citation intelligence and brand visibility scoring for generative AI answers."""

__version__ = "0.4.0"
