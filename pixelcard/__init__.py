"""Pixel card service: stylized pixel-art portraits with a paginated gallery."""

__version__ = "0.1.0"
