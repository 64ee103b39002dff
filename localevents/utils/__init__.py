"""Utility helpers."""

from .hash_utils import hash_string, slugify

__all__ = ["hash_string", "slugify"]
