"""Utility modules for the Money Manager server."""

from .sanitizer import (
    mask_sensitive_data,
    is_sensitive_key,
)

__all__ = [
    'mask_sensitive_data',
    'is_sensitive_key',
]
