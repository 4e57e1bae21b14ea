"""Conversions between domestic account formats and IBAN."""

__all__ = ["CccConverter"]

from .ccc import CccConverter
