"""Shared data models."""

from .conversion_result import ConversionResult

__all__ = ['ConversionResult']
