"""Validation of provider credentials"""

from .key_validator import KeyStatus, KeyValidationResult, KeyValidator

__all__ = ['KeyStatus', 'KeyValidationResult', 'KeyValidator']
