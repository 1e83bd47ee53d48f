"""
Source extraction using Tree-sitter.
"""

from .base import LanguageParser, ParseResult
from .go import GoParser

__all__ = [
    'LanguageParser',
    'ParseResult',
    'GoParser',
]
