"""
Base classes for language-specific parsers.
"""

import logging
from typing import List

from tree_sitter import Language, Parser

from ...models.function_record import FunctionRecord

logger = logging.getLogger(__name__)


class ParseResult:
    """Result of parsing a file."""

    def __init__(self):
        self.package: str = ""
        self.imports: List[str] = []
        self.functions: List[FunctionRecord] = []


class LanguageParser:
    """Base class for language-specific parsers."""

    EXTENSIONS: List[str] = []

    def __init__(self, language: Language):
        self.language = language
        self.parser = Parser(language=language)

    def parse(self, repo: str, file_path: str, content: bytes) -> ParseResult:
        """Parse file content and extract one record per function declaration."""
        raise NotImplementedError("Subclasses must implement parse method")

    def detect_language(self, file_path: str) -> bool:
        """Check if this parser can handle the given file."""
        raise NotImplementedError("Subclasses must implement detect_language method")
