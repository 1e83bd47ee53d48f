"""
Go parser using Tree-sitter.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Final, Iterator, List, Optional

import tree_sitter_go as ts_go
from tree_sitter import Language, Node

from ...models.function_record import FunctionRecord
from ..errors import ParseError
from .base import LanguageParser, ParseResult

logger = logging.getLogger(__name__)

ERROR_GUARD: Final[str] = "if err != nil"

FUNCTION_NODE_TYPES: Final[tuple] = ("function_declaration", "method_declaration")


class GoParser(LanguageParser):
    """
    Go parser using Tree-sitter.

    Emits one FunctionRecord per top-level function or method declaration,
    in declaration order. The record's code is the exact byte span of the
    declaration node, from the func keyword to the closing brace; preceding
    doc comments are separate nodes and are not included.
    """

    EXTENSIONS: Final[List[str]] = ['.go']
    LANGUAGE: Final[Language] = Language(ts_go.language())

    def __init__(self):
        super().__init__(GoParser.LANGUAGE)

    def detect_language(self, file_path: str) -> bool:
        """Check if file is Go."""
        return Path(file_path).suffix in GoParser.EXTENSIONS

    def parse(self, repo: str, file_path: str, content: bytes) -> ParseResult:
        """
        Parse Go source and build a record for every function declaration.

        Args:
            repo: Repository name stored on each record
            file_path: Path relative to the repository root
            content: Raw file bytes

        Returns:
            ParseResult with package, imports and function records

        Raises:
            ParseError: If the source is not syntactically valid Go
        """
        tree = self.parser.parse(content)
        root_node = tree.root_node

        if root_node.has_error:
            raise ParseError(file_path, self._describe_error(root_node))

        result = ParseResult()
        result.package = self._extract_package(root_node)
        result.imports = self._extract_imports(root_node)

        last_indexed_at: Optional[datetime] = None
        for func_node in self.iter_function_nodes(root_node):
            # Wall clock may step back; keep timestamps non-decreasing within a file.
            indexed_at = datetime.now(timezone.utc)
            if last_indexed_at and indexed_at < last_indexed_at:
                indexed_at = last_indexed_at
            last_indexed_at = indexed_at

            result.functions.append(self._build_record(
                func_node, content, repo, file_path,
                result.package, result.imports, indexed_at
            ))

        return result

    def iter_function_nodes(self, root: Node) -> Iterator[Node]:
        """Yield function and method declarations in source order."""
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type in FUNCTION_NODE_TYPES:
                yield node
                continue
            stack.extend(reversed(node.children))

    def _build_record(
        self,
        func_node: Node,
        content: bytes,
        repo: str,
        file_path: str,
        package: str,
        imports: List[str],
        indexed_at: datetime
    ) -> FunctionRecord:
        """Build a FunctionRecord from a declaration node."""
        name_node = func_node.child_by_field_name('name')
        code = content[func_node.start_byte:func_node.end_byte].decode('utf8', errors='replace')

        return FunctionRecord(
            repo=repo,
            file_path=file_path,
            function_name=self._node_text(name_node),
            code=code,
            has_namedreturns=has_named_returns(func_node),
            has_error_handling=has_error_handling(code),
            package=package,
            imports=list(imports),
            lint_compliant=False,
            indexed_at=indexed_at
        )

    def _extract_package(self, root_node: Node) -> str:
        """Extract the package name from the package clause."""
        for child in root_node.children:
            if child.type == 'package_clause':
                for part in child.children:
                    if part.type == 'package_identifier':
                        return self._node_text(part)
        return ""

    def _extract_imports(self, root_node: Node) -> List[str]:
        """Extract import paths in declaration order, duplicates kept."""
        imports = []
        for child in root_node.children:
            if child.type != 'import_declaration':
                continue
            for spec in self._find_nodes_by_type(child, 'import_spec'):
                path_node = spec.child_by_field_name('path')
                if path_node is not None:
                    imports.append(self._node_text(path_node).strip('"`'))
        return imports

    def _describe_error(self, root_node: Node) -> str:
        """Describe the first syntax error in the tree."""
        for node in self._iter_nodes(root_node):
            if node.type == 'ERROR' or node.is_missing:
                line, column = node.start_point
                kind = f"missing {node.type}" if node.is_missing else "syntax error"
                return f"{kind} at line {line + 1}, column {column + 1}"
        return "syntax error"

    def _find_nodes_by_type(self, root: Node, node_type: str) -> List[Node]:
        """Find all nodes of a specific type in the AST."""
        return [node for node in self._iter_nodes(root) if node.type == node_type]

    def _iter_nodes(self, root: Node) -> Iterator[Node]:
        """Pre-order traversal of the tree."""
        stack = [root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    @staticmethod
    def _node_text(node: Optional[Node]) -> str:
        """Extract text content from a node."""
        if node is None:
            return ""
        return node.text.decode('utf8', errors='replace')


def has_named_returns(func_node: Node) -> bool:
    """
    Check whether a function declares at least one named result.

    The result of a Go function is either a bare type or a parameter list;
    only a parameter list entry with an identifier counts as named.
    """
    result = func_node.child_by_field_name('result')
    if result is None or result.type != 'parameter_list':
        return False

    for param in result.named_children:
        if param.type in ('parameter_declaration', 'variadic_parameter_declaration'):
            if param.child_by_field_name('name') is not None:
                return True
    return False


def has_error_handling(code: str) -> bool:
    """Text heuristic: does the code contain the idiomatic error guard?"""
    return ERROR_GUARD in code
