"""
Code Chunker - Candidate span extraction using tree-sitter.

Walks a JavaScript/TypeScript syntax tree and proposes candidate spans:
functions, classes and type declarations, top-level statements,
multi-line object fields, and route registrations such as
app.get('/users', ...).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from ..models import CandidateSpan, SpanKind

logger = logging.getLogger(__name__)

# Tree-sitter language (lazy loaded, read-only once set)
_ts_language = None

# Parse is rejected when top-level ERROR nodes cover more than this share of lines
MAX_ERROR_RATIO = 0.5

ROUTE_VERBS = frozenset({"get", "post", "put", "patch", "delete", "use", "all"})


def _get_language():
    """Lazy load the TSX grammar, falling back to plain JavaScript."""
    global _ts_language
    if _ts_language is None:
        from tree_sitter import Language
        try:
            # TSX handles .js, .jsx, .ts and .tsx
            import tree_sitter_typescript as tsts
            _ts_language = Language(tsts.language_tsx())
        except ImportError:
            try:
                import tree_sitter_javascript as tsjs
                _ts_language = Language(tsjs.language())
            except ImportError:
                return None
    return _ts_language


class NodeCategory(Enum):
    """Categories of syntax nodes the extractor cares about."""
    FUNCTION = "function"
    CLASS = "class"
    STATEMENT = "statement"
    PROPERTY = "property"
    OTHER = "other"


# tree-sitter node type -> category
NODE_CATEGORIES: Dict[str, NodeCategory] = {
    # Functions
    "function_declaration": NodeCategory.FUNCTION,
    "generator_function_declaration": NodeCategory.FUNCTION,
    "function_expression": NodeCategory.FUNCTION,
    "function": NodeCategory.FUNCTION,  # older grammars
    "generator_function": NodeCategory.FUNCTION,
    "arrow_function": NodeCategory.FUNCTION,
    "method_definition": NodeCategory.FUNCTION,
    # Classes and types
    "class_declaration": NodeCategory.CLASS,
    "abstract_class_declaration": NodeCategory.CLASS,
    "class": NodeCategory.CLASS,
    "interface_declaration": NodeCategory.CLASS,
    "type_alias_declaration": NodeCategory.CLASS,
    "enum_declaration": NodeCategory.CLASS,
    # Statements (top-level only, except route registrations)
    "expression_statement": NodeCategory.STATEMENT,
    "lexical_declaration": NodeCategory.STATEMENT,
    "variable_declaration": NodeCategory.STATEMENT,
    "export_statement": NodeCategory.STATEMENT,
    "ERROR": NodeCategory.STATEMENT,  # unparsed fragment, scored as plain text
    # Object fields
    "pair": NodeCategory.PROPERTY,
}

FUNCTION_LITERALS = frozenset({"arrow_function", "function_expression", "function"})

_KIND_BY_CATEGORY = {
    NodeCategory.FUNCTION: SpanKind.FUNCTION,
    NodeCategory.CLASS: SpanKind.CLASS,
    NodeCategory.STATEMENT: SpanKind.STATEMENT,
    NodeCategory.PROPERTY: SpanKind.PROPERTY,
}


@dataclass
class ExtractionResult:
    """Candidates and enclosing blocks found in one source text."""
    candidates: List[CandidateSpan] = field(default_factory=list)
    blocks: List[CandidateSpan] = field(default_factory=list)  # Functions and classes, by start line

    def smallest_enclosing(self, start: int, end: int) -> Optional[CandidateSpan]:
        """Smallest function/class block containing [start, end]."""
        best = None
        for block in self.blocks:
            if block.start > start:
                break
            if block.contains(start, end) and (best is None or block.size < best.size):
                best = block
        return best


class Chunker:
    """
    AST-based candidate extractor using tree-sitter.

    One visitor handler per NodeCategory; the table is checked at
    construction so every category has a handler.
    """

    def __init__(self):
        self._handlers: Dict[NodeCategory, Callable] = {
            NodeCategory.FUNCTION: self._visit_function,
            NodeCategory.CLASS: self._visit_class,
            NodeCategory.STATEMENT: self._visit_statement,
            NodeCategory.PROPERTY: self._visit_property,
            NodeCategory.OTHER: self._visit_other,
        }
        missing = set(NodeCategory) - set(self._handlers)
        if missing:
            raise TypeError(f"No handler for node categories: {sorted(c.value for c in missing)}")

        self._source = b""
        self._result = ExtractionResult()

    def parse(self, source: str):
        """
        Parse source into a tree.

        Returns:
            Tree, or None when no grammar is available or the parse is
            too damaged to trust
        """
        language = _get_language()
        if language is None:
            logger.debug("No tree-sitter grammar installed")
            return None

        from tree_sitter import Parser

        try:
            tree = Parser(language).parse(source.encode("utf-8"))
        except (ValueError, TypeError) as e:
            logger.debug(f"Parser error: {e}")
            return None

        root = tree.root_node
        if root.type == "ERROR":
            logger.debug("Parse failed: root node is an error")
            return None

        if root.has_error:
            total_lines = max(1, source.count("\n") + 1)
            error_lines = sum(
                child.end_point[0] - child.start_point[0] + 1
                for child in root.children
                if child.type == "ERROR"
            )
            if error_lines / total_lines > MAX_ERROR_RATIO:
                logger.debug(f"Parse failed: {error_lines}/{total_lines} lines inside error nodes")
                return None

        return tree

    def extract(self, source: str) -> Optional[ExtractionResult]:
        """
        Extract candidate spans from source.

        Args:
            source: JavaScript/TypeScript source text

        Returns:
            ExtractionResult, or None when the source could not be parsed
        """
        tree = self.parse(source)
        if tree is None:
            return None

        self._source = source.encode("utf-8")
        self._result = ExtractionResult()

        # Iterative pre-order walk; depth 1 means directly under the program root
        stack: List[Tuple[object, int]] = [
            (child, 1) for child in reversed(tree.root_node.children)
        ]
        while stack:
            node, depth = stack.pop()
            category = self.classify(node, depth)
            self._handlers[category](node, depth)
            for child in reversed(node.children):
                stack.append((child, depth + 1))

        result = self._result
        result.blocks.sort(key=lambda b: (b.start, -b.end))
        self._result = ExtractionResult()
        self._source = b""

        logger.debug(f"Extracted {len(result.candidates)} candidates, {len(result.blocks)} blocks")
        return result

    def classify(self, node, depth: int) -> NodeCategory:
        """Map a node to the category the walk should treat it as."""
        category = NODE_CATEGORIES.get(node.type, NodeCategory.OTHER)

        if category is NodeCategory.STATEMENT:
            if depth == 1 or self.route_name(node) is not None:
                return category
            return NodeCategory.OTHER

        if category is NodeCategory.PROPERTY:
            start, end = _lines(node)
            return category if end - start > 2 else NodeCategory.OTHER

        return category

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _visit_function(self, node, depth: int) -> None:
        start, end = _lines(node)
        name = self._field_name(node, "name")
        self._result.blocks.append(CandidateSpan(start, end, SpanKind.FUNCTION, name))

        # Route callbacks are covered by the route statement itself
        if self._is_route_callback(node):
            return
        self._add_candidate(node, NodeCategory.FUNCTION, name)

    def _visit_class(self, node, depth: int) -> None:
        start, end = _lines(node)
        name = self._field_name(node, "name")
        self._result.blocks.append(CandidateSpan(start, end, SpanKind.CLASS, name))
        self._add_candidate(node, NodeCategory.CLASS, name)

    def _visit_statement(self, node, depth: int) -> None:
        name = self.route_name(node) or self._declaration_name(node)
        self._add_candidate(node, NodeCategory.STATEMENT, name)

    def _visit_property(self, node, depth: int) -> None:
        self._add_candidate(node, NodeCategory.PROPERTY, self._field_name(node, "key"))

    def _visit_other(self, node, depth: int) -> None:
        pass

    def _add_candidate(self, node, category: NodeCategory, name: Optional[str]) -> None:
        start, end = _lines(node)
        self._result.candidates.append(
            CandidateSpan(start=start, end=end, kind=_KIND_BY_CATEGORY[category], name=name)
        )

    # ------------------------------------------------------------------
    # Names
    # ------------------------------------------------------------------

    def _text(self, node) -> str:
        return self._source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    def _field_name(self, node, field_name: str) -> Optional[str]:
        """Identifier text of a named field (name/key), quotes stripped."""
        child = node.child_by_field_name(field_name)
        if child is None:
            return None
        if child.type in ("string", "template_string"):
            return self._text(child)[1:-1] or None
        if child.type.endswith("identifier"):
            return self._text(child)
        return None

    def _declaration_name(self, node) -> Optional[str]:
        """Left-hand identifier of a variable declaration (or exported declaration)."""
        if node.type == "export_statement":
            declaration = node.child_by_field_name("declaration")
            if declaration is None:
                return None
            if declaration.type in ("lexical_declaration", "variable_declaration"):
                return self._declaration_name(declaration)
            return self._field_name(declaration, "name")

        if node.type in ("lexical_declaration", "variable_declaration"):
            for child in node.named_children:
                if child.type == "variable_declarator":
                    return self._field_name(child, "name")
        return None

    def route_name(self, node) -> Optional[str]:
        """
        Descriptor for a route-registration statement.

        app.get('/users', handler)  -> "app.get('/users')"
        router.use((req, res) => {}) -> "router.use((req, res))"
        """
        if node.type != "expression_statement" or not node.named_children:
            return None
        call = node.named_children[0]
        if call.type != "call_expression":
            return None

        callee = call.child_by_field_name("function")
        if callee is None or callee.type != "member_expression":
            return None
        prop = callee.child_by_field_name("property")
        if prop is None:
            return None
        verb = self._text(prop)
        if verb not in ROUTE_VERBS:
            return None

        obj = callee.child_by_field_name("object")
        receiver = self._text(obj) if obj is not None and obj.type == "identifier" else "app"

        args = call.child_by_field_name("arguments")
        first = args.named_children[0] if args is not None and args.named_children else None
        if first is not None:
            if first.type in ("string", "template_string"):
                return f"{receiver}.{verb}('{self._text(first)[1:-1]}')"
            if first.type in FUNCTION_LITERALS:
                return f"{receiver}.{verb}(({', '.join(self._param_names(first))}))"
        return f"{receiver}.{verb}"

    def _param_names(self, func) -> List[str]:
        single = func.child_by_field_name("parameter")
        if single is not None:
            return [self._text(single)]

        params = func.child_by_field_name("parameters")
        if params is None:
            return []

        names = []
        for param in params.named_children:
            if param.type in ("required_parameter", "optional_parameter"):
                param = param.child_by_field_name("pattern") or param
            if param.type == "identifier":
                names.append(self._text(param))
        return names

    def _is_route_callback(self, node) -> bool:
        """True for a function literal passed directly to a route call."""
        if node.type not in FUNCTION_LITERALS:
            return False
        args = node.parent
        if args is None or args.type != "arguments":
            return False
        call = args.parent
        if call is None or call.type != "call_expression":
            return False
        statement = call.parent
        return statement is not None and self.route_name(statement) is not None


def _lines(node) -> Tuple[int, int]:
    """1-based inclusive line range of a node."""
    return node.start_point[0] + 1, node.end_point[0] + 1
