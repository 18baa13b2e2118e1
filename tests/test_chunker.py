"""Tests for tree-sitter candidate extraction."""

import pytest

from spanseek.context.chunker import Chunker, NodeCategory
from spanseek.models import SpanKind


def _by_name(result, kind=None):
    return {
        c.name: c for c in result.candidates
        if c.name and (kind is None or c.kind is kind)
    }


@pytest.fixture
def chunker():
    return Chunker()


class TestFunctionsAndClasses:
    def test_function_declarations(self, chunker, session_source):
        result = chunker.extract(session_source)

        functions = _by_name(result, SpanKind.FUNCTION)
        assert (functions["createSession"].start, functions["createSession"].end) == (10, 20)
        assert (functions["randomId"].start, functions["randomId"].end) == (6, 8)
        assert functions["createSession"].declared_name == "createsession"

    def test_class_and_methods(self, chunker, express_source):
        result = chunker.extract(express_source)

        classes = _by_name(result, SpanKind.CLASS)
        functions = _by_name(result, SpanKind.FUNCTION)
        assert (classes["UserRepository"].start, classes["UserRepository"].end) == (12, 20)
        assert (functions["findById"].start, functions["findById"].end) == (17, 19)
        assert "constructor" in functions

    def test_typescript_types(self, chunker, ts_source):
        result = chunker.extract(ts_source)

        classes = _by_name(result, SpanKind.CLASS)
        assert (classes["User"].start, classes["User"].end) == (1, 4)
        assert "Role" in classes
        assert "isAdmin" in _by_name(result, SpanKind.FUNCTION)


class TestStatements:
    def test_top_level_declaration_named_by_identifier(self, chunker, express_source):
        result = chunker.extract(express_source)

        statements = _by_name(result, SpanKind.STATEMENT)
        assert (statements["settings"].start, statements["settings"].end) == (4, 10)
        assert "handler" in statements

    def test_exported_function_named(self, chunker, ts_source):
        result = chunker.extract(ts_source)

        assert "isAdmin" in _by_name(result, SpanKind.STATEMENT)

    def test_nested_statements_ignored(self, chunker, session_source):
        result = chunker.extract(session_source)

        starts = {c.start for c in result.candidates if c.kind is SpanKind.STATEMENT}
        assert {2, 4, 31} <= starts
        # const session, store.set, console.log inside createSession
        assert not starts & {11, 16, 18}

    def test_multi_line_property(self, chunker, express_source):
        result = chunker.extract(express_source)

        properties = _by_name(result, SpanKind.PROPERTY)
        assert (properties["database"].start, properties["database"].end) == (5, 8)
        assert "name" not in properties


class TestRoutes:
    def test_route_statements_get_descriptors(self, chunker, express_source):
        result = chunker.extract(express_source)

        statements = _by_name(result, SpanKind.STATEMENT)
        assert (statements["app.get('/users/:id')"].start, statements["app.get('/users/:id')"].end) == (22, 26)
        assert "app.post('/orders')" in statements
        assert "app.use" in statements

    def test_route_callback_not_a_separate_candidate(self, chunker, express_source):
        result = chunker.extract(express_source)

        functions = [c for c in result.candidates if c.kind is SpanKind.FUNCTION]
        assert not any(c.start == 22 for c in functions)
        # Still available as an enclosing block
        assert any(b.start == 22 and b.end == 26 for b in result.blocks)

    def test_function_argument_descriptor(self, chunker):
        source = "router.use((req, res) => {\n  res.end();\n});\n"

        result = chunker.extract(source)

        assert result.candidates[0].name == "router.use((req, res))"

    def test_non_identifier_receiver_defaults_to_app(self, chunker):
        source = "express.Router().get('/ping', ping);\n"

        result = chunker.extract(source)

        assert result.candidates[0].name == "app.get('/ping')"


class TestBlocks:
    def test_smallest_enclosing(self, chunker, express_source):
        result = chunker.extract(express_source)

        block = result.smallest_enclosing(18, 18)
        assert (block.start, block.end) == (17, 19)
        assert result.smallest_enclosing(40, 40) is None


class TestParseFailure:
    def test_garbage_is_rejected(self, chunker):
        assert chunker.extract("}}}}}}\n))))))\n]]]]]]\n") is None

    def test_minor_errors_are_tolerated(self, chunker, session_source):
        broken = session_source.replace("store.delete(id);", "store.delete(id;")

        result = chunker.extract(broken)

        assert result is not None
        assert "createSession" in _by_name(result, SpanKind.FUNCTION)

    def test_error_fragments_become_statements(self, chunker):
        # Python text: the tree is kept but starts with a top-level ERROR node
        broken = "def create_session(id):\n    s = {}\n    return s\n\nclass Store:\n    pass\n"

        result = chunker.extract(broken)

        assert result is not None
        statements = [c for c in result.candidates if c.kind is SpanKind.STATEMENT]
        assert any(c.start == 1 for c in statements)


def test_every_category_is_handled():
    chunker = Chunker()

    assert set(chunker._handlers) == set(NodeCategory)
