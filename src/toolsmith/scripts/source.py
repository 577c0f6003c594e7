"""Assembly of transform bodies into a two-parameter function.

A transform body is the inside of a function receiving ``(input, options)``.
The body is parsed on its own as a list of statements and the function
definition is built as AST around them. The body text is never re-indented,
so string literals keep their exact contents and line numbers stay the
body's own. Nothing in this module runs the body.
"""

import ast

TRANSFORM_FILENAME = "<transform>"
TRANSFORM_FUNCTION = "__transform__"
TRANSFORM_PARAMS = ("input", "options")
OPTIONS_ALIAS = "opts"

# Top-level await, async for and async with are judged after wrapping
_PARSE_FLAGS = ast.PyCF_ONLY_AST | ast.PyCF_ALLOW_TOP_LEVEL_AWAIT


def _parse(text: str) -> ast.Module:
    return compile(text, TRANSFORM_FILENAME, "exec", _PARSE_FLAGS)


def parse_body(body: str) -> list[ast.stmt]:
    """Parse a transform body into statements.

    A body indented as a whole, as when copied out of a function, is
    parsed under a synthetic ``if`` block instead of being dedented.

    Raises:
        SyntaxError: With ``lineno`` relative to the body
    """
    try:
        return _parse(body).body
    except IndentationError as e:
        if not body[:1].isspace():
            raise
        original = e

    try:
        tree = _parse("if 1:\n" + body)
    except SyntaxError:
        raise original
    if len(tree.body) != 1:
        raise original

    ast.increment_lineno(tree, -1)
    return tree.body[0].body


def build(statements: list[ast.stmt], is_async: bool = False) -> ast.Module:
    """Build the module defining the transform function around a body.

    Args:
        statements: Parsed body
        is_async: Emit ``async def`` instead of ``def``

    Returns:
        Module AST ready for ``compile``
    """
    alias = ast.Assign(
        targets=[ast.Name(id=OPTIONS_ALIAS, ctx=ast.Store())],
        value=ast.Name(id="options", ctx=ast.Load()),
        lineno=1,
        col_offset=0,
        end_lineno=1,
        end_col_offset=0,
    )
    arguments = ast.arguments(
        posonlyargs=[],
        args=[ast.arg(arg=name) for name in TRANSFORM_PARAMS],
        vararg=None,
        kwonlyargs=[],
        kw_defaults=[],
        kwarg=None,
        defaults=[],
    )
    node_type = ast.AsyncFunctionDef if is_async else ast.FunctionDef
    extra = {"type_params": []} if "type_params" in node_type._fields else {}
    function = node_type(
        name=TRANSFORM_FUNCTION,
        args=arguments,
        body=[alias, *statements],
        decorator_list=[],
        returns=None,
        type_comment=None,
        lineno=1,
        col_offset=0,
        end_lineno=max([1] + [s.end_lineno or 1 for s in statements]),
        end_col_offset=0,
        **extra,
    )
    module = ast.Module(body=[function], type_ignores=[])
    return ast.fix_missing_locations(module)


def describe_syntax_error(error: SyntaxError) -> str:
    if error.lineno is None:
        return error.msg
    return f"{error.msg} (line {error.lineno})"


class _OwnScopeFinder(ast.NodeVisitor):
    """Finds nodes of the given types that belong to the outermost function."""

    def __init__(
        self, node_types: tuple[type, ...], async_comprehensions: bool = False
    ) -> None:
        self.node_types = node_types
        self.async_comprehensions = async_comprehensions
        self.found: ast.AST | None = None

    def visit(self, node: ast.AST) -> None:
        if self.found is not None:
            return
        if isinstance(node, self.node_types):
            self.found = node
            return
        super().visit(node)

    def visit_comprehension(self, node: ast.comprehension) -> None:
        if node.is_async and self.async_comprehensions:
            self.found = node
            return
        self.generic_visit(node)

    # Nested scopes have their own async-ness and generator-ness
    def visit_FunctionDef(self, node: ast.AST) -> None:
        return None

    visit_AsyncFunctionDef = visit_FunctionDef
    visit_Lambda = visit_FunctionDef
    visit_ClassDef = visit_FunctionDef


def _find(
    statements: list[ast.stmt],
    node_types: tuple[type, ...],
    async_comprehensions: bool = False,
) -> ast.AST | None:
    finder = _OwnScopeFinder(node_types, async_comprehensions)
    for statement in statements:
        finder.visit(statement)
    return finder.found


def uses_await(statements: list[ast.stmt]) -> bool:
    """Return True if the body awaits at its own top level."""
    return (
        _find(statements, (ast.Await, ast.AsyncFor, ast.AsyncWith), True) is not None
    )


def find_yield(statements: list[ast.stmt]) -> ast.AST | None:
    """Return the first top-level ``yield``, which would make a generator."""
    return _find(statements, (ast.Yield, ast.YieldFrom))


def describe_yield(node: ast.AST) -> str:
    return (
        "Transform code must return its result instead of yielding it "
        f"(line {node.lineno})"
    )


def find_attribute(
    statements: list[ast.stmt], names: frozenset[str]
) -> ast.Attribute | None:
    """Return the leftmost attribute access to a listed or dunder name, at any depth."""
    found = None
    position = None
    for statement in statements:
        for node in ast.walk(statement):
            if not isinstance(node, ast.Attribute):
                continue
            attr = node.attr
            if attr in names or (attr.startswith("__") and attr.endswith("__")):
                key = (node.lineno, node.col_offset, node.end_col_offset)
                if position is None or key < position:
                    found, position = node, key
    return found
