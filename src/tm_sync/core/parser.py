"""Playwright test file parser.

Walks the tree-sitter syntax tree of a TypeScript/JavaScript test file and
turns every recognised ``test(...)`` call into a ``ParsedTest``:

* ``test``, ``test.skip`` and ``test.fixme`` calls with a string-literal
  title and a block-bodied function
* Playwright native tags from ``test('t', { tag: ['@smoke'] }, async () => {})``
* ``@objective``, ``@precondition`` and ``@known_issue`` from the first
  ``/** ... */`` block of the file
* ``// #`` action and ``// *`` verification comments inside the body
* the case id prefix of the title (``MM-T12345: ...``)

Anything that does not have this shape is skipped, never reported.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterator, Optional

import tree_sitter_typescript as tstypescript
from tree_sitter import Language, Node, Parser

from tm_sync.models.configuration import DEFAULT_PROJECT_KEY
from tm_sync.models.parsed_test import DocumentationTags, ParsedTest, ParseResult, TestKind, TestStep
from tm_sync.utils.errors import ParserError

TS_LANGUAGE = Language(tstypescript.language_typescript())
TSX_LANGUAGE = Language(tstypescript.language_tsx())

_TSX_SUFFIXES = {".tsx", ".jsx"}

_MODIFIER_KINDS = {
    "skip": TestKind.SKIPPED,
    "fixme": TestKind.EXPECTED_FAILURE,
}

_FUNCTION_NODES = {"arrow_function", "function_expression", "function", "generator_function"}

_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}


class TestParser:
    """Extracts structured tests from Playwright source files."""

    __test__ = False

    JSDOC_BLOCK = re.compile(r"/\*\*.*?\*/", re.DOTALL)
    ACTION_MARKER = "// #"
    VERIFICATION_MARKER = "// *"

    def __init__(
        self,
        project_key: str = DEFAULT_PROJECT_KEY,
        entry_point: str = "test",
        logger: Optional[logging.Logger] = None,
    ):
        self.project_key = project_key
        self.entry_point = entry_point
        self._logger = logger or logging.getLogger(__name__)
        self._case_id_pattern = re.compile(rf"^({re.escape(project_key)}-T\d+):", re.ASCII)
        self._parsers = {
            "ts": Parser(TS_LANGUAGE),
            "tsx": Parser(TSX_LANGUAGE),
        }

    def parse_test_file(self, path: Path | str) -> ParseResult:
        """Read and parse a test file.

        Raises:
            ParserError: the file cannot be read or is not valid UTF-8
        """
        file_path = Path(path)
        try:
            code = file_path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ParserError(f"Failed to read file {file_path}: {exc}", str(file_path)) from exc
        return self.parse_test_code(code, str(file_path))

    def parse_test_code(self, code: str, file_path: str) -> ParseResult:
        """Parse source text. Never raises on malformed code; tree-sitter recovers."""
        grammar = "tsx" if Path(file_path).suffix.lower() in _TSX_SUFFIXES else "ts"
        tree = self._parsers[grammar].parse(code.encode("utf-8"))
        if tree.root_node.has_error:
            self._logger.debug("Syntax errors in %s; using best-effort tree", file_path)

        tags = self.extract_jsdoc_tags(code)
        tests = tuple(
            test
            for node in _walk(tree.root_node)
            if node.type == "call_expression"
            for test in [self._parse_call(node, tags)]
            if test is not None
        )
        self._logger.debug("Parsed %d test(s) from %s", len(tests), file_path)
        return ParseResult(file_path=file_path, tests=tests)

    def extract_test_case_id(self, title: str) -> Optional[str]:
        match = self._case_id_pattern.match(title)
        return match.group(1) if match else None

    def extract_jsdoc_tags(self, code: str) -> DocumentationTags:
        """Documentation tags from the first ``/** */`` block in ``code``."""
        block = self.JSDOC_BLOCK.search(code)
        if block is None:
            return DocumentationTags()
        text = block.group(0)
        return DocumentationTags(
            objective=_first(_tag_values(text, "objective")),
            preconditions=tuple(_tag_values(text, "precondition")),
            known_issue=_first(_tag_values(text, "known_issue")),
        )

    def _parse_call(self, node: Node, file_tags: DocumentationTags) -> Optional[ParsedTest]:
        kind = self._call_kind(node.child_by_field_name("function"))
        if kind is None:
            return None

        arguments = node.child_by_field_name("arguments")
        if arguments is None or arguments.type != "arguments":
            return None
        args = [child for child in arguments.named_children if child.type != "comment"]
        if len(args) < 2 or args[0].type != "string":
            return None

        title = _string_value(args[0])
        body_arg = args[1]
        native_tags: tuple[str, ...] = ()
        if len(args) >= 3:
            if args[1].type == "object":
                native_tags = _native_tags(args[1])
            body_arg = args[2]

        if body_arg.type not in _FUNCTION_NODES:
            return None
        body = body_arg.child_by_field_name("body")
        if body is None or body.type != "statement_block":
            return None

        actions, verifications = self._extract_steps(body)
        return ParsedTest(
            title=title,
            kind=kind,
            line_number=node.start_point[0] + 1,
            test_case_id=self.extract_test_case_id(title),
            jsdoc_tags=DocumentationTags(
                objective=file_tags.objective,
                preconditions=file_tags.preconditions,
                known_issue=file_tags.known_issue,
                native_tags=native_tags,
            ),
            action_steps=actions,
            verification_steps=verifications,
        )

    def _call_kind(self, callee: Optional[Node]) -> Optional[TestKind]:
        if callee is None:
            return None
        if callee.type == "identifier":
            return TestKind.NORMAL if _text(callee) == self.entry_point else None
        if callee.type == "member_expression":
            receiver = callee.child_by_field_name("object")
            member = callee.child_by_field_name("property")
            if receiver is None or member is None:
                return None
            if receiver.type != "identifier" or _text(receiver) != self.entry_point:
                return None
            return _MODIFIER_KINDS.get(_text(member))
        return None

    def _extract_steps(self, body: Node) -> tuple[tuple[TestStep, ...], tuple[TestStep, ...]]:
        """Collect marker comments that lead code inside ``body``, in source order."""
        actions: list[TestStep] = []
        verifications: list[TestStep] = []
        seen: set[int] = set()

        for node in _walk(body):
            if node.type != "comment" or node.start_byte in seen:
                continue
            seen.add(node.start_byte)
            if not _is_leading_comment(node, body):
                continue

            text = _text(node).strip()
            step = TestStep(text=text[4:].strip(), line_number=node.start_point[0] + 1)
            if text.startswith(self.ACTION_MARKER):
                actions.append(step)
            elif text.startswith(self.VERIFICATION_MARKER):
                verifications.append(step)

        return tuple(actions), tuple(verifications)


def _walk(root: Node) -> Iterator[Node]:
    """Pre-order traversal including extras such as comments."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def _text(node: Node) -> str:
    return node.text.decode("utf-8") if node.text is not None else ""


def _is_leading_comment(comment: Node, boundary: Node) -> bool:
    """True when ``comment`` sits on its own line in front of code.

    The first non-comment node after it must be a syntax node, not a closing
    token. A comment that ends its parent (as happens without semicolons)
    is judged by what follows that parent, up to ``boundary``.
    """
    previous = comment.prev_sibling
    if previous is not None and previous.end_point[0] == comment.start_point[0]:
        return False

    node = comment
    while True:
        sibling = node.next_sibling
        while sibling is not None and sibling.type == "comment":
            sibling = sibling.next_sibling
        if sibling is not None:
            return sibling.is_named
        if node.parent is None or node.parent == boundary:
            return False
        node = node.parent


def _string_value(node: Node) -> str:
    parts: list[str] = []
    for child in node.named_children:
        if child.type == "string_fragment":
            parts.append(_text(child))
        elif child.type == "escape_sequence":
            parts.append(_unescape(_text(child)))
    return "".join(parts)


def _unescape(sequence: str) -> str:
    body = sequence[1:]
    if not body:
        return ""
    if body in _SIMPLE_ESCAPES:
        return _SIMPLE_ESCAPES[body]
    if body[0] in "\r\n":
        return ""
    if body[0] in "xu":
        digits = body[1:].strip("{}")
        try:
            return chr(int(digits, 16))
        except ValueError:
            return body
    return body


def _native_tags(options: Node) -> tuple[str, ...]:
    for pair in options.named_children:
        if pair.type != "pair":
            continue
        key = pair.child_by_field_name("key")
        value = pair.child_by_field_name("value")
        if key is None or value is None:
            continue
        name = _string_value(key) if key.type == "string" else _text(key)
        if name != "tag":
            continue
        if value.type != "array":
            return ()
        return tuple(_string_value(element) for element in value.named_children if element.type == "string")
    return ()


def _tag_pattern(name: str) -> re.Pattern[str]:
    return re.compile(rf"@{re.escape(name)}\s+(.+?)(?=\n\s*\*\s*@|\s*\*/|\Z)", re.DOTALL)


def _collapse(value: str) -> str:
    lines = (re.sub(r"^\*\s*", "", line.strip()) for line in value.split("\n"))
    return " ".join(line for line in lines if line)


def _tag_values(jsdoc: str, name: str) -> list[str]:
    values = (_collapse(match.group(1)) for match in _tag_pattern(name).finditer(jsdoc))
    return [value for value in values if value]


def _first(values: list[str]) -> Optional[str]:
    return values[0] if values else None
