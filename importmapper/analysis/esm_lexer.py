"""Single-pass ECMAScript module syntax analyzer.

Extracts import specifiers, dynamic ``import()`` calls, ``import.meta``
references and exported names from module source without building an AST.
The scan is one forward pass over a cursor with three explicit stacks:

- an opener stack holding the token that preceded every ``(`` / ``{``,
- a template stack holding the brace depth at which each ``${`` opened,
- the brace depth itself.

Together with the last significant token these decide whether a ``/``
starts a regular expression or is a division operator.

Known limitations: destructured declarations such as
``export var { a, b } = x`` do not contribute export names, and a regular
expression immediately followed by a division or by another regular
expression can be misread.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

STATIC_IMPORT = -1
IMPORT_META = -2

_WHITESPACE = frozenset(
    [chr(code) for code in range(9, 14)] + [" ", "\u00a0", "\ufeff", "\u2028", "\u2029"]
)
_LINE_BREAKS = frozenset("\n\r")
_PUNCTUATORS = frozenset("!%&()*+,-./:;<=>?[]^{|}~")
_IDENTIFIER_STOP = _WHITESPACE | _PUNCTUATORS | frozenset("'\"`")

_EXPRESSION_KEYWORDS = frozenset(
    {
        "await",
        "case",
        "debugger",
        "delete",
        "do",
        "else",
        "in",
        "instanceof",
        "new",
        "return",
        "throw",
        "typeof",
        "void",
        "yield",
    }
)
_PAREN_KEYWORDS = frozenset({"if", "for", "while"})


@dataclass(frozen=True)
class ImportRecord:
    """One import found in a module.

    ``start``/``end`` index the original source. For static imports and
    resolvable dynamic imports they span the specifier text without quotes.

    ``dynamic`` is STATIC_IMPORT, IMPORT_META, or the offset of the first
    character inside the parentheses of a dynamic ``import()`` call.
    """

    start: int
    end: int
    dynamic: int = STATIC_IMPORT
    resolvable: bool = True

    @property
    def is_dynamic(self) -> bool:
        return self.dynamic >= 0

    @property
    def is_meta(self) -> bool:
        return self.dynamic == IMPORT_META

    def specifier(self, source: str) -> Optional[str]:
        """Return the specifier text, or None for import.meta and non-literal calls."""
        if self.is_meta or not self.resolvable:
            return None
        return source[self.start : self.end]


class ModuleSyntaxError(Exception):
    """Lexing failure at a given source offset.

    Returned (not raised) by ``analyze_module_syntax``.
    """

    def __init__(self, position: int, message: str) -> None:
        super().__init__(f"{message} (offset {position})")
        self.position = position


@dataclass
class ModuleSyntax:
    """Result of analyzing one module source."""

    imports: List[ImportRecord] = field(default_factory=list)
    exports: List[str] = field(default_factory=list)
    error: Optional[ModuleSyntaxError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def specifiers(self, source: str) -> List[str]:
        """Specifiers of static and resolvable dynamic imports, in source order."""
        found = []
        for record in self.imports:
            specifier = record.specifier(source)
            if specifier is not None:
                found.append(specifier)
        return found


def analyze_module_syntax(source: str) -> ModuleSyntax:
    """Analyze module source into import records and exported names.

    Never raises for malformed input; a lexing failure is reported through
    ``ModuleSyntax.error`` together with whatever was collected before it.

    Args:
        source: Module source text.

    Returns:
        ModuleSyntax with imports, exports, and an optional error.
    """
    lexer = _ModuleLexer(source)
    error: Optional[ModuleSyntaxError] = None
    try:
        lexer.run()
    except ModuleSyntaxError as exc:
        error = exc
    return ModuleSyntax(imports=lexer.imports, exports=lexer.exports, error=error)


class _ModuleLexer:
    """Cursor-driven state machine behind ``analyze_module_syntax``."""

    def __init__(self, source: str) -> None:
        self.src = source
        self.n = len(source)
        self.i = -1
        self.last_token = -1
        self.last_open_token = -1
        self.opener_stack: List[int] = []
        self.brace_depth = 0
        self.template_depth = -1
        self.template_stack: List[int] = []
        self.imports: List[ImportRecord] = []
        self.exports: List[str] = []

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        src = self.src
        n = self.n
        while True:
            self.i += 1
            if self.i >= n:
                break
            ch = src[self.i]
            if ch in _WHITESPACE:
                continue
            if ch == "/":
                following = self._char(self.i + 1)
                if following == "/":
                    self.i = self._line_comment(self.i + 1)
                    continue
                if following == "*":
                    self.i = self._block_comment(self.i + 1)
                    continue
                if self._regex_allowed():
                    self.i = self._regular_expression(self.i)
                self.last_token = self.i
                continue
            self._parse_next(ch)
            self.last_token = self.i

        if self.brace_depth or self.template_depth != -1 or self.opener_stack:
            raise ModuleSyntaxError(n, "Unbalanced brackets at end of input")

    def _parse_next(self, ch: str) -> None:
        if ch == "{":
            self.brace_depth += 1
            self.opener_stack.append(self.last_token)
        elif ch == "(":
            self.opener_stack.append(self.last_token)
        elif ch == "}":
            if self.brace_depth == self.template_depth:
                # closes a ${...} substitution: resume the enclosing template
                self.brace_depth -= 1
                self.template_depth = self.template_stack.pop()
                self.i = self._template(self.i)
                return
            self.brace_depth -= 1
            if self.brace_depth < 0 or self.brace_depth < self.template_depth:
                raise ModuleSyntaxError(self.i, "Unexpected '}'")
            self._close_opener()
        elif ch == ")":
            self._close_opener()
        elif ch == "'" or ch == '"':
            self.i = self._string(self.i)
        elif ch == "`":
            self.i = self._template(self.i)
        elif ch == "i":
            self._import_statement()
        elif ch == "e":
            self._export_statement()

    def _close_opener(self) -> None:
        if not self.opener_stack:
            raise ModuleSyntaxError(self.i, f"Unexpected {self.src[self.i]!r}")
        self.last_open_token = self.opener_stack.pop()

    def _regex_allowed(self) -> bool:
        last = self.last_token
        if last < 0:
            return True
        ch = self.src[last]
        if ch in _PUNCTUATORS:
            if ch == ")":
                return self._read_preceding_keyword(self.last_open_token) in _PAREN_KEYWORDS
            if ch == "}":
                return self._is_expression_terminator(self.last_open_token)
            return ch != "]"
        return self._read_preceding_keyword(last) in _EXPRESSION_KEYWORDS

    def _is_expression_terminator(self, index: int) -> bool:
        # a '{' after one of these opens a statement block, not an object literal
        if index < 0:
            return True
        ch = self.src[index]
        if ch == ";" or ch == ")":
            return True
        if ch == "y":
            return self._read_preceding_keyword(index) == "finally"
        return False

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def _import_statement(self) -> None:
        start = self.i
        if (
            self._read_preceding_keyword(start + 5) != "import"
            or self._char(start - 1) == "."
            or self._read_identifier(start + 6)
        ):
            return

        pos = self._skip_whitespace(start + 6)
        ch = self._char(pos)

        if ch == "(":
            self.opener_stack.append(start + 5)
            self.imports.append(self._dynamic_import(start, pos))
            self.i = pos
            return

        if ch == ".":
            meta = self._skip_whitespace(pos + 1)
            if self._read_identifier(meta) == "meta":
                self.imports.append(ImportRecord(start, meta + 4, IMPORT_META))
                self.i = meta + 3
            else:
                self.i = pos
            return

        # import declarations are only valid at the top level
        if not self.opener_stack:
            if ch != "'" and ch != '"':
                pos = self._skip_import_clause(pos)
            self._read_source_string(pos)
            return
        self.i = start + 5

    def _skip_import_clause(self, pos: int) -> int:
        """Offset of the specifier following the ``from`` that ends an import clause."""
        while pos < self.n:
            pos = self._skip_whitespace(pos)
            ch = self._char(pos)
            if ch == "'" or ch == '"':
                # string binding names: import { "a-b" as c }
                pos = self._string(pos) + 1
                continue
            word = self._read_identifier(pos)
            if not word:
                pos += 1
                continue
            pos += len(word)
            if word == "from":
                following = self._skip_whitespace(pos)
                if self._char(following) in ("'", '"'):
                    return following
        raise ModuleSyntaxError(pos, "Expected module specifier")

    def _dynamic_import(self, start: int, paren: int) -> ImportRecord:
        argument = paren + 1
        try:
            first = self._skip_whitespace(argument)
            ch = self._char(first)
            end: Optional[int] = None
            if ch == "'" or ch == '"':
                end = self._string(first)
            elif ch == "`":
                end = self._plain_template(first)
            if end is not None and self._char(self._skip_whitespace(end + 1)) == ")":
                return ImportRecord(first + 1, end, argument)
        except ModuleSyntaxError:
            # the main scan reports the error when it reaches the same text
            pass
        return ImportRecord(start, start + 6, argument, resolvable=False)

    def _read_source_string(self, pos: int) -> None:
        src = self.src
        while pos < self.n:
            ch = src[pos]
            if ch == "'" or ch == '"':
                end = self._string(pos)
                self.imports.append(ImportRecord(pos + 1, end, STATIC_IMPORT))
                self.i = end
                return
            if ch == "/" and self._char(pos + 1) in ("/", "*"):
                pos = self._skip_whitespace(pos)
                continue
            pos += 1
        raise ModuleSyntaxError(pos, "Expected module specifier")

    # ------------------------------------------------------------------
    # Exports
    # ------------------------------------------------------------------

    def _export_statement(self) -> None:
        start = self.i
        if (
            self.opener_stack
            or self._read_preceding_keyword(start + 5) != "export"
            or self._char(start - 1) == "."
            or self._read_identifier(start + 6)
        ):
            return

        pos = self._skip_whitespace(start + 6)
        ch = self._char(pos)
        word = self._read_identifier(pos)

        if word == "default":
            self.exports.append("default")
            self.i = pos + len(word) - 1
            return

        if word == "async":
            pos = self._skip_whitespace(pos + len(word))
            word = self._read_identifier(pos)

        if word == "function":
            pos = self._skip_whitespace(pos + len(word))
            if self._char(pos) == "*":
                pos = self._skip_whitespace(pos + 1)
            self._export_name(pos)
            return

        if word == "class":
            self._export_name(self._skip_whitespace(pos + len(word)))
            return

        if word in ("var", "let", "const"):
            self._export_declarations(pos + len(word))
            # initializers are left to the main scan
            self.i = pos + len(word) - 1
            return

        if ch == "{":
            self._export_list(pos)
            return

        if ch == "*":
            self._export_star(pos)
            return

        self.i = start + 5

    def _export_name(self, pos: int) -> None:
        name = self._read_identifier(pos)
        if name:
            self.exports.append(name)
            self.i = pos + len(name) - 1
        else:
            self.i = pos - 1

    def _export_declarations(self, pos: int) -> None:
        while True:
            pos = self._skip_whitespace(pos)
            name = self._read_identifier(pos)
            if not name:
                # destructuring pattern
                return
            self.exports.append(name)
            pos = self._skip_whitespace(pos + len(name))
            if self._char(pos) == "=":
                next_declarator = self._skip_initializer(pos + 1)
                if next_declarator is None:
                    return
                pos = next_declarator
            if self._char(pos) != ",":
                return
            pos += 1

    def _skip_initializer(self, pos: int) -> Optional[int]:
        """Index of the ',' ending a declarator initializer, if one is found."""
        src = self.src
        depth = 0
        last = pos - 1
        try:
            while pos < self.n:
                ch = src[pos]
                if ch in "([{":
                    depth += 1
                elif ch in ")]}":
                    if not depth:
                        return None
                    depth -= 1
                elif ch == "'" or ch == '"':
                    pos = self._string(pos)
                elif ch == "`":
                    end = self._plain_template(pos)
                    if end is None:
                        return None
                    pos = end
                elif ch == "/" and self._char(pos + 1) in ("/", "*"):
                    pos = self._skip_whitespace(pos)
                    continue
                elif ch == "/" and self._starts_operand(last):
                    pos = self._regular_expression(pos)
                elif not depth:
                    if ch == ",":
                        return pos
                    if ch == ";":
                        return None
                    if ch in _LINE_BREAKS:
                        following = self._char(self._skip_whitespace(pos))
                        if not following or following not in _PUNCTUATORS:
                            return None
                if ch not in _WHITESPACE:
                    last = pos
                pos += 1
        except ModuleSyntaxError:
            return None
        return None

    def _starts_operand(self, last: int) -> bool:
        """True when a '/' after the token ending at ``last`` opens a regex."""
        ch = self.src[last]
        if ch in _PUNCTUATORS:
            return ch not in ")]}"
        return self._read_preceding_keyword(last) in _EXPRESSION_KEYWORDS

    def _export_list(self, pos: int) -> None:
        pos = self._skip_whitespace(pos + 1)
        while self._char(pos) != "}":
            name, pos = self._read_export_name(pos)
            pos = self._skip_whitespace(pos)
            if self._read_identifier(pos) == "as":
                name, pos = self._read_export_name(self._skip_whitespace(pos + 2))
                pos = self._skip_whitespace(pos)
            self.exports.append(name)
            ch = self._char(pos)
            if ch == ",":
                pos = self._skip_whitespace(pos + 1)
            elif ch != "}":
                raise ModuleSyntaxError(pos, "Unexpected token in export list")

        close = pos
        pos = self._skip_whitespace(close + 1)
        if self._read_identifier(pos) == "from":
            self._read_source_string(self._skip_whitespace(pos + 4))
        else:
            self.i = close

    def _export_star(self, pos: int) -> None:
        pos = self._skip_whitespace(pos + 1)
        if self._read_identifier(pos) == "as":
            name, pos = self._read_export_name(self._skip_whitespace(pos + 2))
            self.exports.append(name)
            pos = self._skip_whitespace(pos)
        if self._read_identifier(pos) == "from":
            self._read_source_string(self._skip_whitespace(pos + 4))
        else:
            self.i = pos - 1

    def _read_export_name(self, pos: int):
        ch = self._char(pos)
        if ch == "'" or ch == '"':
            end = self._string(pos)
            return self.src[pos + 1 : end], end + 1
        name = self._read_identifier(pos)
        if not name:
            raise ModuleSyntaxError(pos, "Expected export name")
        return name, pos + len(name)

    # ------------------------------------------------------------------
    # Sub-scanners: each takes the offset of the opening character and
    # returns the offset of the last character it consumed.
    # ------------------------------------------------------------------

    def _string(self, pos: int) -> int:
        src = self.src
        quote = src[pos]
        start = pos
        while True:
            pos += 1
            if pos >= self.n:
                raise ModuleSyntaxError(start, "Unterminated string")
            ch = src[pos]
            if ch == quote:
                return pos
            if ch == "\\":
                pos += 1
                if src[pos : pos + 2] == "\r\n":
                    pos += 1
            elif ch in _LINE_BREAKS:
                raise ModuleSyntaxError(start, "Unterminated string")

    def _template(self, pos: int) -> int:
        src = self.src
        start = pos
        while True:
            pos += 1
            if pos >= self.n:
                raise ModuleSyntaxError(start, "Unterminated template")
            ch = src[pos]
            if ch == "`":
                return pos
            if ch == "\\":
                pos += 1
            elif ch == "$" and self._char(pos + 1) == "{":
                self.template_stack.append(self.template_depth)
                self.brace_depth += 1
                self.template_depth = self.brace_depth
                return pos + 1

    def _plain_template(self, pos: int) -> Optional[int]:
        """Closing '`' of a template without substitutions, else None."""
        src = self.src
        start = pos
        while True:
            pos += 1
            if pos >= self.n:
                raise ModuleSyntaxError(start, "Unterminated template")
            ch = src[pos]
            if ch == "`":
                return pos
            if ch == "\\":
                pos += 1
            elif ch == "$" and self._char(pos + 1) == "{":
                return None

    def _regular_expression(self, pos: int) -> int:
        src = self.src
        start = pos
        while True:
            pos += 1
            if pos >= self.n:
                raise ModuleSyntaxError(start, "Unterminated regular expression")
            ch = src[pos]
            if ch == "/":
                return pos
            if ch == "[":
                pos = self._regex_character_class(pos)
            elif ch == "\\":
                pos += 1
            elif ch in _LINE_BREAKS:
                raise ModuleSyntaxError(start, "Unterminated regular expression")

    def _regex_character_class(self, pos: int) -> int:
        src = self.src
        start = pos
        while True:
            pos += 1
            if pos >= self.n:
                raise ModuleSyntaxError(start, "Unterminated character class")
            ch = src[pos]
            if ch == "]":
                return pos
            if ch == "\\":
                pos += 1
            elif ch in _LINE_BREAKS:
                raise ModuleSyntaxError(start, "Unterminated character class")

    def _line_comment(self, pos: int) -> int:
        src = self.src
        while True:
            pos += 1
            if pos >= self.n:
                return self.n - 1
            if src[pos] in _LINE_BREAKS:
                return pos

    def _block_comment(self, pos: int) -> int:
        end = self.src.find("*/", pos + 1)
        if end == -1:
            raise ModuleSyntaxError(pos - 1, "Unterminated comment")
        return end + 1

    # ------------------------------------------------------------------
    # Lookaround helpers
    # ------------------------------------------------------------------

    def _char(self, pos: int) -> str:
        if 0 <= pos < self.n:
            return self.src[pos]
        return ""

    def _skip_whitespace(self, pos: int) -> int:
        """First offset at or after ``pos`` that is not whitespace or a comment."""
        src = self.src
        while pos < self.n:
            ch = src[pos]
            if ch in _WHITESPACE:
                pos += 1
                continue
            if ch == "/":
                following = self._char(pos + 1)
                if following == "/":
                    pos = self._line_comment(pos + 1) + 1
                    continue
                if following == "*":
                    pos = self._block_comment(pos + 1) + 1
                    continue
            break
        return pos

    def _read_preceding_keyword(self, end: int) -> str:
        """Lowercase word ending at ``end``, if it starts a token."""
        if end < 0 or end >= self.n:
            return ""
        src = self.src
        start = end
        while start >= 0 and "a" <= src[start] <= "z":
            start -= 1
        if start >= 0 and src[start] not in _WHITESPACE and src[start] not in _PUNCTUATORS:
            return ""
        return src[start + 1 : end + 1]

    def _read_identifier(self, start: int) -> str:
        src = self.src
        end = start
        while end < self.n and src[end] not in _IDENTIFIER_STOP:
            end += 1
        return src[start:end]


__all__ = [
    "IMPORT_META",
    "STATIC_IMPORT",
    "ImportRecord",
    "ModuleSyntax",
    "ModuleSyntaxError",
    "analyze_module_syntax",
]
