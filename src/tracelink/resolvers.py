"""Declaration resolvers: find the class or method an annotation belongs to.

Each host language gets a resolver behind the DeclarationResolver protocol.
A resolver receives the lines that follow an annotation comment and returns
the first declaration in the same block, or None when the file or the
enclosing block ends first. Detection is text-pattern based, not a grammar
parse.

Resolvers:
    BraceResolver: Java, JavaScript, TypeScript (``//`` comments, ``{}`` blocks)
    PythonResolver: Python (``#`` comments, indentation blocks)

Gauge specifications (``.spec``) bind ``Trace:`` lines to the heading above
them instead, see tracelink.gauge.

Usage:
    >>> resolver = resolver_for_path(Path("LoginTest.java"))
    >>> resolver.resolve(["@Test", "public void testLogin() {"], first_line_number=5, file=Path("LoginTest.java"))
    Declaration(kind=<DeclarationKind.METHOD: 'method'>, name='testLogin', file=PosixPath('LoginTest.java'), line=6, scope='')
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from tracelink.errors import UnsupportedLanguageError
from tracelink.models import Declaration, DeclarationKind

# Longest multi-line signature the brace resolver will join
MAX_SIGNATURE_LINES = 25

EXTENSION_LANGUAGES: dict[str, str] = {
    ".java": "java",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".spec": "gaugespec",
}

GAUGE_SPEC = "gaugespec"

LANGUAGES = frozenset(EXTENSION_LANGUAGES.values())


@runtime_checkable
class DeclarationResolver(Protocol):
    """Finds the declaration that follows an annotation comment."""

    language: str
    comment_leaders: tuple[str, ...]

    def is_comment(self, line: str) -> bool:
        """Return True if the line holds only a comment."""
        ...

    def resolve(
        self,
        following: Sequence[str],
        *,
        first_line_number: int,
        file: Path,
        anchor_indent: int = 0,
    ) -> Declaration | None:
        """Find the nearest declaration in ``following``.

        Args:
            following: Lines after the annotation comment line.
            first_line_number: 1-based line number of ``following[0]``.
            file: Source file, copied into the Declaration.
            anchor_indent: Indentation width of the annotation comment.

        Returns:
            The declaration, or None if the block or file ends first.
        """
        ...

    def scope(self, lines: Sequence[str], index: int) -> str:
        """Package and containers enclosing ``lines[index]``, joined by ``.``."""
        ...


def indentation(line: str) -> int:
    """Width of the leading whitespace, with tabs expanded."""
    expanded = line.expandtabs()
    return len(expanded) - len(expanded.lstrip())


# =============================================================================
# Brace languages
# =============================================================================

_STRING_LITERAL = re.compile(r""""(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*'|`(?:\\.|[^`\\])*`""")
_BLOCK_COMMENT = re.compile(r"/\*.*?\*/")
_GENERIC_ARGS = re.compile(r"<[^<>]*>")
_ANNOTATION_PREFIX = re.compile(r"^\s*(?:@[\w$.]+(?:\([^()]*\))?\s*)+")

_JS_GROUP = re.compile(r"""^\s*(?:describe|context|suite)(?:\.\w+)?\s*\(\s*(['"`])(.*?)\1""")
_JS_CASE = re.compile(r"""^\s*(?:it|test|specify)(?:\.\w+)?\s*\(\s*(['"`])(.*?)\1""")
_JS_EACH = re.compile(r"^\s*(describe|context|suite|it|test|specify)(?:\.\w+)*?\.each\s*")
_JS_TITLE_CALL = re.compile(r"""\s*\(\s*(['"`])(.*?)\1""")
_JS_GROUP_NAMES = frozenset({"describe", "context", "suite"})
_PACKAGE = re.compile(r"^\s*package\s+([\w$.]+)\s*;")
_TYPE_DECL = re.compile(r"(?<![\w$.])(?:class|interface|enum|record)\s+([A-Za-z_$][\w$]*)")
_ARROW_FUNCTION = re.compile(
    r"^\s*(?:export\s+)?(?:const|let|var)\s+([A-Za-z_$][\w$]*)\s*(?::[^=]+)?="
    r"\s*(?:async\s+)?(?:function\b|\([^()]*\)\s*(?::[^=]+)?=>|[A-Za-z_$][\w$]*\s*=>)"
)
_METHOD_HEAD = re.compile(r"^\s*((?:[A-Za-z_$][\w$.\[\]]*\s+)*)([A-Za-z_$][\w$]*)\s*\(")
_BODY_OPEN = re.compile(r"^\s*(?:throws\s+[\w$.,\s]+?)?(?::\s*[^{;=]+?)?\s*\{")
_MODIFIER_TYPE_HEAD = re.compile(
    r"^\s*(?:(?:public|protected|private|abstract|final|static|sealed|strictfp)\s+)+"
    r"([A-Z][\w$]*)\s*(?:(?:extends|implements|permits)\b[^{(]*)?\{"
)

CONTROL_KEYWORDS = frozenset({
    "assert",
    "await",
    "case",
    "catch",
    "delete",
    "do",
    "else",
    "finally",
    "for",
    "if",
    "in",
    "instanceof",
    "new",
    "of",
    "return",
    "super",
    "switch",
    "synchronized",
    "this",
    "throw",
    "try",
    "typeof",
    "while",
    "with",
    "yield",
})


def _code_text(line: str) -> str:
    """Line with string literals emptied and comments removed."""
    text = _STRING_LITERAL.sub('""', line)
    text = _BLOCK_COMMENT.sub(" ", text)
    comment = text.find("//")
    if comment != -1:
        text = text[:comment]
    return text


def _strip_generics(text: str) -> str:
    previous = None
    while previous != text:
        previous = text
        text = _GENERIC_ARGS.sub("", text)
    return text


def _matching_paren(text: str, open_index: int) -> int | None:
    depth = 0
    for index in range(open_index, len(text)):
        char = text[index]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return index
    return None


def _paren_delta(text: str) -> int:
    return text.count("(") - text.count(")")


class BraceResolver:
    """Resolver for languages with ``//`` comments and ``{}`` blocks.

    Recognises type declarations (``class``/``interface``/``enum``/``record``
    and modifier-only heads such as ``public MyTest {``), method signatures
    that open a body, ``function`` declarations, arrow functions bound to a
    name and, for JavaScript/TypeScript, ``describe``/``it``/``test`` blocks.
    Declarations are only accepted at the annotation's own nesting level.
    """

    comment_leaders: tuple[str, ...] = ("//",)

    def __init__(self, language: str, *, test_blocks: bool = False) -> None:
        self.language = language
        self.test_blocks = test_blocks

    def __repr__(self) -> str:
        return f"BraceResolver(language={self.language!r})"

    def is_comment(self, line: str) -> bool:
        stripped = line.strip()
        return stripped.startswith(("//", "/*", "*"))

    def resolve(
        self,
        following: Sequence[str],
        *,
        first_line_number: int,
        file: Path,
        anchor_indent: int = 0,  # noqa: ARG002
    ) -> Declaration | None:
        depth = 0
        decorator_parens = 0
        in_block_comment = False

        for offset, line in enumerate(following):
            if in_block_comment:
                if "*/" in line:
                    in_block_comment = False
                continue

            text = _code_text(line)

            if decorator_parens > 0:
                decorator_parens = max(0, decorator_parens + _paren_delta(text))
                continue

            stripped = line.strip()
            if not stripped or stripped.startswith("//"):
                continue
            if stripped.startswith("/*"):
                in_block_comment = "*/" not in stripped
                continue
            if stripped.startswith("*"):
                continue

            if stripped.startswith("@"):
                delta = _paren_delta(text)
                if delta > 0 or not _ANNOTATION_PREFIX.sub("", text).strip():
                    decorator_parens = max(0, delta)
                    continue

            if depth == 0:
                found = self._declaration_at(following, offset)
                if found is not None:
                    kind, name = found
                    return Declaration(
                        kind=kind,
                        name=name,
                        file=file,
                        line=first_line_number + offset,
                    )

            for char in text:
                if char == "{":
                    depth += 1
                elif char == "}":
                    depth -= 1
                    if depth < 0:
                        return None

        return None

    def _declaration_at(
        self,
        lines: Sequence[str],
        start: int,
    ) -> tuple[DeclarationKind, str] | None:
        if self.test_blocks:
            found = self._test_block(lines, start)
            if found is not None:
                return found

        text = _ANNOTATION_PREFIX.sub("", _code_text(lines[start]))

        name = self._type_name(text, with_modifier_head=False)
        if name is not None:
            return DeclarationKind.CLASS, name

        match = _ARROW_FUNCTION.match(text)
        if match:
            return DeclarationKind.METHOD, match.group(1)

        if "(" in text:
            name = self._method_name(lines, start)
            if name is not None:
                return DeclarationKind.METHOD, name
            return None

        match = _MODIFIER_TYPE_HEAD.match(_strip_generics(text))
        if match:
            return DeclarationKind.CLASS, match.group(1)
        return None

    @staticmethod
    def _type_name(text: str, *, with_modifier_head: bool) -> str | None:
        match = _TYPE_DECL.search(text)
        if match and "=" not in text[: match.start()].replace("=>", ""):
            return match.group(1)
        if with_modifier_head and "(" not in text:
            match = _MODIFIER_TYPE_HEAD.match(_strip_generics(text))
            if match:
                return match.group(1)
        return None

    def _test_block(
        self,
        lines: Sequence[str],
        start: int,
    ) -> tuple[DeclarationKind, str] | None:
        """describe/it/test blocks, including data-driven ``.each`` variants."""
        raw = lines[start]
        match = _JS_GROUP.match(raw)
        if match:
            return DeclarationKind.CLASS, match.group(2)
        match = _JS_CASE.match(raw)
        if match:
            return DeclarationKind.METHOD, match.group(2)

        if _JS_EACH.match(raw) is None:
            return None
        text = "\n".join(lines[start : start + MAX_SIGNATURE_LINES])
        match = _JS_EACH.match(text)
        if match is None:
            return None
        position = match.end()
        opener = text[position : position + 1]
        if opener == "`":
            close = text.find("`", position + 1)
        elif opener == "(":
            close = _matching_paren(text, position)
        else:
            return None
        if close is None or close == -1:
            return None

        title = _JS_TITLE_CALL.match(text, close + 1)
        if title is None:
            return None
        kind = DeclarationKind.CLASS if match.group(1) in _JS_GROUP_NAMES else DeclarationKind.METHOD
        return kind, title.group(2)

    def scope(self, lines: Sequence[str], index: int) -> str:
        """Package plus the types and describe blocks still open at ``lines[index]``."""
        package = ""
        open_blocks: list[tuple[str, int]] = []
        pending: str | None = None
        depth = 0
        in_block_comment = False

        for position, line in enumerate(lines[:index]):
            if in_block_comment:
                if "*/" in line:
                    in_block_comment = False
                continue
            stripped = line.strip()
            if stripped.startswith("/*"):
                in_block_comment = "*/" not in stripped
                continue
            if not stripped or stripped.startswith(("//", "*")):
                continue

            text = _code_text(line)
            match = _PACKAGE.match(text)
            if match:
                package = match.group(1)
                continue

            if self.test_blocks:
                found = self._test_block(lines, position)
                if found is not None and found[0] is DeclarationKind.CLASS:
                    pending = found[1]
            name = self._type_name(_ANNOTATION_PREFIX.sub("", text), with_modifier_head=True)
            if name is not None:
                pending = name

            for char in text:
                if char == "{":
                    if pending is not None:
                        open_blocks.append((pending, depth))
                        pending = None
                    depth += 1
                elif char == "}":
                    depth -= 1
                    while open_blocks and open_blocks[-1][1] >= depth:
                        open_blocks.pop()

        return ".".join(part for part in [package, *(block for block, _ in open_blocks)] if part)

    def _method_name(self, lines: Sequence[str], start: int) -> str | None:
        signature = _strip_generics(self._gather_signature(lines, start))
        signature = _ANNOTATION_PREFIX.sub("", signature)

        match = _METHOD_HEAD.match(signature)
        if not match:
            return None
        name = match.group(2)
        tokens = match.group(1).split()
        if name in CONTROL_KEYWORDS or any(token in CONTROL_KEYWORDS for token in tokens):
            return None
        if "=" in match.group(1):
            return None

        close = _matching_paren(signature, match.end() - 1)
        if close is None:
            return None
        if not _BODY_OPEN.match(signature[close + 1 :]):
            return None
        return name

    def _gather_signature(self, lines: Sequence[str], start: int) -> str:
        parts: list[str] = []
        for line in lines[start : start + MAX_SIGNATURE_LINES]:
            parts.append(_code_text(line).strip())
            text = " ".join(parts)
            open_index = text.find("(")
            if open_index == -1:
                if "{" in text or ";" in text:
                    break
                continue
            close = _matching_paren(text, open_index)
            if close is None:
                continue
            tail = text[close + 1 :]
            if "{" in tail or ";" in tail:
                break
        return " ".join(parts)


# =============================================================================
# Python
# =============================================================================

_PY_STRING_LITERAL = re.compile(r""""(?:\\.|[^"\\])*"|'(?:\\.|[^'\\])*'""")
_PY_DEF = re.compile(r"^\s*(?:async\s+)?def\s+([A-Za-z_]\w*)")
_PY_CLASS = re.compile(r"^\s*class\s+([A-Za-z_]\w*)")
_TRIPLE_QUOTES = ('"""', "'''")


def _py_code_text(line: str) -> str:
    text = line
    for quote in _TRIPLE_QUOTES:
        text = text.replace(quote, "")
    text = _PY_STRING_LITERAL.sub('""', text)
    comment = text.find("#")
    if comment != -1:
        text = text[:comment]
    return text


def _bracket_delta(text: str) -> int:
    opens = sum(text.count(char) for char in "([{")
    closes = sum(text.count(char) for char in ")]}")
    return opens - closes


def _open_triple_quote(line: str) -> str | None:
    for quote in _TRIPLE_QUOTES:
        if line.count(quote) % 2 == 1:
            return quote
    return None


class PythonResolver:
    """Resolver for Python sources.

    A code line indented less than the annotation comment ends the
    enclosing block. Decorators (including multi-line arguments), bracket
    continuation lines and triple-quoted strings are skipped.
    """

    language = "python"
    comment_leaders: tuple[str, ...] = ("#",)

    def __repr__(self) -> str:
        return "PythonResolver()"

    def is_comment(self, line: str) -> bool:
        return line.strip().startswith("#")

    def resolve(
        self,
        following: Sequence[str],
        *,
        first_line_number: int,
        file: Path,
        anchor_indent: int = 0,
    ) -> Declaration | None:
        bracket_depth = 0
        open_string: str | None = None

        for offset, line in enumerate(following):
            if open_string is not None:
                if line.count(open_string) % 2 == 1:
                    open_string = None
                continue

            if bracket_depth > 0:
                bracket_depth = max(0, bracket_depth + _bracket_delta(_py_code_text(line)))
                continue

            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            if indentation(line) < anchor_indent:
                return None

            if stripped.startswith("@"):
                bracket_depth = max(0, _bracket_delta(_py_code_text(line)))
                continue

            for pattern, kind in ((_PY_DEF, DeclarationKind.METHOD), (_PY_CLASS, DeclarationKind.CLASS)):
                match = pattern.match(line)
                if match:
                    return Declaration(
                        kind=kind,
                        name=match.group(1),
                        file=file,
                        line=first_line_number + offset,
                    )

            open_string = _open_triple_quote(line)
            if open_string is None:
                bracket_depth = max(0, _bracket_delta(_py_code_text(line)))

        return None

    def scope(self, lines: Sequence[str], index: int) -> str:
        """Names of the classes and functions whose bodies hold ``lines[index]``."""
        names: list[str] = []
        limit = indentation(lines[index])
        for line in reversed(lines[:index]):
            if limit == 0:
                break
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            width = indentation(line)
            if width >= limit:
                continue
            match = _PY_CLASS.match(line) or _PY_DEF.match(line)
            if match:
                names.append(match.group(1))
            limit = width
        return ".".join(reversed(names))


# =============================================================================
# Registry
# =============================================================================

_RESOLVERS: dict[str, DeclarationResolver] = {
    "java": BraceResolver("java"),
    "javascript": BraceResolver("javascript", test_blocks=True),
    "typescript": BraceResolver("typescript", test_blocks=True),
    "python": PythonResolver(),
}


def get_resolver(language: str) -> DeclarationResolver:
    """Return the resolver registered for a language name.

    Raises:
        KeyError: If the language is unknown.
    """
    return _RESOLVERS[language]


def language_for_path(
    path: Path,
    extra_extensions: Mapping[str, str] | None = None,
) -> str:
    """Language name for a file, looked up by its extension.

    Args:
        path: Source file path.
        extra_extensions: Additional ``{".ext": "language"}`` entries; these
            take precedence over the built-in table.

    Raises:
        UnsupportedLanguageError: If the extension is not mapped.
    """
    table = {**EXTENSION_LANGUAGES, **(extra_extensions or {})}
    language = table.get(path.suffix.lower())
    if language is None:
        raise UnsupportedLanguageError(path)
    return language


def resolver_for_path(
    path: Path,
    extra_extensions: Mapping[str, str] | None = None,
) -> DeclarationResolver:
    """Pick the resolver for a file by its extension.

    Args:
        path: Source file path.
        extra_extensions: Additional ``{".ext": "language"}`` entries; these
            take precedence over the built-in table.

    Returns:
        The resolver for the file's language.

    Raises:
        UnsupportedLanguageError: If the extension is not mapped, or maps to
            a language without a comment resolver (Gauge specifications).
    """
    language = language_for_path(path, extra_extensions)
    if language not in _RESOLVERS:
        raise UnsupportedLanguageError(path)
    return _RESOLVERS[language]


__all__ = [
    "BraceResolver",
    "DeclarationResolver",
    "EXTENSION_LANGUAGES",
    "GAUGE_SPEC",
    "LANGUAGES",
    "PythonResolver",
    "get_resolver",
    "indentation",
    "language_for_path",
    "resolver_for_path",
]
