"""Source regions of markup files.

Razor views (``.razor``, ``.cshtml``) are HTML with embedded C#. Only the C# parts are
handed to the lexer: ``@name.Member[...]`` implicit expressions, ``@( )`` explicit
expressions, ``@{ }`` and ``@code { }`` blocks and the heads of ``@if``/``@foreach``
statements. Everything else is blanked with spaces so that lines and columns still point
into the original file.

XAML files reference resources through ``{x:Static res:Resources.Key}`` markup
extensions, which are matched directly.
"""
import re

RAZOR_EXTENSIONS = {".razor", ".cshtml"}
XAML_EXTENSIONS = {".xaml"}

BLOCK_DIRECTIVES = {"code", "functions"}
STATEMENT_KEYWORDS = {
    "if", "else", "for", "foreach", "while", "do", "switch", "using", "lock",
    "try", "catch", "finally",
}
BRACKETS = {"(": ")", "[": "]", "{": "}"}

XAML_COMMENT_REGEX = re.compile(r"<!--.*?-->", re.DOTALL)


def _blank(text: str) -> str:
    return "".join(char if char == "\n" else " " for char in text)


def _identifier_end(text: str, pos: int) -> int:
    while pos < len(text) and (text[pos].isalnum() or text[pos] == "_"):
        pos += 1
    return pos


def _skip_space(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in " \t\r\n":
        pos += 1
    return pos


def _balanced_end(text: str, start: int) -> int:
    """Index just past the bracket closing the one at ``start``.

    Strings, characters and comments are skipped. An unclosed bracket runs to the end of
    the text.
    """
    expected: list[str] = []
    quote = None
    pos = start
    while pos < len(text):
        char = text[pos]
        if quote is not None:
            if char == "\\":
                pos += 2
                continue
            if char == quote or char == "\n":
                quote = None
        elif char in "\"'":
            quote = char
        elif text.startswith("//", pos):
            newline = text.find("\n", pos)
            pos = len(text) if newline == -1 else newline
            continue
        elif text.startswith("/*", pos):
            close = text.find("*/", pos + 2)
            pos = len(text) if close == -1 else close + 2
            continue
        elif char in BRACKETS:
            expected.append(BRACKETS[char])
        elif expected and char == expected[-1]:
            expected.pop()
            if not expected:
                return pos + 1
        pos += 1
    return len(text)


def _implicit_end(text: str, pos: int) -> int:
    # member access, calls and indexers without whitespace: @user.Name, @L["Key"]
    while pos < len(text):
        char = text[pos]
        if char == "." and pos + 1 < len(text) and (text[pos + 1].isalpha() or text[pos + 1] == "_"):
            pos = _identifier_end(text, pos + 1)
        elif char in "([":
            pos = _balanced_end(text, pos)
        else:
            break
    return pos


def razor_code(text: str) -> str:
    """Return ``text`` with everything but its C# regions replaced by spaces."""
    code = list(_blank(text))

    def keep(at: int, start: int, end: int) -> None:
        code[start:end] = text[start:end]
        # separates consecutive regions
        code[at] = ";"

    pos = 0
    while True:
        at = text.find("@", pos)
        if at == -1 or at + 1 >= len(text):
            break
        after = text[at + 1]

        if at > 0 and (text[at - 1].isalnum() or text[at - 1] in "._-"):
            # e-mail address
            pos = at + 1
        elif after == "@":
            pos = at + 2
        elif after == "*":
            close = text.find("*@", at + 2)
            pos = len(text) if close == -1 else close + 2
        elif after in "({":
            end = _balanced_end(text, at + 1)
            keep(at, at + 1, end)
            pos = end
        elif after.isalpha() or after == "_":
            word_end = _identifier_end(text, at + 1)
            word = text[at + 1:word_end]
            brace = _skip_space(text, word_end)
            if word in BLOCK_DIRECTIVES and brace < len(text) and text[brace] == "{":
                end = _balanced_end(text, brace)
                keep(at, brace, end)
            elif word in STATEMENT_KEYWORDS:
                end = _balanced_end(text, brace) if brace < len(text) and text[brace] == "(" else word_end
                keep(at, at + 1, end)
            else:
                end = _implicit_end(text, word_end)
                keep(at, at + 1, end)
            pos = end
        else:
            pos = at + 1

    return "".join(code)


def xaml_static_members(text: str, resource_classes: list[str]) -> list[tuple[int, int, str]]:
    """``(line, column, key)`` of every ``{x:Static Class.Key}`` naming a resource class.

    Both the plain form and ``{Binding Source={x:Static ...}}`` are found. Commented out
    markup is ignored.
    """
    if not resource_classes:
        return []
    classes = "|".join(re.escape(name) for name in resource_classes)
    pattern = re.compile(rf"\{{x:Static\s+(?:\w+:)?(?:{classes})\.(\w+)\s*\}}", re.IGNORECASE)

    text = XAML_COMMENT_REGEX.sub(lambda match: _blank(match.group()), text)
    members = []
    for match in pattern.finditer(text):
        start = match.start()
        line = text.count("\n", 0, start) + 1
        column = start - text.rfind("\n", 0, start)
        members.append((line, column, match.group(1)))
    return members
