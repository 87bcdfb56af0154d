"""Find references to resource keys in source code.

Source text is tokenized by ``locres.lexer`` and the token stream is matched against
three accessor shapes:

* ``Resources.Key``: static member of a generated resource class (high confidence)
* ``localizer["Key"]``: indexer on a localizer variable (high, or medium when the
  variable is only recognised by its name)
* ``GetString("Key")``: call of a helper method (medium)

A key expression that is not a constant string (interpolation, concatenation with a
variable, a method call...) is recorded as a low confidence dynamic reference.

Razor views are reduced to their C# regions and XAML files are matched for
``{x:Static}`` references, both by ``locres.markup``.
"""
import asyncio
import concurrent.futures
import logging
import os
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path

from locres.cancellation import CancellationToken
from locres.catalog import Catalog
from locres.classes import (
    AccessPattern,
    Confidence,
    FileScanResult,
    ScanReport,
    UsageReference,
)
from locres.errors import NotFoundError
from locres.lexer import Token, TokenKind, tokenize
from locres.markup import RAZOR_EXTENSIONS, XAML_EXTENSIONS, razor_code, xaml_static_members
from locres.report import build_report

logger = logging.getLogger(__name__)

# Members of generated resource classes that are not keys.
NON_KEY_MEMBERS = {"ResourceManager", "Culture"}
LOCALIZER_HINTS = ("localiz", "i18n", "l10n", "translat")
# Identifiers that may directly precede a call expression; any other identifier before
# ``Name(`` means a declaration such as ``string GetString(string key)``.
CALL_PRECEDING_KEYWORDS = {"return", "await", "yield", "throw", "case", "in", "else", "echo"}

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")", "]", "}"}


@dataclass
class ScannerOptions:
    resource_classes: list[str] = field(
        default_factory=lambda: ["Resources", "Strings", "AppResources"]
    )
    localizers: list[str] = field(
        default_factory=lambda: ["_localizer", "localizer", "Localizer", "_stringLocalizer", "L"]
    )
    helper_methods: list[str] = field(
        default_factory=lambda: ["GetString", "GetLocalizedString", "Translate", "L", "T"]
    )
    infer_localizers: bool = True
    extensions: list[str] = field(
        default_factory=lambda: [
            ".cs", ".razor", ".cshtml", ".xaml", ".js", ".jsx", ".ts", ".tsx", ".java", ".kt",
        ]
    )
    exclude_dirs: list[str] = field(
        default_factory=lambda: ["bin", "obj", "node_modules", ".git", ".vs"]
    )
    exclude: list[str] = field(
        default_factory=lambda: ["*.g.cs", "*.designer.cs", "*.Designer.cs", "*.g.i.cs"]
    )
    workers: int = 4
    strict: bool = False

    @classmethod
    def from_config(cls, section: dict | None) -> "ScannerOptions":
        options = cls()
        for name, value in (section or {}).items():
            if not hasattr(options, name):
                logger.warning(f"Ignoring unknown scanner option '{name}'")
                continue
            setattr(options, name, value)
        options.extensions = [ext if ext.startswith(".") else f".{ext}" for ext in options.extensions]
        options.workers = max(1, int(options.workers))
        return options


@dataclass
class KeyExpression:
    key: str
    dynamic: bool
    fragments: tuple[str, ...] = ()


def _group(tokens: list[Token], start: int) -> tuple[list[Token], int]:
    """Return the tokens inside the bracket at ``start`` and the index of its closer."""
    depth = 0
    for index in range(start, len(tokens)):
        token = tokens[index]
        if token.kind is not TokenKind.PUNCT:
            continue
        if token.text in OPENERS:
            depth += 1
        elif token.text in CLOSERS:
            depth -= 1
            if depth == 0:
                return tokens[start + 1 : index], index
    return tokens[start + 1 :], len(tokens)


def _split(tokens: list[Token], separator: str) -> list[list[Token]]:
    parts: list[list[Token]] = [[]]
    depth = 0
    for token in tokens:
        if token.kind is TokenKind.PUNCT:
            if token.text in OPENERS:
                depth += 1
            elif token.text in CLOSERS:
                depth -= 1
            elif token.text == separator and depth == 0:
                parts.append([])
                continue
        parts[-1].append(token)
    return parts


def _pieces(tokens: list[Token]) -> list[str | None]:
    # None marks a part of the key that is unknown until runtime.
    operands = _split(tokens, "+")
    if len(operands) > 1:
        pieces: list[str | None] = []
        for operand in operands:
            pieces.extend(_pieces(operand) if operand else [None])
        return pieces

    if len(tokens) > 2 and tokens[0].is_punct("("):
        inner, end = _group(tokens, 0)
        if end == len(tokens) - 1:
            return _pieces(inner)

    if len(tokens) == 1 and tokens[0].kind is TokenKind.STRING:
        token = tokens[0]
        if not token.interpolated:
            return [token.text]
        pieces = []
        for index, segment in enumerate(token.segments):
            pieces.append(segment)
            if index < len(token.expressions):
                pieces.append(None)
        return pieces
    return [None]


def evaluate_key(tokens: list[Token]) -> KeyExpression | None:
    """Fold a key expression to its literal value, or describe it as dynamic.

    Concatenation of constant literals folds at any depth; the first non-literal operand
    makes the whole key dynamic. A dynamic key is written as its literal fragments with
    ``*`` for every unknown part.
    """
    if not tokens:
        return None
    pieces = _pieces(tokens)
    if None not in pieces:
        return KeyExpression("".join(pieces), False, ())

    template = ""
    fragments = []
    literal = ""
    for piece in pieces:
        if piece is None:
            if literal:
                fragments.append(literal)
                template += literal
                literal = ""
            if not template.endswith("*"):
                template += "*"
        else:
            literal += piece
    if literal:
        fragments.append(literal)
        template += literal
    return KeyExpression(template if fragments else "", True, tuple(fragments))


class _Matcher:
    def __init__(self, options: ScannerOptions, path: str) -> None:
        self.options = options
        self.path = path
        self.references: list[UsageReference] = []
        self._resource_classes = set(options.resource_classes)
        self._localizers = set(options.localizers)
        self._helpers = set(options.helper_methods)

    def localizer_binding(self, name: str) -> Confidence | None:
        if name in self._localizers:
            return Confidence.HIGH
        lowered = name.lower()
        if self.options.infer_localizers and any(hint in lowered for hint in LOCALIZER_HINTS):
            return Confidence.MEDIUM
        return None

    def _add(
        self,
        token: Token,
        pattern: AccessPattern,
        confidence: Confidence,
        expression: KeyExpression,
    ) -> None:
        if expression.dynamic:
            confidence = Confidence.LOW
        elif not expression.key:
            return
        self.references.append(
            UsageReference(
                path=self.path,
                line=token.line,
                column=token.column,
                key=expression.key,
                pattern=pattern,
                confidence=confidence,
                is_dynamic=expression.dynamic,
                fragments=expression.fragments,
            )
        )

    def _first_argument(self, tokens: list[Token], start: int) -> tuple[list[Token], list[Token], int]:
        inner, end = _group(tokens, start)
        return _split(inner, ",")[0], inner, end

    def match(self, tokens: list[Token]) -> None:
        index = 0
        while index < len(tokens):
            token = tokens[index]
            for expression in token.expressions:
                self.match(expression)

            if token.kind is not TokenKind.IDENTIFIER:
                index += 1
                continue

            following = tokens[index + 1 : index + 4]
            nxt = following[0] if following else None

            if (
                token.text in self._resource_classes
                and len(following) >= 2
                and following[0].is_punct(".")
                and following[1].kind is TokenKind.IDENTIFIER
            ):
                member = following[1]
                is_call = len(following) == 3 and following[2].is_punct("(")
                if not is_call and member.text not in NON_KEY_MEMBERS:
                    self._add(
                        token,
                        AccessPattern.STATIC_MEMBER,
                        Confidence.HIGH,
                        KeyExpression(member.text, False),
                    )
                    index += 3
                    continue

            if nxt is not None and nxt.is_punct("["):
                binding = self.localizer_binding(token.text)
                if binding is not None:
                    argument, inner, end = self._first_argument(tokens, index + 1)
                    expression = evaluate_key(argument)
                    if expression is not None:
                        self._add(token, AccessPattern.INDEXER, binding, expression)
                    self.match(inner)
                    index = end + 1
                    continue

            if nxt is not None and nxt.is_punct("(") and token.text in self._helpers:
                previous = tokens[index - 1] if index > 0 else None
                declaration = (
                    previous is not None
                    and previous.kind is TokenKind.IDENTIFIER
                    and previous.text not in CALL_PRECEDING_KEYWORDS
                )
                if not declaration:
                    argument, inner, end = self._first_argument(tokens, index + 1)
                    expression = evaluate_key(argument)
                    if expression is not None:
                        self._add(token, AccessPattern.WRAPPER_CALL, Confidence.MEDIUM, expression)
                    self.match(inner)
                    index = end + 1
                    continue

            index += 1


def scan_text(text: str, path: str | Path, options: ScannerOptions | None = None) -> FileScanResult:
    options = options or ScannerOptions()
    path = str(path)
    suffix = Path(path).suffix.lower()
    if suffix in XAML_EXTENSIONS:
        return _scan_xaml(text, path, options)
    if suffix in RAZOR_EXTENSIONS:
        text = razor_code(text)
    lexed = tokenize(text)

    matcher = _Matcher(options, path)
    matcher.match(lexed.tokens)
    references = matcher.references
    if options.strict:
        references = [ref for ref in references if ref.confidence >= Confidence.MEDIUM]

    result = FileScanResult(
        path=path,
        references=sorted(references, key=lambda ref: (ref.line, ref.column)),
        warnings=[f"{path}: {warning}" for warning in lexed.warnings],
        partial=lexed.partial,
    )
    if result.partial:
        logger.warning(f"{path} was only partially scanned: {'; '.join(lexed.warnings)}")
    return result


def _scan_xaml(text: str, path: str, options: ScannerOptions) -> FileScanResult:
    references = [
        UsageReference(
            path=path,
            line=line,
            column=column,
            key=key,
            pattern=AccessPattern.STATIC_MEMBER,
            confidence=Confidence.HIGH,
        )
        for line, column, key in xaml_static_members(text, options.resource_classes)
        if key not in NON_KEY_MEMBERS
    ]
    return FileScanResult(path=path, references=references)


def scan_file(path: Path, options: ScannerOptions, root: Path | None = None) -> FileScanResult:
    display = path.relative_to(root).as_posix() if root is not None else path.as_posix()
    try:
        raw = path.read_bytes()
        text = raw.decode("utf-8-sig")
    except OSError as ex:
        return _skipped(display, f"{display}: cannot be read ({ex.strerror or ex})")
    except UnicodeDecodeError:
        return _skipped(display, f"{display}: cannot be decoded as text")
    if "\x00" in text:
        return _skipped(display, f"{display}: cannot be decoded as text")
    return scan_text(text, display, options)


def _skipped(path: str, warning: str) -> FileScanResult:
    logger.warning(f"Skipping {warning}")
    return FileScanResult(path=path, warnings=[warning], skipped=True)


def discover_sources(source: str | Path, options: ScannerOptions) -> list[Path]:
    source = Path(source)
    if source.is_file():
        return [source]
    if not source.is_dir():
        raise NotFoundError(f"Source path not found: {source}")

    extensions = {ext.lower() for ext in options.extensions}
    excluded_dirs = set(options.exclude_dirs)
    files = []
    for dirpath, dirnames, filenames in os.walk(source):
        dirnames[:] = sorted(name for name in dirnames if name not in excluded_dirs)
        for name in filenames:
            path = Path(dirpath) / name
            if path.suffix.lower() not in extensions:
                continue
            relative = path.relative_to(source).as_posix()
            if any(fnmatch(name, pattern) or fnmatch(relative, pattern) for pattern in options.exclude):
                continue
            files.append(path)
    return sorted(files)


def scan_sources(
    source: str | Path,
    options: ScannerOptions | None = None,
    token: CancellationToken | None = None,
) -> tuple[list[FileScanResult], bool]:
    """Scan every source file under ``source`` on a bounded worker pool.

    Returns the per-file results completed so far and whether the scan was cancelled.
    Cancellation is checked before each file is started.
    """
    options = options or ScannerOptions()
    source = Path(source)
    files = discover_sources(source, options)
    root = source if source.is_dir() else source.parent
    logger.info(f"Scanning {len(files)} source files with {options.workers} workers")

    def scan_one(path: Path) -> FileScanResult | None:
        if token is not None and token.cancelled:
            return None
        return scan_file(path, options, root)

    results: list[FileScanResult] = []
    with concurrent.futures.ThreadPoolExecutor(max_workers=options.workers) as executor:
        futures = [executor.submit(scan_one, path) for path in files]
        for future in concurrent.futures.as_completed(futures):
            if token is not None and token.cancelled:
                for pending in futures:
                    pending.cancel()
            if future.cancelled():
                continue
            result = future.result()
            if result is not None:
                results.append(result)

    cancelled = token is not None and token.cancelled
    if cancelled:
        logger.warning(f"Scan cancelled after {len(results)} of {len(files)} files")
    return results, cancelled


def scan(
    source: str | Path,
    catalog: Catalog,
    options: ScannerOptions | None = None,
    token: CancellationToken | None = None,
) -> ScanReport:
    results, cancelled = scan_sources(source, options, token)
    return build_report(catalog.base_name, catalog.declared_keys(), results, cancelled)


async def scan_async(
    source: str | Path,
    catalog: Catalog,
    options: ScannerOptions | None = None,
    token: CancellationToken | None = None,
) -> ScanReport:
    return await asyncio.to_thread(scan, source, catalog, options, token)


