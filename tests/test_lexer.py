from locres.lexer import LexState, TokenKind, tokenize


def texts(tokens):
    return [token.text for token in tokens]


class TestLexer:
    """Code, comments and strings are told apart."""

    def test_identifiers_and_punctuation(self):
        result = tokenize("var x = Resources.Hello;")
        assert texts(result.tokens) == ["var", "x", "=", "Resources", ".", "Hello", ";"]
        assert not result.partial

    def test_positions_are_one_based(self):
        tokens = tokenize("a\n  bc").tokens
        assert (tokens[0].line, tokens[0].column) == (1, 1)
        assert (tokens[1].line, tokens[1].column) == (2, 3)

    def test_comments_produce_no_tokens(self):
        result = tokenize("// Resources.A\n/* Resources.B\n */ x")
        assert texts(result.tokens) == ["x"]
        states = [state for _, _, state in result.transitions]
        assert LexState.LINE_COMMENT in states
        assert LexState.BLOCK_COMMENT in states

    def test_string_contents_are_one_token(self):
        tokens = tokenize('s = "_localizer[\\"NotAKey\\"]";').tokens
        assert texts(tokens) == ["s", "=", '_localizer["NotAKey"]', ";"]
        assert tokens[2].kind is TokenKind.STRING

    def test_comment_markers_inside_strings(self):
        tokens = tokenize('url = "http://example.com"; y').tokens
        assert texts(tokens) == ["url", "=", "http://example.com", ";", "y"]

    def test_verbatim_string(self):
        tokens = tokenize('x = @"C:\\path ""quoted""";').tokens
        assert tokens[2].text == 'C:\\path "quoted"'

    def test_interpolated_string(self):
        token = tokenize('$"Status_{status}!"').tokens[0]
        assert token.interpolated
        assert token.segments == ["Status_", "!"]
        assert texts(token.expressions[0]) == ["status"]

    def test_interpolation_escapes_and_nesting(self):
        token = tokenize('$"{{literal}} {Format("x", a[0])}"').tokens[0]
        assert token.segments == ["{literal} ", ""]
        assert texts(token.expressions[0]) == ["Format", "(", "x", ",", "a", "[", "0", "]", ")"]

    def test_template_literal(self):
        token = tokenize("t(`menu.${name}.title`)").tokens[2]
        assert token.segments == ["menu.", ".title"]
        assert texts(token.expressions[0]) == ["name"]

    def test_unterminated_string_is_partial(self):
        result = tokenize('x = "open\ny = Resources.Key;')
        assert result.partial
        assert result.warnings
        assert "Resources" in texts(result.tokens)

    def test_unterminated_block_comment_is_partial(self):
        result = tokenize("x /* never closed")
        assert result.partial
        assert texts(result.tokens) == ["x"]

    def test_unterminated_interpolation_is_partial(self):
        result = tokenize('$"abc {value')
        assert result.partial
        assert result.tokens[0].kind is TokenKind.STRING
