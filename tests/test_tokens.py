"""Tokenizer tests."""

from ze.tokens import TK_EOF, TK_IDENT, TK_NUMBER, TK_STRING, Token, tokenize


def _types(source: str) -> list[str]:
    tokens, errors = tokenize(source)
    assert errors == []
    return [t.type for t in tokens]


def test_empty_source_is_just_eof():
    tokens, errors = tokenize("")
    assert errors == []
    assert tokens == [Token(TK_EOF, "", None, 1)]


def test_operators_match_greedily():
    assert _types("!= == <= >= ! = < >") == [
        "!=", "==", "<=", ">=", "!", "=", "<", ">", TK_EOF,
    ]


def test_punctuation():
    assert _types("(){},.-+;*/?:") == [
        "(", ")", "{", "}", ",", ".", "-", "+", ";", "*", "/", "?", ":", TK_EOF,
    ]


def test_keywords_and_identifiers():
    tokens, _ = tokenize("var classy = class; continue _x1")
    assert [(t.type, t.lexeme) for t in tokens] == [
        ("var", "var"),
        (TK_IDENT, "classy"),
        ("=", "="),
        ("class", "class"),
        (";", ";"),
        ("continue", "continue"),
        (TK_IDENT, "_x1"),
        (TK_EOF, ""),
    ]


def test_number_literals():
    tokens, _ = tokenize("12 3.5")
    assert tokens[0] == Token(TK_NUMBER, "12", 12.0, 1)
    assert tokens[1] == Token(TK_NUMBER, "3.5", 3.5, 1)


def test_trailing_dot_is_not_part_of_number():
    tokens, _ = tokenize("1.")
    assert [t.type for t in tokens] == [TK_NUMBER, ".", TK_EOF]
    assert tokens[0].literal == 1.0


def test_string_keeps_quotes_in_lexeme():
    tokens, _ = tokenize('"hi there"')
    assert tokens[0] == Token(TK_STRING, '"hi there"', "hi there", 1)


def test_lexemes_concatenate_to_source_without_trivia():
    source = 'var x = (1 + 2.5) * "s"; // comment\n/* block */ print x;'
    tokens, errors = tokenize(source)
    assert errors == []
    assert "".join(t.lexeme for t in tokens) == 'varx=(1+2.5)*"s";printx;'


def test_lines_are_counted():
    tokens, _ = tokenize('a\nb\n"multi\nline"\n/* one\ntwo */ c')
    lines = [(t.lexeme, t.line) for t in tokens]
    assert lines == [
        ("a", 1),
        ("b", 2),
        ('"multi\nline"', 3),
        ("c", 6),
        ("", 6),
    ]


def test_nested_block_comments():
    assert _types("/* a /* b */ c */ x") == [TK_IDENT, TK_EOF]


def test_unexpected_character_keeps_scanning():
    tokens, errors = tokenize("a @ b")
    assert [t.lexeme for t in tokens] == ["a", "b", ""]
    assert len(errors) == 1
    assert errors[0].format() == "[line 1] Error: Unexpected character."


def test_unterminated_string():
    tokens, errors = tokenize('"abc')
    assert [t.type for t in tokens] == [TK_EOF]
    assert [e.msg for e in errors] == ["Unterminated string."]


def test_unterminated_block_comment():
    _, errors = tokenize("/* open\n")
    assert [e.msg for e in errors] == ["Unterminated block comment."]
    assert errors[0].line == 1


def test_token_display():
    tokens, _ = tokenize('x 1 "s"')
    assert [str(t) for t in tokens] == [
        "IDENT x null",
        "NUMBER 1 1.0",
        'STRING "s" s',
        "EOF  null",
    ]
