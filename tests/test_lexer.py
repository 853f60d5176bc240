from uwscript import tokens
from uwscript.lexer import Lexer, tokenize


def kinds(source):
    return [(t.type, t.literal) for t in tokenize(source)]


def test_operators_and_delimiters():
    assert kinds('= <> < <= > >= + - * / ! , ( ) [ ] { }') == [
        ('=', '='), ('<>', '<>'), ('<', '<'), ('<=', '<='), ('>', '>'), ('>=', '>='),
        ('+', '+'), ('-', '-'), ('*', '*'), ('/', '/'), ('!', '!'), (',', ','),
        ('(', '('), (')', ')'), ('[', '['), (']', ']'), ('{', '{'), ('}', '}'),
        ('EOF', ''),
    ]


def test_keywords_are_case_insensitive():
    assert kinds('dim Fend ifB hashtbl x mod') == [
        (tokens.DIM, 'dim'), (tokens.FEND, 'Fend'), (tokens.IFB, 'ifB'),
        (tokens.HASHTBL, 'hashtbl'), (tokens.IDENT, 'x'), (tokens.MOD, 'mod'),
        (tokens.EOF, ''),
    ]


def test_statement_with_string_and_comment():
    source = 'DIM s = "hello world" // trailing comment\n\n\nPRINT(s)\n'
    assert kinds(source) == [
        (tokens.DIM, 'DIM'), (tokens.IDENT, 's'), (tokens.ASSIGN, '='),
        (tokens.STRING, 'hello world'), (tokens.EOL, '\n'),
        (tokens.IDENT, 'PRINT'), (tokens.LPAREN, '('), (tokens.IDENT, 's'),
        (tokens.RPAREN, ')'), (tokens.EOL, '\n'), (tokens.EOF, ''),
    ]


def test_integers_and_identifiers_split():
    assert kinds('12ab') == [(tokens.INT, '12'), (tokens.IDENT, 'ab'), (tokens.EOF, '')]


def test_unknown_character_is_illegal():
    assert kinds('a @ b') == [
        (tokens.IDENT, 'a'), (tokens.ILLEGAL, '@'), (tokens.IDENT, 'b'), (tokens.EOF, ''),
    ]


def test_positions():
    toks = tokenize('DIM a\n  a = 1')
    assert (toks[0].line, toks[0].column) == (1, 1)
    assert (toks[3].literal, toks[3].line, toks[3].column) == ('a', 2, 3)


def test_eof_repeats_forever():
    lexer = Lexer('x')
    assert lexer.next_token().type == tokens.IDENT
    first = lexer.next_token()
    assert first.type == tokens.EOF
    assert lexer.next_token() is first
    assert lexer.next_token().type == tokens.EOF
