import pytest

from chainsh import lexer
from chainsh.lexer import tokenize


def test_tokenize_splits_on_single_spaces():
    assert tokenize("ls  -l\n") == ["ls", "", "-l"]


def test_tokenize_empty_line_has_no_tokens():
    assert tokenize("\n") == []


@pytest.mark.parametrize(
    ("token", "predicate"),
    [
        ("|", lexer.is_pipe),
        (">", lexer.is_output_redirect),
        (">>", lexer.is_output_redirect),
        (">>", lexer.is_append),
        ("<", lexer.is_input_redirect),
        ("2>", lexer.is_stderr_redirect),
        (";", lexer.is_chaining_operator),
        ("&&", lexer.is_chaining_operator),
        ("||", lexer.is_chaining_operator),
        ("&", lexer.is_background),
        ("", lexer.is_ignorable),
        ("\t", lexer.is_ignorable),
    ],
)
def test_operator_predicates(token, predicate):
    assert predicate(token)


def test_plain_words_are_not_operators():
    for word in ("ls", "-l", "a|b", ">file", "2", "!"):
        assert not lexer.is_operator(word)
    assert not lexer.is_append(">")
    assert not lexer.is_background("&&")


def test_history_reference_needs_a_payload():
    assert lexer.is_history_reference("!5")
    assert lexer.is_history_reference("!ec")
    assert not lexer.is_history_reference("!")
    assert not lexer.is_history_reference("5!")
