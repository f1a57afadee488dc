"""Shell highlighting for list rows."""

from __future__ import annotations

from pygments.lexers.shell import BashLexer
from pygments.token import (
    Comment,
    Error,
    Keyword,
    Name,
    Number,
    Operator,
    Punctuation,
    String,
    Text,
)
from rich.style import Style
from rich.syntax import Syntax, SyntaxTheme
from rich.text import Text as RichText

from histrank.ranking import Entry


class MonokaiProTheme(SyntaxTheme):
    """Rich syntax-highlighting theme that matches Monokai Pro, without a background."""

    _RED = "#ff6188"
    _GREEN = "#a9dc76"
    _YELLOW = "#ffd866"
    _ORANGE = "#fc9867"
    _PURPLE = "#ab9df2"
    _CYAN = "#78dce8"
    _WHITE = "#fcfcfa"
    _COMMENT_GRAY = "#727072"

    default_style = Style(color=_WHITE)

    styles = {
        Text: Style(color=_WHITE),
        Comment: Style(color=_COMMENT_GRAY, italic=True),
        Keyword: Style(color=_RED, bold=True),
        Name.Builtin: Style(color=_GREEN, bold=True),  # cd, echo, export
        Name.Variable: Style(color=_PURPLE),  # $HOME, ${PATH}
        Name.Attribute: Style(color=_ORANGE),
        Number: Style(color=_CYAN),
        Operator: Style(color=_RED),
        Punctuation: Style(color=_WHITE),
        String: Style(color=_YELLOW),
        String.Escape: Style(color=_PURPLE),
        String.Interpol: Style(color=_PURPLE, bold=True),
        Error: Style(color=_RED, bold=True),
    }

    @classmethod
    def get_style_for_token(cls, token_type):
        # Fall back through parent token types, e.g. String.Double -> String
        while token_type not in cls.styles and token_type.parent is not None:
            token_type = token_type.parent
        return cls.styles.get(token_type, cls.default_style)

    @classmethod
    def get_background_style(cls):
        return Style()


THEME = MonokaiProTheme()
LEXER = BashLexer()

EXCLUDED_STYLE = Style(color="#5C6370", strike=True)


def highlight_command(command: str) -> RichText:
    """→ A single highlighted line of shell"""
    syntax = Syntax(command, LEXER, theme=THEME, background_color="default")
    text = syntax.highlight(command)
    text.rstrip()
    return text


def displayable(raw: str) -> str:
    """→ `raw` with undecodable bytes shown as U+FFFD; the stored value is untouched"""
    return raw.encode("utf-8", "surrogateescape").decode("utf-8", "replace")


def format_entry(entry: Entry) -> RichText:
    """→ Display function for ranked entries; excluded ones are dimmed and struck through"""
    if entry.excluded:
        return RichText(displayable(entry.raw), style=EXCLUDED_STYLE)
    return highlight_command(displayable(entry.raw))
