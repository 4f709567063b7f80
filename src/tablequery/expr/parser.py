"""
Expression Parser - Lark-based parser for table expressions.
"""

from functools import lru_cache
from typing import Optional

from lark import Lark, Tree
from lark.exceptions import (
    UnexpectedInput,
    UnexpectedToken,
    UnexpectedCharacters,
    UnexpectedEOF,
)

from ..exceptions import ExpressionParseError
from .grammar import GRAMMAR


class ExpressionParser:
    """
    Parser for table expression strings.

    Usage:
        parser = ExpressionParser()
        tree = parser.parse("amount > $threshold")
    """

    _instance: Optional["ExpressionParser"] = None
    _parser: Optional[Lark] = None

    def __new__(cls) -> "ExpressionParser":
        """Singleton pattern for parser reuse."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if ExpressionParser._parser is not None:
            return

        ExpressionParser._parser = Lark(
            GRAMMAR,
            start="start",
            parser="lalr",
            propagate_positions=True,
            maybe_placeholders=False,
        )

    @property
    def parser(self) -> Lark:
        """Get the Lark parser instance."""
        if ExpressionParser._parser is None:
            raise RuntimeError("Parser not initialized")
        return ExpressionParser._parser

    @classmethod
    def reset(cls) -> None:
        """Reset the parser cache to force grammar reload on next use."""
        cls._parser = None
        cls._instance = None
        _parse_cached.cache_clear()

    def parse(self, source: str) -> Tree:
        """
        Parse an expression string into a Lark tree.

        Raises:
            ExpressionParseError: On empty input or any syntax error
        """
        if not isinstance(source, str):
            raise ExpressionParseError(
                f"Expected expression string, got {type(source).__name__}", repr(source)
            )

        if not source.strip():
            raise ExpressionParseError("Empty expression", source)

        try:
            return self.parser.parse(source)

        except UnexpectedToken as e:
            expected = ", ".join(sorted(e.expected)[:5]) if e.expected else "end of expression"
            found = "end of expression" if e.token.type == "$END" else repr(str(e.token))
            raise ExpressionParseError(
                f"Unexpected {found}, expected one of: {expected}",
                source, e.line if e.line > 0 else 1, e.column if e.column > 0 else len(source),
            ) from e

        except UnexpectedCharacters as e:
            char = source[e.pos_in_stream] if e.pos_in_stream < len(source) else "?"
            raise ExpressionParseError(
                f"Unexpected character {char!r}", source, e.line, e.column
            ) from e

        except UnexpectedEOF as e:
            raise ExpressionParseError(
                "Unexpected end of expression", source, 1, len(source)
            ) from e

        except UnexpectedInput as e:
            raise ExpressionParseError(
                str(e), source, getattr(e, "line", 1), getattr(e, "column", 1)
            ) from e


@lru_cache(maxsize=1024)
def _parse_cached(source: str) -> Tree:
    return ExpressionParser().parse(source)


def parse_expression(source: str) -> Tree:
    """Parse an expression string, caching the resulting tree."""
    if not isinstance(source, str):
        raise ExpressionParseError(
            f"Expected expression string, got {type(source).__name__}", repr(source)
        )
    return _parse_cached(source)
