"""Positional placeholder handling.

Compiled statements always use ``?`` placeholders. The tokenizer finds
the ones that are real placeholders (a ``?`` inside a string literal or a
quoted identifier is not), so they can be counted against the supplied
parameters and rewritten into the paramstyle of the DB-API driver in use.
"""

from typing import List

import sqlglot
from sqlglot.errors import TokenError
from sqlglot.tokens import TokenType

from sqlgate.common.exceptions import ConfigurationError, ErrorCode, validation_error

SUPPORTED_PARAMSTYLES = ("qmark", "format", "pyformat")


def placeholder_positions(sql: str) -> List[int]:
    """Return the character offsets of ``?`` placeholders in ``sql``."""
    try:
        tokens = sqlglot.tokenize(sql, read="mysql")
    except TokenError as exc:
        raise validation_error(
            "Query could not be tokenized",
            field="query",
            hint="Check for unterminated quotes or identifiers",
            cause=exc,
        ) from exc
    return [token.start for token in tokens if token.token_type == TokenType.PLACEHOLDER and token.text == "?"]


def count_placeholders(sql: str) -> int:
    return len(placeholder_positions(sql))


def render_paramstyle(sql: str, paramstyle: str) -> str:
    """Rewrite ``?`` placeholders for a driver's paramstyle.

    ``qmark`` is returned unchanged. For ``format`` and ``pyformat`` each
    placeholder becomes ``%s`` and every other ``%`` is doubled, since
    those drivers run the statement through ``%`` formatting.

    Only call this for statements that are executed with parameters.
    """
    if paramstyle == "qmark":
        return sql
    if paramstyle not in SUPPORTED_PARAMSTYLES:
        raise ConfigurationError(
            f"Unsupported driver paramstyle: {paramstyle}",
            error_code=ErrorCode.CONFIG_INVALID,
        )

    positions = set(placeholder_positions(sql))
    rendered: List[str] = []
    for index, char in enumerate(sql):
        if index in positions:
            rendered.append("%s")
        elif char == "%":
            rendered.append("%%")
        else:
            rendered.append(char)
    return "".join(rendered)
