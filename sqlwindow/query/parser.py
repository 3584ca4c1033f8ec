from typing import Any, List, Optional

from ..schema.window import (
    WindowCall, WindowSpec, OrderItem, OrderSpec, FrameSpec, FrameBound,
    ASC, DESC, ROWS, RANGE
)
from ..utils.exceptions import SQLSyntaxError, SQLWindowError

class Token:
    def __init__(self, type: str, value: str, line: int = 1, column: int = 0):
        self.type = type
        self.value = value
        self.line = line
        self.column = column

    def __repr__(self):
        return f"Token({self.type}, {self.value}, L{self.line}:C{self.column})"

class WindowExpressionParser:
    """Parses `func(args) OVER (PARTITION BY ... ORDER BY ... frame) [AS alias]`."""

    KEYWORDS = {
        'OVER', 'PARTITION', 'ORDER', 'BY', 'ASC', 'DESC', 'NULLS',
        'ROWS', 'RANGE', 'BETWEEN', 'AND', 'UNBOUNDED', 'PRECEDING',
        'FOLLOWING', 'CURRENT', 'ROW', 'AS', 'NULL'
    }

    def __init__(self):
        self.tokens: List[Token] = []
        self.position = 0
        self.sql_text = ""

    def tokenize(self, sql: str) -> List[Token]:
        self.sql_text = sql
        tokens = []
        i = 0
        line = 1
        line_start = 0

        while i < len(sql):
            if sql[i] == '\n':
                line += 1
                line_start = i + 1
                i += 1
                continue

            if sql[i].isspace():
                i += 1
                continue

            column = i - line_start + 1

            if sql[i] in '(),':
                tokens.append(Token('SYMBOL', sql[i], line, column))
                i += 1
                continue

            if sql[i] in ("'", '"', '`'):
                quote = sql[i]
                i += 1
                chars = []
                while True:
                    if i >= len(sql):
                        raise SQLSyntaxError("Unterminated quoted text", line=line, column=column)
                    if sql[i] == '\\' and i + 1 < len(sql):
                        chars.append(sql[i + 1])
                        i += 2
                    elif sql[i] == quote and sql[i + 1:i + 2] == quote:
                        # Doubled quote stands for one quote character
                        chars.append(quote)
                        i += 2
                    elif sql[i] == quote:
                        i += 1
                        break
                    else:
                        chars.append(sql[i])
                        i += 1
                # Single quotes are string literals, double quotes and backticks name columns
                kind = 'STRING' if quote == "'" else 'IDENTIFIER'
                tokens.append(Token(kind, ''.join(chars), line, column))
                continue

            if sql[i].isdigit() or (sql[i] == '-' and i + 1 < len(sql) and sql[i + 1].isdigit()):
                start = i
                if sql[i] == '-':
                    i += 1
                while i < len(sql) and (sql[i].isdigit() or sql[i] == '.'):
                    i += 1
                tokens.append(Token('NUMBER', sql[start:i], line, column))
                continue

            if sql[i].isalpha() or sql[i] == '_':
                start = i
                while i < len(sql) and (sql[i].isalnum() or sql[i] == '_'):
                    i += 1
                word = sql[start:i]
                if word.upper() in self.KEYWORDS:
                    tokens.append(Token('KEYWORD', word.upper(), line, column))
                else:
                    tokens.append(Token('IDENTIFIER', word, line, column))
                continue

            if sql[i] == '*':
                tokens.append(Token('STAR', '*', line, column))
                i += 1
                continue

            raise SQLSyntaxError(
                f"Unexpected character '{sql[i]}'",
                line=line,
                column=column,
                context=self._line_context(line, column)
            )

        self.tokens = tokens
        return tokens

    def parse(self, sql: str) -> WindowCall:
        calls = self._parse_calls(sql, allow_many=False)
        return calls[0]

    def parse_list(self, sql: str) -> List[WindowCall]:
        return self._parse_calls(sql, allow_many=True)

    def _parse_calls(self, sql: str, allow_many: bool) -> List[WindowCall]:
        self.tokenize(sql)
        self.position = 0

        if not self.tokens:
            raise SQLSyntaxError("Empty window expression")

        try:
            calls = [self.parse_call()]
            while allow_many and self._at(','):
                self.consume(',')
                calls.append(self.parse_call())

            token = self.current_token()
            if token is not None:
                raise SQLSyntaxError(
                    f"Unexpected '{token.value}' after window expression",
                    line=token.line,
                    column=token.column,
                    context=self._get_context(token),
                    hint="Separate several expressions with commas" if not allow_many else None
                )
            return calls
        except SQLWindowError:
            raise
        except Exception as e:
            token = self.current_token()
            if token:
                raise SQLSyntaxError(
                    str(e),
                    line=token.line,
                    column=token.column,
                    context=self._get_context(token)
                )
            raise SQLSyntaxError(str(e))

    def parse_call(self) -> WindowCall:
        name_token = self.consume()
        if name_token.type != 'IDENTIFIER':
            raise SQLSyntaxError(
                f"Expected a function name, got '{name_token.value}'",
                line=name_token.line,
                column=name_token.column,
                context=self._get_context(name_token)
            )

        self.consume('(')
        args = []
        if self._at('*'):
            self.consume('*')
            args.append('*')
        elif not self._at(')'):
            args.append(self.parse_argument(first=True))
            while self._at(','):
                self.consume(',')
                args.append(self.parse_argument(first=False))
        self.consume(')')

        self.consume('OVER')
        self.consume('(')
        window = self.parse_window()
        self.consume(')')

        alias = None
        if self._at('AS'):
            self.consume('AS')
            alias = self._consume_identifier("alias")
        elif self.current_token() and self.current_token().type == 'IDENTIFIER':
            alias = self.consume().value

        return WindowCall(name_token.value, args, window, alias)

    def parse_argument(self, first: bool) -> Any:
        token = self.consume()
        if token.type == 'IDENTIFIER' and first:
            return token.value
        if token.type == 'NUMBER':
            return float(token.value) if '.' in token.value else int(token.value)
        if token.type == 'STRING' and not first:
            return token.value
        if token.type == 'KEYWORD' and token.value == 'NULL':
            return None
        raise SQLSyntaxError(
            f"Unexpected argument '{token.value}'",
            line=token.line,
            column=token.column,
            context=self._get_context(token),
            hint="Only the first argument may name a column; later arguments must be literals"
        )

    def parse_window(self) -> WindowSpec:
        partition_by = []
        order_by = []
        frame = None

        if self._at('PARTITION'):
            self.consume('PARTITION')
            self.consume('BY')
            partition_by.append(self._consume_identifier("PARTITION BY column"))
            while self._at(','):
                self.consume(',')
                partition_by.append(self._consume_identifier("PARTITION BY column"))

        if self._at('ORDER'):
            self.consume('ORDER')
            self.consume('BY')
            order_by.append(self.parse_order_item())
            while self._at(','):
                self.consume(',')
                order_by.append(self.parse_order_item())

        if self._at('ROWS') or self._at('RANGE'):
            frame = self.parse_frame()

        return WindowSpec(partition_by, OrderSpec(order_by), frame)

    def parse_order_item(self) -> OrderItem:
        column = self._consume_identifier("ORDER BY column")
        direction = ASC
        nulls_first = None

        if self._at('ASC') or self._at('DESC'):
            direction = self.consume().value

        if self._at('NULLS'):
            self.consume('NULLS')
            token = self.consume()
            placement = token.value.upper()
            if placement not in ('FIRST', 'LAST'):
                raise SQLSyntaxError(
                    f"Expected FIRST or LAST after NULLS, got '{token.value}'",
                    line=token.line,
                    column=token.column,
                    context=self._get_context(token)
                )
            nulls_first = placement == 'FIRST'

        return OrderItem(column, direction, nulls_first)

    def parse_frame(self) -> FrameSpec:
        mode = self.consume().value
        if self._at('BETWEEN'):
            self.consume('BETWEEN')
            start = self.parse_bound()
            self.consume('AND')
            end = self.parse_bound()
        else:
            start = self.parse_bound()
            end = FrameBound.current_row()
        return FrameSpec(start, end, ROWS if mode == 'ROWS' else RANGE)

    def parse_bound(self) -> FrameBound:
        token = self.consume()
        if token.value == 'UNBOUNDED':
            direction = self.consume()
            if direction.value == 'PRECEDING':
                return FrameBound.unbounded_preceding()
            if direction.value == 'FOLLOWING':
                return FrameBound.unbounded_following()
            token = direction
        elif token.value == 'CURRENT':
            self.consume('ROW')
            return FrameBound.current_row()
        elif token.type == 'NUMBER' and token.value.isdigit():
            direction = self.consume()
            if direction.value == 'PRECEDING':
                return FrameBound.preceding(int(token.value))
            if direction.value == 'FOLLOWING':
                return FrameBound.following(int(token.value))
            token = direction

        raise SQLSyntaxError(
            f"Invalid frame bound near '{token.value}'",
            line=token.line,
            column=token.column,
            context=self._get_context(token),
            hint="Use UNBOUNDED PRECEDING, n PRECEDING, CURRENT ROW, n FOLLOWING or UNBOUNDED FOLLOWING"
        )

    def _consume_identifier(self, what: str) -> str:
        token = self.consume()
        if token.type != 'IDENTIFIER':
            raise SQLSyntaxError(
                f"Expected {what}, got '{token.value}'",
                line=token.line,
                column=token.column,
                context=self._get_context(token),
                hint="Quote reserved words with backticks" if token.type == 'KEYWORD' else None
            )
        return token.value

    def _at(self, value: str) -> bool:
        token = self.current_token()
        return token is not None and token.type != 'STRING' and token.value == value

    def _line_context(self, line: int, column: int, width: int = 50) -> str:
        lines = self.sql_text.split('\n')
        if line <= len(lines):
            line_text = lines[line - 1]
            start = max(0, column - width // 2)
            end = min(len(line_text), column + width // 2)
            return line_text[start:end]
        return ""

    def _get_context(self, token: Token, width: int = 50) -> str:
        return self._line_context(token.line, token.column, width)

    def current_token(self) -> Optional[Token]:
        if self.position < len(self.tokens):
            return self.tokens[self.position]
        return None

    def consume(self, expected: Optional[str] = None) -> Token:
        token = self.current_token()
        if token is None:
            raise SQLSyntaxError(
                "Unexpected end of window expression",
                hint=f"Expected: {expected}" if expected else None
            )
        if expected and (token.value != expected or token.type == 'STRING'):
            raise SQLSyntaxError(
                f"Expected '{expected}', got '{token.value}'",
                line=token.line,
                column=token.column,
                context=self._get_context(token),
                hint=self._get_hint(expected, token.value)
            )
        self.position += 1
        return token

    def _get_hint(self, expected: str, got: str) -> Optional[str]:
        hints = {
            ('OVER', 'AS'): "Window functions need an OVER (...) clause",
            ('BY', 'ORDER'): "Did you mean 'PARTITION BY ... ORDER BY'?",
            ('AND', 'CURRENT'): "Frame bounds are written 'BETWEEN start AND end'",
        }
        return hints.get((expected, got))
