"""Parser for the UWSC dialect.

A Pratt (operator-precedence) parser driven by two tokens of lookahead,
``cur_token`` and ``peek_token``. Statement parsers dispatch on the
current token's keyword; expressions are folded by binding power.

Parsing never stops at the first problem. Each failing production records
a message in ``Parser.errors`` and returns None, the enclosing loop skips to
the end of the line, or to the next block-end keyword, and carries on. Every
statement must end at a line break. Callers must check ``errors`` before
trusting the tree; :func:`parse_program` does that and raises ParseError.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

from . import tokens
from .ast import (
    ArrayLiteral, AssignmentExpression, BlockStatement, BooleanLiteral, BreakStatement,
    CallExpression, ConstStatement, ContinueStatement, DimStatement, EmptyArgument,
    Expression, ExpressionStatement, ForInStatement, ForToStepStatement, FunctionStatement,
    HashTableStatement, Identifier, IfbStatement, IfStatement, IndexExpression,
    InfixExpression, IntegerLiteral, PrefixExpression, Program, ResultStatement, Statement,
    StringLiteral,
)
from .errors import ParseError
from .lexer import Lexer
from .tokens import Token

LOWEST = 1
EQUALS = 2       # = <>
LESSGREATER = 3  # < <= > >=
SUM = 4          # + -
PRODUCT = 5      # * / MOD
PREFIX = 6       # -x !x
CALL = 7         # fn(x)
INDEX = 8        # arr[x]

PRECEDENCES = {
    tokens.EQUAL: EQUALS,
    tokens.NOT_EQUAL: EQUALS,
    tokens.LESS: LESSGREATER,
    tokens.LESS_EQUAL: LESSGREATER,
    tokens.GREATER: LESSGREATER,
    tokens.GREATER_EQUAL: LESSGREATER,
    tokens.PLUS: SUM,
    tokens.MINUS: SUM,
    tokens.ASTERISK: PRODUCT,
    tokens.SLASH: PRODUCT,
    tokens.MOD: PRODUCT,
    tokens.LPAREN: CALL,
    tokens.LBRACKET: INDEX,
}

LINE_END = (tokens.EOL, tokens.EOF)


class Parser:
    def __init__(self, lexer: Lexer):
        self.lexer = lexer
        self.errors: List[str] = []
        self.loop_depth = 0
        self.in_inline_if = False

        self.prefix_parse_fns: Dict[str, Callable[[], Optional[Expression]]] = {
            tokens.IDENT: self.parse_identifier,
            tokens.RESULT: self.parse_identifier,
            tokens.INT: self.parse_integer_literal,
            tokens.STRING: self.parse_string_literal,
            tokens.TRUE: self.parse_boolean,
            tokens.FALSE: self.parse_boolean,
            tokens.MINUS: self.parse_prefix_expression,
            tokens.BANG: self.parse_prefix_expression,
            tokens.LPAREN: self.parse_grouped_expression,
        }
        self.infix_parse_fns: Dict[str, Callable[[Expression], Optional[Expression]]] = {
            kind: self.parse_infix_expression
            for kind in (tokens.EQUAL, tokens.NOT_EQUAL, tokens.LESS, tokens.LESS_EQUAL,
                         tokens.GREATER, tokens.GREATER_EQUAL, tokens.PLUS, tokens.MINUS,
                         tokens.ASTERISK, tokens.SLASH, tokens.MOD)
        }
        self.infix_parse_fns[tokens.LPAREN] = self.parse_call_expression
        self.infix_parse_fns[tokens.LBRACKET] = self.parse_index_expression

        self.cur_token: Token = self.lexer.next_token()
        self.peek_token: Token = self.lexer.next_token()

    # Token helpers

    def next_token(self):
        self.cur_token = self.peek_token
        self.peek_token = self.lexer.next_token()

    def cur_token_is(self, kind: str) -> bool:
        return self.cur_token.type == kind

    def peek_token_is(self, kind: str) -> bool:
        return self.peek_token.type == kind

    def expect_peek(self, kind: str) -> bool:
        if self.peek_token_is(kind):
            self.next_token()
            return True
        self.peek_error(kind)
        return False

    def peek_error(self, kind: str):
        tok = self.peek_token
        self.errors.append(
            f'expected next token to be {kind}, got {tok.type} instead at {tok.line}:{tok.column}')

    def error_at(self, tok: Token, message: str):
        self.errors.append(f'{message} at {tok.line}:{tok.column}')

    def peek_precedence(self) -> int:
        return PRECEDENCES.get(self.peek_token.type, LOWEST)

    def cur_precedence(self) -> int:
        return PRECEDENCES.get(self.cur_token.type, LOWEST)

    def skip_line_end(self):
        # Statements finish on their last token; step onto the line break so
        # the caller's next_token() lands on the following line.
        if self.peek_token_is(tokens.EOL):
            self.next_token()

    def statement_end(self) -> Tuple[str, ...]:
        # The consequence of a one-line IF may be cut short by its ELSE.
        if self.in_inline_if:
            return LINE_END + (tokens.ELSE,)
        return LINE_END

    def expect_statement_end(self) -> bool:
        if self.peek_token.type in self.statement_end():
            self.skip_line_end()
            return True
        self.peek_error(tokens.EOL)
        # Step off the statement's last token, which may be its closing keyword.
        self.next_token()
        return False

    # Statements

    def parse_program(self) -> Program:
        program = Program()
        while not self.cur_token_is(tokens.EOF):
            error_count = len(self.errors)
            stmt = self.parse_statement()
            if stmt is not None:
                program.statements.append(stmt)
            elif len(self.errors) > error_count:
                self.synchronize()
            self.next_token()
        return program

    def synchronize(self):
        # Stops on a block-end keyword so the enclosing block can still close.
        while (self.cur_token.type not in LINE_END and self.cur_token.type not in tokens.BLOCK_END
               and not self.peek_token_is(tokens.EOF)):
            self.next_token()

    def parse_statement(self) -> Optional[Statement]:
        kind = self.cur_token.type
        if kind == tokens.EOL:
            return None
        if kind in (tokens.DIM, tokens.PUBLIC):
            return self.parse_dim_statement()
        if kind == tokens.CONST:
            return self.parse_const_statement()
        if kind == tokens.HASHTBL:
            return self.parse_hashtable_statement()
        if kind == tokens.IF:
            return self.parse_if_statement()
        if kind == tokens.IFB:
            return self.parse_ifb_statement()
        if kind in (tokens.FUNCTION, tokens.PROCEDURE):
            return self.parse_function_statement()
        if kind == tokens.RESULT and self.peek_token_is(tokens.ASSIGN):
            return self.parse_result_statement()
        if kind == tokens.FOR:
            return self.parse_for_statement()
        if kind in (tokens.CONTINUE, tokens.BREAK):
            return self.parse_loop_control_statement()
        return self.parse_expression_statement()

    def parse_dim_statement(self) -> Optional[DimStatement]:
        tok = self.cur_token
        if not self.expect_peek(tokens.IDENT):
            return None
        name = Identifier(self.cur_token, self.cur_token.literal)
        stmt = DimStatement(tok, name, is_public=tok.type == tokens.PUBLIC)
        if self.peek_token_is(tokens.LBRACKET):
            self.next_token()
            stmt.value = self.parse_array_literal()
            if stmt.value is None:
                return None
            return stmt
        if self.peek_token_is(tokens.ASSIGN):
            self.next_token()
            self.next_token()
            stmt.value = self.parse_expression(LOWEST)
            if stmt.value is None:
                return None
        if not self.expect_statement_end():
            return None
        return stmt

    def parse_const_statement(self) -> Optional[ConstStatement]:
        tok = self.cur_token
        if not self.expect_peek(tokens.IDENT):
            return None
        name = Identifier(self.cur_token, self.cur_token.literal)
        if self.peek_token_is(tokens.LBRACKET):
            self.next_token()
            value = self.parse_array_literal()
            return ConstStatement(tok, name, value) if value is not None else None
        if not self.expect_peek(tokens.ASSIGN):
            return None
        self.next_token()
        value = self.parse_expression(LOWEST)
        if value is None:
            return None
        if not self.expect_statement_end():
            return None
        return ConstStatement(tok, name, value)

    def parse_hashtable_statement(self) -> Optional[HashTableStatement]:
        tok = self.cur_token
        if not self.expect_peek(tokens.IDENT):
            return None
        stmt = HashTableStatement(tok, Identifier(self.cur_token, self.cur_token.literal))
        if self.peek_token_is(tokens.ASSIGN):
            self.next_token()
            self.next_token()
            stmt.value = self.parse_expression(LOWEST)
            if stmt.value is None:
                return None
        if not self.expect_statement_end():
            return None
        return stmt

    def parse_array_literal(self) -> Optional[ArrayLiteral]:
        """Parse ``[size]`` or ``[size] = e0, e1, ...`` after a declared name.

        The size may be omitted. Element count is checked at evaluation.
        """
        array = ArrayLiteral(self.cur_token)
        if self.peek_token_is(tokens.RBRACKET):
            self.next_token()
        else:
            self.next_token()
            array.size = self.parse_expression(LOWEST)
            if array.size is None or not self.expect_peek(tokens.RBRACKET):
                return None
        if self.peek_token.type in self.statement_end():
            self.skip_line_end()
            return array
        if not self.expect_peek(tokens.ASSIGN):
            return None
        self.next_token()
        elements = self.parse_expression_list()
        if elements is None:
            return None
        array.elements = elements
        return array

    def parse_expression_list(self) -> Optional[List[Expression]]:
        elements: List[Expression] = []
        while True:
            element = self.parse_expression(LOWEST)
            if element is None:
                return None
            elements.append(element)
            if not self.peek_token_is(tokens.COMMA):
                break
            self.next_token()
            self.next_token()
        if not self.expect_statement_end():
            return None
        return elements

    def parse_expression_statement(self) -> Optional[ExpressionStatement]:
        tok = self.cur_token
        expression = self.parse_expression(LOWEST, is_start_of_line=True)
        if expression is None:
            return None
        if not self.expect_statement_end():
            return None
        return ExpressionStatement(tok, expression)

    def parse_if_statement(self) -> Optional[IfStatement]:
        tok = self.cur_token
        self.next_token()
        condition = self.parse_expression(LOWEST)
        if condition is None or not self.expect_peek(tokens.THEN):
            return None
        self.next_token()
        outer_inline_if, self.in_inline_if = self.in_inline_if, True
        try:
            consequence = self.parse_inline_branch(tokens.THEN)
        finally:
            self.in_inline_if = outer_inline_if
        if consequence is None:
            return None
        stmt = IfStatement(tok, condition, consequence)
        # An ELSE on the following line belongs to an enclosing IFB.
        if not self.cur_token_is(tokens.EOL) and self.peek_token_is(tokens.ELSE):
            self.next_token()
            self.next_token()
            stmt.alternative = self.parse_inline_branch(tokens.ELSE)
            if stmt.alternative is None:
                return None
        return stmt

    def parse_inline_branch(self, keyword: str) -> Optional[Statement]:
        if self.cur_token.type in LINE_END:
            self.error_at(self.cur_token, f'expected statement after {keyword}, got {self.cur_token.type} instead')
            return None
        return self.parse_statement()

    def parse_ifb_statement(self) -> Optional[IfbStatement]:
        # Also entered on ELSEIF; the nested chain shares the outer ENDIF.
        tok = self.cur_token
        self.next_token()
        condition = self.parse_expression(LOWEST)
        if condition is None:
            return None
        if self.peek_token_is(tokens.THEN):
            self.next_token()
        if not self.expect_peek(tokens.EOL):
            return None
        self.next_token()
        stmt = IfbStatement(tok, condition, self.parse_block_statement())
        if self.cur_token_is(tokens.ELSEIF):
            stmt.alternative = self.parse_ifb_statement()
            if stmt.alternative is None:
                return None
            return stmt
        if self.cur_token_is(tokens.ELSE):
            if not self.expect_peek(tokens.EOL):
                return None
            self.next_token()
            stmt.alternative = self.parse_block_statement()
        if not self.cur_token_is(tokens.ENDIF):
            self.error_at(self.cur_token, f'expected ENDIF, got {self.cur_token.type} instead')
            return None
        if not self.expect_statement_end():
            return None
        return stmt

    def parse_block_statement(self) -> BlockStatement:
        """Collect statements up to (not past) a block-end token."""
        block = BlockStatement(self.cur_token)
        while self.cur_token.type not in tokens.BLOCK_END and not self.cur_token_is(tokens.EOF):
            error_count = len(self.errors)
            stmt = self.parse_statement()
            if stmt is not None:
                block.statements.append(stmt)
            elif len(self.errors) > error_count:
                self.synchronize()
                if self.cur_token.type in tokens.BLOCK_END:
                    continue
            self.next_token()
        return block

    def parse_function_statement(self) -> Optional[FunctionStatement]:
        tok = self.cur_token
        if not self.expect_peek(tokens.IDENT):
            return None
        name = Identifier(self.cur_token, self.cur_token.literal)
        parameters: List[Identifier] = []
        if self.peek_token_is(tokens.LPAREN):
            self.next_token()
            parameters = self.parse_function_parameters()
            if parameters is None:
                return None
        if not self.expect_peek(tokens.EOL):
            return None
        self.next_token()
        outer_loop_depth, self.loop_depth = self.loop_depth, 0
        try:
            body = self.parse_block_statement()
        finally:
            self.loop_depth = outer_loop_depth
        if not self.cur_token_is(tokens.FEND):
            self.error_at(self.cur_token, f'expected FEND, got {self.cur_token.type} instead')
            return None
        if not self.expect_statement_end():
            return None
        return FunctionStatement(tok, name, parameters, body, tok.type == tokens.PROCEDURE)

    def parse_function_parameters(self) -> Optional[List[Identifier]]:
        params: List[Identifier] = []
        if self.peek_token_is(tokens.RPAREN):
            self.next_token()
            return params
        if not self.expect_peek(tokens.IDENT):
            return None
        params.append(Identifier(self.cur_token, self.cur_token.literal))
        while self.peek_token_is(tokens.COMMA):
            self.next_token()
            if not self.expect_peek(tokens.IDENT):
                return None
            params.append(Identifier(self.cur_token, self.cur_token.literal))
        if not self.expect_peek(tokens.RPAREN):
            return None
        return params

    def parse_result_statement(self) -> Optional[ResultStatement]:
        tok = self.cur_token
        self.next_token()
        self.next_token()
        value = self.parse_expression(LOWEST)
        if value is None:
            return None
        if not self.expect_statement_end():
            return None
        return ResultStatement(tok, value)

    def parse_for_statement(self) -> Optional[Statement]:
        tok = self.cur_token
        if not self.expect_peek(tokens.IDENT):
            return None
        loop_var = Identifier(self.cur_token, self.cur_token.literal)
        if self.peek_token_is(tokens.IN):
            self.next_token()
            if not self.expect_peek(tokens.IDENT):
                return None
            collection = Identifier(self.cur_token, self.cur_token.literal)
            block = self.parse_loop_body()
            if block is None:
                return None
            return ForInStatement(tok, loop_var, collection, block)
        if not self.expect_peek(tokens.ASSIGN):
            return None
        self.next_token()
        start = self.parse_loop_bound()
        if start is None or not self.expect_peek(tokens.TO):
            return None
        self.next_token()
        end = self.parse_loop_bound()
        if end is None:
            return None
        step = None
        if self.peek_token_is(tokens.STEP):
            self.next_token()
            self.next_token()
            step = self.parse_loop_bound()
            if step is None:
                return None
        block = self.parse_loop_body()
        if block is None:
            return None
        return ForToStepStatement(tok, loop_var, start, end, step, block)

    def parse_loop_bound(self) -> Optional[Expression]:
        # "-3" folds into a single literal; other expressions are kept and
        # rejected by the interpreter.
        if self.cur_token_is(tokens.MINUS) and self.peek_token_is(tokens.INT):
            tok = self.cur_token
            self.next_token()
            return IntegerLiteral(tok, -int(self.cur_token.literal))
        return self.parse_expression(LOWEST)

    def parse_loop_body(self) -> Optional[BlockStatement]:
        if not self.expect_peek(tokens.EOL):
            return None
        self.next_token()
        self.loop_depth += 1
        try:
            block = self.parse_block_statement()
        finally:
            self.loop_depth -= 1
        if not self.cur_token_is(tokens.NEXT):
            self.error_at(self.cur_token, f'expected NEXT, got {self.cur_token.type} instead')
            return None
        if not self.expect_statement_end():
            return None
        return block

    def parse_loop_control_statement(self) -> Optional[Statement]:
        tok = self.cur_token
        if self.loop_depth == 0:
            self.error_at(tok, f'{tok.type} outside of loop')
            return None
        if not self.expect_statement_end():
            return None
        if tok.type == tokens.CONTINUE:
            return ContinueStatement(tok)
        return BreakStatement(tok)

    # Expressions

    def parse_expression(self, precedence: int, is_start_of_line: bool = False) -> Optional[Expression]:
        prefix = self.prefix_parse_fns.get(self.cur_token.type)
        if prefix is None:
            self.error_at(self.cur_token, f'no prefix parse function for {self.cur_token.type} found')
            return None
        left = prefix()
        if left is None:
            return None
        if is_start_of_line and self.is_assignment_target(left):
            return self.parse_assignment_expression(left)

        while not self.peek_token_is(tokens.EOL) and precedence < self.peek_precedence():
            infix = self.infix_parse_fns.get(self.peek_token.type)
            if infix is None:
                return left
            self.next_token()
            left = infix(left)
            if left is None:
                return None
            # `arr[i] = v` becomes an assignment only once the index is folded in.
            if is_start_of_line and self.is_assignment_target(left):
                return self.parse_assignment_expression(left)
        return left

    def is_assignment_target(self, left: Expression) -> bool:
        return isinstance(left, (Identifier, IndexExpression)) and self.peek_token_is(tokens.ASSIGN)

    def parse_assignment_expression(self, left: Expression) -> Optional[AssignmentExpression]:
        self.next_token()
        tok = self.cur_token
        self.next_token()
        value = self.parse_expression(LOWEST)
        if value is None:
            return None
        return AssignmentExpression(tok, left, value)

    def parse_identifier(self) -> Expression:
        tok = self.cur_token
        name = tokens.RESULT if tok.type == tokens.RESULT else tok.literal
        return Identifier(tok, name)

    def parse_integer_literal(self) -> Optional[Expression]:
        tok = self.cur_token
        try:
            return IntegerLiteral(tok, int(tok.literal))
        except ValueError:
            self.error_at(tok, f'could not parse "{tok.literal}" as integer')
            return None

    def parse_string_literal(self) -> Expression:
        return StringLiteral(self.cur_token, self.cur_token.literal)

    def parse_boolean(self) -> Expression:
        return BooleanLiteral(self.cur_token, self.cur_token_is(tokens.TRUE))

    def parse_prefix_expression(self) -> Optional[Expression]:
        tok = self.cur_token
        self.next_token()
        right = self.parse_expression(PREFIX)
        if right is None:
            return None
        return PrefixExpression(tok, tok.type, right)

    def parse_infix_expression(self, left: Expression) -> Optional[Expression]:
        tok = self.cur_token
        precedence = self.cur_precedence()
        self.next_token()
        right = self.parse_expression(precedence)
        if right is None:
            return None
        return InfixExpression(tok, left, tok.type, right)

    def parse_grouped_expression(self) -> Optional[Expression]:
        self.next_token()
        expression = self.parse_expression(LOWEST)
        if expression is None or not self.expect_peek(tokens.RPAREN):
            return None
        return expression

    def parse_call_expression(self, function: Expression) -> Optional[Expression]:
        tok = self.cur_token
        arguments = self.parse_call_arguments()
        if arguments is None:
            return None
        return CallExpression(tok, function, arguments)

    def parse_call_arguments(self) -> Optional[List[Expression]]:
        """Arguments between parentheses; a missing slot becomes EmptyArgument."""
        args: List[Expression] = []
        if self.peek_token_is(tokens.RPAREN):
            self.next_token()
            return args
        while True:
            if self.peek_token_is(tokens.COMMA) or (args and self.peek_token_is(tokens.RPAREN)):
                args.append(EmptyArgument(self.peek_token))
            else:
                self.next_token()
                arg = self.parse_expression(LOWEST)
                if arg is None:
                    return None
                args.append(arg)
            if not self.peek_token_is(tokens.COMMA):
                break
            self.next_token()
        if not self.expect_peek(tokens.RPAREN):
            return None
        return args

    def parse_index_expression(self, left: Expression) -> Optional[Expression]:
        tok = self.cur_token
        self.next_token()
        index = self.parse_expression(LOWEST)
        if index is None:
            return None
        expression = IndexExpression(tok, left, index)
        if self.peek_token_is(tokens.COMMA):
            self.next_token()
            self.next_token()
            expression.option = self.parse_expression(LOWEST)
            if expression.option is None:
                return None
        if not self.expect_peek(tokens.RBRACKET):
            return None
        return expression


def parse(lexer: Lexer) -> Tuple[Program, List[str]]:
    parser = Parser(lexer)
    program = parser.parse_program()
    return program, parser.errors


def parse_program(source: str) -> Program:
    """Parse UWSC source and return the Program, raising ParseError on any error."""
    program, errors = parse(Lexer(source))
    if errors:
        raise ParseError(errors)
    return program
