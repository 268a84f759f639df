#!/usr/bin/env python3
"""lox"""
# pylint: disable=line-too-long,too-many-arguments,multiple-statements,too-many-lines
import argparse
import decimal
import enum
import math
import sys
import time
import typing


class TokenType(enum.Enum):
    """Token types"""
    # Single-character tokens.
    LEFT_PAREN = enum.auto()
    RIGHT_PAREN = enum.auto()
    LEFT_BRACE = enum.auto()
    RIGHT_BRACE = enum.auto()

    COMMA = enum.auto()
    DOT = enum.auto()
    MINUS = enum.auto()
    PLUS = enum.auto()
    SEMICOLON = enum.auto()
    SLASH = enum.auto()
    STAR = enum.auto()
    QUESTION = enum.auto()
    COLON = enum.auto()

    # One or two character tokens.
    BANG = enum.auto()
    BANG_EQUAL = enum.auto()
    EQUAL = enum.auto()
    EQUAL_EQUAL = enum.auto()
    GREATER = enum.auto()
    GREATER_EQUAL = enum.auto()
    LESS = enum.auto()
    LESS_EQUAL = enum.auto()

    # Literals.
    IDENTIFIER = enum.auto()
    STRING = enum.auto()
    NUMBER = enum.auto()

    # Keywords.
    AND = enum.auto()
    CLASS = enum.auto()
    ELSE = enum.auto()
    FALSE = enum.auto()
    FUN = enum.auto()
    FOR = enum.auto()
    IF = enum.auto()
    NIL = enum.auto()
    OR = enum.auto()

    PRINT = enum.auto()
    RETURN = enum.auto()
    SUPER = enum.auto()
    THIS = enum.auto()
    TRUE = enum.auto()
    VAR = enum.auto()
    WHILE = enum.auto()

    EOF = enum.auto()


KEYWORDS = {
    'and':     TokenType.AND,
    'class':   TokenType.CLASS,
    'else':    TokenType.ELSE,
    'false':   TokenType.FALSE,
    'for':     TokenType.FOR,
    'fun':     TokenType.FUN,
    'if':      TokenType.IF,
    'nil':     TokenType.NIL,
    'or':      TokenType.OR,
    'print':   TokenType.PRINT,
    'return':  TokenType.RETURN,
    'super':   TokenType.SUPER,
    'this':    TokenType.THIS,
    'true':    TokenType.TRUE,
    'var':     TokenType.VAR,
    'while':   TokenType.WHILE,
}


class Token:
    """Token"""
    def __init__(self, token_type:TokenType, lexeme:str, literal:typing.Any, line:int) -> None:
        self.type = token_type
        self.lexeme = lexeme
        self.literal = literal
        self.line = line

    def __str__(self) -> str:
        return f"{self.type} {self.lexeme} {self.literal}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.type}, {self.lexeme!r}, {self.literal!r}, {self.line!r})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, self.__class__):
            return False
        return (
            self.type == other.type
            and self.lexeme == other.lexeme
            and self.literal == other.literal
            and self.line == other.line
        )


class ErrorKind(enum.Enum):
    """The stage an error was found in"""
    LEXICAL = "lexical"
    SYNTAX = "syntax"
    RESOLUTION = "resolution"
    RUNTIME = "runtime"


class Diagnostic:
    """A reported error: what stage, which line, where on the line and why"""
    def __init__(self, kind:ErrorKind, line:int, message:str, where:str = "") -> None:
        self.kind = kind
        self.line = line
        self.message = message
        self.where = where

    @classmethod
    def at(cls, kind:ErrorKind, token:Token, message:str) -> 'Diagnostic':
        """build a diagnostic located at a token"""
        where = "at end" if token.type == TokenType.EOF else f"at '{token.lexeme}'"
        return cls(kind, token.line, message, where)

    def __str__(self) -> str:
        where = f" {self.where}" if self.where else ""
        return f"[line {self.line}] Error{where}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.kind}, {self.line!r}, {self.message!r}, {self.where!r})"


def is_digit(c:str) -> bool:
    """ascii digits only, str.isdigit() accepts too much"""
    return '0' <= c <= '9'


def is_alpha(c:str) -> bool:
    """identifier start character"""
    return 'a' <= c <= 'z' or 'A' <= c <= 'Z' or c == '_'


class Scanner:
    """Scanner

        Scans the whole source on construction. Problems are collected on `errors`
        and scanning carries on, so `tokens` always ends with a single EOF token.
    """

    def __init__(self, source:str) -> None:
        self.source = source
        self.tokens:typing.List[Token] = []
        self.errors:typing.List[Diagnostic] = []
        self.start = 0
        self.current = 0
        self.line = 1

        while not self.is_at_end:
            self.start = self.current
            self.scan_token()
        self.tokens.append(Token(TokenType.EOF, "", None, self.line))

    is_at_end = property(lambda self: self.current >= len(self.source))
    next_is_at_end = property(lambda self: (self.current + 1) >= len(self.source))
    peek = property(lambda self: self.source[self.current] if not self.is_at_end else '\0')
    peek_next = property(lambda self: self.source[self.current + 1] if not self.next_is_at_end else '\0')
    has_error = property(lambda self: bool(self.errors))

    def advance(self) -> str:
        """advance to the next character"""
        c = self.source[self.current]
        self.current += 1
        return c

    def match(self, expected:str) -> bool:
        """match current character"""
        if self.is_at_end: return False
        if self.source[self.current] != expected: return False
        self.current += 1
        return True

    def scan_error(self, msg:str) -> None:
        """record a lexical error on the current line"""
        self.errors.append(Diagnostic(ErrorKind.LEXICAL, self.line, msg))

    def string(self) -> None:
        """scan a string"""
        while self.peek != '"' and not self.is_at_end:
            if self.peek == '\n': self.line += 1
            self.advance()

        if self.is_at_end:
            self.scan_error("Unterminated string.")
            return

        self.advance()  # closing quote

        value = self.source[self.start + 1: self.current - 1]
        self.add_token(TokenType.STRING, value)

    def number(self) -> None:
        """scan a number"""
        while is_digit(self.peek): self.advance()
        if self.peek == '.' and is_digit(self.peek_next):
            self.advance()
            while is_digit(self.peek): self.advance()
        self.add_token(TokenType.NUMBER, float(self.source[self.start:self.current]))

    def identifier(self) -> None:
        """scan an identifier"""
        while is_alpha(self.peek) or is_digit(self.peek): self.advance()
        value = self.source[self.start:self.current]
        self.add_token(KEYWORDS.get(value, TokenType.IDENTIFIER))

    def block_comment(self) -> None:
        """skip a /* */ comment, these do not nest"""
        while not self.is_at_end:
            if self.peek == '*' and self.peek_next == '/':
                self.advance()
                self.advance()
                return
            if self.peek == '\n': self.line += 1
            self.advance()
        self.scan_error("Unterminated comment.")

    def add_token(self, token_type:TokenType, literal:typing.Any = None) -> None:
        """add a scanned token"""
        text = self.source[self.start:self.current]
        self.tokens.append(Token(token_type, text, literal, self.line))

    def scan_token(self) -> None:  # noqa:C901 # too-complex
        """scan for a token"""
        # pylint: disable=too-many-statements,too-many-branches
        c = self.advance()
        if c == '(': self.add_token(TokenType.LEFT_PAREN)
        elif c == ')': self.add_token(TokenType.RIGHT_PAREN)
        elif c == '{': self.add_token(TokenType.LEFT_BRACE)
        elif c == '}': self.add_token(TokenType.RIGHT_BRACE)
        elif c == ',': self.add_token(TokenType.COMMA)
        elif c == '?': self.add_token(TokenType.QUESTION)
        elif c == ':': self.add_token(TokenType.COLON)
        elif c == '.': self.add_token(TokenType.DOT)
        elif c == '-': self.add_token(TokenType.MINUS)
        elif c == '+': self.add_token(TokenType.PLUS)
        elif c == ';': self.add_token(TokenType.SEMICOLON)
        elif c == '*': self.add_token(TokenType.STAR)
        elif c == '!': self.add_token(TokenType.BANG_EQUAL if self.match('=') else TokenType.BANG)
        elif c == '=': self.add_token(TokenType.EQUAL_EQUAL if self.match('=') else TokenType.EQUAL)
        elif c == '<': self.add_token(TokenType.LESS_EQUAL if self.match('=') else TokenType.LESS)
        elif c == '>': self.add_token(TokenType.GREATER_EQUAL if self.match('=') else TokenType.GREATER)
        elif c == '/':
            if self.match('/'):
                while self.peek != '\n' and not self.is_at_end: self.advance()
            elif self.match('*'):
                self.block_comment()
            else:
                self.add_token(TokenType.SLASH)
        elif c in (' ', '\t', '\r'): pass
        elif c == '\n': self.line += 1
        elif c == '"': self.string()
        elif is_digit(c): self.number()
        elif is_alpha(c): self.identifier()
        else:
            self.scan_error("Unexpected character.")


class Expr:
    """Expression

        Nodes compare and hash by identity: the resolver keys scope distances on
        the node itself, so two identical references at different places stay apart.
    """
    def __repr__(self):
        return f"{self.__class__.__name__}({', '.join(f'{k}={v!r}' for k,v in self.__dict__.items())})"


class Stmt:
    """Statement"""
    def __repr__(self):
        return f"{self.__class__.__name__}({', '.join(f'{k}={v!r}' for k,v in self.__dict__.items())})"


def node_line(node:typing.Union[Expr, Stmt]) -> int:
    """line of the first token under a node

        Walks with an explicit stack since it is used on trees too deep to recurse into.
    """
    pending:typing.List[typing.Any] = [node]
    while pending:
        item = pending.pop()
        if isinstance(item, Token):
            return item.line
        if isinstance(item, (Expr, Stmt)):
            pending.extend(reversed(list(vars(item).values())))
        elif isinstance(item, list):
            pending.extend(reversed(item))
    return 1


class Binary(Expr):
    """Binary expression"""
    def __init__(self, left:Expr, operator:Token, right:Expr):
        self.left = left
        self.operator = operator
        self.right = right


class Ternary(Expr):
    """Conditional expression, cond ? then : else"""
    def __init__(self, condition:Expr, then_branch:Expr, else_branch:Expr):
        self.condition = condition
        self.then_branch = then_branch
        self.else_branch = else_branch


class Comma(Expr):
    """Comma expression, evaluates all and yields the last"""
    def __init__(self, expressions:typing.List[Expr]):
        self.expressions = expressions


class Assign(Expr):
    """Assignment expression"""
    def __init__(self, name:Token, value:Expr):
        self.name = name
        self.value = value


class Call(Expr):
    """Call expression"""
    def __init__(self, callee:Expr, paren:Token, arguments:typing.List[Expr]):
        self.callee = callee
        self.paren = paren
        self.arguments = arguments


class Get(Expr):
    """Get on object expression"""
    def __init__(self, obj:Expr, name:Token):
        self.object = obj
        self.name = name


class Grouping(Expr):
    """Grouping expression"""
    def __init__(self, expression:Expr):
        self.expression = expression


class Literal(Expr):
    """Literal expression"""
    def __init__(self, value:typing.Union[str, float, bool, None]):
        self.value = value


class Logical(Expr):
    """Logical expression"""
    def __init__(self, left:Expr, operator:Token, right:Expr):
        self.left = left
        self.operator = operator
        self.right = right


class Set(Expr):
    """Set on object expression"""
    def __init__(self, obj:Expr, name:Token, value:Expr):
        self.object = obj
        self.name = name
        self.value = value


class Super(Expr):
    """Super on object expression"""
    def __init__(self, keyword:Token, method:Token):
        self.keyword = keyword
        self.method = method


class This(Expr):
    """This in object method expression"""
    def __init__(self, keyword:Token):
        self.keyword = keyword


class Unary(Expr):
    """Unary expression"""
    def __init__(self, operator:Token, right:Expr):
        self.operator = operator
        self.right = right


class Variable(Expr):
    """Variable expression"""
    def __init__(self, name:Token):
        self.name = name


class Block(Stmt):
    """Block statement"""
    def __init__(self, statements:typing.List[Stmt]):
        self.statements = statements


class FunctionType(enum.Enum):
    """function types"""
    NONE = "none"
    FUNCTION = "function"
    METHOD = "method"
    INITIALIZER = "initializer"

    def __str__(self):
        return self.value


class Function(Stmt):
    """Function statement"""
    def __init__(self, name:Token, params:typing.List[Token], body:typing.List[Stmt]):
        self.name = name
        self.params = params
        self.body = body


class Class(Stmt):
    """Class statement"""
    def __init__(self, name:Token, superclass:typing.Optional[Variable], methods:typing.List[Function]):
        self.name = name
        self.superclass = superclass
        self.methods = methods


class Expression(Stmt):
    """Expression statement"""
    def __init__(self, expression:Expr):
        self.expression = expression


class If(Stmt):
    """If statement"""
    def __init__(self, condition:Expr, then_branch:Stmt, else_branch:typing.Optional[Stmt]):
        self.condition = condition
        self.then_branch = then_branch
        self.else_branch = else_branch


class Print(Stmt):
    """Print statement"""
    def __init__(self, expression:Expr):
        self.expression = expression


class Return(Stmt):
    """Return statement"""
    def __init__(self, keyword:Token, value:typing.Optional[Expr]):
        self.keyword = keyword
        self.value = value


class Var(Stmt):
    """Var statement"""
    def __init__(self, name:Token, initializer:typing.Optional[Expr]):
        self.name = name
        self.initializer = initializer


class While(Stmt):
    """While statement"""
    def __init__(self, condition:Expr, body:Stmt):
        self.condition = condition
        self.body = body


class Parser:
    """
    program        → declaration* EOF ;
    declaration    → classDecl | funDecl | varDecl | statement ;
    classDecl      → "class" IDENTIFIER ( "<" IDENTIFIER )? "{" function* "}" ;
    funDecl        → "fun" function ;
    function       → IDENTIFIER "(" parameters? ")" block ;
    parameters     → IDENTIFIER ( "," IDENTIFIER )* ;
    varDecl        → "var" IDENTIFIER ( "=" expression )? ";" ;
    statement      → exprStmt | forStmt | ifStmt | printStmt | returnStmt | whileStmt | block ;
    exprStmt       → expression ";" ;
    forStmt        → "for" "(" ( varDecl | exprStmt | ";" ) expression? ";" expression? ")" statement ;
    ifStmt         → "if" "(" expression ")" statement ( "else" statement )? ;
    printStmt      → "print" expression ";" ;
    returnStmt     → "return" expression? ";" ;
    whileStmt      → "while" "(" expression ")" statement ;
    block          → "{" declaration* "}" ;

    expression     → comma ;
    comma          → assignment ( "," assignment )* ;
    assignment     → ( call "." )? IDENTIFIER "=" assignment | ternary ;
    ternary        → logic_or ( "?" expression ":" ternary )? ;
    logic_or       → logic_and ( "or" logic_and )* ;
    logic_and      → equality ( "and" equality )* ;
    equality       → comparison ( ( "!=" | "==" ) comparison )* ;
    comparison     → term ( ( ">" | ">=" | "<" | "<=" ) term )* ;
    term           → factor ( ( "-" | "+" ) factor )* ;
    factor         → unary ( ( "/" | "*" ) unary )* ;
    unary          → ( "!" | "-" ) unary | call ;
    call           → primary ( "(" arguments? ")" | "." IDENTIFIER )* ;
    arguments      → assignment ( "," assignment )* ;
    primary        → NUMBER | STRING | "true" | "false" | "nil" | "this"
                   | "(" expression ")" | IDENTIFIER | "super" "." IDENTIFIER
                   // Error productions...
                   | ( "!=" | "==" ) equality
                   | ( ">" | ">=" | "<" | "<=" ) comparison
                   | ( "+" ) term
                   | ( "/" | "*" ) factor ;
    """
    # pylint: disable=too-many-public-methods
    MAX_ARGUMENTS = 255

    previous = property(lambda self: self.tokens[self.current - 1], doc="return the previous token")
    peek = property(lambda self: self.tokens[self.current], doc="return the current token")
    is_at_end = property(lambda self: self.peek.type == TokenType.EOF, doc="check if we are at the EOF token")
    has_error = property(lambda self: bool(self.errors), doc="any syntax error recorded")

    class ParserError(RuntimeError):
        """Parser error, unwinds to the enclosing declaration for resynchronization"""
        def __init__(self, token:Token, msg:str) -> None:
            super().__init__(msg)
            self.parser_token = token

    def __init__(self, tokens:typing.List[Token]):
        self.tokens = tokens
        self.current = 0
        self.errors:typing.List[Diagnostic] = []

    def parse(self) -> typing.List[Stmt]:
        """main entry point to start the parsing

            Always returns what could be parsed; check `errors` before using it.
        """
        statements:typing.List[Stmt] = []
        while not self.is_at_end:
            try:
                stmt:typing.Optional[Stmt] = self.declaration()
            except RecursionError:
                self.error(self.peek, "Too much nesting.")
                self.synchronize()
                continue
            if stmt is not None:
                statements.append(stmt)
        return statements

    def declaration(self) -> typing.Optional[Stmt]:
        """declaration    → classDecl | funDecl | varDecl | statement ;"""
        try:
            if self.match(TokenType.CLASS): return self.class_declaration()
            if self.match(TokenType.FUN): return self.function(FunctionType.FUNCTION)
            if self.match(TokenType.VAR): return self.var_declaration()
            return self.statement()
        except self.ParserError:
            self.synchronize()
            return None

    def class_declaration(self) -> Stmt:
        """classDecl      → "class" IDENTIFIER ( "<" IDENTIFIER )? "{" function* "}" ;"""
        name:Token = self.consume(TokenType.IDENTIFIER, "Expect class name.")

        superclass:typing.Optional[Variable] = None
        if self.match(TokenType.LESS):
            self.consume(TokenType.IDENTIFIER, "Expect superclass name.")
            superclass = Variable(self.previous)

        self.consume(TokenType.LEFT_BRACE, "Expect '{' before class body.")
        methods:typing.List[Function] = []
        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end:
            methods.append(self.function(FunctionType.METHOD))
        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after class body.")
        return Class(name, superclass, methods)

    def function(self, kind:FunctionType) -> Function:
        """function       → IDENTIFIER "(" parameters? ")" block ;"""
        name:Token = self.consume(TokenType.IDENTIFIER, f"Expect {kind} name.")

        self.consume(TokenType.LEFT_PAREN, f"Expect '(' after {kind} name.")
        parameters:typing.List[Token] = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(parameters) >= self.MAX_ARGUMENTS:
                    self.error(self.peek, f"Can't have more than {self.MAX_ARGUMENTS} parameters.")
                parameters.append(self.consume(TokenType.IDENTIFIER, "Expect parameter name."))
                if not self.match(TokenType.COMMA):
                    break
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after parameters.")

        self.consume(TokenType.LEFT_BRACE, f"Expect '{{' before {kind} body.")
        body:typing.List[Stmt] = self.block()
        return Function(name, parameters, body)

    def var_declaration(self) -> Stmt:
        """varDecl        → "var" IDENTIFIER ( "=" expression )? ";" ;"""
        name:Token = self.consume(TokenType.IDENTIFIER, "Expect variable name.")
        initializer:typing.Optional[Expr] = self.expression() if self.match(TokenType.EQUAL) else None
        self.consume(TokenType.SEMICOLON, "Expect ';' after variable declaration.")
        return Var(name, initializer)

    def statement(self) -> Stmt:
        """
            statement      → exprStmt | forStmt | ifStmt | printStmt
                           | returnStmt | whileStmt | block ;
        """
        # pylint: disable=too-many-return-statements
        if self.match(TokenType.FOR): return self.for_statement()
        if self.match(TokenType.IF): return self.if_statement()
        if self.match(TokenType.PRINT): return self.print_statement()
        if self.match(TokenType.RETURN): return self.return_statement()
        if self.match(TokenType.WHILE): return self.while_statement()
        if self.match(TokenType.LEFT_BRACE): return Block(self.block())  # instantiate Block here so as to reuse block() for functions etc
        return self.expression_statement()

    def return_statement(self) -> Stmt:
        """returnStmt     → "return" expression? ";" ;"""
        keyword:Token = self.previous
        value:typing.Optional[Expr] = None

        if not self.check(TokenType.SEMICOLON):
            value = self.expression()

        self.consume(TokenType.SEMICOLON, "Expect ';' after return value.")
        return Return(keyword, value)

    def block(self) -> typing.List[Stmt]:
        """block          → "{" declaration* "}" ;"""
        statements:typing.List[Stmt] = []

        while not self.check(TokenType.RIGHT_BRACE) and not self.is_at_end:
            stmt = self.declaration()
            if stmt is not None:
                statements.append(stmt)

        self.consume(TokenType.RIGHT_BRACE, "Expect '}' after block.")
        return statements

    def for_statement(self) -> Stmt:
        """forStmt        → "for" "(" ( varDecl | exprStmt | ";" ) expression? ";" expression? ")" statement ;

            Desugared into an initializer block around a while loop.
        """
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'for'.")
        initializer:typing.Optional[Stmt] = None
        if self.match(TokenType.SEMICOLON):
            pass
        elif self.match(TokenType.VAR):
            initializer = self.var_declaration()
        else:
            initializer = self.expression_statement()

        condition:typing.Optional[Expr] = None
        if not self.check(TokenType.SEMICOLON):
            condition = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after loop condition.")

        increment:typing.Optional[Expr] = None
        if not self.check(TokenType.RIGHT_PAREN):
            increment = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after for clauses.")

        body:Stmt = self.statement()

        if increment is not None:
            body = Block([body, Expression(increment)])

        if condition is None:
            condition = Literal(True)

        body = While(condition, body)

        if initializer is not None:
            body = Block([initializer, body])

        return body

    def if_statement(self) -> Stmt:
        """ifStmt         → "if" "(" expression ")" statement ( "else" statement )? ;"""
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'if'.")
        condition:Expr = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after if condition.")

        then_branch:Stmt = self.statement()
        else_branch:typing.Optional[Stmt] = None
        if self.match(TokenType.ELSE):
            else_branch = self.statement()
        return If(condition, then_branch, else_branch)

    def while_statement(self) -> Stmt:
        """whileStmt      → "while" "(" expression ")" statement ;"""
        self.consume(TokenType.LEFT_PAREN, "Expect '(' after 'while'.")
        condition:Expr = self.expression()
        self.consume(TokenType.RIGHT_PAREN, "Expect ')' after condition.")
        body:Stmt = self.statement()
        return While(condition, body)

    def expression_statement(self) -> Stmt:
        """ exprStmt       → expression ";" ;"""
        expr:Expr = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after expression.")
        return Expression(expr)

    def print_statement(self) -> Stmt:
        """printStmt      → "print" expression ";" ;"""
        value:Expr = self.expression()
        self.consume(TokenType.SEMICOLON, "Expect ';' after value.")
        return Print(value)

    def error(self, token:Token, msg:str) -> 'Parser.ParserError':
        """Record a syntax error, returning the exception for callers that need to unwind"""
        self.errors.append(Diagnostic.at(ErrorKind.SYNTAX, token, msg))
        return self.ParserError(token, msg)

    def advance(self) -> Token:
        """advance to the next token"""
        if not self.is_at_end:
            self.current += 1
        return self.previous

    def check(self, token_type:TokenType) -> bool:
        """check the current token for a given TokenType"""
        if self.is_at_end: return False
        return self.peek.type == token_type

    def match(self, *types:TokenType) -> bool:
        """Match the current token for a list of TokenTypes"""
        for t in types:
            if self.check(t):
                self.advance()
                return True
        return False

    def expression(self) -> Expr:
        """expression     → comma ;"""
        return self.comma()

    def comma(self) -> Expr:
        """comma          → assignment ( "," assignment )* ;"""
        expr:Expr = self.assignment()
        if not self.check(TokenType.COMMA):
            return expr

        expressions:typing.List[Expr] = [expr]
        while self.match(TokenType.COMMA):
            expressions.append(self.assignment())
        return Comma(expressions)

    def assignment(self) -> Expr:
        """
            assignment     → ( call "." )? IDENTIFIER "=" assignment
                           | ternary ;
        """
        expr:Expr = self.ternary()

        if self.match(TokenType.EQUAL):
            equals:Token = self.previous
            value:Expr = self.assignment()

            if isinstance(expr, Variable):
                return Assign(expr.name, value)
            if isinstance(expr, Get):
                return Set(expr.object, expr.name, value)

            # reported but no need to resynchronize, the parser is not confused
            self.error(equals, "Invalid assignment target.")

        return expr

    def ternary(self) -> Expr:
        """ternary        → logic_or ( "?" expression ":" ternary )? ;"""
        expr:Expr = self.logic_or()
        if self.match(TokenType.QUESTION):
            then_branch:Expr = self.expression()
            self.consume(TokenType.COLON, "Expect ':' after then branch of conditional expression.")
            else_branch:Expr = self.ternary()
            expr = Ternary(expr, then_branch, else_branch)

        return expr

    def logic_or(self) -> Expr:
        """logic_or       → logic_and ( "or" logic_and )* ;"""
        expr:Expr = self.logic_and()
        while self.match(TokenType.OR):
            operator:Token = self.previous
            right:Expr = self.logic_and()
            expr = Logical(expr, operator, right)
        return expr

    def logic_and(self) -> Expr:
        """logic_and      → equality ( "and" equality )* ;"""
        expr:Expr = self.equality()
        while self.match(TokenType.AND):
            operator:Token = self.previous
            right:Expr = self.equality()
            expr = Logical(expr, operator, right)
        return expr

    def binary(self, operand:typing.Callable[[], Expr], *types:TokenType) -> Expr:
        """left associative binary operators over a higher precedence rule"""
        expr:Expr = operand()

        while self.match(*types):
            operator:Token = self.previous
            right:Expr = operand()
            expr = Binary(expr, operator, right)

        return expr

    def equality(self) -> Expr:
        """equality       → comparison ( ( "!=" | "==" ) comparison )* ;"""
        return self.binary(self.comparison, TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def comparison(self) -> Expr:
        """comparison     → term ( ( ">" | ">=" | "<" | "<=" ) term )* ;"""
        return self.binary(self.term, TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS, TokenType.LESS_EQUAL)

    def term(self) -> Expr:
        """term           → factor ( ( "-" | "+" ) factor )* ;"""
        return self.binary(self.factor, TokenType.MINUS, TokenType.PLUS)

    def factor(self) -> Expr:
        """factor         → unary ( ( "/" | "*" ) unary )* ;"""
        return self.binary(self.unary, TokenType.SLASH, TokenType.STAR)

    def unary(self) -> Expr:
        """ unary          → ( "!" | "-" ) unary
                             call ;
        """
        if self.match(TokenType.BANG, TokenType.MINUS):
            operator:Token = self.previous
            right:Expr = self.unary()
            return Unary(operator, right)
        return self.call()

    def call(self) -> Expr:
        """call           → primary ( "(" arguments? ")" | "." IDENTIFIER )* ;"""
        expr:Expr = self.primary()
        while True:
            if self.match(TokenType.LEFT_PAREN):
                expr = self.finish_call(expr)
            elif self.match(TokenType.DOT):
                name:Token = self.consume(TokenType.IDENTIFIER, "Expect property name after '.'.")
                expr = Get(expr, name)
            else:
                break
        return expr

    def finish_call(self, callee:Expr) -> Expr:
        """arguments      → assignment ( "," assignment )* ;"""
        arguments:typing.List[Expr] = []
        if not self.check(TokenType.RIGHT_PAREN):
            while True:
                if len(arguments) >= self.MAX_ARGUMENTS:
                    self.error(self.peek, f"Can't have more than {self.MAX_ARGUMENTS} arguments.")
                arguments.append(self.assignment())
                if not self.match(TokenType.COMMA):
                    break
        paren:Token = self.consume(TokenType.RIGHT_PAREN, "Expect ')' after arguments.")
        return Call(callee, paren, arguments)

    def primary(self) -> Expr:  # noqa:C901 # too-complex
        """primary        → NUMBER | STRING | "true" | "false" | "nil" | "this"
                          | "(" expression ")" | IDENTIFIER | "super" "." IDENTIFIER ;
        """
        # pylint: disable=too-many-return-statements
        if self.match(TokenType.FALSE): return Literal(False)
        if self.match(TokenType.TRUE): return Literal(True)
        if self.match(TokenType.NIL): return Literal(None)

        if self.match(TokenType.NUMBER, TokenType.STRING):
            return Literal(self.previous.literal)

        if self.match(TokenType.THIS):
            return This(self.previous)

        if self.match(TokenType.SUPER):
            keyword:Token = self.previous
            self.consume(TokenType.DOT, "Expect '.' after 'super'.")
            method:Token = self.consume(TokenType.IDENTIFIER, "Expect superclass method name.")
            return Super(keyword, method)

        if self.match(TokenType.IDENTIFIER):
            return Variable(self.previous)

        if self.match(TokenType.LEFT_PAREN):
            expr:Expr = self.expression()
            self.consume(TokenType.RIGHT_PAREN, "Expect ')' after expression.")
            return Grouping(expr)

        # handle error productions here, the right operand is parsed and discarded
        for operand, types in (
            (self.equality, (TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)),
            (self.comparison, (TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS, TokenType.LESS_EQUAL)),
            (self.term, (TokenType.PLUS,)),
            (self.factor, (TokenType.SLASH, TokenType.STAR)),
        ):
            if self.match(*types):
                operator:Token = self.previous
                operand()
                raise self.error(operator, "Missing left-hand operand.")

        raise self.error(self.peek, "Expect expression.")

    def consume(self, token_type:TokenType, msg:str) -> Token:
        """check for next expected token, raise error msg if not"""
        if self.check(token_type): return self.advance()
        raise self.error(self.peek, msg)

    SYNCHRONIZE_TOKEN_TYPES = (
        TokenType.CLASS,
        TokenType.FUN,
        TokenType.VAR,
        TokenType.FOR,
        TokenType.IF,
        TokenType.WHILE,
        TokenType.PRINT,
        TokenType.RETURN
    )

    def synchronize(self) -> None:
        """Synchronization step for the parser"""
        # a statement keyword is left for the next declaration
        if self.peek.type not in self.__class__.SYNCHRONIZE_TOKEN_TYPES:
            self.advance()
        while not self.is_at_end:
            if self.previous.type == TokenType.SEMICOLON: return
            if self.peek.type in self.__class__.SYNCHRONIZE_TOKEN_TYPES: return
            self.advance()


class Environment:
    """Environment to store variables and values

        Frames are shared, never copied: a closure holds the very frame it was
        declared in, so writes through one alias are seen through all of them.
    """

    def __init__(self, enclosing:typing.Optional['Environment'] = None):
        """Optional enclosing environment scope to check on get/assign"""
        self.values:typing.Dict[str, typing.Any] = {}
        self.enclosing = enclosing

    def define(self, name:str, value:typing.Any) -> None:
        """bind a name to a value in this frame, replacing any earlier binding"""
        self.values[name] = value

    def get(self, token:Token) -> typing.Any:
        """return a value by name"""
        try:
            return self.values[token.lexeme]
        except KeyError as exc:
            if self.enclosing is not None:
                return self.enclosing.get(token)
            raise Interpreter.RuntimeError(token, f"Undefined variable '{token.lexeme}'.") from exc

    def get_at(self, distance:int, name:str) -> typing.Any:
        """return a value by distance and name"""
        return self.ancestor(distance).values[name]

    def ancestor(self, distance:int) -> 'Environment':
        """Return the ancestor environment at distance"""
        environment = self
        while distance > 0:
            environment = environment.enclosing
            distance -= 1
        return environment

    def assign(self, token:Token, value:typing.Any) -> None:
        """Assign a value"""
        if token.lexeme not in self.values:
            if self.enclosing is not None:
                self.enclosing.assign(token, value)
                return
            raise Interpreter.RuntimeError(token, f"Undefined variable '{token.lexeme}'.")
        self.values[token.lexeme] = value

    def assign_at(self, distance:int, token:Token, value:typing.Any) -> None:
        """Assign a value by distance"""
        self.ancestor(distance).values[token.lexeme] = value

    def __repr__(self):
        return str(self.values)


class Resolver:
    """Variable resolver that walks the Parser tree

        Records, for each local variable, `this` and `super` reference, how many
        scopes out its binding lives. References found in no scope are globals
        and get no entry.
    """

    class VariableStatus(enum.Enum):
        """Variable status"""
        DECLARED = enum.auto()
        DEFINED = enum.auto()

    class ClassType(enum.Enum):
        """class types"""
        NONE = enum.auto()
        CLASS = enum.auto()
        SUBCLASS = enum.auto()

    def __init__(self):
        self.scopes:typing.List[typing.Dict[str, 'Resolver.VariableStatus']] = []
        self.locals:typing.Dict[Expr, int] = {}
        self.errors:typing.List[Diagnostic] = []
        self.current_function = FunctionType.NONE
        self.current_class = self.ClassType.NONE

    has_error = property(lambda self: bool(self.errors))

    def resolve(self, statements:typing.List[Stmt]) -> typing.Dict[Expr, int]:
        """resolve a program, returning the distance of every local reference"""
        for stmt in statements:
            try:
                self.statement(stmt)
            except RecursionError:
                self.errors.append(Diagnostic(ErrorKind.RESOLUTION, node_line(stmt), "Too much nesting."))
                self.scopes = []
                self.current_function = FunctionType.NONE
                self.current_class = self.ClassType.NONE
        return self.locals

    def error(self, token:Token, msg:str) -> None:
        """error handling, keep walking to report everything in one pass"""
        self.errors.append(Diagnostic.at(ErrorKind.RESOLUTION, token, msg))

    def begin_scope(self):
        """begin a scope"""
        self.scopes.append({})

    def end_scope(self):
        """end a scope"""
        self.scopes.pop()

    def declare(self, name:Token):
        """declare a variable"""
        if not self.scopes: return
        if name.lexeme in self.scopes[-1]:
            self.error(name, "Already a variable with this name in this scope.")
        self.scopes[-1][name.lexeme] = self.VariableStatus.DECLARED

    def define(self, name:Token):
        """define a variable"""
        if not self.scopes: return
        self.scopes[-1][name.lexeme] = self.VariableStatus.DEFINED

    def _resolve_local(self, expr:Expr, token:Token):
        """Resolve the scope depth of a variable, innermost scope first"""
        for depth, scope in enumerate(reversed(self.scopes)):
            if token.lexeme in scope:
                self.locals[expr] = depth
                return

    def expression(self, expr:Expr):  # noqa: C901
        """resolve variable use in an expression"""
        # pylint: disable=too-many-return-statements,too-many-branches
        if isinstance(expr, Variable):
            if self.scopes and self.scopes[-1].get(expr.name.lexeme) == self.VariableStatus.DECLARED:
                self.error(expr.name, "Can't read local variable in its own initializer.")
            self._resolve_local(expr, expr.name)
            return None
        if isinstance(expr, Assign):
            self.expression(expr.value)
            self._resolve_local(expr, expr.name)
            return None
        if isinstance(expr, (Binary, Logical)):
            self.expression(expr.left)
            self.expression(expr.right)
            return None
        if isinstance(expr, Call):
            self.expression(expr.callee)
            for argument in expr.arguments:
                self.expression(argument)
            return None
        if isinstance(expr, Get):
            self.expression(expr.object)
            return None
        if isinstance(expr, Set):
            self.expression(expr.value)
            self.expression(expr.object)
            return None
        if isinstance(expr, This):
            if self.current_class == self.ClassType.NONE:
                self.error(expr.keyword, "Can't use 'this' outside of a class.")
                return None
            self._resolve_local(expr, expr.keyword)
            return None
        if isinstance(expr, Super):
            if self.current_class == self.ClassType.NONE:
                self.error(expr.keyword, "Can't use 'super' outside of a class.")
            elif self.current_class != self.ClassType.SUBCLASS:
                self.error(expr.keyword, "Can't use 'super' in a class with no superclass.")
            self._resolve_local(expr, expr.keyword)
            return None
        if isinstance(expr, Grouping):
            self.expression(expr.expression)
            return None
        if isinstance(expr, Unary):
            self.expression(expr.right)
            return None
        if isinstance(expr, Ternary):
            self.expression(expr.condition)
            self.expression(expr.then_branch)
            self.expression(expr.else_branch)
            return None
        if isinstance(expr, Comma):
            for expression in expr.expressions:
                self.expression(expression)
            return None
        if isinstance(expr, Literal):
            return None

        raise TypeError(f"unknown expression {expr!r}")

    def statement(self, stmt:Stmt):  # noqa: C901
        """resolve variable use in a statement"""
        # pylint: disable=too-many-return-statements,too-many-branches
        if isinstance(stmt, Var):
            self.declare(stmt.name)
            if stmt.initializer is not None:
                self.expression(stmt.initializer)
            self.define(stmt.name)
            return None
        if isinstance(stmt, Function):
            self.declare(stmt.name)
            self.define(stmt.name)
            self.function(stmt, FunctionType.FUNCTION)
            return None
        if isinstance(stmt, Class):
            self.klass(stmt)
            return None
        if isinstance(stmt, Expression):
            self.expression(stmt.expression)
            return None
        if isinstance(stmt, If):
            self.expression(stmt.condition)
            self.statement(stmt.then_branch)
            if stmt.else_branch is not None:
                self.statement(stmt.else_branch)
            return None
        if isinstance(stmt, Print):
            self.expression(stmt.expression)
            return None
        if isinstance(stmt, Return):
            if self.current_function == FunctionType.NONE:
                self.error(stmt.keyword, "Can't return from top-level code.")
            if stmt.value is not None:
                if self.current_function == FunctionType.INITIALIZER:
                    self.error(stmt.keyword, "Can't return a value from an initializer.")
                self.expression(stmt.value)
            return None
        if isinstance(stmt, While):
            self.expression(stmt.condition)
            self.statement(stmt.body)
            return None
        if isinstance(stmt, Block):
            self.block(stmt)
            return None

        raise TypeError(f"unknown statement {stmt!r}")

    def statements(self, statements:typing.List[Stmt]):
        """resolve variable use in statements"""
        for stmt in statements:
            self.statement(stmt)

    def function(self, func:Function, func_type:FunctionType):
        """resolve variable use in functions"""
        enclosing_function = self.current_function
        self.current_function = func_type
        self.begin_scope()
        for param in func.params:
            self.declare(param)
            self.define(param)
        self.statements(func.body)
        self.end_scope()
        self.current_function = enclosing_function

    def klass(self, stmt:Class):
        """resolve a class, its methods see `this` and, for subclasses, `super` one scope further out"""
        enclosing_class = self.current_class
        self.current_class = self.ClassType.CLASS

        self.declare(stmt.name)
        self.define(stmt.name)

        if stmt.superclass is not None:
            if stmt.superclass.name.lexeme == stmt.name.lexeme:
                self.error(stmt.superclass.name, "A class can't inherit from itself.")
            self.current_class = self.ClassType.SUBCLASS
            self.expression(stmt.superclass)
            self.begin_scope()
            self.scopes[-1]["super"] = self.VariableStatus.DEFINED

        self.begin_scope()
        self.scopes[-1]["this"] = self.VariableStatus.DEFINED
        for method in stmt.methods:
            kind = FunctionType.INITIALIZER if method.name.lexeme == "init" else FunctionType.METHOD
            self.function(method, kind)
        self.end_scope()

        if stmt.superclass is not None:
            self.end_scope()

        self.current_class = enclosing_class

    def block(self, block:Block):
        """resolve block statements"""
        self.begin_scope()
        self.statements(block.statements)
        self.end_scope()


def stringify(value:typing.Any) -> str:
    """the Lox spelling of a runtime value"""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        text = repr(value)
        # Lox has no exponent syntax, 1e-05 is spelled 0.00001
        if "e" in text:
            text = format(decimal.Decimal(text), "f")
        return text[:-2] if text.endswith(".0") else text
    return str(value)


class Interpreter:
    """Interpreter"""

    class RuntimeError(RuntimeError):
        """Interpreter runtime error"""
        def __init__(self, token:Token, msg:str) -> None:
            super().__init__(msg)
            self.interpreter_token = token

        def __repr__(self) -> str:
            return f"{self.__class__.__name__}({self.interpreter_token!r}, {self!s})"

    class Returning:
        """Return statement value, handed back up through statement execution to the call"""
        def __init__(self, value:typing.Any):
            self.value = value

    class Callable:
        """Callable"""
        def arity(self) -> int:
            """number of arguments a call must pass"""
            raise NotImplementedError

        def __call__(self, interpreter:'Interpreter', arguments:typing.List[typing.Any]) -> typing.Any:
            raise NotImplementedError

    class NativeFunction(Callable):
        """Host function exposed to Lox code"""
        def __init__(self, name:str, arity:int, func:typing.Callable):
            self.name = name
            self._arity = arity
            self.func = func

        def arity(self) -> int:
            return self._arity

        def __call__(self, interpreter:'Interpreter', arguments:typing.List[typing.Any]):
            return self.func(interpreter, *arguments)

        def __str__(self):
            return "<native fn>"

    class Function(Callable):
        """Function"""
        def __init__(self, declaration:Function, closure:Environment, is_initializer:bool = False):
            self.declaration = declaration
            self.closure:Environment = closure
            self.is_initializer = is_initializer

        def arity(self) -> int:
            return len(self.declaration.params)

        def bind(self, instance:'Interpreter.Instance') -> 'Interpreter.Function':
            """a copy of this method whose closure defines `this` as instance"""
            environment = Environment(self.closure)
            environment.define("this", instance)
            return Interpreter.Function(self.declaration, environment, self.is_initializer)

        def __call__(self, interpreter:'Interpreter', arguments:typing.List[typing.Any]):
            environment = Environment(self.closure)
            for param, argument in zip(self.declaration.params, arguments):
                environment.define(param.lexeme, argument)
            returning = interpreter.execute_block(self.declaration.body, environment)
            if self.is_initializer:
                return self.closure.get_at(0, "this")
            if returning is not None:
                return returning.value
            return None

        def __str__(self):
            return f"<fn {self.declaration.name.lexeme}>"

    class Class(Callable):
        """Class, calling it constructs an instance"""
        def __init__(self, name:str, superclass:typing.Optional['Interpreter.Class'], methods:typing.Dict[str, 'Interpreter.Function']):
            self.name = name
            self.superclass = superclass
            self.methods = methods

        def find_method(self, name:str) -> typing.Optional['Interpreter.Function']:
            """look a method up here, then in the ancestors"""
            if name in self.methods:
                return self.methods[name]
            if self.superclass is not None:
                return self.superclass.find_method(name)
            return None

        def arity(self) -> int:
            initializer = self.find_method("init")
            return initializer.arity() if initializer is not None else 0

        def __call__(self, interpreter:'Interpreter', arguments:typing.List[typing.Any]):
            instance = Interpreter.Instance(self)
            initializer = self.find_method("init")
            if initializer is not None:
                initializer.bind(instance)(interpreter, arguments)
            return instance

        def __str__(self):
            return self.name

    class Instance:
        """Instance of a class"""
        def __init__(self, klass:'Interpreter.Class'):
            self.klass = klass
            self.fields:typing.Dict[str, typing.Any] = {}

        def get(self, name:Token) -> typing.Any:
            """fields shadow methods"""
            if name.lexeme in self.fields:
                return self.fields[name.lexeme]
            method = self.klass.find_method(name.lexeme)
            if method is not None:
                return method.bind(self)
            raise Interpreter.RuntimeError(name, f"Undefined property '{name.lexeme}'.")

        def set(self, name:Token, value:typing.Any) -> None:
            """fields are created on first assignment"""
            self.fields[name.lexeme] = value

        def __str__(self):
            return f"{self.klass.name} instance"

    def __init__(self, stdout:typing.Optional[typing.TextIO] = None) -> None:
        """init"""
        self.stdout = stdout if stdout is not None else sys.stdout
        self.globals = Environment()
        self.locals:typing.Dict[Expr, int] = {}
        self.environment = self.globals
        self.errors:typing.List[Diagnostic] = []

        # builtins/ffi
        self.globals.define("clock", self.NativeFunction("clock", 0, lambda _: time.time()))

    def interpret(self, statements:typing.List[Stmt], resolved:typing.Optional[typing.Dict[Expr, int]] = None) -> bool:
        """Interpret statements, False if a runtime error stopped them"""
        if resolved:
            self.locals.update(resolved)
        try:
            for statement in statements:
                self.execute(statement)
        except self.RuntimeError as exc:
            self.errors.append(Diagnostic.at(ErrorKind.RUNTIME, exc.interpreter_token, str(exc)))
            return False
        except RecursionError:
            # calls report "Stack overflow.", this is nesting outside of any call
            self.errors.append(Diagnostic(ErrorKind.RUNTIME, node_line(statement), "Too much nesting."))
            return False
        return True

    def eval(self, expression:Expr) -> typing.Any:  # noqa:C901 # too-complex
        """eval an expression"""
        # pylint: disable=too-many-return-statements,too-many-branches
        if isinstance(expression, Literal):
            return expression.value
        if isinstance(expression, Grouping):
            return self.eval(expression.expression)
        if isinstance(expression, Unary):
            return self._eval_unary(expression)
        if isinstance(expression, Ternary):
            if self.is_truthy(self.eval(expression.condition)):
                return self.eval(expression.then_branch)
            return self.eval(expression.else_branch)
        if isinstance(expression, Comma):
            value = None
            for expr in expression.expressions:
                value = self.eval(expr)
            return value
        if isinstance(expression, Variable):
            return self.look_up_variable(expression.name, expression)
        if isinstance(expression, Assign):
            value = self.eval(expression.value)
            distance = self.locals.get(expression)
            if distance is not None:
                self.environment.assign_at(distance, expression.name, value)
            else:
                self.globals.assign(expression.name, value)
            return value
        if isinstance(expression, Logical):
            return self._eval_logical(expression)
        if isinstance(expression, Binary):
            return self._eval_binary(expression)
        if isinstance(expression, Call):
            return self._eval_call(expression)
        if isinstance(expression, Get):
            obj = self.eval(expression.object)
            if isinstance(obj, self.Instance):
                return obj.get(expression.name)
            raise self.RuntimeError(expression.name, "Only instances have properties.")
        if isinstance(expression, Set):
            obj = self.eval(expression.object)
            if not isinstance(obj, self.Instance):
                raise self.RuntimeError(expression.name, "Only instances have fields.")
            value = self.eval(expression.value)
            obj.set(expression.name, value)
            return value
        if isinstance(expression, This):
            return self.look_up_variable(expression.keyword, expression)
        if isinstance(expression, Super):
            return self._eval_super(expression)

        raise TypeError(f"unknown expression {expression!r}")

    def look_up_variable(self, name:Token, expr:Expr) -> typing.Any:
        """read a resolved local at its distance, anything else is a global"""
        distance = self.locals.get(expr)
        if distance is not None:
            return self.environment.get_at(distance, name.lexeme)
        return self.globals.get(name)

    def _eval_super(self, expr:Super) -> typing.Any:
        """find the method above the class that defined the running method, bound to the running `this`"""
        distance = self.locals[expr]
        superclass:Interpreter.Class = self.environment.get_at(distance, "super")
        obj = self.environment.get_at(distance - 1, "this")
        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            raise self.RuntimeError(expr.method, f"Undefined property '{expr.method.lexeme}'.")
        return method.bind(obj)

    def _eval_call(self, expr:Call) -> typing.Any:
        """evaluate a call expression"""
        callee = self.eval(expr.callee)

        arguments:typing.List[typing.Any] = []
        for argument in expr.arguments:
            arguments.append(self.eval(argument))

        if not isinstance(callee, self.Callable):
            raise self.RuntimeError(expr.paren, "Can only call functions and classes.")

        if callee.arity() != len(arguments):
            raise self.RuntimeError(expr.paren, f"Expected {callee.arity()} arguments but got {len(arguments)}.")
        try:
            return callee(self, arguments)
        except RecursionError as exc:
            raise self.RuntimeError(expr.paren, "Stack overflow.") from exc

    def _eval_logical(self, expression:Logical) -> typing.Any:
        """evaluate a logical expression"""
        left = self.eval(expression.left)
        if expression.operator.type == TokenType.OR:
            if self.is_truthy(left): return left
        elif not self.is_truthy(left):
            return left
        return self.eval(expression.right)

    def _eval_unary(self, expression:Unary) -> typing.Any:
        """evaluate a unary expression"""
        right = self.eval(expression.right)
        if expression.operator.type == TokenType.MINUS:
            self.check_numbers(expression.operator, right)
            return -right  # pylint: disable=invalid-unary-operand-type
        if expression.operator.type == TokenType.BANG:
            return not self.is_truthy(right)
        return None

    def _eval_binary(self, expression:Binary) -> typing.Any:  # noqa:C901 # too-complex
        """evaluate a binary expression"""
        # pylint: disable=too-many-return-statements,too-many-branches
        left = self.eval(expression.left)
        right = self.eval(expression.right)
        operator = expression.operator
        if operator.type == TokenType.BANG_EQUAL:
            return not self.is_equal(left, right)
        if operator.type == TokenType.EQUAL_EQUAL:
            return self.is_equal(left, right)
        if operator.type == TokenType.GREATER:
            self.check_numbers(operator, left, right)
            return left > right
        if operator.type == TokenType.GREATER_EQUAL:
            self.check_numbers(operator, left, right)
            return left >= right
        if operator.type == TokenType.LESS:
            self.check_numbers(operator, left, right)
            return left < right
        if operator.type == TokenType.LESS_EQUAL:
            self.check_numbers(operator, left, right)
            return left <= right
        if operator.type == TokenType.MINUS:
            self.check_numbers(operator, left, right)
            return left - right
        if operator.type == TokenType.PLUS:
            if isinstance(left, float) and isinstance(right, float):
                return left + right
            # NOTE if adding and one is a string, all are strings
            if isinstance(left, str) or isinstance(right, str):
                return stringify(left) + stringify(right)
            raise self.RuntimeError(operator, "Operands must be two numbers or two strings.")
        if operator.type == TokenType.SLASH:
            self.check_numbers(operator, left, right)
            return self.divide(operator, left, right)
        if operator.type == TokenType.STAR:
            self.check_numbers(operator, left, right)
            return left * right

        return None

    def divide(self, operator:Token, left:float, right:float) -> float:
        """IEEE division, except that an infinite result is an error"""
        if right == 0:
            if left == 0 or math.isnan(left):
                return math.nan
            raise self.RuntimeError(operator, "Cannot divide by zero.")
        result = left / right
        if math.isinf(result):
            raise self.RuntimeError(operator, "Cannot divide by zero.")
        return result

    def execute(self, stmt:Stmt) -> typing.Optional['Interpreter.Returning']:  # noqa:C901 # too-complex
        """execute a statement, a Returning value means a return is unwinding"""
        # pylint: disable=too-many-return-statements,too-many-branches
        if isinstance(stmt, Expression):
            self.eval(stmt.expression)
            return None
        if isinstance(stmt, Print):
            print(stringify(self.eval(stmt.expression)), file=self.stdout)
            return None
        if isinstance(stmt, Var):
            value = self.eval(stmt.initializer) if stmt.initializer is not None else None
            self.environment.define(stmt.name.lexeme, value)
            return None
        if isinstance(stmt, Block):
            return self.execute_block(stmt.statements, Environment(self.environment))
        if isinstance(stmt, If):
            if self.is_truthy(self.eval(stmt.condition)):
                return self.execute(stmt.then_branch)
            if stmt.else_branch is not None:
                return self.execute(stmt.else_branch)
            return None
        if isinstance(stmt, While):
            while self.is_truthy(self.eval(stmt.condition)):
                returning = self.execute(stmt.body)
                if returning is not None:
                    return returning
            return None
        if isinstance(stmt, Function):
            function = self.Function(stmt, self.environment)
            self.environment.define(stmt.name.lexeme, function)
            return None
        if isinstance(stmt, Return):
            value:typing.Any = None
            if stmt.value is not None:
                value = self.eval(stmt.value)
            return self.Returning(value)
        if isinstance(stmt, Class):
            self._execute_class(stmt)
            return None

        raise TypeError(f"unknown statement {stmt!r}")

    def _execute_class(self, stmt:Stmt) -> None:
        """declare the name first so methods can refer to their own class"""
        superclass:typing.Optional[Interpreter.Class] = None
        if stmt.superclass is not None:
            superclass = self.eval(stmt.superclass)
            if not isinstance(superclass, self.Class):
                raise self.RuntimeError(stmt.superclass.name, "Superclass must be a class.")

        self.environment.define(stmt.name.lexeme, None)

        enclosing = self.environment
        if superclass is not None:
            self.environment = Environment(self.environment)
            self.environment.define("super", superclass)

        methods:typing.Dict[str, Interpreter.Function] = {}
        for method in stmt.methods:
            methods[method.name.lexeme] = self.Function(method, self.environment, method.name.lexeme == "init")
        klass = self.Class(stmt.name.lexeme, superclass, methods)

        self.environment = enclosing
        self.environment.assign(stmt.name, klass)

    def execute_block(self, statements:typing.List[Stmt], environment:Environment) -> typing.Optional['Interpreter.Returning']:
        """execute a block of statements"""
        previous:Environment = self.environment
        try:
            self.environment = environment
            for stmt in statements:
                returning = self.execute(stmt)
                if returning is not None:
                    return returning
            return None
        finally:
            self.environment = previous

    @staticmethod
    def is_truthy(value:typing.Any) -> bool:
        """nil and false are falsey, everything else is truthy"""
        if value is None: return False
        if isinstance(value, bool): return value
        return True

    @staticmethod
    def is_equal(left:typing.Any, right:typing.Any) -> bool:
        """equality without coercion, python would happily say 1 == true"""
        if left is None: return right is None
        if isinstance(left, bool) != isinstance(right, bool): return False
        return left == right

    @classmethod
    def check_numbers(cls, token:Token, *values:typing.Any):
        """check if value is numeric"""
        msg = "Operand must be a number." if len(values) == 1 else "Operands must be numbers."
        if not all(isinstance(_, float) for _ in values):
            raise cls.RuntimeError(token, msg)


class AstPrinter:
    """Render an expression as a fully parenthesized prefix string, (+ 1 (* 2 3))"""

    def print(self, expr:Expr) -> str:  # noqa:C901 # too-complex
        """print an expression"""
        # pylint: disable=too-many-return-statements
        if isinstance(expr, Literal):
            return self.literal(expr.value)
        if isinstance(expr, Grouping):
            return self.paren("group", expr.expression)
        if isinstance(expr, Unary):
            return self.paren(expr.operator.lexeme, expr.right)
        if isinstance(expr, (Binary, Logical)):
            return self.paren(expr.operator.lexeme, expr.left, expr.right)
        if isinstance(expr, Ternary):
            return self.paren("?", expr.condition, expr.then_branch, expr.else_branch)
        if isinstance(expr, Comma):
            return self.paren(",", *expr.expressions)
        if isinstance(expr, Variable):
            return expr.name.lexeme
        if isinstance(expr, Assign):
            return f"(= {expr.name.lexeme} {self.print(expr.value)})"
        if isinstance(expr, Call):
            return self.paren("call", expr.callee, *expr.arguments)
        if isinstance(expr, Get):
            return f"(. {self.print(expr.object)} {expr.name.lexeme})"
        if isinstance(expr, Set):
            return f"(= (. {self.print(expr.object)} {expr.name.lexeme}) {self.print(expr.value)})"
        if isinstance(expr, This):
            return "this"
        if isinstance(expr, Super):
            return f"(super {expr.method.lexeme})"
        raise TypeError(f"unknown expression {expr!r}")

    @staticmethod
    def literal(value:typing.Any) -> str:
        """strings keep their quotes so the output reads back unambiguously"""
        if isinstance(value, str):
            return f'"{value}"'
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return stringify(value)

    def paren(self, name:str, *exprs:Expr) -> str:
        """(name expr expr ...)"""
        return f"({' '.join([name] + [self.print(_) for _ in exprs])})"


class TreeReader:
    """Read the AstPrinter form back into expression nodes"""

    BINARY_OPERATORS = (
        TokenType.BANG_EQUAL,
        TokenType.EQUAL_EQUAL,
        TokenType.GREATER,
        TokenType.GREATER_EQUAL,
        TokenType.LESS,
        TokenType.LESS_EQUAL,
        TokenType.MINUS,
        TokenType.PLUS,
        TokenType.SLASH,
        TokenType.STAR,
    )

    def __init__(self, text:str):
        scanner = Scanner(text)
        if scanner.has_error:
            raise ValueError(str(scanner.errors[0]))
        self.tokens = scanner.tokens
        self.current = 0

    peek = property(lambda self: self.tokens[self.current])

    def advance(self) -> Token:
        """consume a token"""
        token = self.tokens[self.current]
        if token.type != TokenType.EOF:
            self.current += 1
        return token

    def expect(self, token_type:TokenType) -> Token:
        """consume a token of the given type"""
        token = self.advance()
        if token.type != token_type:
            raise ValueError(f"expected {token_type.name} but found {token.lexeme!r} on line {token.line}")
        return token

    def read(self) -> Expr:
        """read exactly one tree"""
        expr = self.node()
        if self.peek.type != TokenType.EOF:
            raise ValueError(f"unexpected {self.peek.lexeme!r} after tree")
        return expr

    def node(self) -> Expr:
        """atom or parenthesized form"""
        token = self.advance()
        if token.type in (TokenType.NUMBER, TokenType.STRING): return Literal(token.literal)
        if token.type == TokenType.TRUE: return Literal(True)
        if token.type == TokenType.FALSE: return Literal(False)
        if token.type == TokenType.NIL: return Literal(None)
        if token.type == TokenType.THIS: return This(token)
        if token.type == TokenType.IDENTIFIER: return Variable(token)
        if token.type == TokenType.LEFT_PAREN:
            expr = self.form(self.advance())
            self.expect(TokenType.RIGHT_PAREN)
            return expr
        raise ValueError(f"unexpected {token.lexeme!r} on line {token.line}")

    def operands(self) -> typing.List[Expr]:
        """every node up to the closing paren"""
        nodes:typing.List[Expr] = []
        while self.peek.type not in (TokenType.RIGHT_PAREN, TokenType.EOF):
            nodes.append(self.node())
        return nodes

    def form(self, head:Token) -> Expr:  # noqa:C901 # too-complex
        """the node named by the head of a parenthesized form"""
        # pylint: disable=too-many-return-statements
        if head.type == TokenType.IDENTIFIER and head.lexeme == "group":
            return Grouping(self.node())
        if head.type == TokenType.IDENTIFIER and head.lexeme == "call":
            callee = self.node()
            return Call(callee, Token(TokenType.RIGHT_PAREN, ")", None, head.line), self.operands())
        if head.type == TokenType.SUPER:
            return Super(head, self.expect(TokenType.IDENTIFIER))
        if head.type == TokenType.DOT:
            obj = self.node()
            return Get(obj, self.expect(TokenType.IDENTIFIER))
        if head.type == TokenType.EQUAL:
            target = self.node()
            value = self.node()
            if isinstance(target, Variable):
                return Assign(target.name, value)
            if isinstance(target, Get):
                return Set(target.object, target.name, value)
            raise ValueError(f"cannot assign to {target!r}")
        if head.type == TokenType.QUESTION:
            return Ternary(self.node(), self.node(), self.node())
        if head.type == TokenType.COMMA:
            return Comma(self.operands())
        if head.type in (TokenType.AND, TokenType.OR):
            return Logical(self.node(), head, self.node())

        operands = self.operands()
        if len(operands) == 1 and head.type in (TokenType.MINUS, TokenType.BANG):
            return Unary(head, operands[0])
        if len(operands) == 2 and head.type in self.BINARY_OPERATORS:
            return Binary(operands[0], head, operands[1])
        raise ValueError(f"unknown form {head.lexeme!r} with {len(operands)} operands on line {head.line}")


def read_tree(text:str) -> Expr:
    """parse AstPrinter output back into an expression"""
    return TreeReader(text).read()


class Outcome(enum.IntEnum):
    """Result of running a unit of source, valued as the process exit code"""
    OK = 0
    SYNTAX_ERROR = 65
    RESOLUTION_ERROR = 66
    RUNTIME_ERROR = 70


EX_IOERR = 74


class Lox:
    """Scanner → Parser → Resolver → Interpreter, stopping at the first stage that fails

        One instance keeps its interpreter, so globals survive between runs at the prompt.
    """

    def __init__(self, stdout:typing.Optional[typing.TextIO] = None, stderr:typing.Optional[typing.TextIO] = None, print_ast:bool = False) -> None:
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stderr = stderr if stderr is not None else sys.stderr
        self.print_ast = print_ast
        self.interpreter = Interpreter(stdout=self.stdout)

    def report(self, diagnostics:typing.Iterable[Diagnostic]) -> None:
        """write diagnostics to the error stream"""
        for diagnostic in diagnostics:
            print(diagnostic, file=self.stderr)

    def run(self, source:str) -> Outcome:
        """run one complete unit of source text"""
        scanner = Scanner(source)
        parser = Parser(scanner.tokens)
        statements = parser.parse()
        if scanner.has_error or parser.has_error:
            self.report(scanner.errors + parser.errors)
            return Outcome.SYNTAX_ERROR

        resolver = Resolver()
        resolved = resolver.resolve(statements)
        if resolver.has_error:
            self.report(resolver.errors)
            return Outcome.RESOLUTION_ERROR

        if self.print_ast:
            printer = AstPrinter()
            for stmt in statements:
                if isinstance(stmt, (Expression, Print)):
                    print(printer.print(stmt.expression), file=self.stdout)

        if not self.interpreter.interpret(statements, resolved):
            diagnostic = self.interpreter.errors[-1]
            self.report([diagnostic])
            lines = source.split('\n')
            if 0 < diagnostic.line <= len(lines):
                print(f"\t{lines[diagnostic.line - 1]}", file=self.stderr)
            return Outcome.RUNTIME_ERROR
        return Outcome.OK

    def run_prompt(self, prompt:str = "> ") -> None:
        """read-eval-print loop, an error only abandons the line it came from"""
        while True:
            try:
                line = input(prompt)
            except EOFError:
                print(file=self.stdout)
                return
            self.run(line)


def main(argv:typing.Optional[typing.List[str]] = None) -> int:
    """command line entry point"""
    parser = argparse.ArgumentParser(prog="lox", description="Run Lox scripts, or a prompt when no script is given")
    parser.add_argument("script", nargs="?", help="Path to the .lox source file")
    parser.add_argument(
        "--print-ast",
        action="store_true",
        dest="print_ast",
        help="Print the tree of each top level expression before running it",
    )
    args = parser.parse_args(argv)

    # every Lox call is a handful of python frames
    sys.setrecursionlimit(max(sys.getrecursionlimit(), 10000))

    lox = Lox(print_ast=args.print_ast)
    if args.script is None:
        lox.run_prompt()
        return int(Outcome.OK)

    try:
        with open(args.script, encoding="utf-8") as handle:
            source = handle.read()
    except OSError as exc:
        print(f"lox: cannot read {args.script!r}: {exc.strerror}", file=sys.stderr)
        return EX_IOERR
    return int(lox.run(source))


if __name__ == '__main__':
    sys.exit(main())
