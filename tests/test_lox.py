"""Tests for the lox scanner, parser, resolver, interpreter and command line."""

import io

import pytest

from lox import (
    AstPrinter,
    Block,
    Class,
    Diagnostic,
    ErrorKind,
    Expression,
    Interpreter,
    Lox,
    Outcome,
    Parser,
    Print,
    Resolver,
    Scanner,
    Token,
    TokenType,
    Var,
    Variable,
    While,
    main,
    read_tree,
)


def parse_expression(source):
    """parse a single expression"""
    return Parser(Scanner(source).tokens).expression()


def parse(source):
    """parse a program, failing the test on any error"""
    scanner = Scanner(source)
    parser = Parser(scanner.tokens)
    statements = parser.parse()
    assert not scanner.errors and not parser.errors, scanner.errors + parser.errors
    return statements


def run(source):
    """run source through a fresh session, returning (outcome, stdout, stderr)"""
    out, err = io.StringIO(), io.StringIO()
    outcome = Lox(stdout=out, stderr=err).run(source)
    return outcome, out.getvalue(), err.getvalue()


# Scanner

scanner_testcases = (
    ('var foo = "two";', [Token(TokenType.VAR, 'var', None, 1), Token(TokenType.IDENTIFIER, 'foo', None, 1), Token(TokenType.EQUAL, '=', None, 1), Token(TokenType.STRING, '"two"', 'two', 1), Token(TokenType.SEMICOLON, ';', None, 1), Token(TokenType.EOF, '', None, 1)]),
    ('//blah', [Token(TokenType.EOF, '', None, 1)]),
    ('// comment\n1', [Token(TokenType.NUMBER, '1', 1.0, 2), Token(TokenType.EOF, '', None, 2)]),
    ('/* one\ntwo */ 2', [Token(TokenType.NUMBER, '2', 2.0, 2), Token(TokenType.EOF, '', None, 2)]),
    ('/* a */ /* b */', [Token(TokenType.EOF, '', None, 1)]),
    ('12.5', [Token(TokenType.NUMBER, '12.5', 12.5, 1), Token(TokenType.EOF, '', None, 1)]),
    ('1.', [Token(TokenType.NUMBER, '1', 1.0, 1), Token(TokenType.DOT, '.', None, 1), Token(TokenType.EOF, '', None, 1)]),
    ('.5', [Token(TokenType.DOT, '.', None, 1), Token(TokenType.NUMBER, '5', 5.0, 1), Token(TokenType.EOF, '', None, 1)]),
    ('true ? 1 : 2', [Token(TokenType.TRUE, 'true', None, 1), Token(TokenType.QUESTION, '?', None, 1), Token(TokenType.NUMBER, '1', 1.0, 1), Token(TokenType.COLON, ':', None, 1), Token(TokenType.NUMBER, '2', 2.0, 1), Token(TokenType.EOF, '', None, 1)]),
    ('"multi\nline"', [Token(TokenType.STRING, '"multi\nline"', 'multi\nline', 2), Token(TokenType.EOF, '', None, 2)]),
    ('a\nb\n\nc', [Token(TokenType.IDENTIFIER, 'a', None, 1), Token(TokenType.IDENTIFIER, 'b', None, 2), Token(TokenType.IDENTIFIER, 'c', None, 4), Token(TokenType.EOF, '', None, 4)]),
)


@pytest.mark.parametrize("source,tokens", scanner_testcases)
def test_scanner_tokens(source, tokens):
    scanner = Scanner(source)
    assert not scanner.errors
    assert scanner.tokens == tokens


@pytest.mark.parametrize("source,types", (
    ('! != = == < <= > >=', [TokenType.BANG, TokenType.BANG_EQUAL, TokenType.EQUAL, TokenType.EQUAL_EQUAL, TokenType.LESS, TokenType.LESS_EQUAL, TokenType.GREATER, TokenType.GREATER_EQUAL]),
    ('(){},.-+;*/', [TokenType.LEFT_PAREN, TokenType.RIGHT_PAREN, TokenType.LEFT_BRACE, TokenType.RIGHT_BRACE, TokenType.COMMA, TokenType.DOT, TokenType.MINUS, TokenType.PLUS, TokenType.SEMICOLON, TokenType.STAR, TokenType.SLASH]),
    ('and andy _x1 class classy this super', [TokenType.AND, TokenType.IDENTIFIER, TokenType.IDENTIFIER, TokenType.CLASS, TokenType.IDENTIFIER, TokenType.THIS, TokenType.SUPER]),
))
def test_scanner_token_types(source, types):
    assert [t.type for t in Scanner(source).tokens[:-1]] == types


@pytest.mark.parametrize("source,message,remaining", (
    ('"foo', "Unterminated string.", [TokenType.EOF]),
    ('/* never closed', "Unterminated comment.", [TokenType.EOF]),
    ('@ 1', "Unexpected character.", [TokenType.NUMBER, TokenType.EOF]),
))
def test_scanner_errors_keep_scanning(source, message, remaining):
    scanner = Scanner(source)
    assert [str(e) for e in scanner.errors] == [f"[line 1] Error: {message}"]
    assert scanner.errors[0].kind is ErrorKind.LEXICAL
    assert [t.type for t in scanner.tokens] == remaining


def test_scanner_reports_every_bad_character():
    scanner = Scanner('#\n$ ok')
    assert [e.line for e in scanner.errors] == [1, 2]
    assert scanner.tokens[-2] == Token(TokenType.IDENTIFIER, 'ok', None, 2)


# Parser

parser_expression_testcases = (
    ('1-2+3', '(+ (- 1 2) 3)'),
    ('1 + 2 * 3', '(+ 1 (* 2 3))'),
    ('10*100/(1000*200)', '(/ (* 10 100) (group (* 1000 200)))'),
    ('1 == 2 != 3', '(!= (== 1 2) 3)'),
    ('1.5 >= 2', '(>= 1.5 2)'),
    ('-(1)', '(- (group 1))'),
    ('!!true', '(! (! true))'),
    ('"foo" + nil', '(+ "foo" nil)'),
    ('a or b and c', '(or a (and b c))'),
    ('a = b = 1', '(= a (= b 1))'),
    ('a, b = 2, c', '(, a (= b 2) c)'),
    ('true ? 1 : false ? 2 : 3', '(? true 1 (? false 2 3))'),
    ('x ? 1, 2 : 3', '(? x (, 1 2) 3)'),
    ('a = x ? 1 : 2', '(= a (? x 1 2))'),
    ('f(1, 2)(3)', '(call (call f 1 2) 3)'),
    ('f(a ? 1 : 2, 3)', '(call f (? a 1 2) 3)'),
    ('a.b.c = 1', '(= (. (. a b) c) 1)'),
    ('this.x', '(. this x)'),
    ('super.m(1)', '(call (super m) 1)'),
)


@pytest.mark.parametrize("source,printed", parser_expression_testcases)
def test_parse_expression(source, printed):
    assert AstPrinter().print(parse_expression(source)) == printed


def test_for_desugars_to_while():
    [outer] = parse('for (var i = 0; i < 3; i = i + 1) print i;')
    assert isinstance(outer, Block)
    initializer, loop = outer.statements
    assert isinstance(initializer, Var)
    assert isinstance(loop, While)
    assert AstPrinter().print(loop.condition) == '(< i 3)'
    body, increment = loop.body.statements
    assert isinstance(body, Print)
    assert isinstance(increment, Expression)
    assert AstPrinter().print(increment.expression) == '(= i (+ i 1))'


def test_for_without_clauses_loops_forever():
    [loop] = parse('for (;;) print 1;')
    assert isinstance(loop, While)
    assert loop.condition.value is True


def test_class_declaration():
    [klass] = parse('class B < A { init(x) { this.x = x; } greet() { return 1; } }')
    assert isinstance(klass, Class)
    assert klass.name.lexeme == 'B'
    assert klass.superclass.name.lexeme == 'A'
    assert [m.name.lexeme for m in klass.methods] == ['init', 'greet']
    assert [p.lexeme for p in klass.methods[0].params] == ['x']


@pytest.mark.parametrize("source,errors", (
    ('var a = 1;\nprint a +;\nvar b = ;\nprint b;', ["[line 2] Error at ';': Expect expression.", "[line 3] Error at ';': Expect expression."]),
    ('print 1\nprint 2;\nvar x = 3', ["[line 2] Error at 'print': Expect ';' after value.", "[line 3] Error at end: Expect ';' after variable declaration."]),
    ('a + b = c;', ["[line 1] Error at '=': Invalid assignment target."]),
    ('== 1;', ["[line 1] Error at '==': Missing left-hand operand."]),
    ('* 2; print 1 +;', ["[line 1] Error at '*': Missing left-hand operand.", "[line 1] Error at ';': Expect expression."]),
    ('class A { 1 }', ["[line 1] Error at '1': Expect method name."]),
    ('fun (a) {}', ["[line 1] Error at '(': Expect function name."]),
    ('super;', ["[line 1] Error at ';': Expect '.' after 'super'."]),
    ('true ? 1;', ["[line 1] Error at ';': Expect ':' after then branch of conditional expression."]),
    ('print 1\nprint 2\nprint 3;', ["[line 2] Error at 'print': Expect ';' after value.", "[line 3] Error at 'print': Expect ';' after value."]),
))
def test_parse_errors_are_all_reported(source, errors):
    parser = Parser(Scanner(source).tokens)
    parser.parse()
    assert [str(e) for e in parser.errors] == errors
    assert all(e.kind is ErrorKind.SYNTAX for e in parser.errors)


def test_argument_cap():
    ok = Parser(Scanner('f(' + ', '.join(['1'] * 255) + ');').tokens)
    ok.parse()
    assert not ok.errors

    too_many = Parser(Scanner('f(' + ', '.join(['1'] * 256) + ');').tokens)
    statements = too_many.parse()
    assert [e.message for e in too_many.errors] == ["Can't have more than 255 arguments."]
    # reported without abandoning the statement
    assert len(statements) == 1


def test_parameter_cap():
    params = ', '.join(f'p{_}' for _ in range(256))
    parser = Parser(Scanner(f'fun f({params}) {{}}').tokens)
    statements = parser.parse()
    assert [e.message for e in parser.errors] == ["Can't have more than 255 parameters."]
    assert len(statements[0].params) == 256


# Resolver

def test_resolver_distances():
    statements = parse('{ var a = 1; print a; { print a; } } print a;')
    block = statements[0]
    near = block.statements[1].expression
    far = block.statements[2].statements[0].expression
    top = statements[1].expression
    resolved = Resolver().resolve(statements)
    assert resolved[near] == 0
    assert resolved[far] == 1
    assert top not in resolved


def test_resolver_keys_on_node_identity():
    statements = parse('fun f(a) { a; a; }')
    first, second = (s.expression for s in statements[0].body)
    resolved = Resolver().resolve(statements)
    assert first is not second
    assert resolved[first] == resolved[second] == 0
    assert len(resolved) == 2


def test_resolver_this_and_super():
    statements = parse('class A {} class B < A { m() { return super.m() + this.x; } }')
    ret = statements[1].methods[0].body[0]
    call = ret.value.left
    this = ret.value.right.object
    resolved = Resolver().resolve(statements)
    # method scope, then `this`, then `super`
    assert resolved[call.callee] == 2
    assert resolved[this] == 1


@pytest.mark.parametrize("source,message", (
    ('var a = 1; { var a = a + 1; print a; }', "[line 1] Error at 'a': Can't read local variable in its own initializer."),
    ('{ var a = 1; var a = 2; }', "[line 1] Error at 'a': Already a variable with this name in this scope."),
    ('fun f(a, a) {}', "[line 1] Error at 'a': Already a variable with this name in this scope."),
    ('return 1;', "[line 1] Error at 'return': Can't return from top-level code."),
    ('print this;', "[line 1] Error at 'this': Can't use 'this' outside of a class."),
    ('fun f() { return this; }', "[line 1] Error at 'this': Can't use 'this' outside of a class."),
    ('fun f() { super.m(); }', "[line 1] Error at 'super': Can't use 'super' outside of a class."),
    ('class A { m() { super.m(); } }', "[line 1] Error at 'super': Can't use 'super' in a class with no superclass."),
    ('class A < A {}', "[line 1] Error at 'A': A class can't inherit from itself."),
    ('class A { init() { return 1; } }', "[line 1] Error at 'return': Can't return a value from an initializer."),
))
def test_resolution_errors(source, message):
    outcome, out, err = run(source)
    assert outcome is Outcome.RESOLUTION_ERROR
    assert err == message + "\n"
    assert out == ""


def test_resolution_errors_accumulate_and_skip_evaluation():
    outcome, out, err = run('print "never";\nreturn 1;\nprint this;')
    assert outcome is Outcome.RESOLUTION_ERROR
    assert out == ""
    assert err.splitlines() == [
        "[line 2] Error at 'return': Can't return from top-level code.",
        "[line 3] Error at 'this': Can't use 'this' outside of a class.",
    ]


# Interpreter

interpreter_eval_testcases = (
    ('1', 1.0),
    ('(-1)', -1.0),
    ('!!true', True),
    ('nil', None),
    ('4*2', 8.0),
    ('4/2', 2.0),
    ('10/4', 2.5),
    ('4-2', 2.0),
    ('"foo"+"bar"', "foobar"),
    ('1<2', True),
    ('2<=2', True),
    ('3<=2', False),
    ('1>=2', False),
    ('1 + 2 == 3', True),
    ('1 == true', False),
    ('"1" == 1', False),
    ('nil == nil', True),
    ('nil == false', False),
    ('1 != 0', True),
    ('"a" + 1', "a1"),
    ('1 + "a"', "1a"),
    ('"a" + nil', "anil"),
    ('"is " + true', "is true"),
    ('"half " + 0.5', "half 0.5"),
    ('!0', False),
    ('!""', False),
    ('nil or "yes"', "yes"),
    ('1 and 2', 2.0),
    ('false and 1', False),
    ('true ? 1 : 2', 1.0),
    ('nil ? 1 : 2', 2.0),
    ('(1, 2, 3)', 3.0),
)


@pytest.mark.parametrize("source,result", interpreter_eval_testcases)
def test_eval(source, result):
    value = Interpreter().eval(parse_expression(source))
    assert type(value) is type(result)
    assert value == result


@pytest.mark.parametrize("source,output", (
    ('print "Hello, world!";', "Hello, world!\n"),
    ('print 2.5 * 2; print 1 / 3; print -0.5;', "5\n0.3333333333333333\n-0.5\n"),
    ('print true; print nil; print false;', "true\nnil\nfalse\n"),
    ('print 0 / 0;', "nan\n"),
    ('print 0.00001; print 1' + '0' * 17 + ' * 10;', '0.00001\n1' + '0' * 18 + '\n'),
    ('var a; var b = a = 2; print "a is " + a; print "b is " + b;', "a is 2\nb is 2\n"),
    ('var a = 10; { a = 11; var b = a; print b; } print a;', "11\n11\n"),
    ('var a = 10; { var a = 11; print a; } print a;', "11\n10\n"),
    ('var a = 1; var a = 2; print a;', "2\n"),
    ('var a = 11; if (a > 10) print "big"; else print "small";', "big\n"),
    ('if (nil) print "no";', ""),
    ('var a = 3; while (a > 0) { print a; a = a - 1; }', "3\n2\n1\n"),
    ('for (var i = 0; i < 3; i = i + 1) print i;', "0\n1\n2\n"),
    ('var a = 0; var temp; for (var b = 1; b <= 100; b = temp + b) { temp = a; a = b; } print a;', "89\n"),
    ('var a = 0; fun f() { a = 1; return true; } print false and f(); print true or f(); print a;', "false\ntrue\n0\n"),
    ('fun sum(a, b) { return a + b; } print sum(1, 2);', "3\n"),
    ('fun fib(n) { if (n <= 1) return n; return fib(n - 2) + fib(n - 1); } print fib(10);', "55\n"),
    ('fun f() {} print f();', "nil\n"),
    ('fun f() { return; } print f();', "nil\n"),
    ('fun f() { while (true) { for (;;) { return "out"; } } } print f();', "out\n"),
    ('fun f() { print "before"; { return 1; } print "after"; } print f();', "before\n1\n"),
    ('fun f() {} print f; print clock; class A {} print A; print A();', "<fn f>\n<native fn>\nA\nA instance\n"),
    ('print clock() > 0;', "true\n"),
))
def test_programs(source, output):
    outcome, out, err = run(source)
    assert (outcome, err) == (Outcome.OK, "")
    assert out == output


def test_closures_capture_by_reference():
    source = 'fun makeCounter(){ var i=0; fun inc(){ i=i+1; print i; } return inc; } var c = makeCounter(); c(); c();'
    assert run(source) == (Outcome.OK, "1\n2\n", "")


def test_closures_share_frames():
    source = '''
        var get; var inc;
        fun make() {
            var n = 0;
            fun i() { n = n + 1; }
            fun g() { return n; }
            inc = i; get = g;
        }
        make(); inc(); inc();
        print get();
    '''
    assert run(source) == (Outcome.OK, "2\n", "")


def test_closures_are_lexical_not_dynamic():
    source = '''
        var a = "global";
        {
            fun show() { print a; }
            show();
            var a = "block";
            show();
        }
    '''
    assert run(source) == (Outcome.OK, "global\nglobal\n", "")


def test_super_dispatches_from_defining_class():
    source = '''
        class A { greet() { return "A"; } }
        class B < A { greet() { return super.greet() + "B"; } }
        var b = B();
        print b.greet();
        var a = b;
        print a.greet();
    '''
    assert run(source) == (Outcome.OK, "AB\nAB\n", "")


def test_super_in_deep_chain():
    source = '''
        class A { m() { return "A"; } }
        class B < A { m() { return "B" + super.m(); } }
        class C < B {}
        class D < C { m() { return "D" + super.m(); } }
        print C().m();
        print D().m();
    '''
    assert run(source) == (Outcome.OK, "BA\nDBA\n", "")


def test_initializer_returns_instance():
    assert run('class C { init(){ return; } } print C();') == (Outcome.OK, "C instance\n", "")


def test_instances_and_methods():
    source = '''
        class P {
            init(x, y) { this.x = x; this.y = y; }
            sum() { return this.x + this.y; }
        }
        var p = P(1, 2);
        print p.sum();
        print p.init(3, 4);
        print p.x;
        var m = p.sum;
        print m();
    '''
    assert run(source) == (Outcome.OK, "3\nP instance\n3\n7\n", "")


def test_fields_shadow_methods():
    source = 'class A { m() { return 1; } } var a = A(); print a.m(); a.m = "field"; print a.m;'
    assert run(source) == (Outcome.OK, "1\nfield\n", "")


def test_inherited_initializer_arity():
    source = 'class A { init(a) { this.a = a; } } class B < A {} print B(5).a;'
    assert run(source) == (Outcome.OK, "5\n", "")


def test_interpret_state():
    interpreter = Interpreter(stdout=io.StringIO())
    statements = parse('var c = clock(); fun counter() { var i = 0; fun inc() { i = i + 1; return i; } return inc; } var n = counter(); n(); n(); n();')
    assert interpreter.interpret(statements, Resolver().resolve(statements))
    assert isinstance(interpreter.globals.values['c'], float)
    assert isinstance(interpreter.globals.values['n'], Interpreter.Function)
    assert interpreter.globals.values['n'].closure.values['i'] == 3


@pytest.mark.parametrize("source,message", (
    ('print 1 / 0;', "[line 1] Error at '/': Cannot divide by zero."),
    ('print -1 / 0;', "[line 1] Error at '/': Cannot divide by zero."),
    ('print -"a";', "[line 1] Error at '-': Operand must be a number."),
    ('print 1 < "a";', "[line 1] Error at '<': Operands must be numbers."),
    ('print "a" * 2;', "[line 1] Error at '*': Operands must be numbers."),
    ('print 1 + nil;', "[line 1] Error at '+': Operands must be two numbers or two strings."),
    ('print true + false;', "[line 1] Error at '+': Operands must be two numbers or two strings."),
    ('print x;', "[line 1] Error at 'x': Undefined variable 'x'."),
    ('x = 1;', "[line 1] Error at 'x': Undefined variable 'x'."),
    ('var a = 1; a();', "[line 1] Error at ')': Can only call functions and classes."),
    ('fun f(a) {} f();', "[line 1] Error at ')': Expected 1 arguments but got 0."),
    ('clock(1);', "[line 1] Error at ')': Expected 0 arguments but got 1."),
    ('class A { init(a) {} } A();', "[line 1] Error at ')': Expected 1 arguments but got 0."),
    ('var a = 1; print a.b;', "[line 1] Error at 'b': Only instances have properties."),
    ('var a = 1; a.b = 2;', "[line 1] Error at 'b': Only instances have fields."),
    ('class A {} print A().b;', "[line 1] Error at 'b': Undefined property 'b'."),
    ('class A {} class B < A { m() { return super.nope(); } } B().m();', "[line 1] Error at 'nope': Undefined property 'nope'."),
    ('var NotClass = 1; class B < NotClass {}', "[line 1] Error at 'NotClass': Superclass must be a class."),
    ('fun f() { return f(); } f();', "[line 1] Error at ')': Stack overflow."),
))
def test_runtime_errors(source, message):
    outcome, _, err = run(source)
    assert outcome is Outcome.RUNTIME_ERROR
    assert err == f"{message}\n\t{source}\n"


def test_runtime_error_aborts_the_rest():
    outcome, out, err = run('print 1;\nprint nil - 1;\nprint 2;')
    assert outcome is Outcome.RUNTIME_ERROR
    assert out == "1\n"
    assert err == "[line 2] Error at '-': Operands must be numbers.\n\tprint nil - 1;\n"


def test_runtime_diagnostic_record():
    interpreter = Interpreter(stdout=io.StringIO())
    assert not interpreter.interpret(parse('print undefined;'))
    [diagnostic] = interpreter.errors
    assert isinstance(diagnostic, Diagnostic)
    assert (diagnostic.kind, diagnostic.line, diagnostic.message) == (ErrorKind.RUNTIME, 1, "Undefined variable 'undefined'.")


# Nesting deeper than the host stack

def nested_blocks(depth):
    """{ { ... print x; ... } } with the print on line 3"""
    stmt = Print(Variable(Token(TokenType.IDENTIFIER, 'x', None, 3)))
    for _ in range(depth):
        stmt = Block([stmt])
    return stmt


def test_deep_nesting_is_a_syntax_error():
    outcome, out, err = run('print ' + '(' * 5000 + '1' + ')' * 5000 + ';')
    assert outcome is Outcome.SYNTAX_ERROR
    assert (out, err) == ("", "[line 1] Error at '(': Too much nesting.\n")


def test_deep_nesting_recovers_at_next_statement():
    parser = Parser(Scanner('print ' + '(' * 5000 + '1' + ')' * 5000 + ';\nprint 2;').tokens)
    statements = parser.parse()
    assert [e.message for e in parser.errors] == ["Too much nesting."]
    assert len(statements) == 1
    assert AstPrinter().print(statements[0].expression) == '2'


def test_resolver_reports_deep_nesting():
    resolver = Resolver()
    resolver.resolve([nested_blocks(30000)])
    assert [str(e) for e in resolver.errors] == ["[line 3] Error: Too much nesting."]
    assert resolver.errors[0].kind is ErrorKind.RESOLUTION
    assert resolver.scopes == []


def test_interpreter_reports_deep_nesting():
    interpreter = Interpreter(stdout=io.StringIO())
    assert not interpreter.interpret([nested_blocks(30000)])
    [diagnostic] = interpreter.errors
    assert (diagnostic.kind, diagnostic.line, diagnostic.message) == (ErrorKind.RUNTIME, 3, "Too much nesting.")
    assert interpreter.environment is interpreter.globals


# Tree printer

@pytest.mark.parametrize("source", (
    '1 + 2 * 3',
    '(1 + 2) * 3 - 4 / 2',
    '!(1 < 2) == false',
    'true ? "a" + "b" : "c"',
    '(1, 2, 3)',
    'nil or 2 and 3',
    '-(-2.5)',
    '1 >= 1 != 2 <= 1',
    '0.00001 + 1',
))
def test_printer_round_trip(source):
    expr = parse_expression(source)
    printed = AstPrinter().print(expr)
    reread = read_tree(printed)
    assert AstPrinter().print(reread) == printed
    assert Interpreter().eval(reread) == Interpreter().eval(expr)


@pytest.mark.parametrize("printed", (
    '(call f 1 2)',
    '(= (. (. a b) c) 1)',
    '(= a (? x 1 2))',
    '(call (super m) this)',
))
def test_reader_forms(printed):
    assert AstPrinter().print(read_tree(printed)) == printed


@pytest.mark.parametrize("printed", ('(+ 1)', '(1 2)', '(group 1', '1 2', '(= 1 2)'))
def test_reader_rejects_malformed_trees(printed):
    with pytest.raises(ValueError):
        read_tree(printed)


# Session and command line

def test_session_keeps_globals_between_runs():
    out, err = io.StringIO(), io.StringIO()
    lox = Lox(stdout=out, stderr=err)
    assert lox.run('var a = 1; fun f() { return a + 1; }') is Outcome.OK
    assert lox.run('print missing;') is Outcome.RUNTIME_ERROR
    assert lox.run('print (;') is Outcome.SYNTAX_ERROR
    assert lox.run('a = 41; print f();') is Outcome.OK
    assert out.getvalue() == "42\n"


def test_syntax_and_lexical_errors_reported_together():
    outcome, out, err = run('print @;\nvar a = "open;')
    assert outcome is Outcome.SYNTAX_ERROR
    assert out == ""
    assert err.splitlines() == [
        "[line 1] Error: Unexpected character.",
        "[line 2] Error: Unterminated string.",
        "[line 1] Error at ';': Expect expression.",
        "[line 2] Error at end: Expect expression.",
    ]


@pytest.mark.parametrize("source,code", (
    ('print "hi";', 0),
    ('print ;', 65),
    ('return;', 66),
    ('print 1 / 0;', 70),
))
def test_main_exit_codes(tmp_path, capsys, source, code):
    script = tmp_path / "script.lox"
    script.write_text(source)
    assert main([str(script)]) == code
    if code == 0:
        assert capsys.readouterr().out == "hi\n"


def test_main_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "missing.lox")]) == 74
    assert "cannot read" in capsys.readouterr().err


def test_main_print_ast(tmp_path, capsys):
    script = tmp_path / "script.lox"
    script.write_text('print 1 + 2 * 3;')
    assert main(['--print-ast', str(script)]) == 0
    assert capsys.readouterr().out == "(+ 1 (* 2 3))\n7\n"


def test_main_prompt(monkeypatch, capsys):
    monkeypatch.setattr('sys.stdin', io.StringIO('var a = 2;\nprint a * ;\nprint a * 3;\n'))
    assert main([]) == 0
    captured = capsys.readouterr()
    assert "6\n" in captured.out
    assert "Expect expression." in captured.err
