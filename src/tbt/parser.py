from .lexer import (
    NUMBER, IDENTIFIER, EQUALS, LPAREN, RPAREN, DOTS, COMMA, LBRACKET, RBRACKET
)
from .ast import (
    Number, LiteralLabel, VariableRead, FunctionCall,
    Canvas, RefAssign, ExprStatement, Spawn, Despawn, Move, Wait, Repeat, If, Assign
)

# Functions callable inside [ ... ] and as bare statements
FUNCTION_NAMES = {'add', 'sub', 'mul', 'div', 'mod', 'random', 'rand'}
FUNCTION_ALIASES = {'rand': 'random'}

# Directions accepted by move, with the w/a/s/d shorthand
DIRECTIONS = {'left', 'right', 'up', 'down', 'over', 'under'}
DIRECTION_SHORTHAND = {'w': 'up', 'a': 'left', 's': 'down', 'd': 'right'}

RELATIONS = {'is', 'on', 'under', 'over', 'left', 'right', 'assigned'}

SPAWN_FIELDS = ('id', 'x', 'y', 'state')

FOREVER = 'forever'


# Parser class converts tokens into a list of TBT statements (the AST).
# Statements are dispatched on their leading keyword. Tokens that cannot
# start a statement are skipped at the top level, but once a statement has
# started any structural problem raises a SyntaxError with its line number.
class Parser:
    def __init__(self, tokens):
        self.tokens = tokens
        self.pos = 0

    def parse(self):
        statements = []
        while self.pos < len(self.tokens):
            try:
                stmt = self._statement()
            except RecursionError:
                raise SyntaxError(self._error("Block nesting too deep")) from None
            if stmt is not None:
                statements.append(stmt)
            else:
                self.pos += 1
        return statements

    # Parses a single statement, or returns None if the current token
    # cannot start one
    def _statement(self):
        token = self._peek()
        if token is None or token.type != IDENTIFIER:
            return None
        keyword = token.value

        if keyword == 'canvas':
            self.pos += 1
            width = self._expect(NUMBER).value
            height = self._expect(NUMBER).value
            return Canvas(width, height)
        if keyword == 'ref' and self._match(EQUALS, offset=1):
            return self._ref_assign()
        if keyword == 'ref' and self._match(LPAREN, offset=1):
            return ExprStatement(self._ref_call())
        if keyword == 'spawn':
            return self._spawn()
        if keyword == 'despawn':
            self.pos += 1
            self._expect(IDENTIFIER, 'id')
            self._expect(EQUALS)
            return Despawn(self._expect(NUMBER).value)
        if keyword == 'move':
            return self._move()
        if keyword in FUNCTION_NAMES:
            return ExprStatement(self._function_call(stop_line=token.line))
        if keyword == 'wait':
            self.pos += 1
            if not self._match(NUMBER):
                raise SyntaxError(self._error("Expected duration (number) after wait"))
            return Wait(self._next().value)
        if keyword == 'repeat':
            return self._repeat()
        if keyword == 'if':
            return self._if()
        if keyword == 'assign':
            return self._assign()
        return None

    # ref=NAME(VALUE)
    def _ref_assign(self):
        self.pos += 1  # Skip 'ref'
        self._expect(EQUALS)
        name = self._expect(IDENTIFIER).value
        self._expect(LPAREN)
        value = self._value()
        self._expect(RPAREN)
        return RefAssign(name, value)

    def _spawn(self):
        self.pos += 1  # Skip 'spawn'
        fields = {}
        while self._match(IDENTIFIER) and self._peek().value in SPAWN_FIELDS:
            key = self._next().value
            self._expect(EQUALS)
            fields[key] = self._value()
        # Unset fields default to 0 so that id=0 is a valid id
        return Spawn(*(fields.get(key, Number(0)) for key in SPAWN_FIELDS))

    def _move(self):
        self.pos += 1  # Skip 'move'
        move = Move(Number(0))
        while self._match(IDENTIFIER):
            key = self._peek().value
            if key in ('id', 'x', 'y'):
                self.pos += 1
                self._expect(EQUALS)
                setattr(move, key, self._value())
            elif key in DIRECTIONS:
                self.pos += 1
                move.rel = key
            elif key in DIRECTION_SHORTHAND:
                self.pos += 1
                move.rel = DIRECTION_SHORTHAND[key]
            elif key == 'set':
                self.pos += 1
                if self._match(EQUALS):
                    self.pos += 1
                move.set = self._value()
            elif key == 'swap':
                self.pos += 1
                move.swap = True
            else:
                break
        return move

    # repeat DELAY [COUNT|forever] followed by a .-prefixed block
    def _repeat(self):
        self.pos += 1  # Skip 'repeat'
        delay = self._expect(NUMBER).value
        count = None
        if self._match(NUMBER):
            count = self._next().value
        elif self._match(IDENTIFIER, FOREVER):
            self.pos += 1
            count = FOREVER
        return Repeat(delay, count, self._block())

    # if id=L is REL [id=R | KEY] ..true ... ..false ...
    def _if(self):
        self.pos += 1  # Skip 'if'
        self._expect(IDENTIFIER, 'id')
        self._expect(EQUALS)
        left_id = self._value()
        self._expect(IDENTIFIER, 'is')

        if self._match(IDENTIFIER, 'id') and self._match(EQUALS, offset=1):
            # `if id=1 is id=2` is shorthand for the identity relation
            relation = 'is'
        elif self._match(IDENTIFIER) and self._peek().value in RELATIONS:
            relation = self._next().value
        elif self._match(IDENTIFIER):
            raise SyntaxError(self._error(f"Unknown relation '{self._peek().value}'"))
        else:
            raise SyntaxError(self._error("Expected relation after 'is'"))

        node = If(left_id, relation)
        if relation == 'assigned':
            node.assigned_key = self._expect(IDENTIFIER).value
        else:
            self._expect(IDENTIFIER, 'id')
            self._expect(EQUALS)
            node.right_id = self._value()

        while self._match(DOTS, '..') and self._peek(1) is not None \
                and self._peek(1).type == IDENTIFIER and self._peek(1).value in ('true', 'false'):
            self.pos += 1
            label = self._next().value
            if label == 'true':
                node.true_block = self._block()
            else:
                node.false_block = self._block()
        return node

    # assign KEY to ref(NAME) | id=V
    def _assign(self):
        self.pos += 1  # Skip 'assign'
        key = self._expect(IDENTIFIER).value
        self._expect(IDENTIFIER, 'to')
        if self._match(IDENTIFIER, 'ref') and self._match(LPAREN, offset=1):
            return Assign(key, self._ref_call())
        if self._match(IDENTIFIER, 'id') and self._match(EQUALS, offset=1):
            self.pos += 2
            return Assign(key, self._value())
        raise SyntaxError(self._error("Expected ref(NAME) or id=VALUE after 'to'"))

    # A run of statements, each introduced by a single '.'
    def _block(self):
        block = []
        while self._match(DOTS, '.'):
            self.pos += 1
            stmt = self._statement()
            if stmt is not None:
                block.append(stmt)
        return block

    # Unbracketed value: number, literal label, ref(NAME) or [expression]
    def _value(self):
        token = self._peek()
        if token is None:
            raise SyntaxError(self._error("Unexpected end of input"))
        if token.type == LBRACKET:
            self.pos += 1
            expr = self._bracketed()
            self._expect(RBRACKET)
            return expr
        if token.type == IDENTIFIER and token.value == 'ref' and self._match(LPAREN, offset=1):
            return self._ref_call()
        if token.type == NUMBER:
            self.pos += 1
            return Number(token.value)
        if token.type == IDENTIFIER:
            self.pos += 1
            return LiteralLabel(token.value)
        raise SyntaxError(self._error("Expected value (number or [expression])"))

    # Richer expression grammar used inside [ ... ]
    def _bracketed(self):
        token = self._peek()
        if token is None:
            raise SyntaxError(self._error("Unexpected end of input in [ ]"))
        if token.type == IDENTIFIER:
            if token.value in FUNCTION_NAMES:
                return self._function_call()
            if token.value == 'ref' and self._match(LPAREN, offset=1):
                return self._ref_call()
            self.pos += 1
            return LiteralLabel(token.value)
        if token.type == NUMBER:
            self.pos += 1
            return Number(token.value)
        if token.type == LBRACKET:
            self.pos += 1
            expr = self._bracketed()
            self._expect(RBRACKET)
            return expr
        raise SyntaxError(self._error("Expected expression or value inside [ ]"))

    # add(1, 2) / add 1 2 / rand(0 9) ...
    # Without parentheses the arguments run to the closing ']' or, for a
    # bare statement, to the end of the line.
    def _function_call(self, stop_line=None):
        name = self._next().value
        has_paren = self._match(LPAREN)
        if has_paren:
            self.pos += 1
        args = []
        while self._peek() is not None:
            token = self._peek()
            if token.type in (RPAREN, RBRACKET):
                break
            if not has_paren and stop_line is not None and token.line != stop_line:
                break
            args.append(self._argument())
            while self._match(COMMA):
                self.pos += 1
        if has_paren:
            self._expect(RPAREN)
        return FunctionCall(FUNCTION_ALIASES.get(name, name), args)

    def _argument(self):
        token = self._peek()
        if token.type == IDENTIFIER and token.value in FUNCTION_NAMES and self._match(LPAREN, offset=1):
            return self._function_call()
        return self._value()

    # ref(NAME)
    def _ref_call(self):
        self.pos += 1  # Skip 'ref'
        self._expect(LPAREN)
        name = self._expect(IDENTIFIER).value
        self._expect(RPAREN)
        return VariableRead(name)

    # Token helpers
    def _peek(self, offset=0):
        index = self.pos + offset
        if index < len(self.tokens):
            return self.tokens[index]
        return None

    def _next(self):
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def _match(self, type, value=None, offset=0):
        token = self._peek(offset)
        if token is not None and token.type == type:
            if value is None or token.value == value:
                return True
        return False

    def _expect(self, type, value=None):
        if not self._match(type, value):
            expected = f"{type} '{value}'" if value is not None else type
            raise SyntaxError(self._error(f"Expected {expected}"))
        return self._next()

    def _error(self, message):
        token = self._peek()
        if token is None and self.tokens:
            token = self.tokens[-1]
        line = token.line if token is not None else '?'
        return f"{message} (at line {line})"


def parse(tokens):
    """Parse a token list into TBT statements.

    Raises:
        SyntaxError: on any structural violation, with the 1-based line number
    """
    return Parser(tokens).parse()
