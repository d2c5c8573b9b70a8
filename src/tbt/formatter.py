"""
Turns a TBT AST back into source text.

The output is canonical rather than a copy of the source layout: one
statement per line, shorthand directions expanded, `rand` written as
`random`, and every field spelled out. Tokenizing and parsing the result
gives back an equal AST.
"""

from .ast import (
    Number, LiteralLabel, VariableRead, FunctionCall,
    Canvas, RefAssign, ExprStatement, Spawn, Despawn, Move, Wait, Repeat, If, Assign
)


def unparse(statements):
    """Render a list of statements as TBT source."""
    lines = []
    for stmt in statements:
        lines.extend(_statement_lines(stmt))
    return '\n'.join(lines) + ('\n' if lines else '')


def format_expression(node):
    """Render an expression in value position (brackets where needed)."""
    if isinstance(node, Number):
        return str(node.value)
    if isinstance(node, LiteralLabel):
        return node.name
    if isinstance(node, VariableRead):
        return f"ref({node.name})"
    if isinstance(node, FunctionCall):
        return f"[{_call(node)}]"
    raise TypeError(f"Cannot format expression node: {node!r}")


def _call(node):
    return f"{node.name}({', '.join(format_expression(arg) for arg in node.args)})"


def _statement_lines(stmt):
    if isinstance(stmt, Canvas):
        return [f"canvas {stmt.width} {stmt.height}"]
    if isinstance(stmt, RefAssign):
        return [f"ref={stmt.name}({format_expression(stmt.value)})"]
    if isinstance(stmt, ExprStatement):
        if isinstance(stmt.expr, FunctionCall):
            return [_call(stmt.expr)]
        return [format_expression(stmt.expr)]
    if isinstance(stmt, Spawn):
        return [f"spawn id={format_expression(stmt.id)} x={format_expression(stmt.x)} "
                f"y={format_expression(stmt.y)} state={format_expression(stmt.state)}"]
    if isinstance(stmt, Despawn):
        return [f"despawn id={stmt.id}"]
    if isinstance(stmt, Move):
        parts = [f"move id={format_expression(stmt.id)}"]
        if stmt.rel:
            parts.append(stmt.rel)
        if stmt.x is not None:
            parts.append(f"x={format_expression(stmt.x)}")
        if stmt.y is not None:
            parts.append(f"y={format_expression(stmt.y)}")
        if stmt.set is not None:
            parts.append(f"set={format_expression(stmt.set)}")
        if stmt.swap:
            parts.append('swap')
        return [' '.join(parts)]
    if isinstance(stmt, Wait):
        return [f"wait {stmt.duration}"]
    if isinstance(stmt, Repeat):
        header = f"repeat {stmt.delay}"
        if stmt.count is not None:
            header += f" {stmt.count}"
        return [header] + _block_lines(stmt.block)
    if isinstance(stmt, If):
        header = f"if id={format_expression(stmt.left_id)} is"
        if stmt.relation == 'assigned':
            header += f" assigned {stmt.assigned_key}"
        elif stmt.relation == 'is':
            header += f" id={format_expression(stmt.right_id)}"
        else:
            header += f" {stmt.relation} id={format_expression(stmt.right_id)}"
        lines = [header]
        if stmt.true_block:
            lines.append('..true')
            lines.extend(_block_lines(stmt.true_block))
        if stmt.false_block:
            lines.append('..false')
            lines.extend(_block_lines(stmt.false_block))
        return lines
    if isinstance(stmt, Assign):
        if isinstance(stmt.value, VariableRead):
            return [f"assign {stmt.key} to ref({stmt.value.name})"]
        return [f"assign {stmt.key} to id={format_expression(stmt.value)}"]
    raise TypeError(f"Cannot format statement node: {stmt!r}")


# Nested compound statements keep their own '.' / '..true' lines unprefixed:
# a block always extends as far as the next line that does not start with '.'
def _block_lines(block):
    lines = []
    for stmt in block:
        first, *rest = _statement_lines(stmt)
        lines.append(f". {first}")
        lines.extend(rest)
    return lines
