import logging as lg
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence, Tuple

import pyparsing as pp

import bemu.common.hwconf as hw
import bemu.common.ops as ops
import bemu.sasm.grammar as grammar


class AsmError(Exception):
    pass


@dataclass(frozen=True)
class Assembly:
    tokens: Tuple[str, ...]
    labels: Mapping[str, int] = field(default_factory=dict)


class CompilationItem:
    modulename: str
    contents: str


def tokenize(text: str) -> List[str]:
    return list(grammar.program.parse_string(text, parse_all=True))


def build_label_table(tokens: Sequence[str]) -> Dict[str, int]:
    ''' Walks the stream the way the executor decodes it in order.

    `label NAME` records NAME at the index of the `label` token. Comment
    regions and operand tokens are stepped over, so neither can define a
    label by accident.
    '''
    labels: Dict[str, int] = dict()
    index = 0

    while index < len(tokens):
        code = tokens[index]

        if code == ops.COMMENT:
            try:
                index = tokens.index(ops.COMMENT, index + 1) + 1
            except ValueError:
                raise AsmError(f'Unterminated comment at token #{index}') from None

            continue

        if code == ops.LABEL:
            if index + 1 >= len(tokens):
                raise AsmError(f'Missing label name at token #{index}')

            name = tokens[index + 1]

            if name in labels:
                raise AsmError(f'Duplicate label {name} at token #{index}')

            lg.debug(f'Label {name} @ {index}')
            labels[name] = index

        index += 1 + ops.OPERAND_COUNTS.get(code, 0)

    return labels


def assemble(text: str) -> Assembly:
    try:
        tokens = tokenize(text)
    except pp.ParseException as e:
        raise AsmError(f'Failed to tokenize source: {e}') from e

    return Assembly(tuple(tokens), build_label_table(tokens))


def parse_image(text: str) -> Assembly:
    ''' Reads `NAME INDEX ...` pairs, the table terminator and the tokens '''
    header, marker, body = text.partition(hw.LABEL_TABLE_END)

    if not marker:
        raise AsmError('Failed to parse label table - corrupted binary?')

    try:
        entries = grammar.label_table.parse_string(header, parse_all=True)
        tokens = tokenize(body)
    except pp.ParseException as e:
        raise AsmError(f'Failed to parse label table - corrupted binary? {e}') from e

    labels: Dict[str, int] = dict()

    for name, index in entries:
        if str(name) in labels:
            raise AsmError(f'Duplicate label {name} in label table - corrupted binary?')

        labels[str(name)] = index

    return Assembly(tuple(tokens), labels)


def load_program(data: bytes) -> Assembly:
    ''' Accepts an assembled image or raw source '''
    try:
        text = data.decode('utf-8')
    except UnicodeDecodeError as e:
        raise AsmError(f'Program is not valid UTF-8: {e}') from e

    if hw.LABEL_TABLE_END in text:
        return parse_image(text)

    return assemble(text)


def emit_image(assembly: Assembly) -> str:
    lines = [f'{name} {index}' for name, index in assembly.labels.items()]
    lines.append(hw.LABEL_TABLE_END)
    lines.append(' '.join(assembly.tokens))
    return '\n'.join(lines) + '\n'


def compile_items(compile_items: List[CompilationItem]) -> Assembly:
    tokens: List[str] = []

    for compile_item in compile_items:
        lg.info("Processing {0}".format(compile_item.modulename))

        try:
            tokens.extend(tokenize(compile_item.contents))
        except pp.ParseException as e:
            raise AsmError(f'Failed to tokenize {compile_item.modulename}: {e}') from e

    return Assembly(tuple(tokens), build_label_table(tokens))
