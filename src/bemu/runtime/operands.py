''' Register identifiers and operand resolution shared by every opcode '''

from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import AbstractSet, TypeAlias

import bemu.common.hwconf as hw


class Register(IntEnum):
    RAX = 0
    RBX = 1
    RCX = 2
    RDX = 3

    def __str__(self) -> str:
        return hw.REGISTER_NAMES[self.value]


REGISTERS = {name: Register(i) for i, name in enumerate(hw.REGISTER_NAMES)}


class Mode(Enum):
    REGISTER = auto()       # rax
    MEMORY = auto()         # 12 -> M[12]
    INDIRECT = auto()       # *rax -> M[rax]
    IMMEDIATE = auto()      # 12
    LABEL = auto()          # loop


Modes: TypeAlias = AbstractSet[Mode]

REG_ONLY: Modes = frozenset({Mode.REGISTER})
REG_OR_INDIRECT: Modes = frozenset({Mode.REGISTER, Mode.INDIRECT})
LOCATION: Modes = frozenset({Mode.REGISTER, Mode.INDIRECT, Mode.MEMORY})
IMMEDIATE: Modes = frozenset({Mode.IMMEDIATE})
REG_OR_IMMEDIATE: Modes = frozenset({Mode.REGISTER, Mode.IMMEDIATE})
LABEL: Modes = frozenset({Mode.LABEL})
JUMP_TARGET: Modes = frozenset({Mode.REGISTER, Mode.LABEL})


@dataclass(frozen=True)
class RegisterOperand:
    register: Register


@dataclass(frozen=True)
class MemoryDirect:
    address: int


@dataclass(frozen=True)
class MemoryIndirect:
    register: Register


@dataclass(frozen=True)
class Immediate:
    value: int


@dataclass(frozen=True)
class LabelRef:
    name: str


Operand: TypeAlias = RegisterOperand | MemoryDirect | MemoryIndirect | Immediate | LabelRef


class InvalidOperand(Exception):
    pass


def is_number(token: str) -> bool:
    return token.isascii() and token.isdigit()


def resolve(token: str, modes: Modes) -> Operand:
    ''' Classifies a token against the addressing modes an opcode accepts.

    Numeric tokens become memory addresses where MEMORY is accepted,
    immediates where IMMEDIATE is, and label names otherwise. Register
    names are registers wherever REGISTER is accepted. Any token that
    fits none of the accepted modes raises InvalidOperand.
    '''
    if token in REGISTERS:
        if Mode.REGISTER in modes:
            return RegisterOperand(REGISTERS[token])

        if Mode.LABEL in modes:
            return LabelRef(token)

        raise InvalidOperand(f'Register `{token}` not allowed here')

    if token.startswith(hw.INDIRECT_PREFIX) and Mode.INDIRECT in modes:
        name = token[len(hw.INDIRECT_PREFIX):]

        if name not in REGISTERS:
            raise InvalidOperand(f'Unrecognized register `{name}`')

        return MemoryIndirect(REGISTERS[name])

    if is_number(token):
        if Mode.MEMORY in modes:
            return MemoryDirect(int(token))

        if Mode.IMMEDIATE in modes:
            return Immediate(int(token))

    if Mode.LABEL in modes:
        return LabelRef(token)

    if modes == REG_ONLY:
        raise InvalidOperand(f'Unrecognized register `{token}`')

    raise InvalidOperand(f'Invalid token `{token}`')
