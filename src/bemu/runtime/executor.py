import sys
import logging as lg
from dataclasses import dataclass
from typing import Callable, List, Mapping, Sequence, TextIO, cast

import bemu.common.hwconf as hw
import bemu.common.ops as ops
import bemu.runtime.operands as opd
import bemu.sasm.asm as asm
from bemu.common.settings import MachineSettings
from bemu.runtime.operands import Register
from bemu.runtime.vfs import VFS, File, NotFound


class Panic(Exception):
    ''' Malformed program, always fatal '''
    pass


class OverlayDepthExceeded(Panic):
    pass


class Fault(Exception):
    ''' Runtime fault, fatal unless the machine continues after faults '''
    pass


@dataclass
class Frame:
    ip: int
    tokens: Sequence[str]
    labels: Mapping[str, int]


class Executor():
    ip: int         # Instruction pointer
    start: int      # Position of the instruction being executed
    code: str       # Its opcode
    tokens: Sequence[str]
    labels: Mapping[str, int]
    gp: list[int]   # General purpose registers
    memory: bytearray
    frames: List[Frame]  # Callers suspended by vrlx

    def __init__(
        self,
        assembly: asm.Assembly,
        vfs: VFS | None = None,
        settings: MachineSettings | None = None,
        output: TextIO | None = None
    ):
        self.settings = settings if settings is not None else MachineSettings()
        self.vfs = vfs if vfs is not None else VFS()
        self.output = output if output is not None else sys.stdout

        self.ip = 0
        self.start = 0
        self.code = ''
        self.tokens = assembly.tokens
        self.labels = assembly.labels

        self.gp = [0] * len(Register)
        self.memory = bytearray(self.settings.memory_size)
        self.frames = []

    # - Helpers - #

    def emit(self, text: str):
        self.output.write(text)

    def debug_dump(self) -> str:
        lines = ['!!! DUMPED !!!', '  Registers:']
        lines.extend(f'    {str(r).upper()}: {self.gp[r]}' for r in Register)
        lines.append('  Memory:')
        lines.extend(f'    {i}: {b}' for i, b in enumerate(self.memory))

        if self.settings.dump_vfs:
            lines.append('  VFS:')

            for identifier, file in sorted(self.vfs.dmp().items()):
                mode = ', read-only' if file.read_only else ''
                lines.append(f'    {identifier}: {file.name} ({len(file.contents)} bytes{mode})')

        return '\n'.join(lines) + '\n'

    def next(self) -> str:
        if self.ip >= len(self.tokens):
            raise Panic(f'EOF after `{self.code}` instruction at instr #{self.start}')

        token = self.tokens[self.ip]
        self.ip += 1
        return token

    def next_operand(self, modes: opd.Modes) -> opd.Operand:
        position = self.ip
        token = self.next()

        try:
            return opd.resolve(token, modes)
        except opd.InvalidOperand as e:
            raise Panic(f'{e} after `{self.code}` at instr #{position}') from e

    def next_register(self) -> Register:
        return cast(opd.RegisterOperand, self.next_operand(opd.REG_ONLY)).register

    def next_immediate(self, limit: int | None = None) -> int:
        position = self.ip
        value = cast(opd.Immediate, self.next_operand(opd.IMMEDIATE)).value

        if limit is not None and value > limit:
            raise Panic(f'Invalid value `{value}` after `{self.code}` at instr #{position}')

        return value

    def next_label(self) -> str:
        return cast(opd.LabelRef, self.next_operand(opd.LABEL)).name

    def check_address(self, addr: int):
        if addr < self.settings.reserved_min or addr >= self.settings.memory_size:
            raise Fault(
                f'Segmentation fault - Accessed memory out of bounds. '
                f'Address: {addr}. Instr #{self.start}'
            )

    def read(self, operand: opd.Operand) -> int:
        match operand:
            case opd.RegisterOperand(register):
                return self.gp[register]
            case opd.Immediate(value):
                return value
            case opd.MemoryDirect(addr):
                self.check_address(addr)
                return self.memory[addr]
            case opd.MemoryIndirect(register):
                addr = self.gp[register]
                self.check_address(addr)
                return self.memory[addr]

        raise Panic(f'Operand {operand} has no value at instr #{self.start}')

    def write(self, operand: opd.Operand, value: int):
        match operand:
            case opd.RegisterOperand(register):
                self.gp[register] = value
                return
            case opd.MemoryDirect(addr):
                self.check_address(addr)
                self.memory[addr] = value
                return
            case opd.MemoryIndirect(register):
                addr = self.gp[register]
                self.check_address(addr)
                self.memory[addr] = value
                return

        raise Panic(f'Operand {operand} is not writable at instr #{self.start}')

    def jump(self, name: str):
        if name not in self.labels:
            raise Panic(f'Invalid label {name} at instr #{self.start}.')

        self.ip = self.labels[name]

    def arithm_triple(self, op: Callable[[int, int], int]):
        a = self.next_register()
        b = self.next_register()
        dest = self.next_register()
        self.gp[dest] = op(self.gp[a], self.gp[b]) & hw.BYTE_MASK

    def compare(self, modes: opd.Modes, op: Callable[[int, int], bool]):
        dest = self.next_register()
        lhs = self.next_operand(modes)
        rhs = self.next_operand(modes)
        self.gp[dest] = 1 if op(self.read(lhs), self.read(rhs)) else 0

    def read_vfs(self, identifier: int) -> File:
        try:
            return self.vfs.read_file(identifier)
        except NotFound as e:
            raise Fault(f'{e} Instr #{self.start}') from e

    # - Operations - #

    def label(self):
        self.next()

    def dmp(self):
        self.emit(self.debug_dump())

    def panic(self):
        raise Panic(f'Panic requested by instruction set at instr #{self.start}')

    def fault(self):
        raise Fault(f'Fault requested by instr #{self.start}.')

    def comment(self):
        while True:
            if self.ip >= len(self.tokens):
                raise Panic(f'Unterminated comment at instr #{self.start}')

            if self.next() == ops.COMMENT:
                return

    def memset(self):
        addr = self.next_immediate()
        value = self.next_immediate(hw.BYTE_MASK)
        self.check_address(addr)
        self.memory[addr] = value

    def mov(self):
        dest = self.next_operand(opd.LOCATION)
        src = self.next_operand(opd.LOCATION)
        self.write(dest, self.read(src))

    def goto(self):
        target = self.next_operand(opd.JUMP_TARGET)

        if isinstance(target, opd.RegisterOperand):
            self.ip = self.gp[target.register]
        else:
            self.jump(cast(opd.LabelRef, target).name)

    def cgt(self):
        reg = self.next_register()
        name = self.next_label()

        if self.gp[reg] > 0:
            self.jump(name)

    def inv(self):
        reg = self.next_register()
        self.gp[reg] = 0 if self.gp[reg] > 0 else 1

    def outstr(self):
        value = self.read(self.next_operand(opd.REG_OR_INDIRECT))
        self.emit(bytes([value]).decode('utf-8', errors='replace'))

    def outbyte(self):
        value = self.read(self.next_operand(opd.REG_OR_INDIRECT))
        self.emit(str(value))

    def vfsr(self):
        ptr_operand = self.next_operand(opd.REG_OR_IMMEDIATE)
        identifier = self.next_immediate()
        ptr = self.read(ptr_operand)
        contents = self.read_vfs(identifier).contents
        end = ptr + len(contents)

        if ptr < self.settings.reserved_min or end > self.settings.memory_size:
            raise Fault(
                f'Segmentation fault - File {identifier} ({len(contents)} bytes) '
                f'does not fit at address {ptr}. Instr #{self.start}'
            )

        self.memory[ptr:end] = contents

    def vrlx(self):
        identifier = self.next_immediate()
        file = self.read_vfs(identifier)

        try:
            assembly = asm.load_program(file.contents)
        except asm.AsmError as e:
            raise Panic(f'Cannot load file {identifier} at instr #{self.start}: {e}') from e

        self.enter_overlay(assembly)

    # - Arithmetic - #

    def add(self):
        self.arithm_triple(lambda a, b: a + b)

    def sub(self):
        self.arithm_triple(lambda a, b: a - b)

    def mul(self):
        self.arithm_triple(lambda a, b: a * b)

    def div(self):
        a = self.next_register()
        b = self.next_register()
        dest = self.next_register()

        if self.gp[b] == 0:
            raise Fault(f'Division by zero at instr #{self.start}')

        self.gp[dest] = self.gp[a] // self.gp[b]

    # - Comparison - #

    # NB: grt and lt compare the last operand against the middle one

    def grt(self):
        self.compare(opd.REG_ONLY, lambda lhs, rhs: rhs > lhs)

    def lt(self):
        self.compare(opd.REG_ONLY, lambda lhs, rhs: rhs < lhs)

    def eq(self):
        self.compare(opd.REG_OR_INDIRECT, lambda lhs, rhs: lhs == rhs)

    def unknown(self):
        raise Fault(f'Unrecognized instruction `{self.code}` at instr #{self.start}')

    HANDLERS = {
        ops.LABEL: label,
        ops.DMP: dmp,
        ops.PANIC: panic,
        ops.FAULT: fault,
        ops.COMMENT: comment,
        ops.MEMSET: memset,
        ops.MOV: mov,
        ops.GOTO: goto,
        ops.CGT: cgt,
        ops.INV: inv,
        ops.OUTSTR: outstr,
        ops.OUTBYTE: outbyte,
        ops.VFSR: vfsr,
        ops.VRLX: vrlx,

        ops.ADD: add,
        ops.SUB: sub,
        ops.MUL: mul,
        ops.DIV: div,

        ops.GRT: grt,
        ops.LT: lt,
        ops.EQ: eq
    }

    # -- Implementation -- #

    def enter_overlay(self, assembly: asm.Assembly):
        if len(self.frames) >= self.settings.max_overlay_depth:
            raise OverlayDepthExceeded(
                f'Overlay depth {self.settings.max_overlay_depth} exceeded at instr #{self.start}'
            )

        # Resume after the vrlx operand
        self.frames.append(Frame(self.ip, self.tokens, self.labels))
        lg.debug(f'Overlay enter, depth {len(self.frames)}')

        self.ip = 0
        self.tokens = assembly.tokens
        self.labels = assembly.labels

    def leave_overlay(self):
        frame = self.frames.pop()
        lg.debug(f'Overlay leave, depth {len(self.frames)}')

        self.ip = frame.ip
        self.tokens = frame.tokens
        self.labels = frame.labels

    def report_fault(self, fault: Fault):
        lg.warning(f'Continuing after fault: {fault}')
        self.emit(f'!!! FAULTED !!!\n  Cause: {fault}\n')

    def finished(self) -> bool:
        return self.ip >= len(self.tokens) and not self.frames

    def exec_next(self):
        self.start = self.ip
        self.code = self.next()
        handler = self.HANDLERS.get(self.code, Executor.unknown)

        try:
            handler(self)
        except Fault as e:
            if not self.settings.continue_after_fault:
                raise

            self.report_fault(e)

    def run(self):
        while True:
            if self.ip < len(self.tokens):
                self.exec_next()
            elif self.frames:
                self.leave_overlay()
            else:
                break
