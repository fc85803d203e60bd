# type: ignore
import pytest

from bemu.common.settings import MachineSettings
from bemu.runtime.operands import Register
import bemu.runtime.executor as executor

import unit_utils
from fixtures import lenient  # noqa: F401


@pytest.mark.parametrize('addr', [0, 17, 255])
def test_memset_then_mov(addr):
    proc = unit_utils.execute_source(f'memset {addr} 99 mov rdx {addr}')
    assert proc.gp[Register.RDX] == 99


def test_mov_modes():
    proc = unit_utils.execute_source(
        'memset 0 5 mov rax 0 '     # rax = M[0] = 5
        'mov rbx rax '              # rbx = 5
        'mov *rax rbx '             # M[5] = 5
        'memset 6 42 '
        'mov 7 6 '                  # M[7] = M[6]
        'memset 1 7 mov rcx 1 '     # rcx = 7
        'mov rdx *rcx'              # rdx = M[7]
    )

    assert proc.memory[5] == 5
    assert proc.memory[7] == 42
    assert proc.gp[Register.RDX] == 42


@pytest.mark.parametrize('source', [
    'memset 256 1',
    'mov 300 rax',
    'mov rax 256',
    'memset 0 255 mov rax 0 mov rbx *rax',
])
def test_out_of_bounds_is_fatal_by_default(source):
    with pytest.raises(executor.Fault, match='Segmentation fault'):
        unit_utils.execute_source(source, MachineSettings().update(memory_size=255))


def test_reserved_floor():
    settings = MachineSettings().update(reserved_min=2)

    with pytest.raises(executor.Fault):
        unit_utils.execute_source('memset 1 4', settings)

    proc = unit_utils.execute_source('memset 2 4', settings)
    assert proc.memory[2] == 4


def test_fault_skips_instruction(lenient, capsys):  # noqa: F811
    proc = unit_utils.execute_source('memset 999 1 mov rax 999 memset 0 9 mov rax 0', lenient)

    out = capsys.readouterr().out
    assert out.count('!!! FAULTED !!!') == 2
    assert 'Address: 999. Instr #0' in out
    assert proc.gp[Register.RAX] == 9
    assert bytes(proc.memory) == bytes([9]) + bytes(255)


def test_fault_opcode(lenient, capsys):  # noqa: F811
    with pytest.raises(executor.Fault, match='Fault requested by instr #0.'):
        unit_utils.execute_source('fault')

    unit_utils.execute_source('fault inv rax', lenient)
    assert capsys.readouterr().out == '!!! FAULTED !!!\n  Cause: Fault requested by instr #0.\n'


def test_unknown_opcode(lenient):  # noqa: F811
    with pytest.raises(executor.Fault, match='Unrecognized instruction `bogus` at instr #4'):
        unit_utils.execute_source('inv rax inv rax bogus')

    proc = unit_utils.execute_source('bogus inv rax', lenient)
    assert proc.gp[Register.RAX] == 1


@pytest.mark.parametrize('source', [
    'memset x 1',
    'memset 0 256',
    'memset 0 -1',
    'memset rax 1',
    'mov rax',
    'mov rax label',
    'mov rzx 0',
])
def test_malformed_operands_panic(source, lenient):  # noqa: F811
    with pytest.raises(executor.Panic):
        unit_utils.execute_source(source, lenient)
