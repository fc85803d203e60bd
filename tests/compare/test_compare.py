# type: ignore
import pytest

from bemu.runtime.operands import Register
import bemu.runtime.executor as executor

import unit_utils

# rax = 3, rbx = 5
SETUP = 'memset 0 3 memset 1 5 mov rax 0 mov rbx 1 '


@pytest.mark.parametrize('instr, result', [
    ('grt rcx rax rbx', 1),     # 5 > 3
    ('grt rcx rbx rax', 0),     # 3 > 5
    ('grt rcx rax rax', 0),
    ('lt rcx rax rbx', 0),      # 5 < 3
    ('lt rcx rbx rax', 1),      # 3 < 5
    ('eq rcx rax rbx', 0),
    ('eq rcx rbx rbx', 1),
])
def test_registers(instr, result):
    proc = unit_utils.execute_source(SETUP + 'memset 2 7 mov rcx 2 ' + instr)
    assert proc.gp[Register.RCX] == result


def test_eq_indirect():
    # M[3] = 5 so *rax == rbx
    proc = unit_utils.execute_source(SETUP + 'memset 3 5 eq rdx *rax rbx eq rcx *rax *rbx')

    assert proc.gp[Register.RDX] == 1
    assert proc.gp[Register.RCX] == 0


@pytest.mark.parametrize('instr', [
    'grt rcx *rax rbx',
    'lt rcx rax 3',
    'eq *rcx rax rbx',
    'eq rcx rax',
])
def test_rejected_operands(instr):
    with pytest.raises(executor.Panic):
        unit_utils.execute_source(SETUP + instr)
