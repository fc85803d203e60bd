# type: ignore
import io

import pytest

from bemu.common.settings import MachineSettings
import bemu.runtime.executor as executor
import bemu.sasm.asm as asm

import unit_utils
from fixtures import with_vfs  # noqa: F401


def test_hello(capsys):
    unit_utils.execute_file('output/hello.sasm')

    with capsys.disabled():
        assert capsys.readouterr().out == unit_utils.load_file('output/output.log')


def test_outstr_letter(capsys):
    unit_utils.execute_source('memset 0 65 mov rax 0 outstr rax')
    assert capsys.readouterr().out == 'A'


def test_outstr_is_lossy(capsys):
    unit_utils.execute_source('memset 0 200 mov rax 0 outstr rax outbyte rax')
    assert capsys.readouterr().out == '\ufffd200'


def test_dump(capsys):
    settings = MachineSettings().update(memory_size=2)
    unit_utils.execute_source('memset 0 7 mov rbx 0 dmp', settings)

    assert capsys.readouterr().out == (
        '!!! DUMPED !!!\n'
        '  Registers:\n'
        '    RAX: 0\n'
        '    RBX: 7\n'
        '    RCX: 0\n'
        '    RDX: 0\n'
        '  Memory:\n'
        '    0: 7\n'
        '    1: 0\n'
    )


def test_dump_with_vfs(with_vfs):  # noqa: F811
    unit_utils.add_file(with_vfs, 'dmp', name='boot')
    unit_utils.add_file(with_vfs, '', name='scratch', read_only=False)

    out = io.StringIO()
    settings = MachineSettings().update(memory_size=1, dump_vfs=True)
    proc = executor.Executor(asm.assemble('dmp'), with_vfs, settings, out)
    proc.run()

    assert out.getvalue().endswith(
        '  VFS:\n'
        '    1: boot (3 bytes, read-only)\n'
        '    2: scratch (0 bytes)\n'
    )


@pytest.mark.parametrize('source', ['outstr', 'outbyte 5', 'outstr label'])
def test_output_needs_value(source):
    with pytest.raises(executor.Panic):
        unit_utils.execute_source(source)
