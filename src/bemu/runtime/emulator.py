import sys
from pathlib import Path
import logging as lg
import traceback
from typing import List, TextIO, Tuple

import click

from bemu.common.settings import MachineSettings, load_settings
from bemu.runtime.vfs import VFS, File
import bemu.runtime.executor as executor
import bemu.sasm.asm as asm


EXIT_OK = 0
EXIT_FAULT = 2
EXIT_KEYBOARD = 3
EXIT_EXEC_ERROR = 100
EXIT_PANIC = 101

FAULT_POLICIES = {'continue': True, 'stop': False}


def seed_vfs(vfs: VFS, paths: List[Path], read_only: bool) -> List[File]:
    files = []

    for path in paths:
        file = vfs.create_file(path.read_bytes(), path.name, read_only)
        vfs.write_file(file)
        lg.info(f'VFS file {file.identifier}: {file.name}')
        files.append(file)

    return files


def execute(
    boot: bytes,
    settings: MachineSettings | None = None,
    vfs: VFS | None = None,
    output: TextIO | None = None
) -> executor.Executor:
    try:
        assembly = asm.load_program(boot)
    except asm.AsmError as e:
        raise executor.Panic(f'Corrupted boot image: {e}') from e

    proc = executor.Executor(assembly, vfs, settings, output)
    proc.run()
    return proc


@click.command()
@click.option('-v', '--verbose', is_flag=True, help='Sets logging level to debug')
@click.option('-c', '--config', type=Path, help='TOML file with a [machine] table')
@click.option('-f', '--file', 'ro_files', multiple=True, type=Path, help='Read-only VFS file')
@click.option('-w', '--writable', 'rw_files', multiple=True, type=Path, help='Writable VFS file')
@click.option(
    '--fault-policy',
    type=click.Choice(list(FAULT_POLICIES)),
    help='continue: report faults and skip the instruction; stop: halt on the first fault'
)
@click.option('--dump-vfs', is_flag=True, help='Include VFS contents in dmp output')
@click.argument('boot_filename', type=Path)
def run(
    verbose: bool,
    config: Path | None,
    ro_files: Tuple[Path],
    rw_files: Tuple[Path],
    fault_policy: str | None,
    dump_vfs: bool,
    boot_filename: Path
):
    lg.basicConfig(level=lg.DEBUG if verbose else lg.INFO)
    lg.info("BEMU")

    try:
        settings = load_settings(config) if config is not None else MachineSettings()
        settings.update(
            continue_after_fault=FAULT_POLICIES[fault_policy] if fault_policy is not None else None,
            dump_vfs=dump_vfs or None
        )

        vfs = VFS()
        seed_vfs(vfs, list(ro_files), read_only=True)
        seed_vfs(vfs, list(rw_files), read_only=False)

        boot = boot_filename.read_bytes()
        execute(boot, settings, vfs)
        sys.stdout.flush()
        lg.info('Execution finished')
        sys.exit(EXIT_OK)

    except executor.Panic as e:
        lg.error(f'Execution halted on panic: {e}')
        sys.exit(EXIT_PANIC)

    except executor.Fault as e:
        lg.error(f'!!! FAULTED !!! Cause: {e}')
        sys.exit(EXIT_FAULT)

    except KeyboardInterrupt:
        lg.info('Execution halted by the user')
        sys.exit(EXIT_KEYBOARD)

    except Exception as e:
        lg.info(f'Execution halted on general error {e}')
        traceback.print_exc()
        sys.exit(EXIT_EXEC_ERROR)


if __name__ == '__main__':
    run()
