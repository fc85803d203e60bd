from pathlib import Path
import logging as lg
import sys
from typing import Tuple

import click

from bemu.sasm.asm import AsmError, CompilationItem, compile_items, emit_image


def collect_file(filepath: str | Path) -> CompilationItem:
    if isinstance(filepath, str):
        filepath = Path(filepath)

    lg.debug(f'Collecting file {filepath}')
    item = CompilationItem()
    item.contents = filepath.read_text()
    item.modulename = filepath.stem
    return item


def collect_files(filepaths: list[Path]) -> list[CompilationItem]:
    return [collect_file(path) for path in filepaths]


@click.command()
@click.option('-v', '--verbose', is_flag=True, help='Sets logging level to debug')
@click.argument('sources', nargs=-1, type=Path)
@click.argument('image', type=Path)
def compile(verbose: bool, sources: Tuple[Path], image: Path):
    lg.basicConfig(level=lg.DEBUG if verbose else lg.INFO)
    lg.info("BEMU ASM")

    try:
        assembly = compile_items(collect_files(list(sources)))
    except AsmError as e:
        lg.error(f'Assembly failed: {e}')
        sys.exit(1)

    lg.info(f'{len(assembly.tokens)} tokens, {len(assembly.labels)} labels')
    image.parent.mkdir(parents=True, exist_ok=True)
    image.write_text(emit_image(assembly))


if __name__ == "__main__":
    compile()
