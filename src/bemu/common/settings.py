from pathlib import Path
import logging as lg
import tomllib

import bemu.common.hwconf as hw


class MachineSettings:
    memory_size: int
    reserved_min: int
    continue_after_fault: bool
    max_overlay_depth: int
    dump_vfs: bool

    def __init__(self):
        self.memory_size = hw.MEMORY_SIZE
        self.reserved_min = hw.RESERVED_MIN_MEM_ADDR
        self.continue_after_fault = False
        self.max_overlay_depth = hw.MAX_OVERLAY_DEPTH
        self.dump_vfs = False

    def update(
        self,
        memory_size: int | None = None,
        reserved_min: int | None = None,
        continue_after_fault: bool | None = None,
        max_overlay_depth: int | None = None,
        dump_vfs: bool | None = None
    ):
        if memory_size is not None:
            self.memory_size = memory_size

        if reserved_min is not None:
            self.reserved_min = reserved_min

        if continue_after_fault is not None:
            self.continue_after_fault = continue_after_fault

        if max_overlay_depth is not None:
            self.max_overlay_depth = max_overlay_depth

        if dump_vfs is not None:
            self.dump_vfs = dump_vfs

        self.validate()
        return self

    def validate(self):
        if self.memory_size <= 0:
            raise UserWarning(f'Memory size must be positive, got {self.memory_size}')

        if self.reserved_min < 0 or self.reserved_min > self.memory_size:
            raise UserWarning(
                f'Reserved floor {self.reserved_min} outside memory of {self.memory_size} bytes'
            )

        if self.max_overlay_depth < 0:
            raise UserWarning(f'Overlay depth must not be negative, got {self.max_overlay_depth}')


KNOWN_KEYS = {
    'memory_size': int,
    'reserved_min': int,
    'continue_after_fault': bool,
    'max_overlay_depth': int,
    'dump_vfs': bool
}


def load_settings(config_path: Path) -> MachineSettings:
    ''' Reads the [machine] table of a TOML file '''
    lg.debug(f'Loading settings from {config_path}')
    config = tomllib.loads(config_path.read_text())
    machine = config.get('machine', {})

    for key, value in machine.items():
        if key not in KNOWN_KEYS:
            raise UserWarning(f'Unknown machine setting {key}')

        # Exact type match, bool is an int
        expected = KNOWN_KEYS[key]
        if type(value) is not expected:
            raise UserWarning(f'Setting {key} must be {expected.__name__}, got {value!r}')

    return MachineSettings().update(**machine)
