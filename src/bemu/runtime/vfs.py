''' Flat in-memory file store '''

import logging as lg
from dataclasses import dataclass
from typing import Dict, Mapping


class VfsError(Exception):
    pass


class PermissionDenied(VfsError):
    def __init__(self, identifier: int):
        super().__init__(f'VFS error: File {identifier} is read-only!')
        self.identifier = identifier


class NotFound(VfsError):
    def __init__(self, identifier: int):
        super().__init__(f'VFS error: File {identifier} does not exist!')
        self.identifier = identifier


@dataclass(frozen=True)
class File:
    identifier: int
    name: str
    contents: bytes
    read_only: bool = False


class VFS:
    files: Dict[int, File]
    ct: int  # Last allocated identifier

    def __init__(self, files: Mapping[int, File] | None = None):
        self.files = dict(files) if files is not None else dict()
        self.ct = max(self.files, default=0)

    def create_file(self, contents: bytes, name: str, read_only: bool = False) -> File:
        ''' Allocates an identifier; the file is not stored until written '''
        self.ct += 1
        return File(self.ct, name, bytes(contents), read_only)

    def write_file(self, file: File):
        existing = self.files.get(file.identifier)

        if existing is not None and existing.read_only:
            raise PermissionDenied(file.identifier)

        lg.debug(f'VFS write {file.identifier}:{file.name} ({len(file.contents)} bytes)')
        self.files[file.identifier] = file

    def read_file(self, identifier: int) -> File:
        try:
            return self.files[identifier]
        except KeyError:
            raise NotFound(identifier) from None

    def dmp(self) -> Mapping[int, File]:
        return self.files
