# fileview.py - bundle.fmod 읽기 전용 뷰
# 파일은 메모리 맵으로 열고, 패킹 직후의 메모리 상 blob은 같은 인터페이스로 감싼다.
# FileView/ArcFile structure ported from C# by morkt (GARbro: https://github.com/morkt/GARbro)

# MIT License (for GARbro ported structure)
# Copyright (c) morkt

# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to
# deal in the Software without restriction, including without limitation the
# rights to use, copy, modify, merge, publish, distribute, sublicense, and/or
# sell copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:

# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.

# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING
# FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS
# IN THE SOFTWARE.

# GARbro(by. morkt) 1.1.6 ver.의 ArcView/ArcFile 구조를 기준으로 작성했습니다.

import os
import mmap
import logging


#FileView: bundle.fmod를 메모리 맵으로 열어 오프셋 단위로 읽을 수 있도록 처리
class FileView:
    def __init__(self, filepath: str = None, data: bytes = None, name: str = None):
        self.filepath = filepath
        self.file = None
        self.mmap = None

        if filepath is not None:
            self.file = open(filepath, "rb")
            self.size = os.fstat(self.file.fileno()).st_size
            self.name = name or os.path.basename(filepath)
            # 빈 파일은 mmap 불가
            if self.size > 0:
                self.mmap = mmap.mmap(self.file.fileno(), length=0, access=mmap.ACCESS_READ)
                self._buffer = self.mmap
            else:
                self._buffer = memoryview(b"")
        else:
            self._buffer = memoryview(bytes(data or b""))
            self.size = len(self._buffer)
            self.name = name or "<memory>"

        logging.debug(f"[fileview] '{self.name}' 열림 (크기: {self.size} bytes)")

    @classmethod
    def from_bytes(cls, data: bytes, name: str = "<memory>") -> "FileView":
        return cls(data=data, name=name)

    def __len__(self):
        return self.size

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def closed(self) -> bool:
        return self._buffer is None

    def read_at(self, offset: int, size: int) -> bytes:
        if self.closed:
            raise ValueError(f"닫힌 FileView: {self.name}")
        if offset < 0 or size < 0 or offset + size > self.size:
            raise ValueError(f"읽기 범위 초과: offset=0x{offset:X}, size={size}, file_size={self.size}")
        if size == 0:
            return b""
        data = bytes(self._buffer[offset:offset + size])
        logging.debug(f"[fileview] read_at(offset=0x{offset:X}, size={size}) => {data[:16].hex()}")
        return data

    # 메모리 맵과 파일 닫기
    def close(self):
        if self.mmap is not None:
            self.mmap.close()
            self.mmap = None
        if self.file is not None:
            self.file.close()
            self.file = None
        self._buffer = None
        logging.debug(f"[FileView] '{self.name}' 닫힘")
