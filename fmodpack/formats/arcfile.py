# arcfile.py - fmod 아카이브 컨테이너
# 문자 테이블 + 파일 레코드 + blob 뷰를 하나로 묶고, 항목 단위 추출을 담당함.
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
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from tqdm import tqdm

from fmodpack.formats.fileview import FileView
from fmodpack.gameres.gameres import (
    ArchiveMetadata,
    ArchiveOperation,
    DecodeError,
    EntryCallback,
    ExportSnapshot,
    FileRecord,
)


@dataclass
class ExtractReport:
    extracted: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: List[tuple] = field(default_factory=list)   # (path, 오류 메시지)

    @property
    def ok(self) -> bool:
        return not self.failed


# ArcFile 컨테이너
class ArcFile:
    def __init__(self, view: FileView, format, entries: List[FileRecord], table):
        self.view = view
        self.format = format
        self.table = table
        self.name = view.name if hasattr(view, "name") else "unnamed"

        # 순회 순서 그대로 유지 (오프셋 정렬 안 함)
        self.entries = list(entries)

        meta = self.metadata()
        if not meta.is_contiguous() or meta.blob_size != view.size:
            logging.warning(
                f"[ArcFile] '{self.name}' 레코드가 연속적이지 않음 "
                f"(레코드 합계 {meta.blob_size}, blob {view.size})"
            )

        logging.debug(f"[ArcFile] '{self.name}' 초기화, 항목 수: {len(self.entries)}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    #내부 View 리소스를 정리
    def close(self):
        self.view.close()
        logging.debug(f"[ArcFile] '{self.name}' 닫힘")

    def metadata(self) -> ArchiveMetadata:
        keys, bin_map = self.table.to_metadata()
        return ArchiveMetadata(keys=keys, bin=bin_map, files=list(self.entries), index_width=self.table.index_width)

    def snapshot(self) -> ExportSnapshot:
        return self.metadata().snapshot()

    #항목의 원시 페이로드(blob 구간)를 반환
    def open_entry(self, entry: FileRecord) -> bytes:
        if entry.offset < 0 or entry.length < 0 or entry.end > self.view.size:
            raise DecodeError(
                f"범위 초과: {entry.path} @0x{entry.offset:X} + {entry.length} > {self.view.size}"
            )
        return self.view.read_at(entry.offset, entry.length)

    #항목을 복원된 원본 바이트로 반환
    def read_entry(self, entry: FileRecord) -> bytes:
        return self.format.read_entry(self, entry)

    #개별 항목을 파일로 추출
    def extract_entry(self, entry: FileRecord, output_dir: str, callback: Optional[EntryCallback] = None, index: int = 0) -> bool:
        return self.format.extract(self, entry, output_dir, callback=callback, index=index)

    #전체 항목을 지정된 폴더로 추출. 실패한 파일은 기록만 하고 계속 진행
    def extract_all(self, output_dir: str, callback: Optional[EntryCallback] = None,
                    skip_binary: bool = False, progress: bool = True) -> ExtractReport:
        os.makedirs(output_dir, exist_ok=True)
        report = ExtractReport()

        if skip_binary:
            user_callback = callback

            def callback(index, entry, label):
                if entry.binary:
                    return ArchiveOperation.SKIP
                return user_callback(index, entry, label) if user_callback else ArchiveOperation.CONTINUE

        for i, entry in enumerate(tqdm(self.entries, desc="추출 진행중", unit="파일", disable=not progress)):
            try:
                if self.extract_entry(entry, output_dir, callback=callback, index=i):
                    report.extracted.append(entry.path)
                else:
                    report.skipped.append(entry.path)
            except InterruptedError:
                # ABORT 콜백 (OSError 하위 클래스라 먼저 분리)
                raise
            except (DecodeError, OSError) as e:
                logging.error(f"[ArcFile] 추출 실패 - {entry.path}: {e}")
                report.failed.append((entry.path, str(e)))

        logging.info(
            f"[ArcFile] 전체 추출 완료: {output_dir} "
            f"(성공 {len(report.extracted)}, 스킵 {len(report.skipped)}, 실패 {len(report.failed)})"
        )
        return report
