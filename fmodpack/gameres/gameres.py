# gameres.py - fmod 아카이브 공용 리소스 모델
# FileRecord / ArchiveMetadata / ExportSnapshot 구조, 예외 종류, 아카이브 포맷 베이스를 한 곳에 모음.

import os
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

DEFAULT_INDEX_WIDTH = 2
SUPPORTED_INDEX_WIDTHS = (1, 2, 4)


# ============================
# 예외 처리
# ============================
class FmodError(Exception):
    pass

# 필수 입력 경로 없음 (작업 시작 전 중단)
class MissingInput(FmodError):
    pass

# 텍스트 디코딩 실패 → 바이너리로 재분류 (writer 내부에서 복구됨)
class EncodeFallback(FmodError):
    pass

# 인덱스/라벨 조회 실패. 파일 단위로 보고되고 나머지 파일은 계속 처리
class DecodeError(FmodError):
    pass

# 문자 수가 인덱스 폭을 넘음 (치명적)
class IndexSpaceExhausted(FmodError):
    pass

# 라벨 재시도 한도 초과 (치명적)
class LabelSpaceExhausted(FmodError):
    pass

# keys.json 구조 이상
class InvalidFormatException(FmodError):
    pass


def validate_index_width(index_width) -> int:
    if isinstance(index_width, bool) or index_width not in SUPPORTED_INDEX_WIDTHS:
        raise ValueError(f"지원하지 않는 index_width: {index_width!r} (허용: {SUPPORTED_INDEX_WIDTHS})")
    return index_width


# ============================
# 파일 레코드
# ============================
@dataclass
class FileRecord:
    path: str
    offset: int
    length: int
    binary: bool

    @property
    def end(self) -> int:
        return self.offset + self.length

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "offset": self.offset,
            "length": self.length,
            "binary": self.binary,
        }

    @classmethod
    def from_dict(cls, data) -> "FileRecord":
        if not isinstance(data, dict):
            raise InvalidFormatException(f"files 항목이 객체가 아님: {data!r}")
        try:
            path = data["path"]
            offset = data["offset"]
            length = data["length"]
            binary = data["binary"]
        except KeyError as e:
            raise InvalidFormatException(f"files 항목 필드 누락: {e}") from e

        if not isinstance(path, str):
            raise InvalidFormatException(f"path가 문자열이 아님: {path!r}")
        for name, val in (("offset", offset), ("length", length)):
            if isinstance(val, bool) or not isinstance(val, int) or val < 0:
                raise InvalidFormatException(f"{path}: {name} 값 이상: {val!r}")
        if not isinstance(binary, bool):
            raise InvalidFormatException(f"{path}: binary 값이 bool이 아님: {binary!r}")

        return cls(path=path.replace("\\", "/"), offset=offset, length=length, binary=binary)


# ============================
# 외부 소비자용 고정 스냅샷 (헤더 생성 등)
# ============================
@dataclass(frozen=True)
class ExportSnapshot:
    bin_table: tuple
    key_table: tuple
    files: tuple
    index_width: int = DEFAULT_INDEX_WIDTH

    def to_dict(self) -> dict:
        return {
            "bin": [[label, index] for label, index in self.bin_table],
            "keys": [[ch, label] for ch, label in self.key_table],
            "files": [r.to_dict() for r in self.files],
            "index_width": self.index_width,
        }


# ============================
# keys.json 메타데이터 (고정 필드)
# ============================
@dataclass
class ArchiveMetadata:
    keys: dict = field(default_factory=dict)
    bin: dict = field(default_factory=dict)
    files: list = field(default_factory=list)
    index_width: int = DEFAULT_INDEX_WIDTH

    def to_dict(self) -> dict:
        return {
            "keys": dict(self.keys),
            "bin": dict(self.bin),
            "files": [r.to_dict() for r in self.files],
            "index_width": self.index_width,
        }

    @classmethod
    def from_dict(cls, data) -> "ArchiveMetadata":
        if not isinstance(data, dict):
            raise InvalidFormatException("keys.json 최상위가 객체가 아님")

        for key in ("keys", "bin", "files"):
            if key not in data:
                raise InvalidFormatException(f"keys.json 필드 누락: {key}")

        keys, bin_map, files = data["keys"], data["bin"], data["files"]
        if not isinstance(keys, dict) or not isinstance(bin_map, dict):
            raise InvalidFormatException("keys/bin은 객체여야 함")
        if not isinstance(files, list):
            raise InvalidFormatException("files는 배열이어야 함")

        try:
            index_width = validate_index_width(data.get("index_width", DEFAULT_INDEX_WIDTH))
        except ValueError as e:
            raise InvalidFormatException(str(e)) from e

        return cls(
            keys=dict(keys),
            bin=dict(bin_map),
            files=[FileRecord.from_dict(f) for f in files],
            index_width=index_width,
        )

    @property
    def blob_size(self) -> int:
        return sum(r.length for r in self.files)

    def is_contiguous(self) -> bool:
        cursor = 0
        for r in self.files:
            if r.offset != cursor:
                return False
            cursor = r.end
        return True

    def snapshot(self) -> ExportSnapshot:
        bin_table = tuple(sorted(self.bin.items(), key=lambda kv: kv[1]))
        key_table = tuple(self.keys.items())
        files = tuple(FileRecord(r.path, r.offset, r.length, r.binary) for r in self.files)
        return ExportSnapshot(bin_table, key_table, files, self.index_width)


# ============================
# 추출 콜백
# ============================
class ArchiveOperation(Enum):
    CONTINUE = "continue"
    SKIP = "skip"
    ABORT = "abort"

EntryCallback = Callable[[int, FileRecord, str], ArchiveOperation]


# 아카이브 포맷
class ArchiveFormat(ABC):
    @abstractmethod
    def try_open(self, source):
        pass

    @abstractmethod
    def read_entry(self, arc, entry: FileRecord) -> bytes:
        pass

    # Entry 하나를 out_dir 아래에 복원
    def extract(self, arc, entry: FileRecord, out_dir: str, callback: Optional[EntryCallback] = None, index: int = 0) -> bool:
        if callback:
            decision = callback(index, entry, f"[{entry.path}]")
            if decision == ArchiveOperation.ABORT:
                logging.warning("[extract] 사용자 요청으로 중단됨")
                raise InterruptedError("User aborted extraction")
            elif decision == ArchiveOperation.SKIP:
                logging.info(f"[extract] 스킵됨: {entry.path}")
                return False

        path = self.resolve_output_path(out_dir, entry.path)
        data = self.read_entry(arc, entry)

        with self.create_file(path) as f:
            f.write(data)
        logging.info(f"[extract] 추출 완료: {entry.path}")
        return True

    # out_dir 밖으로 나가는 경로(절대 경로, ..)는 거부
    @staticmethod
    def resolve_output_path(out_dir: str, arc_path: str) -> str:
        parts = [p for p in arc_path.replace("\\", "/").split("/") if p not in ("", ".")]
        if not parts or ".." in parts or arc_path.startswith("/") or os.path.isabs(arc_path):
            raise DecodeError(f"안전하지 않은 경로: {arc_path!r}")
        return os.path.join(out_dir, *parts)

    # 지정 경로에 파일 생성 (상위 디렉토리도 생성)
    def create_file(self, path: str):
        self.create_path(path)
        return open(path, "wb")

    # 경로 상의 디렉토리를 생성
    def create_path(self, path: str):
        dir_path = os.path.dirname(path)
        if dir_path and not os.path.exists(dir_path):
            os.makedirs(dir_path, exist_ok=True)
