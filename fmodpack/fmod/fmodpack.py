# fmodpack.py - bundle.fmod 패킹
# 입력 트리를 순회 순서대로 이어붙이고, 파일마다 offset/length/binary 레코드를 남긴다.
# 텍스트 확장자 파일은 문자 테이블 인덱스 스트림으로, 나머지는 원본 바이트 그대로 기록.

import os
import logging
import random
from typing import Optional

from tqdm import tqdm

from fmodpack.fmod.fmodkeys import CharacterTable
from fmodpack.fmod.fmodunpack import FmodOpener
from fmodpack.fmod.textcodec import TextCodec
from fmodpack.formats.arcfile import ArcFile
from fmodpack.formats.fileview import FileView
from fmodpack.gameres.gameres import (
    DEFAULT_INDEX_WIDTH,
    ArchiveMetadata,
    EncodeFallback,
    ExportSnapshot,
    FileRecord,
)
from fmodpack.gameres.utility import BUNDLE_NAME, KEYS_NAME, KeysMetadataManager, TextSaver, write_atomic


class FmodWriter:
    def __init__(self, table: Optional[CharacterTable] = None,
                 index_width: int = DEFAULT_INDEX_WIDTH, seed: Optional[int] = None, progress: bool = True):
        if table is None:
            rng = random.Random(seed) if seed is not None else None
            table = CharacterTable(index_width=index_width, rng=rng)

        self.table = table
        self.codec = TextCodec(table)
        self.progress = progress
        self.entries = []     # {"arc_path", "src_path", "data"} 등록 순서 = 순회 순서
        self.records = []
        self.fallbacks = []   # 텍스트 → 바이너리로 재분류된 경로
        self.output = bytearray()
        self.finished = False
        self.write = self.Writer(self)
        self.save = self.Save(self)

    def add_bytes(self, arc_path: str, data: bytes, src_path: str = None):
        if self.finished:
            raise RuntimeError("이미 write_data()가 끝난 writer에는 항목을 추가할 수 없음")
        arc_path = arc_path.replace("\\", "/")
        self.entries.append({
            "arc_path": arc_path,
            "src_path": src_path,
            "data": bytes(data),
        })

    def add_entry(self, arc_path: str, src_path: str):
        with open(src_path, "rb") as f:
            data = f.read()
        self.add_bytes(arc_path, data, src_path=src_path)

    def add_auto(self, input_dir: str, arc_path: str = "", root_dir: str = None):
        if root_dir is None:
            root_dir = input_dir  # 최초 호출 시 root_dir 고정

        full_path = os.path.normpath(os.path.join(input_dir, arc_path))
        rel_arc_path = os.path.relpath(full_path, root_dir).replace("\\", "/")

        # ────── 심볼릭 링크 / 특수 파일은 건너뜀 ──────
        if arc_path and os.path.islink(full_path):
            logging.warning(f"[add_auto] 심볼릭 링크 건너뜀: {full_path}")

        # ────── 디렉토리 처리 ──────
        elif os.path.isdir(full_path):
            for child in sorted(os.listdir(full_path)):
                self.add_auto(full_path, child, root_dir=root_dir)

        # ────── 파일 처리 ──────
        elif os.path.isfile(full_path):
            self.add_entry(rel_arc_path, full_path)

        else:
            logging.warning(f"[add_auto] 파일/디렉토리 아님: {full_path}")

    def metadata(self) -> ArchiveMetadata:
        keys, bin_map = self.table.to_metadata()
        return ArchiveMetadata(keys=keys, bin=bin_map, files=list(self.records), index_width=self.table.index_width)

    def snapshot(self) -> ExportSnapshot:
        return self.metadata().snapshot()

    # 패킹된 blob을 그대로 여는 ArcFile (테이블은 동결됨)
    def to_archive(self) -> ArcFile:
        view = FileView.from_bytes(bytes(self.output), name=BUNDLE_NAME)
        return FmodOpener().open_metadata(self.metadata(), view)

    class Writer:
        def __init__(self, outer):
            self.outer = outer

        # 텍스트 인코딩 시도. 실패 시 EncodeFallback
        def encode_entry(self, arc_path: str, data: bytes) -> bytes:
            text = TextSaver.safe_decode(data, arc_path)
            return self.outer.codec.encode(text)

        # 파일 데이터 작성 (순회 순서, 간격 없음)
        def write_data(self):
            outer = self.outer
            if outer.finished:
                raise RuntimeError("write_data()는 한 번만 호출 가능")

            total = len(outer.entries)
            cursor = len(outer.output)

            for i, entry in enumerate(tqdm(outer.entries, desc="패킹 진행중", unit="파일", disable=not outer.progress)):
                arc_path = entry["arc_path"]
                raw = entry["data"]
                logging.debug(f"[write_data] {i + 1}/{total}: {arc_path}")

                is_binary = True
                payload = raw
                if TextSaver.is_text_file(arc_path):
                    try:
                        payload = self.encode_entry(arc_path, raw)
                        is_binary = False
                    except EncodeFallback as e:
                        logging.warning(f"[write_data] 텍스트 인코딩 실패, 바이너리로 대체: {e}")
                        outer.fallbacks.append(arc_path)

                outer.output += payload
                outer.records.append(FileRecord(arc_path, cursor, len(payload), is_binary))
                cursor += len(payload)

                # 원본 데이터는 더 이상 필요 없음
                entry["data"] = None

            assert cursor == len(outer.output), f"오프셋 커서 불일치: {cursor} != {len(outer.output)}"
            outer.finished = True
            logging.info(
                f"[write_data] 파일 {total}개, blob {len(outer.output)} bytes, 문자 {len(outer.table)}개"
            )
            return outer.records

    class Save:
        def __init__(self, outer):
            self.outer = outer

        # bundle.fmod + keys.json 저장
        def to_dir(self, out_mod: str):
            outer = self.outer
            if not outer.finished:
                raise RuntimeError("write_data() 호출 전에는 저장할 수 없음")

            os.makedirs(out_mod, exist_ok=True)
            bundle_path = os.path.join(out_mod, BUNDLE_NAME)
            keys_path = os.path.join(out_mod, KEYS_NAME)

            manager = KeysMetadataManager(keys_path)
            keys_bytes = manager.dumps(outer.metadata())

            # 이전 실행의 keys.json이 새 blob과 짝지어지지 않도록 먼저 제거. keys.json은 마지막에 기록
            if os.path.exists(keys_path):
                os.remove(keys_path)
            write_atomic(bundle_path, bytes(outer.output))
            write_atomic(keys_path, keys_bytes)

            logging.info(f"[save] 저장 완료 → {bundle_path}, {keys_path}")
            return bundle_path, keys_path
