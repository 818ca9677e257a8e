# fmodunpack.py - bundle.fmod + keys.json 언팩
# 디렉토리에서 아카이브를 열고, 텍스트 항목은 인덱스 스트림을 다시 문자열로 복원함.

import os
import logging

from fmodpack.fmod.fmodkeys import CharacterTable
from fmodpack.fmod.textcodec import decode_text
from fmodpack.formats.arcfile import ArcFile
from fmodpack.formats.fileview import FileView
from fmodpack.gameres.gameres import ArchiveFormat, ArchiveMetadata, FileRecord, MissingInput
from fmodpack.gameres.utility import BUNDLE_NAME, KEYS_NAME, KeysMetadataManager, TextSaver


class FmodOpener(ArchiveFormat):
    # mod_dir 안의 bundle.fmod, keys.json을 열어 ArcFile로 반환
    def try_open(self, mod_dir: str) -> ArcFile:
        bundle_path = os.path.join(mod_dir, BUNDLE_NAME)
        keys_path = os.path.join(mod_dir, KEYS_NAME)

        missing = [p for p in (bundle_path, keys_path) if not os.path.isfile(p)]
        if missing:
            raise MissingInput(f"{BUNDLE_NAME} 또는 {KEYS_NAME} 없음: {', '.join(missing)}")

        meta = KeysMetadataManager(keys_path).load_metadata()
        view = FileView(bundle_path)
        arc = self.open_metadata(meta, view)
        logging.info(f"[FmodOpener] 오픈 성공 → {mod_dir} (항목 {len(arc.entries)}개)")
        return arc

    # 이미 읽어 둔 메타데이터 + blob 뷰로 ArcFile 구성
    def open_metadata(self, meta: ArchiveMetadata, view: FileView) -> ArcFile:
        try:
            table = CharacterTable.from_metadata(meta.keys, meta.bin, meta.index_width).freeze()
        except Exception:
            view.close()
            raise
        return ArcFile(view, self, meta.files, table)

    # binary → 그대로, 텍스트 → 인덱스 스트림 디코딩 후 UTF-8
    def read_entry(self, arc: ArcFile, entry: FileRecord) -> bytes:
        data = arc.open_entry(entry)
        if entry.binary:
            return data

        text = decode_text(data, arc.table)
        return TextSaver.encode(text)
