# utility.py - fmod 패커/추출기 공용 유틸
# 텍스트 판별, keys.json 입출력, 원자적 저장, 로거 설정.

import os
import json
import logging
import tempfile
from logging.handlers import RotatingFileHandler

from fmodpack.gameres.gameres import ArchiveMetadata, EncodeFallback, InvalidFormatException

BUNDLE_NAME = "bundle.fmod"
KEYS_NAME = "keys.json"

# ============================
# 텍스트 판별, 디코딩 관련 유틸
# ============================
class TextSaver:
    # 확장자 기반 판별만 함 (내용 스니핑 없음)
    TEXT_EXTENSIONS = [
        ".js", ".ts", ".tsx", ".d.ts", ".json", ".html",
        ".css", ".cjs", ".mjz", ".md", ".xml", ".ejs",
        ".txt", ".csv", ".svg",
    ]
    ENCODING = "utf-8"

    @classmethod
    def is_text_file(cls, name: str) -> bool:
        # ".d.ts" 같은 복합 확장자도 허용. ".json" 같은 이름만 있는 닷파일은 제외
        base = os.path.basename(name.replace("\\", "/")).lower()
        return any(base.endswith(ext) and base != ext for ext in cls.TEXT_EXTENSIONS)

    @classmethod
    def safe_decode(cls, data: bytes, name: str = "") -> str:
        try:
            return data.decode(cls.ENCODING)
        except UnicodeDecodeError as e:
            raise EncodeFallback(f"{name}: {cls.ENCODING} 디코딩 실패 ({e.reason} @ {e.start})") from e

    @classmethod
    def encode(cls, text: str) -> bytes:
        return text.encode(cls.ENCODING)


# ============================
# 원자적 저장 (임시 파일 → os.replace)
# ============================
def write_atomic(path: str, data: bytes):
    dir_path = os.path.dirname(os.path.abspath(path))
    os.makedirs(dir_path, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".tmp_", dir=dir_path)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


# ============================
# keys.json 저장/로드. 추출 시 필수!
# ============================
class KeysMetadataManager:
    def __init__(self, json_path: str):
        self.json_path = json_path

    def load_metadata(self) -> ArchiveMetadata:
        with open(self.json_path, "r", encoding="utf-8") as f:
            try:
                raw = json.load(f)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise InvalidFormatException(f"JSON 파싱 실패: {self.json_path}: {e}") from e

        meta = ArchiveMetadata.from_dict(raw)
        logging.debug(f"[KeysMetadataManager] 로드 완료: 문자 {len(meta.keys)}개, 파일 {len(meta.files)}개")
        return meta

    def dumps(self, meta: ArchiveMetadata) -> bytes:
        # 짝 없는 서로게이트 문자 때문에 ensure_ascii 유지
        return json.dumps(meta.to_dict(), ensure_ascii=True, indent=2).encode("utf-8")


# ============================
# 로거 설정
# ============================
class SafeRotatingFileHandler(RotatingFileHandler):
    def doRollover(self):
        try:
            super().doRollover()
        except PermissionError as e:
            logging.warning(f"[SafeRotatingFileHandler] 롤오버 실패 (무시됨): {e}")
        except OSError as e:
            logging.warning(f"[SafeRotatingFileHandler] 예상치 못한 오류 (무시됨): {e}")


def setup_logger(log_path: str = None, console_level=logging.WARNING):
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        if isinstance(handler, RotatingFileHandler):
            handler.close()

    formatter = logging.Formatter("[%(levelname)s] %(message)s")

    if log_path:
        log_dir = os.path.dirname(log_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = SafeRotatingFileHandler(
            log_path,
            mode="a",
            maxBytes=100_000_000,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # 콘솔 로그도 병렬 출력
    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    return logger
