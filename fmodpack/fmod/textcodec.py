# textcodec.py - 텍스트 ↔ 인덱스 스트림 변환
# UTF-16 코드 유닛 단위로 문자 테이블 인덱스를 빅엔디안 고정폭 정수로 기록함.
# (서로게이트 쌍은 두 글자로 취급. 원본 JS 패커의 문자열 모델과 동일)

import logging
import numpy as np

from fmodpack.gameres.gameres import DecodeError
from fmodpack.fmod.fmodkeys import CharacterTable

INDEX_DTYPES = {
    1: np.dtype(">u1"),
    2: np.dtype(">u2"),
    4: np.dtype(">u4"),
}

UTF16 = "utf-16-be"


def to_code_units(text: str) -> np.ndarray:
    raw = text.encode(UTF16, "surrogatepass")
    return np.frombuffer(raw, dtype=">u2")


def from_code_units(units: np.ndarray) -> str:
    return units.astype(">u2").tobytes().decode(UTF16)


def encode_text(text: str, table: CharacterTable) -> bytes:
    if not text:
        return b""

    units = to_code_units(text)

    # 처음 등장한 순서대로 테이블에 등록
    lut = {}
    for unit in dict.fromkeys(units.tolist()):
        ch = chr(unit)
        table.ensure_entry(ch)
        lut[unit] = table.index_of(ch)

    indices = np.fromiter((lut[u] for u in units.tolist()), dtype=np.int64, count=len(units))
    out = indices.astype(INDEX_DTYPES[table.index_width]).tobytes()

    assert len(out) == len(units) * table.index_width, f"출력 길이 불일치: {len(out)}"
    return out


def decode_text(buf: bytes, table: CharacterTable) -> str:
    width = table.index_width
    if len(buf) % width != 0:
        raise DecodeError(f"페이로드 길이가 인덱스 폭({width})의 배수가 아님: {len(buf)}")
    if not buf:
        return ""

    indices = np.frombuffer(buf, dtype=INDEX_DTYPES[width])
    reverse_bin = table.reverse_bin()
    reverse_keys = table.reverse_keys()

    # 고유 인덱스만 조회한 뒤 코드 유닛 배열로 펼침
    uniq, inverse = np.unique(indices, return_inverse=True)
    unit_of = np.empty(len(uniq), dtype=np.uint32)
    for i, index in enumerate(uniq.tolist()):
        label = reverse_bin.get(index)
        if label is None:
            raise DecodeError(f"인덱스에 해당하는 라벨 없음: {index}")
        ch = reverse_keys.get(label)
        if ch is None:
            raise DecodeError(f"라벨에 해당하는 문자 없음: {label} (#{index})")
        if len(ch) != 1 or ord(ch) > 0xFFFF:
            raise DecodeError(f"코드 유닛이 아닌 문자 항목: {ch!r} (#{index})")
        unit_of[i] = ord(ch)

    units = unit_of[inverse.reshape(-1)]
    try:
        return from_code_units(units)
    except UnicodeDecodeError as e:
        raise DecodeError(f"UTF-16 재조립 실패 (짝 없는 서로게이트): {e.reason} @ {e.start}") from e


class TextCodec:
    def __init__(self, table: CharacterTable):
        self.table = table

    def encode(self, text: str) -> bytes:
        data = encode_text(text, self.table)
        logging.debug(f"[textcodec] encode: {len(text)} chars → {len(data)} bytes (테이블 {len(self.table)}개)")
        return data

    def decode(self, buf: bytes) -> str:
        return decode_text(buf, self.table)
