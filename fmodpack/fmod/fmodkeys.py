# fmodkeys.py - 문자 치환 테이블
# 문자 → 랜덤 라벨(keys), 라벨 → 인덱스(bin). 패킹 1회마다 새로 생성되고, 추출 시에는 동결된 상태로만 사용.

import random
import logging
from typing import Optional

from fmodpack.gameres.gameres import (
    DEFAULT_INDEX_WIDTH,
    IndexSpaceExhausted,
    InvalidFormatException,
    LabelSpaceExhausted,
    validate_index_width,
)

LABEL_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
LABEL_MIN_LEN = 7
LABEL_MAX_LEN = 9
MAX_LABEL_RETRIES = 1000


class FrozenTableError(RuntimeError):
    pass


class CharacterTable:
    def __init__(self, index_width: int = DEFAULT_INDEX_WIDTH, rng: Optional[random.Random] = None):
        self.index_width = validate_index_width(index_width)
        self.capacity = 1 << (8 * self.index_width)
        self.keys = {}   # 문자 → 라벨
        self.bin = {}    # 라벨 → 인덱스
        self.rng = rng if rng is not None else random.Random()
        self.frozen = False
        self._reverse_bin = None
        self._reverse_keys = None

    def __len__(self):
        return len(self.keys)

    def __contains__(self, ch):
        return ch in self.keys

    def __repr__(self):
        return f"<CharacterTable entries={len(self.keys)}, index_width={self.index_width}, frozen={self.frozen}>"

    def random_label(self) -> str:
        length = self.rng.randint(LABEL_MIN_LEN, LABEL_MAX_LEN)
        return "".join(self.rng.choice(LABEL_ALPHABET) for _ in range(length))

    # 유일한 변경 경로. 이미 있는 문자는 그대로 반환 (새 난수/인덱스 없음)
    def ensure_entry(self, ch: str) -> str:
        label = self.keys.get(ch)
        if label is not None:
            return label

        if self.frozen:
            raise FrozenTableError(f"동결된 테이블에 새 문자 추가 시도: {ch!r}")

        index = len(self.bin)
        if index >= self.capacity:
            raise IndexSpaceExhausted(
                f"문자 수가 인덱스 폭을 초과함: {index + 1} > {self.capacity} (index_width={self.index_width})"
            )

        for _ in range(MAX_LABEL_RETRIES):
            label = self.random_label()
            if label not in self.bin:
                break
        else:
            raise LabelSpaceExhausted(f"라벨 생성 재시도 {MAX_LABEL_RETRIES}회 초과: {ch!r}")

        self.keys[ch] = label
        self.bin[label] = index
        self._reverse_bin = None
        self._reverse_keys = None
        logging.debug(f"[fmodkeys] 새 문자 등록: {ch!r} → {label} (#{index})")
        return label

    def index_of(self, ch: str) -> int:
        return self.bin[self.keys[ch]]

    def freeze(self) -> "CharacterTable":
        self.frozen = True
        return self

    # 인덱스 → 라벨
    def reverse_bin(self) -> dict:
        if self._reverse_bin is None:
            self._reverse_bin = {index: label for label, index in self.bin.items()}
        return self._reverse_bin

    # 라벨 → 문자
    def reverse_keys(self) -> dict:
        if self._reverse_keys is None:
            self._reverse_keys = {label: ch for ch, label in self.keys.items()}
        return self._reverse_keys

    def to_metadata(self) -> tuple:
        return dict(self.keys), dict(self.bin)

    @classmethod
    def from_metadata(cls, keys: dict, bin_map: dict, index_width: int = DEFAULT_INDEX_WIDTH) -> "CharacterTable":
        table = cls(index_width=index_width)

        for label, index in bin_map.items():
            if not isinstance(label, str) or isinstance(index, bool) or not isinstance(index, int):
                raise InvalidFormatException(f"bin 항목 이상: {label!r} → {index!r}")
            if index < 0 or index >= table.capacity:
                raise InvalidFormatException(f"bin 인덱스 범위 초과: {label} → {index}")

        for ch, label in keys.items():
            if not isinstance(ch, str) or not isinstance(label, str):
                raise InvalidFormatException(f"keys 항목 이상: {ch!r} → {label!r}")
            if label not in bin_map:
                raise InvalidFormatException(f"keys 라벨이 bin에 없음: {ch!r} → {label}")

        if len(set(bin_map.values())) != len(bin_map):
            raise InvalidFormatException("bin 인덱스 중복")
        if len(set(keys.values())) != len(keys):
            raise InvalidFormatException("keys 라벨 중복")
        if len(keys) != len(bin_map):
            raise InvalidFormatException(f"keys/bin 개수 불일치: {len(keys)} != {len(bin_map)}")

        table.keys = dict(keys)
        table.bin = dict(bin_map)
        logging.debug(f"[fmodkeys] 메타데이터에서 테이블 복원: {len(table.keys)}개")
        return table
