# fmodpack - 파일 트리 ↔ bundle.fmod + keys.json 패커/추출기

from fmodpack.fmod.fmodkeys import CharacterTable
from fmodpack.fmod.fmodpack import FmodWriter
from fmodpack.fmod.fmodunpack import FmodOpener
from fmodpack.fmod.textcodec import TextCodec, decode_text, encode_text
from fmodpack.formats.arcfile import ArcFile, ExtractReport
from fmodpack.gameres.gameres import (
    ArchiveMetadata,
    ArchiveOperation,
    DecodeError,
    EncodeFallback,
    ExportSnapshot,
    FileRecord,
    FmodError,
    IndexSpaceExhausted,
    InvalidFormatException,
    LabelSpaceExhausted,
    MissingInput,
)

__version__ = "1.0.0"
