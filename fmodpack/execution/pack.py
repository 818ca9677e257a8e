# pack.py - 소스 폴더를 bundle.fmod + keys.json으로 패킹하고 C++ 헤더를 생성

import os
import sys
import logging
import argparse

from fmodpack.export.cppheaders import CppHeaderExporter
from fmodpack.fmod.fmodpack import FmodWriter
from fmodpack.gameres.gameres import (
    DEFAULT_INDEX_WIDTH,
    SUPPORTED_INDEX_WIDTHS,
    FmodError,
    IndexSpaceExhausted,
    LabelSpaceExhausted,
    MissingInput,
)
from fmodpack.gameres.utility import BUNDLE_NAME, KEYS_NAME, setup_logger

DEFAULT_LOG = "debug_log_pack.txt"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fmodpack pack", description="소스 폴더를 bundle.fmod로 패킹")
    parser.add_argument("--src-dir", help="패킹할 소스 폴더")
    parser.add_argument("--output-cpp-dir", help="C++ 헤더 출력 폴더")
    parser.add_argument("--output-mod", help="bundle.fmod / keys.json 출력 폴더")
    parser.add_argument("--index-width", type=int, default=DEFAULT_INDEX_WIDTH, choices=SUPPORTED_INDEX_WIDTHS,
                        help="텍스트 인덱스 폭 (바이트)")
    parser.add_argument("--seed", type=int, default=None, help="라벨 난수 시드 (재현용)")
    parser.add_argument("--no-progress", action="store_true", help="진행 표시줄 끄기")
    parser.add_argument("--log-file", default=DEFAULT_LOG, help="디버그 로그 파일 경로")
    return parser


def check_inputs(opts):
    if not opts.src_dir or not opts.output_cpp_dir or not opts.output_mod:
        raise MissingInput("사용법: pack --src-dir=SRC --output-cpp-dir=DIR --output-mod=DIR")
    if not os.path.isdir(opts.src_dir):
        raise MissingInput(f"소스 폴더가 없습니다: {opts.src_dir}")


def run_pack(src_dir: str, out_cpp: str, out_mod: str, index_width: int = DEFAULT_INDEX_WIDTH,
             seed: int = None, progress: bool = True) -> FmodWriter:
    writer = FmodWriter(index_width=index_width, seed=seed, progress=progress)

    logging.debug("[main] add_auto 시작")
    writer.add_auto(src_dir)
    logging.debug(f"[main] 등록된 entry 수: {len(writer.entries)}")
    print(f"* Files total: {len(writer.entries)}")

    writer.write.write_data()
    writer.save.to_dir(out_mod)

    written = CppHeaderExporter(out_cpp).save(writer.snapshot())
    for name, path in written.items():
        logging.debug(f"[main] 헤더 생성: {name} → {path}")
    return writer


def main(args=None) -> int:
    if args is None:
        args = sys.argv[1:]

    opts = build_parser().parse_args(args)
    setup_logger(opts.log_file)

    try:
        check_inputs(opts)

        logging.debug(f"[main] 입력 폴더: {opts.src_dir}")
        logging.debug(f"[main] 헤더 폴더: {opts.output_cpp_dir}")
        logging.debug(f"[main] 출력 폴더: {opts.output_mod}")

        writer = run_pack(
            opts.src_dir,
            opts.output_cpp_dir,
            opts.output_mod,
            index_width=opts.index_width,
            seed=opts.seed,
            progress=not opts.no_progress,
        )

        fallback_count = len(writer.fallbacks)
        print(f"\n✅ Done: {len(writer.records)} files packed into {BUNDLE_NAME}")
        print(f"📦 Output written to {os.path.join(opts.output_mod, BUNDLE_NAME)} and {KEYS_NAME}")
        print(f"🔡 Characters encoded: {len(writer.table)}")
        if fallback_count:
            print(f"⚠️ Text files stored as binary: {fallback_count}")
        logging.info(f"[완료] 패킹 성공 → {opts.output_mod}")
        return 0

    except MissingInput as e:
        print(f"❌ {e}", file=sys.stderr)
        logging.error(f"[main] 입력 누락: {e}")
        return 1

    except (IndexSpaceExhausted, LabelSpaceExhausted) as e:
        print(f"❌ 패킹 중단: {e}", file=sys.stderr)
        logging.error(f"[main] 치명적 오류: {e}")
        return 1

    except KeyboardInterrupt:
        print("\n[취소] 사용자에 의해 중단되었습니다.", file=sys.stderr)
        logging.warning("[main] 사용자 중단 (Ctrl+C)")
        return 1

    except (FmodError, OSError) as e:
        logging.exception(f"[오류] 예외 발생: {e}")
        print(f"❌ 패킹 실패: {e}", file=sys.stderr)
        return 1

    finally:
        logging.shutdown()


if __name__ == "__main__":
    sys.exit(main())
