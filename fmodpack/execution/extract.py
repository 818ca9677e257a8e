# extract.py - bundle.fmod + keys.json 전체 추출
# 파일 하나의 디코딩 실패는 기록만 하고 나머지 파일은 계속 추출함.

import os
import sys
import time
import logging
import argparse

from fmodpack.fmod.fmodunpack import FmodOpener
from fmodpack.formats.arcfile import ExtractReport
from fmodpack.gameres.gameres import FmodError, InvalidFormatException, MissingInput
from fmodpack.gameres.utility import setup_logger

DEFAULT_LOG = "debug_log_extract.txt"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fmodpack extract", description="bundle.fmod 전체 추출")
    parser.add_argument("--mod-dir", help="bundle.fmod / keys.json 이 있는 폴더")
    parser.add_argument("--output-dir", help="추출 결과 폴더")
    parser.add_argument("--skip-binary", action="store_true", help="바이너리 항목은 건너뜀")
    parser.add_argument("--no-progress", action="store_true", help="진행 표시줄 끄기")
    parser.add_argument("--log-file", default=DEFAULT_LOG, help="디버그 로그 파일 경로")
    return parser


def run_extract(mod_dir: str, output_dir: str, skip_binary: bool = False, progress: bool = True) -> ExtractReport:
    with FmodOpener().try_open(mod_dir) as archive:
        return archive.extract_all(output_dir, skip_binary=skip_binary, progress=progress)


def main(args=None) -> int:
    if args is None:
        args = sys.argv[1:]

    opts = build_parser().parse_args(args)
    setup_logger(opts.log_file)

    try:
        if not opts.mod_dir or not opts.output_dir:
            raise MissingInput("사용법: extract --output-dir=DIR --mod-dir=DIR")

        logging.debug(f"[main] mod 폴더: {opts.mod_dir}, 출력 폴더: {opts.output_dir}")

        start = time.time()
        report = run_extract(opts.mod_dir, opts.output_dir, skip_binary=opts.skip_binary,
                             progress=not opts.no_progress)
        elapsed = time.time() - start

        for path, reason in report.failed:
            print(f"❌ {path}: {reason}", file=sys.stderr)

        print(f"\n추출 {len(report.extracted)}개, 스킵 {len(report.skipped)}개, 실패 {len(report.failed)}개 ({elapsed:.2f}초)")
        if not report.ok:
            logging.error(f"[main] 일부 파일 추출 실패: {len(report.failed)}개")
            return 1

        print(f"🎉 Extraction complete! Output saved to {os.path.abspath(opts.output_dir)}")
        logging.info(f"[완료] 추출 성공 → {opts.output_dir}")
        return 0

    except MissingInput as e:
        print(f"❌ {e}", file=sys.stderr)
        logging.error(f"[main] 입력 누락: {e}")
        return 1

    except InvalidFormatException as e:
        print(f"❌ keys.json 형식 오류: {e}", file=sys.stderr)
        logging.error(f"[main] 메타데이터 오류: {e}")
        return 1

    except KeyboardInterrupt:
        print("\n[취소] 사용자에 의해 중단되었습니다.", file=sys.stderr)
        logging.warning("[main] 사용자 중단 (Ctrl+C)")
        return 1

    except (FmodError, OSError) as e:
        logging.exception(f"[main] 예외 발생: {e}")
        print(f"❌ 추출 실패: {e}", file=sys.stderr)
        return 1

    finally:
        logging.shutdown()


if __name__ == "__main__":
    sys.exit(main())
