import sys
import os
import logging

from fmodpack.execution import extract, pack

# Nuitka 대응: 실행 경로 기반으로 base_dir 설정
if getattr(sys, 'frozen', False):
    base_dir = os.path.dirname(sys.executable)
else:
    base_dir = os.getcwd()

USAGE = """사용법:
  fmodpack pack --src-dir=SRC --output-cpp-dir=DIR --output-mod=DIR [--index-width=2] [--seed=N]
  fmodpack extract --mod-dir=DIR --output-dir=DIR [--skip-binary]
  fmodpack            (대화형 메뉴)"""

COMMANDS = {
    "pack": pack.main,
    "extract": extract.main,
}


# CLI 헤더
def print_banner():
    banner = r"""
   __                     _                    _
  / _|_ __ ___   ___   __| |_ __   __ _  ___| | __
 | |_| '_ ` _ \ / _ \ / _` | '_ \ / _` |/ __| |/ /
 |  _| | | | | | (_) | (_| | |_) | (_| | (__|   <
 |_| |_| |_| |_|\___/ \__,_| .__/ \__,_|\___|_|\_\
                           |_|
  bundle.fmod Packer / Extractor CLI
  -------------------------------
    """
    print(banner)


def ask(prompt: str):
    value = input(prompt).strip('" ')
    if value.lower() in ("q", "취소"):
        return None
    return value


def interactive() -> int:
    log_path = os.path.join(base_dir, "cli_runlog.txt")

    while True:
        print_banner()
        print("실행할 작업을 선택하세요 :")
        print("  [1] 패킹 (폴더 → bundle.fmod + keys.json + C++ 헤더)")
        print("  [2] 추출 (bundle.fmod + keys.json → 폴더)")
        print("  [Q] 종료")
        print("")

        choice = input("▶ 번호 선택: ").strip().lower()

        if choice == "q":
            print("프로그램을 종료합니다.")
            return 0

        elif choice == "1":
            src_dir = ask("소스 폴더 경로 입력 [q = 취소]: ")
            if src_dir is None:
                continue
            out_mod = ask("bundle.fmod 출력 폴더 입력 (비우면 기본 './mod') [q = 취소]: ")
            if out_mod is None:
                continue
            out_cpp = ask("C++ 헤더 출력 폴더 입력 (비우면 기본 './cpp') [q = 취소]: ")
            if out_cpp is None:
                continue

            pack.main([
                f"--src-dir={src_dir}",
                f"--output-mod={out_mod or os.path.join(base_dir, 'mod')}",
                f"--output-cpp-dir={out_cpp or os.path.join(base_dir, 'cpp')}",
                f"--log-file={log_path}",
            ])

        elif choice == "2":
            mod_dir = ask("bundle.fmod가 있는 폴더 입력 [q = 취소]: ")
            if mod_dir is None:
                continue
            out_dir = ask("출력 폴더 경로 입력 (비우면 기본 './output') [q = 취소]: ")
            if out_dir is None:
                continue

            extract.main([
                f"--mod-dir={mod_dir}",
                f"--output-dir={out_dir or os.path.join(base_dir, 'output')}",
                f"--log-file={log_path}",
            ])

        else:
            print("올바른 번호를 입력하세요.")
            continue

        # 완료 후 선택
        while True:
            go_back = input("작업이 완료되었습니다. 메인 메뉴로 돌아가시겠습니까? (Y/N): ").strip().lower()
            if go_back == "y":
                break
            elif go_back == "n":
                print("프로그램을 종료합니다.")
                return 0
            else:
                print("Y 또는 N으로 입력해주세요.")


def main(argv=None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if not argv:
        try:
            return interactive()
        except (KeyboardInterrupt, EOFError):
            print("\n프로그램을 종료합니다.")
            return 1

    command, rest = argv[0], argv[1:]
    if command in ("-h", "--help"):
        print(USAGE)
        return 0

    handler = COMMANDS.get(command)
    if handler is None:
        print(USAGE, file=sys.stderr)
        logging.error(f"[cli_launcher] 알 수 없는 명령: {command}")
        return 1
    return handler(rest)


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
