import logging

import pytest

from fmodpack.gameres.utility import SafeRotatingFileHandler


@pytest.fixture(autouse=True)
def reset_root_logger():
    # 명령 main()이 붙인 핸들러를 테스트마다 정리
    root = logging.getLogger()
    before = list(root.handlers)
    yield
    for handler in root.handlers[:]:
        if handler not in before:
            root.removeHandler(handler)
            if isinstance(handler, SafeRotatingFileHandler):
                handler.close()
