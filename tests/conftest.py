import os
import stat

import pytest


@pytest.fixture
def fake_sort(tmp_path):
    """Factory for stand-in sort programs written as shell scripts."""

    def make(body: str, name: str = "fakesort") -> str:
        path = tmp_path / name
        path.write_text("#!/bin/sh\n" + body + "\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return os.fspath(path)

    return make
