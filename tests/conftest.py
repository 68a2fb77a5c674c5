"""
Shared test fixtures and configuration for mcp-httpcraft tests.
"""

# Test isolation for config.yaml is handled in config.py: under pytest the
# default file is skipped unless MCP_HTTPCRAFT_CONFIG_FILE names one.
import logging
import sys
import textwrap
from pathlib import Path

import pytest

from mcp_httpcraft.config import get_settings
from mcp_httpcraft.logging_setup import LOGGER_NAME


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Every test starts from freshly loaded settings."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo setup_logging() so caplog keeps working in later tests."""
    yield
    app_logger = logging.getLogger(LOGGER_NAME)
    app_logger.handlers.clear()
    app_logger.propagate = True
    app_logger.setLevel(logging.NOTSET)


@pytest.fixture
def python_script(tmp_path):
    """Write a child script and return the argv that runs it."""

    def _write(source: str, name: str = "child.py"):
        script = tmp_path / name
        script.write_text(textwrap.dedent(source))
        return [str(script)]

    return _write


@pytest.fixture
def fake_httpcraft(tmp_path, monkeypatch):
    """
    Install an executable that stands in for httpcraft.

    The script answers ``--version`` and otherwise prints the contents of
    the file named by FAKE_HTTPCRAFT_OUTPUT, exiting with FAKE_HTTPCRAFT_EXIT.
    Its argv is recorded one per line in FAKE_HTTPCRAFT_ARGS.
    """
    script = tmp_path / "httpcraft"
    script.write_text(
        f"#!{sys.executable}\n"
        + textwrap.dedent(
            """
            import os
            import sys

            with open(os.environ["FAKE_HTTPCRAFT_ARGS"], "w") as f:
                f.write("\\n".join(sys.argv[1:]))

            if sys.argv[1:] == ["--version"]:
                print("httpcraft 1.4.2")
                sys.exit(0)

            with open(os.environ["FAKE_HTTPCRAFT_OUTPUT"]) as f:
                sys.stdout.write(f.read())
            sys.stderr.write(os.environ.get("FAKE_HTTPCRAFT_STDERR", ""))
            sys.exit(int(os.environ.get("FAKE_HTTPCRAFT_EXIT", "0")))
            """
        )
    )
    script.chmod(0o755)

    output = tmp_path / "output.txt"
    output.write_text("")
    args_file = tmp_path / "args.txt"

    monkeypatch.setenv("HTTPCRAFT_PATH", str(script))
    monkeypatch.setenv("FAKE_HTTPCRAFT_OUTPUT", str(output))
    monkeypatch.setenv("FAKE_HTTPCRAFT_ARGS", str(args_file))

    class FakeHttpCraft:
        path = script

        def respond(self, stdout: str, exit_code: int = 0, stderr: str = ""):
            output.write_text(stdout)
            monkeypatch.setenv("FAKE_HTTPCRAFT_EXIT", str(exit_code))
            monkeypatch.setenv("FAKE_HTTPCRAFT_STDERR", stderr)

        @property
        def last_args(self):
            return Path(args_file).read_text().split("\n")

    return FakeHttpCraft()
