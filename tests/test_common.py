"""Tests for the common helpers: exceptions, commands, permissions, logging."""

from __future__ import annotations

import logging
import os
import stat
import subprocess
from unittest.mock import patch

import pytest
import requests

from confaction.common.exceptions import (
    CommandError,
    RemoteConnectionError,
    RemoteHTTPError,
    RemoteProxyError,
    RemoteSSLError,
    handle_request_exception,
)
from confaction.common.logging import get_logger, set_verbosity
from confaction.common.permissions import grant_full_control
from confaction.common.utils import as_iterable, run_command


def _http_error(status: int) -> requests.HTTPError:
    response = requests.Response()
    response.status_code = status
    return requests.HTTPError(f"{status} Error", response=response)


class TestHandleRequestException:
    @pytest.mark.parametrize(
        ("exception", "error", "hint"),
        [
            (_http_error(404), RemoteHTTPError, "404 Not Found"),
            (_http_error(403), RemoteHTTPError, "403 Access denied"),
            (_http_error(500), RemoteHTTPError, "HTTP Error"),
            (requests.exceptions.ProxyError("proxy"), RemoteProxyError, "Proxy Error"),
            (requests.exceptions.SSLError("ssl"), RemoteSSLError, "SSL Error"),
            (requests.ConnectionError("refused"), RemoteConnectionError, "Connection Error"),
        ],
    )
    def test_mapping(self, exception, error, hint):
        with pytest.raises(error, match=hint) as exc_info:
            handle_request_exception(exception)
        assert exc_info.value.__cause__ is exception

    def test_other_exceptions_are_reraised(self):
        exc = requests.exceptions.InvalidSchema("No connection adapters")
        with pytest.raises(requests.exceptions.InvalidSchema):
            handle_request_exception(exc)

    def test_server_response_is_appended(self):
        response = requests.Response()
        response.status_code = 404
        response._content = b"BlobNotFound"
        with pytest.raises(RemoteHTTPError, match="BlobNotFound"):
            handle_request_exception(_http_error(404), response)


class TestRunCommand:
    def test_success(self):
        completed = subprocess.CompletedProcess([], 0, stdout="out", stderr="")
        with patch("confaction.common.utils.subprocess.run", return_value=completed) as run:
            assert run_command(["hadoop", "fs", 1]).stdout == "out"

        assert run.call_args.args[0] == ["hadoop", "fs", "1"]
        assert run.call_args.kwargs == {"text": True, "capture_output": True, "check": False}

    def test_failure(self):
        completed = subprocess.CompletedProcess([], 2, stdout="", stderr="boom\n")
        with patch("confaction.common.utils.subprocess.run", return_value=completed):
            with pytest.raises(CommandError) as exc_info:
                run_command(["false"])

        assert exc_info.value.returncode == 2
        assert exc_info.value.cmd == ["false"]
        assert str(exc_info.value) == "Command 'false' returned non-zero exit status 2: boom"

    def test_no_check(self):
        completed = subprocess.CompletedProcess([], 1, stdout="", stderr="")
        with patch("confaction.common.utils.subprocess.run", return_value=completed):
            assert run_command(["false"], check=False).returncode == 1


class TestAsIterable:
    def test_values(self):
        assert as_iterable("a") == ["a"]
        assert as_iterable(1) == [1]
        assert as_iterable(("a", "b"), list) == ["a", "b"]


class TestGrantFullControl:
    def test_owner(self, tmp_path):
        path = tmp_path / "file.bin"
        path.write_bytes(b"x")
        os.chmod(path, 0o400)

        assert grant_full_control(path) == path
        assert stat.S_IMODE(path.stat().st_mode) == 0o700

    def test_keeps_group_and_other_bits(self, tmp_path):
        path = tmp_path / "file.bin"
        path.write_bytes(b"x")
        os.chmod(path, 0o044)

        grant_full_control(path)
        assert stat.S_IMODE(path.stat().st_mode) == 0o744

    def test_other_user_gets_acl(self, tmp_path):
        path = tmp_path / "file.bin"
        path.write_bytes(b"x")
        completed = subprocess.CompletedProcess([], 0, stdout="", stderr="")

        with patch("confaction.common.permissions._uid", return_value=os.geteuid() + 1), patch(
            "confaction.common.utils.subprocess.run", return_value=completed
        ) as run:
            grant_full_control(path, user="hdfs")

        assert run.call_args.args[0] == ["setfacl", "-m", "u:hdfs:rwx", str(path)]

    def test_missing_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            grant_full_control(tmp_path / "missing")


class TestLogging:
    def test_levels(self, monkeypatch):
        monkeypatch.delenv("CONFACTION_LOG_LEVEL", raising=False)
        assert get_logger("confaction.test.off").level == logging.WARNING
        assert get_logger("confaction.test.on", log_level="DEBUG").level == logging.DEBUG

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "confaction.log"
        logger = get_logger("confaction.test.file", log=log_file)
        logger.info("fetched artifact")
        for handler in logger.handlers:
            handler.flush()

        assert isinstance(logger.handlers[0], logging.FileHandler)
        assert "fetched artifact" in log_file.read_text()
        logger.handlers[0].close()

    def test_set_verbosity(self, monkeypatch):
        monkeypatch.delenv("CONFACTION_LOG_LEVEL", raising=False)
        assert set_verbosity(1).level == logging.INFO
        assert set_verbosity(2).level == logging.DEBUG
        assert "CONFACTION_LOG_LEVEL" not in os.environ
        # loggers created later fall back to the default again
        assert get_logger("confaction.test.later").level == logging.WARNING
        assert set_verbosity(0).level == logging.WARNING
