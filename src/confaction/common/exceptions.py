#!/usr/bin/env python3
"""
common/exceptions.py
====================

This module implements the `confaction` exceptions and the error handling for
failed HTTP requests and external commands.

Nothing in here retries or rolls back: errors are translated into one of the
exceptions below, with a hint on what to check, and propagate to the caller.
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"


# imports
import os
from collections.abc import Sequence

from requests import Response
from requests import exceptions as request_exceptions


class ConfActionError(Exception):
    """Basic confaction exception"""


class CommandError(ConfActionError):
    """An external command exited with a non-zero status.

    Parameters
    ----------
    args : Sequence[str]
        The command line that was executed.
    returncode : int
        The exit status of the command.
    stdout : str, optional
        Captured standard output.
    stderr : str, optional
        Captured standard error.
    """

    def __init__(
        self,
        args: Sequence[str],
        returncode: int,
        stdout: str | None = None,
        stderr: str | None = None,
    ):
        self.cmd = list(args)
        self.returncode = returncode
        self.stdout = stdout or ""
        self.stderr = stderr or ""
        super().__init__(
            f"Command '{' '.join(self.cmd)}' returned non-zero exit status {returncode}"
            + (f": {self.stderr.strip()}" if self.stderr.strip() else "")
        )


class CacheStoreError(CommandError):
    """Shared cache store command failed"""


class ServiceQueryError(ConfActionError):
    """Querying the local service manager failed"""


class RemoteError(ConfActionError):
    """A request to a remote server failed"""


class RemoteHTTPError(RemoteError):
    """The remote server answered with an HTTP error status"""


class RemoteSSLError(RemoteError):
    """SSL/TLS verification failed for the remote server"""


class RemoteProxyError(RemoteError):
    """The configured proxy refused or failed the request"""


class RemoteConnectionError(RemoteError):
    """The remote server could not be reached"""


_404_ERROR_HINT = (
    "{exception_msg}\n\n"
    "404 Not Found: The server can't find the requested resource. "
    "Check the url of the request, e.g. the source url of the config action."
)

_401_403_ERROR_HINT = (
    "{exception_msg}\n\n"
    "{status} Access denied: The server refused to hand out the resource. "
    "Check whether the url needs a signature (e.g. a SAS token) or "
    "credentials and whether they are still valid."
)

_HTTP_ERROR_HINT = (
    "{exception_msg}\n\n"
    "HTTP Error: The server couldn't process the request."
)

_CONNECTION_ERROR_HINT = (
    "{exception_msg}\n\n"
    "Connection Error: There's a problem connecting to the server. "
    "Check the host name of the url and the network connection of the node."
)

_PROXY_ERROR_HINT = (
    "{exception_msg}\n\n"
    "Proxy Error: There's an issue with the proxy server. Possible causes of "
    "this error include incorrect proxy settings, an invalid or expired proxy "
    "authentication credential, or a problem with the proxy server itself. "
    "Check your proxy settings. Proxies used: {proxies}"
)

_SSL_ERROR_HINT = (
    "{exception_msg}\n\n"
    "SSL Error: There's an issue with the SSL/TLS certificate of the server. "
    "Check the certificate chain or provide a certificate bundle with the "
    "`verify` setting."
)


def handle_request_exception(
    exception: Exception,
    failed_response: Response | None = None,
    proxies: dict[str, str] | None = None,
):
    """Handle request exceptions for failed HTTP requests.

    Parameters
    ----------
    exception : Exception
        Exception object for failed request.
    failed_response : Response, optional
        The response of the failed request to handle
    proxies : dict[str, str], optional
        Proxies used for the request. Default is None.

    Raises
    ------
    RemoteHTTPError
        If the request returned an HTTP error status.
    RemoteProxyError
        If there is an issue with the specified proxies.
    RemoteSSLError
        If there is an issue with the SSL certificates used for the request.
    RemoteConnectionError
        If there is an issue establishing a connection for the request.
    """
    exception_msg = str(exception)

    if isinstance(exception, request_exceptions.HTTPError):
        _status = (
            exception.response.status_code
            if exception.response is not None
            else getattr(failed_response, "status_code", None)
        )
        _error = RemoteHTTPError
        if _status == 404:
            _message = _404_ERROR_HINT.format(exception_msg=exception_msg)
        elif _status in (401, 403):
            _message = _401_403_ERROR_HINT.format(exception_msg=exception_msg, status=_status)
        else:
            _message = _HTTP_ERROR_HINT.format(exception_msg=exception_msg)
    elif isinstance(exception, request_exceptions.ProxyError):
        _proxies = proxies or {"http": os.getenv("HTTP_PROXY"), "https": os.getenv("HTTPS_PROXY")}
        _error = RemoteProxyError
        _message = _PROXY_ERROR_HINT.format(exception_msg=exception_msg, proxies=_proxies)
    elif isinstance(exception, request_exceptions.SSLError):
        _error = RemoteSSLError
        _message = _SSL_ERROR_HINT.format(exception_msg=exception_msg)
    elif isinstance(exception, request_exceptions.ConnectionError):
        _error = RemoteConnectionError
        _message = _CONNECTION_ERROR_HINT.format(exception_msg=exception_msg)
    else:
        raise exception

    raise _error(
        f"{_message}\n\nOriginal server response:\n{failed_response.text}"
        if failed_response is not None and failed_response.text
        else _message
    ) from exception
