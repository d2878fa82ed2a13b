#!/usr/bin/env python3
"""
common/request.py
=================

This module offers a thin interface for the HTTP requests made by the
config action helpers: artifact downloads and NameNode JMX queries. It
simplifies request dispatch, response and exception handling.

The module includes a mechanism for modifying the warning message for
`InsecureRequestWarning` to inform the user about the insecure request,
mention that the warning is only shown once, and explain how to deactivate
the warning.

To deactivate insecure request warnings, set the environment variable
`IGNORE_INSECURE_REQUEST_WARNINGS` to 'True'.

Example
-------

```python
from requests import Session
from confaction.common.request import make_request

session = Session()
response = make_request(session, "https://example.org", path="/file.bin", stream=True)
```
"""

from __future__ import annotations

__author__ = "jslorrma"
__maintainer__ = "jslorrma"
__email__ = "jslorrma@gmail.com"


# imports
import os
import warnings
from typing import Any
from urllib.parse import urljoin

from requests import Response, Session, exceptions
from urllib3 import disable_warnings
from urllib3.exceptions import InsecureRequestWarning

from .. import logger
from .exceptions import handle_request_exception

# handle insecure request warnings


def _show_warning(  # noqa: PLR0913
    message: str,
    category: type[Warning],
    filename: str,
    lineno: int,
    file: str | None = None,
    line: str | None = None,
):
    """
    Modifies the warning message for `InsecureRequestWarning` to inform the user about the insecure
    request, mention that the warning is only shown once, and explain how to deactivate the warning.
    """
    if category is InsecureRequestWarning:
        message = (
            "You are making an insecure request. Artifacts downloaded this way "
            "can be tampered with on their way to the node. "
            "This warning will only be shown once per session. "
            "If you understand the risks and wish to disable this warning, "
            "set the 'IGNORE_INSECURE_REQUEST_WARNINGS' environment variable to 'True'."
        )
    original_showwarning(message, category, filename, lineno, file=file, line=line)


# backup the original showwarning function
original_showwarning = warnings.showwarning
# monkey patch the showwarning function
warnings.showwarning = _show_warning
# show the warning only once
warnings.filterwarnings("once", category=InsecureRequestWarning)


def make_request(  # noqa: PLR0913
    session: Session,
    url: str,
    path: str | None = None,
    method: str = "GET",
    params: dict[str, Any] | None = None,
    timeout: int | float | None = None,
    raise_for_status: bool = True,
    **kwargs,
) -> Response | None:
    """
    Make a single HTTP request.

    Parameters
    ----------
    session : requests.Session
        The requests session to use for the request.
    url : str
        The base URL, or the full URL if `path` is not given.
    path : str, optional
        Path joined onto `url`, by default `None`.
    method : str, optional
        The HTTP method to use for the request, by default `'GET'`.
    params : dict[str, Any], optional
        Dictionary to send in the query string, by default `None`.
    timeout : int | float, optional
        The number of seconds to wait for the server's response before giving up,
        defaults to `None` (no timeout).
    raise_for_status : bool
        Raises `HTTPError`, if one occurred.
    **kwargs
        Additional keyword arguments to pass to the `Session.request` method,
        e.g. `stream=True`.

    Returns
    -------
    requests.Response or None
        The response from the server.

    Raises
    ------
    RemoteHTTPError
        If the request returns an HTTP error status.
    RemoteProxyError
        If there is an issue with the specified proxies.
    RemoteSSLError
        If there is an issue with the SSL certificates used for the request.
    RemoteConnectionError
        If there is an issue establishing a connection for the request.
    """
    # disable insecure request warnings if environment variable is set
    if os.getenv("IGNORE_INSECURE_REQUEST_WARNINGS", "False").lower() == "true":
        disable_warnings(InsecureRequestWarning)

    _url = urljoin(url, path) if path else url
    response = None
    try:
        logger.debug(f"Sending request to '{_url}' with: {method=}, {params=}")
        response = session.request(
            method=method,
            url=_url,
            timeout=timeout,
            params=params,
            **kwargs,
        )
        logger.debug(f"Got response: {response.status_code=}, {response.reason=}")

        if raise_for_status:
            response.raise_for_status()

        return response
    # handle request exceptions
    except exceptions.RequestException as exc:
        handle_request_exception(exc, response, session.proxies)
