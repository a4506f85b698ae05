"""Per-request instrumentation hooked into botocore's event system."""

import logging
import time
from typing import Callable, Optional
from urllib.parse import urlsplit

log = logging.getLogger(__name__)

_CONTEXT_KEY = "aws_sessionx_request"


def last_path_segment(path: str) -> str:
    """Reduce a request path to its final component, e.g. ``/hostedzone/Z1/rrset`` -> ``rrset``."""
    return path.split("/")[-1]


class RequestInstrumentation:
    """
    Logs one line per HTTP attempt made through a botocore session.

    The path is passed through ``path_processor`` before it is logged so that
    resource identifiers embedded in URLs do not end up in the label.
    """

    def __init__(self, path_processor: Optional[Callable[[str], str]] = None,
                 logger: Optional[logging.Logger] = None):
        self.path_processor = path_processor or last_path_segment
        self.log = logger or log

    def register(self, session) -> None:
        session.register("request-created", self.on_request_created,
                         unique_id="aws-sessionx-request-created")
        session.register("response-received", self.on_response_received,
                         unique_id="aws-sessionx-response-received")

    def on_request_created(self, request, operation_name=None, **kwargs):
        parts = urlsplit(request.url)
        request.context[_CONTEXT_KEY] = {
            "start": time.monotonic(),
            "method": request.method,
            "host": parts.hostname,
            "path": self.path_processor(parts.path),
            "operation": operation_name,
        }

    def on_response_received(self, context=None, response_dict=None, exception=None, **kwargs):
        info = (context or {}).pop(_CONTEXT_KEY, None)
        if info is None:
            return
        duration = time.monotonic() - info["start"]
        if response_dict is not None:
            status = response_dict.get("status_code")
        else:
            status = type(exception).__name__ if exception is not None else None
        self.log.debug(
            "request method=%s host=%s path=%s operation=%s status=%s duration=%.3fs",
            info["method"], info["host"], info["path"], info["operation"], status, duration,
        )
