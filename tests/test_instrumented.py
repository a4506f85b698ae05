import logging
from types import SimpleNamespace

import pytest
from unittest.mock import Mock

from botocore.awsrequest import AWSResponse

from aws_sessionx.config import SessionConfig
from aws_sessionx.instrumented import RequestInstrumentation, last_path_segment
from aws_sessionx.session import build_client, new_session

RRSET_URL = "https://route53.amazonaws.com/2013-04-01/hostedzone/ZABCDEF123/rrset"


@pytest.mark.parametrize("path, expected", [
    ("/2013-04-01/hostedzone/ZABCDEF123/rrset", "rrset"),
    ("/2013-04-01/hostedzone", "hostedzone"),
    ("/", ""),
    ("", ""),
])
def test_last_path_segment(path, expected):
    assert last_path_segment(path) == expected


def _request(url=RRSET_URL, method="POST"):
    return SimpleNamespace(url=url, method=method, context={})


class TestRequestInstrumentation:

    def test_register_hooks(self):
        session = Mock()

        RequestInstrumentation().register(session)

        events = [c.args[0] for c in session.register.call_args_list]
        assert events == ["request-created", "response-received"]

    def test_logs_reduced_path(self, caplog):
        caplog.set_level(logging.DEBUG, logger="aws_sessionx.instrumented")
        instrumentation = RequestInstrumentation()
        request = _request()

        instrumentation.on_request_created(request, operation_name="ChangeResourceRecordSets")
        instrumentation.on_response_received(context=request.context, response_dict={"status_code": 200})

        assert "method=POST" in caplog.text
        assert "host=route53.amazonaws.com" in caplog.text
        assert "path=rrset" in caplog.text
        assert "operation=ChangeResourceRecordSets" in caplog.text
        assert "status=200" in caplog.text
        assert "ZABCDEF123" not in caplog.text
        assert request.context == {}

    def test_logs_exception_name(self, caplog):
        caplog.set_level(logging.DEBUG, logger="aws_sessionx.instrumented")
        instrumentation = RequestInstrumentation()
        request = _request(method="GET")

        instrumentation.on_request_created(request)
        instrumentation.on_response_received(context=request.context, exception=ConnectionError("boom"))

        assert "status=ConnectionError" in caplog.text

    def test_custom_path_processor(self, caplog):
        caplog.set_level(logging.DEBUG, logger="aws_sessionx.instrumented")
        instrumentation = RequestInstrumentation(path_processor=lambda path: path.upper())
        request = _request(url="https://sts.amazonaws.com/", method="POST")

        instrumentation.on_request_created(request)
        instrumentation.on_response_received(context=request.context, response_dict={"status_code": 403})

        assert "path=/" in caplog.text
        assert "status=403" in caplog.text

    def test_response_without_request_is_ignored(self, caplog):
        caplog.set_level(logging.DEBUG, logger="aws_sessionx.instrumented")

        RequestInstrumentation().on_response_received(context={}, response_dict={"status_code": 200})

        assert caplog.text == ""


class _RawBody:
    def __init__(self, body):
        self._body = body

    def stream(self, **kwargs):
        yield self._body


LIST_RRSETS_BODY = (
    b'<?xml version="1.0" encoding="UTF-8"?>'
    b'<ListResourceRecordSetsResponse xmlns="https://route53.amazonaws.com/doc/2013-04-01/">'
    b"<ResourceRecordSets/><IsTruncated>false</IsTruncated><MaxItems>100</MaxItems>"
    b"</ListResourceRecordSetsResponse>"
)


def test_session_hooks_fire_for_real_client(caplog):
    caplog.set_level(logging.DEBUG, logger="aws_sessionx.instrumented")
    sent = []

    def reply(request, **kwargs):
        sent.append(request.url)
        return AWSResponse(request.url, 200, {"Content-Type": "text/xml"}, _RawBody(LIST_RRSETS_BODY))

    client = build_client(new_session(SessionConfig(api_retries=0)), "route53")
    client.meta.events.register("before-send", reply)

    resp = client.list_resource_record_sets(HostedZoneId="ZABCDEF123")

    assert resp["IsTruncated"] is False
    assert sent == ["https://route53.amazonaws.com/2013-04-01/hostedzone/ZABCDEF123/rrset"]
    assert "path=rrset" in caplog.text
    assert "operation=ListResourceRecordSets" in caplog.text
    assert "status=200" in caplog.text
    assert "ZABCDEF123" not in caplog.text
