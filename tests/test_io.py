"""
Tests for the requests based transport.
"""
from unittest import mock

import pytest
import requests
from requests.auth import HTTPBasicAuth

from caldavsync.io import SyncIO
from caldavsync.io import SyncIOProtocol
from caldavsync.protocol import DAVMethod
from caldavsync.protocol import DAVRequest


def mocked_session(status=207, headers=None, content=b"<multistatus/>"):
    session = mock.MagicMock()
    session.request.return_value.status_code = status
    session.request.return_value.reason = "Multi-Status"
    session.request.return_value.headers = headers or {"Content-Type": "text/xml"}
    session.request.return_value.content = content
    return session


class TestSyncIO:
    def test_execute(self):
        session = mocked_session(headers={"ETag": '"1"'})
        auth = HTTPBasicAuth("u", "p")
        io = SyncIO(
            session=session,
            timeout=7,
            verify=False,
            auth=auth,
            headers={"User-Agent": "test", "Depth": "9"},
        )
        request = DAVRequest(
            method=DAVMethod.PROPFIND,
            url="https://h/dav/",
            headers={"Depth": "0"},
            body=b"<propfind/>",
        )
        response = io.execute(request)

        session.request.assert_called_once_with(
            method="PROPFIND",
            url="https://h/dav/",
            headers={"User-Agent": "test", "Depth": "0"},
            data=b"<propfind/>",
            auth=auth,
            timeout=7,
            verify=False,
        )
        assert response.status == 207
        assert response.header("etag") == '"1"'
        assert response.body == b"<multistatus/>"

    def test_errors_propagate(self):
        session = mocked_session()
        session.request.side_effect = requests.ConnectionError("down")
        with pytest.raises(requests.ConnectionError):
            SyncIO(session=session).execute(
                DAVRequest(method=DAVMethod.DELETE, url="https://h/x.ics")
            )

    def test_close_owned_session(self):
        with mock.patch("caldavsync.io.sync.requests.Session") as session_class:
            with SyncIO() as io:
                assert io.session is session_class.return_value
            session_class.return_value.close.assert_called_once_with()

    def test_foreign_session_left_open(self):
        session = mocked_session()
        SyncIO(session=session).close()
        session.close.assert_not_called()

    def test_protocol(self):
        assert isinstance(SyncIO(session=mocked_session()), SyncIOProtocol)
