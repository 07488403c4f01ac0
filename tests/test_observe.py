import logging
from unittest import mock

from caldavsync.lib.observe import emit
from caldavsync.lib.observe import LoggingSink


def test_emit():
    sink = mock.MagicMock()
    emit(sink, "sync_diff", new=1, deleted=0)
    sink.assert_called_once_with("sync_diff", {"new": 1, "deleted": 0})


def test_emit_without_sink():
    emit(None, "request", url="https://h/")


def test_emit_swallows_sink_errors(caplog):
    sink = mock.MagicMock(side_effect=ValueError("boom"))
    with caplog.at_level(logging.ERROR, logger="caldavsync"):
        emit(sink, "request", url="https://h/")
    assert "event sink failed on request" in caplog.text


def test_logging_sink_levels():
    logger = mock.MagicMock()
    sink = LoggingSink(logger)
    sink("item_decode_failed", {"href": "/a.ics", "component": "VEVENT"})
    sink("request", {"url": "https://h/", "method": "PUT"})
    assert logger.log.call_args_list == [
        mock.call(
            logging.WARNING,
            "%s: %s",
            "item_decode_failed",
            "component='VEVENT', href='/a.ics'",
        ),
        mock.call(logging.DEBUG, "%s: %s", "request", "method='PUT', url='https://h/'"),
    ]
