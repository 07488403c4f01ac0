"""
Unit tests for the Sans-I/O protocol layer.

These tests verify request assembly and response parsing without any
HTTP mocking required.  All tests are pure - they test data
transformations only.
"""
from datetime import datetime
from datetime import timezone

import pytest
from lxml import etree

from caldavsync.lib import error
from caldavsync.objects import ItemRef
from caldavsync.protocol import CalDAVProtocol
from caldavsync.protocol import DAVMethod
from caldavsync.protocol import DAVRequest
from caldavsync.protocol import DAVResponse
from caldavsync.protocol import parse_calendar_home
from caldavsync.protocol import parse_calendar_query_response
from caldavsync.protocol import parse_calendars
from caldavsync.protocol import parse_ctag
from caldavsync.protocol import parse_etag
from caldavsync.protocol import parse_events
from caldavsync.protocol import parse_item_refs
from caldavsync.protocol import parse_principal
from caldavsync.protocol import parse_todos
from caldavsync.protocol.xml_builders import build_calendar_multiget_body
from caldavsync.protocol.xml_builders import build_calendar_query_body
from caldavsync.protocol.xml_builders import build_calendars_body

D = "{DAV:}"
C = "{urn:ietf:params:xml:ns:caldav}"
CS = "{http://calendarserver.org/ns/}"

utc = timezone.utc

EVENT_ICS = (
    "BEGIN:VCALENDAR\r\n"
    "VERSION:2.0\r\n"
    "PRODID:-//Example//EN\r\n"
    "BEGIN:VEVENT\r\n"
    "UID:%(uid)s\r\n"
    "DTSTAMP:20240101T000000Z\r\n"
    "DTSTART:20240101T090000Z\r\n"
    "DTEND:20240101T093000Z\r\n"
    "SUMMARY:%(summary)s\r\n"
    "END:VEVENT\r\n"
    "END:VCALENDAR\r\n"
)

TODO_ICS = (
    "BEGIN:VCALENDAR\r\n"
    "VERSION:2.0\r\n"
    "PRODID:-//Example//EN\r\n"
    "BEGIN:VTODO\r\n"
    "UID:t1\r\n"
    "DTSTAMP:20240101T000000Z\r\n"
    "SUMMARY:Buy milk\r\n"
    "END:VTODO\r\n"
    "END:VCALENDAR\r\n"
)


def multistatus(*responses: str) -> bytes:
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<d:multistatus xmlns:d="DAV:" xmlns:c="urn:ietf:params:xml:ns:caldav"'
        ' xmlns:cs="http://calendarserver.org/ns/">%s</d:multistatus>'
        % "".join(responses)
    ).encode("utf-8")


def propstat(props: str, status: str = "HTTP/1.1 200 OK") -> str:
    return "<d:propstat><d:prop>%s</d:prop><d:status>%s</d:status></d:propstat>" % (
        props,
        status,
    )


def response(href: str, *propstats: str) -> str:
    return "<d:response><d:href>%s</d:href>%s</d:response>" % (href, "".join(propstats))


def calendar_response(href: str, name: str, comps, ctag: str = "ctag-1") -> str:
    comp_xml = "".join('<c:comp name="%s"/>' % comp for comp in comps)
    return response(
        href,
        propstat(
            "<d:resourcetype><d:collection/><c:calendar/></d:resourcetype>"
            "<d:displayname>%s</d:displayname>"
            "<cs:getctag>%s</cs:getctag>"
            "<c:supported-calendar-component-set>%s</c:supported-calendar-component-set>"
            % (name, ctag, comp_xml)
        ),
    )


def data_response(href: str, etag: str, data: str) -> str:
    return response(
        href,
        propstat(
            "<d:getetag>%s</d:getetag><c:calendar-data>%s</c:calendar-data>"
            % (etag, data.replace("&", "&amp;").replace("<", "&lt;"))
        ),
    )


class TestDAVTypes:
    """Test core DAV types."""

    def test_dav_request_immutable(self):
        """DAVRequest should be immutable (frozen dataclass)."""
        request = DAVRequest(method=DAVMethod.PROPFIND, url="https://example.com/")
        with pytest.raises(AttributeError):
            request.url = "https://other.com/"

    def test_dav_request_with_header(self):
        """with_header should return new request with added header."""
        request = DAVRequest(
            method=DAVMethod.PROPFIND,
            url="https://example.com/",
            headers={"Depth": "0"},
        )
        new_request = request.with_header("Prefer", "return=minimal")
        assert "Prefer" not in request.headers
        assert new_request.headers == {"Depth": "0", "Prefer": "return=minimal"}

    def test_dav_response_ok(self):
        assert DAVResponse(status=200).ok
        assert DAVResponse(status=204).ok
        assert DAVResponse(status=207).ok
        assert not DAVResponse(status=412).ok
        assert not DAVResponse(status=500).ok

    def test_dav_response_is_multistatus(self):
        assert DAVResponse(status=207).is_multistatus
        assert not DAVResponse(status=200).is_multistatus

    def test_dav_response_header_case_insensitive(self):
        resp = DAVResponse(status=201, headers={"etag": '"abc"'})
        assert resp.header("ETag") == '"abc"'
        assert resp.header("Content-Type") is None
        assert resp.reason == "Created"


class TestXMLBuilders:
    """Test XML building functions."""

    def test_calendars_body(self):
        root = etree.fromstring(build_calendars_body())
        assert root.tag == D + "propfind"
        props = [child.tag for child in root.find(D + "prop")]
        assert props == [
            D + "resourcetype",
            D + "displayname",
            CS + "getctag",
            C + "supported-calendar-component-set",
        ]

    def test_calendar_query_with_window_expands_events(self):
        """A VEVENT query with a window gets a time-range and an expand"""
        body = build_calendar_query_body(
            "VEVENT",
            datetime(2024, 1, 1, tzinfo=utc),
            datetime(2024, 1, 22, tzinfo=utc),
        )
        root = etree.fromstring(body)
        assert root.tag == C + "calendar-query"
        prop = root.find(D + "prop")
        assert prop.find(D + "getetag") is not None
        expand = prop.find(C + "calendar-data").find(C + "expand")
        assert expand.get("start") == "20240101T000000Z"
        assert expand.get("end") == "20240122T000000Z"

        vcal_filter = root.find(C + "filter").find(C + "comp-filter")
        assert vcal_filter.get("name") == "VCALENDAR"
        event_filter = vcal_filter.find(C + "comp-filter")
        assert event_filter.get("name") == "VEVENT"
        time_range = event_filter.find(C + "time-range")
        assert time_range.get("start") == "20240101T000000Z"
        assert time_range.get("end") == "20240122T000000Z"

    def test_calendar_query_with_window_does_not_expand_todos(self):
        body = build_calendar_query_body(
            "VTODO",
            datetime(2024, 1, 1, tzinfo=utc),
            datetime(2024, 1, 22, tzinfo=utc),
        )
        root = etree.fromstring(body)
        data = root.find(D + "prop").find(C + "calendar-data")
        assert data is not None
        assert data.find(C + "expand") is None
        todo_filter = root.find(C + "filter").find(C + "comp-filter").find(C + "comp-filter")
        assert todo_filter.find(C + "time-range") is not None

    def test_calendar_query_without_window(self):
        """Without both bounds the component filter is unqualified"""
        root = etree.fromstring(build_calendar_query_body("VEVENT"))
        event_filter = root.find(C + "filter").find(C + "comp-filter").find(C + "comp-filter")
        assert event_filter.get("name") == "VEVENT"
        assert len(event_filter) == 0
        assert root.find(D + "prop").find(C + "calendar-data").find(C + "expand") is None

    def test_calendar_query_refs_only(self):
        root = etree.fromstring(build_calendar_query_body("VTODO", include_data=False))
        props = [child.tag for child in root.find(D + "prop")]
        assert props == [D + "getetag"]

    def test_calendar_multiget_body(self):
        root = etree.fromstring(
            build_calendar_multiget_body(["/cal/a.ics", "/cal/b.ics"])
        )
        assert root.tag == C + "calendar-multiget"
        assert [h.text for h in root.findall(D + "href")] == ["/cal/a.ics", "/cal/b.ics"]
        assert root.find(D + "prop").find(C + "calendar-data") is not None


class TestCalDAVProtocol:
    """Test request assembly."""

    def setup_method(self):
        self.protocol = CalDAVProtocol(base_url="https://cal.example.com/dav")

    def test_relative_path_keeps_base_prefix(self):
        request = self.protocol.ctag_request("/calendars/alice/work/")
        assert request.url == "https://cal.example.com/dav/calendars/alice/work/"
        assert request.method == DAVMethod.PROPFIND
        assert request.headers["Depth"] == "0"
        assert request.headers["Content-Type"] == "application/xml; charset=utf-8"

    def test_absolute_url_passes_through(self):
        request = self.protocol.etag_request("https://other.example.com/x.ics")
        assert request.url == "https://other.example.com/x.ics"

    def test_principal_request(self):
        request = self.protocol.principal_request("/")
        assert request.url == "https://cal.example.com/dav/"
        assert request.headers["Prefer"] == "return=minimal"
        assert request.headers["Depth"] == "0"
        assert b"current-user-principal" in request.body

    def test_calendars_request_depth(self):
        request = self.protocol.calendars_request("/calendars/alice/")
        assert request.headers["Depth"] == "1"

    def test_calendar_query_request(self):
        request = self.protocol.calendar_query_request("/cal/", "VTODO")
        assert request.method == DAVMethod.REPORT
        assert request.headers["Depth"] == "1"
        assert b"VTODO" in request.body

    def test_put_request(self):
        request = self.protocol.put_request(
            "/cal/e1.ics", b"BEGIN:VCALENDAR", {"If-None-Match": "*"}
        )
        assert request.method == DAVMethod.PUT
        assert request.headers == {
            "Content-Type": "text/calendar; charset=utf-8",
            "If-None-Match": "*",
        }
        assert request.body == b"BEGIN:VCALENDAR"

    def test_delete_request(self):
        request = self.protocol.delete_request("/cal/e1.ics", {"If-Match": "*"})
        assert request.method == DAVMethod.DELETE
        assert request.url == "https://cal.example.com/dav/cal/e1.ics"
        assert request.headers == {"If-Match": "*"}
        assert request.body is None


class TestDiscoveryParsers:
    def test_parse_principal(self):
        body = multistatus(
            response(
                "/dav/",
                propstat(
                    "<d:current-user-principal><d:href>/dav/principals/alice/</d:href>"
                    "</d:current-user-principal>"
                ),
            )
        )
        assert parse_principal(body) == "/dav/principals/alice/"

    def test_parse_principal_other_prefix(self):
        """Namespace prefixes chosen by the server don't matter"""
        body = (
            b'<A:multistatus xmlns:A="DAV:"><A:response><A:href>/</A:href>'
            b"<A:propstat><A:prop><A:current-user-principal><A:href>/p/bob/</A:href>"
            b"</A:current-user-principal></A:prop><A:status>HTTP/1.1 200 OK</A:status>"
            b"</A:propstat></A:response></A:multistatus>"
        )
        assert parse_principal(body) == "/p/bob/"

    def test_parse_principal_missing(self):
        body = multistatus(response("/", propstat("<d:displayname>x</d:displayname>")))
        assert parse_principal(body) is None
        assert parse_principal(b"") is None

    def test_parse_calendar_home(self):
        body = multistatus(
            response(
                "/dav/principals/alice/",
                propstat(
                    "<c:calendar-home-set><d:href>/dav/calendars/alice/</d:href>"
                    "</c:calendar-home-set>"
                ),
            )
        )
        assert parse_calendar_home(body) == "/dav/calendars/alice/"

    def test_parse_etag_and_ctag(self):
        assert parse_etag(multistatus(response("/a.ics", propstat('<d:getetag>"e1"</d:getetag>')))) == '"e1"'
        assert parse_ctag(multistatus(response("/cal/", propstat("<cs:getctag>42</cs:getctag>")))) == "42"
        assert parse_ctag(multistatus(response("/cal/", propstat("<cs:getctag/>")))) is None

    def test_non_multistatus_root(self):
        assert parse_ctag(b"<html><body>oops</body></html>") is None

    def test_invalid_xml_raises(self):
        with pytest.raises(etree.XMLSyntaxError):
            parse_ctag(b"<d:multistatus")


class TestParseCalendars:
    def test_filters_on_components(self):
        """Calendars supporting neither VEVENT nor VTODO are left out"""
        body = multistatus(
            response(
                "/dav/calendars/alice/",
                propstat("<d:resourcetype><d:collection/></d:resourcetype>"),
            ),
            calendar_response("/dav/calendars/alice/work/", "Work", ["VEVENT", "VTIMEZONE"]),
            calendar_response("/dav/calendars/alice/tasks/", "Tasks", ["VTODO"]),
            calendar_response("/dav/calendars/alice/journal/", "Journal", ["VJOURNAL"]),
        )
        calendars = parse_calendars(body)
        assert [c.display_name for c in calendars] == ["Work", "Tasks"]
        work = calendars[0]
        assert work.url == "/dav/calendars/alice/work/"
        assert work.ctag == "ctag-1"
        assert work.supported_components == {"VEVENT", "VTIMEZONE"}

    def test_unknown_components_are_dropped(self):
        body = multistatus(
            calendar_response("/cal/", "Odd", ["VEVENT", "X-SOMETHING"]),
        )
        assert parse_calendars(body)[0].supported_components == {"VEVENT"}

    def test_first_ok_propstat_wins(self):
        body = multistatus(
            response(
                "/cal/a/",
                propstat("<cs:getctag/>", "HTTP/1.1 404 Not Found"),
                propstat(
                    "<d:displayname>A</d:displayname>"
                    '<c:supported-calendar-component-set><c:comp name="VTODO"/>'
                    "</c:supported-calendar-component-set>",
                    "HTTP/1.1 200 ok",
                ),
            ),
            response(
                "/cal/b/",
                propstat("<d:displayname>B</d:displayname>"),
                propstat(
                    '<c:supported-calendar-component-set><c:comp name="VEVENT"/>'
                    "</c:supported-calendar-component-set>"
                ),
            ),
            response(
                "/cal/c/",
                propstat("<d:displayname>C</d:displayname>", "HTTP/1.1 403 Forbidden"),
            ),
        )
        calendars = parse_calendars(body)
        ## b has its component set in the second success block only, c has no success block
        assert [c.display_name for c in calendars] == ["A"]
        assert calendars[0].ctag is None

    def test_base_url_resolution(self):
        body = multistatus(calendar_response("/dav/cal/", "Cal", ["VEVENT"]))
        calendars = parse_calendars(body, base_url="https://cal.example.com/dav/")
        assert calendars[0].url == "https://cal.example.com/dav/cal/"

    def test_empty(self):
        assert parse_calendars(multistatus()) == []


class TestParseItems:
    def test_item_refs(self):
        body = multistatus(
            response("/cal/a.ics", propstat('<d:getetag>"1"</d:getetag>')),
            response("/cal/b.ics", propstat('<d:getetag>"2"</d:getetag>')),
            response("/cal/", propstat("<d:resourcetype/>")),
        )
        assert parse_item_refs(body) == [
            ItemRef(href="/cal/a.ics", etag='"1"'),
            ItemRef(href="/cal/b.ics", etag='"2"'),
        ]

    def test_calendar_query_response_drops_entries_without_data(self):
        body = multistatus(
            data_response("/cal/a.ics", '"1"', EVENT_ICS % {"uid": "a", "summary": "A"}),
            response("/cal/b.ics", propstat('<d:getetag>"2"</d:getetag>')),
        )
        results = parse_calendar_query_response(body)
        assert len(results) == 1
        assert results[0].href == "/cal/a.ics"
        assert results[0].etag == '"1"'
        assert "UID:a" in results[0].calendar_data

    def test_escaped_carriage_returns_are_normalized(self):
        """Literal &#13; left in the data becomes CR for events, CRLF for todos"""
        data = "BEGIN:VCALENDAR&#13;\nEND:VCALENDAR"
        body = multistatus(data_response("/cal/a.ics", '"1"', data))
        assert parse_calendar_query_response(body, "VEVENT")[0].calendar_data == (
            "BEGIN:VCALENDAR\r\nEND:VCALENDAR"
        )
        assert parse_calendar_query_response(body, "VTODO")[0].calendar_data == (
            "BEGIN:VCALENDAR\r\n\nEND:VCALENDAR"
        )

    def test_parse_events(self):
        body = multistatus(
            data_response("/cal/a.ics", '"1"', EVENT_ICS % {"uid": "a", "summary": "A"})
        )
        report = parse_events(body)
        assert report.failures == []
        (event,) = report.items
        assert event.uid == "a"
        assert event.summary == "A"
        assert event.href == "/cal/a.ics"
        assert event.etag == '"1"'
        assert event.start == datetime(2024, 1, 1, 9, tzinfo=utc)
        assert not event.whole_day

    def test_parse_events_isolates_broken_items(self):
        """One undecodable object does not stop its siblings"""
        body = multistatus(
            data_response("/cal/a.ics", '"1"', EVENT_ICS % {"uid": "a", "summary": "A"}),
            data_response("/cal/broken.ics", '"2"', "this is not calendar data"),
            data_response("/cal/c.ics", '"3"', EVENT_ICS % {"uid": "c", "summary": "C"}),
        )
        report = parse_events(body)
        assert [e.uid for e in report.items] == ["a", "c"]
        assert len(report.failures) == 1
        failure = report.failures[0]
        assert isinstance(failure, error.ItemDecodeError)
        assert failure.url == "/cal/broken.ics"
        assert failure.component == "VEVENT"

    def test_parse_events_base_url(self):
        body = multistatus(
            data_response("/dav/cal/a.ics", '"1"', EVENT_ICS % {"uid": "a", "summary": "A"})
        )
        report = parse_events(body, base_url="https://cal.example.com/dav/")
        assert report.items[0].href == "https://cal.example.com/dav/cal/a.ics"

    def test_parse_todos(self):
        body = multistatus(data_response("/cal/t1.ics", '"9"', TODO_ICS))
        report = parse_todos(body)
        (todo,) = report.items
        assert todo.uid == "t1"
        assert todo.summary == "Buy milk"
        assert todo.etag == '"9"'
        assert todo.due is None
