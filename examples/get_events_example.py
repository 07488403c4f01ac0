#!/usr/bin/env python3
import json

## Set CALDAV_USERNAME, CALDAV_URL and CALDAV_PASSWORD through
## environment variables before running this example

from caldavsync.davclient import get_davclient


def fetch_and_print():
    with get_davclient() as client:
        print_calendars_demo(client, client.get_calendars())


def print_calendars_demo(client, calendars):
    if not calendars:
        return
    events = []
    for calendar in calendars:
        if "VEVENT" not in calendar.supported_components:
            continue
        ## Recurring events come back expanded, one Event per
        ## instance within the next three weeks
        for event in client.get_events(calendar.url):
            events.append(fill_event(event, calendar))
    print(json.dumps(events, indent=2, ensure_ascii=False))


def fill_event(event, calendar) -> dict:
    cur = {}
    cur["calendar"] = calendar.display_name
    cur["summary"] = event.summary
    cur["description"] = event.description
    cur["start"] = event.start.strftime("%m/%d/%Y %H:%M")
    if event.end:
        cur["end"] = event.end.strftime("%m/%d/%Y %H:%M")
    cur["href"] = event.href
    return cur


if __name__ == "__main__":
    fetch_and_print()
