#!/usr/bin/env python3
"""
Keeps a JSON file with the (href, etag) pairs and ctag of each calendar,
and prints what changed on the server since the previous run.

Set CALDAV_USERNAME, CALDAV_URL and CALDAV_PASSWORD through
environment variables before running this example.
"""
import json
import os

from caldavsync import ClientCache
from caldavsync import DAVClient
from caldavsync import ItemRef
from caldavsync.config import options_from_env

STATE_FILE = "sync_state.json"


def load_state():
    if not os.path.exists(STATE_FILE):
        return {}
    with open(STATE_FILE) as f:
        return json.load(f)


def save_state(state):
    with open(STATE_FILE, "w") as f:
        json.dump(state, f, indent=2)


def connect(options, state):
    ## discovery costs two round trips, the cache saves them on later runs
    if "client" in state:
        return DAVClient.from_cache(options, ClientCache.from_dict(state["client"]))
    client = DAVClient.create(options)
    state["client"] = client.export_cache().to_dict()
    return client


def run():
    state = load_state()
    calendars = state.setdefault("calendars", {})
    with connect(options_from_env(), state) as client:
        for calendar in client.get_calendars():
            if "VEVENT" not in calendar.supported_components:
                continue
            known = calendars.get(calendar.url)
            if known is None:
                ## first time we see this calendar, take inventory
                refs = client.get_event_refs(calendar.url)
                print("%s: %i events" % (calendar.display_name, len(refs)))
            else:
                local = [ItemRef(**ref) for ref in known["refs"]]
                result = client.sync_changes(calendar.url, known["ctag"], local)
                if not result.changed:
                    print("%s: unchanged" % calendar.display_name)
                    continue
                print(
                    "%s: %i new, %i updated, %i deleted"
                    % (
                        calendar.display_name,
                        len(result.new_items),
                        len(result.updated_items),
                        len(result.deleted_items),
                    )
                )
                for event in client.get_events_by_href(
                    calendar.url, result.new_items + result.updated_items
                ):
                    print("  %s  %s" % (event.start, event.summary))
                refs = client.get_event_refs(calendar.url)
            calendars[calendar.url] = {
                "ctag": client.get_ctag(calendar.url),
                "refs": [{"href": r.href, "etag": r.etag} for r in refs],
            }
    save_state(state)


if __name__ == "__main__":
    run()
