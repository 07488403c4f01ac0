import json
import logging
import os
from dataclasses import dataclass
from dataclasses import field
from typing import Dict
from typing import Mapping
from typing import Optional
from typing import Union

from requests.auth import AuthBase
from requests.auth import HTTPBasicAuth

from caldavsync.lib.vcal import DEFAULT_PROD_ID
from caldavsync.requests import HTTPBearerAuth

DEFAULT_TIMEOUT = 5.0

log = logging.getLogger("caldavsync")


@dataclass(frozen=True)
class ClientOptions:
    """
    Everything needed to talk to one CalDAV account.

    ``auth_type`` is ``basic`` or ``bearer``.  When left out it is
    inferred: a token means bearer, a username means basic.  An explicit
    ``auth`` object wins over both.
    """

    base_url: str
    username: Optional[str] = None
    password: Optional[str] = None
    token: Optional[str] = None
    auth_type: Optional[str] = None
    auth: Optional[AuthBase] = None
    timeout: float = DEFAULT_TIMEOUT
    prod_id: str = DEFAULT_PROD_ID
    log_requests: bool = False
    headers: Dict[str, str] = field(default_factory=dict)
    ssl_verify_cert: Union[bool, str] = True

    def build_auth(self) -> Optional[AuthBase]:
        if self.auth is not None:
            return self.auth
        auth_type = self.auth_type
        if auth_type is None:
            if self.token:
                auth_type = "bearer"
            elif self.username:
                auth_type = "basic"
            else:
                return None
        if auth_type == "bearer":
            if not self.token:
                raise ValueError("bearer authentication needs a token")
            return HTTPBearerAuth(self.token)
        if auth_type == "basic":
            if self.username is None:
                raise ValueError("basic authentication needs a username")
            return HTTPBasicAuth(self.username, self.password or "")
        raise ValueError("unknown auth_type %r" % auth_type)


def _timeout(value: Optional[Union[str, float, int]]) -> float:
    if value is None or value == "":
        return DEFAULT_TIMEOUT
    return float(value)


def options_from_env(environ: Optional[Mapping[str, str]] = None) -> Optional[ClientOptions]:
    """
    Builds options from CALDAV_URL, CALDAV_USERNAME, CALDAV_PASSWORD,
    CALDAV_TOKEN, CALDAV_TIMEOUT and CALDAV_PROD_ID.  Returns None if
    CALDAV_URL is not set.
    """
    if environ is None:
        environ = os.environ
    url = environ.get("CALDAV_URL")
    if not url:
        return None
    return ClientOptions(
        base_url=url,
        username=environ.get("CALDAV_USERNAME"),
        password=environ.get("CALDAV_PASSWORD"),
        token=environ.get("CALDAV_TOKEN"),
        timeout=_timeout(environ.get("CALDAV_TIMEOUT")),
        prod_id=environ.get("CALDAV_PROD_ID") or DEFAULT_PROD_ID,
    )


def config_section(config, section="default"):
    if section in config and "inherits" in config[section]:
        ret = config_section(config, config[section]["inherits"])
    else:
        ret = {}
    if section in config:
        ret.update(config[section])
    return ret


def read_config(fn=None):
    """
    Reads a JSON config file.  Without a file name, the usual locations
    are tried in order.  A missing file gives an empty dict, a broken one
    is logged and also gives an empty dict.
    """
    if not fn:
        cfgdir = f"{os.environ.get('HOME', '/')}/.config/"
        for config_file in (
            f"{cfgdir}/caldavsync/calendar.json",
            f"{cfgdir}/caldav/calendar.json",
            "/etc/caldavsync/calendar.json",
        ):
            cfg = read_config(config_file)
            if cfg:
                return cfg
        return {}

    try:
        with open(fn, "rb") as config_file:
            return json.load(config_file)
    except FileNotFoundError:
        log.info("no config file found at %s" % fn)
    except ValueError:
        log.error(f"error in config file {fn}.  It will be ignored", exc_info=True)
    return {}


def options_from_config(fn=None, section="default") -> Optional[ClientOptions]:
    """
    Builds options from a section of the config file, using the
    ``caldav_*`` keys::

        {"default": {"caldav_url": "https://cal.example.com/dav",
                     "caldav_user": "alice", "caldav_pass": "secret"}}

    Sections may pull in another section with ``inherits``.  Returns
    None if the section has no ``caldav_url``.
    """
    cfg = config_section(read_config(fn), section)
    if not cfg.get("caldav_url"):
        return None
    return ClientOptions(
        base_url=cfg["caldav_url"],
        username=cfg.get("caldav_user") or cfg.get("caldav_username"),
        password=cfg.get("caldav_pass") or cfg.get("caldav_password"),
        token=cfg.get("caldav_token"),
        auth_type=cfg.get("caldav_auth_type"),
        timeout=_timeout(cfg.get("caldav_timeout")),
        prod_id=cfg.get("caldav_prod_id") or DEFAULT_PROD_ID,
        ssl_verify_cert=cfg.get("caldav_ssl_verify_cert", True),
    )
