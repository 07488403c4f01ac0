import json

import pytest
from requests.auth import HTTPBasicAuth

from caldavsync.config import ClientOptions
from caldavsync.config import config_section
from caldavsync.config import DEFAULT_TIMEOUT
from caldavsync.config import options_from_config
from caldavsync.config import options_from_env
from caldavsync.config import read_config
from caldavsync.lib.vcal import DEFAULT_PROD_ID
from caldavsync.requests import HTTPBearerAuth


class TestAuth:
    def test_basic_inferred(self):
        auth = ClientOptions(base_url="https://h/", username="u", password="p").build_auth()
        assert isinstance(auth, HTTPBasicAuth)
        assert auth.username == "u"
        assert auth.password == "p"

    def test_bearer_inferred(self):
        auth = ClientOptions(base_url="https://h/", token="tok").build_auth()
        assert auth == HTTPBearerAuth("tok")

    def test_token_wins_over_username(self):
        options = ClientOptions(base_url="https://h/", username="u", token="tok")
        assert isinstance(options.build_auth(), HTTPBearerAuth)

    def test_explicit_type(self):
        options = ClientOptions(
            base_url="https://h/", username="u", token="tok", auth_type="basic"
        )
        assert isinstance(options.build_auth(), HTTPBasicAuth)

    def test_explicit_auth_object(self):
        auth = HTTPBasicAuth("a", "b")
        options = ClientOptions(base_url="https://h/", token="tok", auth=auth)
        assert options.build_auth() is auth

    def test_anonymous(self):
        assert ClientOptions(base_url="https://h/").build_auth() is None

    def test_bearer_without_token(self):
        with pytest.raises(ValueError):
            ClientOptions(base_url="https://h/", auth_type="bearer").build_auth()

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            ClientOptions(base_url="https://h/", auth_type="digest").build_auth()

    def test_bearer_header(self):
        class Prepared:
            headers = {}

        assert HTTPBearerAuth("tok")(Prepared()).headers == {
            "Authorization": "Bearer tok"
        }


class TestEnvironment:
    def test_not_configured(self):
        assert options_from_env({}) is None

    def test_configured(self):
        options = options_from_env(
            {
                "CALDAV_URL": "https://h/dav",
                "CALDAV_USERNAME": "u",
                "CALDAV_PASSWORD": "p",
                "CALDAV_TIMEOUT": "12.5",
            }
        )
        assert options.base_url == "https://h/dav"
        assert options.username == "u"
        assert options.password == "p"
        assert options.timeout == 12.5
        assert options.prod_id == DEFAULT_PROD_ID

    def test_defaults(self):
        options = options_from_env({"CALDAV_URL": "https://h/dav", "CALDAV_TIMEOUT": ""})
        assert options.timeout == DEFAULT_TIMEOUT
        assert options.token is None


class TestConfigFile:
    def test_config_section_inherits(self):
        config = {
            "default": {"caldav_url": "https://h/dav", "caldav_user": "u"},
            "other": {"inherits": "default", "caldav_user": "v"},
        }
        section = config_section(config, "other")
        assert section["caldav_url"] == "https://h/dav"
        assert section["caldav_user"] == "v"
        assert config_section(config, "missing") == {}

    def test_read_config(self, tmp_path):
        fn = tmp_path / "calendar.json"
        fn.write_text(json.dumps({"default": {"caldav_url": "https://h/"}}))
        assert read_config(str(fn)) == {"default": {"caldav_url": "https://h/"}}

    def test_read_config_missing(self, tmp_path):
        assert read_config(str(tmp_path / "nope.json")) == {}

    def test_read_config_broken(self, tmp_path):
        fn = tmp_path / "calendar.json"
        fn.write_text("{ this is not json")
        assert read_config(str(fn)) == {}

    def test_options_from_config(self, tmp_path):
        fn = tmp_path / "calendar.json"
        fn.write_text(
            json.dumps(
                {
                    "default": {
                        "caldav_url": "https://h/dav",
                        "caldav_username": "u",
                        "caldav_password": "p",
                        "caldav_timeout": 30,
                        "caldav_prod_id": "-//Acme//Planner//EN",
                        "caldav_ssl_verify_cert": False,
                    }
                }
            )
        )
        options = options_from_config(str(fn))
        assert options.base_url == "https://h/dav"
        assert options.username == "u"
        assert options.password == "p"
        assert options.timeout == 30.0
        assert options.prod_id == "-//Acme//Planner//EN"
        assert options.ssl_verify_cert is False

    def test_options_from_config_without_url(self, tmp_path):
        fn = tmp_path / "calendar.json"
        fn.write_text(json.dumps({"default": {"caldav_user": "u"}}))
        assert options_from_config(str(fn)) is None
