"""Tests for the request envelope, credential masking and the logging adapter."""

from __future__ import annotations

import logging
import re

from teamcenter_client.logger import ClientLogger, as_client_logger, new_request_id
from teamcenter_client.protocol import MASK, create_json_request, is_login, mask_credentials


class TestCreateJsonRequest:
    def test_envelope(self):
        request = create_json_request("Core-2008-03-Session", "getFavorites", {"a": 1}, "MyClient")

        assert request["body"] == {"a": 1}
        state = request["header"]["state"]
        assert state["clientID"] == "MyClient"
        assert state["stateless"] is True
        assert request["header"]["policy"] == {}

    def test_none_params_become_empty_body(self):
        assert create_json_request("Core-2007-06-Session", "logout", None)["body"] == {}

    def test_login_credentials_block(self):
        request = create_json_request(
            "Core-2011-06-Session", "login", {"username": "admin", "password": "secret"}, "MyClient"
        )

        credentials = request["body"]["credentials"]
        assert credentials["user"] == "admin"
        assert credentials["password"] == "secret"
        assert credentials["group"] == ""
        assert credentials["role"] == ""
        assert credentials["locale"] == "en_US"
        assert re.fullmatch(r"MyClient_[0-9a-f]{12}", credentials["descrimator"])

    def test_is_login(self):
        assert is_login("Core-2011-06-Session", "login")
        assert not is_login("Core-2007-06-Session", "logout")


class TestMaskCredentials:
    def test_masks_raw_and_enveloped_passwords(self):
        raw = {"username": "admin", "password": "secret"}
        envelope = create_json_request("Core-2011-06-Session", "login", {"username": "a", "password": "secret"})

        assert mask_credentials("Core-2011-06-Session", "login", raw)["password"] == MASK
        masked = mask_credentials("Core-2011-06-Session", "login", envelope)
        assert masked["body"]["credentials"]["password"] == MASK

    def test_other_operations_untouched(self):
        params = {"password": "not a login"}

        assert mask_credentials("Core-2008-03-Session", "getFavorites", params) == {"password": "not a login"}


class TestClientLogger:
    def test_request_id_format(self):
        assert re.fullmatch(r"req_[0-9a-f]{12}", new_request_id())
        assert new_request_id("client").startswith("client_")

    def test_bind_prefixes_messages(self, caplog):
        log = ClientLogger(logging.getLogger("tests.logger")).bind("cmd_abc")

        with caplog.at_level(logging.DEBUG, logger="tests.logger"):
            log.info("hello")

        assert log.request_id == "cmd_abc"
        assert caplog.records[0].getMessage() == "[cmd_abc] hello"

    def test_log_request_masks_password_without_mutating(self, caplog):
        log = ClientLogger(logging.getLogger("tests.logger"))
        params = {"username": "admin", "password": "secret"}

        with caplog.at_level(logging.INFO, logger="tests.logger"):
            request_id = log.log_request("Core-2011-06-Session", "login", params)

        record = caplog.records[0]
        assert request_id in record.getMessage()
        assert "TC REQUEST: Core-2011-06-Session.login" in record.getMessage()
        assert record.params["password"] == MASK
        assert params["password"] == "secret"

    def test_log_response_error(self, caplog):
        log = ClientLogger(logging.getLogger("tests.logger"))

        with caplog.at_level(logging.INFO, logger="tests.logger"):
            log.log_response("S", "op", {"ok": True}, "req_1")
            log.log_response("S", "op", None, "req_2", RuntimeError("bad"))

        assert caplog.records[0].levelno == logging.INFO
        assert caplog.records[0].response == {"ok": True}
        assert caplog.records[1].levelno == logging.ERROR
        assert "TC RESPONSE ERROR: S.op: bad" in caplog.records[1].getMessage()

    def test_as_client_logger(self):
        existing = ClientLogger()

        assert as_client_logger(existing) is existing
        assert isinstance(as_client_logger(logging.getLogger("x")), ClientLogger)
        assert as_client_logger(None).logger.name == "teamcenter_client"
