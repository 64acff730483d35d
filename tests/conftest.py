"""
Shared fakes: an in-memory X API that records every call, and an event
loop with virtual time so scheduled polls can be fired on demand.
"""
import json
from datetime import datetime

import pytest
import requests

from poll_bot import Credentials, PollBot, RemoteError
from polls import PollDefinition

NOW = datetime(2026, 10, 17, 12, 0, 0)


class FakeApi:
    def __init__(self, user_id="1001"):
        self.user_id = user_id
        self.calls = []
        self.me_error = None
        self.upload_error = None
        # One entry per create_post call, consumed in order; None means success
        self.post_errors = []
        self._next_id = 5000

    def get_me(self):
        self.calls.append(("get_me", {}))
        if self.me_error:
            raise self.me_error
        return self.user_id

    def upload_media(self, filename, data, mime_type):
        self.calls.append(
            ("upload_media", {"filename": filename, "data": data, "mime_type": mime_type})
        )
        if self.upload_error:
            raise self.upload_error
        return "media-1"

    def create_post(self, text, poll_options=None, poll_duration_minutes=None,
                    in_reply_to=None, media_ids=None):
        self.calls.append(("create_post", {
            "text": text,
            "poll_options": poll_options,
            "poll_duration_minutes": poll_duration_minutes,
            "in_reply_to": in_reply_to,
            "media_ids": media_ids,
        }))
        if self.post_errors:
            error = self.post_errors.pop(0)
            if error:
                raise error
        self._next_id += 1
        return {"id": str(self._next_id), "text": text}

    def names(self):
        return [name for name, _ in self.calls]

    def posts(self):
        return [kwargs for name, kwargs in self.calls if name == "create_post"]


class FakeHandle:
    def __init__(self, when, callback, args):
        self.when = when
        self.callback = callback
        self.args = args
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    def cancelled(self):
        return self._cancelled


class FakeLoop:
    def __init__(self):
        self.now = 0.0
        self.handles = []

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(self.now + delay, callback, args)
        self.handles.append(handle)
        return handle

    def advance(self, seconds):
        self.now += seconds
        due = [h for h in self.handles if h.when <= self.now and not h.cancelled()]
        for handle in sorted(due, key=lambda h: h.when):
            self.handles.remove(handle)
            handle.callback(*handle.args)


def remote_error(code, message="error"):
    return RemoteError(code, message)


def tweepy_response(status, body, reason="", headers=None):
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response._content = json.dumps(body).encode("utf-8")
    response.headers.update(headers or {})
    return response


@pytest.fixture
def credentials():
    return Credentials("key", "key-secret", "token", "token-secret")


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def bot(credentials, api):
    return PollBot(credentials, default_duration_hours=24, api=api)


@pytest.fixture
def loop():
    return FakeLoop()


@pytest.fixture
def text_poll():
    return PollDefinition(title="T", options=("A", "B"), duration_hours=1)


@pytest.fixture
def image_poll(tmp_path):
    image = tmp_path / "chart.png"
    image.write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 24)
    return PollDefinition(title="T", options=("A", "B"), duration_hours=1, image_path=image)
