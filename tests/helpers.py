"""Test doubles for Homeward."""

import json

import requests

from homeward.location import LocationError


class FakeRouteClient:
    """Returns canned points and remembers what it was asked"""

    def __init__(self, points=None):
        self.points = list(points or [])
        self.calls = []

    def fetch_walking_route(self, start, end):
        self.calls.append((start, end))
        return list(self.points)

    def close(self):
        pass


class FailingLocation:
    def get_location(self, timeout=None):
        raise LocationError("no fix")


class FakeSession:
    """Stands in for requests.Session; replays one response or exception"""

    def __init__(self, payload=None, status=200, body=None, exc=None):
        self.payload = payload
        self.status = status
        self.body = body
        self.exc = exc
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append({"url": url, "params": params, "timeout": timeout})
        if self.exc:
            raise self.exc
        response = requests.Response()
        response.status_code = self.status
        response.url = url
        if self.body is not None:
            response._content = self.body.encode()
        else:
            response._content = json.dumps(self.payload).encode()
        return response

    def close(self):
        pass


def feature_response(*coords):
    return {"features": [{"geometry": {"coordinates": [list(c) for c in coords]}}]}
