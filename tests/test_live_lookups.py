#!/usr/bin/env python3
"""Tests for live_lookups.py — dictionary and weather fetches."""

import os
import sys
import unittest
from unittest.mock import patch, MagicMock

import requests

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
import live_lookups as ll
from live_lookups import LookupState


def _response(status=200, payload=None, reason="OK"):
    resp = MagicMock()
    resp.status_code = status
    resp.reason = reason
    resp.json.return_value = payload
    return resp


DICTIONARY_PAYLOAD = [{
    "word": "zephyr",
    "meanings": [
        {"partOfSpeech": "noun", "definitions": [{"definition": ""}]},
        {"partOfSpeech": "noun", "definitions": [{"definition": " A soft gentle breeze. "}]},
    ],
}]


class TestFetchDefinition(unittest.TestCase):
    """Dictionary lookups."""

    @patch('live_lookups.requests.get')
    def test_first_non_empty_definition(self, mock_get):
        mock_get.return_value = _response(payload=DICTIONARY_PAYLOAD)
        result = ll.fetch_definition("zephyr", timeout=3)

        self.assertEqual(result.state, LookupState.RESOLVED)
        self.assertEqual(result.value, ("zephyr", "A soft gentle breeze."))
        mock_get.assert_called_once_with(ll.DICTIONARY_API_URL.format(word="zephyr"), timeout=3)

    @patch('live_lookups.requests.get')
    def test_not_found(self, mock_get):
        """404 from the API is a failed lookup."""
        mock_get.return_value = _response(status=404, reason="Not Found")
        result = ll.fetch_definition("xyzzy")
        self.assertEqual(result.state, LookupState.FAILED)
        self.assertIn("404", result.error)

    @patch('live_lookups.requests.get', side_effect=requests.ConnectionError("refused"))
    def test_connection_error(self, mock_get):
        self.assertEqual(ll.fetch_definition("zephyr").state, LookupState.FAILED)

    @patch('live_lookups.requests.get')
    def test_unexpected_shape(self, mock_get):
        """A dict where a list is expected fails instead of raising."""
        mock_get.return_value = _response(payload={"title": "No Definitions Found"})
        self.assertEqual(ll.fetch_definition("zephyr").state, LookupState.FAILED)

    @patch('live_lookups.requests.get')
    def test_no_definitions(self, mock_get):
        mock_get.return_value = _response(payload=[{"meanings": []}])
        result = ll.fetch_definition("zephyr")
        self.assertEqual(result.state, LookupState.FAILED)
        self.assertIn("no definition", result.error)


class TestFetchTemperature(unittest.TestCase):
    """Weather lookups."""

    @patch('live_lookups.requests.get')
    def test_reading(self, mock_get):
        mock_get.return_value = _response(payload={"current": {"temperature_2m": 68.4}})
        result = ll.fetch_temperature(40.7, -74.0, timeout=2)

        self.assertEqual(result.state, LookupState.RESOLVED)
        self.assertEqual(result.value, 68.4)
        args, kwargs = mock_get.call_args
        self.assertEqual(args[0], ll.WEATHER_API_URL)
        self.assertEqual(kwargs['params']['temperature_unit'], 'fahrenheit')
        self.assertEqual(kwargs['params']['latitude'], 40.7)
        self.assertEqual(kwargs['timeout'], 2)

    @patch('live_lookups.requests.get')
    def test_missing_field(self, mock_get):
        mock_get.return_value = _response(payload={"current": {}})
        self.assertEqual(ll.fetch_temperature(0, 0).state, LookupState.FAILED)

    @patch('live_lookups.requests.get')
    def test_server_error(self, mock_get):
        mock_get.return_value = _response(status=503, reason="Service Unavailable")
        self.assertEqual(ll.fetch_temperature(0, 0).state, LookupState.FAILED)

    @patch('live_lookups.requests.get', side_effect=requests.Timeout("slow"))
    def test_timeout(self, mock_get):
        result = ll.fetch_temperature(0, 0)
        self.assertEqual(result.state, LookupState.FAILED)
        self.assertIn("slow", result.error)


class TestLiveLookup(unittest.TestCase):

    def test_constructors(self):
        self.assertEqual(ll.LiveLookup.pending().state, LookupState.PENDING)
        self.assertEqual(ll.LiveLookup.failed("x").error, "x")
        self.assertEqual(ll.LiveLookup.resolved(3.0).value, 3.0)


if __name__ == '__main__':
    unittest.main()
