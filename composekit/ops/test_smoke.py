from unittest import TestCase, mock

import requests

from composekit.ops.smoke import http_probe, http_ready


class HttpReadyTests(TestCase):
    @mock.patch("composekit.ops.smoke.requests.get")
    def test_ok_status_is_ready(self, get):
        get.return_value.status_code = 204
        self.assertTrue(http_ready("http://localhost:8080/readyz"))
        get.assert_called_once_with("http://localhost:8080/readyz", timeout=5)

    @mock.patch("composekit.ops.smoke.requests.get")
    def test_error_status_is_not_ready(self, get):
        get.return_value.status_code = 503
        self.assertFalse(http_ready("http://localhost:8080/readyz"))

    @mock.patch("composekit.ops.smoke.requests.get")
    def test_connection_error_is_not_ready(self, get):
        get.side_effect = requests.ConnectionError("refused")
        self.assertFalse(http_ready("http://localhost:8080/readyz", timeout_s=1))

    @mock.patch("composekit.ops.smoke.requests.get")
    def test_probe_truncates_body(self, get):
        get.return_value.status_code = 200
        get.return_value.text = "x" * 5000
        result = http_probe("http://localhost:8080/readyz")
        self.assertTrue(result["ok"])
        self.assertEqual(len(result["body"]), 2000)
