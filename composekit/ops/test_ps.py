import json
from unittest import TestCase

from composekit.ops.ps import contains_healthy_marker, is_healthy_output, parse_ps_output


class HealthMarkerTests(TestCase):
    def test_compact_health_field_is_healthy(self):
        self.assertTrue(is_healthy_output('"Health":"healthy"'))

    def test_spaced_health_field_is_healthy(self):
        self.assertTrue(is_healthy_output('"Health": "healthy"'))

    def test_status_marker_is_healthy(self):
        self.assertTrue(is_healthy_output("db  Up 2 minutes (healthy)"))

    def test_text_without_markers_is_unhealthy(self):
        self.assertFalse(is_healthy_output("db  Up 2 minutes (health: starting)"))
        self.assertFalse(contains_healthy_marker('"Health":"unhealthy"'))

    def test_empty_output_is_unhealthy(self):
        self.assertFalse(is_healthy_output(""))
        self.assertFalse(is_healthy_output(None))


class StructuredOutputTests(TestCase):
    def test_ndjson_lines(self):
        raw = "\n".join(
            [
                json.dumps({"Service": "db", "State": "running", "Status": "Up 5 seconds (healthy)", "Health": "healthy"}),
                json.dumps({"Service": "cache", "State": "running", "Status": "Up 5 seconds", "Health": ""}),
            ]
        )
        services = parse_ps_output(raw)
        self.assertEqual([s["service"] for s in services], ["db", "cache"])
        self.assertEqual(services[0]["health"], "healthy")
        self.assertEqual(services[1]["health"], "unknown")
        self.assertTrue(is_healthy_output(raw))

    def test_json_array(self):
        raw = json.dumps([{"Name": "proj-db-1", "Service": "db", "Status": "Up 1 second (health: starting)"}])
        services = parse_ps_output(raw)
        self.assertEqual(services[0]["health"], "starting")
        self.assertFalse(is_healthy_output(raw))

    def test_health_taken_from_status_when_field_missing(self):
        raw = json.dumps({"Service": "db", "Status": "Up 3 minutes (healthy)"})
        self.assertEqual(parse_ps_output(raw)[0]["health"], "healthy")
        self.assertTrue(is_healthy_output(raw))

    def test_invalid_lines_are_skipped(self):
        raw = "\n".join(["not json", json.dumps("healthy"), json.dumps({"Service": "db", "Health": "unhealthy"})])
        services = parse_ps_output(raw)
        self.assertEqual(len(services), 1)
        self.assertEqual(services[0]["health"], "unhealthy")

    def test_structured_records_take_precedence_over_marker_search(self):
        raw = json.dumps({"Service": "db", "Health": "unhealthy", "Labels": "note=(healthy)"})
        self.assertTrue(contains_healthy_marker(raw))
        self.assertFalse(is_healthy_output(raw))

    def test_records_with_wrong_field_types_are_skipped(self):
        raw = json.dumps({"Service": 3, "Health": "healthy"})
        self.assertEqual(parse_ps_output(raw), [])
        # nothing parsed, so the raw marker search decides
        self.assertTrue(is_healthy_output(raw))
