from unittest import TestCase, mock

from composekit import pytest_plugin

SESSION_CONFTEST = """
from pathlib import Path
from unittest import mock

import pytest

from composekit.config import Settings
from composekit.ops.docker import ComposeRunner
from composekit.pytest_plugin import compose_fixture

RUNNER = mock.MagicMock(spec=ComposeRunner)
RUNNER.is_healthy.return_value = True
RUNNER.down.return_value = True
SETTINGS = Settings(
    engine=None,
    compose_file=None,
    poll_interval_s=1.0,
    health_attempts=3,
    cmd_timeout_s=10,
    ready_url=None,
)

compose_stack = compose_fixture("compose.test.yml", scope="module", name="stack", runner=RUNNER, settings=SETTINGS)


@pytest.fixture
def fake_runner():
    return RUNNER


def pytest_sessionfinish(session):
    Path("calls.txt").write_text(f"{RUNNER.up.call_count} {RUNNER.down.call_count}")
"""

SESSION_TESTS = """
def test_failing_test_gets_runner(stack, fake_runner):
    assert stack is fake_runner
    fake_runner.down.assert_not_called()
    assert False, "broken assertion in the suite"


def test_stack_is_shared_within_module(stack, fake_runner):
    assert fake_runner.up.call_count == 1
    fake_runner.down.assert_not_called()
"""


def test_fixture_brackets_a_pytest_session(pytester):
    pytester.makeconftest(SESSION_CONFTEST)
    pytester.makepyfile(test_stack=SESSION_TESTS)
    result = pytester.runpytest()
    result.assert_outcomes(passed=1, failed=1)
    result.stdout.fnmatch_lines(["*broken assertion in the suite*"])
    up_calls, down_calls = (pytester.path / "calls.txt").read_text().split()
    assert up_calls == "1"
    assert down_calls == "1"


class _Bracket:
    def __init__(self, calls):
        self.calls = calls

    def __enter__(self):
        self.calls.append("start")
        return "runner"

    def __exit__(self, *exc):
        self.calls.append("stop")
        return False


class RunningStackTests(TestCase):
    def test_yields_runner_then_tears_down(self):
        calls = []
        with mock.patch.object(pytest_plugin, "compose_service", return_value=_Bracket(calls)) as compose_service:
            gen = pytest_plugin.running_stack("compose.test.yml", {"attempts": 5})
            self.assertEqual(next(gen), "runner")
            self.assertEqual(calls, ["start"])
            with self.assertRaises(StopIteration):
                next(gen)
        compose_service.assert_called_once_with("compose.test.yml", attempts=5)
        self.assertEqual(calls, ["start", "stop"])
