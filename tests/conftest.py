"""Test tiers for the mastodon client.

* unit tests always run;
* ``integration`` tests need ``--integration`` unless they are ``ci_safe``
  (every HTTP call stubbed in-process);
* ``live`` tests talk to a real instance and need ``MASTODON_LIVE=1``.
"""

import os

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that reach beyond the process",
    )


def pytest_configure(config):
    for marker in (
        "integration: exercises the client over the real requests dispatcher",
        "ci_safe: integration test whose HTTP calls are all stubbed",
        "live: talks to a real Mastodon instance (MASTODON_LIVE=1)",
    ):
        config.addinivalue_line("markers", marker)


def pytest_collection_modifyitems(config, items):
    run_integration = config.getoption("--integration")
    run_live = os.getenv("MASTODON_LIVE") == "1"
    for item in items:
        if "live" in item.keywords and not run_live:
            item.add_marker(pytest.mark.skip(reason="set MASTODON_LIVE=1 to run"))
        elif (
            "integration" in item.keywords
            and "ci_safe" not in item.keywords
            and not run_integration
        ):
            item.add_marker(pytest.mark.skip(reason="needs --integration"))
