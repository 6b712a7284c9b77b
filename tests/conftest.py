import os
from pathlib import Path

import pytest

_MARKERS_BY_LAYER = {
    "/domain/": "domain",
    "/application/": "application",
    "/integration/": "integration",
    "/bdd/": "bdd",
}


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the domain.toml overlay and the in-memory collaborators before any domain module is imported."""
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ["NOTIFIER_ADAPTER"] = "fake"
    os.environ["EVIDENCE_ADAPTER"] = "fake"


def pytest_collection_modifyitems(config, items):
    """Mark tests by the layer directory they live in."""
    for item in items:
        test_path = str(Path(item.fspath))
        for fragment, marker in _MARKERS_BY_LAYER.items():
            if fragment in test_path:
                item.add_marker(getattr(pytest.mark, marker))
                break

        if "/integration/" in test_path and not any(m.name == "fast" for m in item.iter_markers()):
            item.add_marker(pytest.mark.slow)
