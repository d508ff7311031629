import pytest


def pytest_addoption(parser):
    parser.addoption("--no-integration", action="store_true", default=False, help="Skip integration tests")


def pytest_collection_modifyitems(config, items):
    if config.getoption("--no-integration"):
        skip = pytest.mark.skip(reason="Integration tests skipped (--no-integration)")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip)


@pytest.fixture
def candidate_file(tmp_path):
    """Write a candidate list to disk and return its path as a string."""

    def _write(text: str) -> str:
        path = tmp_path / "domains.txt"
        path.write_text(text, encoding="utf-8")
        return str(path)

    return _write
