import pytest
from pydantic import ValidationError

from realityprobe.config import DEFAULT_DOMAIN_LIST_URL, Settings


def test_defaults(monkeypatch):
    for var in ("REALITYPROBE_PROBE_TIMEOUT", "REALITYPROBE_PROBE_PORT", "REALITYPROBE_DOMAIN_LIST_URL"):
        monkeypatch.delenv(var, raising=False)
    s = Settings(_env_file=None)
    assert s.probe_port == 443
    assert s.probe_timeout == 1.0
    assert s.domain_list_url == DEFAULT_DOMAIN_LIST_URL
    assert 1 <= s.max_concurrent_probes <= 64


def test_env_override(monkeypatch):
    monkeypatch.setenv("REALITYPROBE_PROBE_TIMEOUT", "2.5")
    monkeypatch.setenv("REALITYPROBE_MAX_CONCURRENT_PROBES", "8")
    monkeypatch.setenv("REALITYPROBE_DOMAIN_LIST_URL", "  /etc/realityprobe/domains.txt ")
    s = Settings(_env_file=None)
    assert s.probe_timeout == 2.5
    assert s.max_concurrent_probes == 8
    assert s.domain_list_url == "/etc/realityprobe/domains.txt"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"log_level": "verbose"},
        {"probe_port": 0},
        {"probe_port": 70000},
        {"probe_timeout": 0},
        {"max_concurrent_probes": 0},
        {"domain_list_url": "   "},
    ],
)
def test_rejects_invalid(kwargs):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **kwargs)
