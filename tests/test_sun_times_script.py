"""Tests for scripts/sun_times.py."""

import importlib.util
import sys
from datetime import date
from pathlib import Path
from unittest.mock import Mock

import pytest

from tests.fakes import make_sun_times

SCRIPT = Path(__file__).parent.parent / "scripts" / "sun_times.py"


@pytest.fixture
def script(monkeypatch):
    spec = importlib.util.spec_from_file_location("sun_times_script", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    client_class = Mock()
    client_class.return_value.fetch_sun_times.side_effect = lambda lat, lng, day: make_sun_times(day)
    monkeypatch.setattr(module, "SunriseSunsetClient", client_class)
    return module


def run(script, monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["sun_times.py", *args])
    return script.main()


@pytest.mark.parametrize("lat, lng", [("95", "0"), ("0", "-181")])
def test_out_of_range_coordinates_never_fetch(script, monkeypatch, lat, lng):
    with pytest.raises(SystemExit) as excinfo:
        run(script, monkeypatch, "--lat", lat, "--lng", lng)

    assert excinfo.value.code == 2
    script.SunriseSunsetClient.return_value.fetch_sun_times.assert_not_called()


def test_prints_every_policy(script, monkeypatch, capsys):
    assert run(script, monkeypatch, "--lat", "38.72", "--lng", "-9.14", "--date", "2026-03-11") == 0

    script.SunriseSunsetClient.return_value.fetch_sun_times.assert_called_once_with(38.72, -9.14, date(2026, 3, 11))
    output = capsys.readouterr().out
    assert "Civil Dawn" in output
    assert "06:42:00" in output
    assert "07:22:00" in output
