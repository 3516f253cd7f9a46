from __future__ import annotations

import pytest

from watermap.config.settings import get_logging_config, get_settings


@pytest.fixture
def fresh_settings():
    # `get_settings` is cached; clear around each test so env changes are picked up.
    get_settings.cache_clear()
    yield get_settings
    get_settings.cache_clear()


def test_defaults_are_loaded_from_packaged_yaml(fresh_settings, monkeypatch):
    monkeypatch.delenv("WATERMAP_CONFIG_PATH", raising=False)
    monkeypatch.delenv("WATERMAP_OVERPASS_URL", raising=False)
    settings = fresh_settings()

    assert settings.map.default_center.lat == pytest.approx(56.9496)
    assert settings.map.default_center.lon == pytest.approx(24.1052)
    assert settings.movement.threshold == pytest.approx(0.25)
    assert settings.location.timeout_seconds == 10
    assert settings.overpass.url.endswith("/api/interpreter")
    assert set(settings.layers) == {"water", "toilet"}
    assert settings.layers["water"].enabled_by_default is True
    assert settings.layers["toilet"].enabled_by_default is False
    assert settings.sync.discard_stale_responses is True


def test_env_overrides_are_applied(fresh_settings, monkeypatch):
    monkeypatch.setenv("WATERMAP_OVERPASS_URL", "https://overpass.example/api/interpreter")
    monkeypatch.setenv("WATERMAP_LOG_LEVEL", "DEBUG")
    settings = fresh_settings()

    assert settings.overpass.url == "https://overpass.example/api/interpreter"
    assert settings.app.log_level == "DEBUG"


def test_external_config_file(fresh_settings, monkeypatch, tmp_path):
    path = tmp_path / "watermap.yaml"
    path.write_text("movement:\n  threshold: 0.5\n  debounce_seconds: 0\n", encoding="utf-8")
    monkeypatch.setenv("WATERMAP_CONFIG_PATH", str(path))
    settings = fresh_settings()

    assert settings.movement.threshold == pytest.approx(0.5)
    assert settings.movement.debounce_seconds == 0
    # Sections missing from the file keep their model defaults.
    assert settings.layers["water"].query == "drinking_water.overpassql"


def test_unknown_layer_name_is_rejected(fresh_settings, monkeypatch, tmp_path):
    path = tmp_path / "watermap.yaml"
    path.write_text("layers:\n  benches:\n    label: Benches\n    query: benches.overpassql\n", encoding="utf-8")
    monkeypatch.setenv("WATERMAP_CONFIG_PATH", str(path))

    with pytest.raises(ValueError):
        fresh_settings()


def test_logging_config_is_a_fresh_copy():
    cfg = get_logging_config()
    cfg["root"]["level"] = "CRITICAL"
    assert get_logging_config()["root"]["level"] != "CRITICAL"
