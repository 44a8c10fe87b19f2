import copy
import json

from duckgate.config.loader import _migrate_config, load_config, save_config
from duckgate.config.schema import Config


def test_migrate_flat_keys_into_sections() -> None:
    raw = {"maxPages": 3, "userAgent": "agent/1.0", "imageTtlSeconds": 120}

    migrated = _migrate_config(copy.deepcopy(raw))

    assert migrated["search"] == {"maxPages": 3, "userAgent": "agent/1.0"}
    assert migrated["captcha"] == {"imageTtlSeconds": 120}
    assert "maxPages" not in migrated


def test_migrate_does_not_override_section_values() -> None:
    raw = {"maxPages": 3, "search": {"maxPages": 4}, "imageTtlSeconds": 10, "captcha": {"imageTtlSeconds": 60}}

    migrated = _migrate_config(copy.deepcopy(raw))

    assert migrated["search"]["maxPages"] == 4
    assert migrated["captcha"]["imageTtlSeconds"] == 60


def test_migrate_drops_empty_endpoint_and_public_host() -> None:
    migrated = _migrate_config({"search": {"endpoint": ""}, "captcha": {"host": "0.0.0.0"}})

    assert "endpoint" not in migrated["search"]
    assert migrated["captcha"]["host"] == "127.0.0.1"


def test_load_config_reads_camel_case_file(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "search": {"maxPages": 2, "timeout": 5},
                "captcha": {"tileSize": 96, "port": 8765},
                "fetch": {"allowPrivateNetwork": True},
                "logLevel": "DEBUG",
            }
        ),
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.search.max_pages == 2
    assert config.search.timeout == 5.0
    assert config.search.endpoint == "https://html.duckduckgo.com/html/"
    assert config.captcha.tile_size == 96
    assert config.captcha.port == 8765
    assert config.fetch.allow_private_network is True
    assert config.log_level == "DEBUG"


def test_load_config_falls_back_to_defaults_on_bad_file(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")

    assert load_config(path) == Config()


def test_load_config_falls_back_on_invalid_values(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"search": {"maxPages": 0}}), encoding="utf-8")

    assert load_config(path).search.max_pages == 5


def test_save_config_round_trips_through_aliases(tmp_path) -> None:
    path = tmp_path / "nested" / "config.json"
    config = Config()
    config.captcha.image_ttl_seconds = 90

    save_config(config, path)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["captcha"]["imageTtlSeconds"] == 90
    assert load_config(path).captcha.image_ttl_seconds == 90
