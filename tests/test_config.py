import json

import pytest

from gawbot.config import Config

VALID_CONFIG = {
    "DISCORD_RELEASE_TOKEN": "release",
    "DISCORD_BETA_TOKEN": "beta",
    "ERRORS_CHANNEL_ID": 123,
    "ADMIN_IDS": [1, 2],
    "GIVEAWAY_EMOJI": "🎉",
    "EMBED_COLOR": 0xfbbf24,
}


def write_config(tmp_path, data) -> str:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_load_valid_config(tmp_path):
    config = Config(write_config(tmp_path, VALID_CONFIG))
    assert config["ADMIN_IDS"] == [1, 2]
    assert config["GIVEAWAY_EMOJI"] == "🎉"


def test_missing_key(tmp_path):
    data = dict(VALID_CONFIG)
    del data["ERRORS_CHANNEL_ID"]
    with pytest.raises(KeyError):
        Config(write_config(tmp_path, data))


@pytest.mark.parametrize("key, value", [
    ("ERRORS_CHANNEL_ID", "123"),
    ("ADMIN_IDS", 1),
    ("ADMIN_IDS", [1, "2"]),
    ("EMBED_COLOR", "red"),
])
def test_wrong_type(tmp_path, key, value):
    data = {**VALID_CONFIG, key: value}
    with pytest.raises(TypeError):
        Config(write_config(tmp_path, data))


def test_empty_emoji(tmp_path):
    with pytest.raises(ValueError):
        Config(write_config(tmp_path, {**VALID_CONFIG, "GIVEAWAY_EMOJI": ""}))


def test_not_a_dict(tmp_path):
    with pytest.raises(TypeError):
        Config(write_config(tmp_path, [VALID_CONFIG]))
