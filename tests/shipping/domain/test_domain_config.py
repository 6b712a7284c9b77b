"""Infrastructure overlays in the shipping domain's domain.toml."""

import tomllib
from pathlib import Path

import pytest

import shipping.domain

CONFIG_PATH = Path(shipping.domain.__file__).with_name("domain.toml")


@pytest.fixture(scope="module")
def config():
    with CONFIG_PATH.open("rb") as handle:
        return tomllib.load(handle)


def test_default_stack_is_in_memory(config):
    assert config["databases"]["default"]["provider"] == "memory"
    assert config["brokers"]["default"]["provider"] == "inline"
    assert config["event_store"]["provider"] == "memory"


def test_production_persists_events(config):
    production = config["production"]
    assert production["event_processing"] == "async"
    assert production["databases"]["default"]["provider"] == "postgresql"
    assert production["brokers"]["default"]["provider"] == "redis"
    assert production["event_store"] == {"provider": "message_db", "database_uri": "${MESSAGE_DB_URL}"}


def test_test_overlay_keeps_in_memory_event_store(config):
    assert "event_store" not in config["test"]
