"""Tests for pyjsv configuration and logging."""

import logging
from dataclasses import dataclass
from typing import Optional

import pytest
from pydantic import ValidationError

from pyjsv import (
    SerializerConfig,
    configure,
    from_json,
    get_config,
    reset_config,
    to_json,
    to_jsv,
)


@dataclass
class Account:
    account_name: str
    owner: Optional[str] = None
    balance: int = 0


@dataclass
class Point:
    A: int = 0


@pytest.fixture
def default_config():
    """Restore the process default after a test changes it."""
    yield
    reset_config()


class TestSerializerConfig:
    def test_defaults(self):
        config = SerializerConfig()
        assert config.include_null_values is False
        assert config.exclude_default_values is False
        assert config.emit_camel_case_names is False
        assert config.max_depth == 64

    def test_immutable(self):
        config = SerializerConfig()
        with pytest.raises(ValidationError):
            config.max_depth = 3

    def test_validation(self):
        with pytest.raises(ValidationError):
            SerializerConfig(max_depth=0)
        with pytest.raises(ValidationError):
            SerializerConfig(emit_snake_case=True)


class TestProcessDefault:
    def test_configure(self, default_config):
        assert to_jsv(Account("main")) == "{account_name:main,balance:0}"

        config = configure(include_null_values=True, emit_camel_case_names=True)
        assert get_config() is config
        assert to_jsv(Account("main")) == "{accountName:main,owner:null,balance:0}"

    def test_configure_keeps_other_options(self, default_config):
        configure(include_null_values=True)
        configure(exclude_default_values=True)
        assert get_config().include_null_values is True
        assert to_jsv(Account("main")) == "{account_name:main}"

    def test_explicit_config_overrides_default(self, default_config):
        configure(include_null_values=True)
        assert to_json({"a": None}, config=SerializerConfig()) == "{}"
        assert to_json({"a": None}) == '{"a":null}'

    def test_unknown_option(self, default_config):
        with pytest.raises(ValidationError):
            configure(bogus=True)
        assert get_config() == SerializerConfig()

    def test_reset(self):
        configure(max_depth=8)
        reset_config()
        assert get_config().max_depth == 64


class TestLogging:
    def test_configure_logs(self, default_config, caplog):
        caplog.set_level(logging.INFO, logger="pyjsv.config")
        configure(max_depth=10)
        assert "max_depth" in caplog.text

    def test_unknown_keys_logged(self, caplog):
        caplog.set_level(logging.DEBUG, logger="pyjsv.stypes")
        assert from_json('{"A":1,"Z":99}', Point) == Point(1)
        assert "Z" in caplog.text

    def test_heterogeneous_elements_logged(self, caplog):
        caplog.set_level(logging.DEBUG, logger="pyjsv.writer")
        assert to_jsv([1, "a"]) == "[1,a]"
        assert "dispatching on its own type" in caplog.text
