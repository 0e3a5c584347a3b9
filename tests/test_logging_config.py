"""Tests for logging configuration."""

import logging

import pytest

from common.logging_config import SensitiveDataFilter, get_logger, setup_logging


def make_record(msg, args=None):
    return logging.LogRecord('test', logging.INFO, __file__, 1, msg, args, None)


@pytest.mark.parametrize('message, secret', [
    ('password=hunter2', 'hunter2'),
    ('{"password": "hunter2"}', 'hunter2'),
    ('Authorization: Basic dXNlcjpwYXNz', 'dXNlcjpwYXNz'),
    ('aws_secret_access_key=abc123', 'abc123'),
    ('session_token: tok', 'tok'),
])
def test_filter_masks_credentials(message, secret):
    record = make_record(message)
    assert SensitiveDataFilter().filter(record) is True
    assert secret not in record.getMessage()
    assert '***MASKED***' in record.getMessage()


def test_filter_masks_args():
    record = make_record('login %s', ('password=hunter2',))
    SensitiveDataFilter().filter(record)
    assert 'hunter2' not in record.getMessage()


def test_filter_leaves_plain_messages():
    record = make_record('Fragment created [id=abc] [size=5]')
    SensitiveDataFilter().filter(record)
    assert record.getMessage() == 'Fragment created [id=abc] [size=5]'


def test_setup_logging_attaches_one_handler():
    logger = setup_logging('fragments-test-component', log_level='debug')
    again = setup_logging('fragments-test-component')

    assert logger is again
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    assert any(isinstance(f, SensitiveDataFilter) for f in logger.handlers[0].filters)


def test_setup_logging_defaults_to_env(monkeypatch):
    monkeypatch.setenv('LOG_LEVEL', 'WARNING')
    logger = setup_logging('fragments-test-env')
    assert logger.level == logging.WARNING


def test_get_logger():
    assert get_logger('fragments.model').name == 'fragments.model'
