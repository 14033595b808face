# tests/test_app.py
from config import TestingConfig
from blogdesk import create_app


def test_create_app_does_not_stack_log_handlers():
    first = create_app(TestingConfig)
    second = create_app(TestingConfig)
    assert first.logger is second.logger
    assert len(second.logger.handlers) == 1


def test_testing_config(app):
    assert app.config['TESTING'] is True
    assert app.config['SQLALCHEMY_DATABASE_URI'] == 'sqlite:///:memory:'
