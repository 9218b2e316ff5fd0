import logging

from config import DEFAULT_ADMIN_PASSWORD, DEFAULT_JWT_SECRET, Settings


def test_insecure_defaults_warn_outside_development(caplog):
    settings = Settings(
        environment="production",
        jwt_secret=DEFAULT_JWT_SECRET,
        admin_password=DEFAULT_ADMIN_PASSWORD,
    )
    with caplog.at_level(logging.WARNING, logger="config"):
        settings.warn_insecure_defaults()

    messages = [record.getMessage() for record in caplog.records]
    assert any("JWT_SECRET" in message for message in messages)
    assert any("ADMIN_PASSWORD" in message for message in messages)


def test_configured_secrets_do_not_warn(caplog):
    settings = Settings(
        environment="production", jwt_secret="real-secret", admin_password="real-pass"
    )
    with caplog.at_level(logging.WARNING, logger="config"):
        settings.warn_insecure_defaults()
    assert caplog.records == []


def test_development_skips_warnings(caplog):
    settings = Settings(environment="development", jwt_secret=DEFAULT_JWT_SECRET)
    with caplog.at_level(logging.WARNING, logger="config"):
        settings.warn_insecure_defaults()
    assert caplog.records == []
    assert settings.is_development
