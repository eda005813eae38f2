from app.config import Settings


def test_plain_postgres_urls_use_asyncpg():
    settings = Settings(database_url="postgres://user:pw@db:5432/eduquote")
    assert settings.database_url == "postgresql+asyncpg://user:pw@db:5432/eduquote"

    settings = Settings(database_url="postgresql://user:pw@db/eduquote")
    assert settings.database_url == "postgresql+asyncpg://user:pw@db/eduquote"

    settings = Settings(database_url="sqlite+aiosqlite://")
    assert settings.database_url == "sqlite+aiosqlite://"


def test_cors_origins_accept_json_or_comma_list():
    assert Settings(database_url="sqlite://", cors_origins='["https://a.example"]').cors_origins == [
        "https://a.example"
    ]
    assert Settings(database_url="sqlite://", cors_origins="https://a.example, https://b.example").cors_origins == [
        "https://a.example",
        "https://b.example",
    ]


def test_prefix_and_log_level_are_normalised():
    settings = Settings(database_url="sqlite://", quote_number_prefix=" edu ", log_level="debug")
    assert settings.quote_number_prefix == "EDU"
    assert settings.log_level == "DEBUG"
