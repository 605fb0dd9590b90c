import pytest
from pydantic import ValidationError

from carecompanion.core.config import AppConstants, DatabaseSettings, Settings

SHARED_KEY = "k3y-shared-by-every-worker-0123456789abcdef"


class TestSettings:

    def test_defaults(self):
        settings = Settings(_env_file=None, ENVIRONMENT="development", LOG_JSON=None)

        assert settings.API_VERSION == "v1"
        assert settings.clinical.MOOD_TALLY_WINDOW_DAYS == 7
        assert settings.clinical.BURNOUT_SCORER == "stored"
        assert settings.security.JWT_ALGORITHM == "HS256"

    def test_database_url_assembled_from_parts(self):
        db = DatabaseSettings(POSTGRES_HOST="db", POSTGRES_USER="care", POSTGRES_PASSWORD="secret", POSTGRES_DB="cc")

        assert db.DATABASE_URL == "postgresql+asyncpg://care:secret@db:5432/cc"
        assert db.is_sqlite is False

    def test_explicit_database_url_wins(self):
        db = DatabaseSettings(DATABASE_URL="sqlite+aiosqlite:///./care.db", POSTGRES_HOST="ignored")

        assert db.DATABASE_URL == "sqlite+aiosqlite:///./care.db"
        assert db.is_sqlite is True

    def test_cors_origins_from_comma_separated_string(self):
        settings = Settings(_env_file=None, CORS_ORIGINS="https://care.example.org, https://admin.example.org")

        assert settings.CORS_ORIGINS == ["https://care.example.org", "https://admin.example.org"]

    def test_production_rejects_debug(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, ENVIRONMENT="production", DEBUG=True, CORS_ORIGINS=["https://care.example.org"])

    def test_production_rejects_localhost_cors(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, ENVIRONMENT="production", CORS_ORIGINS=["http://localhost:5173"])

    def test_json_logs_follow_environment(self):
        production = Settings(
            _env_file=None,
            ENVIRONMENT="production",
            CORS_ORIGINS=["https://care.example.org"],
            security={"JWT_SECRET_KEY": SHARED_KEY},
        )
        development = Settings(_env_file=None, ENVIRONMENT="development")
        forced = Settings(_env_file=None, ENVIRONMENT="development", LOG_JSON=True)

        assert production.use_json_logs is True
        assert development.use_json_logs is False
        assert forced.use_json_logs is True

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, LOG_LEVEL="VERBOSE")

    @pytest.mark.parametrize("environment", ["staging", "production"])
    def test_deployed_environments_require_jwt_key(self, environment):
        with pytest.raises(ValidationError, match="JWT_SECRET_KEY"):
            Settings(_env_file=None, ENVIRONMENT=environment, CORS_ORIGINS=["https://care.example.org"])

    def test_explicit_jwt_key_accepted_outside_development(self):
        settings = Settings(
            _env_file=None,
            ENVIRONMENT="staging",
            CORS_ORIGINS=["https://care.example.org"],
            security={"JWT_SECRET_KEY": SHARED_KEY},
        )

        assert settings.security.JWT_SECRET_KEY == SHARED_KEY

    def test_development_generates_jwt_key(self):
        settings = Settings(_env_file=None, ENVIRONMENT="development")

        assert len(settings.security.JWT_SECRET_KEY) >= 32
        assert settings.SESSION_IDLE_TIMEOUT_MINUTES == 120


class TestConstants:

    def test_adl_fields(self):
        assert len(AppConstants.BASIC_ADL_FIELDS) == 6
        assert len(AppConstants.INSTRUMENTAL_ADL_FIELDS) == 6
        assert not set(AppConstants.BASIC_ADL_FIELDS) & set(AppConstants.INSTRUMENTAL_ADL_FIELDS)

    def test_threshold(self):
        assert AppConstants.ADL_DECLINE_THRESHOLD == 2
