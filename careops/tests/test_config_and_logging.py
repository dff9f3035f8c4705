"""Config loading, the ProjectError hierarchy and logger setup."""
import json
import logging
import sys

import pytest

from careops.config.postgres import PostgresConfig, load_postgres_config
from careops.config.scheduling import SchedulingConfig, load_scheduling_config
from careops.core.exceptions import (
    ConfigurationError,
    ConflictError,
    InvalidTimeFormatError,
    NoValidVisitsError,
    ProjectError,
    ValidationError,
    exception_factory,
)
from careops.core.logger import JsonFormatter, LoggerConfig, configure
from careops.infra.database.engine import _make_async_url, _parse_db_name_and_postgres_url


class TestSchedulingConfig:
    def test_defaults(self, monkeypatch):
        for name in (
            "SCHEDULE_DEFAULT_PAGE_LIMIT",
            "SCHEDULE_MAX_PAGE_LIMIT",
            "SCHEDULE_STRICT_STATUS_TRANSITIONS",
            "SCHEDULE_LOCK_WORKER_DAY",
        ):
            monkeypatch.delenv(name, raising=False)
        config = load_scheduling_config()
        assert config == SchedulingConfig()
        assert config.strict_status_transitions is True
        assert config.lock_worker_day is True

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SCHEDULE_DEFAULT_PAGE_LIMIT", "20")
        monkeypatch.setenv("SCHEDULE_MAX_PAGE_LIMIT", "50")
        monkeypatch.setenv("SCHEDULE_STRICT_STATUS_TRANSITIONS", "false")
        monkeypatch.setenv("SCHEDULE_LOCK_WORKER_DAY", "0")
        config = SchedulingConfig.from_env()
        assert (config.default_page_limit, config.max_page_limit) == (20, 50)
        assert config.strict_status_transitions is False
        assert config.lock_worker_day is False

    def test_non_integer_limit(self, monkeypatch):
        monkeypatch.setenv("SCHEDULE_DEFAULT_PAGE_LIMIT", "many")
        with pytest.raises(ConfigurationError) as exc_info:
            SchedulingConfig.from_env()
        assert isinstance(exc_info.value.cause, ValueError)

    @pytest.mark.parametrize("default,maximum", [(0, 10), (50, 10)])
    def test_inconsistent_limits(self, default, maximum):
        with pytest.raises(ConfigurationError):
            SchedulingConfig(default_page_limit=default, max_page_limit=maximum)


class TestPostgresConfig:
    def test_env_and_overrides(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db:5432/care")
        monkeypatch.setenv("DB_POOL_SIZE", "3")
        monkeypatch.setenv("DB_ECHO", "yes")
        config = load_postgres_config(max_overflow=1)
        assert config.url == "postgresql://u:p@db:5432/care"
        assert (config.pool_size, config.max_overflow) == (3, 1)
        assert config.echo is True

    def test_rejects_other_schemes(self):
        with pytest.raises(ValueError):
            PostgresConfig(url="mysql://localhost/care")

    def test_async_url_and_maintenance_db(self):
        assert _make_async_url("postgres://h/care") == "postgresql+asyncpg://h/care"
        dbname, admin_url = _parse_db_name_and_postgres_url("postgresql+asyncpg://u@h:5432/care")
        assert dbname == "care"
        assert admin_url == "postgresql://u@h:5432/postgres"


class TestProjectError:
    def test_public_dict_hides_cause(self):
        cause = RuntimeError("db down")
        err = ConflictError("Scheduling conflict detected", details={"conflicting_id": "x"}, cause=cause)
        assert err.http_status == 409
        assert err.public_dict() == {
            "message": "Scheduling conflict detected",
            "code": "CONFLICT",
            "details": {"conflicting_id": "x"},
        }
        full = err.to_dict()
        assert full["http_status"] == 409
        assert full["cause"] == "db down"
        assert "cause_traceback" in full

    def test_subclass_codes(self):
        err = InvalidTimeFormatError("bad")
        assert isinstance(err, ValidationError)
        assert (err.code, err.http_status) == ("INVALID_TIME_FORMAT", 400)
        assert "details" not in err.public_dict()
        assert err.with_details(visit=2).public_dict()["details"] == {"visit": 2}

    def test_factory(self):
        assert issubclass(NoValidVisitsError, ProjectError)
        assert NoValidVisitsError("none").code == "NO_VALID_VISITS"
        Custom = exception_factory("Rate Exceeded", http_status=429)
        err = Custom("slow down", code="SLOW")
        assert (err.code, err.http_status) == ("SLOW", 429)
        assert Custom("x").code == "RATE_EXCEEDED"


class TestLogger:
    def test_with_overrides_ignores_none(self):
        config = LoggerConfig(level="INFO").with_overrides(level="DEBUG", log_dir=None)
        assert config.level == "DEBUG"
        assert config.log_dir is None

    def test_configure_does_not_stack_handlers(self):
        config = LoggerConfig(level="WARNING", root_name="careops.test_root", file_rotating=False)
        configure(config)
        root = configure(config)
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
        assert root.propagate is False

    def test_rotating_json_file(self, tmp_path):
        config = LoggerConfig(
            level="INFO", log_dir=str(tmp_path), log_file_basename="sched",
            root_name="careops.test_file", console=False,
        )
        root = configure(config)
        logging.getLogger("careops.test_file.svc").info(
            "applied template", extra={"inserted": 3}
        )
        for handler in root.handlers:
            handler.flush()
        line = (tmp_path / "sched.log").read_text(encoding="utf-8").strip().splitlines()[-1]
        payload = json.loads(line)
        assert payload["message"] == "applied template"
        assert payload["extra"] == {"inserted": 3}
        for handler in list(root.handlers):
            handler.close()
            root.removeHandler(handler)

    def test_json_formatter_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.getLogger("x").makeRecord(
                "x", logging.ERROR, __file__, 1, "failed %s", ("op",), exc_info=sys.exc_info()
            )
        payload = json.loads(JsonFormatter(include_extra=False).format(record))
        assert payload["message"] == "failed op"
        assert "ValueError: boom" in payload["exception"]
        assert "extra" not in payload
