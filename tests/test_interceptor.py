"""
Tests for the @logged decorator.

End-to-end: decorated callables are compiled, executed and emitted through the
configured structlog pipeline, captured with structlog.testing.capture_logs.
"""
import gc
import inspect
import json
import threading
from typing import Annotated, Optional
from unittest.mock import patch

import pytest
from structlog.testing import capture_logs

from logpoint.interceptor import LoggedFunction, logged
from logpoint.models import DontLog, LoggedConfig, LogLevel
from logpoint.runtime import LogContextVariable, add_context_variable, log_context, plan_cache
from logpoint.runtime.converters import Converters


@logged
def fetchUserAccount(user_id, region="eu") -> dict:
    return {"id": user_id, "region": region}


@logged("retry {1} of {0}", level="info")
def retry(attempts, attempt) -> None:
    pass


@logged
def login(user, password: Annotated[str, DontLog]) -> bool:
    return True


@logged
def jobFailed(job, error: Exception) -> None:
    pass


@logged("{0} failed: {1}")
def stepFailed(step, error: Exception) -> None:
    pass


@logged
def jobRetried(job, error: Optional[Exception] = None) -> None:
    pass


@logged(level=LogLevel.WARN)
def explode(reason) -> None:
    raise RuntimeError(reason)


@logged("{bogus} and {5}")
def badTemplate(a, b) -> None:
    pass


@logged(logger="audit")
def audited(action) -> None:
    pass


@logged(level=LogLevel.ERROR)
class AccountService:
    def closeAccount(self, account_id) -> None:
        pass

    def balance(self, account_id) -> int:
        return 100

    @logged(level="info")
    def openAccount(self, owner) -> str:
        return "A-1"

    @staticmethod
    def normalize(account_id) -> str:
        return account_id.upper()

    @classmethod
    def create(cls, region) -> "AccountService":
        return cls()

    def _internal(self, value):
        return value


class Outer:
    __logged__ = LoggedConfig(level=LogLevel.INFO)

    class Inner:
        @logged
        def handle(self, event) -> None:
            pass


class Ledger:
    @logged
    def post(self, amount) -> None:
        pass


@logged
async def fetchRemote(url) -> str:
    return "payload"


class Mirror:
    @logged
    async def fetch(self, url) -> str:
        return url


def events(logs):
    return [entry["event"] for entry in logs]


def test_function_call_and_result():
    """Test that a call logs its arguments, then its return value."""
    with capture_logs() as logs:
        result = fetchUserAccount(42)

    assert result == {"id": 42, "region": "eu"}
    assert events(logs) == ["fetch user account 42 eu", "return {'id': 42, 'region': 'eu'}"]
    assert logs[0]["logger"] == __name__
    assert logs[0]["log_level"] == "debug"


def test_keyword_arguments_bind_in_parameter_order():
    """Test that keyword arguments land in declaration order."""
    with capture_logs() as logs:
        fetchUserAccount(region="us", user_id=7)

    assert logs[0]["event"] == "fetch user account 7 us"


def test_explicit_template_and_level():
    """Test "retry {1} of {0}" at INFO and no return value for None."""
    with capture_logs() as logs:
        retry(5, 2)

    assert events(logs) == ["retry 2 of 5"]
    assert logs[0]["log_level"] == "info"


def test_dont_log_parameter():
    """Test that DontLog parameters never reach the log."""
    with capture_logs() as logs:
        login("alice", "s3cret")

    assert logs[0]["event"] == "login alice"
    assert "s3cret" not in str(logs)


def test_error_parameter_logged_as_exc_info():
    """Test that a trailing exception parameter becomes exc_info."""
    error = ValueError("disk full")

    with capture_logs() as logs:
        jobFailed("nightly", error)

    assert logs[0]["event"] == "job failed nightly"
    assert logs[0]["exc_info"] is error


def test_failure_is_logged_and_reraised():
    """Test that exceptions from the call are logged and propagate."""
    with capture_logs() as logs:
        with pytest.raises(RuntimeError, match="boom"):
            explode("boom")

    assert events(logs) == ["explode boom", "failed with RuntimeError"]
    assert logs[1]["log_level"] == "warning"
    assert isinstance(logs[1]["exc_info"], RuntimeError)


def test_bad_template_never_breaks_the_call():
    """Test that diagnostics show up in the message instead of an error."""
    with capture_logs() as logs:
        badTemplate(1, 2)

    assert logs[0]["event"] == "invalid log parameter expression: bogus and invalid log parameter index: 5"


def test_explicit_logger_name():
    """Test that logger= overrides the derived logger name."""
    with capture_logs() as logs:
        audited("delete")

    assert logs[0]["logger"] == "audit"


def test_unbindable_call_logs_only_the_failure():
    """Test that argument errors surface from the call itself."""
    with capture_logs() as logs:
        with pytest.raises(TypeError):
            fetchUserAccount()

    assert events(logs) == ["failed with TypeError"]


def test_class_decorator_logs_public_methods():
    """Test that a decorated class logs its methods at the class level."""
    service = AccountService()

    with capture_logs() as logs:
        service.closeAccount("A-1")
        service.balance("A-1")

    assert events(logs) == ["close account A-1", "balance A-1", "return 100"]
    assert {entry["log_level"] for entry in logs} == {"error"}
    assert {entry["logger"] for entry in logs} == {f"{__name__}.AccountService"}


def test_class_decorator_keeps_method_config():
    """Test that an explicitly logged method keeps its own level."""
    with capture_logs() as logs:
        assert AccountService().openAccount("bob") == "A-1"

    assert events(logs) == ["open account bob", "return A-1"]
    assert logs[0]["log_level"] == "info"


def test_class_decorator_static_and_class_methods():
    """Test that static and class methods keep working and drop cls."""
    with capture_logs() as logs:
        assert AccountService.normalize("a-1") == "A-1"
        assert isinstance(AccountService.create("eu"), AccountService)

    assert logs[0]["event"] == "normalize a-1"
    assert logs[2]["event"] == "create eu"


def test_class_decorator_skips_private_methods():
    """Test that underscore methods are not instrumented."""
    assert not isinstance(AccountService.__dict__["_internal"], LoggedFunction)

    with capture_logs() as logs:
        AccountService()._internal(1)

    assert logs == []


def test_class_decorator_records_config():
    """Test that the class configuration is stored for inheritance."""
    assert AccountService.__logged__ == LoggedConfig(level=LogLevel.ERROR)


def test_nested_class_inherits_level_and_logs_to_outermost():
    """Test level inheritance from the enclosing class and the outermost logger."""
    with capture_logs() as logs:
        Outer.Inner().handle("started")

    assert logs[0]["event"] == "handle started"
    assert logs[0]["log_level"] == "info"
    assert logs[0]["logger"] == f"{__name__}.Outer"


def test_method_plan_excludes_self():
    """Test that self is not part of the plan."""
    plan = Ledger.__dict__["post"].plan

    assert plan.message == "post {}"
    assert plan.logger == f"{__name__}.Ledger"
    assert plan.log_result is False


def test_unbound_method_call():
    """Test calling through the class with an explicit instance."""
    with capture_logs() as logs:
        Ledger.post(Ledger(), 10)

    assert logs[0]["event"] == "post 10"


def test_decorated_function_keeps_metadata():
    """Test that the wrapper looks like the wrapped function."""
    assert fetchUserAccount.__name__ == "fetchUserAccount"
    assert fetchUserAccount.__wrapped__ is not None
    assert "fetchUserAccount" in repr(fetchUserAccount)


def test_plan_is_cached():
    """Test that repeated calls reuse one cached plan."""
    fetchUserAccount(1)
    plan = plan_cache.get(fetchUserAccount)

    fetchUserAccount(2)

    assert plan is not None
    assert plan_cache.get(fetchUserAccount) is plan


def test_concurrent_first_calls_build_once():
    """Test that simultaneous first calls share one plan."""
    function = LoggedFunction(lambda value: value, LoggedConfig())
    barrier = threading.Barrier(8)
    points = []

    def call():
        barrier.wait()
        function(1)
        points.append(function.log_point.plan)

    threads = [threading.Thread(target=call) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert all(plan is points[0] for plan in points)


def test_context_variables():
    """Test that registered providers reach the record."""
    add_context_variable(LogContextVariable(key="version", value=lambda: "1.2.3"))

    with capture_logs() as logs:
        fetchUserAccount(1)

    assert logs[0]["version"] == "1.2.3"


def test_bound_contextvars_in_json_output(capsys):
    """Test that log_context values are merged into the rendered JSON."""
    with log_context(request_id="r-9"):
        fetchUserAccount(1)

    first = json.loads(capsys.readouterr().out.strip().splitlines()[0])
    assert first["event"] == "fetch user account 1 eu"
    assert first["request_id"] == "r-9"
    assert first["level"] == "debug"
    assert first["logger"] == __name__
    assert "timestamp" in first


def test_custom_converters():
    """Test that per-decorator converters render values."""
    converters = Converters({int: lambda value: f"#{value}"})

    @logged(converters=converters)
    def charge(amount) -> None:
        pass

    with capture_logs() as logs:
        charge(5)

    assert logs[0]["event"] == "charge #5"


def test_disabled_level_emits_nothing():
    """Test that calls below the configured threshold are silent."""
    from logpoint.config import Settings
    from logpoint.logging import configure_logging

    configure_logging(Settings(log_level=LogLevel.ERROR))

    with capture_logs() as logs:
        assert fetchUserAccount(3) == {"id": 3, "region": "eu"}

    assert logs == []


async def test_async_function():
    """Test that coroutine functions are awaited and logged."""
    with capture_logs() as logs:
        result = await fetchRemote("https://example.com")

    assert result == "payload"
    assert events(logs) == ["fetch remote https://example.com", "return payload"]


def test_explicit_template_renders_error_parameter():
    """Test that "{0} failed: {1}" renders the error text and attaches exc_info."""
    error = OSError("disk full")

    with capture_logs() as logs:
        stepFailed("compile", error)

    assert logs[0]["event"] == "compile failed: disk full"
    assert logs[0]["exc_info"] is error


def test_optional_error_parameter():
    """Test that an Optional exception parameter is only ever exc_info."""
    error = TimeoutError("slow")

    with capture_logs() as logs:
        jobRetried("nightly")
        jobRetried("nightly", error)

    assert events(logs) == ["job retried nightly", "job retried nightly"]
    assert "exc_info" not in logs[0]
    assert logs[1]["exc_info"] is error


def test_plans_of_dropped_functions_are_released():
    """Test that decorated closures do not pile up in the plan cache."""
    for number in range(100):
        @logged
        def inner(value) -> None:
            pass

        inner(number)
        del inner

    gc.collect()

    assert len(plan_cache) == 0


def test_logger_is_bound_once_per_plan():
    """Test that repeated calls reuse the bound logger."""
    with patch("logpoint.interceptor.get_logger") as mock_get_logger:
        mock_get_logger.return_value.is_enabled_for.return_value = True
        audited("create")
        audited("delete")

    mock_get_logger.assert_called_once_with("audit")
    assert mock_get_logger.return_value.debug.call_count == 2


@pytest.mark.skipif(not hasattr(inspect, "markcoroutinefunction"), reason="requires Python 3.12")
def test_async_function_is_coroutine_function():
    """Test that coroutine functions still look like coroutine functions."""
    assert inspect.iscoroutinefunction(fetchRemote)
    assert inspect.iscoroutinefunction(Mirror().fetch)
    assert not inspect.iscoroutinefunction(fetchUserAccount)


async def test_async_method():
    """Test that async methods drop self and log their result."""
    with capture_logs() as logs:
        assert await Mirror().fetch("https://example.com/a") == "https://example.com/a"

    assert events(logs) == ["fetch https://example.com/a", "return https://example.com/a"]
    assert logs[0]["logger"] == f"{__name__}.Mirror"
