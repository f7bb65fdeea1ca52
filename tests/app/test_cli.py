from __future__ import annotations

import pytest

from graphdispatch.config import DispatchConfig
from graphdispatch.domain.results import Failed, Mode, ProcessingReport
from graphdispatch.ui import cli as cli_module


def test_serve_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_serve(config: DispatchConfig, **kwargs: object) -> None:
        captured["config"] = config
        captured.update(kwargs)

    monkeypatch.setattr(cli_module, "serve", fake_serve)

    cli_module.main(["serve"])

    assert isinstance(captured["config"], DispatchConfig)
    assert captured["host"] == "0.0.0.0"  # noqa: S104
    assert captured["port"] == 80
    assert captured["startup_scan"] is True


def test_serve_with_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_serve(_config: DispatchConfig, **kwargs: object) -> None:
        captured.update(kwargs)

    monkeypatch.setattr(cli_module, "serve", fake_serve)

    cli_module.main(["serve", "--host", "127.0.0.1", "--port", "8080", "--no-startup-scan"])

    assert captured == {"host": "127.0.0.1", "port": 8080, "startup_scan": False}


def test_scan_inserts_only(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_scan(_config: DispatchConfig, **kwargs: object) -> ProcessingReport:
        captured.update(kwargs)
        return ProcessingReport()

    monkeypatch.setattr(cli_module, "run_scan", fake_scan)

    cli_module.main(["scan", "--inserts-only"])

    assert captured == {"include_deletes": False}


def test_scan_exits_non_zero_on_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_scan(_config: DispatchConfig, **_kwargs: object) -> ProcessingReport:
        report = ProcessingReport()
        report.add(Failed(mode=Mode.DELETE, reason="store down"))
        return report

    monkeypatch.setattr(cli_module, "run_scan", fake_scan)

    with pytest.raises(SystemExit) as exc:
        cli_module.main(["scan"])

    assert exc.value.code == 1


def test_invalid_configuration_exits_with_usage_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BATCH_SIZE", "many")

    def fake_serve(*_: object, **__: object) -> None:
        raise AssertionError("serve must not run")

    monkeypatch.setattr(cli_module, "serve", fake_serve)

    with pytest.raises(SystemExit) as exc:
        cli_module.main(["serve"])

    assert exc.value.code == 2


def test_missing_command_is_rejected() -> None:
    with pytest.raises(SystemExit) as exc:
        cli_module.main([])

    assert exc.value.code == 2
