from __future__ import annotations

from smatrader.cli.run import build_parser, main


def test_parser_defaults() -> None:
    args = build_parser().parse_args([])
    assert args.config is None
    assert args.ticks is None
    assert args.no_export is False


def test_run_exports_records(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("SMATRADER_DISABLE_CONSOLE_LOG", "1")
    reports = tmp_path / "reports"
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text(
        "feed:\n"
        "  seed: 11\n"
        "  symbols:\n"
        "    \"EUR/USD\": 1.08\n"
        f"report:\n  output_dir: \"{reports.as_posix()}\"\n",
        encoding="utf-8",
    )
    main(["--config", str(cfg), "--ticks", "120", "--log-dir", str(tmp_path / "logs")])
    exported = list(reports.glob("trading_records_*.csv"))
    assert len(exported) == 1
    assert (tmp_path / "logs").is_dir()
