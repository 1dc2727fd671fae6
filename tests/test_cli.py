import pytest

from sonoplugins.inventory.cli import build_parser, main


def test_parser_run_flags():
    args = build_parser().parse_args(["run", "--sonobuoy-report", "a.yaml", "--json-report", "b.json"])
    assert args.command == "run"
    assert args.sonobuoy_report == "a.yaml"
    assert args.json_report == "b.json"


def test_parser_run_defaults():
    args = build_parser().parse_args(["run"])
    assert (args.sonobuoy_report, args.json_report) == ("", "")


def test_no_subcommand_prints_help(capsys):
    assert main([]) == 0
    assert "cluster-inventory" in capsys.readouterr().out


def test_unknown_subcommand_is_rejected():
    with pytest.raises(SystemExit) as info:
        main(["inspect"])
    assert info.value.code == 2


def test_run_without_cluster_fails(monkeypatch, tmp_path, capsys):
    monkeypatch.setenv("KUBECONFIG", str(tmp_path / "missing-config"))
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("KUBERNETES_SERVICE_HOST", raising=False)
    monkeypatch.delenv("KUBERNETES_SERVICE_PORT", raising=False)
    report = tmp_path / "report.json"
    assert main(["run", "--json-report", str(report)]) == 1
    assert "creating Kubernetes Client" in capsys.readouterr().err
    assert not report.exists()