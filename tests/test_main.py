import json

import main


def test_main_runs_on_simulated_rows(tmp_path, capsys):
    assert main.main(["--export", str(tmp_path)]) == 0

    out = capsys.readouterr().out
    assert "Pipeline complete." in out
    issues = json.loads((tmp_path / "issues.json").read_text(encoding="utf-8"))
    assert any(issue["issue_type"] == "bottleneck" for issue in issues)


def test_main_reports_unreadable_file(tmp_path):
    path = tmp_path / "legacy.xls"
    path.write_bytes(b"")
    assert main.main([str(path)]) == 1
