import json

from scripts.plan_cli import main


def test_cli_runs_request_file(tmp_path, plan_request, capsys):
    req = tmp_path / "request.json"
    req.write_text(json.dumps(plan_request), encoding="utf-8")
    assert main([str(req)]) == 0
    out = capsys.readouterr().out
    assert '"status": "ok"' in out


def test_cli_edit_without_plan_exits_nonzero(capsys):
    assert main(["--action", "resolve"]) == 1
