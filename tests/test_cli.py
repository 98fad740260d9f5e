"""Tests for CLI interface."""

import json

import pytest

from site_backlog.cli.main import main_async, parse_args

EVIDENCE = {
    "pages": [
        {
            "url": "https://example.com/",
            "meta": {"title": "Example Domain Home", "h1": "Example"},
            "performance_audit": {"largest-contentful-paint": 4200},
        }
    ],
    "journeys": [],
}


@pytest.fixture
def evidence_file(tmp_path):
    path = tmp_path / "evidence.json"
    path.write_text(json.dumps(EVIDENCE))
    return path


@pytest.fixture
def run_cli(database_url, capsys):
    """Run the CLI against a temporary database, returning (exit code, parsed stdout)."""

    async def run(*argv):
        capsys.readouterr()
        code = await main_async(["--database-url", database_url, *map(str, argv)])
        out = capsys.readouterr().out
        return code, json.loads(out) if out.strip() else None

    return run


@pytest.mark.unit
def test_parse_args_score():
    args = parse_args(["score", "evidence.json", "--triage"])

    assert args.command == "score"
    assert str(args.evidence) == "evidence.json"
    assert args.triage is True
    assert args.database_url is None


@pytest.mark.unit
def test_parse_args_rejects_unknown_triage_state():
    with pytest.raises(SystemExit):
        parse_args(["triage", "set", "abc", "someday"])


@pytest.mark.unit
def test_parse_args_requires_record_url():
    with pytest.raises(SystemExit):
        parse_args(["record", "evidence.json"])


class TestCommands:
    """Test suite for CLI commands."""

    @pytest.mark.asyncio
    async def test_score(self, run_cli, evidence_file):
        code, issues = await run_cli("score", evidence_file)

        assert code == 0
        assert [i["category"] for i in issues] == ["performance", "seo"]
        assert issues[0]["score"] == 23
        assert len(issues[0]["digest"]) == 16
        assert "triage" not in issues[0]

    @pytest.mark.asyncio
    async def test_score_with_triage(self, run_cli, evidence_file):
        _, issues = await run_cli("score", evidence_file)
        digest = issues[0]["digest"]

        code, _ = await run_cli("triage", "set", digest, "planned")
        assert code == 0

        _, issues = await run_cli("score", evidence_file, "--triage")
        assert issues[0]["triage"] == "planned"
        assert issues[1]["triage"] is None

    @pytest.mark.asyncio
    async def test_record_then_list_and_diff(self, run_cli, evidence_file):
        code, first = await run_cli("record", evidence_file, "--url", "https://example.com")
        assert code == 0
        assert first["status"] == "done"

        _, second = await run_cli("record", evidence_file, "--url", "https://example.com")
        code, runs = await run_cli("runs", "list", "--origin", "https://example.com")

        assert code == 0
        assert {r["id"] for r in runs} == {first["run_id"], second["run_id"]}

        code, diff = await run_cli("runs", "diff", first["run_id"], second["run_id"])
        assert code == 0
        assert diff["added"] == diff["removed"] == []
        assert len(diff["unchanged"]) == 2

    @pytest.mark.asyncio
    async def test_diff_unknown_run(self, run_cli):
        code, diff = await run_cli("runs", "diff", "missing-a", "missing-b")

        assert code == 1
        assert diff["base"] is None
        assert diff["added"] == []

    @pytest.mark.asyncio
    async def test_triage_meta_and_show(self, run_cli):
        code, _ = await run_cli("triage", "meta", "d1", "--owner", "FE", "--estimate", "3.5")
        assert code == 0
        await run_cli("triage", "meta", "d1", "--notes", "hero image")
        await run_cli("triage", "set", "d1", "in-progress")

        code, shown = await run_cli("triage", "show", "d1", "d2")

        assert code == 0
        assert shown == {
            "d1": {
                "state": "in-progress",
                "owner": "FE",
                "estimate_hours": 3.5,
                "notes": "hero image",
            }
        }

    @pytest.mark.asyncio
    async def test_triage_clear(self, run_cli):
        await run_cli("triage", "meta", "d1", "--state", "accepted", "--owner", "QA")
        await run_cli("triage", "set", "d1", "none")

        _, shown = await run_cli("triage", "show", "d1")

        assert shown == {"d1": {"owner": "QA"}}

    @pytest.mark.asyncio
    async def test_index_export(self, run_cli, evidence_file):
        await run_cli("record", evidence_file, "--url", "https://example.com")
        await run_cli("triage", "set", "d1", "wontfix")

        code, index = await run_cli("index", "export")

        assert code == 0
        assert len(index["runs"]) == 1
        assert index["triage"] == {"d1": {"state": "wontfix"}}

    @pytest.mark.asyncio
    async def test_missing_evidence_file(self, run_cli, tmp_path):
        code, out = await run_cli("score", tmp_path / "nope.json")

        assert code == 1
        assert out is None

    @pytest.mark.asyncio
    async def test_malformed_evidence(self, run_cli, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"pages": [{"links": []}]}))

        code, _ = await run_cli("score", path)

        assert code == 1
