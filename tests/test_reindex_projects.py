"""
Tests for the batch reindex script.
"""

import pytest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

import reindex_projects
from core.config import AppConfig
from reindex_projects import main, run_reindex
from search.indexer import IndexingStats


class TestRunReindex:

    def test_indexes_all_projects(self, repo, config, embedding_provider, project_factory, capsys):
        for i in range(3):
            repo.create(project_factory(f"P{i}"))

        stats = run_reindex(config, provider=embedding_provider)

        assert stats.indexed == 3
        assert repo.get_index_stats()["missing"] == 0
        out = capsys.readouterr().out
        assert "Reindexing 3 projects" in out
        assert "✓ [3/3] P2" in out

    def test_only_missing(self, repo, config, embedding_provider, project_factory):
        done = repo.create(project_factory("Done"))
        repo.update_search_fields(done["id"], "text", "[1.0, 0.0]")
        repo.create(project_factory("Todo"))

        stats = run_reindex(config, only_missing=True, provider=embedding_provider)

        assert stats.total == 1
        assert len(embedding_provider.calls) == 1
        assert "Todo" in embedding_provider.calls[0]

    def test_reports_failures(self, repo, config, fake_embeddings, project_factory, capsys):
        repo.create(project_factory("Fine"))
        repo.create(project_factory("Broken"))

        stats = run_reindex(config, provider=fake_embeddings(fail_on={"Broken"}))

        assert stats.failed == 1
        assert "✗ [2/2] Broken" in capsys.readouterr().out


class TestMain:

    def test_exits_without_api_key(self, db_path, monkeypatch, capsys):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        monkeypatch.setattr(reindex_projects, "load_config", lambda **kw: AppConfig(db_path=db_path, openai_api_key=None))

        with pytest.raises(SystemExit) as exc_info:
            main(["--db", db_path])

        assert exc_info.value.code == 1
        assert "OPENAI_API_KEY" in capsys.readouterr().out

    def test_runs_with_options(self, config, monkeypatch):
        calls = {}

        def fake_run(cfg, only_missing=False, delay=None, provider=None):
            calls.update(db=cfg.db_path, only_missing=only_missing, delay=delay)
            return IndexingStats(total=1, indexed=1)

        monkeypatch.setattr(reindex_projects, "load_config", lambda **kw: config.with_overrides(**kw))
        monkeypatch.setattr(reindex_projects, "run_reindex", fake_run)

        with pytest.raises(SystemExit) as exc_info:
            main(["--db", "other.db", "--delay", "0.5", "--only-missing"])

        assert exc_info.value.code == 0
        assert calls == {"db": "other.db", "only_missing": True, "delay": 0.5}
