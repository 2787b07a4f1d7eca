"""Tests para el CLI build_dataset."""

from unittest.mock import patch

import pytest

from docs2qa.cli import build_dataset
from docs2qa.generation.progress import count_records_by_source
from docs2qa.utils.jsonl import read_jsonl, write_jsonl

from tests.conftest import StubBatchProvider, StubProvider


@pytest.fixture
def workspace(tmp_path, monkeypatch, sample_documentation):
    """Directorio de salida con la documentación ya en caché."""
    out = tmp_path / "output"
    out.mkdir()
    (out / "documentation.txt").write_text(sample_documentation, encoding="utf-8")

    for key in ("LLM_PROVIDER", "LLM_MODEL", "RESUME_STRATEGY", "QUESTIONS_PER_ENTRY",
                "BATCH_MAX_POLLS", "MIN_CONTENT_LENGTH"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("OUTPUT_DIR", str(out))
    monkeypatch.setenv("QUESTIONS_PER_ENTRY", "2")
    return out


def run_cli(tmp_path, *argv):
    with patch.object(build_dataset, "configure_logging"):
        build_dataset.main(["--config", str(tmp_path / "no-existe.yaml"), *argv])


class TestCLI:

    def test_no_command_exits(self, tmp_path):
        with pytest.raises(SystemExit) as exc_info:
            run_cli(tmp_path)
        assert exc_info.value.code == 1

    def test_generate(self, tmp_path, workspace, capsys):
        with patch("docs2qa.llm_provider.get_llm_provider", return_value=StubProvider()):
            run_cli(tmp_path, "generate")

        assert count_records_by_source(workspace / "training-set.jsonl") == {
            "docs/svelte/overview": 2,
            "docs/svelte/$state": 2,
        }
        assert "Pares: 4 escritos" in capsys.readouterr().out

    def test_generate_batch(self, tmp_path, workspace, monkeypatch):
        monkeypatch.setenv("BATCH_POLL_INTERVAL", "0.01")
        provider = StubBatchProvider()
        with patch("docs2qa.llm_provider.get_llm_provider", return_value=provider):
            run_cli(tmp_path, "generate-batch")

        assert len(read_jsonl(workspace / "training-set.jsonl")) == 4

    def test_batch_with_sequential_provider_fails(self, tmp_path, workspace, capsys):
        with patch("docs2qa.llm_provider.get_llm_provider", return_value=StubProvider()):
            with pytest.raises(SystemExit) as exc_info:
                run_cli(tmp_path, "generate-batch")

        assert exc_info.value.code == 1
        assert "batch" in capsys.readouterr().err

    def test_invalid_config_exits(self, tmp_path, workspace, monkeypatch):
        monkeypatch.setenv("RESUME_STRATEGY", "ambas")

        with pytest.raises(SystemExit) as exc_info:
            run_cli(tmp_path, "merge")
        assert exc_info.value.code == 1

    def test_merge_and_convert(self, tmp_path, workspace):
        write_jsonl(workspace / "training-set.jsonl", [
            {"source": "docs/b", "question": "q1", "answer": "a1"},
            {"source": "docs/a", "question": "q2", "answer": "a2"},
        ])

        run_cli(tmp_path, "merge")
        run_cli(tmp_path, "convert", "openai")

        merged = read_jsonl(workspace / "merged.jsonl")
        assert [r["source"] for r in merged] == ["docs/a", "docs/b"]
        converted = read_jsonl(workspace / "openai.jsonl")
        assert converted[0]["messages"][1]["content"] == "q2"

    def test_validate_reports_errors(self, tmp_path, workspace):
        bad = workspace / "bad.jsonl"
        bad.write_text('{"source": "docs/a"}\n', encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            run_cli(tmp_path, "validate", str(bad))
        assert exc_info.value.code == 1

    def test_visualize(self, tmp_path, workspace):
        write_jsonl(workspace / "training-set.jsonl", [
            {"source": "docs/a", "question": "q1", "answer": "a1"},
        ])

        run_cli(tmp_path, "visualize")

        assert (workspace / "visualization.html").exists()

    def test_split(self, tmp_path, workspace):
        data = workspace / "unsloth.jsonl"
        write_jsonl(data, [{"conversations": [{"role": "user", "content": str(i)}]}
                           for i in range(10)])

        run_cli(tmp_path, "split", str(data), "--val-fraction", "0.2")

        assert len(read_jsonl(workspace / "unsloth_val.jsonl")) == 2
        assert len(read_jsonl(workspace / "unsloth_train.jsonl")) == 8

    def test_merge_after_split_ignores_split_outputs(self, tmp_path, workspace):
        write_jsonl(workspace / "training-set.jsonl", [
            {"source": f"docs/p{i}", "question": f"q{i}", "answer": f"a{i}"}
            for i in range(5)
        ])

        run_cli(tmp_path, "merge")
        run_cli(tmp_path, "convert", "openai")
        run_cli(tmp_path, "split", str(workspace / "openai.jsonl"))
        run_cli(tmp_path, "merge")

        assert (workspace / "openai_train.jsonl").exists()
        assert len(read_jsonl(workspace / "merged.jsonl")) == 5

    def test_corrupt_dataset_is_reported_not_raised(self, tmp_path, workspace, capsys):
        (workspace / "training-set.jsonl").write_text(
            '{roto\n{"source": "docs/a", "question": "q", "answer": "a"}\n', encoding="utf-8"
        )

        with pytest.raises(SystemExit) as exc_info:
            run_cli(tmp_path, "merge")

        assert exc_info.value.code == 1
        assert "JSON invalido" in capsys.readouterr().err
