"""End-to-end tests for the command-line entry point and the bundled example."""

import json
from pathlib import Path

import pytest

from evalua.cli import load_object, main
from evalua.errors import TargetLoadError
from evalua.evaluation.runner import EvalSpec
from evalua.runtime.step import Step, Workflow

EXAMPLE = Path(__file__).resolve().parent.parent / "examples" / "summarize.py"


@pytest.fixture
def input_file(tmp_path) -> Path:
    path = tmp_path / "input.json"
    path.write_text(
        json.dumps({"text": "Open-source communities thrive on clear tooling.", "max_words": 5}),
        encoding="utf-8",
    )
    return path


class TestLoadObject:
    def test_explicit_attribute(self):
        target = load_object(f"{EXAMPLE}:summarize_step", Step)
        assert target.name == "summarize_step"

    def test_first_matching_object_without_attribute(self):
        spec = load_object(str(EXAMPLE), EvalSpec)
        assert spec.name == "summarize_eval"

    def test_module_reference(self):
        target = load_object("evalua.runtime.step:Step", type)
        assert target is Step

    def test_wrong_kind_is_rejected(self):
        with pytest.raises(TargetLoadError):
            load_object(f"{EXAMPLE}:summarize_tiny", Workflow)

    def test_missing_file(self, tmp_path):
        with pytest.raises(TargetLoadError):
            load_object(str(tmp_path / "nope.py"), Step)


class TestRunCommand:
    def test_prints_output_and_record(self, input_file, tmp_path, capsys):
        trace_dir = tmp_path / "traces"

        code = main(
            [
                "run",
                f"{EXAMPLE}:summarize_workflow",
                "--input",
                str(input_file),
                "--trace-dir",
                str(trace_dir),
            ]
        )

        assert code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["output"] == {"summary": "Open-source communities thrive on clear"}
        assert payload["record"]["status"] == "success"
        assert (trace_dir / f"{payload['record']['run_id']}.jsonl").exists()

    def test_invalid_input_exits_non_zero(self, tmp_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text(json.dumps({"text": ""}), encoding="utf-8")

        code = main(
            [
                "run",
                f"{EXAMPLE}:summarize_workflow",
                "--input",
                str(bad),
                "--trace-dir",
                str(tmp_path),
            ]
        )

        assert code == 1
        assert "input validation failed" in capsys.readouterr().err


class TestEvalCommand:
    def test_example_eval_passes_with_echo_backend(self, tmp_path, capsys):
        code = main(["eval", f"{EXAMPLE}:summarize_eval", "--trace-dir", str(tmp_path)])

        assert code == 0
        result = json.loads(capsys.readouterr().out)
        assert result["passed"] is True
        assert result["aggregates"] == {"key_terms": 1.0, "brevity": 1.0}
        assert [c["id"] for c in result["cases"]] == ["renewable-energy", "climate-policy"]

    def test_failed_eval_exits_one(self, tmp_path, capsys):
        module = tmp_path / "strict_eval.py"
        module.write_text(
            "\n".join(
                [
                    "from evalua import Case, Dataset, Score, define_eval, step",
                    "",
                    "@step('same', input=str, output=str)",
                    "async def same(ctx, text):",
                    "    return text",
                    "",
                    "evaluation = define_eval(",
                    "    'strict',",
                    "    same,",
                    "    Dataset(name='one', cases=[Case(id='c', input='x')]),",
                    "    [lambda args: Score(metrics={'quality': 0.4})],",
                    "    {'quality': 0.9},",
                    ")",
                ]
            ),
            encoding="utf-8",
        )

        code = main(["eval", str(module), "--trace-dir", str(tmp_path / "traces")])

        captured = capsys.readouterr()
        assert code == 1
        assert json.loads(captured.out)["passed"] is False
        assert "quality" in captured.err
