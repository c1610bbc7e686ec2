from __future__ import annotations

from pathlib import Path

from holiday_card_web.core import Settings, WebLayout, digest_dir
from holiday_card_web.pipeline import read_report
from holiday_card_web.stages.bind import bind_command
from holiday_card_web.stages.compile import compile_command
from holiday_card_web.stages.optimize import optimize_command, reduction_pct


def _stage(report: dict, sid: str) -> dict:
    return next(s for s in report["stages"] if s["stage"] == sid)


def test_commands_match_build_contract(settings: Settings, layout: WebLayout) -> None:
    assert compile_command(settings, layout).argv == (
        "cargo",
        "build",
        "--release",
        "--target",
        "wasm32-unknown-unknown",
    )
    assert bind_command(settings, layout).argv == (
        "wasm-bindgen",
        "--no-typescript",
        "--target",
        "web",
        "--out-dir",
        str(layout.out_dir()),
        "--out-name",
        "holiday_card",
        str(layout.compiled_wasm()),
    )
    tmp = layout.out_dir() / ".tmp"
    assert optimize_command(
        settings, layout.module_wasm(), tmp, cwd=layout.root
    ).argv == ("wasm-opt", "-Oz", "-o", str(tmp), str(layout.module_wasm()))


def test_compile_command_custom_profile(settings: Settings, layout: WebLayout) -> None:
    s = settings.model_copy(update={"build_profile": "web-release"})
    argv = compile_command(s, layout).argv
    assert argv[2:4] == ("--profile", "web-release")


def test_build_web_runs_chain_in_order(
    settings, layout, toolchain, run_pipeline
) -> None:
    code, report_path = run_pipeline("build-web", settings, toolchain.runnable)

    assert code == 0
    assert toolchain.called() == ["cargo", "wasm-bindgen", "wasm-opt"]

    report = read_report(report_path)
    assert [s["stage"] for s in report["stages"]] == ["compile", "bind", "optimize"]
    assert all(s["status"] == "success" for s in report["stages"])

    # each stage consumed what the previous one produced
    compiled = _stage(report, "compile")["artifacts"][0]
    assert compiled["path"] == layout.compiled_wasm().relative_to(layout.root).as_posix()
    bind_metrics = _stage(report, "bind")["metrics"]
    assert bind_metrics["module_bytes"] == compiled["bytes"] + len(b"bindgen")

    opt = _stage(report, "optimize")["metrics"]
    assert opt["bytes_before"] == bind_metrics["module_bytes"]
    assert opt["bytes_after"] == layout.module_wasm().stat().st_size
    assert opt["bytes_after"] < opt["bytes_before"]
    assert opt["reduction_pct"] == reduction_pct(opt["bytes_before"], opt["bytes_after"])


def test_output_dir_holds_module_and_glue_only(
    settings, layout, toolchain, run_pipeline
) -> None:
    out = layout.out_dir()
    out.mkdir(parents=True)
    stale = out / "holiday_card.d.ts"
    stale.write_text("export {};\n")

    code, _ = run_pipeline("build-web", settings, toolchain.runnable)

    assert code == 0
    assert sorted(p.name for p in out.iterdir()) == [
        "holiday_card.js",
        "holiday_card_bg.wasm",
    ]


def test_build_web_is_repeatable(settings, layout, toolchain, run_pipeline) -> None:
    code1, r1 = run_pipeline("build-web", settings, toolchain.runnable)
    first = digest_dir(layout.out_dir())
    code2, r2 = run_pipeline("build-web", settings, toolchain.runnable)
    second = digest_dir(layout.out_dir())

    assert code1 == code2 == 0
    assert r1 != r2
    assert first == second
    assert _stage(read_report(r2), "optimize")["outputs"]["out_dir_sha256"] == second
    # every stage re-ran; nothing was skipped as "already built"
    assert toolchain.called() == ["cargo", "wasm-bindgen", "wasm-opt"] * 2


def test_compile_failure_halts_chain(settings, layout, toolchain, run_pipeline) -> None:
    # output from an earlier good build must survive untouched
    assert run_pipeline("build-web", settings, toolchain.runnable)[0] == 0
    before = digest_dir(layout.out_dir())
    mtimes = {p: p.stat().st_mtime_ns for p in layout.out_dir().iterdir()}
    toolchain.runnable.calls.clear()

    toolchain.fail["cargo"] = 101
    code, report_path = run_pipeline("build-web", settings, toolchain.runnable)

    assert code == 1
    assert toolchain.called() == ["cargo"]
    assert digest_dir(layout.out_dir()) == before
    assert {p: p.stat().st_mtime_ns for p in layout.out_dir().iterdir()} == mtimes

    report = read_report(report_path)
    assert report["skipped"] == ["bind", "optimize"]
    err = report["stages"][0]["error"]
    assert err["exc_type"] == "ToolchainFailure"
    assert "101" in err["message"]
    assert err["returncode"] == 101
    assert err["argv"][:2] == ["cargo", "build"]


def test_missing_tool_is_a_stage_failure(
    settings, layout, toolchain, run_pipeline
) -> None:
    del toolchain.runnable.handlers["cargo"]
    code, report_path = run_pipeline("build-web", settings, toolchain.runnable)

    assert code == 1
    assert not layout.out_dir().exists()
    assert read_report(report_path)["stages"][0]["error"]["exc_type"] == "ToolchainFailure"


def test_compile_success_without_artifact_fails(
    settings, layout, toolchain, run_pipeline
) -> None:
    toolchain.runnable.register("cargo", lambda args, cwd: 0)
    code, report_path = run_pipeline("build-web", settings, toolchain.runnable)

    assert code == 1
    assert toolchain.called() == ["cargo"]
    assert "no artifact" in read_report(report_path)["stages"][0]["error"]["message"]


def test_binding_failure_skips_optimizer(
    settings, layout, toolchain, run_pipeline
) -> None:
    toolchain.fail["wasm-bindgen"] = 1
    code, report_path = run_pipeline("build-web", settings, toolchain.runnable)

    assert code == 1
    assert toolchain.called() == ["cargo", "wasm-bindgen"]
    report = read_report(report_path)
    assert report["stages"][-1]["error"]["exc_type"] == "BindingFailure"
    assert report["skipped"] == ["optimize"]


def test_optimizer_failure_keeps_unoptimized_module(
    settings, layout, toolchain, run_pipeline
) -> None:
    def broken_wasm_opt(args, cwd):
        # half-written output, then a crash
        Path(args[args.index("-o") + 1]).write_bytes(b"\x00as")
        return 1

    toolchain.runnable.register("wasm-opt", broken_wasm_opt)
    code, report_path = run_pipeline("build-web", settings, toolchain.runnable)

    assert code == 1
    report = read_report(report_path)
    assert report["stages"][-1]["error"]["exc_type"] == "OptimizationFailure"

    bound = _stage(report, "bind")["artifacts"][0]
    module: Path = layout.module_wasm()
    assert module.stat().st_size == bound["bytes"]
    assert sorted(p.name for p in layout.out_dir().iterdir()) == [
        "holiday_card.js",
        "holiday_card_bg.wasm",
    ]


def test_optimizer_without_output_fails(
    settings, layout, toolchain, run_pipeline
) -> None:
    toolchain.runnable.register("wasm-opt", lambda args, cwd: 0)
    code, report_path = run_pipeline("build-web", settings, toolchain.runnable)

    assert code == 1
    assert "wrote no output" in read_report(report_path)["stages"][-1]["error"]["message"]
