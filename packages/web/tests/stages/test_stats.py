from __future__ import annotations

from pathlib import Path

from holiday_card_web.core import digest_dir
from holiday_card_web.pipeline import read_report
from holiday_card_web.stages.stats import CommentSyntax, count_lines, count_tree, stats_table
from holiday_card_web.stages.stats.counter import detect_language

RUST = CommentSyntax(line=("//",), block=(("/*", "*/"),))


def test_count_lines_classifies() -> None:
    src = "\n".join(
        [
            "// header",
            "",
            "fn main() {",
            "    /* one-line block */",
            "    let x = 1; // trailing",
            "    /*",
            "     multi",
            "    */",
            "    let y = 2; /* opens",
            "    still comment */",
            "}",
        ]
    )
    fs = count_lines(src, RUST)
    assert fs.lines == 11
    assert fs.blanks == 1
    assert fs.code == 4
    assert fs.comments == 6


def test_detect_language() -> None:
    assert detect_language(Path("src/main.rs")).name == "Rust"
    assert detect_language(Path("justfile")).name == "Just"
    assert detect_language(Path("index.HTML")).name == "HTML"
    assert detect_language(Path("image.png")) is None


def test_count_tree_skips_build_dirs(project: Path) -> None:
    target = project / "target" / "gen.rs"
    target.parent.mkdir()
    target.write_text("fn generated() {}\n")
    (project / ".git").mkdir()
    (project / ".git" / "hook.py").write_text("print(1)\n")
    (project / "assets").mkdir()
    (project / "assets" / "snow.png").write_bytes(b"\x89PNG")

    stats = count_tree(project)
    assert set(stats.languages) == {"Rust", "TOML"}
    rust = stats.languages["Rust"]
    assert (rust.files, rust.code, rust.comments, rust.blanks) == (1, 3, 1, 0)
    assert stats.total().files == 2
    assert stats_table(stats).row_count == 3


def test_stats_builtin_stage(settings, layout, toolchain, run_pipeline) -> None:
    assert run_pipeline("build-web", settings, toolchain.runnable)[0] == 0
    before = digest_dir(layout.out_dir())

    s = settings.model_copy(update={"stats_engine": "builtin"})
    code, report_path = run_pipeline("stats", s, toolchain.runnable)

    assert code == 0
    stage = read_report(report_path)["stages"][0]
    assert stage["outputs"]["engine"] == "builtin"
    # generated glue counts, compiled output under target/ does not
    assert stage["metrics"]["files"] == 3
    assert digest_dir(layout.out_dir()) == before


def test_stats_tokei_failure_is_isolated(settings, layout, toolchain, run_pipeline) -> None:
    assert run_pipeline("build-web", settings, toolchain.runnable)[0] == 0
    before = digest_dir(layout.out_dir())
    toolchain.runnable.calls.clear()

    toolchain.fail["tokei"] = 2
    code, report_path = run_pipeline("stats", settings, toolchain.runnable)

    assert code == 1
    assert toolchain.called() == ["tokei"]
    assert read_report(report_path)["stages"][0]["error"]["exc_type"] == "StatsFailure"
    assert digest_dir(layout.out_dir()) == before

    # and the build is unaffected by the failed stats run
    toolchain.runnable.calls.clear()
    assert run_pipeline("build-web", settings, toolchain.runnable)[0] == 0
    assert digest_dir(layout.out_dir()) == before
