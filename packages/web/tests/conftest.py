from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pytest
from holiday_card_web.core import Settings, WebLayout
from holiday_card_web.pipeline import PipelineRunner
from holiday_card_web.tasks import plan
from holiday_card_web.tools import CallableRunnable

WASM_MAGIC = b"\x00asm\x01\x00\x00\x00"


def _opt(args: Sequence[str], flag: str) -> str:
    return args[list(args).index(flag) + 1]


class FakeToolchain:
    """
    In-process stand-ins for cargo, wasm-bindgen, wasm-opt and tokei.

    Each handler reproduces the file effects of the real tool on the
    layout, so stages see exactly what they would after a real build.
    `fail` maps tool name -> exit code to return instead.
    """

    def __init__(self, layout: WebLayout, *, fail: dict[str, int] | None = None) -> None:
        self.layout = layout
        self.fail = dict(fail or {})
        self.runnable = CallableRunnable()
        for tool, handler in (
            ("cargo", self._cargo),
            ("wasm-bindgen", self._bindgen),
            ("wasm-opt", self._wasm_opt),
            ("tokei", self._tokei),
        ):
            self.runnable.register(tool, handler)

    @property
    def calls(self):
        return self.runnable.calls

    def called(self) -> list[str]:
        return self.runnable.tools_called()

    def _cargo(self, args: Sequence[str], cwd: Path | None) -> int:
        if "cargo" in self.fail:
            return self.fail["cargo"]
        src = Path(cwd or ".") / "src" / "main.rs"
        body = src.read_bytes() if src.exists() else b""
        out = self.layout.compiled_wasm()
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(WASM_MAGIC + body * 4)
        return 0

    def _bindgen(self, args: Sequence[str], cwd: Path | None) -> int:
        if "wasm-bindgen" in self.fail:
            return self.fail["wasm-bindgen"]
        src = Path(args[-1])
        if not src.is_file():
            return 1
        out_dir = Path(_opt(args, "--out-dir"))
        name = _opt(args, "--out-name")
        out_dir.mkdir(parents=True, exist_ok=True)
        (out_dir / f"{name}_bg.wasm").write_bytes(src.read_bytes() + b"bindgen")
        (out_dir / f"{name}.js").write_text(
            f"import * as wasm from './{name}_bg.wasm';\nexport default wasm;\n",
            encoding="utf-8",
        )
        if "--no-typescript" not in args:
            (out_dir / f"{name}.d.ts").write_text("export {};\n", encoding="utf-8")
        return 0

    def _wasm_opt(self, args: Sequence[str], cwd: Path | None) -> int:
        if "wasm-opt" in self.fail:
            return self.fail["wasm-opt"]
        module = Path(args[-1])
        data = module.read_bytes()
        Path(_opt(args, "-o")).write_bytes(data[: max(len(WASM_MAGIC), len(data) // 2)])
        return 0

    def _tokei(self, args: Sequence[str], cwd: Path | None) -> int:
        return self.fail.get("tokei", 0)


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "proj"
    (root / "src").mkdir(parents=True)
    (root / "src" / "main.rs").write_text(
        "// entry point\nfn main() {\n    println!(\"ho ho ho\");\n}\n",
        encoding="utf-8",
    )
    (root / "Cargo.toml").write_text(
        '[package]\nname = "holiday_card"\nversion = "0.1.0"\n', encoding="utf-8"
    )
    return root


@pytest.fixture
def settings(project: Path, tmp_path: Path) -> Settings:
    return Settings(project_root=project, run_root=tmp_path / "runs")


@pytest.fixture
def layout(settings: Settings) -> WebLayout:
    return WebLayout.from_settings(settings)


@pytest.fixture
def toolchain(layout: WebLayout) -> FakeToolchain:
    return FakeToolchain(layout)


def run_command(
    command: str,
    settings: Settings,
    tools: CallableRunnable,
    server_factory=None,
) -> tuple[int, Path]:
    runner = PipelineRunner(
        stages=plan(command), tools=tools, server_factory=server_factory
    )
    return runner.run(settings=settings, command=command)


@pytest.fixture
def run_pipeline():
    return run_command
