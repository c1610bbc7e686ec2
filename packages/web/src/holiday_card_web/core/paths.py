from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .config import Settings


@dataclass(frozen=True, slots=True)
class WebLayout:
    """
    Canonical path layout for build artifacts:

      {root}/{cargo_target_dir}/{target}/{profile}/{crate}.wasm   compiled
      {root}/{out_dir}/{out_name}_bg.wasm                         module
      {root}/{out_dir}/{out_name}.js                              glue

    bind, optimize and serve all resolve the output directory through
    this object.
    """

    root: Path
    crate_name: str
    wasm_target: str
    build_profile: str
    cargo_target_dir: Path
    out_dir_rel: Path
    out_name: str
    serve_root_rel: Path | None = None

    @classmethod
    def from_settings(cls, s: Settings) -> "WebLayout":
        return cls(
            root=Path(s.project_root),
            crate_name=s.crate_name,
            wasm_target=s.wasm_target,
            build_profile=s.build_profile,
            cargo_target_dir=Path(s.cargo_target_dir),
            out_dir_rel=Path(s.out_dir),
            out_name=s.out_name,
            serve_root_rel=(Path(s.serve_root) if s.serve_root else None),
        )

    def _abs(self, p: Path) -> Path:
        return p if p.is_absolute() else self.root / p

    def target_root(self) -> Path:
        return self._abs(self.cargo_target_dir)

    def profile_dir(self) -> str:
        # cargo writes the dev and test profiles to target/<triple>/debug
        if self.build_profile in ("dev", "test"):
            return "debug"
        return self.build_profile

    def compiled_wasm(self) -> Path:
        return (
            self.target_root()
            / self.wasm_target
            / self.profile_dir()
            / f"{self.crate_name}.wasm"
        )

    def out_dir(self) -> Path:
        return self._abs(self.out_dir_rel)

    def module_wasm(self) -> Path:
        return self.out_dir() / f"{self.out_name}_bg.wasm"

    def glue_js(self) -> Path:
        return self.out_dir() / f"{self.out_name}.js"

    def declaration_files(self) -> tuple[Path, ...]:
        return (
            self.out_dir() / f"{self.out_name}.d.ts",
            self.out_dir() / f"{self.out_name}_bg.wasm.d.ts",
        )

    def serve_root(self) -> Path:
        if self.serve_root_rel is None:
            return self.out_dir()
        return self._abs(self.serve_root_rel)
