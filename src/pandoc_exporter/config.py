from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Literal, Mapping

from .resolver import LinkPolicy

CONFIG_FILE = Path("config.toml")


@dataclass(slots=True)
class VaultConfig:
    root: Path = Path(".")


@dataclass(slots=True)
class ExportConfig:
    pandoc: str | None = None
    pdflatex: str | None = None
    extra_arguments: tuple[str, ...] = ()
    output_folder: Path | None = None
    export_from: Literal["html", "md"] = "html"
    link_policy: LinkPolicy = LinkPolicy.LINK
    internal_link_extension: str = ""
    display_frontmatter: bool = False
    high_dpi_diagrams: bool = True
    template_folder: str | None = None
    custom_css_file: str | None = None
    show_cli_commands: bool = False


@dataclass(slots=True)
class RuntimeConfig:
    log_dir: Path = Path(".pandoc-export")
    log_file: str = "exports.jsonl"
    convert_timeout_s: int = 120
    enable_local_api: bool = False

    @property
    def log_path(self) -> Path:
        return self.log_dir / self.log_file


@dataclass(slots=True)
class APIConfig:
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass(slots=True)
class AppConfig:
    vault: VaultConfig = field(default_factory=VaultConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    api: APIConfig = field(default_factory=APIConfig)


def _read_toml(path: Path) -> Mapping[str, object]:
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _section(raw: Mapping[str, object], name: str) -> Mapping[str, object] | None:
    data = raw.get(name)
    return data if isinstance(data, Mapping) else None


def _optional_str(value: object | None) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _argument_lines(value: object | None) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return tuple(line for line in value.splitlines() if line.strip())
    if isinstance(value, Iterable):
        return tuple(str(item) for item in value)
    raise TypeError(f"Unsupported extra_arguments configuration: {value!r}")


def _build_vault(data: Mapping[str, object] | None) -> VaultConfig:
    if not data:
        return VaultConfig()
    return VaultConfig(root=Path(str(data.get("root", "."))).expanduser())


def _build_export(data: Mapping[str, object] | None) -> ExportConfig:
    if not data:
        return ExportConfig()
    export_from = str(data.get("export_from", "html"))
    if export_from not in {"html", "md"}:
        raise ValueError(f"export_from must be 'html' or 'md', got {export_from!r}")
    output_folder = _optional_str(data.get("output_folder"))
    return ExportConfig(
        pandoc=_optional_str(data.get("pandoc")),
        pdflatex=_optional_str(data.get("pdflatex")),
        extra_arguments=_argument_lines(data.get("extra_arguments")),
        output_folder=Path(output_folder).expanduser() if output_folder else None,
        export_from=export_from,  # type: ignore[arg-type]
        link_policy=LinkPolicy(str(data.get("link_policy", LinkPolicy.LINK.value))),
        internal_link_extension=str(data.get("internal_link_extension", "")),
        display_frontmatter=bool(data.get("display_frontmatter", False)),
        high_dpi_diagrams=bool(data.get("high_dpi_diagrams", True)),
        template_folder=_optional_str(data.get("template_folder")),
        custom_css_file=_optional_str(data.get("custom_css_file")),
        show_cli_commands=bool(data.get("show_cli_commands", False)),
    )


def _build_runtime(data: Mapping[str, object] | None) -> RuntimeConfig:
    if not data:
        return RuntimeConfig()
    return RuntimeConfig(
        log_dir=Path(str(data.get("log_dir", ".pandoc-export"))),
        log_file=str(data.get("log_file", "exports.jsonl")),
        convert_timeout_s=int(data.get("convert_timeout_s", 120)),
        enable_local_api=bool(data.get("enable_local_api", False)),
    )


def _build_api(data: Mapping[str, object] | None) -> APIConfig:
    if not data:
        return APIConfig()
    return APIConfig(host=str(data.get("host", "127.0.0.1")), port=int(data.get("port", 8000)))


def load_config(path: Path | None = None) -> AppConfig:
    path = path or CONFIG_FILE
    raw = _read_toml(path)
    return AppConfig(
        vault=_build_vault(_section(raw, "vault")),
        export=_build_export(_section(raw, "export")),
        runtime=_build_runtime(_section(raw, "runtime")),
        api=_build_api(_section(raw, "api")),
    )


def dump_config(config: AppConfig) -> str:
    export = config.export
    payload = {
        "vault": {"root": str(config.vault.root)},
        "export": {
            "pandoc": export.pandoc,
            "pdflatex": export.pdflatex,
            "extra_arguments": list(export.extra_arguments),
            "output_folder": str(export.output_folder) if export.output_folder else None,
            "export_from": export.export_from,
            "link_policy": export.link_policy.value,
            "internal_link_extension": export.internal_link_extension,
            "display_frontmatter": export.display_frontmatter,
            "high_dpi_diagrams": export.high_dpi_diagrams,
            "template_folder": export.template_folder,
            "custom_css_file": export.custom_css_file,
            "show_cli_commands": export.show_cli_commands,
        },
        "runtime": {
            "log_dir": str(config.runtime.log_dir),
            "log_file": config.runtime.log_file,
            "convert_timeout_s": config.runtime.convert_timeout_s,
            "enable_local_api": config.runtime.enable_local_api,
        },
        "api": {
            "host": config.api.host,
            "port": config.api.port,
        },
    }
    return json.dumps(payload, indent=2)


__all__ = [
    "APIConfig",
    "AppConfig",
    "ExportConfig",
    "RuntimeConfig",
    "VaultConfig",
    "dump_config",
    "load_config",
]
