"""Configuration loading and directory resolution for SortBridge."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

try:  # pragma: no cover - exercised on Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for Python 3.9/3.10
    import tomli as tomllib  # type: ignore[no-redef]

from sortbridge.algorithms import DEFAULT_ALGORITHM, available_algorithms
from sortbridge.task.coordinator import ALLOWED_PROGRESS_CHANNELS, PROGRESS_CHANNEL_STRUCTURED

CONFIG_DIR_NAME = ".sortbridge_config"
CONFIG_FILE_NAME = "config.toml"
LOGS_DIR_NAME = "logs"

DEFAULT_ARRAY_SIZE = 32
DEFAULT_MAX_VALUE = 100
DEFAULT_STEP_DELAY_MS = 0
DEFAULT_PROGRESS_CHANNEL = PROGRESS_CHANNEL_STRUCTURED
DEFAULT_LOGS_ENABLED = True
DEFAULT_LOGS_FORMAT = "jsonl"
DEFAULT_LOGS_MAX_FILE_BYTES = 10 * 1024 * 1024
DEFAULT_LOGS_MAX_FILES = 5
ALLOWED_LOG_FORMATS = ("jsonl",)


class ProjectConfigError(RuntimeError):
    """Raised when project configuration is missing or invalid."""


@dataclass
class ProjectConfig:
    default_algorithm: str = DEFAULT_ALGORITHM
    array_size: int = DEFAULT_ARRAY_SIZE
    max_value: int = DEFAULT_MAX_VALUE
    step_delay_ms: int = DEFAULT_STEP_DELAY_MS
    progress_channel: str = DEFAULT_PROGRESS_CHANNEL
    logs_enabled: bool = DEFAULT_LOGS_ENABLED
    logs_format: str = DEFAULT_LOGS_FORMAT
    logs_max_file_bytes: int = DEFAULT_LOGS_MAX_FILE_BYTES
    logs_max_files: int = DEFAULT_LOGS_MAX_FILES


@dataclass
class Settings:
    """Resolved settings for one CLI invocation."""

    project_root: Path
    config_root: Path
    algorithm: str = DEFAULT_ALGORITHM
    array_size: int = DEFAULT_ARRAY_SIZE
    max_value: int = DEFAULT_MAX_VALUE
    step_delay_ms: int = DEFAULT_STEP_DELAY_MS
    progress_channel: str = DEFAULT_PROGRESS_CHANNEL
    logs_enabled: bool = DEFAULT_LOGS_ENABLED
    logs_format: str = DEFAULT_LOGS_FORMAT
    logs_max_file_bytes: int = DEFAULT_LOGS_MAX_FILE_BYTES
    logs_max_files: int = DEFAULT_LOGS_MAX_FILES

    @property
    def logs_dir(self) -> Path:
        return self.config_root / LOGS_DIR_NAME


def resolve_project_root(workspace_dir: Optional[Path] = None) -> Path:
    return (workspace_dir or Path.cwd()).resolve()


def resolve_project_config_root(workspace_dir: Optional[Path] = None) -> Path:
    return resolve_project_root(workspace_dir) / CONFIG_DIR_NAME


def project_config_exists(workspace_dir: Optional[Path] = None) -> bool:
    config_root = resolve_project_config_root(workspace_dir)
    return config_root.is_dir() and (config_root / CONFIG_FILE_NAME).is_file()


def _normalize_algorithm(value: object, default: str = DEFAULT_ALGORITHM) -> str:
    candidate = str(value or default).strip().lower() or default
    if candidate not in available_algorithms():
        return default
    return candidate


def _safe_positive_int(value: object, default: int) -> int:
    try:
        converted = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return max(1, converted)


def _safe_positive_int_or_default(value: object, default: int) -> int:
    try:
        converted = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if converted <= 0:
        return default
    return converted


def _safe_non_negative_int(value: object, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        converted = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if converted < 0:
        return default
    return converted


def _safe_bool(value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default


def _safe_log_format(value: object, default: str) -> str:
    normalized = str(value or default).strip().lower()
    if normalized not in ALLOWED_LOG_FORMATS:
        return default
    return normalized


def _safe_progress_channel(value: object, default: str) -> str:
    normalized = str(value or default).strip().lower()
    if normalized not in ALLOWED_PROGRESS_CHANNELS:
        return default
    return normalized


def _parse_project_config_data(data: Dict[str, object]) -> ProjectConfig:
    sorter = data.get("sorter") if isinstance(data.get("sorter"), dict) else {}
    runtime = data.get("runtime") if isinstance(data.get("runtime"), dict) else {}
    logs = runtime.get("logs") if isinstance(runtime.get("logs"), dict) else {}  # type: ignore[union-attr]

    return ProjectConfig(
        default_algorithm=_normalize_algorithm(sorter.get("default_algorithm")),  # type: ignore[union-attr]
        array_size=_safe_positive_int_or_default(
            sorter.get("array_size"),  # type: ignore[union-attr]
            DEFAULT_ARRAY_SIZE,
        ),
        max_value=_safe_positive_int_or_default(
            sorter.get("max_value"),  # type: ignore[union-attr]
            DEFAULT_MAX_VALUE,
        ),
        step_delay_ms=_safe_non_negative_int(
            sorter.get("step_delay_ms"),  # type: ignore[union-attr]
            DEFAULT_STEP_DELAY_MS,
        ),
        progress_channel=_safe_progress_channel(
            sorter.get("progress_channel"),  # type: ignore[union-attr]
            DEFAULT_PROGRESS_CHANNEL,
        ),
        logs_enabled=_safe_bool(logs.get("enabled"), DEFAULT_LOGS_ENABLED),  # type: ignore[union-attr]
        logs_format=_safe_log_format(logs.get("format"), DEFAULT_LOGS_FORMAT),  # type: ignore[union-attr]
        logs_max_file_bytes=_safe_positive_int_or_default(
            logs.get("max_file_bytes"),  # type: ignore[union-attr]
            DEFAULT_LOGS_MAX_FILE_BYTES,
        ),
        logs_max_files=_safe_positive_int_or_default(
            logs.get("max_files"),  # type: ignore[union-attr]
            DEFAULT_LOGS_MAX_FILES,
        ),
    )


def _render_project_config(config: ProjectConfig) -> str:
    lines: List[str] = [
        "[sorter]",
        'default_algorithm = "{0}"'.format(_normalize_algorithm(config.default_algorithm)),
        "array_size = {0}".format(_safe_positive_int_or_default(config.array_size, DEFAULT_ARRAY_SIZE)),
        "max_value = {0}".format(_safe_positive_int_or_default(config.max_value, DEFAULT_MAX_VALUE)),
        "step_delay_ms = {0}".format(_safe_non_negative_int(config.step_delay_ms, DEFAULT_STEP_DELAY_MS)),
        'progress_channel = "{0}"'.format(
            _safe_progress_channel(config.progress_channel, DEFAULT_PROGRESS_CHANNEL)
        ),
        "",
        "[runtime.logs]",
        "enabled = {0}".format(str(bool(config.logs_enabled)).lower()),
        'format = "{0}"'.format(_safe_log_format(config.logs_format, DEFAULT_LOGS_FORMAT)),
        "max_file_bytes = {0}".format(
            _safe_positive_int_or_default(config.logs_max_file_bytes, DEFAULT_LOGS_MAX_FILE_BYTES)
        ),
        "max_files = {0}".format(_safe_positive_int_or_default(config.logs_max_files, DEFAULT_LOGS_MAX_FILES)),
        "",
    ]
    return "\n".join(lines)


def initialize_project_config(workspace_dir: Optional[Path] = None, force: bool = False) -> Path:
    config_root = resolve_project_config_root(workspace_dir)
    config_file = config_root / CONFIG_FILE_NAME

    if config_root.exists():
        if not force:
            raise ProjectConfigError(
                "配置目录已存在：{0} (configuration directory already exists)".format(config_root)
            )
        shutil.rmtree(config_root)

    (config_root / LOGS_DIR_NAME).mkdir(parents=True, exist_ok=True)
    config_file.write_text(_render_project_config(ProjectConfig()), encoding="utf-8")
    return config_root


def load_project_config(config_root: Optional[Path] = None, workspace_dir: Optional[Path] = None) -> ProjectConfig:
    resolved_root = (config_root or resolve_project_config_root(workspace_dir)).resolve()
    config_file = resolved_root / CONFIG_FILE_NAME
    if not resolved_root.is_dir() or not config_file.is_file():
        raise ProjectConfigError(
            "缺少项目配置目录：{0}，请先执行 `sortbridge init` (missing project config directory)".format(
                resolved_root
            )
        )

    try:
        parsed = tomllib.loads(config_file.read_text(encoding="utf-8"))
    except Exception as exc:
        raise ProjectConfigError("配置文件无效：{0} (invalid config file)".format(config_file)) from exc

    if not isinstance(parsed, dict):
        raise ProjectConfigError("配置文件无效：{0} (invalid config file)".format(config_file))

    return _parse_project_config_data(parsed)


def save_project_config(
    config: ProjectConfig,
    config_root: Optional[Path] = None,
    workspace_dir: Optional[Path] = None,
) -> Path:
    resolved_root = (config_root or resolve_project_config_root(workspace_dir)).resolve()
    config_file = resolved_root / CONFIG_FILE_NAME
    if not resolved_root.is_dir():
        raise ProjectConfigError(
            "缺少项目配置目录：{0}，请先执行 `sortbridge init` (missing project config directory)".format(
                resolved_root
            )
        )
    config_file.write_text(_render_project_config(config), encoding="utf-8")
    return config_file


def set_default_algorithm(name: str, workspace_dir: Optional[Path] = None) -> str:
    normalized = str(name or "").strip().lower()
    if normalized not in available_algorithms():
        raise ProjectConfigError(
            "不支持的算法：'{0}'，可选值：{1} (unsupported algorithm)".format(
                name,
                "|".join(available_algorithms()),
            )
        )
    config = load_project_config(workspace_dir=workspace_dir)
    config.default_algorithm = normalized
    save_project_config(config, workspace_dir=workspace_dir)
    return normalized


def load_settings(
    algorithm: Optional[str] = None,
    array_size: Optional[int] = None,
    step_delay_ms: Optional[int] = None,
    progress_channel: Optional[str] = None,
    workspace_dir: Optional[Path] = None,
) -> Settings:
    """Resolve settings from project config + explicit overrides."""

    project_root = resolve_project_root(workspace_dir)
    config_root = resolve_project_config_root(project_root)
    project_config = load_project_config(config_root=config_root)

    if algorithm is not None and str(algorithm).strip().lower() not in available_algorithms():
        raise ProjectConfigError(
            "不支持的算法：'{0}'，可选值：{1} (unsupported algorithm)".format(
                algorithm,
                "|".join(available_algorithms()),
            )
        )
    if progress_channel is not None and str(progress_channel).strip().lower() not in ALLOWED_PROGRESS_CHANNELS:
        raise ProjectConfigError(
            "不支持的进度通道：'{0}'，可选值：{1} (unsupported progress channel)".format(
                progress_channel,
                "|".join(ALLOWED_PROGRESS_CHANNELS),
            )
        )

    return Settings(
        project_root=project_root,
        config_root=config_root,
        algorithm=_normalize_algorithm(algorithm or project_config.default_algorithm),
        array_size=_safe_positive_int(
            array_size if array_size is not None else project_config.array_size,
            DEFAULT_ARRAY_SIZE,
        ),
        max_value=project_config.max_value,
        step_delay_ms=_safe_non_negative_int(
            step_delay_ms if step_delay_ms is not None else project_config.step_delay_ms,
            DEFAULT_STEP_DELAY_MS,
        ),
        progress_channel=_safe_progress_channel(
            progress_channel or project_config.progress_channel,
            DEFAULT_PROGRESS_CHANNEL,
        ),
        logs_enabled=project_config.logs_enabled,
        logs_format=project_config.logs_format,
        logs_max_file_bytes=project_config.logs_max_file_bytes,
        logs_max_files=project_config.logs_max_files,
    )
