"""Typer CLI entrypoints for SortBridge."""

from __future__ import annotations

import json
import random
import sys
from typing import Dict, List, Optional

import typer

from sortbridge.algorithms import available_algorithms, get_algorithm
from sortbridge.config import (
    ProjectConfigError,
    Settings,
    initialize_project_config,
    load_project_config,
    load_settings,
    project_config_exists,
    resolve_project_config_root,
    set_default_algorithm,
)
from sortbridge.kernel.debug_log import DebugLogWriter
from sortbridge.kernel.dispatcher import QueueObserverContext
from sortbridge.task.codec import ProgressCodec
from sortbridge.task.coordinator import TaskCoordinator
from sortbridge.task.errors import SortTaskError, describe_fault
from sortbridge.task.types import CompletionEvent, ExchangeEvent
from sortbridge.ui.render import (
    format_array,
    render_array_bars,
    render_completion,
    render_doctor_text,
    render_exchange,
    render_notice,
)

EXIT_OK = 0
EXIT_FAULT = 1
EXIT_USAGE = 2
EXIT_CANCELED = 130

app = typer.Typer(
    no_args_is_help=True,
    help="SortBridge 后台排序演示 (Background sorting with ordered progress events)",
)


def _missing_config_message() -> str:
    return render_notice(
        "error",
        "当前目录缺少项目配置目录：{0}，请先执行 `sortbridge init`。".format(
            resolve_project_config_root()
        ),
        "Missing project config directory. Run `sortbridge init` first.",
    )


def _require_project_config() -> None:
    if project_config_exists():
        return
    typer.echo(_missing_config_message(), err=True)
    raise typer.Exit(code=EXIT_USAGE)


def _parse_values(text: str) -> List[int]:
    values: List[int] = []
    for chunk in text.replace(";", ",").split(","):
        item = chunk.strip()
        if not item:
            continue
        values.append(int(item))
    if not values:
        raise ValueError("no values given")
    return values


def _random_values(size: int, max_value: int, seed: Optional[int]) -> List[int]:
    rng = random.Random(seed)
    return [rng.randint(1, max(1, max_value)) for _ in range(size)]


def _build_debug_log(settings: Settings) -> DebugLogWriter:
    return DebugLogWriter(
        logs_dir=settings.logs_dir,
        enabled=settings.logs_enabled,
        log_format=settings.logs_format,
        max_file_bytes=settings.logs_max_file_bytes,
        max_files=settings.logs_max_files,
    )


def _execute_sort(
    algorithm: Optional[str],
    size: Optional[int],
    values: Optional[str],
    seed: Optional[int],
    delay_ms: Optional[int],
    channel: Optional[str],
    cancel_after: Optional[int],
    quiet: bool,
    bars: bool,
) -> int:
    try:
        settings = load_settings(
            algorithm=algorithm,
            array_size=size,
            step_delay_ms=delay_ms,
            progress_channel=channel,
        )
    except ProjectConfigError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        return EXIT_USAGE

    if values:
        try:
            array = _parse_values(values)
        except ValueError:
            typer.echo(
                render_notice(
                    "error",
                    "无法解析数组：{0}".format(values),
                    "Values must be comma-separated integers",
                ),
                err=True,
            )
            return EXIT_USAGE
    else:
        array = _random_values(settings.array_size, settings.max_value, seed)

    debug_log = _build_debug_log(settings)
    observer = QueueObserverContext()

    def on_handler_error(kind: str, _handler: object, exc: Exception) -> None:
        typer.echo(
            render_notice(
                "warn",
                "事件处理失败：{0}".format(describe_fault(exc)),
                "Handler failed for {0}".format(kind),
            ),
            err=True,
        )

    coordinator = TaskCoordinator(
        observer,
        array,
        get_algorithm(settings.algorithm),
        progress_channel=settings.progress_channel,
        step_delay_ms=settings.step_delay_ms,
        debug_log=debug_log,
        on_handler_error=on_handler_error,
    )
    outcome: Dict[str, CompletionEvent] = {}

    def on_exchange(event: ExchangeEvent) -> None:
        if not quiet:
            render_exchange(event, stream=sys.stdout)
        if cancel_after and event.sequence >= cancel_after:
            coordinator.request_cancel()

    def on_complete(event: CompletionEvent) -> None:
        outcome["event"] = event

    coordinator.on_exchange(on_exchange)
    coordinator.on_complete(on_complete)

    typer.echo(
        render_notice(
            "info",
            "开始排序：{0}，共 {1} 个元素".format(settings.algorithm, len(array)),
            "Sorting {0} elements with {1}".format(len(array), settings.algorithm),
        )
    )
    if not quiet:
        typer.echo("input={0}".format(format_array(array)))

    try:
        coordinator.start()
    except SortTaskError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        return EXIT_USAGE

    try:
        observer.process_until(lambda: "event" in outcome)
    except KeyboardInterrupt:
        typer.echo(render_notice("warn", "正在取消排序…", "Canceling sort..."), err=True)
        coordinator.request_cancel()
        try:
            observer.process_until(lambda: "event" in outcome)
        except KeyboardInterrupt:
            typer.echo(
                render_notice("warn", "已停止等待排序结束", "Stopped waiting for the sort to finish"),
                err=True,
            )
            return EXIT_CANCELED

    event = outcome["event"]
    render_completion(event, array, stream=sys.stdout)
    if bars:
        render_array_bars(array, stream=sys.stdout)
    if event.fault is not None:
        return EXIT_FAULT
    if event.canceled:
        return EXIT_CANCELED
    return EXIT_OK


@app.callback()
def main(ctx: typer.Context) -> None:
    if ctx.invoked_subcommand is not None and ctx.invoked_subcommand not in {"init", "algorithms"}:
        _require_project_config()


@app.command("init")
def init_cmd(
    force: bool = typer.Option(
        False,
        "--force",
        help="重建 .sortbridge_config（会先删除已有目录） (Recreate config directory)",
    ),
) -> None:
    try:
        config_root = initialize_project_config(force=force)
    except ProjectConfigError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=EXIT_USAGE)

    typer.echo(
        render_notice(
            "success",
            "项目配置初始化完成：{0}".format(config_root),
            "Initialized project config at: {0}".format(config_root),
        )
    )


@app.command("algorithms")
def algorithms_cmd() -> None:
    default = ""
    if project_config_exists():
        try:
            default = load_project_config().default_algorithm
        except ProjectConfigError:
            default = ""
    for name in available_algorithms():
        marker = "*" if name == default else " "
        typer.echo("{0} {1}".format(marker, name))


@app.command("use")
def use_cmd(name: str = typer.Argument(..., help="默认排序算法 (Default sorting algorithm)")) -> None:
    try:
        selected = set_default_algorithm(name)
    except ProjectConfigError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=EXIT_USAGE)
    typer.echo(
        render_notice(
            "success",
            "默认算法已切换为：{0}".format(selected),
            "Default algorithm set to: {0}".format(selected),
        )
    )


@app.command("run")
def run_cmd(
    algorithm: Optional[str] = typer.Option(
        None,
        "--algorithm",
        "-a",
        help="排序算法（默认取配置） (Sorting algorithm, default from config)",
    ),
    size: Optional[int] = typer.Option(None, "--size", "-n", min=1, help="随机数组长度 (Random array size)"),
    values: Optional[str] = typer.Option(None, "--values", help="逗号分隔的整数 (Comma-separated integers)"),
    seed: Optional[int] = typer.Option(None, "--seed", help="随机种子 (Random seed)"),
    delay_ms: Optional[int] = typer.Option(None, "--delay-ms", min=0, help="每次交换后的停顿 (Pause after each exchange)"),
    channel: Optional[str] = typer.Option(
        None,
        "--channel",
        help="进度通道：structured|packed (Progress channel)",
    ),
    cancel_after: Optional[int] = typer.Option(
        None,
        "--cancel-after",
        min=1,
        help="收到 N 次交换后请求取消 (Request cancellation after N exchanges)",
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="不打印每次交换 (Do not print exchanges)"),
    bars: bool = typer.Option(False, "--bars", help="结束后绘制柱状图 (Draw bars for the final array)"),
) -> None:
    exit_code = _execute_sort(
        algorithm=algorithm,
        size=size,
        values=values,
        seed=seed,
        delay_ms=delay_ms,
        channel=channel,
        cancel_after=cancel_after,
        quiet=quiet,
        bars=bars,
    )
    raise typer.Exit(code=exit_code)


@app.command("doctor")
def doctor_cmd(
    output_format: str = typer.Option(
        "json",
        "--format",
        help="输出格式：json|text (Output format)",
    ),
) -> None:
    normalized_format = output_format.strip().lower()
    if normalized_format not in {"json", "text"}:
        typer.echo(
            render_notice("error", "不支持的格式：{0}".format(output_format), "Unsupported format: {0}".format(output_format)),
            err=True,
        )
        raise typer.Exit(code=EXIT_USAGE)

    try:
        settings = load_settings()
    except ProjectConfigError as exc:
        typer.echo(render_notice("error", str(exc)), err=True)
        raise typer.Exit(code=EXIT_USAGE)

    report: Dict[str, object] = {
        "config_root": str(settings.config_root),
        "algorithm": settings.algorithm,
        "algorithms": available_algorithms(),
        "array_size": settings.array_size,
        "max_value": settings.max_value,
        "step_delay_ms": settings.step_delay_ms,
        "progress_channel": settings.progress_channel,
        "packed_capacity": ProgressCodec().capacity,
    }
    report.update(_build_debug_log(settings).status())
    if normalized_format == "json":
        typer.echo(json.dumps(report, ensure_ascii=True, indent=2))
        return
    typer.echo(render_doctor_text(report))


if __name__ == "__main__":  # pragma: no cover
    app()
