#!filepath: humiture/cli.py
from typing import Optional

import typer
import yaml
from pydantic import ValidationError
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from humiture import __version__, logs, AppConfig, datetime_utils
from humiture.config import ReplayConfig
from humiture.utils.errors import DecodeError, ResourceUnavailable, UserInputError

app = typer.Typer(help="Humiture archive replay CLI")


def _load_config(
    config: Optional[str],
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> AppConfig:
    try:
        cfg = AppConfig.load(config)
        if start or end:
            cfg = _override_window(cfg, start, end)
    except FileNotFoundError as e:
        raise UserInputError(str(e)) from e
    except (ValidationError, yaml.YAMLError, ValueError) as e:
        raise UserInputError(f"invalid config: {e}") from e
    logs.configure(cfg.log)
    return cfg


def _override_window(cfg: AppConfig, start: Optional[str], end: Optional[str]) -> AppConfig:
    """--start / --end 覆盖模拟区间（epoch 秒或 'YYYY-MM-DD HH:MM:SS'，按配置时区解析）"""
    window = {}
    if start:
        window["start_time"] = datetime_utils.to_epoch(start, cfg.replay.timezone)
    if end:
        window["end_time"] = datetime_utils.to_epoch(end, cfg.replay.timezone)
    replay = ReplayConfig(**{**cfg.replay.model_dump(), **window})
    return cfg.model_copy(update={"replay": replay})


def _fail(msg: str, code: int = 1):
    print(f"[red]{escape(msg)}[/red]")
    raise typer.Exit(code=code)


@app.command()
def version():
    print(f"v{__version__}")


@app.command()
def run(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="YAML 配置文件"),
    dry_run: bool = typer.Option(False, "--dry-run", help="不连接 broker，只写日志"),
    interval: Optional[float] = typer.Option(None, "--interval", help="真实 tick 间隔（秒）"),
    start: Optional[str] = typer.Option(None, "--start", help="覆盖模拟起点（epoch 秒或 YYYY-MM-DD HH:MM:SS）"),
    end: Optional[str] = typer.Option(None, "--end", help="覆盖模拟终点"),
):
    """
    按虚拟时钟回放温湿度归档，直到模拟结束或 Ctrl-C
    """
    from humiture.runtime.service import UploadService

    try:
        cfg = _load_config(config, start, end)
        if interval is not None and interval <= 0:
            raise UserInputError(f"--interval must be positive, got {interval}")
        service = UploadService.from_config(cfg, dry_run=dry_run, interval=interval)
    except (UserInputError, ResourceUnavailable) as e:
        _fail(str(e))

    print(f"[green]Replaying {cfg.replay.start_time} -> {cfg.replay.end_time} "
          f"(step={cfg.replay.step}s){' (dry-run)' if dry_run else ''}[/green]")
    service.run_forever()
    print(f"[blue]Done: {service.scheduler.emitted()}[/blue]")


@app.command()
def check(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="YAML 配置文件"),
):
    """
    完整解码两个归档（不发送），报告记录数 / 时间范围 / 损坏记录
    """
    from humiture.runtime.service import build_sources

    try:
        cfg = _load_config(config)
        sources = build_sources(cfg)
    except (UserInputError, ResourceUnavailable) as e:
        _fail(str(e))

    table = Table(title="Archive check")
    for col in ("stream", "records", "first ts", "last ts", "error"):
        table.add_column(col)

    failed = False
    for source in sources:
        first = last = None
        try:
            while source.peek() is not None:
                reading = source.peek()
                first = first or reading
                last = reading
                source.advance()
        except DecodeError:
            pass
        finally:
            source.close()

        failed = failed or source.error is not None
        table.add_row(
            source.name,
            str(source.consumed),
            _fmt_ts(first.ts, cfg) if first else "-",
            _fmt_ts(last.ts, cfg) if last else "-",
            f"[red]{escape(str(source.error))}[/red]" if source.error else "",
        )

    Console().print(table)
    if failed:
        raise typer.Exit(code=1)


@app.command()
def simulate(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="YAML 配置文件"),
    ticks: Optional[int] = typer.Option(None, "--ticks", "-n", help="最多执行的 tick 数（默认直到结束）"),
    start: Optional[str] = typer.Option(None, "--start", help="覆盖模拟起点（epoch 秒或 YYYY-MM-DD HH:MM:SS）"),
    end: Optional[str] = typer.Option(None, "--end", help="覆盖模拟终点"),
):
    """
    不按真实时间节奏，连续 tick 到结束，统计每个 stream 的发送量
    """
    from humiture.publish.memory import MemoryPublisher
    from humiture.runtime.service import build_scheduler, build_sources

    try:
        cfg = _load_config(config, start, end)
        sources = build_sources(cfg)
    except (UserInputError, ResourceUnavailable) as e:
        _fail(str(e))

    publishers = [MemoryPublisher(s.name) for s in sources]
    scheduler = build_scheduler(cfg, sources, publishers)

    n = 0
    while not scheduler.complete and (ticks is None or n < ticks):
        scheduler.tick()
        n += 1
    scheduler.close()

    print(f"Simulated {n} ticks, clock={scheduler.clock.now()} "
          f"({datetime_utils.fmt(scheduler.clock.now(), cfg.replay.timezone)}), state={scheduler.state.value}")

    table = Table(title="Emission per stream")
    table.add_column("stream")
    table.add_column("emitted")
    table.add_column("state")
    for name, stat in scheduler.stats()["streams"].items():
        table.add_row(name, str(stat["emitted"]), "exhausted" if stat["exhausted"] else "pending")
    Console().print(table)


def _fmt_ts(ts: int, cfg: AppConfig) -> str:
    return datetime_utils.fmt(ts // cfg.replay.ts_factor, cfg.replay.timezone)


if __name__ == "__main__":
    app()

# python -m humiture.cli run --dry-run
