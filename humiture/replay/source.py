# humiture/replay/source.py
from __future__ import annotations

import math
from pathlib import Path
from typing import Any, Iterable, Iterator, List, Optional, Tuple

import pyarrow as pa
import pyarrow.csv as csv

from humiture import logs
from humiture.replay.events import Reading
from humiture.replay.time_mapper import TimeMapper
from humiture.utils.errors import DecodeError, OrderingError, ResourceUnavailable

RawRecord = Tuple[str, str]


class TsvArchive:
    """
    TsvArchive（归档解码器 / Low-level I/O）

    职责：
      - 流式读取无表头的 `timestamp<TAB>value` 文件
      - 所有列按 string 读入，数值解析交给 RecordSource
      - 负责文件句柄释放

    不负责：
      - 时间映射
      - 乱序检查
    """

    def __init__(self, path: Path | str, *, delimiter: str = "\t", block_size: int = 1 << 20):
        self._path = Path(path)
        if not self._path.is_file():
            raise ResourceUnavailable(f"[TsvArchive] archive not found: {self._path}")

        try:
            self._fh = open(self._path, "rb")
        except OSError as e:
            raise ResourceUnavailable(f"[TsvArchive] cannot open {self._path}: {e}") from e

        self._delimiter = delimiter
        self._block_size = block_size

    @property
    def path(self) -> Path:
        return self._path

    # --------------------------------------------------
    def __iter__(self) -> Iterator[RawRecord]:
        if self._fh is None:
            return
        if self._path.stat().st_size == 0:
            return

        # 列数不对的行由 pyarrow 跳过并记下行号；按物理行号在原位置上抛
        rejected: List[Tuple[int, str]] = []

        def on_invalid_row(row) -> str:
            if row.number is None:
                return "error"
            rejected.append((row.number, row.text))
            return "skip"

        try:
            reader = csv.open_csv(
                self._fh,
                read_options=csv.ReadOptions(
                    autogenerate_column_names=True,
                    block_size=self._block_size,
                    use_threads=False,
                ),
                parse_options=csv.ParseOptions(
                    delimiter=self._delimiter,
                    ignore_empty_lines=False,
                    invalid_row_handler=on_invalid_row,
                ),
                convert_options=csv.ConvertOptions(
                    column_types={"f0": pa.string(), "f1": pa.string()},
                    strings_can_be_null=False,
                ),
            )

            line = 0
            pending = 0
            for batch in reader:
                columns = [batch.column(i).to_pylist() for i in range(batch.num_columns)]
                for row in zip(*columns):
                    line += 1
                    while pending < len(rejected) and rejected[pending][0] == line:
                        self._reject(*rejected[pending])
                        pending += 1
                        line += 1
                    yield row

            for number, text in rejected[pending:]:
                self._reject(number, text)

        except pa.ArrowInvalid as e:
            raise DecodeError(f"[TsvArchive] malformed archive: {e}", source=self._path.name) from e

    def _reject(self, number: int, text: str) -> None:
        text = text.rstrip("\r\n")
        # 空行直接忽略
        if not text.strip():
            return
        raise DecodeError(
            f"[TsvArchive] expect 2 columns, got {len(text.split(self._delimiter))}",
            source=self._path.name,
            line=number,
            raw=text,
        )

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None


class RecordSource:
    """
    RecordSource（单一物理量的惰性读数游标）

    - peek()    : 当前待发送 Reading；None 表示 exhausted
    - advance() : 丢弃当前 Reading，解码下一条
    - exhausted 是单向状态：一旦进入，永久 peek() -> None

    输入假设：
      - rows 按时间戳非递减（不重排，回退视为损坏数据）
    """

    def __init__(
        self,
        name: str,
        rows: Iterable[Any],
        mapper: TimeMapper | None = None,
    ) -> None:
        self.name = name
        self._rows = rows
        self._it: Optional[Iterator[Any]] = iter(rows)
        self._mapper = mapper or TimeMapper.identity()

        self._cursor: Optional[Reading] = None
        self._last_ts: Optional[int] = None
        self._exhausted = False
        self._line = 0

        self.consumed = 0
        self.error: Optional[DecodeError] = None

        # 构造即加载第一条；首条损坏只影响本 stream
        try:
            self.advance()
        except DecodeError:
            logs.error(f"[RecordSource:{self.name}] first record unreadable: {self.error}")

    # --------------------------------------------------
    @property
    def exhausted(self) -> bool:
        return self._exhausted

    def peek(self) -> Optional[Reading]:
        return self._cursor

    def advance(self) -> None:
        if self._exhausted:
            return

        self._cursor = None
        try:
            raw = next(self._it)
        except StopIteration:
            self._exhaust()
            logs.info(f"[RecordSource:{self.name}] exhausted after {self.consumed} readings")
            return
        except DecodeError as e:
            self._fail(e)
            raise
        except Exception:
            self._exhaust()
            raise

        self._line += 1
        try:
            reading = self._decode(raw)
        except DecodeError as e:
            self._fail(e)
            raise

        self._cursor = reading
        self._last_ts = reading.ts
        self.consumed += 1

    def close(self) -> None:
        """释放底层解码器（幂等），并进入 exhausted"""
        self._exhaust()
        for obj in (self._it, self._rows):
            closer = getattr(obj, "close", None)
            if callable(closer):
                closer()
        self._it = iter(())

    # --------------------------------------------------
    def _decode(self, raw: Any) -> Reading:
        try:
            ts_field, value_field = raw
        except (TypeError, ValueError):
            raise DecodeError("expect (timestamp, value) pair", source=self.name, line=self._line, raw=raw)

        try:
            ts = int(str(ts_field).strip())
        except ValueError:
            raise DecodeError("non-integer timestamp", source=self.name, line=self._line, raw=raw)

        try:
            value = float(value_field)
        except (TypeError, ValueError):
            raise DecodeError("non-numeric value", source=self.name, line=self._line, raw=raw)

        if not math.isfinite(value):
            raise DecodeError("non-finite value", source=self.name, line=self._line, raw=raw)

        mapped = self._mapper(ts)
        if self._last_ts is not None and mapped < self._last_ts:
            raise OrderingError(
                f"timestamp regression {mapped} < {self._last_ts}",
                source=self.name,
                line=self._line,
                raw=raw,
            )

        return Reading(ts=mapped, value=value)

    def _fail(self, err: DecodeError) -> None:
        if not err.source:
            err.source = self.name
        if err.line is None:
            err.line = self._line + 1
        self.error = err
        self._exhaust()

    def _exhaust(self) -> None:
        self._cursor = None
        self._exhausted = True

    def __repr__(self) -> str:
        state = "exhausted" if self._exhausted else f"cursor={self._cursor}"
        return f"RecordSource({self.name!r}, {state})"


def open_source(name: str, path: Path | str, mapper: TimeMapper | None = None, *, delimiter: str = "\t") -> RecordSource:
    """TsvArchive + RecordSource（ResourceUnavailable 直接上抛）"""
    return RecordSource(name, TsvArchive(path, delimiter=delimiter), mapper)
