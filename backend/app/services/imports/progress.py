"""
インポートの進捗通知

オーケストレーターは ProgressReporter を通じてイベントをキューに積み、
stream_events がキューを読み出して Server-Sent Events のフレームに変換する。
終端イベント（complete / error）は1度だけ送られ、その後はストリームを閉じる。
"""
import asyncio
import json
from typing import Any, AsyncIterator, Dict, Optional

from app.logging_config import logger

Event = Dict[str, Any]


def format_event(event: Event) -> str:
    return f"data: {json.dumps(event)}\n\n"


class ProgressReporter:
    def __init__(self, channel: "asyncio.Queue[Optional[Event]]"):
        self.channel = channel
        self._last_progress = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def last_progress(self) -> int:
        return self._last_progress

    async def _emit(self, event: Event) -> None:
        await self.channel.put(event)
        # 書き出し側にフラッシュの機会を与える
        await asyncio.sleep(0)

    async def progress(self, value: float, status: str) -> None:
        """進捗を送る。値は0〜100に収め、前回より小さくならないようにする"""
        if self._closed:
            return
        clamped = max(self._last_progress, min(100, int(round(value))))
        self._last_progress = clamped
        await self._emit({"progress": clamped, "status": status})

    async def complete(self, test_run_id: int) -> None:
        if self._closed:
            return
        self._closed = True
        await self._emit({"complete": True, "testRunId": test_run_id})
        await self.channel.put(None)

    async def error(self, message: str) -> None:
        if self._closed:
            logger.warning(f"Error after terminal event ignored: {message}")
            return
        self._closed = True
        await self._emit({"error": message})
        await self.channel.put(None)


async def stream_events(channel: "asyncio.Queue[Optional[Event]]") -> AsyncIterator[str]:
    """終端の番兵（None）を受け取るまでイベントを data: フレームとして返す"""
    while True:
        event = await channel.get()
        if event is None:
            break
        yield format_event(event)
