"""图表会话 API 请求/响应落盘工具。"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from pydantic import BaseModel

MASK_TOKEN = "***MASKED***"


class ApiRecorder:
    """将 API 请求与响应以 JSON 落盘，便于复现一次图表编辑会话。

    行数据与图表数据只记录行数，不落盘单元格内容。
    """

    def __init__(
        self,
        base_path: Path,
        *,
        max_bytes: int = 256_000,
        summarized_keys: Iterable[str] | None = None,
    ) -> None:
        """初始化落盘器。

        Parameters
        ----------
        base_path: Path
            存放落盘文件的根目录。
        max_bytes: int
            单个 JSON 文件允许的最大字节数。
        summarized_keys: Iterable[str] | None
            值为行列表、只记录行数的字段名称。
        """

        if base_path is None:
            raise ValueError("base_path 不能为空。")
        if max_bytes <= 0:
            raise ValueError("max_bytes 必须为正数。")
        self._base_path = base_path
        self._base_path.mkdir(parents=True, exist_ok=True)
        self._max_bytes = max_bytes
        self._summarized_keys = set(summarized_keys or {"rows", "data"})

    def record(self, endpoint: str, direction: str, payload: Any) -> Path:
        """将 payload 序列化后写入 `<endpoint>/<timestamp>_<direction>.json`。"""

        if not endpoint:
            raise ValueError("endpoint 不能为空。")
        if direction not in {"request", "response", "error"}:
            raise ValueError("direction 仅支持 request、response 或 error。")
        path = self._build_target_path(endpoint=endpoint, direction=direction)
        normalized = self._to_serializable(payload=payload)
        redacted = self._redact(payload=normalized)
        path.write_text(self._serialize_with_limit(payload=redacted), encoding="utf-8")
        return path

    def record_error(self, endpoint: str, payload: Any) -> Path:
        """落盘错误结构。"""

        return self.record(endpoint=endpoint, direction="error", payload=payload)

    def _build_target_path(self, endpoint: str, direction: str) -> Path:
        timestamp = datetime.now(tz=timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
        safe_endpoint = endpoint.strip("/").replace("/", "__") or "root"
        target_dir = self._base_path / safe_endpoint
        target_dir.mkdir(parents=True, exist_ok=True)
        return target_dir / f"{timestamp}_{direction}.json"

    @staticmethod
    def _to_serializable(payload: Any) -> Any:
        if payload is None:
            return None
        if isinstance(payload, BaseModel):
            return payload.model_dump(mode="json")
        if isinstance(payload, (dict, list, int, float, str, bool)):
            return payload
        message = f"无法序列化类型 {type(payload).__name__}。"
        raise TypeError(message)

    def _redact(self, payload: Any) -> Any:
        """递归把行列表替换为行数摘要。"""

        if isinstance(payload, dict):
            redacted: dict[str, Any] = {}
            for key, value in payload.items():
                if key in self._summarized_keys and isinstance(value, list):
                    redacted[key] = {"row_count": len(value), "content": MASK_TOKEN}
                    continue
                redacted[key] = self._redact(payload=value)
            return redacted
        if isinstance(payload, list):
            return [self._redact(payload=item) for item in payload]
        return payload

    def _serialize_with_limit(self, payload: Any) -> str:
        serialized = json.dumps(payload, ensure_ascii=False, indent=2, default=str)
        size = len(serialized.encode("utf-8"))
        if size <= self._max_bytes:
            return serialized
        fallback = {
            "truncated": True,
            "original_size": size,
            "max_bytes": self._max_bytes,
            "message": "payload 超过大小门限，已被截断。",
        }
        return json.dumps(fallback, ensure_ascii=False, indent=2)
