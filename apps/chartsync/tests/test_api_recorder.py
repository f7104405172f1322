"""针对 ApiRecorder 的行数据脱敏与大小限制测试。"""

from __future__ import annotations

import json

import pytest

from apps.chartsync.contracts import CellRange
from apps.chartsync.infra.persistence import MASK_TOKEN, ApiRecorder


def test_api_recorder_summarizes_rows(tmp_path) -> None:
    """rows 与 data 只记录行数。"""

    recorder = ApiRecorder(base_path=tmp_path)
    recorder.record(
        endpoint="test_endpoint",
        direction="request",
        payload={"rows": [{"gold": 1}, {"gold": 2}], "note": "ok"},
    )
    files = list((tmp_path / "test_endpoint").glob("*_request.json"))
    assert files, "请求文件未落盘。"
    payload = json.loads(files[0].read_text(encoding="utf-8"))
    assert payload["rows"] == {"row_count": 2, "content": MASK_TOKEN}
    assert payload["note"] == "ok"


def test_api_recorder_dumps_contract_models(tmp_path) -> None:
    """契约模型以 JSON 模式序列化。"""

    recorder = ApiRecorder(base_path=tmp_path)
    path = recorder.record(
        endpoint="/api/chart/ranges",
        direction="response",
        payload=CellRange(start_row=0, end_row=3, columns=("gold",)),
    )
    assert path.parent.name == "api__chart__ranges"
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["columns"] == ["gold"]
    assert payload["chart_mode"] == "value"


def test_api_recorder_truncates_large_payload(tmp_path) -> None:
    """超出大小限制的 payload 应返回截断提示。"""

    recorder = ApiRecorder(base_path=tmp_path, max_bytes=32)
    recorder.record(endpoint="endpoint", direction="response", payload={"huge": "x" * 100})
    files = list((tmp_path / "endpoint").glob("*_response.json"))
    assert files, "响应文件未落盘。"
    payload = json.loads(files[0].read_text(encoding="utf-8"))
    assert payload["truncated"] is True
    assert payload["original_size"] > payload["max_bytes"]


def test_api_recorder_rejects_invalid_input(tmp_path) -> None:
    """非法方向与不可序列化对象直接报错。"""

    recorder = ApiRecorder(base_path=tmp_path)
    with pytest.raises(ValueError):
        recorder.record(endpoint="endpoint", direction="sideways", payload={})
    with pytest.raises(TypeError):
        recorder.record(endpoint="endpoint", direction="request", payload=object())
