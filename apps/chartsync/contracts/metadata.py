"""图表同步契约的公共基类与 JSONSchema 标识。"""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict

SCHEMA_VERSION: str = "1.0.0"
"""区域、列状态与事件契约共用的版本号。"""

SCHEMA_BASE_URI: str = "https://schemas.chartsync.local/contracts"

JSON_SCHEMA_DIALECT: str = "https://json-schema.org/draft/2020-12/schema"


def schema_identity(schema_name: str) -> Dict[str, str]:
    """返回某个契约在导出 Schema 中的身份字段。

    Parameters
    ----------
    schema_name: str
        契约名称，例如 ``range_set``。

    Returns
    -------
    Dict[str, str]
        ``$id``、``$schema`` 与 ``version`` 三项。
    """

    return {
        "$id": f"{SCHEMA_BASE_URI}/{schema_name}.json",
        "$schema": JSON_SCHEMA_DIALECT,
        "version": SCHEMA_VERSION,
    }


def _close_objects(node: Dict[str, Any]) -> None:
    """对象节点默认不接受未声明字段，与 extra="forbid" 保持一致。"""

    if node.get("type") == "object":
        node.setdefault("additionalProperties", False)
    for nested in node.get("$defs", {}).values():
        if isinstance(nested, dict):
            _close_objects(nested)


class ContractModel(BaseModel):
    """可导出 Schema 的契约基类；子类通过 schema_name() 声明名称。"""

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def schema_name(cls) -> str:
        message = f"{cls.__name__} 需要声明 schema_name()。"
        raise NotImplementedError(message)

    @classmethod
    def model_json_schema(cls, *args: Any, **kwargs: Any) -> Dict[str, Any]:
        schema = super().model_json_schema(*args, **kwargs)
        schema.update(schema_identity(cls.schema_name()))
        _close_objects(schema)
        return schema


class SnapshotContractModel(ContractModel):
    """区域与列状态等不可变快照，可直接比较相等并放入撤销历史。"""

    model_config = ConfigDict(extra="forbid", frozen=True)
