"""Schema 绑定：基于 pydantic 的校验协作者。

SchemaBinding 接受任意 pydantic 能理解的类型：BaseModel 子类、
list[Model]、dict[str, int]、Union[...] 等，统一包成 TypeAdapter。

对外提供三件事：
- validate(candidate): 校验已解析的 JSON 值，失败抛 SchemaValidationFailed。
- root_shape(): schema 声明的根类型（object / array / other）。
- json_schema_text(): 放进 system prompt 的 JSON Schema 文本。
"""

import json
from typing import Any, Dict, Generic, Literal, TypeVar

from pydantic import TypeAdapter, ValidationError

from lowdeep.domain.exceptions import SchemaValidationFailed

T = TypeVar("T")

RootShape = Literal["object", "array", "other"]


def declared_root_shape(json_schema: Dict[str, Any]) -> RootShape:
    """根据 JSON Schema 的根 type 判断形状。

    联合类型（anyOf/oneOf 或 type 列表）只要包含 array 就视为 array。
    """

    declared = json_schema.get("type")
    if isinstance(declared, list):
        if "array" in declared:
            return "array"
        if declared == ["object"]:
            return "object"
        return "other"
    if declared == "array":
        return "array"
    if declared == "object":
        return "object"

    variants = json_schema.get("anyOf") or json_schema.get("oneOf") or []
    if any(isinstance(v, dict) and declared_root_shape(v) == "array" for v in variants):
        return "array"
    return "other"


class SchemaBinding(Generic[T]):
    def __init__(self, schema: Any):
        self.schema = schema
        self._adapter: TypeAdapter = TypeAdapter(schema)
        self._json_schema: Dict[str, Any] = self._adapter.json_schema()

    def validate(self, candidate: Any) -> T:
        try:
            return self._adapter.validate_python(candidate)
        except ValidationError as e:
            raise SchemaValidationFailed(e.errors(include_url=False))

    def root_shape(self) -> RootShape:
        return declared_root_shape(self._json_schema)

    @property
    def json_schema(self) -> Dict[str, Any]:
        return self._json_schema

    def json_schema_text(self) -> str:
        return json.dumps(self._json_schema, ensure_ascii=False)

    def __repr__(self) -> str:
        name = getattr(self.schema, "__name__", None) or repr(self.schema)
        return f"SchemaBinding({name})"
