"""提示词构造工具。

集中维护发给模型的所有固定文本：
- system prompt（基础指令 + JSON 模式说明 + 根类型提示 + schema 定义）。
- 重试时注入的纠错消息（解析失败 / schema 校验失败两类）。
"""

import json
from typing import Any, List, Optional

from lowdeep.schema.binding import SchemaBinding

DEFAULT_SYSTEM_PROMPT = "Be a helpful assistant"

JSON_MODE_INSTRUCTIONS = (
    "You MUST answer with a single valid JSON value that strictly follows the schema below. "
    "Do not wrap it in markdown code blocks and do not add explanations before or after it."
)

_SHAPE_HINTS = {
    "array": "The root of your answer MUST be a JSON array, enclosed in square brackets [ ].",
    "object": "The root of your answer MUST be a JSON object, enclosed in curly braces { }.",
}
_GENERIC_SHAPE_HINT = "The root of your answer MUST have exactly the root type required by the schema."


def root_shape_hint(binding: Optional[SchemaBinding]) -> Optional[str]:
    """根据 schema 的根类型给出提示；没有 schema 时返回 None。"""

    if binding is None:
        return None
    return _SHAPE_HINTS.get(binding.root_shape(), _GENERIC_SHAPE_HINT)


def build_system_prompt(base: str, binding: Optional[SchemaBinding]) -> str:
    parts: List[str] = [base.strip()]
    if binding is not None:
        parts.append(JSON_MODE_INSTRUCTIONS)
        hint = root_shape_hint(binding)
        if hint:
            parts.append(hint)
        parts.append(f"Schema:\n{binding.json_schema_text()}")
    return "\n\n".join(p for p in parts if p)


def parse_correction(error: str) -> str:
    return (
        f"Your last response could not be parsed as JSON ({error}). "
        "You must return a valid JSON value. "
        "Do not include markdown blocks or text explanations."
    )


def schema_correction(detail: List[Any]) -> str:
    errors = json.dumps(detail, ensure_ascii=False, default=str)
    return (
        "Your last JSON response was invalid.\n"
        f"Errors: {errors}\n"
        "Please fix the JSON and return only the corrected value."
    )
