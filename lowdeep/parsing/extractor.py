"""从清洗后的文本中宽松地提取 JSON。

策略：
1. 整段直接 json.loads（快速路径）。
2. 失败则从左到右找下一个 `{` 或 `[`，用 scan_fragment 截出平衡片段并解析，
   解析成功就记录下来并跳过这段，继续找下一个。

找到 0 个 -> NoJsonFoundError；1 个 -> 直接返回该值；
多个 -> 按出现顺序返回列表（模型有时每个推理步骤输出一个对象）。

嵌套深度超过解释器递归上限的片段（json.loads 抛 RecursionError）按解析失败处理，
整段跳过。
"""

import json
import re
from typing import Any, List, Set

from lowdeep.domain.exceptions import EmptyInputError, NoJsonFoundError
from lowdeep.parsing.scanner import scan_fragment

_OPENER_RE = re.compile(r"[\[{]")


def find_json_fragments(text: str) -> List[Any]:
    """按出现顺序返回文本中所有可解析的顶层 JSON 值。"""

    values: List[Any] = []
    # 之前的扫描已经证明从这些位置开始必然失败
    doomed: Set[int] = set()
    cursor = 0
    while True:
        match = _OPENER_RE.search(text, cursor)
        if match is None:
            break
        start = match.start()
        cursor = start + 1
        if start in doomed:
            continue
        fragment, failed = scan_fragment(text, start)
        if fragment is None:
            doomed.update(failed)
            continue
        try:
            values.append(json.loads(fragment))
        except json.JSONDecodeError:
            # 括号平衡但不是合法 JSON（如 `{name}` 或 `[见下文 {...}]`），
            # 只跳过这个左括号，内部可能还有合法片段
            continue
        except RecursionError:
            cursor = start + len(fragment)
            continue
        cursor = start + len(fragment)
    return values


def extract_json(text: str) -> Any:
    """提取 JSON 值；多个片段时返回列表。

    Raises:
        EmptyInputError: 文本为空。
        NoJsonFoundError: 找不到任何可解析的 JSON 片段。
    """

    if not text or not text.strip():
        raise EmptyInputError()
    try:
        return json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        pass

    values = find_json_fragments(text)
    if not values:
        raise NoJsonFoundError()
    if len(values) == 1:
        return values[0]
    return values
