"""平衡括号扫描器。

从 text[start] 处的 `{` 或 `[` 开始向后扫描，找到与之匹配的右括号，
返回这一段完整子串。字符串字面量里的括号、转义引号都不会被当作结构字符。

状态机只有三个状态：

    NORMAL    --'"'-->  IN_STRING
    IN_STRING --'\\'--> ESCAPED
    IN_STRING --'"'-->  NORMAL
    ESCAPED   --任意--> IN_STRING

NORMAL 状态下维护一个括号栈：左括号入栈，右括号必须与栈顶匹配，
否则立即失败（例如 `{...]`）；栈清空即扫描结束。
"""

from enum import Enum
from typing import List, Optional, Tuple


class ScanState(Enum):
    NORMAL = "normal"
    IN_STRING = "in_string"
    ESCAPED = "escaped"


OPENERS = "{["
_CLOSER_FOR = {"}": "{", "]": "["}


def step(state: ScanState, char: str) -> ScanState:
    """字符串/转义状态的单步迁移，不处理括号。"""

    if state is ScanState.ESCAPED:
        return ScanState.IN_STRING
    if state is ScanState.IN_STRING:
        if char == "\\":
            return ScanState.ESCAPED
        if char == '"':
            return ScanState.NORMAL
        return ScanState.IN_STRING
    if char == '"':
        return ScanState.IN_STRING
    return ScanState.NORMAL


def scan_fragment(text: str, start: int) -> Tuple[Optional[str], List[int]]:
    """与 scan_balanced 相同，另外返回本次扫描能判定必然失败的左括号位置。

    扫描失败（括号不匹配或直到文本末尾仍未闭合）时，仍留在栈里的左括号
    之后看到的字符、字符串状态和栈顶都与本次扫描一致，从它们开始扫描
    也会以同样的方式失败，调用方可以直接跳过。
    """

    if start < 0 or start >= len(text) or text[start] not in OPENERS:
        return None, []

    stack: List[int] = [start]
    state = ScanState.NORMAL
    for i in range(start + 1, len(text)):
        char = text[i]
        if state is not ScanState.NORMAL:
            state = step(state, char)
            continue
        if char in OPENERS:
            stack.append(i)
        elif char in _CLOSER_FOR:
            if text[stack[-1]] != _CLOSER_FOR[char]:
                return None, stack[1:]
            stack.pop()
            if not stack:
                return text[start : i + 1], []
        else:
            state = step(state, char)
    return None, stack[1:]


def scan_balanced(text: str, start: int) -> Optional[str]:
    """返回从 start 开始的平衡 JSON 片段；括号不匹配或未闭合时返回 None。

    只消费到真正的闭合括号为止，后面的文字不影响结果。
    """

    return scan_fragment(text, start)[0]
