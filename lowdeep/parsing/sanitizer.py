"""模型原始输出清洗。

推理模型（DeepSeek R1、QwQ 等）会在正文前输出 <think>...</think> 推理段，
很多模型还会把 JSON 包在 ```json 代码块里。这里把两者都去掉，只保留正文。
只删除成对的推理标签；落单的标签原样保留，它可能就在 JSON 字符串值里。
"""

import re

# 推理段：成对的 <think>/<thinking>/<reasoning> 标签，跨行、大小写不敏感。
# 块内不允许再出现开标签，所以每次只匹配最内层的一对
_OPEN_TAG = r"<\s*(?:think|thinking|reasoning)\s*>"
_REASONING_BLOCK_RE = re.compile(
    r"<\s*(think|thinking|reasoning)\s*>(?:(?!" + _OPEN_TAG + r").)*?<\s*/\s*\1\s*>",
    re.IGNORECASE | re.DOTALL,
)
# 代码块分隔符，可带 json 标记；只删分隔符，保留块内内容
_FENCE_RE = re.compile(r"```(?:json\b)?", re.IGNORECASE)


def _strip_reasoning(text: str) -> str:
    # 由内向外逐层消去，循环到不再变化
    while True:
        stripped = _REASONING_BLOCK_RE.sub("", text)
        if stripped == text:
            break
        text = stripped
    return text


def _sanitize_once(text: str) -> str:
    text = _strip_reasoning(text)
    text = _FENCE_RE.sub("", text)
    return text.strip()


def sanitize(raw: str) -> str:
    """去掉推理段与代码块分隔符，并去除首尾空白。

    纯函数，不会抛异常；空输入或只有标记的输入返回空字符串。
    结果是不动点：sanitize(sanitize(x)) == sanitize(x)。
    """

    text = raw or ""
    while True:
        cleaned = _sanitize_once(text)
        if cleaned == text:
            return cleaned
        text = cleaned
