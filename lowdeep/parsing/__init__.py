"""模型输出解析层。

- sanitizer: 去掉推理段与 markdown 代码块。
- scanner: 平衡括号扫描状态机。
- extractor: 宽松提取一个或多个 JSON 值。
"""

from lowdeep.parsing.extractor import extract_json, find_json_fragments
from lowdeep.parsing.sanitizer import sanitize
from lowdeep.parsing.scanner import ScanState, scan_balanced, scan_fragment

__all__ = ["sanitize", "scan_balanced", "scan_fragment", "ScanState", "extract_json", "find_json_fragments"]
