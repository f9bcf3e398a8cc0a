#!/usr/bin/env python3
"""boot0 信息的文本输出 (纯格式化, 不做 I/O)"""

from __future__ import annotations

from typing import Optional

from dram_param import DramClassification
from egon_checksum import ChecksumResult
from egon_header import EgonHeader, SecondaryHeader, printable


def format_egon_header(header: EgonHeader) -> str:
    lines = [
        "struct egon_header header[1] = {",
        f"\t.jump = 0x{header.jump:08X},",
        f"\t.magic = \"{printable(header.magic)}\",",
        f"\t.checksum = 0x{header.checksum:08X},",
        f"\t.filesize = 0x{header.filesize:08X}, /* {header.filesize}bytes */",
        f"\t.header_size = 0x{header.header_size:08X},",
        f"\t.header_version = \"{printable(header.header_version)}\",",
        f"\t.return_address = 0x{header.return_address:08X},",
        f"\t.run_address = 0x{header.run_address:08X},",
        f"\t.eGON_version = \"{printable(header.eGON_version)}\",",
        f"\t.platform_info = \"{printable(header.platform_info)}\",",
        "};",
        "",
    ]
    return '\n'.join(lines) + '\n'


def format_secondary_header(secondary: SecondaryHeader) -> str:
    lines = [
        "struct egon_header_secondary secondary[1] = {",
        f"\t.header_size = 0x{secondary.header_size:08X},",
        f"\t.header_version = \"{printable(secondary.header_version)}\",",
    ]
    for i, value in enumerate(secondary.dram_param):
        lines.append(f"\t.dram_param[0x{i:02X}] = 0x{value:08X},")
    lines += ["\t/* ... */", "};", ""]
    return '\n'.join(lines) + '\n'


def format_header_section(header: EgonHeader) -> str:
    return (f"Found eGON header.\n"
            f"{format_egon_header(header)}"
            f"Boot0 Filesize is {header.filesize >> 10}kB.\n")


def format_checksum(result: ChecksumResult) -> str:
    if result.matches:
        return "eGON checksum matches.\n"
    return (f"eGON checksum mismatch: "
            f"0x{result.computed:08X} vs 0x{result.stored:08X}\n")


def format_classification(classification: DramClassification) -> str:
    lines = ["", "Looking for a valid dram parameter structure..."]
    lines += classification.diagnostics
    return '\n'.join(lines) + '\n' + classification.format()


def format_boot0_report(header: EgonHeader,
                        checksum: Optional[ChecksumResult],
                        classification: DramClassification,
                        secondary: Optional[SecondaryHeader] = None) -> str:
    """
    完整报告, 各部分顺序固定:
      头信息 -> (原始第二个头) -> 校验结果 (仅在校验过时) -> DRAM 参数
    """
    parts = [format_header_section(header)]
    if secondary is not None:
        parts.append(format_secondary_header(secondary))
    if checksum is not None:
        parts.append(format_checksum(checksum))
    parts.append(format_classification(classification))
    return ''.join(parts)
