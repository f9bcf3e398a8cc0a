#!/usr/bin/env python3
"""
sunxi-boot0: 输出 Allwinner eGON (boot0) 镜像的基本信息

用法:
    python sunxi_boot0.py boot0.bin
    python sunxi_boot0.py -v boot0.bin
    python sunxi_boot0.py -v -r -o report.txt sdcard.img

- 按扇区扫描输入文件, 可以包含多个镜像 (例如整张 SD 卡的镜像)
- -v: 校验 checksum 并识别 DRAM 参数结构
- -r: 同时输出原始的 eGON 头和第二个头
"""

from __future__ import annotations

import argparse
import os
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Optional, TextIO

from boot0_report import (
    format_boot0_report,
    format_egon_header,
    format_header_section,
    format_secondary_header,
)
from dram_param import DramClassification, classify_dram_param
from egon_checksum import ChecksumResult, verify_checksum
from egon_header import (
    SECTOR_SIZE,
    EgonError,
    EgonHeader,
    EmptyImage,
    SecondaryHeader,
    TruncatedImage,
    is_egon_sector,
    parse_egon_header,
    parse_secondary_header,
    printable,
)


class Boot0Status(Enum):
    DECODED = 'decoded'
    EMPTY = 'empty'
    BAD_HEADER = 'bad header'
    TRUNCATED = 'truncated'


@dataclass(frozen=True)
class Boot0Result:
    status: Boot0Status
    # 第一个扇区之后还属于本镜像的扇区数, 只有 DECODED 时非 0
    sectors: int = 0
    header: Optional[EgonHeader] = None
    secondary: Optional[SecondaryHeader] = None
    checksum: Optional[ChecksumResult] = None
    classification: Optional[DramClassification] = None
    error: Optional[EgonError] = None

    @property
    def ok(self) -> bool:
        return self.status is Boot0Status.DECODED

    def report(self, raw: bool = False) -> str:
        if self.classification is None:
            raise ValueError(f"no report for a {self.status.value} image")
        return format_boot0_report(self.header, self.checksum, self.classification,
                                   self.secondary if raw else None)


def decode_boot0(sector: bytes, inf: BinaryIO, verbose: bool = True) -> Boot0Result:
    """
    解析一个 boot0 镜像

    Args:
        sector: 已读取的第一个扇区
        inf: 位于第二个扇区起始处的输入流, 只在 verbose 时顺序读取
        verbose: 是否校验 checksum 并识别 DRAM 参数

    Returns:
        Boot0Result, 失败时 sectors 为 0
    """
    try:
        header = parse_egon_header(sector)
    except EmptyImage as e:
        return Boot0Result(Boot0Status.EMPTY, error=e)
    except TruncatedImage as e:
        return Boot0Result(Boot0Status.TRUNCATED, error=e)
    except EgonError as e:
        return Boot0Result(Boot0Status.BAD_HEADER, error=e)

    secondary = parse_secondary_header(sector, header)
    if not verbose:
        return Boot0Result(Boot0Status.DECODED, header.sectors - 1, header, secondary)

    try:
        checksum = verify_checksum(header, sector, inf)
    except TruncatedImage as e:
        return Boot0Result(Boot0Status.TRUNCATED, header=header, secondary=secondary, error=e)

    classification = classify_dram_param(secondary.dram_param)
    return Boot0Result(Boot0Status.DECODED, header.sectors - 1, header, secondary,
                       checksum, classification)


def output_boot0_info(sector: bytes, inf: BinaryIO, stream: TextIO,
                      verbose: bool = False, raw: bool = False) -> Boot0Result:
    """解析镜像并把结果写到 stream; 返回值的 sectors 供调用者跳过本镜像"""
    result = decode_boot0(sector, inf, verbose)

    if result.header is None:
        print(f"\tERROR: {result.error}", file=stream)
        return result

    if result.ok and verbose:
        stream.write(result.report(raw))
        return result

    if verbose:
        stream.write(format_header_section(result.header))
    elif raw:
        stream.write(format_egon_header(result.header))
    if raw:
        stream.write(format_secondary_header(result.secondary))
    if result.error is not None:
        print(f"\tERROR: {result.error}", file=stream)
    return result


def scan_image(inf: BinaryIO, stream: TextIO, verbose: bool = False, raw: bool = False) -> int:
    """
    按扇区扫描输入流中的所有 eGON 镜像

    Returns:
        成功解析的镜像数量
    """
    found = 0

    while True:
        offset = inf.tell()
        sector = inf.read(SECTOR_SIZE)
        if len(sector) < SECTOR_SIZE:
            break

        if not is_egon_sector(sector):
            continue

        print(f"@ {offset >> 10:4d}kB: {printable(sector[4:12])} image", file=stream)
        result = output_boot0_info(sector, inf, stream, verbose, raw)
        if not result.ok:
            continue

        found += 1
        # verbose 时校验已经读完整个镜像
        if not verbose:
            inf.seek(result.sectors * SECTOR_SIZE, os.SEEK_CUR)

    return found


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(
        description="Dump basic information about an Allwinner eGON (boot0) image")
    ap.add_argument("image", help="boot0 image or a full disk/flash dump")
    ap.add_argument("-v", "--verbose", action="store_true",
                    help="verify the checksum and decode the DRAM parameters")
    ap.add_argument("-r", "--raw", action="store_true",
                    help="also dump the raw eGON headers")
    ap.add_argument("-o", "--output", help="write the report to this file")
    args = ap.parse_args(argv)

    image = Path(args.image)
    if not image.exists():
        print(f"错误：镜像文件不存在: {image}", file=sys.stderr)
        return 1

    try:
        with open(image, 'rb') as inf:
            if args.output:
                with open(args.output, 'w', encoding='utf-8') as stream:
                    found = scan_image(inf, stream, args.verbose, args.raw)
            else:
                found = scan_image(inf, sys.stdout, args.verbose, args.raw)
    except OSError as e:
        print(f"✗ 错误: {e}", file=sys.stderr)
        return 1

    if not found:
        print(f"✗ 未找到有效的 eGON 镜像: {image}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
