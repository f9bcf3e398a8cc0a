#!/usr/bin/env python3
"""
eGON 校验和

算法 (与 BROM 一致):
- 初值 0x5F0A6C39
- 累加整个镜像 (filesize 字节) 的所有 32 位小端字, 溢出回绕
- checksum 字段本身不参与累加 (直接跳过, 不是替换成初值)
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import BinaryIO

from egon_header import (
    EGON_CHECKSUM_SEED,
    EGON_CHECKSUM_WORD,
    SECTOR_SIZE,
    EgonHeader,
    TruncatedImage,
)

SECTOR_WORDS = SECTOR_SIZE // 4
SECTOR_FORMAT = f'<{SECTOR_WORDS}I'


@dataclass(frozen=True)
class ChecksumResult:
    stored: int
    computed: int

    @property
    def matches(self) -> bool:
        return self.stored == self.computed


def sum_words(data: bytes) -> int:
    count = len(data) // 4
    return sum(struct.unpack_from(f'<{count}I', data))


def egon_checksum(image: bytes) -> int:
    """计算内存中完整镜像的校验和 (长度须为 4 的倍数)"""
    if len(image) % 4:
        raise ValueError(f"image length must be a multiple of 4, got {len(image)}")

    checksum_offset = EGON_CHECKSUM_WORD * 4
    total = EGON_CHECKSUM_SEED
    total += sum_words(image[:checksum_offset])
    total += sum_words(image[checksum_offset + 4:])
    return total & 0xFFFFFFFF


def verify_checksum(header: EgonHeader, sector0: bytes, inf: BinaryIO) -> ChecksumResult:
    """
    校验镜像

    Args:
        header: 已解析的 eGON 头
        sector0: 已读取的第一个扇区
        inf: 位于第二个扇区起始处的输入流, 顺序读取剩余 filesize - 512 字节

    Returns:
        ChecksumResult (不匹配不算错误)

    Raises:
        TruncatedImage: 输入流提前结束
    """
    words = struct.unpack_from(SECTOR_FORMAT, sector0)

    # 已读取的第一个扇区单独处理
    checksum = EGON_CHECKSUM_SEED
    for i, word in enumerate(words):
        if i == EGON_CHECKSUM_WORD:
            continue
        checksum += word

    offset = SECTOR_SIZE
    while offset < header.filesize:
        buffer = inf.read(SECTOR_SIZE)
        if len(buffer) != SECTOR_SIZE:
            raise TruncatedImage(offset, len(buffer), SECTOR_SIZE)

        checksum += sum(struct.unpack(SECTOR_FORMAT, buffer))
        offset += SECTOR_SIZE

    return ChecksumResult(header.checksum, checksum & 0xFFFFFFFF)
