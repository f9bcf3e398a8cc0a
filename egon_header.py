#!/usr/bin/env python3
"""
Allwinner eGON 启动镜像头解析 (boot0 / eGON.BT0)

eGON 头格式 (小端, 48 字节):
  0x00: jump            跳转指令
  0x04: magic           "eGON.BT0" / "eGON.BT1"
  0x0C: checksum        校验和 (计算时跳过本字段)
  0x10: filesize        整个镜像大小, 必须是 4096 的倍数
  0x14: header_size     头大小, 必须等于 48
  0x18: header_version
  0x1C: return_address
  0x20: run_address
  0x24: eGON_version
  0x28: platform_info

参考:
- https://linux-sunxi.org/Boot0
- https://linux-sunxi.org/EGON
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

SECTOR_SIZE = 512

EGON_MAGIC_0 = b'eGON.BT0'
EGON_MAGIC_1 = b'eGON.BT1'
EGON_MAGICS = (EGON_MAGIC_0, EGON_MAGIC_1)

EGON_CHECKSUM_SEED = 0x5F0A6C39
EGON_FILESIZE_ALIGN = 4096

EGON_HEADER_FORMAT = '<I8sIII4sII4s8s'
EGON_HEADER_SIZE = struct.calcsize(EGON_HEADER_FORMAT)

# checksum 字段在第几个 32 位字 (0x0C / 4)
EGON_CHECKSUM_WORD = 3

EGON_DRAM_PARAM_COUNT = 32
EGON_SECONDARY_FORMAT = f'<I4s{EGON_DRAM_PARAM_COUNT}I'
EGON_SECONDARY_SIZE = struct.calcsize(EGON_SECONDARY_FORMAT)


class EgonError(Exception):
    """eGON 镜像解析失败, 只影响当前镜像"""


class BadMagic(EgonError):
    def __init__(self, magic: bytes):
        self.magic = magic
        super().__init__(f"wrong header magic: {printable(magic)}")


class HeaderSizeMismatch(EgonError):
    def __init__(self, header_size: int):
        self.header_size = header_size
        super().__init__(f"egon header size mismatch: {header_size}")


class BadFilesizeAlignment(EgonError):
    def __init__(self, filesize: int):
        self.filesize = filesize
        super().__init__(
            f"boot0 file size not a multiple of {EGON_FILESIZE_ALIGN}: "
            f"{filesize} bytes (0x{filesize:04X}).")


class EmptyImage(EgonError):
    def __init__(self, filesize: int = 0):
        self.filesize = filesize
        super().__init__(f"boot0 file is supposedly empty: 0x{filesize:04X}.")


class TruncatedImage(EgonError):
    def __init__(self, offset: int, got: int, expected: int):
        self.offset = offset
        self.got = got
        self.expected = expected
        super().__init__(
            f"short read at offset 0x{offset:X}: "
            f"got {got} bytes, expected {expected}")


def printable(raw: bytes) -> str:
    """ASCII 标签转字符串, 不可打印字符显示为 '.'"""
    return ''.join(chr(b) if 0x20 <= b < 0x7F else '.' for b in raw)


@dataclass(frozen=True)
class EgonHeader:
    jump: int
    magic: bytes
    checksum: int
    filesize: int
    header_size: int
    header_version: bytes
    return_address: int
    run_address: int
    eGON_version: bytes
    platform_info: bytes

    @classmethod
    def unpack(cls, data: bytes) -> EgonHeader:
        return cls(*struct.unpack_from(EGON_HEADER_FORMAT, data, 0))

    @property
    def stage(self) -> str:
        """BT0 = boot0, BT1 = 第二阶段"""
        return printable(self.magic[5:8])

    @property
    def sectors(self) -> int:
        return self.filesize // SECTOR_SIZE


@dataclass(frozen=True)
class SecondaryHeader:
    header_size: int
    header_version: bytes
    dram_param: tuple[int, ...]

    @classmethod
    def unpack(cls, data: bytes, offset: int) -> SecondaryHeader:
        values = struct.unpack_from(EGON_SECONDARY_FORMAT, data, offset)
        return cls(values[0], values[1], tuple(values[2:]))


def is_egon_sector(sector: bytes) -> bool:
    """快速判断扇区是否以 eGON 头开始 (扫描多镜像文件时使用)"""
    return sector[4:12] in EGON_MAGICS


def parse_egon_header(sector: bytes) -> EgonHeader:
    """
    解析并校验第一个扇区中的 eGON 头

    Args:
        sector: 镜像的第一个扇区 (至少 512 字节)

    Returns:
        EgonHeader

    Raises:
        TruncatedImage, BadMagic, HeaderSizeMismatch,
        BadFilesizeAlignment, EmptyImage
    """
    if len(sector) < SECTOR_SIZE:
        raise TruncatedImage(0, len(sector), SECTOR_SIZE)

    header = EgonHeader.unpack(sector)

    if header.magic not in EGON_MAGICS:
        raise BadMagic(header.magic)

    if header.header_size != EGON_HEADER_SIZE:
        raise HeaderSizeMismatch(header.header_size)

    if header.filesize & (EGON_FILESIZE_ALIGN - 1):
        raise BadFilesizeAlignment(header.filesize)

    if not header.filesize:
        raise EmptyImage(header.filesize)

    return header


def parse_secondary_header(sector: bytes, header: EgonHeader) -> SecondaryHeader:
    # header_size 已经校验过, 第二个头一定在第一个扇区内
    return SecondaryHeader.unpack(sector, header.header_size)
