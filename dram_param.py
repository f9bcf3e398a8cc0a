#!/usr/bin/env python3
"""
boot0 中 DRAM 参数块的识别与输出

eGON 第二个头里有 32 个 u32 的 dram_param, 但不同代 SoC 的结构不同,
数据里也没有类型标记, 只能按固定顺序逐个尝试校验, 第一个通过的就是结果:

    A10 -> H6 -> A31 -> H616 -> Unknown

H6 必须在 A31 之前: H6 的结构能通过 A31 较弱的校验,
只有 H6 的 .bits 字段 (16/32) 能把两者区分开。
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence

from egon_header import EGON_DRAM_PARAM_COUNT

# 字段类型
INT = 'int'
ENUM = 'enum'
MASK = 'mask'

# 输出格式
DEC = '{:d}'
HEX = '0x{:x}'
HEX8 = '0x{:08x}'
HEX_UPPER = '0x{:X}'
HEX8_UPPER = '0x{:08X}'

LABEL_COLUMN = 16


@dataclass(frozen=True)
class DramField:
    name: str
    fmt: str = HEX
    kind: str = INT
    comment: str = ''
    printed: bool = True
    slot: int = -1


@dataclass(frozen=True)
class DramCheck:
    field: str
    test: Callable[[int], bool]


def in_range(field: str, low: int, high: int) -> DramCheck:
    return DramCheck(field, lambda value: low <= value <= high)


def one_of(field: str, *values: int) -> DramCheck:
    return DramCheck(field, lambda value: value in values)


def mask_clear(field: str, mask: int) -> DramCheck:
    return DramCheck(field, lambda value: not value & mask)


def layout(*fields: DramField) -> tuple[DramField, ...]:
    """按声明顺序依次分配 slot"""
    return tuple(replace(field, slot=slot) for slot, field in enumerate(fields))


def align(label: str, gap: str) -> str:
    # 用 tab 对齐到第 16 列, 超长的标签用空格补齐
    if len(label) < LABEL_COLUMN:
        tabs = 2 if len(label) < 8 else 1
        return label + '\t' * tabs + gap
    return label + ' ' * (LABEL_COLUMN + len(gap) - len(label))


@dataclass(frozen=True)
class DramVariant:
    name: str
    matches: str
    fields: tuple[DramField, ...] = ()
    checks: tuple[DramCheck, ...] = ()
    heading: str = 'For '
    gap: str = ''
    terminator: str = ''

    @property
    def is_unknown(self) -> bool:
        return not self.fields

    def field(self, name: str) -> DramField:
        for field in self.fields:
            if field.name == name:
                return field
        raise KeyError(name)

    def values(self, slots: Sequence[int]) -> dict[str, int]:
        return {field.name: slots[field.slot] for field in self.fields}

    def validate(self, slots: Sequence[int]) -> tuple[bool, str]:
        """
        校验参数块是否符合本结构

        Returns:
            (是否通过, 一行诊断信息)
        """
        for check in self.checks:
            value = slots[self.field(check.field).slot]
            if not check.test(value):
                return False, (f"Invalid structure for {self.matches}: "
                               f"wrong {check.field}: 0x{value:08X}")

        return True, f"Parameters seem valid for {self.matches}."

    def format(self, slots: Sequence[int]) -> str:
        if self.is_unknown:
            return format_raw(slots)

        lines = ['', f"; {self.heading}{self.matches}", '[dram para]', '']
        for field in self.fields:
            if not field.printed:
                continue
            line = (f"{align('dram_' + field.name, self.gap)}= "
                    f"{field.fmt.format(slots[field.slot])}{self.terminator}")
            if field.comment:
                line += f" ; {field.comment}"
            lines.append(line)
        lines.append('')
        return '\n'.join(lines) + '\n'


def format_raw(slots: Sequence[int]) -> str:
    lines = ['; Unknown structure']
    for i, value in enumerate(slots):
        lines.append(f"dram_{i:02d}\t= 0x{value:08X}")
    return '\n'.join(lines) + '\n'


# A10, A10s, A13, A20
DRAM_PARAM_A10 = DramVariant(
    name='A10',
    matches='A10/A10s/A13/A20',
    heading='',
    gap='   ',
    fields=layout(
        DramField('baseaddr', kind=MASK),
        DramField('clk', DEC),
        DramField('type', DEC, ENUM),
        DramField('rank_num'),
        DramField('chip_density'),
        DramField('io_width'),
        DramField('bus_width'),
        DramField('cas'),
        DramField('zq'),
        DramField('odt_en', DEC, ENUM),
        DramField('size'),
        DramField('tpr0'),
        DramField('tpr1'),
        DramField('tpr2'),
        DramField('tpr3'),
        DramField('tpr4'),
        DramField('tpr5'),
        DramField('emr1'),
        DramField('emr2'),
        DramField('emr3'),
    ),
    checks=(
        # 基地址, 应该是 0x40000000
        mask_clear('baseaddr', 0x0FFFFFFF),
        # MHz
        in_range('clk', 100, 1000),
        # 2: DDR2, 3: DDR3
        one_of('type', 2, 3),
        one_of('odt_en', 0, 1),
    ),
)

# H6
DRAM_PARAM_H6 = DramVariant(
    name='H6',
    matches='H6',
    fields=layout(
        DramField('clk', DEC),
        DramField('type', DEC, ENUM),
        DramField('zq'),
        DramField('odt_en', DEC, ENUM),
        DramField('para1'),
        DramField('para2'),
        DramField('mr0'),
        DramField('mr1'),
        DramField('mr2'),
        DramField('mr3'),
        DramField('mr4'),
        DramField('mr5'),
        DramField('mr6'),
        DramField('tpr0', HEX8),
        DramField('tpr1', HEX8),
        DramField('tpr2', HEX8),
        DramField('tpr3', HEX8),
        DramField('tpr4'),
        DramField('tpr5'),
        DramField('tpr6'),
        DramField('tpr7'),
        DramField('tpr8'),
        DramField('tpr9'),
        DramField('tpr10'),
        DramField('tpr11', HEX8),
        DramField('tpr12', HEX8),
        DramField('tpr13', HEX8),
        DramField('bits', DEC, ENUM),
    ),
    checks=(
        in_range('clk', 100, 1000),
        # 2: DDR2, 3: DDR3, 6: LPDDR2, 7: LPDDR3
        one_of('type', 2, 3, 6, 7),
        one_of('odt_en', 0, 1),
        one_of('bits', 16, 32),
    ),
)

# A31, A23, A33, A83T, A64, H3
DRAM_PARAM_A31 = DramVariant(
    name='A31',
    matches='A31/A23/A33/A83T/A64/H3',
    fields=layout(
        DramField('clk', DEC),
        DramField('type', DEC, ENUM),
        DramField('zq'),
        DramField('odt_en', DEC, ENUM),
        DramField('para1'),
        DramField('para2'),
        DramField('mr0'),
        DramField('mr1'),
        DramField('mr2'),
        DramField('mr3'),
        DramField('tpr0', HEX8),
        DramField('tpr1', HEX8),
        DramField('tpr2', HEX8),
        DramField('tpr3', HEX8),
        DramField('tpr4'),
        DramField('tpr5'),
        DramField('tpr6'),
        DramField('tpr7'),
        DramField('tpr8'),
        DramField('tpr9'),
        DramField('tpr10'),
        DramField('tpr11', HEX8),
        DramField('tpr12', HEX8),
        DramField('tpr13', HEX8),
        # 不输出
        DramField('bits', DEC, printed=False),
    ),
    checks=(
        in_range('clk', 100, 1000),
        # 2: DDR2, 3: DDR3, 6: LPDDR2, 7: LPDDR3
        one_of('type', 2, 3, 6, 7),
        one_of('odt_en', 0, 1),
    ),
)

# H616, H700, A523
# H616/H700 上 tpr14 应该是 0
DRAM_PARAM_H616 = DramVariant(
    name='H616',
    matches='H616/H700/A523',
    gap='   ',
    terminator=',',
    fields=layout(
        DramField('clk', DEC),
        DramField('type', DEC, ENUM),
        DramField('dx_odt', HEX8_UPPER, MASK),
        DramField('dx_dri', HEX8_UPPER, MASK),
        DramField('ca_dri', HEX8_UPPER, MASK),
        DramField('para0', HEX8_UPPER, comment='aka odt_en on H616/H700'),
        DramField('para1', HEX8_UPPER),
        DramField('para2', HEX8_UPPER),
        DramField('mr0', HEX_UPPER),
        DramField('mr1', HEX_UPPER),
        DramField('mr2', HEX_UPPER),
        DramField('mr3', HEX_UPPER),
        DramField('mr4', HEX_UPPER),
        DramField('mr5', HEX_UPPER),
        DramField('mr6', HEX_UPPER),
        DramField('mr11', HEX_UPPER),
        DramField('mr12', HEX_UPPER),
        DramField('mr13', HEX_UPPER),
        DramField('mr14', HEX_UPPER),
        DramField('mr16', HEX_UPPER),
        DramField('mr17', HEX_UPPER),
        DramField('mr22', HEX_UPPER),
        DramField('tpr0', HEX8_UPPER),
        DramField('tpr1', HEX_UPPER),
        DramField('tpr2', HEX_UPPER),
        DramField('tpr3', HEX_UPPER),
        DramField('tpr6', HEX8_UPPER),
        DramField('tpr10', HEX8_UPPER),
        DramField('tpr11', HEX8_UPPER),
        DramField('tpr12', HEX8_UPPER),
        DramField('tpr13', HEX_UPPER),
        DramField('tpr14', HEX_UPPER,
                  comment='unused and 0 on anything but A523'),
    ),
    checks=(
        in_range('clk', 100, 1200),
        # 2: DDR2, 3: DDR3, 4: DDR4, 6: LPDDR2, 7: LPDDR3, 8: LPDDR4
        one_of('type', 2, 3, 4, 6, 7, 8),
        # 每个字节通道只用低 4 位
        mask_clear('dx_odt', 0xF0F0F0F0),
        mask_clear('dx_dri', 0xF0F0F0F0),
    ),
)

DRAM_PARAM_UNKNOWN = DramVariant(name='Unknown', matches='Unknown structure')

# 顺序不能改, 见模块说明
DRAM_PARAM_VARIANTS = (
    DRAM_PARAM_A10,
    DRAM_PARAM_H6,
    DRAM_PARAM_A31,
    DRAM_PARAM_H616,
)


@dataclass(frozen=True)
class DramClassification:
    variant: DramVariant
    slots: tuple[int, ...]
    diagnostics: tuple[str, ...]

    @property
    def name(self) -> str:
        return self.variant.name

    def values(self) -> dict[str, int]:
        return self.variant.values(self.slots)

    def format(self) -> str:
        return self.variant.format(self.slots)


def classify_dram_param(slots: Sequence[int],
                        variants: Optional[Sequence[DramVariant]] = None) -> DramClassification:
    """
    按优先级逐个尝试, 返回第一个通过校验的结构, 都不通过则为 Unknown
    """
    slots = tuple(slots)
    if len(slots) != EGON_DRAM_PARAM_COUNT:
        raise ValueError(f"expected {EGON_DRAM_PARAM_COUNT} dram parameters, got {len(slots)}")

    if variants is None:
        variants = DRAM_PARAM_VARIANTS

    diagnostics = []
    for variant in variants:
        ok, message = variant.validate(slots)
        diagnostics.append(message)
        if ok:
            return DramClassification(variant, slots, tuple(diagnostics))

    return DramClassification(DRAM_PARAM_UNKNOWN, slots, tuple(diagnostics))
