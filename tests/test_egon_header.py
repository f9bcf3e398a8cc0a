import unittest
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from boot0_image import JUMP, build_boot0
from egon_header import (
    EGON_HEADER_SIZE,
    EGON_MAGIC_1,
    BadFilesizeAlignment,
    BadMagic,
    EmptyImage,
    HeaderSizeMismatch,
    TruncatedImage,
    is_egon_sector,
    parse_egon_header,
    parse_secondary_header,
)


class TestEgonHeader(unittest.TestCase):
    def test_header_size_is_48(self):
        self.assertEqual(EGON_HEADER_SIZE, 48)

    def test_parse_valid_header(self):
        header = parse_egon_header(build_boot0(filesize=8192))
        self.assertEqual(header.jump, JUMP)
        self.assertEqual(header.magic, b'eGON.BT0')
        self.assertEqual(header.stage, 'BT0')
        self.assertEqual(header.filesize, 8192)
        self.assertEqual(header.header_size, 48)
        self.assertEqual(header.header_version, b'3000')
        self.assertEqual(header.eGON_version, b'1100')
        self.assertEqual(header.sectors, 16)

    def test_bt1_magic_accepted(self):
        header = parse_egon_header(build_boot0(magic=EGON_MAGIC_1))
        self.assertEqual(header.stage, 'BT1')

    def test_bad_magic(self):
        # eGON.BT/ sorts before eGON.BT0 and must still be rejected
        for magic in (b'eGON.BT2', b'eGON.BT/', b'\x00' * 8):
            with self.assertRaises(BadMagic) as ctx:
                parse_egon_header(build_boot0(magic=magic))
            self.assertEqual(ctx.exception.magic, magic)

    def test_bad_magic_message_is_printable(self):
        with self.assertRaises(BadMagic) as ctx:
            parse_egon_header(build_boot0(magic=b'eGON\x00BT9'))
        self.assertEqual(str(ctx.exception), "wrong header magic: eGON.BT9")

    def test_header_size_mismatch(self):
        for size in (47, 49, 0, 64):
            with self.assertRaises(HeaderSizeMismatch) as ctx:
                parse_egon_header(build_boot0(header_size=size))
            self.assertEqual(ctx.exception.header_size, size)
            self.assertEqual(str(ctx.exception), f"egon header size mismatch: {size}")

    def test_filesize_alignment(self):
        for filesize in (4095, 4097, 512, 4096 + 2048):
            with self.assertRaises(BadFilesizeAlignment) as ctx:
                parse_egon_header(build_boot0(filesize=filesize))
            self.assertEqual(ctx.exception.filesize, filesize)

    def test_filesize_alignment_message(self):
        with self.assertRaises(BadFilesizeAlignment) as ctx:
            parse_egon_header(build_boot0(filesize=4097))
        self.assertEqual(str(ctx.exception),
                         "boot0 file size not a multiple of 4096: 4097 bytes (0x1001).")

    def test_empty_image(self):
        with self.assertRaises(EmptyImage) as ctx:
            parse_egon_header(build_boot0(filesize=0))
        self.assertEqual(str(ctx.exception), "boot0 file is supposedly empty: 0x0000.")

    def test_aligned_filesizes_accepted(self):
        for filesize in (4096, 8192, 32768):
            self.assertEqual(parse_egon_header(build_boot0(filesize=filesize)).filesize,
                             filesize)

    def test_short_sector(self):
        with self.assertRaises(TruncatedImage):
            parse_egon_header(build_boot0()[:100])

    def test_is_egon_sector(self):
        self.assertTrue(is_egon_sector(build_boot0()))
        self.assertTrue(is_egon_sector(build_boot0(magic=EGON_MAGIC_1)))
        self.assertFalse(is_egon_sector(bytes(512)))

    def test_secondary_header(self):
        image = build_boot0(dram_param=list(range(32)))
        secondary = parse_secondary_header(image, parse_egon_header(image))
        self.assertEqual(secondary.header_size, 0x80)
        self.assertEqual(secondary.header_version, b'0400')
        self.assertEqual(secondary.dram_param, tuple(range(32)))

    def test_header_is_frozen(self):
        header = parse_egon_header(build_boot0())
        with self.assertRaises(AttributeError):
            header.filesize = 0


if __name__ == '__main__':
    unittest.main()
