import unittest
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from boot0_image import JUMP, build_boot0, pad_params
from boot0_report import (
    format_boot0_report,
    format_checksum,
    format_classification,
    format_egon_header,
    format_header_section,
    format_secondary_header,
)
from dram_param import classify_dram_param
from egon_checksum import ChecksumResult
from egon_header import parse_egon_header, parse_secondary_header


class TestBoot0Report(unittest.TestCase):
    def setUp(self):
        self.image = build_boot0(filesize=8192)
        self.header = parse_egon_header(self.image)
        self.secondary = parse_secondary_header(self.image, self.header)
        self.classification = classify_dram_param(self.secondary.dram_param)

    def test_egon_header_dump(self):
        lines = format_egon_header(self.header).split('\n')
        self.assertEqual(lines, [
            "struct egon_header header[1] = {",
            f"\t.jump = 0x{JUMP:08X},",
            "\t.magic = \"eGON.BT0\",",
            f"\t.checksum = 0x{self.header.checksum:08X},",
            "\t.filesize = 0x00002000, /* 8192bytes */",
            "\t.header_size = 0x00000030,",
            "\t.header_version = \"3000\",",
            "\t.return_address = 0x00000000,",
            "\t.run_address = 0x00000000,",
            "\t.eGON_version = \"1100\",",
            "\t.platform_info = \"........\",",
            "};",
            "",
            "",
        ])

    def test_header_section(self):
        text = format_header_section(self.header)
        self.assertTrue(text.startswith("Found eGON header.\nstruct egon_header"))
        self.assertTrue(text.endswith("Boot0 Filesize is 8kB.\n"))

    def test_secondary_dump(self):
        lines = format_secondary_header(self.secondary).splitlines()
        self.assertEqual(lines[1], "\t.header_size = 0x00000080,")
        self.assertEqual(lines[2], "\t.header_version = \"0400\",")
        self.assertEqual(lines[3], "\t.dram_param[0x00] = 0x40000000,")
        self.assertEqual(lines[34], "\t.dram_param[0x1F] = 0x00000000,")

    def test_checksum_verdict(self):
        self.assertEqual(format_checksum(ChecksumResult(0x1234, 0x1234)),
                         "eGON checksum matches.\n")
        self.assertEqual(format_checksum(ChecksumResult(0x1234, 0xABCD)),
                         "eGON checksum mismatch: 0x0000ABCD vs 0x00001234\n")

    def test_classification_section(self):
        text = format_classification(self.classification)
        self.assertTrue(text.startswith(
            "\nLooking for a valid dram parameter structure...\n"
            "Parameters seem valid for A10/A10s/A13/A20.\n"
            "\n; A10/A10s/A13/A20\n[dram para]\n"))

    def test_full_report_order(self):
        checksum = ChecksumResult(self.header.checksum, self.header.checksum)
        text = format_boot0_report(self.header, checksum, self.classification)
        positions = [text.index(s) for s in (
            "Found eGON header.",
            ".platform_info",
            "Boot0 Filesize is 8kB.",
            "eGON checksum matches.",
            "Looking for a valid dram parameter structure...",
            "dram_baseaddr",
            "dram_emr3",
        )]
        self.assertEqual(positions, sorted(positions))
        self.assertNotIn("dram_param[0x", text)

    def test_report_without_checksum(self):
        text = format_boot0_report(self.header, None, self.classification)
        self.assertNotIn("checksum matches", text)
        self.assertNotIn("checksum mismatch", text)

    def test_report_with_secondary(self):
        text = format_boot0_report(self.header, None, self.classification, self.secondary)
        self.assertIn("struct egon_header_secondary secondary[1] = {", text)
        self.assertLess(text.index("dram_param[0x1F]"), text.index("Looking for"))

    def test_unknown_report(self):
        classification = classify_dram_param(pad_params([]))
        text = format_boot0_report(self.header, None, classification)
        self.assertIn("; Unknown structure\ndram_00\t= 0x00000000\n", text)
        self.assertTrue(text.endswith("dram_31\t= 0x00000000\n"))


if __name__ == '__main__':
    unittest.main()
