from __future__ import annotations

import struct
import unittest

from packager import bytebuf, globmatch, signing
from packager.bytebuf import ByteReader, ByteWriter
from packager.constants import ARCHIVE_MAGIC, HEADER_SIZE
from packager.errors import (
    CorruptArchiveError,
    InvalidSignatureError,
    TruncatedArchiveError,
    UnsupportedVersionError,
)
from packager.model import Archive, Entry
from packager.reader import is_archive, parse_archive
from packager.writer import entry_length, serialize_archive


def _sample_archive() -> Archive:
    return Archive(
        entries=[
            Entry.from_bytes("index.html", b"<html></html>", "text/html"),
            Entry.from_bytes("assets/app.bin", bytes(range(256)) * 4),
            Entry.from_bytes("empty.txt", b"", "text/plain"),
            Entry.from_bytes("docs/über.md", "grüße\n".encode("utf-8"), "text/markdown"),
        ]
    )


class ByteCursorTests(unittest.TestCase):
    def test_module_docstrings_are_exposed(self):
        for mod in (bytebuf, globmatch, signing):
            with self.subTest(module=mod.__name__):
                self.assertTrue(mod.__doc__)

    def test_writer_tracks_offsets(self):
        w = ByteWriter()
        w.write_raw(b"AB")
        w.write_u16(0x0102)
        self.assertEqual(w.tell(), 4)
        w.write_u32(7)
        w.write_prefixed(b"xyz", 2)
        self.assertEqual(len(w), 13)
        self.assertEqual(w.getvalue(), b"AB\x02\x01\x07\x00\x00\x00\x03\x00xyz")

    def test_writer_rejects_overflow(self):
        w = ByteWriter()
        with self.assertRaises(ValueError):
            w.write_u16(0x10000)
        with self.assertRaises(ValueError):
            w.write_u32(-1)
        with self.assertRaises(ValueError):
            w.write_prefixed(b"x" * 0x10000, 2)
        with self.assertRaises(ValueError):
            w.write_uint(1, 3)
        self.assertEqual(len(w), 0)

    def test_reader_reads_back_and_bounds_checks(self):
        r = ByteReader(b"\x03\x00abc\x05\x00\x00\x00")
        self.assertEqual(r.read_prefixed(2), b"abc")
        self.assertEqual(r.read_u32(), 5)
        self.assertEqual(r.remaining(), 0)
        with self.assertRaises(CorruptArchiveError):
            r.read_raw(1)
        r.seek(0)
        self.assertEqual(r.read_u16(), 3)
        with self.assertRaises(CorruptArchiveError):
            r.seek(100)

    def test_reader_rejects_prefix_past_end(self):
        r = ByteReader(b"\x09\x00abc")
        with self.assertRaises(CorruptArchiveError):
            r.read_prefixed(2)


class SerializerTests(unittest.TestCase):
    def test_exact_layout_single_entry(self):
        archive = Archive(entries=[Entry.from_bytes("a.txt", b"hi", "text/plain")])
        buf = serialize_archive(archive)
        expected = (
            b"DSAP"
            + struct.pack("<III", 1, 1, 20)
            + struct.pack("<I", 25)
            + struct.pack("<H", 5) + b"a.txt"
            + struct.pack("<I", 2)
            + struct.pack("<H", 10) + b"text/plain"
            + b"hi"
        )
        self.assertEqual(buf, expected)
        self.assertEqual(len(buf), 45)

    def test_empty_archive_is_twelve_bytes(self):
        buf = serialize_archive(Archive())
        self.assertEqual(len(buf), HEADER_SIZE)
        self.assertEqual(buf, ARCHIVE_MAGIC + struct.pack("<II", 1, 0))
        parsed = parse_archive(buf)
        self.assertEqual(parsed.entries, [])
        self.assertEqual(parsed.version, 1)

    def test_table_offsets_are_contiguous(self):
        archive = _sample_archive()
        buf = serialize_archive(archive)
        n = len(archive.entries)
        expected_off = HEADER_SIZE + 8 * n
        for i, e in enumerate(archive.entries):
            off, length = struct.unpack_from("<II", buf, HEADER_SIZE + 8 * i)
            self.assertEqual(off, expected_off)
            self.assertEqual(length, entry_length(e))
            expected_off += length
        self.assertEqual(expected_off, len(buf))

    def test_rejects_unencodable_entries(self):
        with self.assertRaises(ValueError):
            serialize_archive(Archive(entries=[Entry.from_bytes("", b"x")]))
        with self.assertRaises(ValueError):
            serialize_archive(Archive(entries=[Entry.from_bytes("p" * 70000, b"x")]))
        with self.assertRaises(ValueError):
            serialize_archive(Archive(entries=[Entry(path="big", size=1 << 32, data=b"")]))

    def test_declared_size_is_written_as_given(self):
        buf = serialize_archive(Archive(entries=[Entry(path="x", size=99, mime_type="m", data=b"abc")]))
        # path_len(2) + "x" + size(4)
        self.assertEqual(struct.unpack_from("<I", buf, HEADER_SIZE + 8 + 3)[0], 99)


class ParserTests(unittest.TestCase):
    def test_roundtrip_preserves_entries_and_order(self):
        archive = _sample_archive()
        parsed = parse_archive(serialize_archive(archive))
        self.assertEqual(parsed.version, archive.version)
        self.assertEqual(parsed.entries, archive.entries)
        self.assertEqual([e.path for e in parsed.entries], [e.path for e in archive.entries])

    def test_duplicate_paths_survive_roundtrip(self):
        archive = Archive(entries=[Entry.from_bytes("same.txt", b"one"), Entry.from_bytes("same.txt", b"two")])
        parsed = parse_archive(serialize_archive(archive))
        self.assertEqual([e.data for e in parsed.entries], [b"one", b"two"])

    def test_traversal_paths_parse_fine(self):
        archive = Archive(entries=[Entry.from_bytes("../malicious.js", b"x")])
        parsed = parse_archive(serialize_archive(archive))
        self.assertEqual(parsed.entries[0].path, "../malicious.js")

    def test_invalid_signature(self):
        buf = b"INVALID" + struct.pack("<II", 1, 0)
        with self.assertRaises(InvalidSignatureError):
            parse_archive(buf)
        self.assertFalse(is_archive(buf))

    def test_unsupported_version(self):
        buf = ARCHIVE_MAGIC + struct.pack("<II", 999, 0)
        with self.assertRaises(UnsupportedVersionError) as cm:
            parse_archive(buf)
        self.assertEqual(cm.exception.version, 999)
        self.assertIn("999", str(cm.exception))

    def test_truncated_header(self):
        for n in range(HEADER_SIZE):
            with self.assertRaises(TruncatedArchiveError):
                parse_archive(serialize_archive(Archive())[:n])

    def test_cut_anywhere_past_header_is_corrupt(self):
        buf = serialize_archive(_sample_archive())
        for cut in range(HEADER_SIZE, len(buf)):
            with self.assertRaises(CorruptArchiveError, msg=f"cut at {cut}"):
                parse_archive(buf[:cut])

    def test_huge_entry_count_is_corrupt(self):
        buf = ARCHIVE_MAGIC + struct.pack("<II", 1, 0xFFFFFFFF)
        with self.assertRaises(CorruptArchiveError):
            parse_archive(buf)

    def test_offset_into_header_is_corrupt(self):
        buf = bytearray(serialize_archive(_sample_archive()))
        struct.pack_into("<I", buf, HEADER_SIZE, 4)
        with self.assertRaises(CorruptArchiveError):
            parse_archive(bytes(buf))

    def test_invalid_utf8_path_is_corrupt(self):
        buf = bytearray(serialize_archive(Archive(entries=[Entry.from_bytes("ab", b"x")])))
        buf[HEADER_SIZE + 8 + 2] = 0xFF
        with self.assertRaises(CorruptArchiveError):
            parse_archive(bytes(buf))

    def test_size_mismatch_strict_and_lenient(self):
        archive = Archive(
            entries=[
                Entry(path="grown.bin", size=5, mime_type="application/octet-stream", data=b"abc"),
                Entry.from_bytes("next.txt", b"tail", "text/plain"),
            ]
        )
        buf = serialize_archive(archive)
        with self.assertRaises(CorruptArchiveError):
            parse_archive(buf)
        lenient = parse_archive(buf, strict=False)
        first = lenient.entries[0]
        self.assertEqual(first.size, 5)
        self.assertEqual(len(first.data), 5)
        self.assertEqual(first.data[:3], b"abc")
        self.assertEqual(lenient.entries[1].data, b"tail")

    def test_shrunk_size_lenient_truncates(self):
        buf = serialize_archive(Archive(entries=[Entry(path="s", size=1, data=b"abc")]))
        with self.assertRaises(CorruptArchiveError):
            parse_archive(buf)
        self.assertEqual(parse_archive(buf, strict=False).entries[0].data, b"a")

    def test_lenient_size_past_buffer_is_corrupt(self):
        buf = serialize_archive(Archive(entries=[Entry(path="s", size=50, data=b"abc")]))
        with self.assertRaises(CorruptArchiveError):
            parse_archive(buf, strict=False)

    def test_trailing_bytes_are_ignored(self):
        archive = _sample_archive()
        parsed = parse_archive(serialize_archive(archive) + b"\x00" * 7)
        self.assertEqual(parsed.entries, archive.entries)


if __name__ == "__main__":
    unittest.main()
