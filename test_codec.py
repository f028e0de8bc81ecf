from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path

from packager.codec import (
    Codec,
    compress_data,
    compress_file,
    decompress_data,
    decompress_file,
    detect_algorithm_from_extension,
    get_compression_algorithm,
    sniff_algorithm,
)
from packager.constants import ALGORITHMS
from packager.errors import CompressionError


PAYLOAD = b"DSAP archive payload " * 200 + os.urandom(64)


class CodecTests(unittest.TestCase):
    def test_each_algorithm_roundtrips(self):
        for algo in ALGORITHMS:
            with self.subTest(algo=algo):
                packed = compress_data(PAYLOAD, algo)
                self.assertLess(len(packed), len(PAYLOAD))
                self.assertEqual(decompress_data(packed, algo), PAYLOAD)

    def test_detection_without_algorithm(self):
        for algo in ALGORITHMS:
            with self.subTest(algo=algo):
                self.assertEqual(decompress_data(compress_data(PAYLOAD, algo)), PAYLOAD)

    def test_sniff_gzip_only(self):
        self.assertEqual(sniff_algorithm(compress_data(b"x", "gzip")), "gzip")
        self.assertIsNone(sniff_algorithm(compress_data(b"x", "brotli")))

    def test_undetectable_payload(self):
        with self.assertRaises(CompressionError):
            decompress_data(b"not compressed at all")

    def test_wrong_algorithm_raises_compression_error(self):
        with self.assertRaises(CompressionError):
            decompress_data(compress_data(PAYLOAD, "brotli"), "gzip")

    def test_gzip_output_is_reproducible(self):
        self.assertEqual(compress_data(PAYLOAD, "gzip", 9), compress_data(PAYLOAD, "gzip", 9))

    def test_level_ranges(self):
        Codec("brotli", 11)
        Codec("gzip", 0)
        with self.assertRaises(ValueError):
            Codec("gzip", 10)
        with self.assertRaises(ValueError):
            Codec("deflate", -1)
        with self.assertRaises(ValueError):
            Codec("brotli", 12)

    def test_algorithm_names(self):
        self.assertEqual(get_compression_algorithm("GZIP"), "gzip")
        self.assertEqual(get_compression_algorithm(" Brotli "), "brotli")
        with self.assertRaises(ValueError):
            get_compression_algorithm("zip")

    def test_extension_detection(self):
        self.assertEqual(detect_algorithm_from_extension("site.tar.GZ"), "gzip")
        self.assertEqual(detect_algorithm_from_extension("site.brotli"), "brotli")
        self.assertEqual(detect_algorithm_from_extension("site.deflate"), "deflate")
        self.assertIsNone(detect_algorithm_from_extension("site.archive"))

    def test_file_helpers(self):
        with tempfile.TemporaryDirectory() as tmp:
            base = Path(tmp)
            src = base / "in.bin"
            src.write_bytes(PAYLOAD)
            packed = base / "out" / "in.bin.br"
            size = compress_file(str(src), str(packed), "brotli", 5)
            self.assertEqual(size, packed.stat().st_size)
            restored = base / "restored.bin"
            # algorithm comes from the .br extension
            self.assertEqual(decompress_file(str(packed), str(restored)), len(PAYLOAD))
            self.assertEqual(restored.read_bytes(), PAYLOAD)


if __name__ == "__main__":
    unittest.main()
