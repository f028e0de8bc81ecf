from __future__ import annotations

import argparse
import os
import sys
import time
from typing import List, Optional

from packager import __version__
from packager.codec import (
    compress_file,
    decompress_file,
    detect_algorithm_from_extension,
    get_compression_algorithm,
)
from packager.constants import ALGORITHMS, DEFAULT_ALGORITHM
from packager.errors import (
    CorruptArchiveError,
    PackagerError,
    PathTraversalError,
    TruncatedArchiveError,
)
from packager.extract import extract_archive
from packager.pipeline import compression_ratio, create_package, format_file_size
from packager.reader import is_archive, parse_archive, read_archive
from packager.signing import (
    derive_and_save_public_key,
    generate_and_save_keypair,
    sign_file,
    verify_file,
)
from packager.writer import archive_directory


def _split_patterns(value: Optional[str]) -> Optional[List[str]]:
    """Turn a comma-separated CLI value into a pattern list (None when unset)."""
    if not value:
        return None
    return [p.strip() for p in value.split(",") if p.strip()]


def _require_file(path: str, what: str) -> None:
    if not os.path.exists(path):
        raise FileNotFoundError(f"{what} does not exist: {path}")
    if not os.path.isfile(path):
        raise ValueError(f"{what} is not a file: {path}")


def _remove_quietly(path: Optional[str]) -> None:
    """Delete a temporary file; failures are reported but never raised."""
    if not path or not os.path.exists(path):
        return
    try:
        os.remove(path)
    except OSError as exc:
        print(f"Warning: failed to clean up temporary file {path}: {exc}", file=sys.stderr)


def cmd_archive(
    source: str,
    output: str,
    *,
    include: Optional[List[str]] = None,
    exclude: Optional[List[str]] = None,
    quiet: bool = False,
) -> bool:
    """Create an archive from a directory.

    Args:
        source: Directory to archive.
        output: Path of the archive file to write.
        include: Glob patterns selecting files (default: everything).
        exclude: Glob patterns removing files (default: .git and node_modules).
        quiet: Only print the summary line.
    """
    t0 = time.time()
    archive = archive_directory(source, output, include, exclude)
    if not quiet:
        for e in archive.entries:
            print(f"   adding: {e.path} ({format_file_size(e.size)})")
    dt = max(0.000001, time.time() - t0)
    print(
        f"Archive created: {output} ({format_file_size(os.path.getsize(output))}); "
        f"{len(archive)} files, {format_file_size(archive.total_size())} of content in {dt:.1f}s"
    )
    return True


def cmd_unarchive(archive: str, output: str, *, strict: bool = True, quiet: bool = False) -> bool:
    """Extract an archive file into a directory.

    Args:
        archive: Archive file to read.
        output: Destination directory (created when missing).
        strict: Reject entries whose declared size disagrees with the entry table.
        quiet: Only print the summary line.
    """
    _require_file(archive, "Archive")
    parsed = read_archive(archive, strict=strict)

    def _progress(i: int, total: int, e) -> None:
        if not quiet:
            print(f" extracting: {i:>4}/{total:<4} {e.path}")

    written = extract_archive(parsed, output, progress=_progress)
    print(f"Archive extracted to: {output} ({len(written)} files, {format_file_size(parsed.total_size())})")
    return True


def cmd_list(archive: str, *, strict: bool = True) -> bool:
    """List archive entries as ``size<TAB>mime<TAB>path``."""
    _require_file(archive, "Archive")
    parsed = read_archive(archive, strict=strict)
    for e in parsed.entries:
        print(f"{e.size}\t{e.mime_type}\t{e.path}")
    return True


def cmd_info(archive: str) -> bool:
    """Show archive header information and totals."""
    _require_file(archive, "Archive")
    parsed = read_archive(archive)
    mimes: dict[str, int] = {}
    for e in parsed.entries:
        mimes[e.mime_type] = mimes.get(e.mime_type, 0) + 1
    print(f"Archive: {archive}")
    print(f"  File size:     {format_file_size(os.path.getsize(archive))}")
    print(f"  Version:       {parsed.version}")
    print(f"  Entries:       {len(parsed)}")
    print(f"  Content bytes: {parsed.total_size()} ({format_file_size(parsed.total_size())})")
    for mime, count in sorted(mimes.items()):
        print(f"    {count:>6}  {mime}")
    return True


def cmd_compress(
    source: str,
    output: str,
    *,
    algorithm: Optional[str] = None,
    level: Optional[int] = None,
    archive_first: bool = False,
    include: Optional[List[str]] = None,
    exclude: Optional[List[str]] = None,
) -> bool:
    """Compress a file, or a directory after archiving it (``--archive``)."""
    algo = get_compression_algorithm(algorithm) if algorithm else DEFAULT_ALGORITHM
    temp_path: Optional[str] = None
    to_compress = source
    try:
        if os.path.isdir(source):
            if not archive_first:
                raise ValueError(f"Source is a directory; pass --archive to archive it first: {source}")
            temp_path = f"{output}.archive.tmp"
            print(" Creating archive from directory...", flush=True)
            archive_directory(source, temp_path, include, exclude)
            to_compress = temp_path
        else:
            _require_file(source, "Source")
        original = os.path.getsize(to_compress)
        print(f" Compressing {'archive' if temp_path else 'file'} with {algo}...", flush=True)
        compressed = compress_file(to_compress, output, algo, level)
    finally:
        _remove_quietly(temp_path)
    what = "Directory archived and compressed" if temp_path else "File compressed"
    print(
        f"{what}: {output} ({format_file_size(compressed)}, "
        f"{compression_ratio(original, compressed):.2f}% reduction)"
    )
    return True


def cmd_decompress(source: str, output: str, *, algorithm: Optional[str] = None, unarchive: bool = False) -> bool:
    """Decompress a file; with ``unarchive`` extract the result into *output*."""
    _require_file(source, "Source")
    algo = get_compression_algorithm(algorithm) if algorithm else detect_algorithm_from_extension(source)
    print(f" Decompressing file{f' using {algo}' if algo else ''}...", flush=True)
    if not unarchive:
        size = decompress_file(source, output, algo)
        print(f"File decompressed: {output} ({format_file_size(size)})")
        return True

    temp_path = f"{output}.decompressed.tmp"
    try:
        decompress_file(source, temp_path, algo)
        with open(temp_path, "rb") as f:
            payload = f.read()
        if not is_archive(payload):
            print("Warning: the decompressed file is not a valid archive. Saving as regular file.", file=sys.stderr)
            os.makedirs(os.path.dirname(os.path.abspath(output)), exist_ok=True)
            os.replace(temp_path, output)
            print(f"File decompressed: {output} ({format_file_size(len(payload))})")
            return True
        written = extract_archive(parse_archive(payload), output)
    finally:
        _remove_quietly(temp_path)
    print(f"File decompressed and extracted to: {output} ({len(written)} files)")
    return True


def cmd_sign(source: str, output: str, *, privkey: str) -> bool:
    """Write a detached Ed25519 signature of *source* to *output*."""
    _require_file(source, "Source")
    _require_file(privkey, "Private key")
    sign_file(source, output, private_key_path=privkey)
    print(f"Signature created: {output}")
    return True


def cmd_verify(path: str, signature: str, *, pubkey: str) -> bool:
    """Check *signature* over *path*; returns False when it does not verify."""
    _require_file(path, "File")
    _require_file(signature, "Signature")
    _require_file(pubkey, "Public key")
    if verify_file(path, signature, public_key_path=pubkey):
        print("Signature is valid")
        return True
    print("Signature is invalid", file=sys.stderr)
    return False


def cmd_generate_keys(private_path: str, public_path: str) -> bool:
    generate_and_save_keypair(private_path, public_path)
    print(f"Key pair generated:\n  Private key: {private_path}\n  Public key: {public_path}")
    print("Warning: keep your private key secure and do not share it with anyone!", file=sys.stderr)
    return True


def cmd_derive_public_key(private_path: str, public_path: str) -> bool:
    _require_file(private_path, "Private key")
    derive_and_save_public_key(private_path, public_path)
    print(f"Public key derived: {public_path}")
    return True


def cmd_package(
    source: str,
    output: str,
    *,
    algorithm: Optional[str] = None,
    privkey: Optional[str] = None,
    keep_archive: bool = False,
) -> bool:
    """Archive, compress and optionally sign a directory in one step."""
    if privkey:
        _require_file(privkey, "Private key")
    print(" Creating package...", flush=True)
    res = create_package(source, output, algorithm or DEFAULT_ALGORITHM, private_key_path=privkey)
    print("Package created successfully")
    print("Generated files:")
    print(f"  Archive: {res.archive_path} ({format_file_size(res.archive_size)}, {res.entry_count} files)")
    print(f"  Package: {res.compressed_path} ({format_file_size(res.compressed_size)})")
    if res.signature_path:
        print(f"  Signature: {res.signature_path}")
    print(f"Compression ratio: {compression_ratio(res.archive_size, res.compressed_size):.2f}%")
    if not keep_archive:
        os.remove(res.archive_path)
        print(f"Temporary archive file removed: {res.archive_path}")
    return True


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="packager",
        description="Archive, compress, and sign directories for cross-platform deployment",
    )
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_archive = sub.add_parser("archive", aliases=["a"], help="Create an archive from a directory")
    ap_archive.add_argument("source", help="Source directory to archive")
    ap_archive.add_argument("output", help="Output archive file path")
    ap_archive.add_argument("-i", "--include", help="Include file pattern (glob), comma-separated")
    ap_archive.add_argument("-e", "--exclude", help="Exclude file pattern (glob), comma-separated")
    ap_archive.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_unarchive = sub.add_parser("unarchive", aliases=["u"], help="Extract an archive file to a directory")
    ap_unarchive.add_argument("archive", help="Archive file to extract")
    ap_unarchive.add_argument("output", help="Output directory path")
    ap_unarchive.add_argument(
        "--lenient",
        action="store_true",
        help="Trust each entry's declared size instead of cross-checking it against the entry table",
    )
    ap_unarchive.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_list = sub.add_parser("list", aliases=["ls"], help="List archive contents")
    ap_list.add_argument("archive", help="Archive path")
    ap_list.add_argument("--lenient", action="store_true", help="Trust declared entry sizes")

    ap_info = sub.add_parser("info", help="Show archive information")
    ap_info.add_argument("archive", help="Archive path")

    ap_compress = sub.add_parser("compress", aliases=["c"], help="Compress a file or directory")
    ap_compress.add_argument("source", help="Source file or directory to compress")
    ap_compress.add_argument("output", help="Output compressed file path")
    ap_compress.add_argument("-a", "--algorithm", choices=ALGORITHMS, help="Compression algorithm (default: gzip)")
    ap_compress.add_argument("-l", "--level", type=int, choices=range(1, 10), metavar="{1-9}", help="Compression level (1-9)")
    ap_compress.add_argument(
        "--archive",
        dest="archive_first",
        action="store_true",
        help="Archive the directory before compression if source is a directory",
    )
    ap_compress.add_argument("-i", "--include", help="Include file pattern for archiving (glob), comma-separated")
    ap_compress.add_argument("-e", "--exclude", help="Exclude file pattern for archiving (glob), comma-separated")

    ap_decompress = sub.add_parser("decompress", aliases=["d"], help="Decompress a file")
    ap_decompress.add_argument("source", help="Source compressed file")
    ap_decompress.add_argument("output", help="Output decompressed file path or directory")
    ap_decompress.add_argument("-a", "--algorithm", choices=ALGORITHMS, help="Compression algorithm (detected when omitted)")
    ap_decompress.add_argument("--unarchive", action="store_true", help="Unarchive the decompressed file if it is an archive")

    ap_sign = sub.add_parser("sign", aliases=["s"], help="Sign a file using Ed25519")
    ap_sign.add_argument("source", help="Source file to sign")
    ap_sign.add_argument("output", help="Output signature file path")
    ap_sign.add_argument("--privkey", required=True, help="Path to the private key file")

    ap_verify = sub.add_parser("verify", aliases=["v"], help="Verify a file signature using Ed25519")
    ap_verify.add_argument("file", help="File to verify")
    ap_verify.add_argument("signature", help="Signature file path")
    ap_verify.add_argument("--pubkey", required=True, help="Path to the public key file")

    ap_keys = sub.add_parser("generate-keys", aliases=["g"], help="Generate an Ed25519 key pair")
    ap_keys.add_argument("private_key", help="Path where the private key file will be saved")
    ap_keys.add_argument("public_key", help="Path where the public key file will be saved")

    ap_derive = sub.add_parser("derive-public-key", aliases=["p"], help="Derive a public key from a private key")
    ap_derive.add_argument("private_key", help="Private key file path")
    ap_derive.add_argument("public_key", help="Output public key file path")

    ap_package = sub.add_parser(
        "package",
        aliases=["pkg"],
        help="Archive, compress, and optionally sign a directory into a single file",
    )
    ap_package.add_argument("source", help="Source directory to package")
    ap_package.add_argument("output", help="Output file path (extension is added per algorithm)")
    ap_package.add_argument("-a", "--algorithm", choices=ALGORITHMS, help="Compression algorithm (default: gzip)")
    ap_package.add_argument("--privkey", help="Path to the private key file for signing")
    ap_package.add_argument("--keep-archive", action="store_true", help="Keep the intermediate .archive file")

    args = ap.parse_args(argv)
    cmd = {
        "a": "archive", "u": "unarchive", "ls": "list", "c": "compress", "d": "decompress",
        "s": "sign", "v": "verify", "g": "generate-keys", "p": "derive-public-key", "pkg": "package",
    }.get(args.cmd, args.cmd)
    try:
        if cmd == "archive":
            cmd_archive(
                args.source,
                args.output,
                include=_split_patterns(args.include),
                exclude=_split_patterns(args.exclude),
                quiet=args.quiet,
            )
        elif cmd == "unarchive":
            cmd_unarchive(args.archive, args.output, strict=not args.lenient, quiet=args.quiet)
        elif cmd == "list":
            cmd_list(args.archive, strict=not args.lenient)
        elif cmd == "info":
            cmd_info(args.archive)
        elif cmd == "compress":
            cmd_compress(
                args.source,
                args.output,
                algorithm=args.algorithm,
                level=args.level,
                archive_first=args.archive_first,
                include=_split_patterns(args.include),
                exclude=_split_patterns(args.exclude),
            )
        elif cmd == "decompress":
            cmd_decompress(args.source, args.output, algorithm=args.algorithm, unarchive=args.unarchive)
        elif cmd == "sign":
            cmd_sign(args.source, args.output, privkey=args.privkey)
        elif cmd == "verify":
            ok = cmd_verify(args.file, args.signature, pubkey=args.pubkey)
            sys.exit(0 if ok else 1)
        elif cmd == "generate-keys":
            cmd_generate_keys(args.private_key, args.public_key)
        elif cmd == "derive-public-key":
            cmd_derive_public_key(args.private_key, args.public_key)
        elif cmd == "package":
            cmd_package(
                args.source,
                args.output,
                algorithm=args.algorithm,
                privkey=args.privkey,
                keep_archive=args.keep_archive,
            )
        else:
            raise RuntimeError("Unknown command")
    except PathTraversalError as e:
        print(f"Error: refusing to extract, {e}. Nothing was written.", file=sys.stderr)
        sys.exit(2)
    except (TruncatedArchiveError, CorruptArchiveError) as e:
        print(
            f"Error: {e}\n"
            "Archive appears truncated or corrupted. If it was written by an older tool, "
            "retry with --lenient.",
            file=sys.stderr,
        )
        sys.exit(2)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    except (PackagerError, OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
