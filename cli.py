"""
Command line front end for the Huffman codec

How to run:
  huff notes.txt -o notes.huff          (encode)
  huff -d notes.huff -o notes.txt       (decode)
  huff --framed image.png -o image.hf   (binary-safe container)
  huff -d --framed image.hf > image.png
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import codec
from huffman import HuffmanError


@dataclass
class Settings:
    input: Path
    decode: bool = False
    output: Optional[Path] = None # None -> stdout
    framed: bool = False

    @classmethod
    def parse(cls, argv: Optional[List[str]] = None) -> "Settings":
        ap = argparse.ArgumentParser(prog="huff", description="Byte-oriented Huffman compressor")
        ap.add_argument("input", type=Path, help="File to encode (or decode with -d)")
        ap.add_argument("-d", "--decode", action="store_true", help="Decode instead of encode")
        ap.add_argument("-o", "--output", type=Path, default=None, help="Output file (default: stdout)")
        ap.add_argument("--framed", action="store_true",
                        help="Use the length-prefixed container, safe for data containing zero bytes")
        args = ap.parse_args(argv)
        return cls(input=args.input, decode=args.decode, output=args.output, framed=args.framed)


def run(settings: Settings) -> bytes:
    data = settings.input.read_bytes()
    if settings.decode:
        return codec.decode_framed(data) if settings.framed else codec.decode(data)
    return codec.encode_framed(data) if settings.framed else codec.encode(data)


def write_output(settings: Settings, payload: bytes) -> None:
    if settings.output is None:
        sys.stdout.buffer.write(payload)
        sys.stdout.buffer.flush()
    else:
        settings.output.write_bytes(payload)


def main(argv: Optional[List[str]] = None) -> int:
    settings = Settings.parse(argv)
    try:
        write_output(settings, run(settings))
    except (HuffmanError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
