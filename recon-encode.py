#!/usr/bin/env python3
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from recon_decoder import encode  # noqa: E402

def main():
    if len(sys.argv) < 2:
        print(f"Usage: {sys.argv[0]} '<json_string>' [leading_section ...]", file=sys.stderr)
        sys.exit(1)

    token = encode(sys.argv[1], leading_sections=sys.argv[2:])
    print(token)

if __name__ == "__main__":
    main()
