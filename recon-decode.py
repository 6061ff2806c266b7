#!/usr/bin/env python3
import sys
import json
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from exceptions import ReconError  # noqa: E402
from recon_decoder import decode  # noqa: E402

def main():
    if len(sys.argv) != 2:
        print(f"Usage: {sys.argv[0]} '<recon_token>'", file=sys.stderr)
        sys.exit(1)
    try:
        result = decode(sys.argv[1])
    except ReconError as e:
        print(f"{e.stage}: {e}", file=sys.stderr)
        sys.exit(2)
    print(json.dumps(result.model_dump(by_alias=True), separators=(",", ":")))

if __name__ == "__main__":
    main()
