"""OKLCh palette designer web app (Flask).

Builds lightness ramps from a base color in OKLCh, keeps every step inside
the sRGB gamut by shrinking chroma only, and shows WCAG contrast against a
light and a dark preview background.

Usage
-----
$ pip install -e .
$ python main.py                 # starts on http://127.0.0.1:5000
$ OKLCH_PALETTE_PALETTE_STORE_PATH=palettes.json python main.py

Palettes are kept in memory unless a store path is configured; the root page
is a single-file HTML client talking to the JSON API.
"""

from __future__ import annotations

import argparse

from oklch_palette.app import create_app


def main() -> None:
    parser = argparse.ArgumentParser(description="OKLCh palette designer")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=5000)
    parser.add_argument("--store", default=None, help="JSON file palettes persist to")
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args()

    overrides = {"PALETTE_STORE_PATH": args.store} if args.store else None
    create_app(overrides).run(host=args.host, port=args.port, debug=args.debug, threaded=True)


if __name__ == "__main__":
    main()
