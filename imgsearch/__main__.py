"""
Allow running the package with: python -m imgsearch

Examples:
    python -m imgsearch index ./images
    python -m imgsearch index-sampled laion.json -n 30000
    python -m imgsearch search ./query.jpg
    python -m imgsearch serve
    python -m imgsearch config --init
"""

import sys

from .cli import main


if __name__ == '__main__':
    sys.exit(main())
