from __future__ import annotations

# s3pt - S3 performance test
"""
Usage:
    python -m s3pt -n 1000 -t 8 --size 1M --bucketName bench
    python -m s3pt -n 1000 -t 8 --operation DOWNLOAD --bucketName bench
"""

__version__ = "1.0.0"
