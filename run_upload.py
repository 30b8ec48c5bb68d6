#!/usr/bin/env python3
"""
Convenience script to run the uploader from a source checkout
"""
import sys
import os

# Add current directory to path to import sftp_uploader
sys.path.insert(0, os.path.dirname(__file__))

from sftp_uploader.upload.upload_cli import main

if __name__ == '__main__':
    sys.exit(main())
