#!/usr/bin/env python3
"""
Spark Text - rich-text editor document converter

Simple usage:
    python spark.py convert notes.html --to markdown   # Outputs notes.md
    python spark.py convert /folder/path --to docx     # Converts all files in folder
    python spark.py salvage broken.pdf -o broken.html  # Recovers text from a damaged PDF
"""

import sys
from pathlib import Path

# Add src to path for development
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from spark_text.cli import app

if __name__ == "__main__":
    app()
