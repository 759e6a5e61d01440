"""
Entry point for the remediation player CLI.

Run with:
    python main.py queue --level 6e --subject maths
    python main.py play --level 6e --catalog data/catalog.json
"""
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from src.cli.main import main

if __name__ == "__main__":
    main()
