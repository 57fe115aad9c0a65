"""Unit tests for the domain layer and configuration"""

from pathlib import Path
import sys

# Add the src directory to Python path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))
