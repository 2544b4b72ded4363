# Flagchain CLI Toolkit — (c) 2025 rtj.dev LLC — MIT Licensed
"""Global console instance for Flagchain usage and error output."""
from rich.console import Console

console = Console(color_system="truecolor", highlight=False)
