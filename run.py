#!/usr/bin/env python3
"""
Demo Bank Entry Point

Starts the FastAPI server with the in-memory banking system.
"""

import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from demo_bank.api import run_server
from demo_bank.config import get_config


if __name__ == "__main__":
    config = get_config()
    print("Starting Demo Bank API...")
    print(f"API available at: http://localhost:{config.api_port}")
    print(f"Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        run_server()
    except KeyboardInterrupt:
        print("\nShutting down Demo Bank API...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
