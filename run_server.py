#!/usr/bin/env python3
"""
Simple script to run the LearnLab backend server.
Usage: python run_server.py
"""
import sys
import os

# Add the current directory to Python path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import uvicorn
from learnlab.config import config

if __name__ == "__main__":
    print("Starting LearnLab Backend Server...")
    try:
        uvicorn.run(
            "learnlab.main:app",
            host=config.HOST,
            port=config.PORT,
            reload=config.DEBUG,
            log_level=config.LOG_LEVEL.lower()
        )
    except KeyboardInterrupt:
        print("\n👋 Server stopped by user")
        sys.exit(0)
    except Exception as e:
        print(f"❌ Server failed to start: {e}")
        sys.exit(1)
