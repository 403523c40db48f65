#!/usr/bin/env python3
"""
Simple script to run the Triathlon Stats Gateway API server.
"""

import sys
import os

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from triathlon_api.api import run_server

if __name__ == "__main__":
    import argparse
    
    parser = argparse.ArgumentParser(description="Run Triathlon Stats Gateway API Server")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    
    args = parser.parse_args()
    
    print("Starting Triathlon Stats Gateway...")
    print(f"Server will be available at: http://{args.host}:{args.port}")
    print("Endpoints: /api/claude, /api/triathlon, /api/youtube, /api/youtube-videos")
    print(f"API Documentation: http://{args.host}:{args.port}/docs")
    print()
    
    run_server(host=args.host, port=args.port, reload=args.reload)
