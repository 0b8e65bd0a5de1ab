#!/usr/bin/env python3
"""
CLI entry point for the rental availability engine.
"""
from rental_engine.main import main

if __name__ == "__main__":
    main()
