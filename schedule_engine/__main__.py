"""
Entry point for running the engine as a module.

Usage:
    python -m schedule_engine generate catalog.json -s "1st Semester" -y 2024-2025 -o report.json
    python -m schedule_engine validate catalog.json
    python -m schedule_engine view report.json --faculty fac-001
"""

from schedule_engine.cli import main

if __name__ == "__main__":
    main()
