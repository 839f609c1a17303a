"""
open-tasks — integration test package

File: tests/integration/__init__.py

Purpose
- Test package marker for end-to-end CLI contracts.
"""
