"""
Nexora CLI Commands

This package contains the command-line interface for Nexora: creating
projects and adding, removing, renaming, configuring and updating features.
"""

__all__ = []
