#!/usr/bin/env -S python3 -B -u
"""
hnet - Home Network Topology Planner Package

Device graph editing with automatic subnet inheritance and separate
topology and floor-plan views.
"""

__version__ = '1.0.0'
__author__ = 'Home Network Planner'
__license__ = 'MIT'

# Package metadata
__all__ = [
    'core',
    'shell',
]
