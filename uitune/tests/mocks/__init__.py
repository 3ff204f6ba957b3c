"""
Mock components for testing uitune.

These mocks stand in for the Windows registry, powercfg and the operator
so the engines can be exercised on any platform.
"""

from .golden_data import (
    SAMPLE_CATALOG,
    INITIAL_REGISTRY,
    ABSENT_AT_START,
    PROFILES,
    ULTIMATE_PROFILE,
    BALANCED_GUID,
    HIGH_PERFORMANCE_GUID,
    ULTIMATE_GUID,
    POWERCFG_LIST_OUTPUT,
    POWERCFG_LIST_OUTPUT_DE,
    POWERCFG_ACTIVE_OUTPUT,
)
from .mock_store import MockKeyValueStore, MockExporter
from .mock_system import MockProfileManager, ScriptedInteraction, TickingClock

__all__ = [
    # Collaborator mocks
    'MockKeyValueStore',
    'MockExporter',
    'MockProfileManager',
    'ScriptedInteraction',
    'TickingClock',
    # Golden data
    'SAMPLE_CATALOG',
    'INITIAL_REGISTRY',
    'ABSENT_AT_START',
    'PROFILES',
    'ULTIMATE_PROFILE',
    'BALANCED_GUID',
    'HIGH_PERFORMANCE_GUID',
    'ULTIMATE_GUID',
    'POWERCFG_LIST_OUTPUT',
    'POWERCFG_LIST_OUTPUT_DE',
    'POWERCFG_ACTIVE_OUTPUT',
]
