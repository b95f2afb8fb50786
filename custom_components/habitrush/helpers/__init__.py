"""Helper modules for HabitRush integration.

Submodules:
    - entity_helpers: Signal names and coordinator lookup
    - device_helpers: DeviceInfo construction
"""
