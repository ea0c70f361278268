"""
Adapters for RoadSafe.

This module contains the adapters that implement the ports
for the external systems (MQTT, Google Maps, storage).
"""
