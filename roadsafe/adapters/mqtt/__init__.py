"""
MQTT adapters for RoadSafe.

This module contains the location subscriber and the alert publisher.
"""
from .location import MqttLocationProvider
from .publisher import MqttAlertPublisher, LogAlertSink

__all__ = ["MqttLocationProvider", "MqttAlertPublisher", "LogAlertSink"]
