"""
Service Organization
====================

**application/**
  Services managed by ServiceContainer. One instance per application:
  readings, settings, status register, command gateway, liveness monitor
  and watering decisions.

**container.py**
  Wires repositories, services and the scheduler together.
"""
