"""
Service Organization
====================
Services are organized by their lifecycle and instantiation pattern:

**ai/**
  Language-model backends, the soil analysis provider and the rule-based
  fallback report.

**application/**
  Singleton services managed by ServiceContainer. One instance per application.
  Examples: SoilAnalysisService, SensorService, AnalysisScheduleService

**utilities/**
  Services wrapping third-party APIs without shared domain state.
  Examples: WeatherForecastService
"""
