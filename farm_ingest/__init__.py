"""Servicio de ingesta de sensores de calidad de agua para granjas camaroneras."""
